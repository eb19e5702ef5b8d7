"""Exceptions for pagestream.

    PageStreamError
    ├── TemplateError
    │   ├── TemplateNotFoundError     no loader has the view
    │   ├── TemplateSyntaxError       view source does not parse
    │   └── UndefinedError            view used a name its scope lacks
    ├── RenderError
    │   ├── RenderDirectiveError      render() got zero or several targets
    │   └── DoubleRenderError         render() called twice by one action
    └── ResponseError
        ├── ResponseCommittedError    headers or framing changed too late
        └── TransportError            client went away mid-response

Each class carries an ``ErrorCode`` so a failure can be grepped for in logs
and looked up in the docs:

    P-HTTP-002: Connection closed while writing response: [Errno 32] Broken pipe
      Docs: https://pagestream.readthedocs.io/en/latest/errors.html#p-http-002
"""

from __future__ import annotations

from enum import Enum

_DOCS_BASE = "https://pagestream.readthedocs.io/en/latest/errors.html"

_CATEGORIES = {"TPL": "template", "RND": "render", "HTTP": "http"}


class ErrorCode(Enum):
    """Stable ``P-<AREA>-<NNN>`` identifiers."""

    TEMPLATE_NOT_FOUND = "P-TPL-001"
    SYNTAX_ERROR = "P-TPL-002"
    UNDEFINED_VARIABLE = "P-TPL-003"

    INVALID_DIRECTIVE = "P-RND-001"
    DOUBLE_RENDER = "P-RND-002"

    RESPONSE_COMMITTED = "P-HTTP-001"
    TRANSPORT = "P-HTTP-002"

    @property
    def docs_url(self) -> str:
        return f"{_DOCS_BASE}#{self.value.lower()}"

    @property
    def category(self) -> str:
        """``template``, ``render`` or ``http``."""
        return _CATEGORIES.get(self.value.split("-")[1], "unknown")


class PageStreamError(Exception):
    """Root of every error pagestream raises."""

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """``<code>: <message>`` followed by the docs link."""
        message = str(self)
        if self.code is None:
            return message
        if not message.startswith(self.code.value):
            message = f"{self.code.value}: {message}"
        return f"{message}\n  Docs: {self.code.docs_url}"


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class TemplateError(PageStreamError):
    """A view could not be loaded, parsed or evaluated."""


class TemplateNotFoundError(TemplateError):
    code = ErrorCode.TEMPLATE_NOT_FOUND


class TemplateSyntaxError(TemplateError):
    """View source failed to parse.

    The message points at ``name:lineno`` and, given the source, quotes the
    offending line::

        Syntax Error: Unknown tag 'bogus'
          --> posts/index:2
           |
          2 | {% bogus %}
    """

    code = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        source: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.source = source
        super().__init__(self._render())

    def _render(self) -> str:
        where = self.name or "<template>"
        if self.lineno:
            where = f"{where}:{self.lineno}"
        text = f"Syntax Error: {self.message}\n  --> {where}"
        if not (self.source and self.lineno):
            return text
        lines = self.source.splitlines()
        if self.lineno > len(lines):
            return text
        return f"{text}\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"


class UndefinedError(TemplateError):
    """A view referenced a variable or attribute that does not exist."""

    code = ErrorCode.UNDEFINED_VARIABLE

    def __init__(self, name: str, template: str | None = None, lineno: int | None = None):
        self.name = name
        self.template = template
        self.lineno = lineno
        where = template or "<template>"
        if lineno:
            where = f"{where}:{lineno}"
        super().__init__(f"Undefined variable '{name}' in {where}")


# ---------------------------------------------------------------------------
# Render calls
# ---------------------------------------------------------------------------


class RenderError(PageStreamError):
    """An action asked for something that cannot be rendered."""


class RenderDirectiveError(RenderError):
    code = ErrorCode.INVALID_DIRECTIVE


class DoubleRenderError(RenderError):
    code = ErrorCode.DOUBLE_RENDER


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


class ResponseError(PageStreamError):
    """The HTTP response could not be written as requested."""


class ResponseCommittedError(ResponseError):
    """Status, headers or transfer mode changed after they were fixed.

    Always a programming error: the transfer mode is chosen before the first
    body byte, and headers cannot change once they are on the wire.
    """

    code = ErrorCode.RESPONSE_COMMITTED


class TransportError(ResponseError):
    """Writing to the client failed.

    Raised by the failing write and by every write after it; bytes already
    sent cannot be taken back, so the request has to be abandoned.
    """

    code = ErrorCode.TRANSPORT
