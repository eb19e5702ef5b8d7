"""pagestream: progressive HTML rendering over chunked HTTP.

Instead of buffering a whole page, a progressive response sends every piece
of output the moment a template says ``{% flush %}``, as one chunk of a
``Transfer-Encoding: chunked`` response, and keeps rendering.

Quickstart:
    >>> from pagestream import Controller, DictLoader, Environment, Request
    >>> env = Environment(loader=DictLoader({
    ...     "layout": "<html><head>...</head>{% flush %}<body>{% yield %}</body></html>",
    ...     "index": "<h1>{{ title }}</h1>",
    ... }))
    >>> class Pages(Controller):
    ...     def index(self):
    ...         self.assigns["title"] = "Hello"
    >>> Pages.env = env
    >>> Pages.layout("layout", progressive=True)
    >>> Pages.dispatch("index", Request(), wfile)

Architecture:
    Controller action → Mode selector → ResponseEmitter.begin()
    → streaming hooks → RenderContext (frame stack) → flush/push → chunks

Ordering:
    Nested renders (layout → view → partial) each get a RenderFrame. Output is
    appended to the innermost frame, and a flush drains every frame outer →
    inner, so chunks always concatenate to exactly the buffered page.

Browser padding:
    The first chunk is padded with an HTML comment up to a per-browser byte
    threshold (255 for MSIE, 1024 for Safari, 2048 for Chrome) so the browser
    starts painting immediately.
"""

from pagestream._types import RenderMode, TransferMode
from pagestream.environment import (
    DEFAULT_PADDING_RULES,
    ChoiceLoader,
    DictLoader,
    DoubleRenderError,
    Environment,
    ErrorCode,
    FileSystemLoader,
    PageStreamError,
    PaddingRule,
    RenderDirectiveError,
    RenderError,
    ResponseCommittedError,
    ResponseError,
    TemplateError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TransportError,
    UndefinedError,
    pad_chunk,
    padding_target,
)
from pagestream.frames import FrameStack, RenderFrame
from pagestream.render_context import Output, RenderContext
from pagestream.template import FunctionTemplate, Template
from pagestream.http import Request, ResponseEmitter, ResponseState
from pagestream.controller import Controller, LayoutConfig, RenderDirective
from pagestream.utils.html import Markup, html_escape

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_PADDING_RULES",
    "ChoiceLoader",
    "Controller",
    "DictLoader",
    "DoubleRenderError",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "FrameStack",
    "FunctionTemplate",
    "LayoutConfig",
    "Markup",
    "Output",
    "PageStreamError",
    "PaddingRule",
    "RenderContext",
    "RenderDirective",
    "RenderDirectiveError",
    "RenderError",
    "RenderFrame",
    "RenderMode",
    "Request",
    "ResponseCommittedError",
    "ResponseEmitter",
    "ResponseError",
    "ResponseState",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
    "TransferMode",
    "TransportError",
    "UndefinedError",
    "html_escape",
    "pad_chunk",
    "padding_target",
]
