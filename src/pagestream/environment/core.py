"""Environment: configuration and template cache for pagestream.

One Environment is shared by every request of an application. It holds the
loader, escaping policy and the User-Agent padding table, and caches parsed
templates by name.

Example:
    >>> env = Environment(loader=DictLoader({
    ...     "layout": "<html>{% flush %}{% yield %}</html>",
    ...     "index": "<p>{{ message }}</p>",
    ... }))
    >>> env.get_template("index").render_string(message="hi")
    '<p>hi</p>'
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pagestream.environment.exceptions import TemplateNotFoundError
from pagestream.environment.padding import DEFAULT_PADDING_RULES, PaddingRule
from pagestream.template.core import FunctionTemplate, Template
from pagestream.template.parser import parse

if TYPE_CHECKING:
    from pagestream.environment.loaders import Loader
    from pagestream.render_context import Output

logger = logging.getLogger(__name__)

AnyTemplate = Template | FunctionTemplate


class Environment:
    """Shared rendering configuration.

    Args:
        loader: Source of named templates. Optional when every template is
            registered with ``add_template`` or built with ``from_string``.
        autoescape: HTML-escape ``{{ }}`` output (``Markup`` is left alone).
        padding_rules: Ordered User-Agent table used to pad the first chunk of
            progressive responses. Pass ``()`` to disable padding.
        padding_char: Single byte used to fill the padding comment.
        cache: Cache parsed templates by name.
    """

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        autoescape: bool = True,
        padding_rules: Sequence[PaddingRule] = DEFAULT_PADDING_RULES,
        padding_char: str = "+",
        cache: bool = True,
    ):
        fill = padding_char.encode("ascii", "replace")
        if len(fill) != 1 or not padding_char.isascii() or fill in (b"-", b">"):
            raise ValueError(f"padding_char must be one ASCII character other than '-' or '>', got {padding_char!r}")
        self.loader = loader
        self.autoescape = autoescape
        self.padding_rules = tuple(padding_rules)
        self.padding_fill = fill
        self._cache_enabled = cache
        self._cache: dict[str, AnyTemplate] = {}
        self._registered: dict[str, FunctionTemplate] = {}
        self._lock = threading.Lock()

    def add_template(self, name: str, func: Callable[[Output, Mapping[str, Any]], None]) -> FunctionTemplate:
        """Register a Python callable as the template called ``name``.

        Registered templates take precedence over the loader.
        """
        template = FunctionTemplate(self, func, name)
        with self._lock:
            self._registered = {**self._registered, name: template}
        return template

    def get_template(self, name: str) -> AnyTemplate:
        """Load, parse and cache the template called ``name``.

        Raises:
            TemplateNotFoundError: If no registered template or loader has it.
            TemplateSyntaxError: If the source does not parse.
        """
        registered = self._registered.get(name)
        if registered is not None:
            return registered

        cached = self._cache.get(name)
        if cached is not None:
            return cached

        if self.loader is None:
            raise TemplateNotFoundError(f"Template '{name}' not found (no loader configured)")

        source, _filename = self.loader.get_source(name)
        template = Template(self, parse(source, name), name, source)
        logger.debug("parsed template %s", name)
        if self._cache_enabled:
            with self._lock:
                self._cache = {**self._cache, name: template}
        return template

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Parse ``source`` into an uncached template."""
        return Template(self, parse(source, name), name, source)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache = {}
