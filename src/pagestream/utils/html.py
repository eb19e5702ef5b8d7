"""HTML escaping and the Markup safe-string type.

Escaping is a single pass via ``str.translate()``.
"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


class Markup(str):
    """A string that is already safe for HTML output.

    Values of this type are written verbatim even with autoescape on.
    ``render_to_string`` returns Markup so its result can be embedded
    in another template without double escaping.

    Example:
        >>> html_escape(Markup("<b>hi</b>"))
        '<b>hi</b>'
    """

    __slots__ = ()

    def __html__(self) -> Markup:
        return self

    def __repr__(self) -> str:
        return f"Markup({super().__repr__()})"


def html_escape(value: Any) -> str:
    """Escape ``value`` for HTML unless it declares itself safe."""
    if hasattr(value, "__html__"):
        return str(value.__html__())
    return str(value).translate(_ESCAPE_TABLE)
