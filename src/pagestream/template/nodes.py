"""AST nodes for pagestream templates.

Nodes are immutable so a parsed template can be shared between requests.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    lineno: int


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Name(Node):
    """Dotted variable path: ``user.profile.name``"""

    path: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Const(Node):
    """String literal: ``"text"``"""

    value: str


Expr = Name | Const


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Data(Node):
    """Raw text between template constructs."""

    value: str


@dataclass(frozen=True, slots=True)
class Output(Node):
    """Output expression: {{ expr }} or {{ expr | safe }}"""

    expr: Expr
    escape: bool = True


@dataclass(frozen=True, slots=True)
class Flush(Node):
    """{% flush %}"""


@dataclass(frozen=True, slots=True)
class Push(Node):
    """{% push expr %}"""

    expr: Expr


@dataclass(frozen=True, slots=True)
class Yield(Node):
    """{% yield %}: insert the content this template wraps."""


@dataclass(frozen=True, slots=True)
class Render(Node):
    """Nested render.

    ``{% render partial="x" layout="y" %}`` renders a partial, optionally
    wrapped in a layout. ``{% render layout="y" %}...{% end %}`` wraps the
    body in the layout.
    """

    partial: Expr | None
    layout: Expr | None
    body: Sequence[Node] | None = None


@dataclass(frozen=True, slots=True)
class RenderToString(Node):
    """{% render_to_string partial="x" as var %}"""

    target: str
    name: Expr
    layout: Expr | None
    var: str


@dataclass(frozen=True, slots=True)
class TemplateNode(Node):
    """Root of a parsed template."""

    name: str | None
    body: Sequence[Node]
