"""Render directives: what an action asked to render.

An action picks exactly one render target. Each target kind is its own
frozen dataclass so the mode selector and the body producer can match on
them exhaustively:

    ```python
    match directive.target:
        case Text() | Json() | Xml() | Script() | Nothing() | Body():
            ...  # raw body, never progressive
        case ActionTemplate() | NamedTemplate() | Partial() | Inline():
            ...  # templated
    ```
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from xml.etree import ElementTree

from pagestream.environment.exceptions import RenderDirectiveError

# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ActionTemplate:
    """The template named after an action (``render(action="show")``)."""

    name: str


@dataclass(frozen=True, slots=True)
class NamedTemplate:
    name: str


@dataclass(frozen=True, slots=True)
class Partial:
    name: str


@dataclass(frozen=True, slots=True)
class Inline:
    source: str


@dataclass(frozen=True, slots=True)
class Text:
    body: str


@dataclass(frozen=True, slots=True)
class Json:
    data: Any


@dataclass(frozen=True, slots=True)
class Xml:
    data: Any


@dataclass(frozen=True, slots=True)
class Script:
    source: str


@dataclass(frozen=True, slots=True)
class Nothing:
    pass


@dataclass(frozen=True, slots=True)
class Body:
    """Arbitrary pre-built content with its own content type."""

    content: str | bytes
    content_type: str | None = None


RenderTarget = ActionTemplate | NamedTemplate | Partial | Inline | Text | Json | Xml | Script | Nothing | Body


class _Unset:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True, slots=True)
class RenderDirective:
    """One action's render call.

    Attributes:
        target: What to render.
        layout: Layout name, ``None``/``False`` for no layout, or ``UNSET``
            to use the controller's layout where the target takes one.
        status: Explicit status code override.
        content_type: Explicit content type override.
        progressive: Per-action override of the layout's progressive setting.
    """

    target: RenderTarget
    layout: Any = UNSET
    status: int | None = None
    content_type: str | None = None
    progressive: bool | None = None

    @property
    def templated(self) -> bool:
        return isinstance(self.target, (ActionTemplate, NamedTemplate, Partial, Inline))


_TARGET_BUILDERS = {
    "action": ActionTemplate,
    "template": NamedTemplate,
    "partial": Partial,
    "inline": Inline,
    "text": Text,
    "json": Json,
    "xml": Xml,
    "js": Script,
    "body": Body,
}
_OPTIONS = frozenset({"layout", "status", "content_type", "progressive"})


def directive_from_options(options: Mapping[str, Any]) -> RenderDirective:
    """Build a RenderDirective from ``render(**options)`` keyword arguments.

    Raises:
        RenderDirectiveError: On zero targets, several targets or an
            unknown option.
    """
    unknown = set(options) - set(_TARGET_BUILDERS) - _OPTIONS - {"nothing"}
    if unknown:
        raise RenderDirectiveError(f"Unknown render option(s): {', '.join(sorted(unknown))}")

    targets = [key for key in (*_TARGET_BUILDERS, "nothing") if key in options]
    if options.get("nothing") is False:
        targets.remove("nothing")
    if len(targets) != 1:
        given = ", ".join(targets) or "none"
        raise RenderDirectiveError(f"render() needs exactly one render target, got: {given}")

    key = targets[0]
    if key == "nothing":
        target: RenderTarget = Nothing()
    elif key == "body":
        target = Body(options["body"], options.get("content_type"))
    else:
        target = _TARGET_BUILDERS[key](options[key])

    layout = options.get("layout", UNSET)
    if layout is False:
        layout = None
    return RenderDirective(
        target=target,
        layout=layout,
        status=options.get("status"),
        content_type=options.get("content_type"),
        progressive=options.get("progressive"),
    )


# ---------------------------------------------------------------------------
# Raw bodies
# ---------------------------------------------------------------------------

RAW_CONTENT_TYPES = {
    Text: "text/html; charset=utf-8",
    Json: "application/json; charset=utf-8",
    Xml: "application/xml; charset=utf-8",
    Script: "text/javascript; charset=utf-8",
    Nothing: "text/html; charset=utf-8",
    Body: "text/html; charset=utf-8",
}


def raw_body(target: RenderTarget) -> str | bytes:
    """Serialize a raw (non-templated) target into its complete body."""
    match target:
        case Text(body=body):
            return body
        case Json(data=data):
            if isinstance(data, str):
                return data
            return json.dumps(data, separators=(",", ":"))
        case Xml(data=data):
            if isinstance(data, str):
                return data
            return to_xml(data)
        case Script(source=source):
            return source
        case Nothing():
            # never an empty body
            return " "
        case Body(content=content):
            return content
        case _:
            raise TypeError(f"{type(target).__name__} is not a raw render target")


def to_xml(data: Any, root: str = "hash") -> str:
    """Serialize mappings and lists to XML under a ``<hash>`` root."""
    element = _to_element(root, data)
    body = ElementTree.tostring(element, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def _to_element(tag: str, value: Any) -> ElementTree.Element:
    element = ElementTree.Element(tag.replace("_", "-"))
    if isinstance(value, Mapping):
        for key, item in value.items():
            element.append(_to_element(str(key), item))
    elif isinstance(value, (list, tuple)):
        element.set("type", "array")
        for item in value:
            element.append(_to_element(tag.rstrip("s") or "item", item))
    elif value is None:
        element.set("nil", "true")
    else:
        element.text = str(value)
    return element
