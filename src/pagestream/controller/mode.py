"""Mode selection: is this response progressive?

Progressive rendering is opt-in per layout configuration and can be switched
off for a single action with ``render(progressive=False)``. Raw bodies (text,
JSON, XML, script, nothing, custom content) are never progressive.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pagestream._types import RenderMode
from pagestream.controller.directives import (
    ActionTemplate,
    Body,
    Inline,
    Json,
    NamedTemplate,
    Nothing,
    Partial,
    RenderDirective,
    Script,
    Text,
    Xml,
)


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Controller-level layout configuration.

    Attributes:
        name: Layout template name, or None for no layout.
        progressive: Render progressively where this configuration applies.
        only: If set, the configuration applies only to these actions.
        except_: Actions the configuration does not apply to.
    """

    name: str | None = None
    progressive: bool = False
    only: frozenset[str] | None = None
    except_: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        name: str | None,
        *,
        progressive: bool = False,
        only: Iterable[str] | None = None,
        except_: Iterable[str] = (),
    ) -> LayoutConfig:
        return cls(
            name=name,
            progressive=progressive,
            only=frozenset(only) if only is not None else None,
            except_=frozenset(except_),
        )

    def applies_to(self, action: str | None) -> bool:
        if action is None:
            return True
        if self.only is not None and action not in self.only:
            return False
        return action not in self.except_

    def layout_for(self, action: str | None) -> str | None:
        return self.name if self.applies_to(action) else None


def select_mode(directive: RenderDirective, config: LayoutConfig, action: str | None) -> RenderMode:
    """Decide BUFFERED or PROGRESSIVE once the action has picked its target."""
    match directive.target:
        case Text() | Json() | Xml() | Script() | Nothing() | Body():
            return RenderMode.BUFFERED
        case ActionTemplate() | NamedTemplate() | Partial() | Inline():
            if directive.progressive is not None:
                progressive = directive.progressive
            else:
                progressive = config.progressive and config.applies_to(action)
            return RenderMode.PROGRESSIVE if progressive else RenderMode.BUFFERED
        case _:
            raise TypeError(f"Unknown render target {directive.target!r}")
