"""Controller layer: render directives, mode selection and dispatch."""

from pagestream.controller.base import Controller
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
    directive_from_options,
    raw_body,
    to_xml,
)
from pagestream.controller.mode import LayoutConfig, select_mode

__all__ = [
    "ActionTemplate",
    "Body",
    "Controller",
    "Inline",
    "Json",
    "LayoutConfig",
    "NamedTemplate",
    "Nothing",
    "Partial",
    "RenderDirective",
    "Script",
    "Text",
    "Xml",
    "directive_from_options",
    "raw_body",
    "to_xml",
]
