"""Environment, loaders, padding table and exceptions."""

from pagestream.environment.core import Environment
from pagestream.environment.exceptions import (
    DoubleRenderError,
    ErrorCode,
    PageStreamError,
    RenderDirectiveError,
    RenderError,
    ResponseCommittedError,
    ResponseError,
    TemplateError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    TransportError,
    UndefinedError,
)
from pagestream.environment.loaders import ChoiceLoader, DictLoader, FileSystemLoader
from pagestream.environment.padding import DEFAULT_PADDING_RULES, PaddingRule, pad_chunk, padding_target

__all__ = [
    "DEFAULT_PADDING_RULES",
    "ChoiceLoader",
    "DictLoader",
    "DoubleRenderError",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "PageStreamError",
    "PaddingRule",
    "RenderDirectiveError",
    "RenderError",
    "ResponseCommittedError",
    "ResponseError",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplateSyntaxError",
    "TransportError",
    "UndefinedError",
    "pad_chunk",
    "padding_target",
]
