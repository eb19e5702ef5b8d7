"""Template language and template objects."""

from pagestream.template.core import FunctionTemplate, Template
from pagestream.template.parser import parse

__all__ = ["FunctionTemplate", "Template", "parse"]
