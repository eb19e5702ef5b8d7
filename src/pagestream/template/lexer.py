"""Tokenizer for pagestream templates.

Splits template source into a flat token stream:

- ``DATA``: literal text
- ``VARIABLE``: the inside of ``{{ ... }}``
- ``BLOCK``: the inside of ``{% ... %}``

Comments (``{# ... #}``) are dropped. A tag written as ``-%}`` swallows one
newline directly after it, so control tags can sit on their own line.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from pagestream.environment.exceptions import TemplateSyntaxError

_TAG_RE = re.compile(
    r"\{\{(?P<var>.*?)\}\}"
    r"|\{%(?P<block>.*?)(?P<trim>-?)%\}"
    r"|\{#(?P<comment>.*?)#\}",
    re.DOTALL,
)


class TokenType(Enum):
    DATA = "data"
    VARIABLE = "variable"
    BLOCK = "block"


@dataclass(frozen=True, slots=True)
class Token:
    type: TokenType
    value: str
    lineno: int


def tokenize(source: str, name: str | None = None) -> Iterator[Token]:
    """Yield tokens for ``source``.

    Raises:
        TemplateSyntaxError: If a ``{{``, ``{%`` or ``{#`` is never closed.
    """
    pos = 0
    lineno = 1
    trim_next = False
    for match in _TAG_RE.finditer(source):
        text = source[pos : match.start()]
        if trim_next and text.startswith("\n"):
            text = text[1:]
            lineno += 1
        if text:
            _check_unclosed(text, lineno, name, source)
            yield Token(TokenType.DATA, text, lineno)
            lineno += text.count("\n")

        if match.group("var") is not None:
            yield Token(TokenType.VARIABLE, match.group("var").strip(), lineno)
        elif match.group("block") is not None:
            yield Token(TokenType.BLOCK, match.group("block").strip(), lineno)

        lineno += match.group(0).count("\n")
        trim_next = bool(match.group("trim"))
        pos = match.end()

    text = source[pos:]
    if trim_next and text.startswith("\n"):
        text = text[1:]
        lineno += 1
    if text:
        _check_unclosed(text, lineno, name, source)
        yield Token(TokenType.DATA, text, lineno)


def _check_unclosed(text: str, lineno: int, name: str | None, source: str) -> None:
    for opener in ("{{", "{%", "{#"):
        index = text.find(opener)
        if index != -1:
            raise TemplateSyntaxError(
                f"Unclosed '{opener}'",
                lineno=lineno + text.count("\n", 0, index),
                name=name,
                source=source,
            )
