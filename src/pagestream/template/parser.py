"""Parser for pagestream templates.

Builds an immutable node tree from the lexer's token stream. Only the
``{% render layout=... %}`` form opens a block; it is closed by ``{% end %}``.
"""

from __future__ import annotations

import re

from pagestream.environment.exceptions import TemplateSyntaxError
from pagestream.template.lexer import Token, TokenType, tokenize
from pagestream.template.nodes import (
    Const,
    Data,
    Expr,
    Flush,
    Name,
    Node,
    Output,
    Push,
    Render,
    RenderToString,
    TemplateNode,
    Yield,
)

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*")
_STRING_RE = re.compile(r"""(?:"([^"]*)"|'([^']*)')""")
_KWARG_RE = re.compile(
    r"""\s*(?P<key>[A-Za-z_]+)\s*=\s*(?P<value>"[^"]*"|'[^']*'|[A-Za-z_][\w.]*)"""
)
_AS_RE = re.compile(r"\s+as\s+(?=\S+\s*\Z)")
_RENDER_TARGETS = ("partial", "template", "inline")


class Parser:
    """Parse one template source into a TemplateNode."""

    __slots__ = ("_name", "_source", "_tokens", "_pos")

    def __init__(self, source: str, name: str | None = None):
        self._name = name
        self._source = source
        self._tokens: list[Token] = list(tokenize(source, name))
        self._pos = 0

    def parse(self) -> TemplateNode:
        body = self._parse_body(closing=False)
        return TemplateNode(lineno=1, name=self._name, body=tuple(body))

    def _error(self, message: str, lineno: int) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, lineno=lineno, name=self._name, source=self._source)

    def _parse_body(self, *, closing: bool, opened_at: int = 0) -> list[Node]:
        nodes: list[Node] = []
        while self._pos < len(self._tokens):
            token = self._tokens[self._pos]
            self._pos += 1
            if token.type is TokenType.DATA:
                nodes.append(Data(token.lineno, token.value))
            elif token.type is TokenType.VARIABLE:
                nodes.append(self._parse_output(token))
            else:
                if not token.value:
                    raise self._error("Empty tag", token.lineno)
                keyword, *args = token.value.split(None, 1)
                rest = args[0] if args else ""
                if keyword == "end":
                    if not closing:
                        raise self._error("Unexpected '{% end %}'", token.lineno)
                    return nodes
                nodes.append(self._parse_tag(keyword, rest.strip(), token.lineno))
        if closing:
            raise self._error("Unclosed '{% render %}' block, expected '{% end %}'", opened_at)
        return nodes

    def _parse_output(self, token: Token) -> Output:
        expr_source, pipe, filter_name = token.value.partition("|")
        escape = True
        if pipe:
            if filter_name.strip() != "safe":
                raise self._error(f"Unknown filter '{filter_name.strip()}'", token.lineno)
            escape = False
        return Output(token.lineno, self._parse_expr(expr_source.strip(), token.lineno), escape)

    def _parse_expr(self, source: str, lineno: int) -> Expr:
        string = _STRING_RE.fullmatch(source)
        if string:
            value = string.group(1) if string.group(1) is not None else string.group(2)
            return Const(lineno, value)
        if _NAME_RE.fullmatch(source):
            return Name(lineno, tuple(source.split(".")))
        raise self._error(f"Invalid expression '{source}'", lineno)

    def _parse_kwargs(self, source: str, lineno: int) -> dict[str, Expr]:
        kwargs: dict[str, Expr] = {}
        pos = 0
        while source[pos:].strip():
            match = _KWARG_RE.match(source, pos)
            if not match:
                raise self._error(f"Invalid arguments '{source[pos:].strip()}'", lineno)
            key = match.group("key")
            if key in kwargs:
                raise self._error(f"Duplicate argument '{key}'", lineno)
            kwargs[key] = self._parse_expr(match.group("value"), lineno)
            pos = match.end()
        return kwargs

    def _parse_tag(self, keyword: str, rest: str, lineno: int) -> Node:
        match keyword:
            case "flush":
                if rest:
                    raise self._error("'flush' takes no arguments", lineno)
                return Flush(lineno)
            case "yield":
                if rest:
                    raise self._error("'yield' takes no arguments", lineno)
                return Yield(lineno)
            case "push":
                if not rest:
                    raise self._error("'push' requires an expression", lineno)
                return Push(lineno, self._parse_expr(rest, lineno))
            case "render":
                return self._parse_render(rest, lineno)
            case "render_to_string":
                return self._parse_render_to_string(rest, lineno)
            case _:
                raise self._error(f"Unknown tag '{keyword}'", lineno)

    def _parse_render(self, rest: str, lineno: int) -> Render:
        kwargs = self._parse_kwargs(rest, lineno)
        unknown = set(kwargs) - {"partial", "layout"}
        if unknown:
            raise self._error(f"Unknown render option '{sorted(unknown)[0]}'", lineno)
        partial = kwargs.get("partial")
        layout = kwargs.get("layout")
        if partial is not None:
            return Render(lineno, partial, layout)
        if layout is None:
            raise self._error("'render' requires partial= or layout=", lineno)
        body = self._parse_body(closing=True, opened_at=lineno)
        return Render(lineno, None, layout, tuple(body))

    def _parse_render_to_string(self, rest: str, lineno: int) -> RenderToString:
        parts = _AS_RE.split(rest, maxsplit=1)
        args, var = (parts[0], parts[1].strip()) if len(parts) == 2 else ("", "")
        if not var or not _NAME_RE.fullmatch(var) or "." in var:
            raise self._error("'render_to_string' requires 'as <name>'", lineno)
        kwargs = self._parse_kwargs(args, lineno)
        targets = [key for key in _RENDER_TARGETS if key in kwargs]
        if len(targets) != 1:
            raise self._error(
                "'render_to_string' requires exactly one of partial=, template=, inline=",
                lineno,
            )
        unknown = set(kwargs) - {*_RENDER_TARGETS, "layout"}
        if unknown:
            raise self._error(f"Unknown render_to_string option '{sorted(unknown)[0]}'", lineno)
        target = targets[0]
        return RenderToString(lineno, target, kwargs[target], kwargs.get("layout"), var)


def parse(source: str, name: str | None = None) -> TemplateNode:
    return Parser(source, name).parse()
