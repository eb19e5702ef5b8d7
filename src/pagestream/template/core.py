"""Template objects ready for rendering.

A template never writes to a buffer or socket directly. It receives an
``Output`` capability for the frame it renders into and calls
``write``/``flush``/``push``/``yield_content``/``render`` on it:

    ```python
    def sidebar(out, scope):
        out.write("<aside>")
        out.flush()
        out.render(partial="recent_posts")
        out.write("</aside>")
    ```

``Template`` interprets parsed template source; ``FunctionTemplate`` wraps a
Python callable with the signature above. Both are immutable and can be
shared across concurrent requests.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pagestream.environment.exceptions import UndefinedError
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
from pagestream.utils.html import html_escape

if TYPE_CHECKING:
    from pagestream.environment.core import Environment
    from pagestream.render_context import Output as OutputHandle


class _BoundTemplate:
    """Shared plumbing: a name and a weak reference back to the Environment."""

    __slots__ = ("_env_ref", "_name")

    def __init__(self, env: Environment, name: str | None):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._name = name

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def env(self) -> Environment:
        env = self._env_ref()
        if env is None:
            raise RuntimeError("Environment has been garbage collected")
        return env

    def render(self, out: OutputHandle, scope: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def render_string(self, **scope: Any) -> str:
        """Render in isolation and return the complete output."""
        from pagestream.render_context import RenderContext

        return RenderContext(self.env, assigns=scope).render_document(self)


class Template(_BoundTemplate):
    """Parsed template ready for rendering.

    Uses ``weakref.ref(env)`` to break the
    ``Template -> Environment -> cache -> Template`` cycle.

    Example:
            >>> env = Environment()
            >>> env.from_string("Hello, {{ name }}!").render_string(name="World")
            'Hello, World!'
    """

    __slots__ = ("_ast", "_source")

    def __init__(self, env: Environment, ast: TemplateNode, name: str | None, source: str | None = None):
        super().__init__(env, name)
        self._ast = ast
        self._source = source

    def render(self, out: OutputHandle, scope: Mapping[str, Any]) -> None:
        """Render into the frame behind ``out``."""
        self._execute(self._ast.body, out, dict(scope))

    def _execute(self, body: Sequence[Node], out: OutputHandle, scope: dict[str, Any]) -> None:
        autoescape = self.env.autoescape
        for node in body:
            match node:
                case Data(value=value):
                    out.write(value)
                case Output(expr=expr, escape=escape):
                    value = self._eval(expr, scope)
                    out.write(html_escape(value) if escape and autoescape else str(value))
                case Flush():
                    out.flush()
                case Push(expr=expr):
                    out.push(str(self._eval(expr, scope)))
                case Yield():
                    out.yield_content()
                case Render(partial=partial, layout=layout, body=None):
                    out.render(
                        partial=self._eval(partial, scope),
                        layout=self._eval(layout, scope) if layout is not None else None,
                        locals=scope,
                    )
                case Render(layout=layout, body=block):
                    out.render(
                        layout=self._eval(layout, scope),
                        block=lambda block=block: self._execute(block, out, scope),
                        locals=scope,
                    )
                case RenderToString(target=target, name=name, layout=layout, var=var):
                    options = {target: self._eval(name, scope)}
                    if layout is not None:
                        options["layout"] = self._eval(layout, scope)
                    scope[var] = out.render_to_string(locals=scope, **options)
                case _:
                    raise TypeError(f"Unknown node {type(node).__name__}")

    def _eval(self, expr: Expr, scope: Mapping[str, Any]) -> Any:
        if isinstance(expr, Const):
            return expr.value
        if not isinstance(expr, Name):
            raise TypeError(f"Unknown expression {type(expr).__name__}")
        head, *rest = expr.path
        if head not in scope:
            raise UndefinedError(head, self._name, expr.lineno)
        value = scope[head]
        for attr in rest:
            try:
                value = getattr(value, attr)
            except AttributeError:
                try:
                    value = value[attr]
                except (KeyError, TypeError):
                    raise UndefinedError(".".join(expr.path), self._name, expr.lineno) from None
        return value

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"


class FunctionTemplate(_BoundTemplate):
    """A Python callable used as a template.

    The callable receives the frame's ``Output`` handle and the render scope.

    Example:
            >>> def banner(out, scope):
            ...     out.write(f"<h1>{scope['title']}</h1>")
            ...     out.flush()
            >>> env = Environment()
            >>> env.add_template("banner", banner)
    """

    __slots__ = ("_func",)

    def __init__(
        self,
        env: Environment,
        func: Callable[[OutputHandle, Mapping[str, Any]], None],
        name: str | None = None,
    ):
        super().__init__(env, name or getattr(func, "__name__", None))
        self._func = func

    def render(self, out: OutputHandle, scope: Mapping[str, Any]) -> None:
        self._func(out, scope)

    def __repr__(self) -> str:
        return f"<FunctionTemplate {self._name}>"
