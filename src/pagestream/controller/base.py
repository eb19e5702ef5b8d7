"""Controller base class and the per-request render lifecycle.

A controller action records what to render with ``render(...)``; the
template work happens afterwards in ``process()``:

1. run the action
2. select the render mode from the directive and layout configuration
3. fix the response's transfer mode (chunked when progressive)
4. fire ``when_streaming_template`` hooks (progressive only)
5. produce the body: stream it frame by frame, or render it whole
6. finish the response

Example:
    ```python
    class PostsController(Controller):
        env = Environment(loader=FileSystemLoader("views/"))
        view_prefix = "posts"

        def index(self):
            self.assigns["posts"] = Post.recent()

    PostsController.layout("layouts/application", progressive=True)

    PostsController.dispatch("index", request, wfile)
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, BinaryIO, ClassVar

from pagestream._types import RenderMode, TransferMode
from pagestream.controller.directives import (
    RAW_CONTENT_TYPES,
    UNSET,
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
)
from pagestream.controller.mode import LayoutConfig, select_mode
from pagestream.environment.core import Environment
from pagestream.environment.exceptions import DoubleRenderError
from pagestream.http.request import Request
from pagestream.http.response import DEFAULT_CONTENT_TYPE, ResponseEmitter
from pagestream.render_context import RenderContext
from pagestream.utils.html import Markup

logger = logging.getLogger(__name__)

StreamingHook = Callable[["Controller"], Any]


class Controller:
    """Base class for controllers whose actions render templates.

    Class attributes:
        env: Environment used to load templates. May be overridden per
            instance with the ``env`` constructor argument.
        view_prefix: Directory prepended to action template names.
        view_suffix: Extension appended to action template names.
    """

    env: ClassVar[Environment | None] = None
    view_prefix: ClassVar[str] = ""
    view_suffix: ClassVar[str] = ""
    _layout_config: ClassVar[LayoutConfig] = LayoutConfig()
    _streaming_hooks: ClassVar[tuple[StreamingHook, ...]] = ()

    def __init__(
        self,
        request: Request,
        writer: BinaryIO,
        *,
        env: Environment | None = None,
    ):
        environment = env or type(self).env
        if environment is None:
            raise TypeError(f"{type(self).__name__} has no Environment; set `env` on the class or pass one")
        self.env = environment
        self.request = request
        self.response = ResponseEmitter(writer)
        self.assigns: dict[str, Any] = {}
        self.context: RenderContext | None = None
        self.action_name: str | None = None
        self._directive: RenderDirective | None = None

    # ------------------------------------------------------------------
    # Class-level configuration
    # ------------------------------------------------------------------

    @classmethod
    def layout(
        cls,
        name: str | None,
        *,
        progressive: bool = False,
        only: Iterable[str] | None = None,
        except_: Iterable[str] = (),
    ) -> None:
        """Set the layout for this controller's actions.

        Args:
            name: Layout template name, or None for no layout.
            progressive: Stream responses rendered with this configuration.
            only: Restrict the layout (and progressive mode) to these actions.
            except_: Actions that do not use the layout (nor progressive mode).
        """
        cls._layout_config = LayoutConfig.build(name, progressive=progressive, only=only, except_=except_)

    @classmethod
    def when_streaming_template(cls, callback: StreamingHook) -> StreamingHook:
        """Register ``callback`` to run before a progressive response renders.

        The callback receives the controller after its action has run and
        before the first template frame is pushed. Usable as a decorator.
        """
        cls._streaming_hooks = (*cls._streaming_hooks, callback)
        return callback

    @classmethod
    def dispatch(
        cls,
        action: str,
        request: Request,
        writer: BinaryIO,
        *,
        env: Environment | None = None,
    ) -> Controller:
        controller = cls(request, writer, env=env)
        controller.process(action)
        return controller

    # ------------------------------------------------------------------
    # Action API
    # ------------------------------------------------------------------

    def render(self, **options: Any) -> None:
        """Choose what this action renders.

        Exactly one target: ``action``, ``template``, ``partial``, ``inline``,
        ``text``, ``json``, ``xml``, ``js``, ``nothing`` or ``body``. Options:
        ``layout``, ``status``, ``content_type``, ``progressive``.

        Raises:
            DoubleRenderError: If the action already called render().
            RenderDirectiveError: On a missing, repeated or unknown target.
        """
        if self._directive is not None:
            raise DoubleRenderError(
                f"render() was already called in action '{self.action_name or '?'}'"
            )
        self._directive = directive_from_options(options)

    def render_to_string(self, **options: Any) -> Markup:
        """Render like ``render()`` but return the complete output.

        Uses an isolated render context: flushes and pushes inside it never
        reach the client and the live response is untouched.
        """
        directive = directive_from_options(options)
        if not directive.templated:
            body = raw_body(directive.target)
            return Markup(body.decode("utf-8") if isinstance(body, bytes) else body)
        context = RenderContext(self.env, assigns=self.assigns)
        return Markup(self._render_templated(context, directive))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def process(self, action: str) -> None:
        """Run ``action`` and write its complete response."""
        self.action_name = action
        getattr(self, action)()

        directive = self._directive or RenderDirective(ActionTemplate(action))
        mode = select_mode(directive, self._layout_config, action)
        logger.debug("%s#%s renders %s", type(self).__name__, action, mode.value)

        if directive.status is not None:
            self.response.status = directive.status
        content_type = self._content_type_for(directive)
        if content_type is not None:
            self.response.content_type = content_type

        progressive = mode is RenderMode.PROGRESSIVE
        self.response.begin(TransferMode.CHUNKED if progressive else TransferMode.CONTENT_LENGTH)
        self.context = RenderContext(
            self.env,
            mode=mode,
            emitter=self.response,
            user_agent=self.request.user_agent,
            assigns=self.assigns,
        )

        if progressive:
            for hook in self._streaming_hooks:
                logger.debug("streaming hook %r", hook)
                hook(self)

        body = self._produce_body(self.context, directive)
        if body:
            self.response.write_chunk(body.encode("utf-8") if isinstance(body, str) else body)
        self.response.finish()

    def _content_type_for(self, directive: RenderDirective) -> str | None:
        if directive.content_type is not None:
            return directive.content_type
        target = directive.target
        if isinstance(target, Body) and target.content_type is not None:
            return target.content_type
        if self.response.content_type != DEFAULT_CONTENT_TYPE:
            return None
        return RAW_CONTENT_TYPES.get(type(target))

    def _produce_body(self, context: RenderContext, directive: RenderDirective) -> str | bytes:
        match directive.target:
            case ActionTemplate() | NamedTemplate() | Partial() | Inline():
                return self._render_templated(context, directive)
            case Text() | Json() | Xml() | Script() | Nothing() | Body():
                return raw_body(directive.target)
            case _:
                raise TypeError(f"Unknown render target {directive.target!r}")

    def _render_templated(self, context: RenderContext, directive: RenderDirective) -> str:
        target = directive.target
        layout = directive.layout
        match target:
            case ActionTemplate(name=name):
                template: Any = f"{self.view_prefix}/{name}" if self.view_prefix else name
                template += self.view_suffix
                if layout is UNSET:
                    layout = self._layout_config.layout_for(self.action_name)
            case NamedTemplate(name=name):
                template = name
                if layout is UNSET:
                    layout = self._layout_config.layout_for(self.action_name)
            case Partial(name=name):
                template = name
            case Inline(source=source):
                template = self.env.from_string(source)
            case _:
                raise TypeError(f"{type(target).__name__} is not a templated render target")
        if layout is UNSET:
            layout = None
        return context.render_document(template, layout=layout)
