"""RenderContext: per-request rendering state and the flush/push primitives.

One RenderContext exists per HTTP request. It owns the frame stack, knows
whether the response is progressive, and holds the response emitter that
flushes reach. It is passed explicitly to every nested render through the
``Output`` handle given to templates; there is no global "current response".

Flush semantics (progressive, live context):
    ``flush()`` drains every frame from the outermost down to the active one,
    concatenates the text outer -> inner into one pending chunk and hands it
    to the emitter. An outer layout's unsent ``<head>`` therefore always
    precedes the inner view's text in the chunk stream.

Isolation:
    ``render_to_string`` renders into a fresh context with its own stack and
    no emitter. Flushes there are counted but never transmitted, and pushes
    are dropped, so the caller always receives the complete string.

Rendering order:
    Streaming contexts render a layout first and the wrapped content lazily
    at ``yield``. Every other context renders the wrapped content first into a
    captured frame, then the layout. Both produce the same bytes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pagestream._types import RenderMode
from pagestream.environment.padding import pad_chunk, padding_target
from pagestream.frames import FrameStack
from pagestream.utils.html import Markup

if TYPE_CHECKING:
    from pagestream.environment.core import AnyTemplate, Environment
    from pagestream.http.response import ResponseEmitter

    TemplateRef = str | AnyTemplate

logger = logging.getLogger(__name__)


class RenderContext:
    """Per-request render state.

    Attributes:
        env: Shared Environment.
        mode: BUFFERED or PROGRESSIVE.
        emitter: Response emitter, or None for an isolated (string) render.
        frames: The request's frame stack.
        assigns: Variables visible to every template of the request.
        chunks_sent: Chunks handed to the emitter by flush/push.
        captured_flushes: Flushes absorbed because the context is not live.
    """

    __slots__ = (
        "_body",
        "_padding_pending",
        "_padding_target",
        "assigns",
        "captured_flushes",
        "chunks_sent",
        "emitter",
        "env",
        "frames",
        "mode",
    )

    def __init__(
        self,
        env: Environment,
        *,
        mode: RenderMode = RenderMode.BUFFERED,
        emitter: ResponseEmitter | None = None,
        user_agent: str | None = None,
        assigns: Mapping[str, Any] | None = None,
    ):
        self.env = env
        self.mode = mode
        self.emitter = emitter
        self.frames = FrameStack()
        self.assigns: dict[str, Any] = dict(assigns) if assigns else {}
        self.chunks_sent = 0
        self.captured_flushes = 0
        self._body: list[str] = []
        self._padding_target = padding_target(user_agent, env.padding_rules) if self.streaming else 0
        self._padding_pending = self._padding_target > 0

    @property
    def streaming(self) -> bool:
        """True when flushes reach the network."""
        return self.mode is RenderMode.PROGRESSIVE and self.emitter is not None

    # ------------------------------------------------------------------
    # Flush / push
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Send everything rendered so far, in document order, as one chunk."""
        if not self.streaming:
            if self.emitter is None:
                self.captured_flushes += 1
            return
        pending = self.frames.drain()
        if pending:
            self._transmit(pending.encode("utf-8"))

    def push(self, data: str | bytes) -> None:
        """Send ``data`` as its own chunk, bypassing every frame buffer.

        Dropped (not deferred) unless the context is streaming.
        """
        if not self.streaming:
            logger.debug("push of %d bytes dropped (not streaming)", len(data))
            return
        payload = data.encode("utf-8") if isinstance(data, str) else data
        if payload:
            self._transmit(payload)

    def _transmit(self, chunk: bytes) -> None:
        if self.emitter is None:
            raise RuntimeError("Cannot send a chunk without a response emitter")
        if self._padding_pending:
            self._padding_pending = False
            chunk = pad_chunk(chunk, self._padding_target, self.env.padding_fill)
        logger.debug("chunk %d: %d bytes", self.chunks_sent + 1, len(chunk))
        self.emitter.write_chunk(chunk)
        self.chunks_sent += 1

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def resolve(self, ref: TemplateRef) -> AnyTemplate:
        return self.env.get_template(ref) if isinstance(ref, str) else ref

    def render_document(
        self,
        template: TemplateRef | Callable[[], None],
        *,
        layout: TemplateRef | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> str:
        """Render a whole document inside a fresh root frame.

        The root frame's leftover text is the final flush. In a streaming
        context it is transmitted and ``""`` is returned; otherwise the full
        document text is returned.
        """
        self._body = []
        self._run_in_frame("(document)", lambda: self.render(template, layout=layout, locals=locals))
        return "".join(self._body)

    def render(
        self,
        template: TemplateRef | Callable[[], None],
        *,
        layout: TemplateRef | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> None:
        """Render ``template`` at the current position, optionally inside ``layout``.

        ``template`` may be a zero-argument callable (a block body) that
        writes into whatever frame is active when it runs.
        """
        scope = {**self.assigns, **locals} if locals else self.assigns

        if callable(template) and not hasattr(template, "render"):
            name = getattr(template, "__name__", "(block)")
            inner = lambda: self._run_in_frame(name, template)  # noqa: E731
        else:
            resolved = self.resolve(template)
            inner = lambda: self._render_template(resolved, scope)  # noqa: E731

        if layout is None:
            inner()
            return

        layout_template = self.resolve(layout)
        if self.streaming:
            self._render_template(layout_template, scope, content=inner)
        else:
            captured = self._capture(inner)
            self._render_template(
                layout_template,
                scope,
                content=lambda: self.frames.write(captured),
            )

    def render_to_string(
        self,
        template: TemplateRef | Callable[[], None],
        *,
        layout: TemplateRef | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> Markup:
        """Render in an isolated context and return the complete output.

        Never touches this context's frames or emitter.
        """
        isolated = RenderContext(self.env, assigns=self.assigns)
        text = isolated.render_document(template, layout=layout, locals=locals)
        if isolated.captured_flushes:
            logger.debug("render_to_string absorbed %d flushes", isolated.captured_flushes)
        return Markup(text)

    def _render_template(
        self,
        template: AnyTemplate,
        scope: Mapping[str, Any],
        content: Callable[[], None] | None = None,
    ) -> None:
        name = template.name or "(inline)"
        self._run_in_frame(name, lambda: template.render(Output(self, content), scope))

    def _run_in_frame(self, name: str, body: Callable[[], None]) -> None:
        frame = self.frames.push(name)
        try:
            body()
        except BaseException:
            self.frames.discard(frame)
            raise
        leftover = self.frames.pop()
        if leftover is not None:
            self._final_flush(leftover)

    def _capture(self, body: Callable[[], None]) -> str:
        frame = self.frames.push("(capture)")
        try:
            body()
        except BaseException:
            self.frames.discard(frame)
            raise
        return self.frames.pop_captured()

    def _final_flush(self, text: str) -> None:
        if self.streaming:
            if text:
                self._transmit(text.encode("utf-8"))
        else:
            self._body.append(text)


class Output:
    """Capability handed to a template for one frame.

    Text goes to the active (innermost) frame; ``flush``/``push`` go through
    the owning RenderContext; ``yield_content`` renders whatever this
    template wraps.

    Example:
        ```python
        def layout(out, scope):
            out.write("<html><head>...</head>")
            out.flush()
            out.yield_content()
            out.write("</html>")
        ```
    """

    __slots__ = ("_content", "context")

    def __init__(self, context: RenderContext, content: Callable[[], None] | None = None):
        self.context = context
        self._content = content

    def write(self, text: str) -> None:
        self.context.frames.write(text)

    def flush(self) -> None:
        self.context.flush()

    def push(self, data: str | bytes) -> None:
        self.context.push(data)

    def yield_content(self) -> None:
        """Render the wrapped content here; no-op when nothing is wrapped."""
        if self._content is not None:
            self._content()

    def render(
        self,
        partial: TemplateRef | None = None,
        *,
        template: TemplateRef | None = None,
        inline: str | None = None,
        layout: TemplateRef | None = None,
        block: Callable[[], None] | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> None:
        """Render a nested partial, template, inline source or block here."""
        target = _pick_target(self.context, partial, template, inline, block)
        self.context.render(target, layout=layout, locals=locals)

    def render_to_string(
        self,
        partial: TemplateRef | None = None,
        *,
        template: TemplateRef | None = None,
        inline: str | None = None,
        layout: TemplateRef | None = None,
        block: Callable[[], None] | None = None,
        locals: Mapping[str, Any] | None = None,
    ) -> Markup:
        target = _pick_target(self.context, partial, template, inline, block)
        return self.context.render_to_string(target, layout=layout, locals=locals)


def _pick_target(
    context: RenderContext,
    partial: TemplateRef | None,
    template: TemplateRef | None,
    inline: str | None,
    block: Callable[[], None] | None,
) -> TemplateRef | Callable[[], None]:
    given = [value for value in (partial, template, inline, block) if value is not None]
    if len(given) != 1:
        raise TypeError("render() takes exactly one of partial, template, inline or block")
    if inline is not None:
        return context.env.from_string(inline)
    return given[0]
