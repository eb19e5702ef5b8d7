"""RenderFrame stack.

Every nested render (layout, view, partial, block passed to a layout) gets a
frame on the stack. Template output is always appended to the top frame, so
the stack mirrors the document's nesting: everything buffered in an outer
frame precedes everything buffered in the frames above it.

    ```
    stack (outer -> inner)       document
    ┌────────────┐
    │ layout     │ "<html><head>…"   ─┐
    ├────────────┤                    │ draining outer -> inner
    │ view       │ "<h1>Posts</h1>"   │ yields them in document order
    ├────────────┤                    │
    │ partial    │ "<li>first"       ─┘
    └────────────┘
    ```

When a frame is popped its unsent text is appended to its parent, which is
exactly where the nested render was invoked because the parent cannot write
while the child is active.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(slots=True, eq=False)
class RenderFrame:
    """Output buffer for one nested rendering unit.

    Attributes:
        name: Template name, for debugging.
        id: Sequence number unique within the stack.
        parts: Text written since this frame last contributed to a chunk.
    """

    name: str
    id: int
    parts: list[str] = field(default_factory=list)

    def write(self, text: str) -> None:
        if text:
            self.parts.append(text)

    def take(self) -> str:
        """Remove and return the unsent text."""
        text = "".join(self.parts)
        self.parts.clear()
        return text

    @property
    def pending(self) -> bool:
        return bool(self.parts)

    def __repr__(self) -> str:
        return f"<RenderFrame #{self.id} {self.name} pending={sum(map(len, self.parts))}>"


class FrameStack:
    """Explicit stack of RenderFrames, addressed by position."""

    __slots__ = ("_frames", "_ids")

    def __init__(self) -> None:
        self._frames: list[RenderFrame] = []
        self._ids = itertools.count(1)

    def push(self, name: str) -> RenderFrame:
        frame = RenderFrame(name=name, id=next(self._ids))
        self._frames.append(frame)
        return frame

    def pop(self) -> str | None:
        """Pop the top frame, merging its unsent text into the parent.

        Returns:
            The unsent text when the popped frame was the last one, else None.
        """
        frame = self._frames.pop()
        text = frame.take()
        if self._frames:
            self._frames[-1].write(text)
            return None
        return text

    def pop_captured(self) -> str:
        """Pop the top frame and return its text without merging it."""
        return self._frames.pop().take()

    def discard(self, frame: RenderFrame) -> None:
        """Drop ``frame`` and everything above it (used when a render fails)."""
        index = self._frames.index(frame)
        del self._frames[index:]

    def write(self, text: str) -> None:
        if not self._frames:
            raise RuntimeError("write() outside of any render frame")
        self._frames[-1].write(text)

    def drain(self) -> str:
        """Collect unsent text from every frame, outermost first.

        Contributions are concatenated outer -> inner, which is document
        order. Each contributing frame's buffer is cleared; frames stay on
        the stack.
        """
        return "".join(frame.take() for frame in self._frames)

    @property
    def top(self) -> RenderFrame:
        return self._frames[-1]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[RenderFrame]:
        return iter(self._frames)

    def __repr__(self) -> str:
        return f"<FrameStack {' > '.join(f.name for f in self._frames) or '(empty)'}>"
