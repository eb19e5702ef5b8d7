"""Tests for the RenderFrame stack."""

from __future__ import annotations

import pytest

from pagestream import FrameStack


class TestFrameStack:
    def test_write_goes_to_innermost_frame(self) -> None:
        stack = FrameStack()
        outer = stack.push("layout")
        stack.write("<html>")
        inner = stack.push("view")
        stack.write("<p>")
        assert outer.parts == ["<html>"]
        assert inner.parts == ["<p>"]

    def test_pop_merges_into_parent_at_write_position(self) -> None:
        stack = FrameStack()
        stack.push("layout")
        stack.write("[")
        stack.push("view")
        stack.write("x")
        assert stack.pop() is None
        stack.write("]")
        assert stack.pop() == "[x]"
        assert len(stack) == 0

    def test_pop_captured_does_not_merge(self) -> None:
        stack = FrameStack()
        stack.push("layout")
        stack.write("a")
        stack.push("capture")
        stack.write("b")
        assert stack.pop_captured() == "b"
        assert stack.pop() == "a"

    def test_drain_is_outer_to_inner_and_clears(self) -> None:
        stack = FrameStack()
        stack.push("layout")
        stack.write("1")
        stack.push("view")
        stack.write("2")
        stack.push("partial")
        stack.write("3")
        assert stack.drain() == "123"
        assert stack.drain() == ""
        assert stack.depth == 3
        assert not any(frame.pending for frame in stack)

    def test_discard_drops_frame_and_children(self) -> None:
        stack = FrameStack()
        stack.push("layout")
        view = stack.push("view")
        stack.push("partial")
        stack.discard(view)
        assert [frame.name for frame in stack] == ["layout"]

    def test_write_without_frame_fails(self) -> None:
        with pytest.raises(RuntimeError):
            FrameStack().write("x")

    def test_frame_ids_are_unique(self) -> None:
        stack = FrameStack()
        ids = {stack.push(str(n)).id for n in range(5)}
        assert len(ids) == 5
