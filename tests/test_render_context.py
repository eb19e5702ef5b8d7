"""Tests for RenderContext: flush ordering, push, isolation and padding."""

from __future__ import annotations

import pytest

from pagestream import (
    DictLoader,
    Environment,
    Markup,
    PaddingRule,
    RenderContext,
    RenderMode,
    ResponseEmitter,
    TransferMode,
    UndefinedError,
)

from .support import RecordingWriter, decode_chunks, parse_response


def _streaming_context(env: Environment, writer: RecordingWriter, user_agent: str | None = None) -> RenderContext:
    emitter = ResponseEmitter(writer)
    emitter.begin(TransferMode.CHUNKED)
    return RenderContext(env, mode=RenderMode.PROGRESSIVE, emitter=emitter, user_agent=user_agent)


def _chunks_of(writer: RecordingWriter) -> list[bytes]:
    return decode_chunks(parse_response(writer.getvalue()).body)


class TestFlushOrdering:
    def test_layout_view_flush_sequence(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        layout = env.from_string("1{% flush %}{% yield %}2")
        view = env.from_string("a{% flush %}b{% flush %}c")
        assert ctx.render_document(view, layout=layout) == ""
        ctx.emitter.finish()
        assert _chunks_of(writer) == [b"1", b"a", b"b", b"c2"]
        assert ctx.chunks_sent == 4

    def test_outer_unflushed_content_precedes_inner_flush(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        layout = env.from_string("<head></head>{% yield %}</html>")
        view = env.from_string("<body>{% flush %}</body>")
        ctx.render_document(view, layout=layout)
        assert _chunks_of(writer) == [b"<head></head><body>", b"</body></html>"]

    def test_flush_with_nothing_new_sends_no_chunk(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        ctx.render_document(env.from_string("{% flush %}a{% flush %}{% flush %}{% flush %}"))
        assert _chunks_of(writer) == [b"a"]

    def test_deep_nesting(self, writer: RecordingWriter) -> None:
        env = Environment(
            loader=DictLoader(
                {
                    "outer": "A{% yield %}B",
                    "middle": 'C{% render partial="leaf" %}D',
                    "leaf": "E{% flush %}F",
                }
            )
        )
        ctx = _streaming_context(env, writer)
        ctx.render_document("middle", layout="outer")
        assert _chunks_of(writer) == [b"ACE", b"FDB"]

    def test_buffered_context_returns_document(self, env: Environment) -> None:
        ctx = RenderContext(env)
        layout = env.from_string("1{% flush %}{% yield %}2")
        view = env.from_string("a{% flush %}b{% push 'p' %}c")
        assert ctx.render_document(view, layout=layout) == "1abc2"
        assert ctx.chunks_sent == 0


class TestPush:
    def test_push_is_its_own_chunk(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        ctx.render_document(env.from_string("x{% push 'p' %}y"))
        assert _chunks_of(writer) == [b"p", b"xy"]

    def test_empty_push_is_ignored(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        ctx.push(b"")
        assert writer.getvalue() == b""


class TestRenderToStringIsolation:
    def test_flushes_are_captured_not_sent(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        fragment = env.from_string("a{% flush %}b{% push 'zzz' %}{% flush %}c")
        result = ctx.render_to_string(fragment)
        assert result == "abc"
        assert isinstance(result, Markup)
        assert writer.getvalue() == b""
        assert ctx.frames.depth == 0

    def test_uses_a_separate_frame_stack(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer)
        seen: list[str] = []

        def view(out, scope):
            out.write("before")
            seen.append(out.render_to_string(inline="inner{% flush %}"))
            out.flush()

        env.add_template("view", view)
        ctx.render_document("view")
        assert seen == ["inner"]
        assert _chunks_of(writer) == [b"before"]

    def test_sees_request_assigns(self, env: Environment) -> None:
        ctx = RenderContext(env, assigns={"name": "Ada"})
        assert ctx.render_to_string(env.from_string("hi {{ name }}")) == "hi Ada"

    def test_template_render_string(self, env: Environment) -> None:
        template = env.from_string("{{ a }}{% flush %}{{ b }}")
        assert template.render_string(a="1", b="2") == "12"


class TestFirstChunkPadding:
    def test_pads_first_chunk_only(self, writer: RecordingWriter) -> None:
        env = Environment(padding_rules=[PaddingRule("TestBrowser", 20)])
        ctx = _streaming_context(env, writer, user_agent="TestBrowser/1.0")
        ctx.render_document(env.from_string("ab{% flush %}cd{% flush %}"))
        assert _chunks_of(writer) == [b"ab<!--" + b"+" * 11 + b"-->", b"cd"]

    def test_pads_first_push(self, writer: RecordingWriter) -> None:
        env = Environment(padding_rules=[PaddingRule("TestBrowser", 12)])
        ctx = _streaming_context(env, writer, user_agent="TestBrowser/1.0")
        ctx.push("p")
        ctx.push("q")
        assert _chunks_of(writer) == [b"p<!--++++-->", b"q"]

    def test_custom_padding_character(self, writer: RecordingWriter) -> None:
        env = Environment(padding_rules=[PaddingRule("X", 10)], padding_char=" ")
        ctx = _streaming_context(env, writer, user_agent="X")
        ctx.push("a")
        assert _chunks_of(writer) == [b"a<!--  -->"]

    def test_no_padding_without_user_agent(self, env: Environment, writer: RecordingWriter) -> None:
        ctx = _streaming_context(env, writer, user_agent=None)
        ctx.push("a")
        assert _chunks_of(writer) == [b"a"]


class TestRenderErrors:
    def test_failed_render_leaves_no_frames(self, env: Environment) -> None:
        ctx = RenderContext(env)
        layout = env.from_string("[{% yield %}]")
        with pytest.raises(UndefinedError):
            ctx.render_document(env.from_string("{{ missing }}"), layout=layout)
        assert ctx.frames.depth == 0

    def test_progressive_without_emitter_renders_buffered(self, env: Environment) -> None:
        ctx = RenderContext(env, mode=RenderMode.PROGRESSIVE)
        assert not ctx.streaming
        assert ctx.render_document(env.from_string("a{% flush %}b{% push 'p' %}c")) == "abc"
        assert ctx.chunks_sent == 0

    def test_sending_without_emitter_is_an_error(self, env: Environment) -> None:
        ctx = RenderContext(env, mode=RenderMode.PROGRESSIVE)
        with pytest.raises(RuntimeError, match="without a response emitter"):
            ctx._transmit(b"x")

    def test_unknown_expression_is_a_type_error(self, env: Environment) -> None:
        with pytest.raises(TypeError, match="Unknown expression object"):
            env.from_string("")._eval(object(), {})
