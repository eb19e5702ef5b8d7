"""Property-based tests: progressive chunks always add up to the buffered page.

For any nesting of layouts, blocks and flushes, the chunks sent by a
progressive render must concatenate to exactly the document a buffered
render returns. Nothing may be lost, duplicated or reordered.
"""

from __future__ import annotations

from hypothesis import given, settings

from pagestream import DictLoader, Environment, RenderContext, RenderMode, ResponseEmitter, TransferMode

from .strategies import LAYOUTS, document, push_payload
from .support import CHROME_UA, RecordingWriter, decode_chunks, parse_response


def _environment(view: str) -> Environment:
    return Environment(loader=DictLoader({**LAYOUTS, "page": "<page>{% flush %}{% yield %}</page>", "view": view}))


def _buffered(env: Environment) -> str:
    return RenderContext(env).render_document("view", layout="page")


def _streamed(env: Environment, user_agent: str | None = None) -> list[bytes]:
    writer = RecordingWriter()
    emitter = ResponseEmitter(writer)
    emitter.begin(TransferMode.CHUNKED)
    ctx = RenderContext(env, mode=RenderMode.PROGRESSIVE, emitter=emitter, user_agent=user_agent)
    assert ctx.render_document("view", layout="page") == ""
    emitter.finish()
    chunks = decode_chunks(parse_response(writer.getvalue()).body)
    assert len(chunks) == ctx.chunks_sent
    return chunks


class TestDocumentOrder:
    @given(view=document)
    @settings(max_examples=200)
    def test_chunks_concatenate_to_buffered_output(self, view: str) -> None:
        env = _environment(view)
        chunks = _streamed(env)
        assert b"".join(chunks).decode("utf-8") == _buffered(env)

    @given(view=document)
    @settings(max_examples=100)
    def test_no_empty_chunks(self, view: str) -> None:
        assert all(_streamed(_environment(view)))

    @given(view=document)
    @settings(max_examples=100)
    def test_at_most_one_chunk_per_flush(self, view: str) -> None:
        env = _environment(view)
        flushes = view.count("{% flush %}") + 1
        layouts = view.count('{% render layout="wrap"') + view.count('{% render layout="late"')
        assert len(_streamed(env)) <= flushes + layouts + 1

    @given(view=document)
    @settings(max_examples=100)
    def test_padding_only_extends_first_chunk(self, view: str) -> None:
        env = _environment(view)
        plain = _streamed(env)
        padded = _streamed(env, CHROME_UA)
        assert len(padded) == len(plain)
        assert padded[0].startswith(plain[0])
        assert padded[1:] == plain[1:]
        if len(plain[0]) < 2048 - 7:
            assert len(padded[0]) == 2048


class TestPushOrder:
    @given(before=document, payload=push_payload, after=document)
    @settings(max_examples=100)
    def test_push_is_excluded_from_document_text(self, before: str, payload: str, after: str) -> None:
        env = _environment(f"{before}{{% push '{payload}' %}}{after}")
        chunks = _streamed(env)
        pushed = payload.encode("utf-8")
        assert pushed in chunks
        remaining = [chunk for chunk in chunks if chunk != pushed]
        assert len(remaining) == len(chunks) - 1
        assert b"".join(remaining).decode("utf-8") == RenderContext(_environment(before + after)).render_document(
            "view", layout="page"
        )
