"""Shared helpers for pagestream tests: recording writers, response parsing, harness."""

from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

from pagestream import Controller, DictLoader, Environment, Request

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 5.1) AppleWebKit/534.25 (KHTML, like Gecko) "
    "Chrome/12.0.706.0 Safari/534.25"
)
SAFARI_UA = (
    "Mozilla/5.0 (Windows; U; Windows NT 6.1; tr-TR) AppleWebKit/533.20.25 "
    "(KHTML, like Gecko) Version/5.0.4 Safari/533.20.27"
)
IE_UA = "Mozilla/5.0 (Windows; U; MSIE 9.0; WIndows NT 9.0; en-US)"
FIREFOX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:2.2a1pre) Gecko/20110324 Firefox/4.2a1pre"


class RecordingWriter(io.BytesIO):
    """Binary writer that remembers every write() call separately."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[bytes] = []

    def write(self, data: bytes) -> int:  # type: ignore[override]
        self.writes.append(bytes(data))
        return super().write(data)


class BrokenWriter(RecordingWriter):
    """Writer whose peer disconnects after ``fail_after`` successful writes."""

    def __init__(self, fail_after: int = 0) -> None:
        super().__init__()
        self.fail_after = fail_after

    def write(self, data: bytes) -> int:  # type: ignore[override]
        if len(self.writes) >= self.fail_after:
            raise BrokenPipeError(32, "Broken pipe")
        return super().write(data)


@dataclass
class ParsedResponse:
    status: int
    headers: dict[str, str]
    body: bytes
    raw_headers: list[tuple[str, str]] = field(default_factory=list)


def parse_response(raw: bytes) -> ParsedResponse:
    """Split raw HTTP output into status, headers and (still encoded) body."""
    head, sep, body = raw.partition(b"\r\n\r\n")
    if not sep:
        return ParsedResponse(0, {}, b"")
    status_line, *header_lines = head.decode("latin-1").split("\r\n")
    pairs = [tuple(line.split(": ", 1)) for line in header_lines]
    return ParsedResponse(
        status=int(status_line.split(" ")[1]),
        headers={name: value for name, value in pairs},
        body=body,
        raw_headers=pairs,
    )


def chunks(*parts: str | bytes, end: bool = False) -> bytes:
    """Encode ``parts`` the way a chunked response frames them."""
    out = b""
    for part in parts:
        data = part.encode("utf-8") if isinstance(part, str) else part
        out += b"%x\r\n%s\r\n" % (len(data), data)
    if end:
        out += b"0\r\n\r\n"
    return out


def decode_chunks(body: bytes) -> list[bytes]:
    """Decode a complete chunked body into its chunk payloads (terminator excluded)."""
    payloads = []
    while body:
        size_line, _, rest = body.partition(b"\r\n")
        size = int(size_line, 16)
        if size == 0:
            break
        payloads.append(rest[:size])
        assert rest[size : size + 2] == b"\r\n"
        body = rest[size + 2 :]
    return payloads


class StreamHarness:
    """Drives a throwaway controller against in-memory templates.

    Template names: ``layout`` for the controller layout, ``test/action`` for
    the view of the ``action`` action, anything else for partials.
    """

    def __init__(self) -> None:
        self.templates: dict[str, str] = {}
        self.env = Environment(loader=DictLoader(self.templates))
        self.writer = RecordingWriter()
        self.data = SimpleNamespace(order=[])

        class TestController(Controller):
            view_prefix = "test"

            def action(self) -> None:
                pass

        self.controller_class = TestController
        self.controller: Controller | None = None

    def template(self, name: str, source: str | Callable[..., None]) -> None:
        if callable(source):
            self.env.add_template(name, source)
        else:
            self.templates[name] = source

    def layout_template(self, source: str | Callable[..., None]) -> None:
        self.template("layout", source)

    def view(self, source: str | Callable[..., None]) -> None:
        self.template("test/action", source)

    def partial(self, source: str | Callable[..., None]) -> None:
        self.template("partial", source)

    def action(self, func: Callable[[Controller], Any]) -> None:
        self.controller_class.action = func  # type: ignore[method-assign]

    def run(self, user_agent: str | None = None) -> Controller:
        headers = {"User-Agent": user_agent} if user_agent else {}
        self.controller = self.controller_class.dispatch(
            "action",
            Request(headers=headers),
            self.writer,
            env=self.env,
        )
        return self.controller

    @property
    def response(self) -> ParsedResponse:
        return parse_response(self.writer.getvalue())

    @property
    def received(self) -> bytes:
        """Body bytes written so far (empty until headers are sent)."""
        return self.response.body

    @property
    def headers(self) -> dict[str, str]:
        return self.response.headers

    @property
    def status(self) -> int:
        return self.response.status


