"""HTTP response emitter.

Owns the client connection (any binary writer with ``write()``, such as
``socket.makefile("wb")`` or ``BaseHTTPRequestHandler.wfile``) and writes
raw HTTP/1.1 to it in one of two framings:

- ``CONTENT_LENGTH``: the body is buffered, measured and sent once by
  ``finish()`` with an exact ``Content-Length``.
- ``CHUNKED``: ``Transfer-Encoding: chunked``; each ``write_chunk()`` goes
  out immediately as ``<hex length>\\r\\n<data>\\r\\n`` and ``finish()``
  writes the ``0\\r\\n\\r\\n`` terminator.

Headers are sent with the first chunk (or by ``finish()``), so the action
can still change status, content type and headers after ``begin()``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import BinaryIO
from wsgiref.headers import Headers

from pagestream._types import TransferMode
from pagestream.environment.exceptions import ResponseCommittedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


@dataclass(slots=True)
class ResponseState:
    headers_sent: bool = False
    transfer_mode: TransferMode | None = None
    status: int = 200
    content_type: str = DEFAULT_CONTENT_TYPE


class ResponseEmitter:
    """Writes one HTTP response to a binary writer.

    Example:
        >>> emitter = ResponseEmitter(wfile)
        >>> emitter.begin(TransferMode.CHUNKED)
        >>> emitter.write_chunk(b"<html>")
        >>> emitter.finish()
    """

    __slots__ = ("_body", "_closed", "_finished", "headers", "http_version", "state", "writer")

    def __init__(self, writer: BinaryIO, *, http_version: str = "HTTP/1.1"):
        self.writer = writer
        self.http_version = http_version
        self.state = ResponseState()
        self.headers = Headers([])
        self._body: list[bytes] = []
        self._closed = False
        self._finished = False

    # ------------------------------------------------------------------
    # Header policy
    # ------------------------------------------------------------------

    @property
    def status(self) -> int:
        return self.state.status

    @status.setter
    def status(self, value: int) -> None:
        self._check_mutable("status")
        self.state.status = int(value)

    @property
    def content_type(self) -> str:
        return self.state.content_type

    @content_type.setter
    def content_type(self, value: str) -> None:
        self._check_mutable("Content-Type")
        self.state.content_type = value

    @property
    def chunked(self) -> bool:
        return self.state.transfer_mode is TransferMode.CHUNKED

    def set_header(self, name: str, value: str) -> None:
        """Set a response header. ``Content-Type`` updates ``content_type``."""
        self._check_mutable(name)
        if name.lower() == "content-type":
            self.state.content_type = value
            return
        if name.lower() == "content-length" and self.chunked:
            raise ResponseCommittedError("Content-Length cannot be set on a chunked response")
        if name.lower() == "transfer-encoding":
            raise ResponseCommittedError("Transfer-Encoding is controlled by begin()")
        self.headers[name] = value

    def _check_mutable(self, what: str) -> None:
        if self.state.headers_sent:
            raise ResponseCommittedError(f"Cannot change {what}: headers already sent")

    def begin(self, mode: TransferMode) -> None:
        """Fix the transfer mode before any body byte is produced.

        Raises:
            ResponseCommittedError: If headers were sent or body bytes were
                already buffered under another mode.
        """
        if self.state.headers_sent:
            raise ResponseCommittedError(
                f"Cannot switch to {mode.value} mode: response already committed "
                f"as {self.state.transfer_mode.value if self.state.transfer_mode else 'unknown'}"
            )
        if self._body and mode is not self.state.transfer_mode:
            raise ResponseCommittedError(f"Cannot switch to {mode.value} mode after body was written")
        self.state.transfer_mode = mode
        if mode is TransferMode.CHUNKED:
            del self.headers["Content-Length"]
            self.headers["Transfer-Encoding"] = "chunked"
        else:
            del self.headers["Transfer-Encoding"]

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------

    def write_chunk(self, data: bytes) -> None:
        """Transmit ``data`` now (chunked) or buffer it (content-length).

        Empty data is ignored: an empty chunk would terminate the stream.
        Data is also dropped for statuses that forbid a body (1xx, 204, 304).
        """
        if self.state.transfer_mode is None:
            self.begin(TransferMode.CONTENT_LENGTH)
        if self._finished:
            raise ResponseCommittedError("Response already finished")
        if not data:
            return
        if not _body_allowed(self.state.status):
            logger.debug("dropping %d body bytes for status %d", len(data), self.state.status)
            return
        if not self.chunked:
            self._body.append(data)
            return
        if not self.state.headers_sent:
            self._send_headers()
        self._write(b"%x\r\n%s\r\n" % (len(data), data))

    def finish(self) -> None:
        """Complete the response: terminator chunk, or the measured body."""
        if self._finished:
            return
        if self.state.transfer_mode is None:
            self.begin(TransferMode.CONTENT_LENGTH)
        if self.chunked:
            if not self.state.headers_sent:
                self._send_headers()
            if _body_allowed(self.state.status):
                self._write(b"0\r\n\r\n")
        else:
            body = b"".join(self._body) if _body_allowed(self.state.status) else b""
            self.headers["Content-Length"] = str(len(body))
            self._send_headers()
            if body:
                self._write(body)
        self._finished = True

    @property
    def finished(self) -> bool:
        return self._finished

    # ------------------------------------------------------------------
    # Wire
    # ------------------------------------------------------------------

    def _status_line(self) -> bytes:
        status = self.state.status
        try:
            phrase = HTTPStatus(status).phrase
        except ValueError:
            phrase = ""
        return f"{self.http_version} {status} {phrase}".rstrip().encode("latin-1") + b"\r\n"

    def _send_headers(self) -> None:
        lines = [self._status_line()]
        lines.append(f"Content-Type: {self.state.content_type}\r\n".encode("latin-1"))
        bodyless = not _body_allowed(self.state.status)
        for name, value in self.headers.items():
            if bodyless and name.lower() == "transfer-encoding":
                continue
            lines.append(f"{name}: {value}\r\n".encode("latin-1"))
        lines.append(b"\r\n")
        self.state.headers_sent = True
        self._write(b"".join(lines))

    def _write(self, data: bytes) -> None:
        if self._closed:
            raise TransportError("Connection already closed by client")
        try:
            self.writer.write(data)
            flush = getattr(self.writer, "flush", None)
            if flush is not None:
                flush()
        except (OSError, ValueError) as exc:
            self._closed = True
            logger.warning("client connection lost after %s: %s", self.state.transfer_mode, exc)
            raise TransportError(f"Connection closed while writing response: {exc}") from exc
