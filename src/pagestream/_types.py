"""Core enums shared across pagestream modules."""

from __future__ import annotations

from enum import Enum


class RenderMode(Enum):
    """How a response body is produced.

    BUFFERED renders the whole page before anything is written.
    PROGRESSIVE sends a chunk every time a template flushes.
    """

    BUFFERED = "buffered"
    PROGRESSIVE = "progressive"


class TransferMode(Enum):
    """HTTP framing used by the response emitter."""

    CONTENT_LENGTH = "content-length"
    CHUNKED = "chunked"
