"""Pytest configuration and fixtures for pagestream tests."""

from __future__ import annotations

import pytest

from pagestream import Environment, ResponseEmitter

from .support import RecordingWriter, StreamHarness


@pytest.fixture
def harness() -> StreamHarness:
    return StreamHarness()


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def env() -> Environment:
    """Plain environment with no loader."""
    return Environment()


@pytest.fixture
def emitter(writer: RecordingWriter) -> ResponseEmitter:
    return ResponseEmitter(writer)
