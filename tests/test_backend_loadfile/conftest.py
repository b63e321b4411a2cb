# -*- coding: utf-8 -*-
"""
@brief 测试替身：记录 close 次数的流、记录调用的数据源与解码器
@brief Test doubles: streams that count close(), sources and decoders that record calls
"""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO, List, Mapping, Sequence, Tuple

import pytest

from loadfile.formats.interface import Decoder
from loadfile.sources.interface import SourceProvider, StreamHandle
from loadfile.utils import logger as loadfile_logger


class RecordingStream(io.BytesIO):
    """BytesIO that counts close() calls and can be told to fail on close."""

    def __init__(self, payload: bytes = b"", *, fail_on_close: bool = False) -> None:
        super().__init__(payload)
        self.close_calls = 0
        self._fail_on_close = fail_on_close

    def close(self) -> None:
        self.close_calls += 1
        if self._fail_on_close:
            raise OSError("close exploded")
        super().close()


class RecordingSource(SourceProvider):
    """Source that returns a fresh RecordingStream per call and records its calls."""

    def __init__(
        self,
        name: str,
        payload: bytes = b"{}",
        *,
        closeable: bool = True,
        fail_on_close: bool = False,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.payload = payload
        self.closeable = closeable
        self.fail_on_close = fail_on_close
        self.error = error
        self.calls: List[Tuple[str, dict]] = []
        self.streams: List[RecordingStream] = []

    def get_stream(self, identifier: str, *, parts: Mapping[str, str]) -> StreamHandle:
        self.calls.append((identifier, dict(parts)))
        if self.error is not None:
            raise self.error
        stream = RecordingStream(self.payload, fail_on_close=self.fail_on_close)
        self.streams.append(stream)
        return StreamHandle(stream, closeable=self.closeable, identifier=identifier)

    def describe(self) -> str:
        return f"RecordingSource({self.name})"


class RecordingDecoder(Decoder):
    """Decoder that reads everything and returns a fixed value (or raises)."""

    version = "test"

    def __init__(
        self,
        name: str,
        value: Any = None,
        *,
        tags: Sequence[str] = (),
        error: Exception | None = None,
        read_size: int = -1,
    ) -> None:
        self.name = name
        self.value = value
        self.tags = tuple(tags)
        self.error = error
        self.read_size = read_size
        self.seen: List[bytes] = []

    def decode(self, stream: BinaryIO) -> Any:
        self.seen.append(stream.read(self.read_size))
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def recording_source_factory():
    return RecordingSource


@pytest.fixture
def recording_decoder_factory():
    return RecordingDecoder


@pytest.fixture
def recording_stream_factory():
    return RecordingStream


@pytest.fixture(autouse=True)
def _restore_loadfile_logging():
    """CLI runs reconfigure the "loadfile" logger process-wide; put it back after each test."""
    lg = logging.getLogger(loadfile_logger.LOGGER_NAMESPACE)
    state = loadfile_logger._STATE
    saved_logger = (lg.level, list(lg.handlers), lg.propagate)
    saved_state = (state.configured, state.level, list(state.handlers))

    yield

    level, handlers, propagate = saved_logger
    lg.handlers[:] = handlers
    lg.propagate = propagate
    lg.setLevel(level)
    state.configured, state.level, state.handlers = saved_state


@pytest.fixture
def loadfile_caplog(caplog):
    """caplog that also sees "loadfile" records (that logger does not propagate to root)."""
    lg = logging.getLogger(loadfile_logger.LOGGER_NAMESPACE)
    lg.addHandler(caplog.handler)
    caplog.set_level(logging.DEBUG, logger=loadfile_logger.LOGGER_NAMESPACE)
    yield caplog
    lg.removeHandler(caplog.handler)
