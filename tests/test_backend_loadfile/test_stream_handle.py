# -*- coding: utf-8 -*-
"""
@brief StreamHandle 释放语义测试 / StreamHandle release semantics
"""

import io
import threading

import pytest

from loadfile.errors import ReleaseError
from loadfile.sources.interface import NopCloseReader, StreamHandle, as_reader


def test_closing_handle_closes_exactly_once(recording_stream_factory):
    stream = recording_stream_factory(b"abc")
    handle = StreamHandle.closing(stream, identifier="a")

    handle.release()
    handle.release()

    assert stream.close_calls == 1
    assert handle.released


def test_borrowed_handle_never_closes(recording_stream_factory):
    stream = recording_stream_factory(b"abc")
    handle = StreamHandle.borrowed(stream)

    handle.release()

    assert stream.close_calls == 0
    assert handle.released
    assert not stream.closed


def test_release_wraps_close_failure(recording_stream_factory):
    stream = recording_stream_factory(fail_on_close=True)
    handle = StreamHandle.closing(stream, identifier="x.json")

    with pytest.raises(ReleaseError) as exc_info:
        handle.release()

    assert isinstance(exc_info.value.__cause__, OSError)
    assert exc_info.value.identifier == "x.json"

    # a failed release still counts as the one release
    handle.release()
    assert stream.close_calls == 1


def test_release_after_failure_notes_primary(recording_stream_factory):
    stream = recording_stream_factory(fail_on_close=True)
    handle = StreamHandle.closing(stream)
    primary = ValueError("decode broke")

    handle.release_after_failure(primary)

    assert stream.close_calls == 1
    assert any("also failed to release stream" in n for n in primary.__notes__)


def test_context_manager_releases_on_error(recording_stream_factory):
    stream = recording_stream_factory(b"abc", fail_on_close=True)

    with pytest.raises(KeyError) as exc_info:
        with StreamHandle.closing(stream) as s:
            assert s is stream
            raise KeyError("boom")

    assert stream.close_calls == 1
    assert any("also failed to release stream" in n for n in exc_info.value.__notes__)


def test_concurrent_release_closes_once(recording_stream_factory):
    stream = recording_stream_factory()
    handle = StreamHandle.closing(stream)
    threads = [threading.Thread(target=handle.release) for _ in range(8)]

    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert stream.close_calls == 1


def test_rejects_unreadable_stream():
    with pytest.raises(TypeError):
        StreamHandle(object(), closeable=True)  # type: ignore[arg-type]


def test_read_delegates_to_stream():
    handle = StreamHandle.borrowed(io.BytesIO(b"hello"))

    assert handle.read(2) == b"he"
    assert handle.read() == b"llo"


def test_as_reader_wraps_borrowed_streams(recording_stream_factory):
    stream = recording_stream_factory(b"payload")
    reader = as_reader(StreamHandle.borrowed(stream))

    assert isinstance(reader, NopCloseReader)
    assert reader.read() == b"payload"
    reader.close()

    assert reader.closed
    assert not stream.closed
    with pytest.raises(ValueError):
        reader.read()


def test_nop_close_reader_supports_buffered_reads(recording_stream_factory):
    stream = recording_stream_factory(b"line1\nline2\n")
    reader = io.BufferedReader(NopCloseReader(stream))

    assert reader.readline() == b"line1\n"
    assert reader.read() == b"line2\n"


def test_repr_mentions_kind():
    assert "borrowed" in repr(StreamHandle.borrowed(io.BytesIO()))
    assert "closing" in repr(StreamHandle.closing(io.BytesIO()))
