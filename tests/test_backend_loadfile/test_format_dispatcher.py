# tests/test_backend_loadfile/test_format_dispatcher.py
"""
Tests for FormatDispatcher and format_tag.

- tag = text after the last ".", lower-cased
- exact tag match, else the default decoder (never a selection failure)
- the stream is fully consumed when decode returns, success or failure
- decode errors propagate unchanged; targets may be partially populated
"""
import io
import json
from types import SimpleNamespace

import pytest

from loadfile.formats.dispatcher import FormatDispatcher, populate
from loadfile.formats.interface import format_tag


@pytest.mark.parametrize(
    "identifier, tag",
    [
        ("a.json", "json"),
        ("a.JSON", "json"),
        ("s3://bucket/dir.v2/file.tar.YML", "yml"),
        ("noext", "noext"),
        ("trailing.", ""),
        ("dir.d/file", "d/file"),
    ],
)
def test_format_tag(identifier, tag):
    assert format_tag(identifier) == tag


def _dispatcher(recording_decoder_factory):
    json_dec = recording_decoder_factory("json", value={"fmt": "json"}, tags=["json"])
    yaml_dec = recording_decoder_factory("yaml", value={"fmt": "yaml"}, tags=["yml", "yaml"])
    default = recording_decoder_factory("default", value={"fmt": "default"})
    return FormatDispatcher.from_decoders([json_dec, yaml_dec], default=default), json_dec, yaml_dec, default


def test_suffix_case_does_not_matter(recording_decoder_factory):
    disp, json_dec, _, _ = _dispatcher(recording_decoder_factory)

    assert disp.select("a.JSON") is json_dec
    assert disp.select("a.json") is json_dec


def test_yml_and_yaml_share_a_decoder(recording_decoder_factory):
    disp, _, yaml_dec, _ = _dispatcher(recording_decoder_factory)

    assert disp.select("x.yml") is yaml_dec
    assert disp.select("x.YAML") is yaml_dec


@pytest.mark.parametrize("identifier", ["noext", "data.csv", "s3://b/k", "x."])
def test_unknown_suffix_uses_default(recording_decoder_factory, identifier):
    disp, _, _, default = _dispatcher(recording_decoder_factory)

    assert disp.decode(identifier, io.BytesIO(b"...")) == {"fmt": "default"}
    assert default.seen == [b"..."]


def test_explicit_table_keys_are_lowercased(recording_decoder_factory):
    dec = recording_decoder_factory("json")
    disp = FormatDispatcher({"JSON": dec}, default=recording_decoder_factory("d"))

    assert list(disp.decoders) == ["json"]
    assert disp.select("a.Json") is dec


def test_first_decoder_claiming_a_tag_wins(recording_decoder_factory):
    a = recording_decoder_factory("a", tags=["txt"])
    b = recording_decoder_factory("b", tags=["txt"])

    disp = FormatDispatcher.from_decoders([a, b], default=b)

    assert disp.select("f.txt") is a


def test_stream_is_drained_after_partial_read(recording_decoder_factory):
    dec = recording_decoder_factory("partial", value=1, read_size=2)
    disp = FormatDispatcher({}, default=dec)
    stream = io.BytesIO(b"0123456789")

    disp.decode("x", stream)

    assert dec.seen == [b"01"]
    assert stream.read() == b""


def test_decode_error_propagates_and_stream_is_drained(recording_decoder_factory):
    err = ValueError("bad payload")
    dec = recording_decoder_factory("broken", error=err, read_size=1)
    disp = FormatDispatcher({}, default=dec)
    stream = io.BytesIO(b"abc")

    with pytest.raises(ValueError) as exc_info:
        disp.decode("bad.bin", stream)

    assert exc_info.value is err
    assert "identifier='bad.bin'" in err.__notes__
    assert stream.read() == b""


def test_drain_failure_does_not_mask_decode_error(recording_decoder_factory):
    class ExplodingStream(io.BytesIO):
        def read(self, size=-1):
            if self.tell() > 0:
                raise OSError("connection reset")
            return super().read(1)

    err = ValueError("bad payload")
    disp = FormatDispatcher({}, default=recording_decoder_factory("b", error=err))

    with pytest.raises(ValueError) as exc_info:
        disp.decode("x", ExplodingStream(b"abc"))

    assert exc_info.value is err


def test_decode_populates_mapping_target(recording_decoder_factory):
    disp = FormatDispatcher({}, default=recording_decoder_factory("d", value={"a": 1}))
    target = {"keep": True}

    value = disp.decode("x", io.BytesIO(b""), target)

    assert value == {"a": 1}
    assert target == {"keep": True, "a": 1}


def test_mismatched_target_raises_type_error(recording_decoder_factory):
    disp = FormatDispatcher({}, default=recording_decoder_factory("d", value=[1, 2]))

    with pytest.raises(TypeError):
        disp.decode("x", io.BytesIO(b""), {})


def test_populate_sequence_and_object_targets():
    items: list = [0]
    populate(items, [1, 2])
    assert items == [0, 1, 2]

    obj = SimpleNamespace()
    populate(obj, {"host": "db", "port": 5432})
    assert (obj.host, obj.port) == ("db", 5432)

    with pytest.raises(TypeError):
        populate(SimpleNamespace(), {"not an attr": 1})
    with pytest.raises(TypeError):
        populate(SimpleNamespace(), ["x"])


def test_suffix_decides_format_without_sniffing():
    # suffix decides the format: JSON text in a .xml file goes to the XML decoder and fails
    from loadfile.loader import default_formats
    import xml.etree.ElementTree as ET

    with pytest.raises(ET.ParseError):
        default_formats().decode("data.xml", io.BytesIO(json.dumps({"a": 1}).encode()))


def test_dispatcher_rejects_non_decoders(recording_decoder_factory):
    with pytest.raises(TypeError):
        FormatDispatcher({"json": object()}, default=recording_decoder_factory("d"))  # type: ignore[dict-item]
    with pytest.raises(TypeError):
        FormatDispatcher({}, default=object())  # type: ignore[arg-type]
