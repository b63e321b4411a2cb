# tests/test_backend_loadfile/test_source_registry.py
"""
Tests for SourceRegistry.

- first matching binding in registration order wins
- fallback only when nothing matches
- no binding + no fallback -> NoProviderMatchedError
- provider errors propagate unchanged, with the identifier attached as a note
"""
import pytest

from loadfile.errors import NoProviderMatchedError
from loadfile.sources.registry import Pattern, SourceBinding, SourceRegistry


S3_LIKE = r"^s3://(?P<bucket>[^/]+)/(?P<key>.*)$"


def test_matching_binding_is_used_and_fallback_is_not(recording_source_factory):
    remote = recording_source_factory("remote")
    local = recording_source_factory("local")
    reg = SourceRegistry([(S3_LIKE, remote)], fallback=local)

    handle = reg.resolve("s3://bucket1/key1")
    handle.release()

    assert remote.calls == [("s3://bucket1/key1", {"bucket": "bucket1", "key": "key1"})]
    assert local.calls == []


def test_unmatched_identifier_goes_to_fallback_with_empty_parts(recording_source_factory):
    remote = recording_source_factory("remote")
    local = recording_source_factory("local")
    reg = SourceRegistry([(S3_LIKE, remote)], fallback=local)

    reg.resolve("configs/app.json").release()

    assert remote.calls == []
    assert local.calls == [("configs/app.json", {})]


def test_no_match_and_no_fallback_raises(recording_source_factory):
    reg = SourceRegistry([(S3_LIKE, recording_source_factory("remote"))])

    with pytest.raises(NoProviderMatchedError) as exc_info:
        reg.resolve("local/file.json")

    assert exc_info.value.identifier == "local/file.json"
    assert "local/file.json" in str(exc_info.value)


def test_empty_registry_raises_no_provider_matched():
    with pytest.raises(NoProviderMatchedError):
        SourceRegistry().resolve("anything")


def test_registration_order_decides_overlapping_patterns(recording_source_factory):
    first = recording_source_factory("first")
    second = recording_source_factory("second")

    SourceRegistry([(r"^s3://", first), (S3_LIKE, second)]).resolve("s3://b/k").release()
    assert len(first.calls) == 1 and second.calls == []

    # swapping the order swaps the winner
    SourceRegistry([(S3_LIKE, second), (r"^s3://", first)]).resolve("s3://b/k").release()
    assert len(first.calls) == 1 and len(second.calls) == 1


def test_selection_is_deterministic(recording_source_factory):
    a = recording_source_factory("a")
    b = recording_source_factory("b")
    reg = SourceRegistry([(r"\.json$", a), (r"^data/", b)])

    picks = {reg.select("data/x.json")[0].name for _ in range(20)}
    assert picks == {"a"}


def test_with_binding_returns_new_registry(recording_source_factory):
    local = recording_source_factory("local")
    remote = recording_source_factory("remote")
    base = SourceRegistry(fallback=local)

    extended = base.with_binding(S3_LIKE, remote)

    assert len(base.bindings) == 0
    assert len(extended.bindings) == 1
    assert extended.fallback is local
    assert extended.select("s3://b/k")[0] is remote
    assert base.with_fallback(None).fallback is None


def test_provider_error_propagates_unchanged_with_identifier_note(recording_source_factory):
    err = PermissionError("denied")
    reg = SourceRegistry(fallback=recording_source_factory("local", error=err))

    with pytest.raises(PermissionError) as exc_info:
        reg.resolve("/secret/file.json")

    assert exc_info.value is err
    assert "identifier='/secret/file.json'" in exc_info.value.__notes__


def test_pattern_match_returns_only_participating_groups():
    p = Pattern.compile(r"^(?P<scheme>\w+)://(?P<host>[^/]+)(?:/(?P<path>.*))?$")

    assert p.match("http://example.com") == {"scheme": "http", "host": "example.com"}
    assert p.match("not a uri") is None
    assert p.expr.startswith("^(?P<scheme>")


def test_binding_rejects_non_provider():
    with pytest.raises(TypeError):
        SourceRegistry([(S3_LIKE, object())])
    with pytest.raises(TypeError):
        SourceRegistry(fallback="local")  # type: ignore[arg-type]


def test_explicit_source_binding_objects_are_kept(recording_source_factory):
    src = recording_source_factory("x")
    binding = SourceBinding(pattern=Pattern.compile("^x"), provider=src)

    reg = SourceRegistry([binding])

    assert reg.bindings[0] is binding
    assert "RecordingSource(x)" in repr(reg)


def test_non_string_identifier_is_rejected(recording_source_factory):
    reg = SourceRegistry(fallback=recording_source_factory("local"))
    with pytest.raises(TypeError):
        reg.resolve(42)  # type: ignore[arg-type]


def test_non_handle_return_is_closed_and_rejected(recording_source_factory, recording_stream_factory):
    stray = recording_stream_factory(b"{}")

    class BareStreamSource(type(recording_source_factory("local"))):
        def get_stream(self, identifier, *, parts):
            return stray

    reg = SourceRegistry(fallback=BareStreamSource("bare"))

    with pytest.raises(TypeError, match="must return StreamHandle"):
        reg.resolve("a.json")
    assert stray.close_calls == 1
