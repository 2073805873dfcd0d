"""Capability statement parsing and profile resolution."""

import json
import time

import httpx
import pytest

from ehr_servicegen.config.schema import HttpConfig
from ehr_servicegen.core.capability import (
    ProfileSetResolver,
    extract_profiles,
    fetch_capability_statement,
    parse_capability_statement,
)
from ehr_servicegen.exceptions import FetchError, MissingNameError, NotFoundError, ParseError

PATIENT_OBS = [("Patient", ["P1", "P2"]), ("Observation", ["P2", "P3"])]


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


# --- parsing ---


def test_parse_local_file(write_capability):
    statement = parse_capability_statement(write_capability(PATIENT_OBS))
    assert statement.publisher == "Acme"
    assert [r.type for r in statement.rest[0].resource] == ["Patient", "Observation"]
    assert statement.rest[0].resource[0].supported_profile == ["P1", "P2"]


def test_parse_missing_file_raises_not_found(tmp_path):
    with pytest.raises(NotFoundError) as exc:
        parse_capability_statement(tmp_path / "nope.json")
    assert "does not exist" in str(exc.value)


def test_parse_invalid_json_raises_parse_error():
    with pytest.raises(ParseError):
        parse_capability_statement("{not json")


def test_parse_wrong_resource_type_raises_parse_error():
    with pytest.raises(ParseError) as exc:
        parse_capability_statement(json.dumps({"resourceType": "Patient", "id": "x"}))
    assert "CapabilityStatement" in str(exc.value)


def test_parse_malformed_resource_entry_raises_parse_error():
    doc = {"resourceType": "CapabilityStatement", "rest": [{"resource": [{"supportedProfile": ["P1"]}]}]}
    with pytest.raises(ParseError):
        parse_capability_statement(json.dumps(doc))


# --- extraction ---


def test_extract_merges_in_first_seen_order(capability_doc):
    statement = parse_capability_statement(json.dumps(capability_doc(PATIENT_OBS)))
    assert extract_profiles(statement) == ["P1", "P2", "P3"]


def test_extract_keeps_prior_profiles_first(capability_doc):
    statement = parse_capability_statement(json.dumps(capability_doc(PATIENT_OBS)))
    assert extract_profiles(statement, ["P3", "X"]) == ["P3", "X", "P1", "P2"]


def test_extract_uses_only_first_rest_section(capability_doc):
    extra = [{"mode": "client", "resource": [{"type": "Encounter", "supportedProfile": ["E1"]}]}]
    statement = parse_capability_statement(json.dumps(capability_doc(PATIENT_OBS, extra_rest=extra)))
    assert "E1" not in extract_profiles(statement)


def test_extract_skips_resources_without_profiles(capability_doc):
    statement = parse_capability_statement(
        json.dumps(capability_doc([("Patient", []), ("Observation", ["P3"])]))
    )
    assert extract_profiles(statement) == ["P3"]


def test_extract_without_rest_raises_parse_error():
    statement = parse_capability_statement(json.dumps({"resourceType": "CapabilityStatement"}))
    with pytest.raises(ParseError):
        extract_profiles(statement)


# --- resolver ---


def test_resolve_is_idempotent(write_capability):
    path = str(write_capability(PATIENT_OBS))
    resolver = ProfileSetResolver()
    first = resolver.resolve(path, ["P0"], "acme").profiles
    second = resolver.resolve(path, first, "acme").profiles
    assert first == ["P0", "P1", "P2", "P3"]
    assert second == first


def test_resolve_infers_publisher_name(write_capability):
    resolved = ProfileSetResolver().resolve(str(write_capability(PATIENT_OBS, publisher="Acme Health")))
    assert resolved.inferred_name == "Acme Health"


def test_resolve_with_caller_name_does_not_infer(write_capability):
    resolved = ProfileSetResolver().resolve(str(write_capability(PATIENT_OBS)), [], "epic")
    assert resolved.inferred_name is None


@pytest.mark.parametrize("publisher", [None, "", "   "])
def test_resolve_without_any_name_raises(write_capability, publisher):
    path = str(write_capability(PATIENT_OBS, publisher=publisher))
    with pytest.raises(MissingNameError):
        ProfileSetResolver().resolve(path)


def test_resolve_missing_local_file(tmp_path):
    with pytest.raises(NotFoundError):
        ProfileSetResolver().resolve(str(tmp_path / "missing.json"), [], "acme")


def test_resolve_remote(capability_doc):
    seen = {}

    def handler(request):
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, json=capability_doc(PATIENT_OBS, publisher="Remote EHR"))

    resolver = ProfileSetResolver(HttpConfig(timeout=5), client=_client(handler))
    resolved = resolver.resolve("https://ehr.example.org/fhir/metadata")
    assert resolved.profiles == ["P1", "P2", "P3"]
    assert resolved.inferred_name == "Remote EHR"
    assert "application/fhir+json" in seen["accept"]


def test_fetch_http_error_raises_fetch_error():
    client = _client(lambda request: httpx.Response(404, text="not here"))
    with pytest.raises(FetchError) as exc:
        fetch_capability_statement("https://ehr.example.org/metadata", client=client)
    assert exc.value.context["status"] == 404


def test_fetch_connection_error_raises_fetch_error():
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    with pytest.raises(FetchError):
        fetch_capability_statement("https://unreachable.invalid/metadata", client=_client(handler))


def test_fetch_timeout_raises_fetch_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(FetchError) as exc:
        fetch_capability_statement("https://slow.example.org/metadata", timeout=1.5, client=_client(handler))
    assert "Timed out" in str(exc.value)


def test_expired_deadline_skips_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, text="{}")

    with pytest.raises(FetchError):
        fetch_capability_statement(
            "https://ehr.example.org/metadata",
            deadline=time.monotonic() - 1,
            client=_client(handler),
        )
    assert calls == []


def test_remote_non_capability_document_raises_parse_error():
    client = _client(lambda request: httpx.Response(200, json={"resourceType": "Bundle"}))
    with pytest.raises(ParseError):
        ProfileSetResolver(client=client).resolve("http://ehr.example.org/metadata", [], "acme")
