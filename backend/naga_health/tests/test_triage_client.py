# tests/test_triage_client.py
import asyncio
import json

import httpx
import pytest

from naga_health.models.booking import TriageLevel
from naga_health.models.intake import TriageErrorType
from naga_health.services.errors import TriageError
from naga_health.services.triage_client import (
    TriageClient,
    categorize_error,
    parse_triage_text,
    validate_api_key,
)

TRIAGE_JSON = {
    "triageLevel": "ROUTINE",
    "urgencyScore": 3,
    "explanation": "Mild upper respiratory symptoms.",
    "recommendedFacilityIds": ["bhs-abella"],
    "institutionalWin": "Keeps CHO queues short.",
    "actionPlan": "Visit your BHS tomorrow morning.",
    "bookingContact": {"name": "Midwife Santos", "phone": "0917-000-0000", "scheduleNotes": "Mon-Fri 8-5"},
}


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def client_with(handler, **kwargs) -> TriageClient:
    return TriageClient(
        api_key=kwargs.pop("api_key", "test-key"),
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_analyze_parses_model_output(make_intake):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_body(json.dumps(TRIAGE_JSON)))

    result = asyncio.run(client_with(handler, model="gemini-test").analyze(make_intake()))

    assert result.triage_level == TriageLevel.ROUTINE
    assert result.recommended_facility_ids == ["bhs-abella"]
    assert result.booking_contact.name == "Midwife Santos"

    assert seen["url"].startswith("https://gemini.test/v1beta/models/gemini-test:generateContent")
    assert "key=test-key" in seen["url"]
    sent_intake = json.loads(seen["body"]["contents"][0]["parts"][0]["text"])
    assert sent_intake["barangay"] == "Abella"
    assert "BHS-First" in seen["body"]["systemInstruction"]["parts"][0]["text"]
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_missing_key_never_calls_out(make_intake):
    def handler(request):
        raise AssertionError("should not be called")

    with pytest.raises(TriageError) as exc:
        asyncio.run(client_with(handler, api_key=" ").analyze(make_intake()))
    assert exc.value.error_type == TriageErrorType.MISSING_API_KEY
    assert exc.value.status_code == 503


@pytest.mark.parametrize(
    "status, text, error_type, http_status",
    [
        (429, "Resource has been exhausted (e.g. check quota).", TriageErrorType.QUOTA_EXCEEDED, 429),
        (403, "Permission denied", TriageErrorType.AUTHENTICATION_ERROR, 503),
        (404, "models/gemini-x is not found", TriageErrorType.MODEL_ERROR, 503),
        (400, "Request contains an invalid argument.", TriageErrorType.INVALID_REQUEST, 400),
        (500, "Internal error encountered.", TriageErrorType.MODEL_ERROR, 500),
    ],
)
def test_upstream_errors_are_categorized(make_intake, status, text, error_type, http_status):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": status, "message": text}})

    with pytest.raises(TriageError) as exc:
        asyncio.run(client_with(handler).analyze(make_intake()))
    assert exc.value.error_type == error_type
    assert exc.value.status_code == http_status


def test_transport_failure_is_internal_error(make_intake):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TriageError) as exc:
        asyncio.run(client_with(handler).analyze(make_intake()))
    assert exc.value.error_type == TriageErrorType.INTERNAL_ERROR


def test_garbage_output_is_parse_error(make_intake):
    def handler(request):
        return httpx.Response(200, json=gemini_body("I think you have a cold."))

    with pytest.raises(TriageError) as exc:
        asyncio.run(client_with(handler).analyze(make_intake()))
    assert exc.value.error_type == TriageErrorType.PARSE_ERROR


def test_fenced_json_is_accepted():
    result = parse_triage_text("```json\n" + json.dumps(TRIAGE_JSON) + "\n```")
    assert result.urgency_score == 3


def test_categorize_by_message():
    assert categorize_error("GEMINI_API_KEY is empty").error_type == TriageErrorType.MISSING_API_KEY
    assert categorize_error("rate limit hit").error_type == TriageErrorType.RATE_LIMITED
    assert categorize_error("Daily limit exceeded").error_type == TriageErrorType.QUOTA_EXCEEDED


def test_validate_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assert validate_api_key()["isValid"] is False
    assert validate_api_key("   ")["message"] == "GEMINI_API_KEY is empty"
    monkeypatch.setenv("GEMINI_API_KEY", "abc")
    assert validate_api_key()["isValid"] is True
