# naga_health/services/triage_client.py
import json
import logging
import os
from typing import Optional

import httpx
from pydantic import ValidationError

from naga_health.models.intake import IntakeData, TriageErrorType, TriageResult
from naga_health.services.errors import TriageError

logger = logging.getLogger(__name__)

# ------------------------------- Config -------------------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
TRIAGE_TIMEOUT = float(os.getenv("TRIAGE_TIMEOUT", "30"))

SYSTEM_INSTRUCTION = """
You are the "Naga City Smart Health Navigator". Your mission is the "BHS-First" policy:
Barangay Health Stations are the first line of health care for Naguenos.

TRIAGE & ROUTING RULES:
1. EMERGENCY -> Naga City General Hospital (ncgh-1).
   Only for life-threatening conditions (unconscious, severe trauma, active heart attack).
2. URGENT / TARGETED CARE -> City Health Office I or II (cho-1, cho-2).
   Only for specialized needs: animal bites (rabies), TB-DOTS, or labs a BHS lacks.
3. ROUTINE -> the patient's own Barangay Health Station.
   General check-ups, cough/cold/fever, immunization, prenatal, dental, PhilHealth YAKAP profiling.
   Match the patient's "barangay" to its BHS.

MAPPING (Barangay -> Facility ID):
- Abella -> bhs-abella
- Bagumbayan Norte -> bhs-bagumbayan-norte
- Bagumbayan Sur -> bhs-bagumbayan-sur
- Balatas -> bhs-balatas
- Calauag -> bhs-calauag
- Cararayan -> bhs-cararayan
- Carolina -> bhs-carolina
- Concepcion Grande -> bhs-concepcion-grande
- Concepcion Pequena -> bhs-concepcion-pequena
- Del Rosario -> bhs-del-rosario
- Pacol -> bhs-pacol
- Sabang -> bhs-sabang
- Tinago -> bhs-tinago
- San Isidro -> bhs-san-isidro

If the barangay has no BHS in the list, route to the nearest CHO and say in "actionPlan"
that they should check their local health center first for future routine needs.

Return a valid JSON object.
""".strip()

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "triageLevel": {"type": "STRING", "enum": ["Emergency", "Urgent", "Routine"]},
        "urgencyScore": {"type": "NUMBER"},
        "explanation": {"type": "STRING"},
        "recommendedFacilityIds": {"type": "ARRAY", "items": {"type": "STRING"}},
        "institutionalWin": {"type": "STRING"},
        "actionPlan": {"type": "STRING"},
        "bookingContact": {
            "type": "OBJECT",
            "properties": {
                "name": {"type": "STRING"},
                "phone": {"type": "STRING"},
                "scheduleNotes": {"type": "STRING"},
            },
            "required": ["name", "phone", "scheduleNotes"],
        },
    },
    "required": [
        "triageLevel",
        "urgencyScore",
        "explanation",
        "recommendedFacilityIds",
        "institutionalWin",
        "actionPlan",
        "bookingContact",
    ],
}


def validate_api_key(api_key: Optional[str] = None) -> dict:
    key = os.getenv("GEMINI_API_KEY") if api_key is None else api_key
    if key is None:
        return {"isValid": False, "message": "GEMINI_API_KEY is not configured in environment variables"}
    if not key.strip():
        return {"isValid": False, "message": "GEMINI_API_KEY is empty"}
    return {"isValid": True, "message": "GEMINI_API_KEY is properly configured"}


def categorize_error(message: str, status_code: Optional[int] = None) -> TriageError:
    """Map an upstream failure onto a TriageErrorType and the HTTP status we answer with."""
    text = (message or "").lower()

    if "api key" in text or "gemini_api_key" in text:
        return TriageError(message, TriageErrorType.MISSING_API_KEY, 503)
    if status_code == 429 and "rate limit" in text:
        return TriageError(message, TriageErrorType.RATE_LIMITED, 429)
    if status_code == 429 or "quota" in text or "limit exceeded" in text:
        return TriageError(message, TriageErrorType.QUOTA_EXCEEDED, 429)
    if status_code in (401, 403) or "unauthorized" in text or "authentication" in text:
        return TriageError(message, TriageErrorType.AUTHENTICATION_ERROR, 503)
    if status_code == 404 or "not found" in text:
        return TriageError(message, TriageErrorType.MODEL_ERROR, 503)
    if status_code == 400 or "invalid" in text:
        return TriageError(message, TriageErrorType.INVALID_REQUEST, 400)
    if "rate limit" in text:
        return TriageError(message, TriageErrorType.RATE_LIMITED, 429)
    return TriageError(message, TriageErrorType.MODEL_ERROR, 500)


def _extract_text(body: dict) -> str:
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise TriageError("Model returned no candidates", TriageErrorType.PARSE_ERROR, 500, detail=body)
    return "".join(p.get("text", "") for p in parts).strip()


def parse_triage_text(text: str) -> TriageResult:
    # Some models still wrap JSON output in a ```json fence
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    try:
        return TriageResult.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise TriageError(f"Unparseable triage response: {e}", TriageErrorType.PARSE_ERROR, 500) from e


class TriageClient:
    """Thin async wrapper around Gemini's generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: float = TRIAGE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = GEMINI_API_KEY if api_key is None else api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_payload(self, intake: IntakeData) -> dict:
        return {
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "contents": [{"role": "user", "parts": [{"text": json.dumps(intake.to_json_dict())}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    async def analyze(self, intake: IntakeData) -> TriageResult:
        if not self.api_key or not self.api_key.strip():
            raise TriageError("GEMINI_API_KEY is not configured", TriageErrorType.MISSING_API_KEY, 503)

        logger.info(f"🤖 Sending intake for {intake.patient_name} ({intake.barangay}) to {self.model}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=self.build_payload(intake),
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Triage request failed: {e}")
            raise TriageError(f"Triage request failed: {e}", TriageErrorType.INTERNAL_ERROR, 500) from e

        if r.status_code >= 400:
            error = categorize_error(f"Gemini API error {r.status_code}: {r.text}", r.status_code)
            logger.error(f"❌ {error.error_type.value}: {error}")
            raise error

        try:
            body = r.json()
        except ValueError as e:
            raise TriageError("Model returned a non-JSON body", TriageErrorType.PARSE_ERROR, 500) from e

        result = parse_triage_text(_extract_text(body))
        logger.info(f"✅ Triage for {intake.patient_name}: {result.triage_level.value} (score {result.urgency_score})")
        return result


_client: Optional[TriageClient] = None


def get_triage_client() -> TriageClient:
    global _client
    if _client is None:
        _client = TriageClient()
    return _client
