# naga_health/endpoints/triage.py
import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from naga_health.database import get_db
from naga_health.models.intake import (
    USER_MESSAGES,
    IntakeData,
    TriageErrorOut,
    TriageErrorType,
    TriageResponseOut,
)
from naga_health.services.errors import TriageError
from naga_health.services.redis_client import BookingRepository, get_repository
from naga_health.services.triage_client import TriageClient, get_triage_client
from naga_health.services.triage_service import process_intake

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/triage", tags=["Triage"])


def _error_response(error: TriageError) -> JSONResponse:
    body = TriageErrorOut(error=USER_MESSAGES[error.error_type], errorType=error.error_type)
    return JSONResponse(status_code=error.status_code, content=body.model_dump(mode="json"))


@router.post("/analyze")
async def analyze_intake(
    payload: dict = Body(default=None),
    db: Session = Depends(get_db),
    client: TriageClient = Depends(get_triage_client),
    repository: BookingRepository = Depends(get_repository),
):
    if not payload:
        return _error_response(TriageError("Request body is required", TriageErrorType.INVALID_REQUEST, 400))

    try:
        intake = IntakeData.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"⚠️ Invalid intake payload: {e.error_count()} error(s)")
        return _error_response(TriageError(str(e), TriageErrorType.INVALID_REQUEST, 400))

    try:
        data = await process_intake(
            intake, db, client, repository, lat=payload.get("lat"), lng=payload.get("lng")
        )
    except TriageError as e:
        return _error_response(e)

    return TriageResponseOut(data=data).model_dump(mode="json")
