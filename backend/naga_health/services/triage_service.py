import json
import logging
from datetime import datetime, timezone
from typing import Optional

import redis
from sqlalchemy.orm import Session

from naga_health.models.intake import IntakeData, TriageResult
from naga_health.models.triage import TriageAudit, TriageMessage
from naga_health.services.errors import TriageError
from naga_health.services.facility_service import recommended_facilities
from naga_health.services.redis_client import BookingRepository
from naga_health.services.triage_client import TriageClient
from naga_health.utils.dates import calculate_age

logger = logging.getLogger(__name__)


def _user_text(intake: IntakeData) -> str:
    text = intake.primary_concern
    symptoms = list(intake.symptoms)
    if intake.other_symptom:
        symptoms.append(intake.other_symptom)
    if symptoms:
        text += f" | symptoms: {', '.join(symptoms)}"
    if intake.additional_details:
        text += f" | {intake.additional_details}"
    return text


def _remember_intake(repository: Optional[BookingRepository], intake: IntakeData) -> None:
    if repository is None:
        return
    try:
        repository.save_last_intake(intake)
    except redis.RedisError as e:
        # Only used to prefill the booking form; triage goes ahead without it
        logger.warning(f"⚠️ Could not store last intake for {intake.patient_name}: {e}")


def _audit(
    db: Session,
    intake: IntakeData,
    result: Optional[TriageResult] = None,
    error: Optional[TriageError] = None,
) -> TriageAudit:
    audit = TriageAudit(
        received_at=datetime.now(timezone.utc),
        patient_name=intake.patient_name,
        barangay=intake.barangay,
        age=calculate_age(intake.birth_date),
        concern=intake.primary_concern,
        symptoms=intake.symptoms,
        triage_level=result.triage_level.value if result else None,
        urgency_score=result.urgency_score if result else None,
        explanation=result.explanation if result else None,
        action_plan=result.action_plan if result else None,
        recommended_facility_ids=result.recommended_facility_ids if result else None,
        error_type=error.error_type.value if error else None,
        meta={
            "patient_type": intake.patient_type,
            "is_follow_up": intake.is_follow_up,
            "consultation_mode": intake.consultation_mode.value,
        },
    )
    db.add(audit)
    db.commit()
    db.refresh(audit)

    db.add(TriageMessage(audit_id=audit.id, direction="user", text=_user_text(intake)))
    if result is not None:
        bot_text = json.dumps(result.to_json_dict())
    else:
        bot_text = json.dumps({"error": str(error), "errorType": error.error_type.value})
    db.add(TriageMessage(audit_id=audit.id, direction="bot", text=bot_text))
    db.commit()
    return audit


# ------------------------------- Main Intake Pipeline -------------------------------
async def process_intake(
    intake: IntakeData,
    db: Session,
    client: TriageClient,
    repository: Optional[BookingRepository] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> dict:
    """Classify one intake form.

    The intake is remembered for the booking form, the model is called and
    every attempt is written to the audit tables. Booking state is never
    touched here; a failed triage simply leaves the patient without a
    recommendation.
    """
    logger.info("=== Incoming Intake ===")
    logger.info(f"patient: {intake.patient_name} ({intake.patient_type}, {intake.barangay})")
    logger.info(f"concern: {intake.primary_concern}")
    logger.info(f"symptoms: {intake.symptoms}")
    logger.info("=======================")

    _remember_intake(repository, intake)

    try:
        result = await client.analyze(intake)
    except TriageError as e:
        _audit(db, intake, error=e)
        logger.warning(f"⚠️ Triage failed for {intake.patient_name}: {e.error_type.value}")
        raise

    audit = _audit(db, intake, result=result)

    logger.info("=== Triage Result ===")
    logger.info(f"triage_level: {result.triage_level.value}")
    logger.info(f"urgency_score: {result.urgency_score}")
    logger.info(f"recommended: {result.recommended_facility_ids}")
    logger.info("=====================")

    data = result.to_json_dict()
    data["recommendedFacilities"] = recommended_facilities(result.recommended_facility_ids, lat, lng)
    data["auditId"] = audit.id
    return data
