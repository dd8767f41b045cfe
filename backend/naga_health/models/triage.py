# naga_health/models/triage.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from naga_health.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class TriageAudit(Base):
    """One row per intake sent to the triage model, successful or not."""
    __tablename__ = "triage_audit"
    id = Column(Integer, primary_key=True, index=True)
    received_at = Column(DateTime, default=_utcnow, nullable=False)
    patient_name = Column(String(200), nullable=False)
    barangay = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    concern = Column(Text, nullable=False)
    symptoms = Column(JSON, nullable=True)
    triage_level = Column(String(20), nullable=True)
    urgency_score = Column(Float, nullable=True)
    explanation = Column(Text, nullable=True)
    action_plan = Column(Text, nullable=True)
    recommended_facility_ids = Column(JSON, nullable=True)
    error_type = Column(String(50), nullable=True)
    meta = Column(JSON, nullable=True)

    messages = relationship("TriageMessage", back_populates="audit", cascade="all, delete-orphan")


class TriageMessage(Base):
    __tablename__ = "triage_message"
    id = Column(Integer, primary_key=True, index=True)
    audit_id = Column(Integer, ForeignKey("triage_audit.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    direction = Column(String(10), nullable=False)  # "user" or "bot"
    text = Column(Text, nullable=False)

    audit = relationship("TriageAudit", back_populates="messages")
