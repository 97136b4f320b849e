from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from enum import Enum
from app.core.database import Base


class Urgency(str, Enum):
    ASAP = "asap"
    WITHIN_DAY = "within_day"
    WITHIN_WEEK = "within_week"
    FLEXIBLE = "flexible"


class Call(Base):
    __tablename__ = "calls"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), index=True, nullable=False)
    bland_call_id = Column(String, index=True, nullable=True)  # not unique: redelivery makes a new row
    customer_name = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    customer_address = Column(String, nullable=True)
    service_needed = Column(String, nullable=True)
    urgency = Column(String, default=Urgency.FLEXIBLE.value)
    call_status = Column(String, default="completed")
    call_duration_seconds = Column(Integer, default=0)
    call_transcript = Column(JSON, nullable=True)  # [{"speaker": "...", "text": "..."}, ...]
    call_recording_url = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    business = relationship("Business", back_populates="calls")
