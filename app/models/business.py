"""Business configuration model.

One row per registered account: profile used to build the AI agent prompt,
the forwarding phone, the AI-assigned number, notification targets and the
Stripe subscription linkage.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from enum import Enum
from app.core.database import Base


class PlanTier(str, Enum):
    STARTER = "starter"
    PROFESSIONAL = "professional"
    BUSINESS = "business"
    ENTERPRISE = "enterprise"


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), unique=True, index=True, nullable=False)
    business_name = Column(String, nullable=False)
    owner_name = Column(String, nullable=True)
    industry = Column(String, nullable=True)
    service_area = Column(String, nullable=True)
    services_offered = Column(JSON, nullable=False, default=list)  # ["roofing", "gutters", ...]

    business_phone = Column(String, nullable=True)  # owner's line, callers get transferred here
    twilio_number = Column(String, index=True, nullable=True)  # AI agent's inbound number
    notification_phone = Column(String, nullable=True)
    notification_email = Column(String, nullable=True)

    selected_plan = Column(String, default=PlanTier.PROFESSIONAL.value)
    stripe_customer_id = Column(String, unique=True, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)
    subscription_status = Column(String, default="inactive")  # inactive, trialing, active, past_due, canceled

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="business")
    calls = relationship("Call", back_populates="business")
