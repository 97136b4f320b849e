"""Pydantic schemas for Business profile, onboarding and settings."""

import re
from datetime import datetime
from uuid import UUID
from typing import Annotated
from pydantic import AfterValidator, BaseModel, Field
from app.models.business import PlanTier


def to_e164(value: str) -> str:
    """Normalise a US phone number to E.164 (+1XXXXXXXXXX)."""
    digits = re.sub(r"\D", "", value)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    raise ValueError("Phone number must be a 10-digit US number")


E164Phone = Annotated[str, AfterValidator(to_e164)]


class BusinessCreate(BaseModel):
    """Onboarding wizard submission."""
    business_name: str = Field(min_length=1)
    owner_name: str | None = None
    industry: str | None = None
    service_area: str | None = None
    services_offered: list[str] = []
    business_phone: E164Phone
    notification_phone: E164Phone
    notification_email: str | None = None
    selected_plan: PlanTier = PlanTier.PROFESSIONAL


class BusinessUpdate(BaseModel):
    """Settings page saves — only the fields sent are changed."""
    business_name: str | None = None
    owner_name: str | None = None
    industry: str | None = None
    service_area: str | None = None
    services_offered: list[str] | None = None
    business_phone: E164Phone | None = None
    notification_phone: E164Phone | None = None
    notification_email: str | None = None
    selected_plan: PlanTier | None = None


class BusinessOut(BaseModel):
    id: UUID
    user_id: UUID
    business_name: str
    owner_name: str | None = None
    industry: str | None = None
    service_area: str | None = None
    services_offered: list[str] = []
    business_phone: str | None = None
    twilio_number: str | None = None
    notification_phone: str | None = None
    notification_email: str | None = None
    selected_plan: str | None = None
    subscription_status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProvisionRequest(BaseModel):
    force_new: bool = Field(False, alias="forceNew")

    class Config:
        populate_by_name = True


class ProvisionResponse(BaseModel):
    success: bool = True
    twilio_number: str
