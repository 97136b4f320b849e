"""Pydantic schemas for Call API responses and Bland webhook payloads."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field


class TranscriptTurn(BaseModel):
    """One utterance. Bland tags the speaker as ``user``; ``speaker`` is accepted too."""
    speaker: str | None = None
    user: str | None = None
    text: str | None = None

    class Config:
        extra = "allow"


class BlandWebhookPayload(BaseModel):
    """Relevant fields from Bland's post-call webhook."""
    call_id: str | None = None
    from_number: str | None = Field(None, alias="from")
    to_number: str | None = Field(None, alias="to")
    call_length: float | None = None  # minutes
    recording_url: str | None = None
    transcript: list[TranscriptTurn] | str | None = None

    class Config:
        populate_by_name = True
        extra = "allow"

    @property
    def duration_seconds(self) -> int:
        if not self.call_length or self.call_length < 0:
            return 0
        return round(self.call_length * 60)

    def raw_transcript(self) -> list[dict] | str | None:
        if isinstance(self.transcript, list):
            return [turn.model_dump(exclude_none=True) for turn in self.transcript]
        return self.transcript


class CallDetails(BaseModel):
    """Caller details pulled out of a transcript."""
    customer_name: str
    customer_phone: str
    service_needed: str
    customer_address: str = ""
    urgency: str


class CallIntakeResponse(BaseModel):
    success: bool = True
    call_id: UUID


class CallOut(BaseModel):
    """Response schema for call endpoints."""
    id: UUID
    business_id: UUID
    bland_call_id: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    service_needed: str | None = None
    urgency: str | None = None
    call_status: str | None = None
    call_duration_seconds: int | None = None
    call_transcript: list[dict] | str | None = None
    call_recording_url: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
