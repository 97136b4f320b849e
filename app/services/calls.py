"""Call intake processing.

Turns a Bland post-call webhook into a saved Call row plus an SMS to the
business. The insert is the only durable effect; the SMS is best-effort and
never rolls the insert back. Redelivered webhooks produce new rows.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import BusinessNotFoundError, ServiceError
from app.models.business import Business
from app.models.call import Call
from app.schemas.call import BlandWebhookPayload, CallDetails
from app.services.extraction import TranscriptExtractor
from app.services.sms import send_call_notification

logger = logging.getLogger(__name__)


async def lookup_business_by_number(db: AsyncSession, to_number: str | None) -> Business | None:
    """Find the business whose AI number received the call (exact match)."""
    if not to_number:
        return None
    result = await db.execute(select(Business).where(Business.twilio_number == to_number))
    return result.scalars().first()


async def save_call(
    db: AsyncSession,
    business: Business,
    payload: BlandWebhookPayload,
    details: CallDetails,
) -> Call:
    call = Call(
        business_id=business.id,
        bland_call_id=payload.call_id,
        customer_name=details.customer_name,
        customer_phone=details.customer_phone,
        customer_address=details.customer_address,
        service_needed=details.service_needed,
        urgency=details.urgency,
        call_status="completed",
        call_duration_seconds=payload.duration_seconds,
        call_transcript=payload.raw_transcript(),
        call_recording_url=payload.recording_url,
    )
    db.add(call)
    await db.commit()
    await db.refresh(call)
    logger.info("Call saved: %s for business %s (urgency=%s)", call.id, business.id, call.urgency)
    return call


async def process_bland_webhook(
    db: AsyncSession,
    payload: BlandWebhookPayload,
    settings: Settings,
    extractor: TranscriptExtractor,
) -> Call:
    """Lookup → extract → insert → notify. Raises ServiceError on lookup/insert failure."""
    business = await lookup_business_by_number(db, payload.to_number)
    if not business:
        logger.error("Business not found for number: %s", payload.to_number)
        raise BusinessNotFoundError()

    details = extractor.extract(
        payload.transcript,
        business.services_offered or [],
        fallback_phone=payload.from_number,
    )

    try:
        call = await save_call(db, business, payload, details)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to save call %s: %s", payload.call_id, e)
        raise ServiceError(f"Failed to save call: {e}") from e

    try:
        sent = await send_call_notification(
            settings,
            to=business.notification_phone,
            details=details,
        )
        if not sent:
            logger.error("Call %s saved but SMS to %s was not sent", call.id, business.notification_phone)
    except Exception as e:
        logger.error("SMS for call %s failed: %s", call.id, e)

    return call
