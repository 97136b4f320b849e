"""Twilio SMS notifications.

Sends the new-lead summary to a business's notification phone after a call
has been saved. Sending is best-effort: every failure is logged and reported
as ``False``, never raised.
"""

import logging
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from app.core.config import Settings
from app.models.call import Urgency
from app.schemas.call import CallDetails

logger = logging.getLogger(__name__)

URGENCY_MARKERS = {
    Urgency.ASAP.value: "🔴",
    Urgency.WITHIN_DAY.value: "🟡",
}


def _get_twilio_client(settings: Settings) -> Client:
    return Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)


def format_call_summary(details: CallDetails, notes: str | None = None) -> str:
    """Body of the owner SMS for a captured call."""
    marker = URGENCY_MARKERS.get(details.urgency, "🟢")
    parts = [
        "🔔 New call from customer",
        "",
        details.customer_name or "Unknown",
        details.customer_phone,
        "",
        f"Service: {details.service_needed or 'Not specified'}",
    ]
    if details.customer_address:
        parts.append(f"Address: {details.customer_address}")
    parts.append(f"Urgency: {details.urgency.upper()} {marker}")
    parts.append("")
    parts.append(f"Notes: {notes}" if notes else "Call back to schedule appointment")
    return "\n".join(parts)


async def send_call_notification(
    settings: Settings,
    to: str | None,
    details: CallDetails,
) -> bool:
    """Text the call summary to the business from the platform number."""
    if not to:
        logger.warning("No notification phone on business — skipping call SMS")
        return False
    return await send_sms(settings, to, format_call_summary(details))


async def send_sms(settings: Settings, to: str, body: str) -> bool:
    """Send an SMS via Twilio. Returns True on success."""
    if not all([settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN, settings.TWILIO_PHONE_NUMBER]):
        logger.warning("Twilio credentials not configured — skipping SMS to %s", to)
        return False

    try:
        client = _get_twilio_client(settings)
        message = client.messages.create(body=body, from_=settings.TWILIO_PHONE_NUMBER, to=to)
        logger.info("SMS sent to %s — SID: %s", to, message.sid)
        return True
    except TwilioRestException as e:
        logger.error("Twilio error sending SMS to %s: %s", to, e)
        return False
    except Exception as e:
        logger.error("Unexpected error sending SMS to %s: %s", to, e)
        return False
