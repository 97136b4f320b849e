"""Bland.ai and Twilio webhook handlers.

Thin HTTP layer — call intake logic lives in app.services.calls.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.twiml.voice_response import VoiceResponse

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.deps import get_bland_client, get_transcript_extractor
from app.core.errors import ServiceError
from app.schemas.call import BlandWebhookPayload, CallIntakeResponse
from app.services.bland import BlandClient
from app.services.calls import process_bland_webhook
from app.services.extraction import TranscriptExtractor

router = APIRouter()
logger = logging.getLogger(__name__)

TWIML_VOICE = "Polly.Joanna"


@router.post("/bland", response_model=CallIntakeResponse)
async def bland_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    extractor: TranscriptExtractor = Depends(get_transcript_extractor),
):
    """Receive Bland's post-call event: save the lead, text the business.

    A malformed body is answered with ``500 {"error"}`` like any other failure.
    """
    try:
        payload = BlandWebhookPayload.model_validate(await request.json())
    except ValueError as e:
        logger.error("Invalid Bland webhook payload: %s", e)
        raise ServiceError(f"Invalid webhook payload: {e}") from e

    logger.info(
        "Bland webhook: call_id=%s from=%s to=%s",
        payload.call_id, payload.from_number, payload.to_number,
    )
    try:
        call = await process_bland_webhook(db, payload, settings, extractor)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("Error in Bland webhook: %s", e)
        raise ServiceError(str(e) or "Unknown error") from e

    return {"success": True, "call_id": call.id}


@router.post("/twilio/voice")
async def twilio_voice_webhook(
    request: Request,
    bland: BlandClient = Depends(get_bland_client),
):
    """Inbound call on a Twilio number: hand it to Bland and answer with TwiML."""
    form = await request.form()
    from_number = form.get("From", "")
    to_number = form.get("To", "")
    call_sid = form.get("CallSid")
    logger.info("Incoming call from %s to %s (CallSid=%s)", from_number, to_number, call_sid)

    response = VoiceResponse()
    try:
        bland_call = await bland.start_inbound_call(from_number, to_number, call_sid)
        logger.info("Bland call initiated: %s", bland_call.get("call_id"))
        response.say("Please hold while we connect you.", voice=TWIML_VOICE)
        response.dial(bland_call.get("call_id") or from_number)
    except Exception as e:
        logger.error("Error routing call %s to Bland: %s", call_sid, e)
        response = VoiceResponse()
        response.say(
            "We're sorry, but we're unable to take your call right now. Please try again later.",
            voice=TWIML_VOICE,
        )
        response.hangup()

    return Response(content=str(response), media_type="text/xml")
