"""Tests for the Bland call intake and Twilio voice webhooks."""

import pytest
from unittest.mock import patch, AsyncMock, MagicMock
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from twilio.base.exceptions import TwilioRestException

from app.core.deps import get_bland_client
from app.main import app
from app.models.call import Call
from app.services.bland import BlandClient, BlandError

EXAMPLE_TEXT = (
    "Hi this is John Smith, my number is 555-867-5309, "
    "I need emergency roofing repair at 12 Elm St"
)


def bland_payload(**overrides) -> dict:
    payload = {
        "call_id": "bland-call-1",
        "from": "+15551234567",
        "to": "+14155550100",
        "call_length": 2.5,
        "recording_url": "https://recordings.example/bland-call-1.mp3",
        "transcript": [
            {"user": "assistant", "text": "Thanks for calling Summit Roofing, who am I speaking with?"},
            {"user": "user", "text": EXAMPLE_TEXT},
        ],
    }
    payload.update(overrides)
    return payload


async def all_calls(db):
    result = await db.execute(select(Call))
    return result.scalars().all()


@pytest.mark.asyncio
async def test_bland_webhook_saves_call_and_notifies(client, db, business):
    with patch("app.services.calls.send_call_notification", new_callable=AsyncMock, return_value=True) as mock_sms:
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload())

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True

    calls = await all_calls(db)
    assert len(calls) == 1
    call = calls[0]
    assert str(call.id) == data["call_id"]
    assert call.business_id == business.id
    assert call.bland_call_id == "bland-call-1"
    assert call.customer_name == "John Smith"
    assert call.customer_phone == "555-867-5309"
    assert call.service_needed == "roofing"
    assert call.urgency == "asap"
    assert call.customer_address == "12 Elm St"
    assert call.call_status == "completed"
    assert call.call_duration_seconds == 150
    assert call.call_recording_url == "https://recordings.example/bland-call-1.mp3"
    assert call.call_transcript[1]["text"] == EXAMPLE_TEXT

    mock_sms.assert_awaited_once()
    assert mock_sms.await_args.kwargs["to"] == "+15550001111"
    assert mock_sms.await_args.kwargs["details"].customer_name == "John Smith"


@pytest.mark.asyncio
async def test_bland_webhook_falls_back_to_caller_number(client, db, business):
    payload = bland_payload(transcript="Hi, I need plumbing whenever you can")
    with patch("app.services.calls.send_call_notification", new_callable=AsyncMock, return_value=True):
        resp = await client.post("/api/v1/webhooks/bland", json=payload)

    assert resp.status_code == 200
    call = (await all_calls(db))[0]
    assert call.customer_phone == "+15551234567"
    assert call.customer_name == "Unknown"
    assert call.service_needed == "plumbing"
    assert call.urgency == "flexible"


@pytest.mark.asyncio
async def test_bland_webhook_unknown_number_returns_500(client, db, business):
    with patch("app.services.calls.send_call_notification", new_callable=AsyncMock) as mock_sms:
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload(to="+19995550000"))

    assert resp.status_code == 500
    assert resp.json() == {"error": "Business not found"}
    assert await all_calls(db) == []
    mock_sms.assert_not_awaited()


@pytest.mark.asyncio
async def test_bland_webhook_redelivery_creates_second_row(client, db, business):
    with patch("app.services.calls.send_call_notification", new_callable=AsyncMock, return_value=True):
        first = await client.post("/api/v1/webhooks/bland", json=bland_payload())
        second = await client.post("/api/v1/webhooks/bland", json=bland_payload())

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["call_id"] != second.json()["call_id"]
    assert len(await all_calls(db)) == 2


@pytest.mark.asyncio
async def test_bland_webhook_sms_exception_still_succeeds(client, db, business):
    with patch("app.services.calls.send_call_notification",
               new_callable=AsyncMock, side_effect=RuntimeError("twilio down")):
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload())

    assert resp.status_code == 200
    assert len(await all_calls(db)) == 1


@pytest.mark.asyncio
async def test_bland_webhook_twilio_rejection_still_succeeds(client, db, business, use_settings):
    use_settings(
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="+15550009999",
    )
    twilio_client = MagicMock()
    twilio_client.messages.create.side_effect = TwilioRestException(
        400, "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json", msg="Invalid 'To' number"
    )

    with patch("app.services.sms._get_twilio_client", return_value=twilio_client):
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload())

    assert resp.status_code == 200
    assert len(await all_calls(db)) == 1
    twilio_client.messages.create.assert_called_once()
    assert twilio_client.messages.create.call_args.kwargs["from_"] == "+15550009999"
    assert twilio_client.messages.create.call_args.kwargs["to"] == "+15550001111"


@pytest.mark.asyncio
async def test_bland_webhook_insert_failure_returns_500_without_sms(client, db, business):
    failing_commit = AsyncMock(side_effect=OperationalError("INSERT INTO calls", {}, Exception("disk full")))
    with patch.object(AsyncSession, "commit", failing_commit), \
         patch("app.services.calls.send_call_notification", new_callable=AsyncMock) as mock_sms:
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload())

    assert resp.status_code == 500
    assert resp.json()["error"].startswith("Failed to save call")
    assert await all_calls(db) == []
    mock_sms.assert_not_awaited()


@pytest.mark.asyncio
async def test_bland_webhook_null_turn_text_is_skipped(client, db, business):
    transcript = [
        {"user": "assistant", "text": None},
        {"user": "user", "text": EXAMPLE_TEXT},
    ]
    with patch("app.services.calls.send_call_notification", new_callable=AsyncMock, return_value=True):
        resp = await client.post("/api/v1/webhooks/bland", json=bland_payload(transcript=transcript))

    assert resp.status_code == 200
    call = (await all_calls(db))[0]
    assert call.customer_name == "John Smith"
    assert call.service_needed == "roofing"


@pytest.mark.asyncio
async def test_bland_webhook_non_json_body_returns_500(client, db, business):
    resp = await client.post(
        "/api/v1/webhooks/bland",
        content=b"call_id=abc&to=+14155550100",
        headers={"content-type": "application/json"},
    )

    assert resp.status_code == 500
    assert resp.json()["error"].startswith("Invalid webhook payload")
    assert await all_calls(db) == []


@pytest.mark.asyncio
async def test_bland_webhook_wrong_field_type_returns_500(client, db, business):
    resp = await client.post("/api/v1/webhooks/bland", json=bland_payload(call_length="two minutes"))

    assert resp.status_code == 500
    assert "error" in resp.json()
    assert "detail" not in resp.json()
    assert await all_calls(db) == []


@pytest.mark.asyncio
async def test_twilio_voice_hands_call_to_bland(client):
    bland = AsyncMock(spec=BlandClient)
    bland.start_inbound_call.return_value = {"call_id": "bland-xyz", "status": "success"}
    app.dependency_overrides[get_bland_client] = lambda: bland

    resp = await client.post("/api/v1/webhooks/twilio/voice", data={
        "From": "+15551234567",
        "To": "+14155550100",
        "CallSid": "CA123",
    })

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/xml")
    assert "Please hold while we connect you." in resp.text
    assert "Polly.Joanna" in resp.text
    assert "<Dial>bland-xyz</Dial>" in resp.text
    bland.start_inbound_call.assert_awaited_once_with("+15551234567", "+14155550100", "CA123")


@pytest.mark.asyncio
async def test_twilio_voice_bland_failure_apologises_and_hangs_up(client):
    bland = AsyncMock(spec=BlandClient)
    bland.start_inbound_call.side_effect = BlandError("Bland API error (500): boom")
    app.dependency_overrides[get_bland_client] = lambda: bland

    resp = await client.post("/api/v1/webhooks/twilio/voice", data={
        "From": "+15551234567",
        "To": "+14155550100",
        "CallSid": "CA124",
    })

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/xml")
    assert "unable to take your call" in resp.text
    assert "Hangup" in resp.text
    assert "<Dial>" not in resp.text
