"""Tests for AI number provisioning."""

import logging

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, patch
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_bland_client
from app.main import app
from app.models.business import Business
from app.models.user import User
from app.services.auth import hash_password
from app.services.bland import (
    BlandClient,
    BlandError,
    BlandMissingPaymentMethod,
    BlandSubscriptionNotActive,
)
from app.services.provisioning import build_agent_prompt

OWNED_NUMBER = "+14155550199"
PURCHASED_NUMBER = "+14155550123"


@pytest.fixture
def bland():
    bland = AsyncMock(spec=BlandClient)
    bland.list_inbound_numbers.return_value = []
    bland.purchase_number.return_value = PURCHASED_NUMBER
    bland.configure_inbound.return_value = {"status": "success"}
    app.dependency_overrides[get_bland_client] = lambda: bland
    return bland


@pytest_asyncio.fixture
async def unassigned_business(db, business):
    business.twilio_number = None
    await db.commit()
    return business


@pytest.mark.asyncio
async def test_reuses_assigned_number(client, db, business, auth_headers, bland):
    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "twilio_number": "+14155550100"}
    bland.list_inbound_numbers.assert_not_awaited()
    bland.purchase_number.assert_not_awaited()
    bland.configure_inbound.assert_awaited_once()
    assert bland.configure_inbound.await_args.args[0] == "+14155550100"


@pytest.mark.asyncio
async def test_configures_agent_on_number(client, db, business, auth_headers, bland):
    await client.post("/api/v1/provisioning", headers=auth_headers)

    kwargs = bland.configure_inbound.await_args.kwargs
    assert kwargs["transfer_phone_number"] == "+15550002222"
    assert kwargs["webhook"] == "https://api.test/api/v1/webhooks/bland"
    assert kwargs["record"] is True
    assert "Summit Roofing" in kwargs["prompt"]
    assert "roofing, plumbing" in kwargs["prompt"]


@pytest.mark.asyncio
async def test_reuses_owned_number_without_purchasing(client, db, unassigned_business, auth_headers, bland):
    bland.list_inbound_numbers.return_value = [OWNED_NUMBER]

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["twilio_number"] == OWNED_NUMBER
    bland.purchase_number.assert_not_awaited()

    await db.refresh(unassigned_business)
    assert unassigned_business.twilio_number == OWNED_NUMBER


@pytest.mark.asyncio
async def test_purchases_when_nothing_owned(client, db, unassigned_business, auth_headers, bland):
    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["twilio_number"] == PURCHASED_NUMBER
    bland.purchase_number.assert_awaited_once_with("415")

    await db.refresh(unassigned_business)
    assert unassigned_business.twilio_number == PURCHASED_NUMBER


@pytest.mark.asyncio
async def test_force_new_purchases_even_when_assigned(client, db, business, auth_headers, bland):
    resp = await client.post("/api/v1/provisioning", json={"forceNew": True}, headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["twilio_number"] == PURCHASED_NUMBER
    bland.list_inbound_numbers.assert_not_awaited()
    bland.purchase_number.assert_awaited_once()

    await db.refresh(business)
    assert business.twilio_number == PURCHASED_NUMBER


@pytest.mark.asyncio
async def test_subscription_not_active_returns_402(client, db, unassigned_business, auth_headers, bland):
    bland.purchase_number.side_effect = BlandSubscriptionNotActive("Bland API error (400): subscription_not_active")

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 402
    body = resp.json()
    assert body["code"] == "BLAND_SUBSCRIPTION_REQUIRED"
    assert "https://app.bland.ai/dashboard/billing" in body["error"]
    bland.configure_inbound.assert_not_awaited()

    await db.refresh(unassigned_business)
    assert unassigned_business.twilio_number is None


@pytest.mark.asyncio
async def test_missing_payment_method_falls_back_to_owned_number(
    client, db, unassigned_business, auth_headers, bland
):
    bland.list_inbound_numbers.side_effect = [[], [OWNED_NUMBER]]
    bland.purchase_number.side_effect = BlandMissingPaymentMethod("Bland API error (400): missing_payment_method")

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["twilio_number"] == OWNED_NUMBER
    assert bland.list_inbound_numbers.await_count == 2


@pytest.mark.asyncio
async def test_missing_payment_method_with_nothing_owned_returns_402(
    client, db, unassigned_business, auth_headers, bland
):
    bland.purchase_number.side_effect = BlandMissingPaymentMethod("Bland API error (400): missing_payment_method")

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 402
    assert resp.json()["code"] == "BLAND_MISSING_PAYMENT_METHOD"
    bland.configure_inbound.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_vendor_error_returns_500(client, db, unassigned_business, auth_headers, bland):
    bland.list_inbound_numbers.side_effect = BlandError("Bland API error (503): unavailable")

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"].startswith("Failed to acquire phone number")
    assert "code" not in body


@pytest.mark.asyncio
async def test_configure_failure_does_not_save_number(client, db, unassigned_business, auth_headers, bland):
    bland.configure_inbound.side_effect = BlandError("Bland API error (500): boom")

    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 500
    await db.refresh(unassigned_business)
    assert unassigned_business.twilio_number is None


@pytest.mark.asyncio
async def test_save_failure_returns_500_and_logs_orphaned_number(
    client, db, unassigned_business, auth_headers, bland, caplog
):
    business_id = str(unassigned_business.id)
    failing_commit = AsyncMock(side_effect=OperationalError("UPDATE businesses", {}, Exception("disk full")))

    with caplog.at_level(logging.ERROR, logger="app.services.provisioning"), \
         patch.object(AsyncSession, "commit", failing_commit):
        resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json()["error"].startswith("Failed to save phone number")
    bland.configure_inbound.assert_awaited_once()

    orphan_logs = [r.getMessage() for r in caplog.records if "configured but not saved" in r.getMessage()]
    assert len(orphan_logs) == 1
    assert PURCHASED_NUMBER in orphan_logs[0]
    assert business_id in orphan_logs[0]

    await db.refresh(unassigned_business)
    assert unassigned_business.twilio_number is None


@pytest.mark.asyncio
async def test_reusing_number_held_by_other_business_logs_warning(
    client, db, unassigned_business, auth_headers, bland, caplog
):
    other_owner = User(email="bayside@example.com", hashed_password=hash_password("testpass123"))
    db.add(other_owner)
    await db.commit()
    other = Business(
        user_id=other_owner.id,
        business_name="Bayside Plumbing",
        twilio_number=OWNED_NUMBER,
    )
    db.add(other)
    await db.commit()
    bland.list_inbound_numbers.return_value = [OWNED_NUMBER]

    with caplog.at_level(logging.WARNING, logger="app.services.provisioning"):
        resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["twilio_number"] == OWNED_NUMBER
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any(str(other.id) in msg and str(unassigned_business.id) in msg for msg in warnings)


@pytest.mark.asyncio
async def test_no_warning_when_number_is_unshared(client, db, unassigned_business, auth_headers, bland, caplog):
    bland.list_inbound_numbers.return_value = [OWNED_NUMBER]

    with caplog.at_level(logging.WARNING, logger="app.services.provisioning"):
        resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 200
    assert not [r for r in caplog.records if "already assigned" in r.getMessage()]


@pytest.mark.asyncio
async def test_no_business_returns_500(client, user, auth_headers, bland):
    resp = await client.post("/api/v1/provisioning", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Business not found"}
    bland.purchase_number.assert_not_awaited()


@pytest.mark.asyncio
async def test_requires_auth(client, bland):
    resp = await client.post("/api/v1/provisioning")
    assert resp.status_code in (401, 403)


def test_agent_prompt_defaults():
    from app.models.business import Business

    prompt = build_agent_prompt(Business(business_name="Ace Plumbing", services_offered=[]))
    assert "Ace Plumbing" in prompt
    assert "General services" in prompt
    assert "8. Thank them" in prompt
