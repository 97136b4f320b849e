"""Stripe billing service: checkout, subscription sync/cancel, invoices, webhooks."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

import stripe
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import SubscriptionError
from app.models.business import Business

logger = logging.getLogger(__name__)

CANCEL_FAILED = "Unable to cancel subscription"


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Key lookup that works for StripeObjects and plain dicts alike."""
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def current_period_end(subscription: Any) -> Optional[datetime]:
    """Period end of a subscription (top-level on older API versions, per item on newer)."""
    ts = _get(subscription, "current_period_end")
    if ts is None:
        items = _get(_get(subscription, "items", {}), "data", [])
        ts = _get(items[0], "current_period_end") if items else None
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _require_stripe(settings: Settings) -> None:
    if not settings.STRIPE_API_KEY:
        raise SubscriptionError("Billing is not configured — please contact support", status_code=503)


async def create_checkout_session(
    db: AsyncSession,
    business: Business,
    settings: Settings,
    success_url: str,
    cancel_url: str,
) -> str:
    """Create a subscription Checkout session for the business's selected plan."""
    _require_stripe(settings)
    price_id = settings.stripe_price_for(business.selected_plan)
    if not price_id:
        raise SubscriptionError(
            f"Plan '{business.selected_plan}' is not available for self-serve checkout",
            status_code=400,
        )

    try:
        if not business.stripe_customer_id:
            customer = stripe.Customer.create(
                api_key=settings.STRIPE_API_KEY,
                email=business.notification_email or None,
                name=business.business_name,
                metadata={"business_id": str(business.id)},
            )
            business.stripe_customer_id = customer["id"]
            await db.commit()
            logger.info("Created Stripe customer %s for business %s", customer["id"], business.id)

        session = stripe.checkout.Session.create(
            api_key=settings.STRIPE_API_KEY,
            customer=business.stripe_customer_id,
            line_items=[{"price": price_id, "quantity": 1}],
            mode="subscription",
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"business_id": str(business.id), "plan": business.selected_plan},
        )
    except stripe.StripeError as e:
        logger.error("Stripe error creating checkout session: %s", e)
        raise SubscriptionError(f"Failed to create checkout session: {e.user_message or e}") from e

    logger.info("Created checkout session %s for business %s", session["id"], business.id)
    return session["url"]


async def check_subscription(db: AsyncSession, business: Business, settings: Settings) -> dict:
    """Sync the business's subscription state from Stripe and report it."""
    if not settings.STRIPE_API_KEY or not business.stripe_customer_id:
        return {
            "subscribed": business.subscription_status in ("active", "trialing"),
            "status": business.subscription_status,
            "plan": business.selected_plan,
            "current_period_end": None,
        }

    try:
        subscriptions = stripe.Subscription.list(
            api_key=settings.STRIPE_API_KEY,
            customer=business.stripe_customer_id,
            status="all",
            limit=1,
        )
    except stripe.StripeError as e:
        logger.error("Stripe error checking subscription for business %s: %s", business.id, e)
        raise SubscriptionError("Failed to verify subscription") from e

    data = _get(subscriptions, "data", [])
    if not data:
        return {
            "subscribed": False,
            "status": business.subscription_status,
            "plan": business.selected_plan,
            "current_period_end": None,
        }

    subscription = data[0]
    business.stripe_subscription_id = subscription["id"]
    business.subscription_status = subscription["status"]
    await db.commit()

    period_end = current_period_end(subscription)
    return {
        "subscribed": subscription["status"] in ("active", "trialing"),
        "status": subscription["status"],
        "plan": business.selected_plan,
        "current_period_end": period_end.isoformat() if period_end else None,
    }


async def cancel_subscription(db: AsyncSession, business: Business, settings: Settings) -> datetime:
    """Cancel at period end. Returns when service actually stops."""
    if not business.stripe_subscription_id:
        logger.error("No active subscription found for business %s", business.id)
        raise SubscriptionError(CANCEL_FAILED)

    try:
        subscription = stripe.Subscription.modify(
            business.stripe_subscription_id,
            api_key=settings.STRIPE_API_KEY,
            cancel_at_period_end=True,
        )
    except stripe.StripeError as e:
        logger.error("Stripe error canceling subscription %s: %s", business.stripe_subscription_id, e)
        raise SubscriptionError(CANCEL_FAILED) from e

    business.subscription_status = "canceled"
    await db.commit()

    ends_at = current_period_end(subscription) or datetime.now(timezone.utc)
    logger.info("Subscription %s canceled for business %s, ends %s",
                business.stripe_subscription_id, business.id, ends_at.isoformat())
    return ends_at


def list_invoices(business: Business, settings: Settings, limit: int = 10) -> list[dict]:
    if not settings.STRIPE_API_KEY or not business.stripe_customer_id:
        return []
    try:
        invoices = stripe.Invoice.list(
            api_key=settings.STRIPE_API_KEY,
            customer=business.stripe_customer_id,
            limit=limit,
        )
    except stripe.StripeError as e:
        logger.error("Error fetching invoices for business %s: %s", business.id, e)
        raise SubscriptionError("Failed to fetch invoices") from e

    return [
        {
            "id": invoice["id"],
            "date": datetime.fromtimestamp(invoice["created"], tz=timezone.utc).strftime("%Y-%m-%d"),
            "amount": _get(invoice, "amount_paid", 0) / 100,
            "status": _get(invoice, "status", "unknown"),
            "invoice_url": _get(invoice, "hosted_invoice_url"),
        }
        for invoice in _get(invoices, "data", [])
    ]


def list_payment_methods(business: Business, settings: Settings) -> list[dict]:
    if not settings.STRIPE_API_KEY or not business.stripe_customer_id:
        return []
    try:
        methods = stripe.PaymentMethod.list(
            api_key=settings.STRIPE_API_KEY,
            customer=business.stripe_customer_id,
            type="card",
        )
    except stripe.StripeError as e:
        logger.error("Error fetching payment methods for business %s: %s", business.id, e)
        raise SubscriptionError("Failed to fetch payment methods") from e

    result = []
    for method in _get(methods, "data", []):
        card = _get(method, "card", {})
        result.append({
            "id": method["id"],
            "brand": _get(card, "brand"),
            "last4": _get(card, "last4"),
            "exp_month": _get(card, "exp_month"),
            "exp_year": _get(card, "exp_year"),
        })
    return result


def create_portal_session(business: Business, settings: Settings, return_url: str) -> str:
    _require_stripe(settings)
    if not business.stripe_customer_id:
        raise SubscriptionError("No billing account found — please subscribe first", status_code=400)
    try:
        session = stripe.billing_portal.Session.create(
            api_key=settings.STRIPE_API_KEY,
            customer=business.stripe_customer_id,
            return_url=return_url,
        )
    except stripe.StripeError as e:
        logger.error("Error creating portal session: %s", e)
        raise SubscriptionError("Failed to create portal session") from e
    return session["url"]


async def handle_checkout_completed(db: AsyncSession, session: Any) -> None:
    """Link the Stripe customer/subscription from a completed checkout to its business."""
    business_id = _get(_get(session, "metadata", {}), "business_id")
    if not business_id:
        logger.warning("checkout.session.completed without business_id metadata")
        return

    try:
        business_uuid = UUID(business_id)
    except ValueError:
        logger.warning("Malformed business_id in checkout metadata: %s", business_id)
        return

    result = await db.execute(select(Business).where(Business.id == business_uuid))
    business = result.scalar_one_or_none()
    if not business:
        logger.warning("Business not found for checkout session: %s", business_id)
        return

    business.stripe_customer_id = _get(session, "customer") or business.stripe_customer_id
    business.stripe_subscription_id = _get(session, "subscription") or business.stripe_subscription_id
    business.subscription_status = "active"
    await db.commit()
    logger.info("Checkout completed for business %s", business.id)


async def handle_subscription_event(
    db: AsyncSession,
    subscription_id: str,
    customer_id: str,
    status: str,
) -> None:
    """Apply a customer.subscription.* status change to the owning business."""
    result = await db.execute(
        select(Business).where(Business.stripe_customer_id == customer_id)
    )
    business = result.scalar_one_or_none()

    if not business:
        logger.warning("Business not found for Stripe customer %s", customer_id)
        return

    business.stripe_subscription_id = subscription_id
    business.subscription_status = status
    await db.commit()
    logger.info("Subscription %s for business %s — status: %s", subscription_id, business.id, status)
