"""Billing and subscription endpoints."""

import logging

import stripe
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.deps import get_current_business, get_current_user, get_user_business
from app.core.errors import ServiceError, SubscriptionError
from app.models.business import Business
from app.models.user import User
from app.schemas.billing import (
    CancelSubscriptionOut,
    CheckoutOut,
    CheckoutRequest,
    InvoiceOut,
    PaymentMethodOut,
    PortalOut,
    PortalRequest,
    SubscriptionStatusOut,
)
from app.services.billing import (
    CANCEL_FAILED,
    cancel_subscription,
    check_subscription,
    create_checkout_session,
    create_portal_session,
    handle_checkout_completed,
    handle_subscription_event,
    list_invoices,
    list_payment_methods,
)

router = APIRouter()
logger = logging.getLogger(__name__)

SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
)


@router.post("/checkout", response_model=CheckoutOut)
async def create_checkout(
    data: CheckoutRequest,
    business: Business = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create a Stripe Checkout session for the business's selected plan."""
    checkout_url = await create_checkout_session(
        db, business, settings,
        success_url=data.success_url,
        cancel_url=data.cancel_url,
    )
    return {"checkout_url": checkout_url}


@router.get("/subscription", response_model=SubscriptionStatusOut)
async def get_subscription(
    business: Business = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await check_subscription(db, business, settings)


@router.post("/cancel", response_model=CancelSubscriptionOut)
async def cancel(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Cancel at period end. Every failure surfaces as the same 500."""
    business = await get_user_business(db, current_user)
    if not business:
        logger.error("Cancel requested by user %s with no business", current_user.id)
        raise SubscriptionError(CANCEL_FAILED)

    try:
        ends_at = await cancel_subscription(db, business, settings)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("Error canceling subscription for business %s: %s", business.id, e)
        raise SubscriptionError(CANCEL_FAILED) from e

    return CancelSubscriptionOut(success=True, ends_at=ends_at)


@router.get("/invoices", response_model=list[InvoiceOut])
async def get_invoices(
    limit: int = Query(10, ge=1, le=100),
    business: Business = Depends(get_current_business),
    settings: Settings = Depends(get_settings),
):
    return list_invoices(business, settings, limit=limit)


@router.get("/payment-methods", response_model=list[PaymentMethodOut])
async def get_payment_methods(
    business: Business = Depends(get_current_business),
    settings: Settings = Depends(get_settings),
):
    return list_payment_methods(business, settings)


@router.post("/portal", response_model=PortalOut)
async def create_portal(
    data: PortalRequest,
    business: Business = Depends(get_current_business),
    settings: Settings = Depends(get_settings),
):
    """Stripe customer portal link for managing cards and invoices."""
    return {"url": create_portal_session(business, settings, return_url=data.return_url)}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Handle Stripe webhook events.

    Verifies the signature when STRIPE_WEBHOOK_SECRET is set. Checkout
    completion links the customer to the business; subscription events
    update its status.
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("Stripe webhook secret not configured — skipping verification")
        event = stripe.Event.construct_from(await request.json(), settings.STRIPE_API_KEY or None)
    else:
        try:
            event = stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
        except ValueError:
            logger.error("Invalid webhook payload")
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            logger.error("Invalid webhook signature")
            raise HTTPException(status_code=400, detail="Invalid signature")

    event_type = event["type"]
    data = event["data"]["object"]
    logger.info("Stripe webhook received: %s", event_type)

    if event_type == "checkout.session.completed":
        await handle_checkout_completed(db, data)
    elif event_type in SUBSCRIPTION_EVENTS:
        status = "canceled" if event_type == "customer.subscription.deleted" else data["status"]
        await handle_subscription_event(
            db,
            subscription_id=data["id"],
            customer_id=data["customer"],
            status=status,
        )
    else:
        logger.info("Unhandled Stripe event type: %s", event_type)

    return {"status": "ok"}
