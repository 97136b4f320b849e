"""Phone number provisioning for a business's AI agent.

Acquires a Bland number (reuse before purchase), registers the agent prompt,
transfer number and webhook on it, then saves the number on the Business.
The final DB write is the commit point: if it fails, the number stays on the
Bland account and is picked up again by the next non-forced provisioning run.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings
from app.core.errors import (
    MissingPaymentMethodError,
    ProvisioningError,
    SubscriptionRequiredError,
)
from app.models.business import Business
from app.services.bland import (
    BlandClient,
    BlandError,
    BlandMissingPaymentMethod,
    BlandSubscriptionNotActive,
)

logger = logging.getLogger(__name__)

AGENT_PROMPT_TEMPLATE = """You are an AI voicemail assistant for {name}, a {industry} business serving {service_area}.

Your job is to answer calls when the business owner is busy and collect customer information. Be friendly, professional, and efficient.

Services offered: {services}

When a customer calls:
1. Greet them warmly and let them know you're the AI assistant
2. Ask for their name
3. Ask for their phone number (confirm it back to them)
4. Ask what service they need
5. Ask for their address if it's a service that requires a visit
6. Ask about urgency (ASAP, within a day, within a week, flexible)
7. Ask if they have any additional notes or details
8. Thank them and let them know {name} will call them back soon

Keep the conversation natural and brief. If the customer seems in a hurry, prioritize getting their phone number and service needed."""


def build_agent_prompt(business: Business) -> str:
    """Instruction prompt for the Bland inbound agent, from the business profile."""
    return AGENT_PROMPT_TEMPLATE.format(
        name=business.business_name,
        industry=business.industry or "local service",
        service_area=business.service_area or "the local area",
        services=", ".join(business.services_offered or []) or "General services",
    )


def _subscription_required(settings: Settings) -> SubscriptionRequiredError:
    return SubscriptionRequiredError(
        "Your Bland.ai subscription is not active. Activate a plan at "
        f"{settings.BLAND_BILLING_URL} and try again."
    )


def _missing_payment_method(settings: Settings) -> MissingPaymentMethodError:
    return MissingPaymentMethodError(
        "Your Bland.ai account has no payment method on file. Add one at "
        f"{settings.BLAND_BILLING_URL} to purchase a phone number."
    )


async def acquire_number(
    bland: BlandClient,
    business: Business,
    settings: Settings,
    force_new: bool = False,
) -> str:
    """Pick the number to use: assigned → already owned → purchased."""
    if business.twilio_number and not force_new:
        logger.info("Reusing assigned number %s for business %s", business.twilio_number, business.id)
        return business.twilio_number

    try:
        if not force_new:
            owned = await bland.list_inbound_numbers()
            if owned:
                logger.info("Reusing Bland-owned number %s for business %s", owned[0], business.id)
                return owned[0]

        try:
            return await bland.purchase_number(settings.BLAND_AREA_CODE)
        except BlandSubscriptionNotActive as e:
            logger.error("Bland subscription inactive for business %s: %s", business.id, e)
            raise _subscription_required(settings) from e
        except BlandMissingPaymentMethod as e:
            logger.warning("Bland purchase blocked by missing payment method, checking owned numbers")
            owned = await bland.list_inbound_numbers()
            if not owned:
                raise _missing_payment_method(settings) from e
            logger.info("Falling back to Bland-owned number %s for business %s", owned[0], business.id)
            return owned[0]
    except BlandError as e:
        raise ProvisioningError(f"Failed to acquire phone number: {e}") from e


async def find_other_owner(db: AsyncSession, phone_number: str, business_id) -> Business | None:
    """Another business already holding this number, if any."""
    result = await db.execute(
        select(Business).where(Business.twilio_number == phone_number, Business.id != business_id)
    )
    return result.scalars().first()


async def provision_business(
    db: AsyncSession,
    business: Business,
    bland: BlandClient,
    settings: Settings,
    force_new: bool = False,
) -> str:
    """Ensure the business has a configured AI number. Returns the number."""
    business_id = business.id
    logger.info("Provisioning services for business %s (force_new=%s)", business_id, force_new)

    phone_number = await acquire_number(bland, business, settings, force_new=force_new)

    other = await find_other_owner(db, phone_number, business_id)
    if other:
        logger.warning(
            "Number %s is already assigned to business %s; reusing it for business %s",
            phone_number, other.id, business_id,
        )

    try:
        await bland.configure_inbound(
            phone_number,
            prompt=build_agent_prompt(business),
            transfer_phone_number=business.business_phone,
            webhook=settings.bland_webhook_url,
            record=True,
        )
    except BlandSubscriptionNotActive as e:
        raise _subscription_required(settings) from e
    except BlandError as e:
        raise ProvisioningError(f"Failed to configure AI agent: {e}") from e

    business.twilio_number = phone_number
    try:
        await db.commit()
    except SQLAlchemyError as e:
        # business is expired after rollback; log from locals only
        await db.rollback()
        logger.error(
            "Bland number %s configured but not saved for business %s: %s",
            phone_number, business_id, e,
        )
        raise ProvisioningError(f"Failed to save phone number: {e}") from e

    logger.info("Provisioned %s for business %s", phone_number, business_id)
    return phone_number
