"""AI phone number provisioning for the authenticated business."""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.deps import get_bland_client, get_current_user, get_user_business
from app.core.errors import BusinessNotFoundError, ServiceError
from app.models.user import User
from app.schemas.business import ProvisionRequest, ProvisionResponse
from app.services.bland import BlandClient
from app.services.provisioning import provision_business

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ProvisionResponse)
async def provision_services(
    request: Optional[ProvisionRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    bland: BlandClient = Depends(get_bland_client),
    settings: Settings = Depends(get_settings),
):
    """Acquire and configure the business's AI number.

    Reuses the assigned number unless ``forceNew`` is set. Bland account
    problems come back as 402 with a machine-readable ``code``.
    """
    force_new = request.force_new if request else False

    business = await get_user_business(db, current_user)
    if not business:
        raise BusinessNotFoundError()
    business_id = business.id

    try:
        phone_number = await provision_business(db, business, bland, settings, force_new=force_new)
    except ServiceError:
        raise
    except Exception as e:
        logger.error("Error in provision-services for business %s: %s", business_id, e)
        raise ServiceError(str(e) or "Unknown error") from e

    return {"success": True, "twilio_number": phone_number}
