"""Business endpoints — onboarding completion and settings."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import get_current_business, get_current_user, get_user_business
from app.models.business import Business
from app.models.user import User
from app.schemas.business import BusinessCreate, BusinessOut, BusinessUpdate

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=BusinessOut, status_code=201)
async def create_business(
    biz: BusinessCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Finish onboarding: create the user's one business.

    Phones arrive normalised to E.164. The AI number is assigned later by
    provisioning.
    """
    if await get_user_business(db, current_user):
        raise HTTPException(status_code=409, detail="Business already exists for this account")

    business = Business(user_id=current_user.id, **biz.model_dump(mode="json"))
    db.add(business)
    await db.commit()
    await db.refresh(business)
    logger.info("Business created: %s (%s) for user %s", business.id, business.business_name, current_user.id)
    return business


@router.get("/me", response_model=BusinessOut)
async def get_my_business(business: Business = Depends(get_current_business)):
    """Get the authenticated user's business."""
    return business


@router.patch("/me", response_model=BusinessOut)
async def update_my_business(
    updates: BusinessUpdate,
    business: Business = Depends(get_current_business),
    db: AsyncSession = Depends(get_db),
):
    """Update the authenticated user's business settings."""
    for field, value in updates.model_dump(exclude_unset=True, mode="json").items():
        setattr(business, field, value)

    await db.commit()
    await db.refresh(business)
    return business
