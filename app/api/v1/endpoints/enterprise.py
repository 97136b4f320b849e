"""Contact-sales form for the Enterprise tier."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.deps import get_email_service
from app.models.enterprise_inquiry import EnterpriseInquiry
from app.schemas.enterprise import EnterpriseInquiryCreate, EnterpriseInquiryOut
from app.services.email_service import EmailService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/inquiries", response_model=EnterpriseInquiryOut, status_code=201)
async def create_inquiry(
    inquiry_data: EnterpriseInquiryCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_service: EmailService = Depends(get_email_service),
):
    """Store a contact-sales submission and forward it to the sales inbox."""
    inquiry = EnterpriseInquiry(**inquiry_data.model_dump())
    db.add(inquiry)
    await db.commit()
    await db.refresh(inquiry)
    logger.info("Enterprise inquiry %s from %s", inquiry.id, inquiry.company_name)

    if settings.SALES_NOTIFICATION_EMAIL:
        try:
            await email_service.send_enterprise_inquiry(settings.SALES_NOTIFICATION_EMAIL, inquiry)
        except Exception as e:
            logger.error("Failed to send enterprise inquiry email for %s: %s", inquiry.id, e)
    else:
        logger.warning("SALES_NOTIFICATION_EMAIL not configured — inquiry %s not forwarded", inquiry.id)

    return {"success": True, "id": inquiry.id, "created_at": inquiry.created_at}
