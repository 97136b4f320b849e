"""FastAPI dependencies for authentication and per-request collaborators."""

from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.models.business import Business
from app.models.user import User
from app.services.auth import decode_access_token
from app.services.bland import BlandClient
from app.services.email_service import EmailService
from app.services.extraction import RegexTranscriptExtractor, TranscriptExtractor

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Extract and validate the current user from the bearer JWT.

    Raises 401 if the token is missing, invalid, or points at no user.
    """
    payload = decode_access_token(credentials.credentials, settings.JWT_SECRET_KEY)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    try:
        user_uuid = UUID(user_id) if user_id else None
    except ValueError:
        user_uuid = None
    if user_uuid is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )
    return user


async def get_user_business(db: AsyncSession, user: User) -> Optional[Business]:
    result = await db.execute(select(Business).where(Business.user_id == user.id))
    return result.scalar_one_or_none()


async def get_current_business(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Business:
    """The authenticated user's Business, 404 when onboarding isn't finished."""
    business = await get_user_business(db, current_user)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


def get_bland_client(settings: Settings = Depends(get_settings)) -> BlandClient:
    return BlandClient(settings)


def get_transcript_extractor() -> TranscriptExtractor:
    return RegexTranscriptExtractor()


def get_email_service(settings: Settings = Depends(get_settings)) -> EmailService:
    return EmailService(settings)
