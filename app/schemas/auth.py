"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, EmailStr, Field
from uuid import UUID


class UserRegister(BaseModel):
    """Request schema for user registration."""
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str | None = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    """Response schema for login — returns JWT token."""
    access_token: str
    token_type: str = "bearer"
    user_id: UUID | None = None
    business_id: UUID | None = None


class UserOut(BaseModel):
    id: UUID
    email: str
    full_name: str | None = None
    is_active: bool

    class Config:
        from_attributes = True
