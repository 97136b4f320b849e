"""Pydantic schemas for the contact-sales (enterprise) form."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class EnterpriseInquiryCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100, alias="firstName")
    last_name: str = Field(min_length=1, max_length=100, alias="lastName")
    email: EmailStr
    phone: str = Field(min_length=10, max_length=20)
    company_name: str = Field(min_length=1, max_length=200, alias="companyName")
    num_locations: str = Field(min_length=1, alias="numLocations")
    estimated_calls: str = Field(min_length=1, alias="estimatedCalls")
    current_solution: str | None = Field(None, max_length=500, alias="currentSolution")
    message: str | None = Field(None, max_length=2000)

    class Config:
        populate_by_name = True


class EnterpriseInquiryOut(BaseModel):
    success: bool = True
    id: UUID
    created_at: datetime | None = None
