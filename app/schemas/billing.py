"""Pydantic schemas for billing endpoints."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    success_url: str
    cancel_url: str


class CheckoutOut(BaseModel):
    checkout_url: str


class SubscriptionStatusOut(BaseModel):
    subscribed: bool
    status: Optional[str] = None
    plan: Optional[str] = None
    current_period_end: Optional[str] = None


class CancelSubscriptionOut(BaseModel):
    """``endsAt`` is when service actually stops (end of the paid period)."""
    success: bool = True
    ends_at: datetime = Field(serialization_alias="endsAt")


class InvoiceOut(BaseModel):
    id: str
    date: str
    amount: float
    status: str
    invoice_url: Optional[str] = None


class PaymentMethodOut(BaseModel):
    id: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None


class PortalRequest(BaseModel):
    return_url: str


class PortalOut(BaseModel):
    url: str
