"""
Payment Request Schemas
Pydantic models for payment API validation
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    tenant_id: int
    amount: float = Field(..., description="Amount paid, must be positive")
    payment_method: str = Field(..., max_length=50)
    payment_date: Optional[date] = None
    property_id: Optional[int] = None
    unit_id: Optional[int] = None
    payment_month: Optional[str] = Field(None, description="YYYY-MM; longer values are truncated")
    reference_number: Optional[str] = None
    mpesa_code: Optional[str] = None
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_date: Optional[date] = None
    payment_month: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    mpesa_code: Optional[str] = None
    notes: Optional[str] = None
