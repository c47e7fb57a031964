"""
Payment Plan Request Schemas
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class PaymentPlanCreate(BaseModel):
    tenant_id: int
    total_amount: float
    installment_amount: float
    start_date: date
    installment_frequency: Optional[str] = Field(None, description="weekly | biweekly | monthly | quarterly")
    end_date: Optional[date] = None
    property_id: Optional[int] = None
    unit_id: Optional[int] = None
    description: Optional[str] = None


class PaymentPlanUpdate(BaseModel):
    installment_amount: Optional[float] = None
    installment_frequency: Optional[str] = None
    end_date: Optional[date] = None
    description: Optional[str] = None


class InstallmentCreate(BaseModel):
    amount: float
    payment_date: Optional[date] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None
