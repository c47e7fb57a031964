"""
Utility Bill Request Schemas
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class UtilityBillCreate(BaseModel):
    unit_id: int
    tenant_id: int
    utility_type: str = Field(..., description="electricity | water | gas | internet | sewage | garbage")
    billing_month: str = Field(..., description="YYYY-MM or YYYY-MM-DD")
    current_reading: float
    rate_per_unit: float
    previous_reading: Optional[float] = None
    reading_date: Optional[date] = None
    notes: Optional[str] = None


class UtilityBillUpdate(BaseModel):
    previous_reading: Optional[float] = None
    current_reading: Optional[float] = None
    rate_per_unit: Optional[float] = None
    reading_date: Optional[date] = None
    notes: Optional[str] = None


class UtilityPayment(BaseModel):
    amount_paid: float
