"""
Agent Commission Request Schemas
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel


class CommissionCreate(BaseModel):
    property_id: int
    agent_name: str
    commission_amount: float
    agent_phone: Optional[str] = None
    commission_percentage: Optional[float] = None
    tenant_id: Optional[int] = None
    notes: Optional[str] = None


class CommissionUpdate(BaseModel):
    tenant_id: Optional[int] = None
    property_id: Optional[int] = None
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    commission_amount: Optional[float] = None
    commission_percentage: Optional[float] = None
    notes: Optional[str] = None
    status: Optional[str] = None  # rejected by the service; use /pay or DELETE


class CommissionPay(BaseModel):
    paid_date: Optional[date] = None
    payment_reference: Optional[str] = None


class CommissionCancel(BaseModel):
    reason: Optional[str] = None
