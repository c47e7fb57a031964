"""
Tenant Pydantic Schemas - API Request Models
Phone/email format and duplicates are checked by the tenant service.
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel


class TenantCreate(BaseModel):
    full_name: str
    phone: str
    email: str
    unit_id: int
    id_number: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    rent_amount: Optional[float] = None
    deposit_paid: Optional[float] = 0
    rent_balance: Optional[float] = 0
    move_in_date: Optional[date] = None


class TenantUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    id_number: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    rent_amount: Optional[float] = None
    deposit_paid: Optional[float] = None
    rent_balance: Optional[float] = None


class TenantMoveOut(BaseModel):
    move_out_date: Optional[date] = None
