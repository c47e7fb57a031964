"""
Maintenance Request Schemas
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class MaintenanceCreate(BaseModel):
    property_id: int
    unit_id: int
    issue_type: str = Field(..., max_length=100)
    description: str
    tenant_id: Optional[int] = None
    priority: Optional[str] = Field(None, description="low | medium | high | urgent")
    reported_date: Optional[date] = None
    assigned_to: Optional[str] = None
    cost: Optional[float] = None
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    tenant_id: Optional[int] = None
    issue_type: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = Field(None, description="pending | in_progress | cancelled")
    assigned_to: Optional[str] = None
    reported_date: Optional[date] = None
    cost: Optional[float] = None
    notes: Optional[str] = None


class MaintenanceComplete(BaseModel):
    cost: Optional[float] = None
    notes: Optional[str] = None
    resolved_date: Optional[date] = None
