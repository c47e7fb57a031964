"""
Property / Unit Request Schemas
"""
from typing import Optional
from pydantic import BaseModel, Field


class PropertyCreate(BaseModel):
    property_name: str = Field(..., min_length=1, max_length=255)
    location: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    property_type: Optional[str] = None
    owner_name: Optional[str] = None
    owner_contact: Optional[str] = None
    description: Optional[str] = None


class UnitCreate(BaseModel):
    property_id: int
    unit_number: str = Field(..., min_length=1, max_length=50)
    monthly_rent: float = Field(0, ge=0)
    unit_type: Optional[str] = None
    house_type: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class UnitUpdate(BaseModel):
    unit_number: Optional[str] = Field(None, min_length=1, max_length=50)
    monthly_rent: Optional[float] = Field(None, ge=0)
    unit_type: Optional[str] = None
    house_type: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_occupied: Optional[bool] = None  # rejected by the service; occupancy follows tenants
