"""
Property & Unit Routes
Minimal registry the tenant and billing flows hang off.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.database import Database, get_database
from app.models.property import Property, Unit
from app.schemas.property import PropertyCreate, UnitCreate, UnitUpdate
from app.services.property_service import PropertyService

router = APIRouter(tags=["properties"])
units_router = APIRouter(tags=["units"])
logger = logging.getLogger(__name__)


def _property_to_dict(p: Property) -> dict:
    return {
        "id": p.id,
        "property_name": p.property_name,
        "location": p.location,
        "address": p.address,
        "property_type": p.property_type,
        "owner_name": p.owner_name,
        "owner_contact": p.owner_contact,
        "description": p.description,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


def _unit_to_dict(u: Unit) -> dict:
    return {
        "id": u.id,
        "property_id": u.property_id,
        "unit_number": u.unit_number,
        "unit_type": u.unit_type,
        "house_type": u.house_type,
        "bedrooms": u.bedrooms,
        "bathrooms": u.bathrooms,
        "monthly_rent": float(u.monthly_rent or 0),
        "is_occupied": bool(u.is_occupied),
        "description": u.description,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


# ==================== PROPERTIES ====================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_property(payload: PropertyCreate, database: Database = Depends(get_database)):
    prop = PropertyService(database).create_property(**payload.model_dump())
    return {"success": True, "data": _property_to_dict(prop), "message": "Property created successfully"}


@router.get("")
def list_properties(database: Database = Depends(get_database)):
    properties = PropertyService(database).list_properties()
    return {"success": True, "count": len(properties), "data": [_property_to_dict(p) for p in properties]}


@router.get("/{property_id}")
def get_property(property_id: int, database: Database = Depends(get_database)):
    service = PropertyService(database)
    prop = service.get_property(property_id)
    data = _property_to_dict(prop)
    data["units"] = [_unit_to_dict(u) for u in service.list_units(property_id=property_id)]
    return {"success": True, "data": data}


# ==================== UNITS ====================

@units_router.post("", status_code=status.HTTP_201_CREATED)
def create_unit(payload: UnitCreate, database: Database = Depends(get_database)):
    unit = PropertyService(database).create_unit(**payload.model_dump())
    return {"success": True, "data": _unit_to_dict(unit), "message": "Unit created successfully"}


@units_router.get("")
def list_units(
    property_id: Optional[int] = None,
    is_occupied: Optional[bool] = None,
    database: Database = Depends(get_database),
):
    units = PropertyService(database).list_units(property_id=property_id, is_occupied=is_occupied)
    return {"success": True, "count": len(units), "data": [_unit_to_dict(u) for u in units]}


@units_router.get("/{unit_id}")
def get_unit(unit_id: int, database: Database = Depends(get_database)):
    unit = PropertyService(database).get_unit(unit_id)
    return {"success": True, "data": _unit_to_dict(unit)}


@units_router.put("/{unit_id}")
def update_unit(unit_id: int, payload: UnitUpdate, database: Database = Depends(get_database)):
    unit = PropertyService(database).update_unit(unit_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _unit_to_dict(unit), "message": "Unit updated successfully"}


@units_router.delete("/{unit_id}")
def delete_unit(unit_id: int, database: Database = Depends(get_database)):
    PropertyService(database).delete_unit(unit_id)
    return {"success": True, "message": "Unit deleted successfully"}
