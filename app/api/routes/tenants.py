"""
Tenant Routes
Registration and move-out flip unit occupancy in the same transaction.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from app.database import Database, get_database
from app.models.tenant import Tenant
from app.schemas.tenant import TenantCreate, TenantMoveOut, TenantUpdate
from app.services.tenant_service import TenantService

router = APIRouter(tags=["tenants"])
logger = logging.getLogger(__name__)


def _tenant_to_dict(t: Tenant) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": t.id,
        "full_name": t.full_name,
        "phone": t.phone,
        "email": t.email,
        "id_number": t.id_number,
        "property_id": t.property_id,
        "unit_id": t.unit_id,
        "emergency_contact_name": t.emergency_contact_name,
        "emergency_contact_phone": t.emergency_contact_phone,
        "rent_amount": float(t.rent_amount) if t.rent_amount is not None else None,
        "deposit_paid": float(t.deposit_paid or 0),
        "rent_balance": float(t.rent_balance or 0),
        "status": t.status.value,
        "is_active": t.is_active,
        "move_in_date": _d(t.move_in_date),
        "move_out_date": _d(t.move_out_date),
        "created_at": _d(t.created_at),
        "updated_at": _d(t.updated_at),
    }


# ==================== TENANT CRUD ====================

@router.post("", status_code=status.HTTP_201_CREATED)
def create_tenant(payload: TenantCreate, database: Database = Depends(get_database)):
    logger.info(f"[CREATE_TENANT] Received: name={payload.full_name}, unit_id={payload.unit_id}")
    tenant = TenantService(database).create_tenant(**payload.model_dump())
    return {"success": True, "data": _tenant_to_dict(tenant), "message": "Tenant created successfully"}


@router.get("")
def list_tenants(
    is_active: Optional[bool] = None,
    has_arrears: Optional[bool] = None,
    database: Database = Depends(get_database),
):
    tenants = TenantService(database).list_tenants(is_active=is_active, has_arrears=has_arrears)
    return {"success": True, "count": len(tenants), "data": [_tenant_to_dict(t) for t in tenants]}


@router.get("/arrears")
def tenants_in_arrears(database: Database = Depends(get_database)):
    result = TenantService(database).list_arrears()
    return {
        "success": True,
        "count": len(result["tenants"]),
        "total_arrears": float(result["total_arrears"]),
        "data": [_tenant_to_dict(t) for t in result["tenants"]],
    }


@router.get("/{tenant_id}")
def get_tenant(tenant_id: int, database: Database = Depends(get_database)):
    tenant = TenantService(database).get_tenant(tenant_id)
    return {"success": True, "data": _tenant_to_dict(tenant)}


@router.put("/{tenant_id}")
def update_tenant(tenant_id: int, payload: TenantUpdate, database: Database = Depends(get_database)):
    tenant = TenantService(database).update_tenant(tenant_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _tenant_to_dict(tenant), "message": "Tenant updated successfully"}


@router.delete("/{tenant_id}")
def delete_tenant(
    tenant_id: int,
    payload: Optional[TenantMoveOut] = Body(None),
    database: Database = Depends(get_database),
):
    """Soft delete: tenant becomes inactive and the unit is released."""
    move_out_date = payload.move_out_date if payload else None
    tenant = TenantService(database).deactivate_tenant(tenant_id, move_out_date=move_out_date)
    return {"success": True, "data": _tenant_to_dict(tenant), "message": "Tenant deactivated successfully"}
