"""
Maintenance Routes

Endpoints:
  POST   /maintenance                 – raise a request
  GET    /maintenance                 – list (optional status / priority / property filter)
  GET    /maintenance/pending         – open requests, most urgent first
  GET    /maintenance/{id}            – single request
  PUT    /maintenance/{id}            – edit details or move pending <-> in_progress / cancel
  PUT    /maintenance/{id}/complete   – close with resolved date, cost and notes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from app.database import Database, get_database
from app.models.maintenance import MaintenanceRequest
from app.schemas.maintenance import MaintenanceComplete, MaintenanceCreate, MaintenanceUpdate
from app.services.maintenance_service import MaintenanceService

router = APIRouter(tags=["maintenance"])
logger = logging.getLogger(__name__)


def _request_to_dict(r: MaintenanceRequest) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": r.id,
        "property_id": r.property_id,
        "unit_id": r.unit_id,
        "tenant_id": r.tenant_id,
        "issue_type": r.issue_type,
        "description": r.description,
        "priority": r.priority.value,
        "status": r.status.value,
        "assigned_to": r.assigned_to,
        "reported_date": _d(r.reported_date),
        "resolved_date": _d(r.resolved_date),
        "cost": float(r.cost or 0),
        "notes": r.notes,
        "created_at": _d(r.created_at),
        "updated_at": _d(r.updated_at),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_maintenance_request(payload: MaintenanceCreate, database: Database = Depends(get_database)):
    request = MaintenanceService(database).create_request(**payload.model_dump())
    return {"success": True, "data": _request_to_dict(request), "message": "Maintenance request created successfully"}


@router.get("")
def list_maintenance_requests(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    property_id: Optional[int] = None,
    database: Database = Depends(get_database),
):
    requests = MaintenanceService(database).list_requests(status=status, priority=priority, property_id=property_id)
    return {"success": True, "count": len(requests), "data": [_request_to_dict(r) for r in requests]}


@router.get("/pending")
def pending_maintenance_requests(database: Database = Depends(get_database)):
    requests = MaintenanceService(database).list_pending()
    return {"success": True, "count": len(requests), "data": [_request_to_dict(r) for r in requests]}


@router.get("/{request_id}")
def get_maintenance_request(request_id: int, database: Database = Depends(get_database)):
    request = MaintenanceService(database).get_request(request_id)
    return {"success": True, "data": _request_to_dict(request)}


@router.put("/{request_id}")
def update_maintenance_request(
    request_id: int, payload: MaintenanceUpdate, database: Database = Depends(get_database)
):
    request = MaintenanceService(database).update_request(request_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _request_to_dict(request), "message": "Maintenance request updated successfully"}


@router.put("/{request_id}/complete")
def complete_maintenance_request(
    request_id: int,
    payload: Optional[MaintenanceComplete] = Body(None),
    database: Database = Depends(get_database),
):
    fields = payload.model_dump() if payload else {}
    request = MaintenanceService(database).complete_request(request_id, **fields)
    return {"success": True, "data": _request_to_dict(request), "message": "Maintenance request marked as completed"}
