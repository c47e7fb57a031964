"""
Agent Commission Routes

Endpoints:
  POST   /commissions              – create (pending)
  GET    /commissions              – paginated list with filters
  GET    /commissions/pending      – outstanding totals by agent
  GET    /commissions/stats        – counts and amounts by status
  GET    /commissions/{id}         – single commission
  PUT    /commissions/{id}         – edit (notes only once paid)
  PUT    /commissions/{id}/pay     – mark paid
  DELETE /commissions/{id}         – cancel with optional reason
"""
import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.database import Database, get_database
from app.models.commission import AgentCommission
from app.schemas.commission import CommissionCancel, CommissionCreate, CommissionPay, CommissionUpdate
from app.services.commission_service import CommissionService

router = APIRouter(tags=["commissions"])
logger = logging.getLogger(__name__)


def _commission_to_dict(c: AgentCommission) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": c.id,
        "property_id": c.property_id,
        "tenant_id": c.tenant_id,
        "agent_name": c.agent_name,
        "agent_phone": c.agent_phone,
        "commission_amount": float(c.commission_amount),
        "commission_percentage": float(c.commission_percentage) if c.commission_percentage is not None else None,
        "status": c.status.value,
        "paid_date": _d(c.paid_date),
        "payment_reference": c.payment_reference,
        "notes": c.notes,
        "created_at": _d(c.created_at),
        "updated_at": _d(c.updated_at),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_commission(payload: CommissionCreate, database: Database = Depends(get_database)):
    commission = CommissionService(database).create_commission(**payload.model_dump())
    return {"success": True, "data": _commission_to_dict(commission), "message": "Commission created successfully"}


@router.get("")
def list_commissions(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[str] = None,
    property_id: Optional[int] = None,
    agent_name: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    database: Database = Depends(get_database),
):
    result = CommissionService(database).list_commissions(
        page=page,
        limit=limit,
        status=status,
        property_id=property_id,
        agent_name=agent_name,
        date_from=date_from,
        date_to=date_to,
    )
    return {
        "success": True,
        "data": [_commission_to_dict(c) for c in result["commissions"]],
        "pagination": result["pagination"],
    }


@router.get("/pending")
def pending_commissions(database: Database = Depends(get_database)):
    return {"success": True, "data": CommissionService(database).pending_summary()}


@router.get("/stats")
def commission_stats(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    property_id: Optional[int] = None,
    database: Database = Depends(get_database),
):
    stats = CommissionService(database).stats(start_date=start_date, end_date=end_date, property_id=property_id)
    return {"success": True, "data": stats}


@router.get("/{commission_id}")
def get_commission(commission_id: int, database: Database = Depends(get_database)):
    commission = CommissionService(database).get_commission(commission_id)
    return {"success": True, "data": _commission_to_dict(commission)}


@router.put("/{commission_id}")
def update_commission(commission_id: int, payload: CommissionUpdate, database: Database = Depends(get_database)):
    commission = CommissionService(database).update_commission(
        commission_id, payload.model_dump(exclude_unset=True)
    )
    return {"success": True, "data": _commission_to_dict(commission), "message": "Commission updated successfully"}


@router.put("/{commission_id}/pay")
def mark_commission_paid(
    commission_id: int,
    payload: Optional[CommissionPay] = Body(None),
    database: Database = Depends(get_database),
):
    payload = payload or CommissionPay()
    commission = CommissionService(database).mark_paid(
        commission_id, paid_date=payload.paid_date, payment_reference=payload.payment_reference
    )
    return {"success": True, "data": _commission_to_dict(commission), "message": "Commission marked as paid"}


@router.delete("/{commission_id}")
def cancel_commission(
    commission_id: int,
    payload: Optional[CommissionCancel] = Body(None),
    database: Database = Depends(get_database),
):
    reason = payload.reason if payload else None
    commission = CommissionService(database).cancel_commission(commission_id, reason=reason)
    return {"success": True, "data": _commission_to_dict(commission), "message": "Commission cancelled successfully"}
