"""
Payment Plan Routes

Endpoints:
  POST   /payment-plans              – create plan
  GET    /payment-plans              – list (optional status / tenant filter)
  GET    /payment-plans/active       – active plans, soonest due first
  GET    /payment-plans/{id}         – single plan
  PUT    /payment-plans/{id}         – edit schedule details
  PUT    /payment-plans/{id}/pay     – record an installment
  DELETE /payment-plans/{id}         – cancel plan
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.database import Database, get_database
from app.models.payment_plan import PaymentPlan
from app.schemas.payment_plan import InstallmentCreate, PaymentPlanCreate, PaymentPlanUpdate
from app.services.payment_plan_service import PaymentPlanService

router = APIRouter(tags=["payment-plans"])
logger = logging.getLogger(__name__)


def _plan_to_dict(p: PaymentPlan) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": p.id,
        "tenant_id": p.tenant_id,
        "property_id": p.property_id,
        "unit_id": p.unit_id,
        "total_amount": float(p.total_amount),
        "amount_paid": float(p.amount_paid),
        "balance": float(p.balance),
        "installment_amount": float(p.installment_amount),
        "installment_frequency": p.installment_frequency.value,
        "start_date": _d(p.start_date),
        "end_date": _d(p.end_date),
        "next_due_date": _d(p.next_due_date),
        "status": p.status.value,
        "description": p.description,
        "created_at": _d(p.created_at),
        "updated_at": _d(p.updated_at),
    }


# ═══════════════════════════════════════════════════════════════════
# PLANS
# ═══════════════════════════════════════════════════════════════════

@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment_plan(payload: PaymentPlanCreate, database: Database = Depends(get_database)):
    plan = PaymentPlanService(database).create_plan(**payload.model_dump())
    return {"success": True, "data": _plan_to_dict(plan), "message": "Payment plan created successfully"}


@router.get("")
def list_payment_plans(
    status: Optional[str] = None,
    tenant_id: Optional[int] = None,
    database: Database = Depends(get_database),
):
    plans = PaymentPlanService(database).list_plans(status=status, tenant_id=tenant_id)
    return {"success": True, "count": len(plans), "data": [_plan_to_dict(p) for p in plans]}


@router.get("/active")
def list_active_payment_plans(database: Database = Depends(get_database)):
    plans = PaymentPlanService(database).list_active_plans()
    return {"success": True, "count": len(plans), "data": [_plan_to_dict(p) for p in plans]}


@router.get("/{plan_id}")
def get_payment_plan(plan_id: int, database: Database = Depends(get_database)):
    plan = PaymentPlanService(database).get_plan(plan_id)
    return {"success": True, "data": _plan_to_dict(plan)}


@router.put("/{plan_id}")
def update_payment_plan(plan_id: int, payload: PaymentPlanUpdate, database: Database = Depends(get_database)):
    plan = PaymentPlanService(database).update_plan(plan_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _plan_to_dict(plan), "message": "Payment plan updated successfully"}


@router.delete("/{plan_id}")
def cancel_payment_plan(plan_id: int, database: Database = Depends(get_database)):
    plan = PaymentPlanService(database).cancel_plan(plan_id)
    return {"success": True, "data": _plan_to_dict(plan), "message": "Payment plan cancelled"}


# ═══════════════════════════════════════════════════════════════════
# INSTALLMENTS
# ═══════════════════════════════════════════════════════════════════

@router.put("/{plan_id}/pay")
def record_installment(plan_id: int, payload: InstallmentCreate, database: Database = Depends(get_database)):
    result = PaymentPlanService(database).record_installment(plan_id, **payload.model_dump())
    message = "Payment plan completed" if result["status"] == "completed" else "Installment recorded successfully"
    return {"success": True, "data": result, "message": message}
