"""
Payment Routes

Endpoints:
  POST   /payments                      – record payment
  GET    /payments                      – list (optional status / tenant filter)
  GET    /payments/stats                – collection statistics
  GET    /payments/monthly?month&year   – payments in a calendar month
  GET    /payments/tenant/{tenant_id}   – tenant history + total paid
  GET    /payments/property/{id}        – property history + total collected
  GET    /payments/{id}                 – single payment
  PUT    /payments/{id}                 – edit references / notes
  DELETE /payments/{id}                 – cancel (status only, row kept)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.database import Database, get_database
from app.models.payment import Payment
from app.schemas.payment import PaymentCreate, PaymentUpdate
from app.services.payment_service import PaymentService

router = APIRouter(tags=["payments"])
logger = logging.getLogger(__name__)


def _payment_to_dict(p: Payment) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": p.id,
        "tenant_id": p.tenant_id,
        "property_id": p.property_id,
        "unit_id": p.unit_id,
        "plan_id": p.plan_id,
        "amount": float(p.amount),
        "payment_date": _d(p.payment_date),
        "payment_month": p.payment_month,
        "payment_method": p.payment_method,
        "reference_number": p.reference_number,
        "mpesa_code": p.mpesa_code,
        "notes": p.notes,
        "status": p.status.value,
        "created_at": _d(p.created_at),
        "updated_at": _d(p.updated_at),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, database: Database = Depends(get_database)):
    payment = PaymentService(database).create_payment(**payload.model_dump())
    return {"success": True, "data": _payment_to_dict(payment), "message": "Payment recorded successfully"}


@router.get("")
def list_payments(
    status: Optional[str] = None,
    tenant_id: Optional[int] = None,
    database: Database = Depends(get_database),
):
    payments = PaymentService(database).list_payments(status=status, tenant_id=tenant_id)
    return {"success": True, "count": len(payments), "data": [_payment_to_dict(p) for p in payments]}


@router.get("/stats")
def payment_stats(database: Database = Depends(get_database)):
    return {"success": True, "data": PaymentService(database).stats()}


@router.get("/monthly")
def monthly_payments(
    month: int = Query(..., description="1-12"),
    year: int = Query(..., description="2000-2100"),
    database: Database = Depends(get_database),
):
    result = PaymentService(database).monthly(month, year)
    return {
        "success": True,
        "month": result["month"],
        "year": result["year"],
        "count": len(result["payments"]),
        "total": float(result["total"]),
        "data": [_payment_to_dict(p) for p in result["payments"]],
    }


@router.get("/tenant/{tenant_id}")
def tenant_payments(tenant_id: int, database: Database = Depends(get_database)):
    result = PaymentService(database).list_for_tenant(tenant_id)
    return {
        "success": True,
        "count": len(result["payments"]),
        "total_paid": float(result["total_paid"]),
        "data": [_payment_to_dict(p) for p in result["payments"]],
    }


@router.get("/property/{property_id}")
def property_payments(property_id: int, database: Database = Depends(get_database)):
    result = PaymentService(database).list_for_property(property_id)
    return {
        "success": True,
        "count": len(result["payments"]),
        "total_collected": float(result["total_collected"]),
        "data": [_payment_to_dict(p) for p in result["payments"]],
    }


@router.get("/{payment_id}")
def get_payment(payment_id: int, database: Database = Depends(get_database)):
    payment = PaymentService(database).get_payment(payment_id)
    return {"success": True, "data": _payment_to_dict(payment)}


@router.put("/{payment_id}")
def update_payment(payment_id: int, payload: PaymentUpdate, database: Database = Depends(get_database)):
    payment = PaymentService(database).update_payment(payment_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _payment_to_dict(payment), "message": "Payment updated successfully"}


@router.delete("/{payment_id}")
def cancel_payment(payment_id: int, database: Database = Depends(get_database)):
    payment = PaymentService(database).cancel_payment(payment_id)
    return {"success": True, "data": _payment_to_dict(payment), "message": "Payment cancelled successfully"}
