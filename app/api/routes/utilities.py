"""
Utility Bill Routes
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from app.database import Database, get_database
from app.models.utility import UtilityBill
from app.schemas.utility import UtilityBillCreate, UtilityBillUpdate, UtilityPayment
from app.services.utility_service import UtilityService

router = APIRouter(tags=["utilities"])
logger = logging.getLogger(__name__)


def _bill_to_dict(b: UtilityBill) -> dict:
    def _d(v) -> Optional[str]:
        return v.isoformat() if v else None

    return {
        "id": b.id,
        "unit_id": b.unit_id,
        "tenant_id": b.tenant_id,
        "utility_type": b.utility_type.value,
        "billing_month": b.billing_month.strftime("%Y-%m"),
        "previous_reading": float(b.previous_reading),
        "current_reading": float(b.current_reading),
        "units_consumed": float(b.units_consumed),
        "rate_per_unit": float(b.rate_per_unit),
        "amount_due": float(b.amount_due),
        "amount_paid": float(b.amount_paid),
        "payment_status": b.payment_status.value,
        "reading_date": _d(b.reading_date),
        "notes": b.notes,
        "created_at": _d(b.created_at),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_utility_bill(payload: UtilityBillCreate, database: Database = Depends(get_database)):
    bill = UtilityService(database).create_bill(**payload.model_dump())
    return {"success": True, "data": _bill_to_dict(bill), "message": "Utility bill created successfully"}


@router.get("")
def list_utility_bills(
    utility_type: Optional[str] = None,
    payment_status: Optional[str] = None,
    unit_id: Optional[int] = None,
    database: Database = Depends(get_database),
):
    bills = UtilityService(database).list_bills(
        utility_type=utility_type, payment_status=payment_status, unit_id=unit_id
    )
    return {"success": True, "count": len(bills), "data": [_bill_to_dict(b) for b in bills]}


@router.get("/pending")
def pending_utility_bills(database: Database = Depends(get_database)):
    result = UtilityService(database).list_pending()
    return {
        "success": True,
        "count": len(result["bills"]),
        "total_pending": float(result["total_pending"]),
        "data": [_bill_to_dict(b) for b in result["bills"]],
    }


@router.get("/tenant/{tenant_id}")
def tenant_utility_bills(tenant_id: int, database: Database = Depends(get_database)):
    bills = UtilityService(database).list_for_tenant(tenant_id)
    return {"success": True, "count": len(bills), "data": [_bill_to_dict(b) for b in bills]}


@router.get("/{bill_id}")
def get_utility_bill(bill_id: int, database: Database = Depends(get_database)):
    return {"success": True, "data": _bill_to_dict(UtilityService(database).get_bill(bill_id))}


@router.put("/{bill_id}")
def update_utility_bill(bill_id: int, payload: UtilityBillUpdate, database: Database = Depends(get_database)):
    bill = UtilityService(database).update_bill(bill_id, payload.model_dump(exclude_unset=True))
    return {"success": True, "data": _bill_to_dict(bill), "message": "Utility bill updated successfully"}


@router.put("/{bill_id}/pay")
def pay_utility_bill(bill_id: int, payload: UtilityPayment, database: Database = Depends(get_database)):
    bill = UtilityService(database).record_payment(bill_id, payload.amount_paid)
    return {"success": True, "data": _bill_to_dict(bill), "message": "Payment recorded successfully"}


@router.delete("/{bill_id}")
def delete_utility_bill(bill_id: int, database: Database = Depends(get_database)):
    UtilityService(database).delete_bill(bill_id)
    return {"success": True, "message": "Utility bill deleted successfully"}
