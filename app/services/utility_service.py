"""
Utility Billing
Metered bills per unit, utility type and month. Derived fields are computed on
every write from the merged row:

  units_consumed = current_reading - previous_reading
  amount_due     = units_consumed * rate_per_unit
  payment_status = paid if amount_paid >= amount_due, partial if > 0, else pending
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from app.core.exceptions import NotFoundError, ValidationError
from app.database import Database
from app.models.property import Unit
from app.models.tenant import Tenant
from app.models.utility import UtilityBill, UtilityPaymentStatus, UtilityType
from app.services.validators import (
    CENTS,
    first_of_month,
    parse_date,
    parse_enum,
    require_non_negative,
    require_positive,
    whitelist,
)

logger = logging.getLogger(__name__)

UTILITY_UPDATABLE_FIELDS = ("previous_reading", "current_reading", "rate_per_unit", "reading_date", "notes")


def derive_payment_status(amount_paid: Decimal, amount_due: Decimal) -> UtilityPaymentStatus:
    if amount_paid >= amount_due:
        return UtilityPaymentStatus.PAID
    if amount_paid > 0:
        return UtilityPaymentStatus.PARTIAL
    return UtilityPaymentStatus.PENDING


def _apply_readings(bill: UtilityBill) -> None:
    if bill.current_reading < bill.previous_reading:
        raise ValidationError("current_reading cannot be less than previous_reading")
    bill.units_consumed = bill.current_reading - bill.previous_reading
    bill.amount_due = (bill.units_consumed * bill.rate_per_unit).quantize(CENTS, rounding=ROUND_HALF_UP)
    bill.payment_status = derive_payment_status(bill.amount_paid or Decimal("0"), bill.amount_due)


class UtilityService:
    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Writes ────────────────────────────

    def create_bill(
        self,
        unit_id: Optional[int],
        tenant_id: Optional[int],
        utility_type: Any,
        billing_month: Any,
        current_reading: Any,
        rate_per_unit: Any,
        previous_reading: Any = None,
        reading_date: Any = None,
        notes: Optional[str] = None,
    ) -> UtilityBill:
        if unit_id is None or tenant_id is None:
            raise ValidationError("unit_id and tenant_id are required")
        kind = parse_enum(UtilityType, utility_type, "utility_type")
        bill = UtilityBill(
            unit_id=unit_id,
            tenant_id=tenant_id,
            utility_type=kind,
            billing_month=first_of_month(billing_month),
            previous_reading=require_non_negative(previous_reading or 0, "previous_reading"),
            current_reading=require_non_negative(current_reading, "current_reading"),
            rate_per_unit=require_positive(rate_per_unit, "rate_per_unit"),
            reading_date=parse_date(reading_date, "reading_date") or date.today(),
            amount_paid=Decimal("0"),
            notes=notes,
        )
        _apply_readings(bill)

        with self.database.transaction() as db:
            if db.get(Unit, unit_id) is None:
                raise ValidationError("Unit not found")
            if db.get(Tenant, tenant_id) is None:
                raise ValidationError("Tenant not found")
            db.add(bill)
            db.flush()
            db.refresh(bill)

        logger.info(
            f"[UTILITY] Bill #{bill.id}: {kind.value} unit {unit_id} {bill.billing_month:%Y-%m} "
            f"units={bill.units_consumed} due={bill.amount_due}"
        )
        return bill

    def update_bill(self, bill_id: int, fields: Dict[str, Any]) -> UtilityBill:
        changes = whitelist(fields, UTILITY_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            bill = self._load(db, bill_id)
            if "previous_reading" in changes:
                bill.previous_reading = require_non_negative(changes["previous_reading"] or 0, "previous_reading")
            if "current_reading" in changes:
                bill.current_reading = require_non_negative(changes["current_reading"], "current_reading")
            if "rate_per_unit" in changes:
                bill.rate_per_unit = require_positive(changes["rate_per_unit"], "rate_per_unit")
            if "reading_date" in changes:
                bill.reading_date = parse_date(changes["reading_date"], "reading_date", required=True)
            if "notes" in changes:
                bill.notes = changes["notes"]
            _apply_readings(bill)
            db.flush()
            db.refresh(bill)

        logger.info(f"[UTILITY] Updated bill #{bill_id}: {sorted(changes)}")
        return bill

    def record_payment(self, bill_id: int, amount_paid: Any) -> UtilityBill:
        """Set the cumulative amount paid and derive the payment status."""
        paid = require_non_negative(amount_paid, "amount_paid")

        with self.database.transaction() as db:
            bill = self._load(db, bill_id)
            bill.amount_paid = paid
            bill.payment_status = derive_payment_status(paid, bill.amount_due)
            db.flush()
            db.refresh(bill)

        logger.info(f"[UTILITY] Bill #{bill_id} paid {paid}/{bill.amount_due} -> {bill.payment_status.value}")
        return bill

    def delete_bill(self, bill_id: int) -> None:
        with self.database.transaction() as db:
            bill = self._load(db, bill_id)
            db.delete(bill)
        logger.info(f"[UTILITY] Deleted bill #{bill_id}")

    # ──────────────────────────── Reads ────────────────────────────

    def get_bill(self, bill_id: int) -> UtilityBill:
        with self.database.session() as db:
            return self._load(db, bill_id)

    def list_bills(
        self,
        utility_type: Any = None,
        payment_status: Any = None,
        unit_id: Optional[int] = None,
    ) -> List[UtilityBill]:
        query = select(UtilityBill).order_by(UtilityBill.billing_month.desc(), UtilityBill.id.desc())
        if utility_type:
            query = query.where(UtilityBill.utility_type == parse_enum(UtilityType, utility_type, "utility_type"))
        if payment_status:
            query = query.where(
                UtilityBill.payment_status == parse_enum(UtilityPaymentStatus, payment_status, "payment_status")
            )
        if unit_id is not None:
            query = query.where(UtilityBill.unit_id == unit_id)
        with self.database.session() as db:
            return list(db.scalars(query))

    def list_pending(self) -> Dict[str, Any]:
        """Bills not fully paid, with the outstanding total."""
        query = (
            select(UtilityBill)
            .where(UtilityBill.payment_status != UtilityPaymentStatus.PAID)
            .order_by(UtilityBill.billing_month.asc(), UtilityBill.id.asc())
        )
        with self.database.session() as db:
            bills = list(db.scalars(query))
        outstanding = sum((b.amount_due - b.amount_paid for b in bills), Decimal("0"))
        return {"bills": bills, "total_pending": outstanding}

    def list_for_tenant(self, tenant_id: int) -> List[UtilityBill]:
        with self.database.session() as db:
            if db.get(Tenant, tenant_id) is None:
                raise NotFoundError("Tenant not found")
            return list(db.scalars(
                select(UtilityBill)
                .where(UtilityBill.tenant_id == tenant_id)
                .order_by(UtilityBill.billing_month.desc(), UtilityBill.id.desc())
            ))

    @staticmethod
    def _load(db, bill_id: int) -> UtilityBill:
        bill = db.get(UtilityBill, bill_id)
        if bill is None:
            raise NotFoundError("Utility bill not found")
        return bill
