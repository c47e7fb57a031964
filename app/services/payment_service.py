"""
Payment Recorder
Append-only rent payments. Cancelling flips status; rows are never deleted and
amount/status only change through create and cancel.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import extract, func, select

from app.core.exceptions import (
    NotFoundError,
    PaymentAlreadyCancelled,
    StateTransitionError,
    ValidationError,
)
from app.database import Database
from app.models.payment import Payment, PaymentStatus
from app.models.property import Property
from app.models.tenant import Tenant
from app.services.validators import (
    parse_date,
    parse_enum,
    require_positive,
    require_text,
    validate_month_token,
    validate_month_year,
    whitelist,
)

logger = logging.getLogger(__name__)

PAYMENT_UPDATABLE_FIELDS = (
    "payment_date",
    "payment_month",
    "payment_method",
    "reference_number",
    "mpesa_code",
    "notes",
)


def _money(value) -> float:
    return float(value or 0)


class PaymentService:
    """Records, cancels and reports on tenant payments."""

    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Writes ────────────────────────────

    def create_payment(
        self,
        tenant_id: Optional[int],
        amount: Any,
        payment_method: Optional[str],
        payment_date: Any = None,
        property_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        payment_month: Optional[str] = None,
        reference_number: Optional[str] = None,
        mpesa_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        if tenant_id is None:
            raise ValidationError("tenant_id is required")
        paid = require_positive(amount, "amount")
        method = require_text(payment_method, "payment_method", max_length=50)
        paid_on = parse_date(payment_date, "payment_date") or date.today()
        month = validate_month_token(payment_month) or paid_on.strftime("%Y-%m")

        with self.database.transaction() as db:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None:
                raise ValidationError("Tenant not found")

            payment = Payment(
                tenant_id=tenant.id,
                property_id=property_id if property_id is not None else tenant.property_id,
                unit_id=unit_id if unit_id is not None else tenant.unit_id,
                amount=paid,
                payment_date=paid_on,
                payment_month=month,
                payment_method=method,
                reference_number=reference_number,
                mpesa_code=mpesa_code,
                notes=notes,
                status=PaymentStatus.COMPLETED,
            )
            db.add(payment)
            db.flush()
            db.refresh(payment)

        logger.info(f"[PAYMENT] Recorded payment #{payment.id}: tenant={payment.tenant_id} amount={payment.amount} via {method}")
        return payment

    def cancel_payment(self, payment_id: int) -> Payment:
        """Mark a payment cancelled. A second cancel is rejected, not repeated."""
        with self.database.transaction() as db:
            payment = db.get(Payment, payment_id)
            if payment is None:
                raise NotFoundError("Payment not found")
            if payment.status == PaymentStatus.CANCELLED:
                raise PaymentAlreadyCancelled("Payment already cancelled")
            if payment.plan_id is not None:
                raise StateTransitionError(
                    f"Payment is an installment of plan #{payment.plan_id} and cannot be cancelled"
                )
            payment.status = PaymentStatus.CANCELLED
            db.flush()
            db.refresh(payment)

        logger.info(f"[PAYMENT] Cancelled payment #{payment_id}")
        return payment

    def update_payment(self, payment_id: int, fields: Dict[str, Any]) -> Payment:
        changes = whitelist(fields, PAYMENT_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            payment = db.get(Payment, payment_id)
            if payment is None:
                raise NotFoundError("Payment not found")
            if payment.status == PaymentStatus.CANCELLED:
                raise StateTransitionError("Cancelled payments cannot be edited")

            if "payment_date" in changes:
                payment.payment_date = parse_date(changes["payment_date"], "payment_date", required=True)
            if "payment_month" in changes:
                payment.payment_month = validate_month_token(changes["payment_month"])
            if "payment_method" in changes:
                payment.payment_method = require_text(changes["payment_method"], "payment_method", max_length=50)
            for key in ("reference_number", "mpesa_code", "notes"):
                if key in changes:
                    setattr(payment, key, changes[key])

            db.flush()
            db.refresh(payment)

        logger.info(f"[PAYMENT] Updated payment #{payment_id}: {sorted(changes)}")
        return payment

    # ──────────────────────────── Reads ────────────────────────────

    def get_payment(self, payment_id: int) -> Payment:
        with self.database.session() as db:
            payment = db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    def list_payments(self, status: Any = None, tenant_id: Optional[int] = None) -> List[Payment]:
        query = select(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc())
        if status:
            query = query.where(Payment.status == parse_enum(PaymentStatus, status, "status"))
        if tenant_id is not None:
            query = query.where(Payment.tenant_id == tenant_id)
        with self.database.session() as db:
            return list(db.scalars(query))

    def list_for_tenant(self, tenant_id: int) -> Dict[str, Any]:
        """All payments of a tenant plus the total of the completed ones."""
        with self.database.session() as db:
            if db.get(Tenant, tenant_id) is None:
                raise NotFoundError("Tenant not found")
            payments = list(db.scalars(
                select(Payment).where(Payment.tenant_id == tenant_id).order_by(Payment.payment_date.desc(), Payment.id.desc())
            ))
        total_paid = sum((p.amount for p in payments if p.status == PaymentStatus.COMPLETED), Decimal("0"))
        return {"payments": payments, "total_paid": total_paid}

    def list_for_property(self, property_id: int) -> Dict[str, Any]:
        with self.database.session() as db:
            if db.get(Property, property_id) is None:
                raise NotFoundError("Property not found")
            payments = list(db.scalars(
                select(Payment).where(Payment.property_id == property_id).order_by(Payment.payment_date.desc(), Payment.id.desc())
            ))
        total_collected = sum((p.amount for p in payments if p.status == PaymentStatus.COMPLETED), Decimal("0"))
        return {"payments": payments, "total_collected": total_collected}

    def monthly(self, month: Any, year: Any) -> Dict[str, Any]:
        """Payments dated in the given calendar month."""
        month_i, year_i = validate_month_year(month, year)
        query = (
            select(Payment)
            .where(extract("month", Payment.payment_date) == month_i)
            .where(extract("year", Payment.payment_date) == year_i)
            .order_by(Payment.payment_date.desc(), Payment.id.desc())
        )
        with self.database.session() as db:
            payments = list(db.scalars(query))
        total = sum((p.amount for p in payments if p.status == PaymentStatus.COMPLETED), Decimal("0"))
        return {"month": month_i, "year": year_i, "payments": payments, "total": total}

    def stats(self) -> Dict[str, Any]:
        completed = Payment.status == PaymentStatus.COMPLETED
        with self.database.session() as db:
            total_payments = db.scalar(select(func.count(Payment.id))) or 0
            collected = db.scalar(select(func.coalesce(func.sum(Payment.amount), 0)).where(completed))
            average = db.scalar(select(func.avg(Payment.amount)).where(completed))
            unique_tenants = db.scalar(select(func.count(func.distinct(Payment.tenant_id)))) or 0
            by_status = dict(
                db.execute(select(Payment.status, func.count(Payment.id)).group_by(Payment.status)).all()
            )

        return {
            "total_payments": total_payments,
            "total_collected": _money(collected),
            "average_payment": round(_money(average), 2),
            "unique_tenants": unique_tenants,
            "completed_count": by_status.get(PaymentStatus.COMPLETED, 0),
            "pending_count": by_status.get(PaymentStatus.PENDING, 0),
            "cancelled_count": by_status.get(PaymentStatus.CANCELLED, 0),
        }
