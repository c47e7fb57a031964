"""
Payment Plan Engine

Installment plans for tenants clearing an outstanding amount.

Rules:
  • balance == total_amount - amount_paid after every write
  • amount_paid only grows; each installment also appends a Payment tagged
    with the plan id, in the same transaction as the plan update
  • balance <= 0 completes the plan and clears next_due_date; otherwise the
    next due date is advanced from the payment date by the plan frequency
  • overpayment is accepted and simply completes the plan (no credit carried)
  • installments race through SELECT ... FOR UPDATE (PostgreSQL) and the
    plan's version column (every backend); a lost race is retried
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy import select

from app.core.config import settings
from app.core.exceptions import (
    ConcurrentUpdateError,
    InvalidFrequency,
    NotFoundError,
    PlanNotActive,
    StateTransitionError,
    ValidationError,
)
from app.database import Database
from app.models.payment import Payment, PaymentStatus
from app.models.payment_plan import InstallmentFrequency, PaymentPlan, PlanStatus
from app.models.tenant import Tenant
from app.services.validators import parse_date, parse_enum, require_positive, whitelist

logger = logging.getLogger(__name__)

FREQUENCY_STEPS = {
    InstallmentFrequency.WEEKLY: relativedelta(weeks=1),
    InstallmentFrequency.BIWEEKLY: relativedelta(weeks=2),
    InstallmentFrequency.MONTHLY: relativedelta(months=1),
    InstallmentFrequency.QUARTERLY: relativedelta(months=3),
}

PLAN_UPDATABLE_FIELDS = ("installment_amount", "installment_frequency", "end_date", "description")


def parse_frequency(value: Any) -> InstallmentFrequency:
    if value is None or value == "":
        return InstallmentFrequency.MONTHLY
    return parse_enum(InstallmentFrequency, value, "installment frequency", InvalidFrequency)


def advance(from_date: date, frequency: Any) -> date:
    """Next due date after *from_date*.

    Monthly and quarterly steps are calendar months; the day is clamped to the
    end of a shorter month (Jan 31 + 1 month -> Feb 28/29).
    """
    return from_date + FREQUENCY_STEPS[parse_frequency(frequency)]


class PaymentPlanService:
    """Creates plans and records installments against them."""

    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Public API ────────────────────────────

    def create_plan(
        self,
        tenant_id: Optional[int],
        total_amount: Any,
        installment_amount: Any,
        start_date: Any,
        installment_frequency: Any = None,
        end_date: Any = None,
        property_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> PaymentPlan:
        """
        Create an active plan with balance == total_amount.

        Args:
            tenant_id:             Tenant the plan belongs to.
            total_amount:          Amount to clear, > 0.
            installment_amount:    Expected installment, > 0 and <= total_amount.
            start_date:            First day of the plan; next_due_date is one step later.
            installment_frequency: weekly | biweekly | monthly | quarterly (default monthly).

        Returns:
            The persisted PaymentPlan.
        """
        if tenant_id is None:
            raise ValidationError("tenant_id is required")
        total = require_positive(total_amount, "total_amount")
        installment = require_positive(installment_amount, "installment_amount")
        if installment > total:
            raise ValidationError("installment_amount cannot exceed total_amount")
        frequency = parse_frequency(installment_frequency)
        start = parse_date(start_date, "start_date", required=True)
        end = parse_date(end_date, "end_date")
        if end is not None and end < start:
            raise ValidationError("end_date cannot be before start_date")

        with self.database.transaction() as db:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None:
                raise ValidationError("Tenant not found")

            plan = PaymentPlan(
                tenant_id=tenant.id,
                property_id=property_id if property_id is not None else tenant.property_id,
                unit_id=unit_id if unit_id is not None else tenant.unit_id,
                total_amount=total,
                amount_paid=Decimal("0"),
                balance=total,
                installment_amount=installment,
                installment_frequency=frequency,
                start_date=start,
                end_date=end,
                next_due_date=advance(start, frequency),
                status=PlanStatus.ACTIVE,
                description=description,
            )
            db.add(plan)
            db.flush()
            db.refresh(plan)

        logger.info(
            f"[PAYMENT_PLAN] Created plan #{plan.id} for tenant {plan.tenant_id}: "
            f"total={plan.total_amount} installment={plan.installment_amount} {frequency.value}"
        )
        return plan

    def record_installment(
        self,
        plan_id: int,
        amount: Any,
        payment_date: Any = None,
        payment_method: Optional[str] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Apply an installment to a plan and append the matching Payment atomically.

        Returns:
            dict with new_amount_paid, new_balance, status, next_due_date, payment_id.
        """
        paid = require_positive(amount, "amount")
        paid_on = parse_date(payment_date, "payment_date") or date.today()

        retries = max(1, settings.PLAN_LOCK_RETRIES)
        for attempt in range(1, retries + 1):
            try:
                return self._apply_installment(plan_id, paid, paid_on, payment_method, reference_number, notes)
            except ConcurrentUpdateError:
                logger.warning(f"[PAYMENT_PLAN] Plan #{plan_id} changed concurrently (attempt {attempt}/{retries})")
                if attempt == retries:
                    raise
        raise ConcurrentUpdateError()

    def get_plan(self, plan_id: int) -> PaymentPlan:
        with self.database.session() as db:
            plan = db.get(PaymentPlan, plan_id)
        if plan is None:
            raise NotFoundError("Payment plan not found")
        return plan

    def list_plans(self, status: Any = None, tenant_id: Optional[int] = None) -> List[PaymentPlan]:
        query = select(PaymentPlan).order_by(PaymentPlan.created_at.desc(), PaymentPlan.id.desc())
        if status:
            query = query.where(PaymentPlan.status == parse_enum(PlanStatus, status, "status"))
        if tenant_id is not None:
            query = query.where(PaymentPlan.tenant_id == tenant_id)
        with self.database.session() as db:
            return list(db.scalars(query))

    def list_active_plans(self) -> List[PaymentPlan]:
        """Active plans, soonest due first."""
        query = (
            select(PaymentPlan)
            .where(PaymentPlan.status == PlanStatus.ACTIVE)
            .order_by(PaymentPlan.next_due_date.asc(), PaymentPlan.id.asc())
        )
        with self.database.session() as db:
            return list(db.scalars(query))

    def update_plan(self, plan_id: int, fields: Dict[str, Any]) -> PaymentPlan:
        """Edit schedule details. Amounts paid and status never change here."""
        changes = whitelist(fields, PLAN_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            plan = db.get(PaymentPlan, plan_id)
            if plan is None:
                raise NotFoundError("Payment plan not found")
            if plan.status != PlanStatus.ACTIVE and set(changes) - {"description"}:
                raise PlanNotActive(f"Payment plan is {plan.status.value}; only the description can change")

            if "installment_amount" in changes:
                installment = require_positive(changes["installment_amount"], "installment_amount")
                if installment > plan.total_amount:
                    raise ValidationError("installment_amount cannot exceed total_amount")
                plan.installment_amount = installment
            if "installment_frequency" in changes:
                plan.installment_frequency = parse_enum(
                    InstallmentFrequency, changes["installment_frequency"], "installment frequency", InvalidFrequency
                )
            if "end_date" in changes:
                end = parse_date(changes["end_date"], "end_date")
                if end is not None and end < plan.start_date:
                    raise ValidationError("end_date cannot be before start_date")
                plan.end_date = end
            if "description" in changes:
                plan.description = changes["description"]

            db.flush()
            db.refresh(plan)

        logger.info(f"[PAYMENT_PLAN] Updated plan #{plan_id}: {sorted(changes)}")
        return plan

    def cancel_plan(self, plan_id: int) -> PaymentPlan:
        """Soft delete: recorded installments stay attached to a cancelled plan."""
        with self.database.transaction() as db:
            plan = db.get(PaymentPlan, plan_id)
            if plan is None:
                raise NotFoundError("Payment plan not found")
            if plan.status != PlanStatus.ACTIVE:
                raise StateTransitionError(f"Payment plan is already {plan.status.value}")
            plan.status = PlanStatus.CANCELLED
            plan.next_due_date = None
            db.flush()
            db.refresh(plan)

        logger.info(f"[PAYMENT_PLAN] Cancelled plan #{plan_id}")
        return plan

    # ─────────────────────── Installment internals ───────────────────────

    def _apply_installment(
        self,
        plan_id: int,
        amount: Decimal,
        paid_on: date,
        payment_method: Optional[str],
        reference_number: Optional[str],
        notes: Optional[str],
    ) -> Dict[str, Any]:
        with self.database.transaction() as db:
            plan = db.execute(
                select(PaymentPlan).where(PaymentPlan.id == plan_id).with_for_update()
            ).scalar_one_or_none()
            if plan is None:
                raise NotFoundError("Payment plan not found")
            if plan.status != PlanStatus.ACTIVE:
                raise PlanNotActive(f"Payment plan is {plan.status.value}")

            new_amount_paid = plan.amount_paid + amount
            new_balance = plan.total_amount - new_amount_paid
            if new_balance <= 0:
                new_status = PlanStatus.COMPLETED
                next_due = None
            else:
                new_status = PlanStatus.ACTIVE
                next_due = advance(paid_on, plan.installment_frequency)

            plan.amount_paid = new_amount_paid
            plan.balance = new_balance
            plan.status = new_status
            plan.next_due_date = next_due
            # Version check happens here; a stale read raises and is retried
            db.flush()

            payment = Payment(
                tenant_id=plan.tenant_id,
                property_id=plan.property_id,
                unit_id=plan.unit_id,
                plan_id=plan.id,
                amount=amount,
                payment_date=paid_on,
                payment_month=paid_on.strftime("%Y-%m"),
                payment_method=payment_method or settings.DEFAULT_PAYMENT_METHOD,
                reference_number=reference_number,
                notes=notes or f"Installment payment for plan #{plan.id}",
                status=PaymentStatus.COMPLETED,
            )
            db.add(payment)
            db.flush()

            result = {
                "plan_id": plan.id,
                "new_amount_paid": float(new_amount_paid),
                "new_balance": float(new_balance),
                "status": new_status.value,
                "next_due_date": next_due.isoformat() if next_due else None,
                "payment_id": payment.id,
            }

        logger.info(
            f"[PAYMENT_PLAN] Installment {amount} on plan #{plan_id}: "
            f"paid={result['new_amount_paid']} balance={result['new_balance']} status={result['status']}"
        )
        return result
