"""
Commission Ledger

Agent commissions move pending -> paid or pending -> cancelled, never back.

Rules:
  • property must exist; a tenant, if given, must occupy a unit of that property
  • paid (and cancelled) commissions accept note edits only
  • status changes only through mark_paid / cancel, never through update
  • cancelling keeps the row and appends the reason to its notes
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import case, func, select

from app.core.config import settings
from app.core.exceptions import (
    AlreadyPaid,
    CannotCancelPaid,
    NotFoundError,
    StateTransitionError,
    ValidationError,
)
from app.database import Database
from app.models.commission import AgentCommission, CommissionStatus
from app.models.property import Property, Unit
from app.models.tenant import Tenant
from app.services.validators import (
    parse_date,
    parse_enum,
    require_positive,
    require_text,
    validate_agent_phone,
    validate_percentage,
    whitelist,
)

logger = logging.getLogger(__name__)

COMMISSION_UPDATABLE_FIELDS = (
    "tenant_id",
    "property_id",
    "agent_name",
    "agent_phone",
    "commission_amount",
    "commission_percentage",
    "notes",
)


def _collect(errors: List[str], check: Callable[[], Any]) -> Any:
    """Run *check*, stash its ValidationError message instead of raising."""
    try:
        return check()
    except ValidationError as exc:
        errors.append(exc.message)
        return None


def _money(value) -> float:
    return float(value or 0)


class CommissionService:
    """Commission state machine plus reporting."""

    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Writes ────────────────────────────

    def create_commission(
        self,
        property_id: Optional[int],
        agent_name: Optional[str],
        commission_amount: Any,
        agent_phone: Optional[str] = None,
        commission_percentage: Any = None,
        tenant_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> AgentCommission:
        errors: List[str] = []
        if property_id is None:
            errors.append("property_id is required")
        name = _collect(errors, lambda: require_text(agent_name, "agent_name", min_length=2, max_length=100))
        amount = _collect(errors, lambda: require_positive(commission_amount, "commission_amount"))
        phone = _collect(errors, lambda: validate_agent_phone(agent_phone))
        percentage = _collect(errors, lambda: validate_percentage(commission_percentage))
        if errors:
            raise ValidationError("Validation failed: " + "; ".join(errors), errors=errors)

        with self.database.transaction() as db:
            self._check_references(db, property_id, tenant_id)
            commission = AgentCommission(
                property_id=property_id,
                tenant_id=tenant_id,
                agent_name=name,
                agent_phone=phone,
                commission_amount=amount,
                commission_percentage=percentage,
                status=CommissionStatus.PENDING,
                notes=notes,
            )
            db.add(commission)
            db.flush()
            db.refresh(commission)

        logger.info(f"[COMMISSION] Created commission #{commission.id} for {name}: {amount}")
        return commission

    def update_commission(self, commission_id: int, fields: Dict[str, Any]) -> AgentCommission:
        with self.database.transaction() as db:
            commission = self._load(db, commission_id)
            if commission.status != CommissionStatus.PENDING and set(fields) - {"notes"}:
                raise StateTransitionError(
                    f"Commission is {commission.status.value}; only notes can be changed"
                )
            changes = whitelist(fields, COMMISSION_UPDATABLE_FIELDS)

            errors: List[str] = []
            if "agent_name" in changes:
                name = _collect(errors, lambda: require_text(changes["agent_name"], "agent_name", min_length=2, max_length=100))
                if name is not None:
                    commission.agent_name = name
            if "agent_phone" in changes:
                commission.agent_phone = _collect(errors, lambda: validate_agent_phone(changes["agent_phone"]))
            if "commission_amount" in changes:
                amount = _collect(errors, lambda: require_positive(changes["commission_amount"], "commission_amount"))
                if amount is not None:
                    commission.commission_amount = amount
            if "commission_percentage" in changes:
                commission.commission_percentage = _collect(
                    errors, lambda: validate_percentage(changes["commission_percentage"])
                )
            if errors:
                raise ValidationError("Validation failed: " + "; ".join(errors), errors=errors)

            if "notes" in changes:
                commission.notes = changes["notes"]
            if "property_id" in changes or "tenant_id" in changes:
                property_id = changes.get("property_id", commission.property_id)
                tenant_id = changes.get("tenant_id", commission.tenant_id)
                if property_id is None:
                    raise ValidationError("property_id is required")
                self._check_references(db, property_id, tenant_id)
                commission.property_id = property_id
                commission.tenant_id = tenant_id

            db.flush()
            db.refresh(commission)

        logger.info(f"[COMMISSION] Updated commission #{commission_id}: {sorted(changes)}")
        return commission

    def mark_paid(
        self,
        commission_id: int,
        paid_date: Any = None,
        payment_reference: Optional[str] = None,
    ) -> AgentCommission:
        paid_on = parse_date(paid_date, "paid_date") or date.today()

        with self.database.transaction() as db:
            commission = self._load(db, commission_id)
            if commission.status == CommissionStatus.PAID:
                raise AlreadyPaid("Commission already marked as paid")
            if commission.status == CommissionStatus.CANCELLED:
                raise StateTransitionError("Cancelled commissions cannot be paid")

            commission.status = CommissionStatus.PAID
            commission.paid_date = paid_on
            commission.payment_reference = payment_reference
            db.flush()
            db.refresh(commission)

        logger.info(f"[COMMISSION] Commission #{commission_id} marked paid ({payment_reference or 'no reference'})")
        return commission

    def cancel_commission(self, commission_id: int, reason: Optional[str] = None) -> AgentCommission:
        with self.database.transaction() as db:
            commission = self._load(db, commission_id)
            if commission.status == CommissionStatus.PAID:
                raise CannotCancelPaid("Cannot delete paid commissions")
            if commission.status == CommissionStatus.CANCELLED:
                raise StateTransitionError("Commission already cancelled")

            commission.status = CommissionStatus.CANCELLED
            commission.notes = f"{commission.notes or ''} [CANCELLED: {reason or 'No reason provided'}]"
            db.flush()
            db.refresh(commission)

        logger.info(f"[COMMISSION] Commission #{commission_id} cancelled")
        return commission

    # ──────────────────────────── Reads ────────────────────────────

    def get_commission(self, commission_id: int) -> AgentCommission:
        with self.database.session() as db:
            return self._load(db, commission_id)

    def list_commissions(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        status: Any = None,
        property_id: Optional[int] = None,
        agent_name: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> Dict[str, Any]:
        """Paginated, filtered list; newest first."""
        page = max(1, int(page or 1))
        limit = min(max(1, int(limit or settings.DEFAULT_PAGE_SIZE)), settings.MAX_PAGE_SIZE)

        conditions = []
        if status:
            conditions.append(AgentCommission.status == parse_enum(CommissionStatus, status, "status"))
        if property_id is not None:
            conditions.append(AgentCommission.property_id == property_id)
        if agent_name:
            conditions.append(AgentCommission.agent_name.ilike(f"%{agent_name}%"))
        conditions.extend(self._date_range(date_from, date_to))

        with self.database.session() as db:
            total = db.scalar(select(func.count(AgentCommission.id)).where(*conditions)) or 0
            commissions = list(db.scalars(
                select(AgentCommission)
                .where(*conditions)
                .order_by(AgentCommission.created_at.desc(), AgentCommission.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ))

        return {
            "commissions": commissions,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": math.ceil(total / limit) if total else 0,
            },
        }

    def pending_summary(self) -> Dict[str, Any]:
        """Outstanding commissions grouped by agent."""
        pending = AgentCommission.status == CommissionStatus.PENDING
        with self.database.session() as db:
            rows = db.execute(
                select(
                    AgentCommission.agent_name,
                    func.count(AgentCommission.id),
                    func.coalesce(func.sum(AgentCommission.commission_amount), 0),
                )
                .where(pending)
                .group_by(AgentCommission.agent_name)
                .order_by(AgentCommission.agent_name.asc())
            ).all()

        by_agent = [
            {"agent_name": name, "count": count, "total_amount": _money(total)}
            for name, count, total in rows
        ]
        return {
            "total_pending": round(sum(a["total_amount"] for a in by_agent), 2),
            "count": sum(a["count"] for a in by_agent),
            "by_agent": by_agent,
        }

    def stats(self, start_date: Any = None, end_date: Any = None, property_id: Optional[int] = None) -> Dict[str, Any]:
        conditions = self._date_range(start_date, end_date)
        if property_id is not None:
            conditions.append(AgentCommission.property_id == property_id)

        def count_where(state):
            return func.coalesce(func.sum(case((AgentCommission.status == state, 1), else_=0)), 0)

        def amount_where(state):
            return func.coalesce(
                func.sum(case((AgentCommission.status == state, AgentCommission.commission_amount), else_=0)), 0
            )

        with self.database.session() as db:
            row = db.execute(
                select(
                    func.count(AgentCommission.id),
                    count_where(CommissionStatus.PENDING),
                    count_where(CommissionStatus.PAID),
                    count_where(CommissionStatus.CANCELLED),
                    amount_where(CommissionStatus.PENDING),
                    amount_where(CommissionStatus.PAID),
                    func.avg(AgentCommission.commission_amount),
                    func.count(func.distinct(AgentCommission.agent_name)),
                ).where(*conditions)
            ).one()

        total, pending, paid, cancelled, pending_amount, paid_amount, average, agents = row
        return {
            "total_commissions": total or 0,
            "pending_count": int(pending),
            "paid_count": int(paid),
            "cancelled_count": int(cancelled),
            "total_pending_amount": _money(pending_amount),
            "total_paid_amount": _money(paid_amount),
            "average_commission": round(_money(average), 2),
            "unique_agents": agents or 0,
        }

    # ──────────────────────────── Helpers ────────────────────────────

    @staticmethod
    def _load(db, commission_id: int) -> AgentCommission:
        commission = db.get(AgentCommission, commission_id)
        if commission is None:
            raise NotFoundError("Commission not found")
        return commission

    @staticmethod
    def _check_references(db, property_id: int, tenant_id: Optional[int]) -> None:
        if db.get(Property, property_id) is None:
            raise ValidationError("Property not found")
        if tenant_id is None:
            return
        if db.get(Tenant, tenant_id) is None:
            raise ValidationError("Tenant not found")
        in_property = db.scalar(
            select(func.count(Tenant.id))
            .join(Unit, Tenant.unit_id == Unit.id)
            .where(Tenant.id == tenant_id, Unit.property_id == property_id)
        )
        if not in_property:
            raise ValidationError("Tenant does not belong to the specified property")

    @staticmethod
    def _date_range(date_from: Any, date_to: Any) -> list:
        conditions = []
        start = parse_date(date_from, "date_from")
        end = parse_date(date_to, "date_to")
        if start is not None:
            conditions.append(AgentCommission.created_at >= datetime.combine(start, time.min))
        if end is not None:
            conditions.append(AgentCommission.created_at < datetime.combine(end + timedelta(days=1), time.min))
        return conditions
