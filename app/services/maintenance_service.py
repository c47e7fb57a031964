"""
Maintenance Requests

Repair tickets raised against a unit. Open requests (pending, in_progress)
are worked through by priority; completion stamps the resolved date and the
final cost.

Rules:
  • the unit must belong to the property; a tenant, if given, must exist
  • completion only through complete_request, never through update
  • completed and cancelled requests accept note edits only
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import case, select

from app.core.exceptions import NotFoundError, StateTransitionError, ValidationError
from app.database import Database
from app.models.maintenance import MaintenancePriority, MaintenanceRequest, MaintenanceStatus
from app.models.property import Property, Unit
from app.models.tenant import Tenant
from app.services.validators import (
    parse_date,
    parse_enum,
    require_non_negative,
    require_text,
    whitelist,
)

logger = logging.getLogger(__name__)

OPEN_STATUSES = (MaintenanceStatus.PENDING, MaintenanceStatus.IN_PROGRESS)

MAINTENANCE_UPDATABLE_FIELDS = (
    "tenant_id",
    "issue_type",
    "description",
    "priority",
    "status",
    "assigned_to",
    "reported_date",
    "cost",
    "notes",
)

PRIORITY_RANK = case(
    (MaintenanceRequest.priority == MaintenancePriority.URGENT, 1),
    (MaintenanceRequest.priority == MaintenancePriority.HIGH, 2),
    (MaintenanceRequest.priority == MaintenancePriority.MEDIUM, 3),
    else_=4,
)


class MaintenanceService:
    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Writes ────────────────────────────

    def create_request(
        self,
        property_id: Optional[int],
        unit_id: Optional[int],
        issue_type: Optional[str],
        description: Optional[str],
        tenant_id: Optional[int] = None,
        priority: Any = None,
        reported_date: Any = None,
        assigned_to: Optional[str] = None,
        cost: Any = None,
        notes: Optional[str] = None,
    ) -> MaintenanceRequest:
        if property_id is None or unit_id is None:
            raise ValidationError("Missing required fields: property_id, unit_id, issue_type, description")
        request = MaintenanceRequest(
            property_id=property_id,
            unit_id=unit_id,
            tenant_id=tenant_id,
            issue_type=require_text(issue_type, "issue_type", max_length=100),
            description=require_text(description, "description"),
            priority=parse_enum(MaintenancePriority, priority or MaintenancePriority.MEDIUM, "priority"),
            status=MaintenanceStatus.PENDING,
            reported_date=parse_date(reported_date, "reported_date") or date.today(),
            assigned_to=assigned_to,
            cost=require_non_negative(cost, "cost") if cost is not None else Decimal("0"),
            notes=notes,
        )

        with self.database.transaction() as db:
            self._check_references(db, property_id, unit_id, tenant_id)
            db.add(request)
            db.flush()
            db.refresh(request)

        logger.info(
            f"[MAINTENANCE] Request #{request.id}: {request.issue_type} "
            f"unit {unit_id} ({request.priority.value})"
        )
        return request

    def update_request(self, request_id: int, fields: Dict[str, Any]) -> MaintenanceRequest:
        changes = whitelist(fields, MAINTENANCE_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            request = self._load(db, request_id)
            if request.status not in OPEN_STATUSES and set(changes) - {"notes"}:
                raise StateTransitionError(
                    f"Maintenance request is {request.status.value}; only notes can be changed"
                )

            if "status" in changes:
                target = parse_enum(MaintenanceStatus, changes["status"], "status")
                if target == MaintenanceStatus.COMPLETED:
                    raise StateTransitionError("Use the complete action to close a maintenance request")
                request.status = target
            if "issue_type" in changes:
                request.issue_type = require_text(changes["issue_type"], "issue_type", max_length=100)
            if "description" in changes:
                request.description = require_text(changes["description"], "description")
            if "priority" in changes:
                request.priority = parse_enum(MaintenancePriority, changes["priority"], "priority")
            if "reported_date" in changes:
                request.reported_date = parse_date(changes["reported_date"], "reported_date", required=True)
            if "cost" in changes:
                request.cost = require_non_negative(changes["cost"] or 0, "cost")
            if "assigned_to" in changes:
                request.assigned_to = changes["assigned_to"]
            if "notes" in changes:
                request.notes = changes["notes"]
            if "tenant_id" in changes:
                self._check_references(db, request.property_id, request.unit_id, changes["tenant_id"])
                request.tenant_id = changes["tenant_id"]

            db.flush()
            db.refresh(request)

        logger.info(f"[MAINTENANCE] Updated request #{request_id}: {sorted(changes)}")
        return request

    def complete_request(
        self,
        request_id: int,
        cost: Any = None,
        notes: Optional[str] = None,
        resolved_date: Any = None,
    ) -> MaintenanceRequest:
        resolved_on = parse_date(resolved_date, "resolved_date") or date.today()
        final_cost = require_non_negative(cost, "cost") if cost is not None else None

        with self.database.transaction() as db:
            request = self._load(db, request_id)
            if request.status not in OPEN_STATUSES:
                raise StateTransitionError(f"Maintenance request is already {request.status.value}")
            if resolved_on < request.reported_date:
                raise ValidationError("resolved_date cannot be before reported_date")

            request.status = MaintenanceStatus.COMPLETED
            request.resolved_date = resolved_on
            if final_cost is not None:
                request.cost = final_cost
            if notes is not None:
                request.notes = notes
            db.flush()
            db.refresh(request)

        logger.info(f"[MAINTENANCE] Request #{request_id} completed (cost {request.cost})")
        return request

    # ──────────────────────────── Reads ────────────────────────────

    def get_request(self, request_id: int) -> MaintenanceRequest:
        with self.database.session() as db:
            return self._load(db, request_id)

    def list_requests(
        self,
        status: Any = None,
        priority: Any = None,
        property_id: Optional[int] = None,
    ) -> List[MaintenanceRequest]:
        query = select(MaintenanceRequest).order_by(
            MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc()
        )
        if status:
            query = query.where(MaintenanceRequest.status == parse_enum(MaintenanceStatus, status, "status"))
        if priority:
            query = query.where(
                MaintenanceRequest.priority == parse_enum(MaintenancePriority, priority, "priority")
            )
        if property_id is not None:
            query = query.where(MaintenanceRequest.property_id == property_id)
        with self.database.session() as db:
            return list(db.scalars(query))

    def list_pending(self) -> List[MaintenanceRequest]:
        """Open requests, most urgent first, then most recently reported."""
        query = (
            select(MaintenanceRequest)
            .where(MaintenanceRequest.status.in_(OPEN_STATUSES))
            .order_by(PRIORITY_RANK, MaintenanceRequest.reported_date.desc(), MaintenanceRequest.id.desc())
        )
        with self.database.session() as db:
            return list(db.scalars(query))

    # ──────────────────────────── Helpers ────────────────────────────

    @staticmethod
    def _load(db, request_id: int) -> MaintenanceRequest:
        request = db.get(MaintenanceRequest, request_id)
        if request is None:
            raise NotFoundError("Maintenance request not found")
        return request

    @staticmethod
    def _check_references(db, property_id: int, unit_id: int, tenant_id: Optional[int]) -> None:
        if db.get(Property, property_id) is None:
            raise ValidationError("Property not found")
        unit = db.get(Unit, unit_id)
        if unit is None:
            raise ValidationError("Unit not found")
        if unit.property_id != property_id:
            raise ValidationError("Unit does not belong to the specified property")
        if tenant_id is not None and db.get(Tenant, tenant_id) is None:
            raise ValidationError("Tenant not found")
