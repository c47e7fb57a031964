"""
Tenant Registry
Tenant registration and move-out. Both write the tenant row and flip unit
occupancy in one transaction, so a failure on either side leaves nothing behind.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from app.core.exceptions import (
    DuplicateRecordError,
    NotFoundError,
    StateTransitionError,
    ValidationError,
)
from app.database import Database
from app.models.property import Unit
from app.models.tenant import Tenant, TenantStatus
from app.services import occupancy_service
from app.services.validators import (
    normalize_phone,
    parse_date,
    require_non_negative,
    require_text,
    validate_email,
    validate_id_number,
    whitelist,
)

logger = logging.getLogger(__name__)

TENANT_UPDATABLE_FIELDS = (
    "full_name",
    "phone",
    "email",
    "id_number",
    "emergency_contact_name",
    "emergency_contact_phone",
    "rent_amount",
    "deposit_paid",
    "rent_balance",
)


class TenantService:
    """Registers tenants against units and moves them out again."""

    def __init__(self, database: Database):
        self.database = database

    # ──────────────────────────── Writes ────────────────────────────

    def create_tenant(
        self,
        full_name: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        unit_id: Optional[int],
        id_number: Optional[str] = None,
        emergency_contact_name: Optional[str] = None,
        emergency_contact_phone: Optional[str] = None,
        rent_amount: Any = None,
        deposit_paid: Any = 0,
        rent_balance: Any = 0,
        move_in_date: Any = None,
    ) -> Tenant:
        """
        Register a tenant and mark their unit occupied.

        Raises:
            ValidationError:      bad phone / email / id number, unknown unit.
            DuplicateRecordError: phone or email already used by an active tenant, id number taken.
            UnitAlreadyOccupied:  the unit already has an active tenant.
        """
        name = require_text(full_name, "full_name", max_length=255)
        phone = normalize_phone(phone)
        email = validate_email(email)
        id_number = validate_id_number(id_number)
        if unit_id is None:
            raise ValidationError("unit_id is required")
        emergency_phone = normalize_phone(emergency_contact_phone, "emergency_contact_phone") if emergency_contact_phone else None
        deposit = require_non_negative(deposit_paid or 0, "deposit_paid")
        balance = require_non_negative(rent_balance or 0, "rent_balance")
        rent = require_non_negative(rent_amount, "rent_amount") if rent_amount is not None else None
        moved_in = parse_date(move_in_date, "move_in_date") or date.today()

        with self.database.transaction() as db:
            unit = db.get(Unit, unit_id)
            if unit is None:
                raise ValidationError("Unit not found")
            self._check_duplicates(db, phone=phone, email=email, id_number=id_number)

            tenant = Tenant(
                full_name=name,
                phone=phone,
                email=email,
                id_number=id_number,
                property_id=unit.property_id,
                unit_id=unit.id,
                emergency_contact_name=emergency_contact_name,
                emergency_contact_phone=emergency_phone,
                rent_amount=rent if rent is not None else unit.monthly_rent,
                deposit_paid=deposit,
                rent_balance=balance,
                status=TenantStatus.ACTIVE,
                move_in_date=moved_in,
            )
            db.add(tenant)
            db.flush()
            occupancy_service.assign(db, unit.id, tenant.id)
            db.refresh(tenant)

        logger.info(f"[CREATE_TENANT] Tenant #{tenant.id} ({tenant.full_name}) moved into unit {tenant.unit_id}")
        return tenant

    def deactivate_tenant(self, tenant_id: int, move_out_date: Any = None) -> Tenant:
        """Soft delete: status inactive, move-out date set, unit released."""
        moved_out = parse_date(move_out_date, "move_out_date") or date.today()

        with self.database.transaction() as db:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None:
                raise NotFoundError("Tenant not found")
            if tenant.status != TenantStatus.ACTIVE:
                raise StateTransitionError("Tenant is already inactive")

            tenant.status = TenantStatus.INACTIVE
            tenant.move_out_date = moved_out
            db.flush()
            if tenant.unit_id is not None:
                occupancy_service.release(db, tenant.unit_id)
            db.refresh(tenant)

        logger.info(f"[DELETE_TENANT] Tenant #{tenant_id} deactivated, unit {tenant.unit_id} released")
        return tenant

    def update_tenant(self, tenant_id: int, fields: Dict[str, Any]) -> Tenant:
        changes = whitelist(fields, TENANT_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            tenant = db.get(Tenant, tenant_id)
            if tenant is None:
                raise NotFoundError("Tenant not found")

            if "full_name" in changes:
                tenant.full_name = require_text(changes["full_name"], "full_name", max_length=255)
            if "phone" in changes:
                tenant.phone = normalize_phone(changes["phone"])
            if "email" in changes:
                tenant.email = validate_email(changes["email"])
            if "id_number" in changes:
                tenant.id_number = validate_id_number(changes["id_number"])
            if "emergency_contact_name" in changes:
                tenant.emergency_contact_name = changes["emergency_contact_name"]
            if "emergency_contact_phone" in changes:
                value = changes["emergency_contact_phone"]
                tenant.emergency_contact_phone = normalize_phone(value, "emergency_contact_phone") if value else None
            if "rent_amount" in changes:
                value = changes["rent_amount"]
                tenant.rent_amount = require_non_negative(value, "rent_amount") if value is not None else None
            for key in ("deposit_paid", "rent_balance"):
                if key in changes:
                    setattr(tenant, key, require_non_negative(changes[key], key))

            if tenant.is_active:
                self._check_duplicates(
                    db,
                    phone=tenant.phone if "phone" in changes else None,
                    email=tenant.email if "email" in changes else None,
                    id_number=tenant.id_number if "id_number" in changes else None,
                    exclude_id=tenant.id,
                )
            db.flush()
            db.refresh(tenant)

        logger.info(f"[UPDATE_TENANT] Tenant #{tenant_id}: {sorted(changes)}")
        return tenant

    # ──────────────────────────── Reads ────────────────────────────

    def get_tenant(self, tenant_id: int) -> Tenant:
        with self.database.session() as db:
            tenant = db.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def list_tenants(self, is_active: Optional[bool] = None, has_arrears: Optional[bool] = None) -> List[Tenant]:
        query = select(Tenant).order_by(Tenant.full_name.asc(), Tenant.id.asc())
        if is_active is not None:
            query = query.where(Tenant.status == (TenantStatus.ACTIVE if is_active else TenantStatus.INACTIVE))
        if has_arrears is not None:
            query = query.where(Tenant.rent_balance > 0 if has_arrears else Tenant.rent_balance <= 0)
        with self.database.session() as db:
            return list(db.scalars(query))

    def list_arrears(self) -> Dict[str, Any]:
        """Active tenants owing rent, largest balance first."""
        query = (
            select(Tenant)
            .where(Tenant.status == TenantStatus.ACTIVE, Tenant.rent_balance > 0)
            .order_by(Tenant.rent_balance.desc(), Tenant.id.asc())
        )
        with self.database.session() as db:
            tenants = list(db.scalars(query))
        total = sum((t.rent_balance for t in tenants), Decimal("0"))
        return {"tenants": tenants, "total_arrears": total}

    # ──────────────────────────── Helpers ────────────────────────────

    @staticmethod
    def _check_duplicates(db, phone=None, email=None, id_number=None, exclude_id=None) -> None:
        def taken(*conditions) -> bool:
            query = select(func.count(Tenant.id)).where(*conditions)
            if exclude_id is not None:
                query = query.where(Tenant.id != exclude_id)
            return (db.scalar(query) or 0) > 0

        active = Tenant.status == TenantStatus.ACTIVE
        if phone and taken(active, Tenant.phone == phone):
            raise DuplicateRecordError("A tenant with this phone number already exists")
        if email and taken(active, func.lower(Tenant.email) == email.lower()):
            raise DuplicateRecordError("A tenant with this email already exists")
        if id_number and taken(Tenant.id_number == id_number):
            raise DuplicateRecordError("A tenant with this ID number already exists")
