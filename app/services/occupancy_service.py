"""
Occupancy Ledger
Keeps units.is_occupied in step with the active tenant referencing the unit.
Both operations run inside the caller's transaction so the flag flips
atomically with the tenant write.
"""
import logging
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, UnitAlreadyOccupied
from app.models.property import Unit
from app.models.tenant import Tenant, TenantStatus

logger = logging.getLogger(__name__)


def assign(db: Session, unit_id: int, tenant_id=None) -> Unit:
    """Mark *unit_id* occupied; fails if it already is.

    The conditional UPDATE is the compare-and-swap: of two concurrent
    assignments only one sees a matching row.
    """
    result = db.execute(
        update(Unit)
        .where(Unit.id == unit_id, Unit.is_occupied.is_(False))
        .values(is_occupied=True)
        .execution_options(synchronize_session=False)
    )
    unit = db.get(Unit, unit_id)
    if unit is None:
        raise NotFoundError("Unit not found")
    if result.rowcount != 1:
        raise UnitAlreadyOccupied("Unit is already occupied")

    db.refresh(unit)
    logger.info(f"[OCCUPANCY] Unit {unit_id} assigned to tenant {tenant_id}")
    return unit


def release(db: Session, unit_id: int) -> None:
    """Mark *unit_id* vacant. Releasing a vacant unit is a no-op."""
    db.execute(
        update(Unit)
        .where(Unit.id == unit_id)
        .values(is_occupied=False)
        .execution_options(synchronize_session=False)
    )
    logger.info(f"[OCCUPANCY] Unit {unit_id} released")


def check_consistency(db: Session) -> List[int]:
    """Unit ids whose is_occupied flag disagrees with their active tenants."""
    active_counts = dict(
        db.execute(
            select(Tenant.unit_id, func.count(Tenant.id))
            .where(Tenant.status == TenantStatus.ACTIVE, Tenant.unit_id.is_not(None))
            .group_by(Tenant.unit_id)
        ).all()
    )
    mismatched = []
    for unit in db.scalars(select(Unit).order_by(Unit.id)):
        active = active_counts.get(unit.id, 0)
        if active > 1 or bool(unit.is_occupied) != (active == 1):
            mismatched.append(unit.id)
    return mismatched
