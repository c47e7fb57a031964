from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import NotFoundError, StateTransitionError, ValidationError
from app.services.maintenance_service import MaintenanceService


@pytest.fixture
def maintenance(database):
    return MaintenanceService(database)


@pytest.fixture
def tenant(seed):
    return seed.tenant()


def _leak(maintenance, tenant, **overrides):
    data = {
        "property_id": tenant.property_id,
        "unit_id": tenant.unit_id,
        "tenant_id": tenant.id,
        "issue_type": "plumbing",
        "description": "Kitchen sink leaking",
        "reported_date": date(2025, 3, 1),
    }
    data.update(overrides)
    return maintenance.create_request(**data)


def test_create_defaults(maintenance, tenant):
    request = _leak(maintenance, tenant, reported_date=None)
    assert request.status.value == "pending"
    assert request.priority.value == "medium"
    assert request.reported_date == date.today()
    assert request.cost == Decimal("0")
    assert request.resolved_date is None


def test_create_validation(maintenance, tenant, seed):
    with pytest.raises(ValidationError):
        _leak(maintenance, tenant, issue_type="")
    with pytest.raises(ValidationError):
        _leak(maintenance, tenant, description=None)
    with pytest.raises(ValidationError):
        _leak(maintenance, tenant, priority="whenever")
    with pytest.raises(ValidationError):
        _leak(maintenance, tenant, unit_id=None)
    with pytest.raises(ValidationError):
        _leak(maintenance, tenant, tenant_id=999)

    elsewhere = seed.property("Karen Villas")
    with pytest.raises(ValidationError) as exc:
        _leak(maintenance, tenant, property_id=elsewhere.id)
    assert "does not belong" in exc.value.message
    assert maintenance.list_requests() == []


def test_complete_request(maintenance, tenant):
    request = _leak(maintenance, tenant)
    maintenance.update_request(request.id, {"status": "in_progress", "assigned_to": "Otieno Plumbers"})

    done = maintenance.complete_request(request.id, cost=3500, notes="Replaced trap", resolved_date=date(2025, 3, 4))
    assert done.status.value == "completed"
    assert done.resolved_date == date(2025, 3, 4)
    assert done.cost == Decimal("3500")
    assert done.notes == "Replaced trap"
    assert done.assigned_to == "Otieno Plumbers"

    with pytest.raises(StateTransitionError):
        maintenance.complete_request(request.id)
    with pytest.raises(StateTransitionError):
        maintenance.update_request(request.id, {"cost": 100})
    assert maintenance.update_request(request.id, {"notes": "Warranty 6 months"}).notes == "Warranty 6 months"
    with pytest.raises(NotFoundError):
        maintenance.complete_request(999)


def test_complete_defaults_and_checks(maintenance, tenant):
    request = _leak(maintenance, tenant, notes="Reported by caretaker")
    with pytest.raises(ValidationError):
        maintenance.complete_request(request.id, resolved_date=date(2025, 2, 1))
    with pytest.raises(ValidationError):
        maintenance.complete_request(request.id, cost="free")

    done = maintenance.complete_request(request.id)
    assert done.resolved_date == date.today()
    assert done.notes == "Reported by caretaker"


def test_update_cannot_complete_or_touch_cancelled(maintenance, tenant):
    request = _leak(maintenance, tenant)
    with pytest.raises(StateTransitionError):
        maintenance.update_request(request.id, {"status": "completed"})
    with pytest.raises(ValidationError):
        maintenance.update_request(request.id, {"resolved_date": "2025-03-02"})

    updated = maintenance.update_request(request.id, {"priority": "high", "cost": 1200})
    assert updated.priority.value == "high"
    assert updated.cost == Decimal("1200")

    cancelled = maintenance.update_request(request.id, {"status": "cancelled"})
    assert cancelled.status.value == "cancelled"
    with pytest.raises(StateTransitionError):
        maintenance.update_request(request.id, {"status": "pending"})
    with pytest.raises(StateTransitionError):
        maintenance.complete_request(request.id)


def test_pending_sorted_by_priority(maintenance, tenant):
    low = _leak(maintenance, tenant, priority="low")
    urgent = _leak(maintenance, tenant, priority="urgent", issue_type="electrical")
    older_high = _leak(maintenance, tenant, priority="high", reported_date=date(2025, 2, 1))
    newer_high = _leak(maintenance, tenant, priority="high", reported_date=date(2025, 3, 5))
    working = _leak(maintenance, tenant, priority="medium")
    maintenance.update_request(working.id, {"status": "in_progress"})
    closed = _leak(maintenance, tenant, priority="urgent")
    maintenance.complete_request(closed.id)

    pending = maintenance.list_pending()
    assert [r.id for r in pending] == [urgent.id, newer_high.id, older_high.id, working.id, low.id]

    assert [r.id for r in maintenance.list_requests(status="completed")] == [closed.id]
    assert len(maintenance.list_requests(priority="high")) == 2
    assert len(maintenance.list_requests(property_id=tenant.property_id)) == 6
