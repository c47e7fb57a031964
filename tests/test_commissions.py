"""
Commission ledger tests: pending -> paid | cancelled and the paid-row lock.
"""
from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import (
    AlreadyPaid,
    CannotCancelPaid,
    NotFoundError,
    StateTransitionError,
    ValidationError,
)
from app.services.commission_service import CommissionService


@pytest.fixture
def commissions(database):
    return CommissionService(database)


@pytest.fixture
def prop(seed):
    return seed.property()


def _pending(commissions, property_id, **overrides):
    data = {"property_id": property_id, "agent_name": "Brian Mwangi", "commission_amount": 1500}
    data.update(overrides)
    return commissions.create_commission(**data)


def test_scenario_d_paid_commission_accepts_notes_only(commissions, prop):
    commission = _pending(commissions, prop.id)
    assert commission.status.value == "pending"

    paid = commissions.mark_paid(commission.id, payment_reference="MPESA-QX1")
    assert paid.status.value == "paid"
    assert paid.paid_date == date.today()
    assert paid.payment_reference == "MPESA-QX1"

    with pytest.raises(StateTransitionError):
        commissions.update_commission(commission.id, {"commission_amount": 2000})
    with pytest.raises(StateTransitionError):
        commissions.update_commission(commission.id, {"status": "pending"})
    assert commissions.get_commission(commission.id).commission_amount == Decimal("1500")

    noted = commissions.update_commission(commission.id, {"notes": "x"})
    assert noted.notes == "x"
    assert noted.status.value == "paid"


def test_mark_paid_twice(commissions, prop):
    commission = _pending(commissions, prop.id)
    commissions.mark_paid(commission.id, paid_date=date(2025, 5, 1))
    with pytest.raises(AlreadyPaid) as exc:
        commissions.mark_paid(commission.id)
    assert "already marked as paid" in exc.value.message
    assert commissions.get_commission(commission.id).paid_date == date(2025, 5, 1)


def test_cancel_appends_reason(commissions, prop):
    plain = _pending(commissions, prop.id)
    noted = _pending(commissions, prop.id, notes="Referral")

    assert commissions.cancel_commission(plain.id).notes == " [CANCELLED: No reason provided]"
    cancelled = commissions.cancel_commission(noted.id, reason="Deal fell through")
    assert cancelled.status.value == "cancelled"
    assert cancelled.notes == "Referral [CANCELLED: Deal fell through]"

    with pytest.raises(StateTransitionError):
        commissions.cancel_commission(noted.id)
    with pytest.raises(StateTransitionError):
        commissions.mark_paid(noted.id)
    with pytest.raises(StateTransitionError):
        commissions.update_commission(noted.id, {"commission_amount": 10})


def test_paid_commission_cannot_be_cancelled(commissions, prop):
    commission = _pending(commissions, prop.id)
    commissions.mark_paid(commission.id)
    with pytest.raises(CannotCancelPaid):
        commissions.cancel_commission(commission.id)
    assert commissions.get_commission(commission.id).status.value == "paid"


def test_create_collects_validation_errors(commissions, prop):
    with pytest.raises(ValidationError) as exc:
        _pending(commissions, prop.id, agent_name="B", commission_amount=-1, commission_percentage=150)
    assert len(exc.value.errors) == 3

    with pytest.raises(ValidationError):
        _pending(commissions, prop.id, agent_phone="12")
    with pytest.raises(ValidationError):
        _pending(commissions, 999)


def test_tenant_must_belong_to_property(commissions, seed):
    home = seed.property("Westlands Court")
    elsewhere = seed.property("Karen Villas")
    tenant = seed.tenant(unit_id=seed.unit(property_id=home.id).id)

    ok = _pending(commissions, home.id, tenant_id=tenant.id, commission_percentage=10)
    assert ok.tenant_id == tenant.id
    assert ok.commission_percentage == Decimal("10")

    with pytest.raises(ValidationError) as exc:
        _pending(commissions, elsewhere.id, tenant_id=tenant.id)
    assert "does not belong" in exc.value.message
    with pytest.raises(ValidationError):
        _pending(commissions, home.id, tenant_id=999)
    with pytest.raises(ValidationError):
        commissions.update_commission(ok.id, {"property_id": elsewhere.id})


def test_update_pending_commission(commissions, prop):
    commission = _pending(commissions, prop.id)
    updated = commissions.update_commission(commission.id, {"commission_amount": 2000, "agent_phone": "0712345678"})
    assert updated.commission_amount == Decimal("2000")
    assert updated.agent_phone == "0712345678"

    with pytest.raises(ValidationError):
        commissions.update_commission(commission.id, {"status": "paid"})
    with pytest.raises(NotFoundError):
        commissions.update_commission(999, {"notes": "x"})


def test_listing_summary_and_stats(commissions, seed):
    first = seed.property("Westlands Court")
    second = seed.property("Karen Villas")
    a1 = _pending(commissions, first.id, agent_name="Alice Njeri", commission_amount=1000)
    _pending(commissions, first.id, agent_name="Alice Njeri", commission_amount=500)
    b1 = _pending(commissions, second.id, agent_name="Bob Otieno", commission_amount=2000)
    c1 = _pending(commissions, second.id, agent_name="Carol Wambui", commission_amount=700)
    commissions.mark_paid(b1.id)
    commissions.cancel_commission(c1.id)

    page = commissions.list_commissions(page=1, limit=2)
    assert len(page["commissions"]) == 2
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 4, "total_pages": 2}
    assert commissions.list_commissions(limit=500)["pagination"]["limit"] == 100

    alice = commissions.list_commissions(agent_name="alice")
    assert {c.agent_name for c in alice["commissions"]} == {"Alice Njeri"}
    assert commissions.list_commissions(status="paid")["commissions"][0].id == b1.id
    assert commissions.list_commissions(property_id=second.id)["pagination"]["total"] == 2

    summary = commissions.pending_summary()
    assert summary["total_pending"] == 1500
    assert summary["count"] == 2
    assert summary["by_agent"] == [{"agent_name": "Alice Njeri", "count": 2, "total_amount": 1500}]

    stats = commissions.stats()
    assert stats["total_commissions"] == 4
    assert stats["pending_count"] == 2
    assert stats["paid_count"] == 1
    assert stats["cancelled_count"] == 1
    assert stats["total_paid_amount"] == 2000
    assert stats["total_pending_amount"] == 1500
    assert stats["unique_agents"] == 3
    assert commissions.stats(property_id=first.id)["total_commissions"] == 2
    assert a1.id in {c.id for c in alice["commissions"]}
