"""
Tenant registry and occupancy ledger tests.

The unit flag must track active tenants through every create / move-out,
including the failed ones.
"""
import random

import pytest

from app.core.exceptions import (
    DuplicateRecordError,
    NotFoundError,
    StateTransitionError,
    UnitAlreadyOccupied,
    ValidationError,
)
from app.models.tenant import Tenant
from app.services import occupancy_service
from app.services.property_service import PropertyService
from app.services.tenant_service import TenantService


@pytest.fixture
def tenants(database):
    return TenantService(database)


@pytest.fixture
def units(database):
    return PropertyService(database)


def test_scenario_c_second_tenant_rejected(tenants, units, seed, database):
    unit = seed.unit()
    assert units.get_unit(unit.id).is_occupied is False

    first = seed.tenant(unit_id=unit.id)
    assert first.is_active
    assert units.get_unit(unit.id).is_occupied is True

    with pytest.raises(UnitAlreadyOccupied):
        seed.tenant(unit_id=unit.id, phone="0799000111", email="b@example.com")

    assert units.get_unit(unit.id).is_occupied is True
    with database.session() as db:
        assert db.query(Tenant).filter(Tenant.unit_id == unit.id).count() == 1
        assert db.query(Tenant).filter(Tenant.phone == "+254799000111").count() == 0


def test_create_normalises_and_inherits_unit(tenants, seed):
    unit = seed.unit(monthly_rent=18000)
    tenant = tenants.create_tenant(
        full_name="Wanjiku Kamau",
        phone="0722000111",
        email="wanjiku@example.com",
        unit_id=unit.id,
        id_number="12345678",
    )
    assert tenant.phone == "+254722000111"
    assert tenant.property_id == unit.property_id
    assert tenant.rent_amount == 18000
    assert tenant.status.value == "active"
    assert tenant.move_in_date is not None


def test_create_validation(tenants, seed):
    unit = seed.unit()
    base = {"full_name": "Otieno", "phone": "0722000111", "email": "o@example.com", "unit_id": unit.id}

    for override in ({"phone": "12345"}, {"email": "nope"}, {"id_number": "123"}, {"full_name": ""}):
        with pytest.raises(ValidationError):
            tenants.create_tenant(**{**base, **override})

    with pytest.raises(ValidationError):
        tenants.create_tenant(**{**base, "unit_id": 999})


def test_duplicates_among_active_tenants(tenants, seed):
    first = seed.tenant(phone="0722000111", email="dup@example.com", id_number="11112222")

    with pytest.raises(DuplicateRecordError):
        seed.tenant(phone="+254722000111")
    with pytest.raises(DuplicateRecordError):
        seed.tenant(email="DUP@example.com")
    with pytest.raises(DuplicateRecordError):
        seed.tenant(id_number="11112222")

    # phone and email are free again once the tenant moves out; the ID number is not
    tenants.deactivate_tenant(first.id)
    again = seed.tenant(phone="0722000111", email="dup@example.com")
    assert again.is_active
    with pytest.raises(DuplicateRecordError):
        seed.tenant(id_number="11112222")


def test_duplicate_does_not_occupy_unit(units, seed):
    seed.tenant(phone="0722000111")
    unit = seed.unit()
    with pytest.raises(DuplicateRecordError):
        seed.tenant(unit_id=unit.id, phone="0722000111")
    assert units.get_unit(unit.id).is_occupied is False


def test_deactivate_releases_unit(tenants, units, seed):
    tenant = seed.tenant()
    moved_out = tenants.deactivate_tenant(tenant.id, move_out_date="2025-06-30")

    assert moved_out.status.value == "inactive"
    assert moved_out.is_active is False
    assert moved_out.move_out_date.isoformat() == "2025-06-30"
    assert units.get_unit(tenant.unit_id).is_occupied is False

    # unit can be let again
    replacement = seed.tenant(unit_id=tenant.unit_id)
    assert units.get_unit(tenant.unit_id).is_occupied is True
    assert replacement.unit_id == tenant.unit_id

    with pytest.raises(StateTransitionError):
        tenants.deactivate_tenant(tenant.id)
    with pytest.raises(NotFoundError):
        tenants.deactivate_tenant(999)


def test_update_tenant(tenants, seed):
    tenant = seed.tenant()
    other = seed.tenant()

    updated = tenants.update_tenant(tenant.id, {"phone": "0733444555", "rent_balance": 2500})
    assert updated.phone == "+254733444555"
    assert updated.rent_balance == 2500

    with pytest.raises(DuplicateRecordError):
        tenants.update_tenant(tenant.id, {"email": other.email})
    with pytest.raises(ValidationError):
        tenants.update_tenant(tenant.id, {"unit_id": 3})
    with pytest.raises(ValidationError):
        tenants.update_tenant(tenant.id, {"rent_balance": -1})


def test_rent_amount_can_be_cleared(tenants, seed):
    tenant = seed.tenant()
    assert tenant.rent_amount == 15000

    cleared = tenants.update_tenant(tenant.id, {"rent_amount": None})
    assert cleared.rent_amount is None
    assert tenants.update_tenant(tenant.id, {"rent_amount": 17500}).rent_amount == 17500
    with pytest.raises(ValidationError):
        tenants.update_tenant(tenant.id, {"rent_balance": None})


def test_arrears(tenants, seed):
    owing = seed.tenant(rent_balance=4000)
    seed.tenant(rent_balance=0)
    gone = seed.tenant(rent_balance=9000)
    tenants.deactivate_tenant(gone.id)

    result = tenants.list_arrears()
    assert [t.id for t in result["tenants"]] == [owing.id]
    assert result["total_arrears"] == 4000
    assert [t.id for t in tenants.list_tenants(is_active=False)] == [gone.id]


def test_occupancy_assign_and_release(database, seed):
    unit = seed.unit()
    with database.transaction() as db:
        occupancy_service.assign(db, unit.id)
    with pytest.raises(UnitAlreadyOccupied):
        with database.transaction() as db:
            occupancy_service.assign(db, unit.id)
    with database.transaction() as db:
        occupancy_service.release(db, unit.id)
        occupancy_service.assign(db, unit.id)
    with pytest.raises(NotFoundError):
        with database.transaction() as db:
            occupancy_service.assign(db, 999)


def test_occupancy_invariant_holds_under_random_moves(tenants, seed, database):
    rng = random.Random(2024)
    prop = seed.property()
    unit_ids = [seed.unit(property_id=prop.id).id for _ in range(3)]
    active = []

    for step in range(60):
        if active and rng.random() < 0.45:
            tenant_id = active.pop(rng.randrange(len(active)))
            tenants.deactivate_tenant(tenant_id)
        else:
            try:
                tenant = seed.tenant(unit_id=rng.choice(unit_ids))
                active.append(tenant.id)
            except UnitAlreadyOccupied:
                pass

        with database.session() as db:
            assert occupancy_service.check_consistency(db) == [], f"diverged at step {step}"
