from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.utility_service import UtilityService


@pytest.fixture
def utilities(database):
    return UtilityService(database)


@pytest.fixture
def tenant(seed):
    return seed.tenant()


def _water(utilities, tenant, **overrides):
    data = {
        "unit_id": tenant.unit_id,
        "tenant_id": tenant.id,
        "utility_type": "water",
        "billing_month": "2025-03",
        "previous_reading": 100,
        "current_reading": 150,
        "rate_per_unit": 25,
    }
    data.update(overrides)
    return utilities.create_bill(**data)


def test_derived_fields(utilities, tenant):
    bill = _water(utilities, tenant)
    assert bill.units_consumed == Decimal("50")
    assert bill.amount_due == Decimal("1250")
    assert bill.payment_status.value == "pending"
    assert bill.billing_month == date(2025, 3, 1)


def test_previous_reading_defaults_to_zero(utilities, tenant):
    bill = _water(utilities, tenant, previous_reading=None, current_reading=12, rate_per_unit=10)
    assert bill.units_consumed == Decimal("12")
    assert bill.amount_due == Decimal("120")


def test_payment_status_is_derived(utilities, tenant):
    bill = _water(utilities, tenant)
    assert utilities.record_payment(bill.id, 500).payment_status.value == "partial"
    assert utilities.record_payment(bill.id, 1250).payment_status.value == "paid"
    assert utilities.record_payment(bill.id, 0).payment_status.value == "pending"
    with pytest.raises(ValidationError):
        utilities.record_payment(bill.id, -1)


def test_validation_and_uniqueness(utilities, tenant):
    with pytest.raises(ValidationError):
        _water(utilities, tenant, current_reading=90)
    with pytest.raises(ValidationError):
        _water(utilities, tenant, utility_type="steam")
    with pytest.raises(ValidationError):
        _water(utilities, tenant, unit_id=999)

    _water(utilities, tenant)
    with pytest.raises(ConflictError):
        _water(utilities, tenant, billing_month="2025-03-20")
    # another type for the same month is fine
    assert _water(utilities, tenant, utility_type="electricity").utility_type.value == "electricity"


def test_update_recomputes(utilities, tenant):
    bill = _water(utilities, tenant)
    utilities.record_payment(bill.id, 1250)

    updated = utilities.update_bill(bill.id, {"current_reading": 200})
    assert updated.units_consumed == Decimal("100")
    assert updated.amount_due == Decimal("2500")
    assert updated.payment_status.value == "partial"

    with pytest.raises(ValidationError):
        utilities.update_bill(bill.id, {"amount_due": 1})


def test_pending_tenant_and_delete(utilities, tenant):
    water = _water(utilities, tenant)
    power = _water(utilities, tenant, utility_type="electricity", rate_per_unit=20)
    utilities.record_payment(power.id, 1000)
    utilities.record_payment(water.id, 250)

    pending = utilities.list_pending()
    assert [b.id for b in pending["bills"]] == [water.id]
    assert pending["total_pending"] == Decimal("1000")
    assert len(utilities.list_for_tenant(tenant.id)) == 2

    utilities.delete_bill(water.id)
    with pytest.raises(NotFoundError):
        utilities.get_bill(water.id)
    with pytest.raises(NotFoundError):
        utilities.list_for_tenant(999)
