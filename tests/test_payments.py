from datetime import date
from decimal import Decimal

import pytest

from app.core.exceptions import (
    NotFoundError,
    PaymentAlreadyCancelled,
    StateTransitionError,
    ValidationError,
)
from app.services.payment_plan_service import PaymentPlanService
from app.services.payment_service import PaymentService


@pytest.fixture
def payments(database):
    return PaymentService(database)


def test_create_payment_defaults(payments, seed):
    tenant = seed.tenant()
    payment = payments.create_payment(tenant_id=tenant.id, amount=15000, payment_method="M-Pesa")

    assert payment.status.value == "completed"
    assert payment.payment_date == date.today()
    assert payment.payment_month == date.today().strftime("%Y-%m")
    assert payment.property_id == tenant.property_id
    assert payment.unit_id == tenant.unit_id
    assert payment.plan_id is None


def test_payment_month_is_truncated(payments, seed):
    tenant = seed.tenant()
    payment = payments.create_payment(
        tenant_id=tenant.id, amount=100, payment_method="Cash",
        payment_date=date(2024, 3, 20), payment_month="2024-03-15",
    )
    assert payment.payment_month == "2024-03"


@pytest.mark.parametrize("amount,method", [(0, "Cash"), (-1, "Cash"), ("ten", "Cash"), (100, None), (100, "")])
def test_create_payment_validation(payments, seed, amount, method):
    tenant = seed.tenant()
    with pytest.raises(ValidationError):
        payments.create_payment(tenant_id=tenant.id, amount=amount, payment_method=method)


def test_create_payment_unknown_tenant(payments):
    with pytest.raises(ValidationError):
        payments.create_payment(tenant_id=404, amount=100, payment_method="Cash")


def test_cancel_is_a_status_change(payments, seed):
    tenant = seed.tenant()
    payment = payments.create_payment(tenant_id=tenant.id, amount=500, payment_method="Cash")

    cancelled = payments.cancel_payment(payment.id)
    assert cancelled.status.value == "cancelled"
    # the row is kept
    assert payments.get_payment(payment.id).status.value == "cancelled"

    with pytest.raises(PaymentAlreadyCancelled):
        payments.cancel_payment(payment.id)
    assert payments.get_payment(payment.id).amount == Decimal("500")


def test_cancel_unknown_payment(payments):
    with pytest.raises(NotFoundError):
        payments.cancel_payment(999)


def test_installment_payments_cannot_be_cancelled(payments, seed, database):
    tenant = seed.tenant()
    plans = PaymentPlanService(database)
    plan = plans.create_plan(tenant.id, 1000, 500, date(2025, 1, 1))
    result = plans.record_installment(plan.id, 500)

    with pytest.raises(StateTransitionError):
        payments.cancel_payment(result["payment_id"])


def test_update_only_touches_references(payments, seed):
    tenant = seed.tenant()
    payment = payments.create_payment(tenant_id=tenant.id, amount=500, payment_method="Cash")

    updated = payments.update_payment(payment.id, {"mpesa_code": "QAB12CD34", "notes": "late"})
    assert updated.mpesa_code == "QAB12CD34"
    assert updated.amount == Decimal("500")

    for forbidden in ({"amount": 5}, {"status": "cancelled"}, {"tenant_id": 2}):
        with pytest.raises(ValidationError):
            payments.update_payment(payment.id, forbidden)


def test_tenant_totals_exclude_cancelled(payments, seed):
    tenant = seed.tenant()
    other = seed.tenant()
    payments.create_payment(tenant_id=tenant.id, amount=1000, payment_method="Cash")
    keep = payments.create_payment(tenant_id=tenant.id, amount=2000, payment_method="Cash")
    dropped = payments.create_payment(tenant_id=tenant.id, amount=400, payment_method="Cash")
    payments.create_payment(tenant_id=other.id, amount=9999, payment_method="Cash")
    payments.cancel_payment(dropped.id)

    result = payments.list_for_tenant(tenant.id)
    assert len(result["payments"]) == 3
    assert result["total_paid"] == Decimal("3000")
    assert keep.id in {p.id for p in result["payments"]}

    with pytest.raises(NotFoundError):
        payments.list_for_tenant(404)


def test_monthly_and_property_reports(payments, seed):
    tenant = seed.tenant()
    payments.create_payment(tenant_id=tenant.id, amount=1000, payment_method="Cash", payment_date=date(2024, 3, 5))
    payments.create_payment(tenant_id=tenant.id, amount=2000, payment_method="Cash", payment_date=date(2024, 3, 28))
    payments.create_payment(tenant_id=tenant.id, amount=4000, payment_method="Cash", payment_date=date(2024, 4, 1))

    march = payments.monthly(3, 2024)
    assert len(march["payments"]) == 2
    assert march["total"] == Decimal("3000")

    with pytest.raises(ValidationError):
        payments.monthly(13, 2024)
    with pytest.raises(ValidationError):
        payments.monthly(1, 1999)

    by_property = payments.list_for_property(tenant.property_id)
    assert by_property["total_collected"] == Decimal("7000")


def test_stats(payments, seed):
    a = seed.tenant()
    b = seed.tenant()
    payments.create_payment(tenant_id=a.id, amount=1000, payment_method="Cash")
    payments.create_payment(tenant_id=b.id, amount=3000, payment_method="Cash")
    cancelled = payments.create_payment(tenant_id=b.id, amount=500, payment_method="Cash")
    payments.cancel_payment(cancelled.id)

    stats = payments.stats()
    assert stats["total_payments"] == 3
    assert stats["total_collected"] == 4000
    assert stats["average_payment"] == 2000
    assert stats["unique_tenants"] == 2
    assert stats["completed_count"] == 2
    assert stats["cancelled_count"] == 1
    assert stats["pending_count"] == 0
