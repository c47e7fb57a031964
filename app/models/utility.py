"""
Utility Bill Model
Metered charges per unit and month; consumption and amount due are derived.
"""
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Integer, Date, Numeric, ForeignKey, Text, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class UtilityType(str, Enum):
    ELECTRICITY = "electricity"
    WATER = "water"
    GAS = "gas"
    INTERNET = "internet"
    SEWAGE = "sewage"
    GARBAGE = "garbage"


class UtilityPaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class UtilityBill(Base, TimestampMixin):
    __tablename__ = "utilities"
    __table_args__ = (
        UniqueConstraint("unit_id", "utility_type", "billing_month", name="uq_utilities_unit_type_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    unit_id: Mapped[int] = mapped_column(Integer, ForeignKey("units.id"), nullable=False, index=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)

    utility_type: Mapped[UtilityType] = mapped_column(SQLEnum(UtilityType), nullable=False)
    billing_month: Mapped[date] = mapped_column(Date, nullable=False)  # first day of the month

    # Meter
    previous_reading: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    current_reading: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    units_consumed: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    rate_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reading_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Billing
    amount_due: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    payment_status: Mapped[UtilityPaymentStatus] = mapped_column(
        SQLEnum(UtilityPaymentStatus), default=UtilityPaymentStatus.PENDING, nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
