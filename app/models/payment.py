"""
Payment Model
Payments are append-only: cancelling flips status, rows are never deleted.
"""
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Integer, Date, Numeric, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base, TimestampMixin


class PaymentStatus(str, Enum):
    """Payment status enum"""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Payment(Base, TimestampMixin):
    """Rent / installment payment record"""
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Who / where
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    property_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("properties.id"), nullable=True, index=True)
    unit_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("units.id"), nullable=True)
    plan_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("payment_plans.id"), nullable=True, index=True)

    # Payment details
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    payment_month: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)  # YYYY-MM
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)

    # Transaction references
    reference_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    mpesa_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status
    status: Mapped[PaymentStatus] = mapped_column(SQLEnum(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False, index=True)
