"""
Property and Unit Models
A unit's is_occupied flag mirrors whether an active tenant references it.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Integer, Boolean, ForeignKey, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, TimestampMixin


class Property(Base, TimestampMixin):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    property_name: Mapped[str] = mapped_column(String(255), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    property_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # residential, commercial, mixed
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Owner contact
    owner_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    owner_contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Relationships
    units = relationship("Unit", back_populates="property")


class Unit(Base, TimestampMixin):
    __tablename__ = "units"
    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_units_property_unit_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(Integer, ForeignKey("properties.id"), nullable=False, index=True)

    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    unit_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    house_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # bedsitter, one_bedroom, ...
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Occupancy
    is_occupied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    property = relationship("Property", back_populates="units")
