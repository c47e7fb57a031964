"""
Property and Unit registry
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select

from app.core.exceptions import NotFoundError, StateTransitionError, ValidationError
from app.database import Database
from app.models.property import Property, Unit
from app.models.tenant import Tenant, TenantStatus
from app.services.validators import require_non_negative, require_text, whitelist

logger = logging.getLogger(__name__)

# is_occupied only changes through tenant registration and move-out
UNIT_UPDATABLE_FIELDS = (
    "unit_number",
    "unit_type",
    "house_type",
    "bedrooms",
    "bathrooms",
    "monthly_rent",
    "description",
)


class PropertyService:
    def __init__(self, database: Database):
        self.database = database

    # ==================== PROPERTIES ====================

    def create_property(
        self,
        property_name: Optional[str],
        location: Optional[str],
        address: Optional[str] = None,
        property_type: Optional[str] = None,
        owner_name: Optional[str] = None,
        owner_contact: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Property:
        prop = Property(
            property_name=require_text(property_name, "property_name", max_length=255),
            location=require_text(location, "location", max_length=255),
            address=address,
            property_type=property_type,
            owner_name=owner_name,
            owner_contact=owner_contact,
            description=description,
        )
        with self.database.transaction() as db:
            db.add(prop)
            db.flush()
            db.refresh(prop)
        logger.info(f"[PROPERTY] Created property #{prop.id} ({prop.property_name})")
        return prop

    def get_property(self, property_id: int) -> Property:
        with self.database.session() as db:
            prop = db.get(Property, property_id)
        if prop is None:
            raise NotFoundError("Property not found")
        return prop

    def list_properties(self) -> List[Property]:
        with self.database.session() as db:
            return list(db.scalars(select(Property).order_by(Property.property_name.asc(), Property.id.asc())))

    # ==================== UNITS ====================

    def create_unit(
        self,
        property_id: Optional[int],
        unit_number: Optional[str],
        monthly_rent: Any = 0,
        unit_type: Optional[str] = None,
        house_type: Optional[str] = None,
        bedrooms: Optional[int] = None,
        bathrooms: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Unit:
        """New units start vacant; occupancy only changes through tenant registration."""
        if property_id is None:
            raise ValidationError("property_id is required")
        unit = Unit(
            property_id=property_id,
            unit_number=require_text(unit_number, "unit_number", max_length=50),
            monthly_rent=require_non_negative(monthly_rent or 0, "monthly_rent"),
            unit_type=unit_type,
            house_type=house_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            description=description,
            is_occupied=False,
        )
        with self.database.transaction() as db:
            if db.get(Property, property_id) is None:
                raise ValidationError("Property not found")
            db.add(unit)
            db.flush()
            db.refresh(unit)
        logger.info(f"[PROPERTY] Created unit #{unit.id} ({unit.unit_number}) in property {property_id}")
        return unit

    def get_unit(self, unit_id: int) -> Unit:
        with self.database.session() as db:
            unit = db.get(Unit, unit_id)
        if unit is None:
            raise NotFoundError("Unit not found")
        return unit

    def list_units(self, property_id: Optional[int] = None, is_occupied: Optional[bool] = None) -> List[Unit]:
        query = select(Unit).order_by(Unit.property_id.asc(), Unit.unit_number.asc())
        if property_id is not None:
            query = query.where(Unit.property_id == property_id)
        if is_occupied is not None:
            query = query.where(Unit.is_occupied.is_(is_occupied))
        with self.database.session() as db:
            return list(db.scalars(query))

    def update_unit(self, unit_id: int, fields: Dict[str, Any]) -> Unit:
        changes = whitelist(fields, UNIT_UPDATABLE_FIELDS)

        with self.database.transaction() as db:
            unit = db.get(Unit, unit_id)
            if unit is None:
                raise NotFoundError("Unit not found")
            if "unit_number" in changes:
                unit.unit_number = require_text(changes["unit_number"], "unit_number", max_length=50)
            if "monthly_rent" in changes:
                unit.monthly_rent = require_non_negative(changes["monthly_rent"] or 0, "monthly_rent")
            for key in ("bedrooms", "bathrooms"):
                if key in changes:
                    value = changes[key]
                    if value is not None and int(value) < 0:
                        raise ValidationError(f"{key} cannot be negative")
                    setattr(unit, key, value)
            for key in ("unit_type", "house_type", "description"):
                if key in changes:
                    setattr(unit, key, changes[key])
            db.flush()
            db.refresh(unit)

        logger.info(f"[PROPERTY] Updated unit #{unit_id}: {sorted(changes)}")
        return unit

    def delete_unit(self, unit_id: int) -> None:
        """Units with an active tenant cannot be removed."""
        with self.database.transaction() as db:
            unit = db.get(Unit, unit_id)
            if unit is None:
                raise NotFoundError("Unit not found")
            active = db.scalar(
                select(func.count(Tenant.id)).where(
                    Tenant.unit_id == unit_id,
                    Tenant.status == TenantStatus.ACTIVE,
                )
            )
            if active or unit.is_occupied:
                raise StateTransitionError("Cannot delete unit with active tenant")
            db.delete(unit)
            db.flush()

        logger.info(f"[PROPERTY] Deleted unit #{unit_id}")
