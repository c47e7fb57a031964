import itertools

import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.main import create_app
from app.services.property_service import PropertyService
from app.services.tenant_service import TenantService

TEST_DATABASE_URL = "sqlite:///:memory:"


class Seed:
    """Builds properties, units and tenants with unique identities."""

    def __init__(self, database: Database):
        self.properties = PropertyService(database)
        self.tenants = TenantService(database)
        self._counter = itertools.count(1)

    def property(self, name="Kilimani Heights", location="Nairobi"):
        return self.properties.create_property(property_name=name, location=location)

    def unit(self, property_id=None, monthly_rent=15000):
        if property_id is None:
            property_id = self.property().id
        n = next(self._counter)
        return self.properties.create_unit(property_id=property_id, unit_number=f"A{n}", monthly_rent=monthly_rent)

    def tenant(self, unit_id=None, **overrides):
        if unit_id is None:
            unit_id = self.unit().id
        n = next(self._counter)
        data = {
            "full_name": f"Tenant {n}",
            "phone": f"0712{n:06d}",
            "email": f"tenant{n}@example.com",
            "unit_id": unit_id,
        }
        data.update(overrides)
        return self.tenants.create_tenant(**data)


@pytest.fixture
def database():
    db = Database(TEST_DATABASE_URL)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def file_database(tmp_path):
    """File-backed database so separate threads get separate connections."""
    db = Database(f"sqlite:///{tmp_path / 'simamiakodi_test.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def seed(database):
    return Seed(database)


@pytest.fixture
def file_seed(file_database):
    return Seed(file_database)


@pytest.fixture
def client(database):
    return TestClient(create_app(database))
