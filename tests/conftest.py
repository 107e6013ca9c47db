from datetime import date, datetime
from decimal import Decimal

import pytest
from PIL import Image

from rentals.config import Settings
from rentals.models import Income, Property, Room, RoomType, Tenant
from rentals.pdf_generator import PDFGenerator
from storage.memory_store import InMemoryStore

NOW = datetime(2026, 10, 19, 10, 30)


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Keep a developer's .env from leaking Supabase or landlord settings into tests."""
    for name in (
        "SUPABASE_URL",
        "SUPABASE_SERVICE_ROLE_KEY",
        "SUPABASE_ANON_KEY",
        "LANDLORD_NAME",
        "LANDLORD_ID_NUMBER",
        "CONTRACT_CITY",
        "CONTRACT_TEMPLATE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def settings():
    return Settings(landlord_name="Marta López", landlord_id_number="50123456K")


@pytest.fixture()
def generator(settings):
    return PDFGenerator(settings)


@pytest.fixture()
def prop():
    return Property(
        id="prop-1",
        name="Piso Centro",
        address="Calle Mayor 12, 3ºB, Guadalajara",
        rooms=[
            Room(id="room-1", property_id="prop-1", tenant_id="tenant-1", name="Habitación 1", monthly_rent=Decimal("380"), size_sqm=Decimal("12"), occupied=True),
            Room(id="room-2", property_id="prop-1", name="Habitación 2", monthly_rent=Decimal("450"), size_sqm=Decimal("14.5"), notes="Exterior.\nMuy luminosa."),
            Room(id="common-1", property_id="prop-1", name="Cocina", room_type=RoomType.COMMON),
            Room(id="common-2", property_id="prop-1", name="Salón con terraza", room_type=RoomType.COMMON),
        ],
    )


@pytest.fixture()
def room(prop):
    return prop.rooms[0]


@pytest.fixture()
def tenant():
    return Tenant.model_validate(
        {
            "id": "tenant-1",
            "property_id": "prop-1",
            "full_name": "Ana García",
            "dni": "12345678Z",
            "contract_start_date": "2026-01-01",
            "contract_end_date": "2026-12-31",
            "deposit_amount": 500,
            "room": [{"id": "room-1", "name": "Habitación 1", "monthly_rent": 380}],
        }
    )


@pytest.fixture()
def store(prop, tenant):
    memory = InMemoryStore()
    memory.add_property(prop)
    memory.add_tenant(tenant)
    memory.add_income(
        Income(id="inc-1", property_id="prop-1", room_id="room-1", amount=Decimal("380"), month=date(2026, 10, 1))
    )
    return memory


@pytest.fixture()
def make_image():
    def _make(width=400, height=300, color=(200, 120, 40), mode="RGB"):
        return Image.new(mode, (width, height), color)

    return _make
