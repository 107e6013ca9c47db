from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from rentals.images import public_photo_url
from rentals.models import HouseRule, Income, IncomeRoom, Property, Room, RoomType, Tenant, TenantRoom


def _new_id() -> str:
    return str(uuid.uuid4())


class InMemoryStore:
    """Demo-mode store used when Supabase is unavailable."""

    def __init__(self, *, base_url: str = "http://localhost:54321", storage_bucket: str = "room-photos") -> None:
        self.base_url = base_url
        self.storage_bucket = storage_bucket
        self.properties: Dict[str, Property] = {}
        self.rooms: Dict[str, Room] = {}
        self.tenants: Dict[str, Tenant] = {}
        self.income: Dict[str, Income] = {}
        self.house_rules: Dict[str, HouseRule] = {}

    # Seeding ---------------------------------------------------------------
    def add_property(self, prop: Property) -> Property:
        self.properties[prop.id] = prop.model_copy(update={"rooms": []})
        for room in prop.rooms:
            self.add_room(room)
        return prop

    def add_room(self, room: Room) -> Room:
        self.rooms[room.id] = room
        return room

    def add_tenant(self, tenant: Tenant) -> Tenant:
        self.tenants[tenant.id] = tenant
        return tenant

    def add_income(self, income: Income) -> Income:
        self.income[income.id] = income
        return income

    def add_house_rule(self, rule: HouseRule) -> HouseRule:
        self.house_rules[rule.id] = rule
        return rule

    # Properties/rooms ------------------------------------------------------
    def fetch_properties(self) -> List[Property]:
        return [self._with_rooms(prop) for prop in self.properties.values()]

    def fetch_property(self, property_id: str) -> Optional[Property]:
        prop = self.properties.get(property_id)
        return self._with_rooms(prop) if prop else None

    def _with_rooms(self, prop: Property) -> Property:
        return prop.model_copy(update={"rooms": self.fetch_rooms(prop.id)})

    def fetch_rooms(self, property_id: str) -> List[Room]:
        rooms = [room for room in self.rooms.values() if room.property_id == property_id]
        rooms.sort(key=lambda r: r.name)
        return rooms

    # Tenants ---------------------------------------------------------------
    def _with_room(self, tenant: Tenant) -> Tenant:
        if tenant.room is not None:
            return tenant
        for room in self.rooms.values():
            if room.tenant_id == tenant.id:
                joined = TenantRoom(
                    id=room.id,
                    name=room.name,
                    monthly_rent=room.monthly_rent,
                    size_sqm=room.size_sqm,
                    room_type=room.room_type,
                )
                return tenant.model_copy(update={"room": joined})
        return tenant

    def fetch_tenants(self, property_id: str) -> List[Tenant]:
        tenants = [self._with_room(t) for t in self.tenants.values() if t.property_id == property_id]
        tenants.sort(key=lambda t: (not t.active, t.full_name))
        return tenants

    def fetch_tenant(self, tenant_id: str) -> Optional[Tenant]:
        tenant = self.tenants.get(tenant_id)
        return self._with_room(tenant) if tenant else None

    # Income ----------------------------------------------------------------
    def _with_income_room(self, row: Income) -> Income:
        room = self.rooms.get(row.room_id)
        if row.room is not None or room is None:
            return row
        return row.model_copy(update={"room": IncomeRoom(id=room.id, name=room.name, tenant_name=room.tenant_name)})

    def fetch_income(
        self, property_id: str, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[Income]:
        rows = [
            self._with_income_room(row)
            for row in self.income.values()
            if row.property_id == property_id
            and (start_date is None or row.month >= start_date)
            and (end_date is None or row.month <= end_date)
        ]
        rows.sort(key=lambda r: r.month, reverse=True)
        return rows

    def mark_income_paid(self, income_id: str, when: Optional[datetime] = None) -> None:
        row = self.income.get(income_id)
        if row is None:
            raise KeyError(income_id)
        paid_at = (when or datetime.now(timezone.utc)).date()
        self.income[income_id] = row.model_copy(update={"paid": True, "payment_date": paid_at})

    def mark_income_unpaid(self, income_id: str) -> None:
        row = self.income.get(income_id)
        if row is None:
            raise KeyError(income_id)
        self.income[income_id] = row.model_copy(update={"paid": False, "payment_date": None})

    # House rules -----------------------------------------------------------
    def fetch_house_rules(self, property_id: str) -> List[HouseRule]:
        rules = [rule for rule in self.house_rules.values() if rule.property_id == property_id]
        rules.sort(key=lambda r: r.category.value)
        return rules

    # Storage ---------------------------------------------------------------
    def photo_url(self, path: str) -> str:
        return public_photo_url(self.base_url, self.storage_bucket, path)


def seed_demo(store: InMemoryStore, today: Optional[date] = None) -> InMemoryStore:
    """One shared flat with two tenants, a vacant room and this month's rent rows."""
    today = today or date.today()
    prop = Property(id=_new_id(), name="Piso Centro", address="Calle Mayor 12, 3ºB, Guadalajara")
    store.add_property(prop)

    ana_id, luis_id = _new_id(), _new_id()
    rooms = [
        Room(
            id=_new_id(),
            property_id=prop.id,
            tenant_id=ana_id,
            name="Habitación 1",
            monthly_rent=Decimal("380"),
            size_sqm=Decimal("12"),
            occupied=True,
            tenant_name="Ana García",
        ),
        Room(
            id=_new_id(),
            property_id=prop.id,
            tenant_id=luis_id,
            name="Habitación 2",
            monthly_rent=Decimal("420"),
            size_sqm=Decimal("14.5"),
            occupied=True,
            tenant_name="Luis Martín",
        ),
        Room(
            id=_new_id(),
            property_id=prop.id,
            name="Habitación 3",
            monthly_rent=Decimal("450"),
            size_sqm=Decimal("15"),
            notes="Habitación exterior con mucha luz.\nArmario empotrado y escritorio.",
        ),
        Room(id=_new_id(), property_id=prop.id, name="Cocina", room_type=RoomType.COMMON),
        Room(id=_new_id(), property_id=prop.id, name="Salón con terraza", room_type=RoomType.COMMON),
    ]
    for room in rooms:
        store.add_room(room)

    store.add_tenant(
        Tenant(
            id=ana_id,
            property_id=prop.id,
            full_name="Ana García",
            dni="12345678Z",
            contract_start_date=today - timedelta(days=330),
            contract_end_date=today + timedelta(days=5),
            deposit_amount=Decimal("380"),
        )
    )
    store.add_tenant(
        Tenant(
            id=luis_id,
            property_id=prop.id,
            full_name="Luis Martín",
            contract_start_date=today - timedelta(days=60),
            contract_end_date=today + timedelta(days=300),
            deposit_amount=Decimal("420"),
            contract_notes="El arrendatario podrá aparcar la bicicleta en el patio.",
        )
    )

    first_of_month = today.replace(day=1)
    store.add_income(
        Income(id=_new_id(), property_id=prop.id, room_id=rooms[0].id, amount=Decimal("380"), month=first_of_month)
    )
    store.add_income(
        Income(
            id=_new_id(),
            property_id=prop.id,
            room_id=rooms[1].id,
            amount=Decimal("420"),
            month=first_of_month,
            paid=True,
            payment_date=first_of_month,
        )
    )
    return store
