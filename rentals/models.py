"""
Domain records as returned by the Supabase backend.

Rows are validated into frozen pydantic models. Joined sub-objects
(``room:rooms!rooms_tenant_id_fkey(...)``, ``room:room_id(...)``) may come back
either as an object or as a one-element list; both shapes collapse to a single
optional object here so downstream code never performs its own joins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

EXPIRING_SOON_DAYS = 30
ROOM_NAME_FALLBACK = "Habitación"


def parse_flexible_date(value: Any) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or ISO-8601 timestamps (with or without fractional seconds)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            return date.fromisoformat(text[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def _first_joined(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


class RoomType(str, Enum):
    PRIVATE = "private"
    COMMON = "common"


class ContractStatus(str, Enum):
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    NO_CONTRACT = "no_contract"

    @property
    def label(self) -> str:
        return {
            ContractStatus.ACTIVE: "Activo",
            ContractStatus.EXPIRING_SOON: "Por vencer",
            ContractStatus.EXPIRED: "Expirado",
            ContractStatus.NO_CONTRACT: "Sin contrato",
        }[self]


class _Record(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}


class TenantRoom(_Record):
    id: str
    name: str
    monthly_rent: Decimal = Decimal("0")
    size_sqm: Optional[Decimal] = None
    room_type: RoomType = RoomType.PRIVATE


class Tenant(_Record):
    id: str
    property_id: str
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    dni: Optional[str] = None
    contract_start_date: Optional[date] = None
    contract_months: Optional[int] = None
    contract_end_date: Optional[date] = None
    deposit_amount: Optional[Decimal] = None
    monthly_rent: Optional[Decimal] = None
    current_address: Optional[str] = None
    notes: Optional[str] = None
    contract_notes: Optional[str] = None
    active: bool = True
    room: Optional[TenantRoom] = None

    @field_validator("contract_start_date", "contract_end_date", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Optional[date]:
        return parse_flexible_date(value)

    @field_validator("room", mode="before")
    @classmethod
    def _room(cls, value: Any) -> Any:
        return _first_joined(value)

    @model_validator(mode="after")
    def _contract_range(self) -> "Tenant":
        if self.contract_start_date and self.contract_end_date:
            if self.contract_end_date < self.contract_start_date:
                raise ValueError("contract_end_date must not precede contract_start_date")
        return self

    @property
    def is_assigned_to_room(self) -> bool:
        return self.room is not None

    @property
    def effective_monthly_rent(self) -> Optional[Decimal]:
        if self.room is not None:
            return self.room.monthly_rent
        return self.monthly_rent

    def contract_status(self, today: date) -> ContractStatus:
        if self.contract_end_date is None:
            return ContractStatus.NO_CONTRACT
        days = (self.contract_end_date - today).days
        if days < 0:
            return ContractStatus.EXPIRED
        if days <= EXPIRING_SOON_DAYS:
            return ContractStatus.EXPIRING_SOON
        return ContractStatus.ACTIVE


class Room(_Record):
    id: str
    property_id: str
    tenant_id: Optional[str] = None
    name: str
    monthly_rent: Decimal = Decimal("0")
    size_sqm: Optional[Decimal] = None
    occupied: bool = False
    tenant_name: Optional[str] = None
    notes: Optional[str] = None
    room_type: RoomType = RoomType.PRIVATE
    photos: List[str] = Field(default_factory=list)

    @field_validator("photos", mode="before")
    @classmethod
    def _photos(cls, value: Any) -> Any:
        return value or []

    @property
    def is_private(self) -> bool:
        return self.room_type == RoomType.PRIVATE


class Property(_Record):
    id: str
    name: str
    address: str = ""
    description: Optional[str] = None
    owner_id: Optional[str] = None
    rooms: List[Room] = Field(default_factory=list)

    @field_validator("rooms", mode="before")
    @classmethod
    def _rooms(cls, value: Any) -> Any:
        return value or []

    @property
    def private_rooms(self) -> List[Room]:
        return [room for room in self.rooms if room.room_type == RoomType.PRIVATE]

    @property
    def common_rooms(self) -> List[Room]:
        return [room for room in self.rooms if room.room_type == RoomType.COMMON]

    @property
    def occupied_private_rooms(self) -> List[Room]:
        return [room for room in self.private_rooms if room.occupied]

    @property
    def vacant_private_rooms(self) -> List[Room]:
        return [room for room in self.private_rooms if not room.occupied]

    @property
    def occupancy_rate(self) -> float:
        private = self.private_rooms
        if not private:
            return 0.0
        return len(self.occupied_private_rooms) / len(private) * 100

    @property
    def monthly_revenue(self) -> Decimal:
        return sum((room.monthly_rent for room in self.occupied_private_rooms), Decimal("0"))


class IncomeTenant(_Record):
    full_name: str


class IncomeRoom(_Record):
    id: str
    name: str
    tenant_name: Optional[str] = None
    tenant: Optional[IncomeTenant] = None

    @field_validator("tenant", mode="before")
    @classmethod
    def _tenant(cls, value: Any) -> Any:
        return _first_joined(value)


class Income(_Record):
    id: str
    property_id: str
    room_id: str
    amount: Decimal = Field(ge=0)
    month: date
    paid: bool = False
    payment_date: Optional[date] = None
    notes: Optional[str] = None
    room: Optional[IncomeRoom] = None

    @field_validator("month", "payment_date", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Optional[date]:
        return parse_flexible_date(value)

    @field_validator("room", mode="before")
    @classmethod
    def _room(cls, value: Any) -> Any:
        return _first_joined(value)

    @property
    def room_name(self) -> str:
        return self.room.name if self.room else ROOM_NAME_FALLBACK

    @property
    def tenant_name(self) -> Optional[str]:
        if self.room is None:
            return None
        if self.room.tenant is not None:
            return self.room.tenant.full_name
        return self.room.tenant_name

    def is_in_month(self, year: int, month: int) -> bool:
        return self.month.year == year and self.month.month == month


class HouseRuleCategory(str, Enum):
    LIMPIEZA = "limpieza"
    RUIDO = "ruido"
    VISITAS = "visitas"
    COCINA = "cocina"
    BANO = "baño"
    COMUNIDAD = "comunidad"
    OTRO = "otro"


class HouseRule(_Record):
    id: str
    property_id: str
    category: HouseRuleCategory = HouseRuleCategory.OTRO
    title: str
    description: Optional[str] = None

    @property
    def text(self) -> str:
        if self.description:
            return f"{self.title}: {self.description}"
        return self.title


# --------------------------------------------------------------------------- alerts


class LocalAlertType(str, Enum):
    CONTRACT_EXPIRING = "contract_expiring"
    CONTRACT_EXPIRED = "contract_expired"
    UNPAID_RENT = "unpaid_rent"


class AlertSeverity(IntEnum):
    INFO = 0
    WARNING = 1
    CRITICAL = 2


_ALERT_ICONS = {
    LocalAlertType.CONTRACT_EXPIRING: "doc.badge.clock",
    LocalAlertType.CONTRACT_EXPIRED: "doc.badge.ellipsis",
    LocalAlertType.UNPAID_RENT: "eurosign.circle",
}

_SEVERITY_COLORS = {
    AlertSeverity.INFO: "blue",
    AlertSeverity.WARNING: "orange",
    AlertSeverity.CRITICAL: "red",
}


@dataclass(frozen=True)
class LocalAlert:
    """A derived, never-persisted attention item. ``id`` is only stable within one refresh."""

    id: str
    type: LocalAlertType
    severity: AlertSeverity
    title: str
    message: str
    property_name: str
    action_label: Optional[str] = None
    related_tenant_id: Optional[str] = None
    related_property_id: Optional[str] = None
    related_income_id: Optional[str] = None
    days_until_expiry: Optional[int] = None

    @property
    def icon(self) -> str:
        return _ALERT_ICONS[self.type]

    @property
    def color(self) -> str:
        return _SEVERITY_COLORS[self.severity]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.name.lower(),
            "title": self.title,
            "message": self.message,
            "property_name": self.property_name,
            "action_label": self.action_label,
            "related_tenant_id": self.related_tenant_id,
            "related_property_id": self.related_property_id,
            "related_income_id": self.related_income_id,
            "days_until_expiry": self.days_until_expiry,
            "icon": self.icon,
            "color": self.color,
        }


def validate_rows(model: Type[M], rows: Iterable[Any]) -> List[M]:
    """Validate backend rows, logging and dropping the ones that do not parse."""
    cleaned: List[M] = []
    for row in rows or []:
        try:
            cleaned.append(model.model_validate(row))
        except ValidationError as exc:
            row_id = row.get("id") if isinstance(row, dict) else None
            logger.warning(
                "row_validation_failed",
                extra={"model": model.__name__, "row_id": row_id, "error": str(exc)[:200]},
            )
    return cleaned
