from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from rentals.models import (
    AlertSeverity,
    ContractStatus,
    HouseRule,
    Income,
    LocalAlert,
    LocalAlertType,
    Property,
    Tenant,
    validate_rows,
)


def test_tenant_collapses_joined_room_and_parses_timestamps():
    tenant = Tenant.model_validate(
        {
            "id": "t1",
            "property_id": "p1",
            "full_name": "Ana",
            "contract_start_date": "2026-01-01T00:00:00.000Z",
            "contract_end_date": "2026-06-30",
            "room": [{"id": "r1", "name": "Hab 1", "monthly_rent": "390.50"}],
        }
    )
    assert tenant.room.name == "Hab 1"
    assert tenant.effective_monthly_rent == Decimal("390.50")
    assert tenant.contract_start_date == date(2026, 1, 1)


def test_tenant_rejects_end_before_start():
    with pytest.raises(ValidationError):
        Tenant(
            id="t1",
            property_id="p1",
            full_name="Ana",
            contract_start_date=date(2026, 6, 1),
            contract_end_date=date(2026, 5, 1),
        )


@pytest.mark.parametrize(
    "end, status",
    [
        (None, ContractStatus.NO_CONTRACT),
        (date(2026, 10, 18), ContractStatus.EXPIRED),
        (date(2026, 11, 18), ContractStatus.EXPIRING_SOON),
        (date(2026, 11, 19), ContractStatus.ACTIVE),
    ],
)
def test_contract_status(end, status):
    tenant = Tenant(id="t", property_id="p", full_name="X", contract_end_date=end)
    assert tenant.contract_status(date(2026, 10, 19)) == status


def test_income_rejects_negative_amount():
    with pytest.raises(ValidationError):
        Income(id="i", property_id="p", room_id="r", amount=Decimal("-1"), month=date(2026, 10, 1))


def test_income_names_from_join():
    income = Income.model_validate(
        {
            "id": "i",
            "property_id": "p",
            "room_id": "r",
            "amount": 300,
            "month": "2026-10-01",
            "room": {"id": "r", "name": "Hab 3", "tenant": [{"full_name": "Luis"}]},
        }
    )
    assert income.room_name == "Hab 3"
    assert income.tenant_name == "Luis"
    assert income.is_in_month(2026, 10)
    bare = Income(id="i", property_id="p", room_id="r", amount=1, month=date(2026, 10, 1))
    assert bare.room_name == "Habitación"


def test_property_room_partitions(prop):
    assert [r.id for r in prop.private_rooms] == ["room-1", "room-2"]
    assert [r.id for r in prop.common_rooms] == ["common-1", "common-2"]
    assert [r.id for r in prop.vacant_private_rooms] == ["room-2"]
    assert prop.occupancy_rate == 50.0
    assert prop.monthly_revenue == Decimal("380")
    assert Property(id="p", name="Vacío", rooms=None).occupancy_rate == 0.0


def test_house_rule_text():
    rule = HouseRule(id="h", property_id="p", title="Silencio", description="De 23h a 8h")
    assert rule.text == "Silencio: De 23h a 8h"


def test_validate_rows_drops_invalid(caplog):
    rows = [
        {"id": "i1", "property_id": "p", "room_id": "r", "amount": 10, "month": "2026-10-01"},
        {"id": "i2", "property_id": "p", "room_id": "r", "amount": -3, "month": "2026-10-01"},
    ]
    with caplog.at_level("WARNING"):
        cleaned = validate_rows(Income, rows)
    assert [row.id for row in cleaned] == ["i1"]
    assert any(record.getMessage() == "row_validation_failed" for record in caplog.records)


def test_local_alert_presentation():
    alert = LocalAlert(
        id="unpaid_1",
        type=LocalAlertType.UNPAID_RENT,
        severity=AlertSeverity.WARNING,
        title="Pago pendiente — Hab",
        message="10,00 € sin cobrar este mes",
        property_name="Piso",
    )
    data = alert.to_dict()
    assert data["severity"] == "warning"
    assert data["type"] == "unpaid_rent"
    assert data["color"] == "orange"
    assert AlertSeverity.CRITICAL > AlertSeverity.WARNING > AlertSeverity.INFO


def test_tenant_room_assignment(tenant):
    assert tenant.is_assigned_to_room
    assert not tenant.model_copy(update={"room": None}).is_assigned_to_room
