from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest
from postgrest import APIError

from storage.supabase_store import INCOME_SELECT, TENANT_SELECT, SupabaseStore


class FakeQuery:
    """Records the PostgREST builder chain and returns canned rows."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self

        return method

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        result = self.client.responses[self.table]
        if isinstance(result, list) and result and isinstance(result[0], Exception):
            raise result.pop(0)
        if isinstance(result, list) and result and callable(result[0]):
            return SimpleNamespace(data=result.pop(0)(self.calls))
        return SimpleNamespace(data=result)


class FakeClient:
    def __init__(self, responses):
        self.responses = responses
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def _store(responses):
    store = SupabaseStore("https://demo.supabase.co", "key", client=FakeClient(responses))
    store._retry_backoff_seconds = 0
    return store


def _names(calls):
    return [name for name, _, _ in calls]


def test_fetch_tenants_uses_room_join():
    store = _store(
        {
            "tenants": [
                {
                    "id": "t1",
                    "property_id": "p1",
                    "full_name": "Ana",
                    "room": [{"id": "r1", "name": "Hab 1", "monthly_rent": 380}],
                }
            ]
        }
    )
    [tenant] = store.fetch_tenants("p1")
    assert tenant.room.name == "Hab 1"
    table, calls = store.client.executed[0]
    assert table == "tenants"
    assert ("select", (TENANT_SELECT,), {}) in calls
    assert ("order", ("active",), {"desc": True}) in calls


def test_fetch_income_applies_range_and_drops_bad_rows():
    store = _store(
        {
            "income": [
                {"id": "i1", "property_id": "p1", "room_id": "r1", "amount": 10, "month": "2026-10-01"},
                {"id": "i2", "property_id": "p1", "room_id": "r1", "amount": "oops", "month": "2026-10-01"},
            ]
        }
    )
    rows = store.fetch_income("p1", date(2026, 10, 1), date(2026, 10, 31))
    assert [row.id for row in rows] == ["i1"]
    _, calls = store.client.executed[0]
    assert ("select", (INCOME_SELECT,), {}) in calls
    assert ("gte", ("month", "2026-10-01"), {}) in calls
    assert ("lte", ("month", "2026-10-31"), {}) in calls


def test_fetch_properties_via_access_list():
    store = _store(
        {
            "property_access": [{"property_id": "p1"}, {"property_id": "p2"}],
            "properties": [
                {"id": "p1", "name": "Uno", "rooms": [{"id": "r1", "property_id": "p1", "name": "Hab"}]},
                {"id": "p2", "name": "Dos", "rooms": None},
            ],
        }
    )
    props = store.fetch_properties()
    assert [p.id for p in props] == ["p1", "p2"]
    assert props[0].rooms[0].name == "Hab"
    _, calls = store.client.executed[1]
    assert ("in_", ("id", ["p1", "p2"]), {}) in calls


def test_fetch_properties_without_access_is_empty():
    store = _store({"property_access": []})
    assert store.fetch_properties() == []


def test_fetch_properties_falls_back_to_single_fetches():
    bulk_error = APIError({"message": "bad embed", "code": "PGRST", "hint": None, "details": None})
    responses = {
        "property_access": [{"property_id": "p1"}],
        "properties": [bulk_error, bulk_error, bulk_error, lambda calls: {"id": "p1", "name": "Uno"}],
    }
    store = _store(responses)
    [prop] = store.fetch_properties()
    assert prop.name == "Uno"


def test_mark_income_paid_and_unpaid():
    store = _store({"income": []})
    when = datetime(2026, 10, 19, tzinfo=timezone.utc)
    store.mark_income_paid("i1", when)
    store.mark_income_unpaid("i1")
    paid_calls = store.client.executed[0][1]
    unpaid_calls = store.client.executed[1][1]
    assert ("update", ({"paid": True, "payment_date": when.isoformat()},), {}) in paid_calls
    assert ("update", ({"paid": False, "payment_date": None},), {}) in unpaid_calls
    assert ("eq", ("id", "i1"), {}) in paid_calls


def test_photo_url():
    store = _store({})
    assert store.photo_url("p1/a.jpg") == "https://demo.supabase.co/storage/v1/object/public/room-photos/p1/a.jpg"


@pytest.mark.parametrize("missing", [None, {}])
def test_fetch_tenant_missing(missing):
    store = _store({"tenants": missing})
    assert store.fetch_tenant("t1") is None
