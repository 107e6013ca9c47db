from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional

import httpx
from postgrest import APIError

from rentals.images import public_photo_url
from rentals.models import HouseRule, Income, Property, Room, Tenant, validate_rows
from supabase import Client, create_client
from telemetry.logging_utils import get_logger
from telemetry.retry import retry_with_backoff

logger = get_logger(__name__)

TENANT_SELECT = "*, room:rooms!rooms_tenant_id_fkey(id, name, monthly_rent, size_sqm, room_type)"
INCOME_SELECT = "*, room:room_id(id, name, tenant_name, tenant:tenant_id(full_name))"
PROPERTY_SELECT = "*, rooms(*)"

TRANSIENT_ERRORS = (httpx.RemoteProtocolError, httpx.WriteError, httpx.ConnectError, httpx.ReadTimeout, APIError)


class SupabaseStore:
    """Reads and writes the rental tables through PostgREST, with embedded joins."""

    def __init__(self, url: str, key: str, *, storage_bucket: str = "room-photos", client: Optional[Client] = None) -> None:
        self.url = url
        self.client: Client = client or create_client(url, key)
        self.storage_bucket = storage_bucket
        self._max_retries = 3
        self._retry_backoff_seconds = 0.25

    def _table(self, name: str):
        return self.client.table(name)

    def _with_retry(self, fn: Callable[[], Any], label: str = "supabase") -> Any:
        return retry_with_backoff(
            fn,
            retries=self._max_retries,
            base_delay=self._retry_backoff_seconds,
            retry_exceptions=TRANSIENT_ERRORS,
            label=label,
        )

    # Properties/rooms ------------------------------------------------------
    def fetch_properties(self) -> List[Property]:
        access = self._with_retry(lambda: self._table("property_access").select("property_id").execute(), "property_access")
        property_ids = [row["property_id"] for row in access.data or [] if row.get("property_id")]
        if not property_ids:
            return []
        try:
            resp = self._with_retry(
                lambda: self._table("properties")
                .select(PROPERTY_SELECT)
                .in_("id", property_ids)
                .order("created_at", desc=True)
                .execute(),
                "properties",
            )
            return validate_rows(Property, resp.data)
        except APIError as exc:
            logger.warning("properties_bulk_fetch_failed", extra={"count": len(property_ids), "error": str(exc)[:200]})

        properties: List[Property] = []
        for pid in property_ids:
            try:
                prop = self.fetch_property(pid)
            except APIError as exc:
                logger.warning("property_fetch_failed", extra={"property_id": pid, "error": str(exc)[:200]})
                continue
            if prop is not None:
                properties.append(prop)
        return properties

    def fetch_property(self, property_id: str) -> Optional[Property]:
        resp = self._with_retry(
            lambda: self._table("properties").select(PROPERTY_SELECT).eq("id", property_id).maybe_single().execute(),
            "property",
        )
        rows = validate_rows(Property, [resp.data] if resp and resp.data else [])
        return rows[0] if rows else None

    def fetch_rooms(self, property_id: str) -> List[Room]:
        resp = self._with_retry(
            lambda: self._table("rooms").select("*").eq("property_id", property_id).order("name").execute(), "rooms"
        )
        return validate_rows(Room, resp.data)

    # Tenants ---------------------------------------------------------------
    def fetch_tenants(self, property_id: str) -> List[Tenant]:
        resp = self._with_retry(
            lambda: self._table("tenants")
            .select(TENANT_SELECT)
            .eq("property_id", property_id)
            .order("active", desc=True)
            .order("full_name")
            .execute(),
            "tenants",
        )
        return validate_rows(Tenant, resp.data)

    def fetch_tenant(self, tenant_id: str) -> Optional[Tenant]:
        resp = self._with_retry(
            lambda: self._table("tenants").select(TENANT_SELECT).eq("id", tenant_id).maybe_single().execute(), "tenant"
        )
        rows = validate_rows(Tenant, [resp.data] if resp and resp.data else [])
        return rows[0] if rows else None

    # Income ----------------------------------------------------------------
    def fetch_income(
        self, property_id: str, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[Income]:
        def run():
            query = self._table("income").select(INCOME_SELECT).eq("property_id", property_id)
            if start_date:
                query = query.gte("month", start_date.isoformat())
            if end_date:
                query = query.lte("month", end_date.isoformat())
            return query.order("month", desc=True).execute()

        resp = self._with_retry(run, "income")
        return validate_rows(Income, resp.data)

    def mark_income_paid(self, income_id: str, when: Optional[datetime] = None) -> None:
        paid_at = (when or datetime.now(timezone.utc)).isoformat()
        self._with_retry(
            lambda: self._table("income").update({"paid": True, "payment_date": paid_at}).eq("id", income_id).execute(),
            "income_paid",
        )
        logger.info("income_marked_paid", extra={"income_id": income_id})

    def mark_income_unpaid(self, income_id: str) -> None:
        self._with_retry(
            lambda: self._table("income").update({"paid": False, "payment_date": None}).eq("id", income_id).execute(),
            "income_unpaid",
        )
        logger.info("income_marked_unpaid", extra={"income_id": income_id})

    # House rules -----------------------------------------------------------
    def fetch_house_rules(self, property_id: str) -> List[HouseRule]:
        resp = self._with_retry(
            lambda: self._table("house_rules").select("*").eq("property_id", property_id).order("category").execute(),
            "house_rules",
        )
        return validate_rows(HouseRule, resp.data)

    # Storage ---------------------------------------------------------------
    def photo_url(self, path: str) -> str:
        return public_photo_url(self.url, self.storage_bucket, path)
