"""
Local alerts derived from contracts and income.

The rule functions are pure and take ``now`` explicitly. ``LocalAlertService``
fans out over the user's properties concurrently and merges the results.
"""

from __future__ import annotations

import asyncio
import calendar
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Sequence, Tuple

from rentals.formatting import format_currency
from rentals.models import AlertSeverity, Income, LocalAlert, LocalAlertType, Property, Tenant
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

EXPIRING_WINDOW_DAYS = 30
CRITICAL_WINDOW_DAYS = 7
PAYMENT_GRACE_DAY = 5


def days_until(end_date: date, now: datetime) -> int:
    """Whole calendar days from today to ``end_date`` (negative once it has passed)."""
    return (end_date - now.date()).days


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """First and last instant of the month containing ``now``."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    start = datetime.combine(date(now.year, now.month, 1), time.min)
    end = datetime.combine(date(now.year, now.month, last_day), time.max)
    return start, end


def contract_alerts(
    tenants: Iterable[Tenant], property_name: str, property_id: str, now: datetime
) -> List[LocalAlert]:
    alerts: List[LocalAlert] = []
    for tenant in tenants:
        if not tenant.active or tenant.contract_end_date is None:
            continue
        days = days_until(tenant.contract_end_date, now)
        if days < 0:
            alerts.append(
                LocalAlert(
                    id=f"contract_expired_{tenant.id}",
                    type=LocalAlertType.CONTRACT_EXPIRED,
                    severity=AlertSeverity.CRITICAL,
                    title="Contrato expirado",
                    message=f"{tenant.full_name} — contrato venció hace {abs(days)} días",
                    property_name=property_name,
                    action_label="Renovar",
                    related_tenant_id=tenant.id,
                    related_property_id=property_id,
                    days_until_expiry=days,
                )
            )
        elif days <= EXPIRING_WINDOW_DAYS:
            room_name = tenant.room.name if tenant.room else "sin habitación"
            alerts.append(
                LocalAlert(
                    id=f"contract_expiring_{tenant.id}",
                    type=LocalAlertType.CONTRACT_EXPIRING,
                    severity=AlertSeverity.CRITICAL if days <= CRITICAL_WINDOW_DAYS else AlertSeverity.WARNING,
                    title="Contrato vence hoy" if days == 0 else f"Contrato vence en {days} días",
                    message=f"{tenant.full_name} en {room_name}",
                    property_name=property_name,
                    action_label="Renovar",
                    related_tenant_id=tenant.id,
                    related_property_id=property_id,
                    days_until_expiry=days,
                )
            )
    return alerts


def unpaid_rent_alerts(
    income: Iterable[Income], property_name: str, property_id: str, now: datetime
) -> List[LocalAlert]:
    severity = AlertSeverity.WARNING if now.day > PAYMENT_GRACE_DAY else AlertSeverity.INFO
    alerts: List[LocalAlert] = []
    for row in income:
        if row.paid or not row.is_in_month(now.year, now.month):
            continue
        alerts.append(
            LocalAlert(
                id=f"unpaid_{row.id}",
                type=LocalAlertType.UNPAID_RENT,
                severity=severity,
                title=f"Pago pendiente — {row.room_name}",
                message=f"{format_currency(row.amount)} sin cobrar este mes",
                property_name=property_name,
                action_label="Marcar pagado",
                related_property_id=property_id,
                related_income_id=row.id,
            )
        )
    return alerts


def sort_alerts(alerts: Iterable[LocalAlert]) -> List[LocalAlert]:
    """Most severe first; equal severities keep their input order."""
    return sorted(alerts, key=lambda alert: alert.severity, reverse=True)


def pending_payment_count(alerts: Iterable[LocalAlert]) -> int:
    return sum(1 for alert in alerts if alert.type == LocalAlertType.UNPAID_RENT)


class LocalAlertService:
    """Builds the alert list from a store; optionally keeps payment reminders in sync."""

    def __init__(self, store, reminders=None) -> None:
        self.store = store
        self.reminders = reminders
        self.alerts: List[LocalAlert] = []
        self.latest_refresh = 0

    def is_current(self, token: int) -> bool:
        return token == self.latest_refresh

    async def _property_alerts(self, prop: Property, now: datetime) -> List[LocalAlert]:
        start, end = month_bounds(now)
        tenants, income = await asyncio.gather(
            asyncio.to_thread(self.store.fetch_tenants, prop.id),
            asyncio.to_thread(self.store.fetch_income, prop.id, start.date(), end.date()),
        )
        return contract_alerts(tenants, prop.name, prop.id, now) + unpaid_rent_alerts(
            income, prop.name, prop.id, now
        )

    async def refresh(self, now: Optional[datetime] = None) -> Tuple[int, List[LocalAlert]]:
        """Recompute alerts. Returns the refresh token with the result.

        Only the most recent refresh updates ``self.alerts`` and the reminders.
        """
        self.latest_refresh += 1
        token = self.latest_refresh
        now = now or datetime.now()

        try:
            properties: Sequence[Property] = await asyncio.to_thread(self.store.fetch_properties)
        except Exception as exc:
            logger.error("alerts_properties_failed", extra={"error": str(exc)[:200]})
            return token, []

        results = await asyncio.gather(
            *(self._property_alerts(prop, now) for prop in properties), return_exceptions=True
        )
        merged: List[LocalAlert] = []
        for prop, result in zip(properties, results):
            if isinstance(result, BaseException):
                logger.warning("alerts_property_failed", extra={"property_id": prop.id, "error": str(result)[:200]})
                continue
            merged.extend(result)
        alerts = sort_alerts(merged)

        if not self.is_current(token):
            logger.info("alerts_refresh_superseded", extra={"token": token, "latest": self.latest_refresh})
            return token, alerts

        self.alerts = alerts
        if self.reminders is not None:
            self.reminders.update_payment_reminders(pending_payment_count(alerts))
        logger.info(
            "alerts_refreshed",
            extra={"properties": len(properties), "alerts": len(alerts), "unpaid": pending_payment_count(alerts)},
        )
        return token, alerts

    async def generate_alerts(self, now: Optional[datetime] = None) -> List[LocalAlert]:
        _, alerts = await self.refresh(now)
        return alerts
