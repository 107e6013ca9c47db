from __future__ import annotations

from rentals.config import Settings
from storage.memory_store import InMemoryStore, seed_demo
from storage.supabase_store import SupabaseStore
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


def build_store(settings: Settings):
    """Supabase when credentials are configured, otherwise the seeded demo store."""
    if settings.supabase_enabled:
        return SupabaseStore(settings.supabase_url, settings.supabase_key, storage_bucket=settings.storage_bucket)
    logger.warning("supabase_not_configured", extra={"store": "memory"})
    return seed_demo(InMemoryStore(storage_bucket=settings.storage_bucket))
