"""Environment-driven settings shared by the store, the document generator and the server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_STORAGE_BUCKET = "room-photos"
DEFAULT_CONTRACT_CITY = "Guadalajara"
DEFAULT_CONTRACT_TEMPLATE = "legal"


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_bucket: str = DEFAULT_STORAGE_BUCKET
    landlord_name: str = ""
    landlord_id_number: str = ""
    contract_city: str = DEFAULT_CONTRACT_CITY
    contract_template: str = DEFAULT_CONTRACT_TEMPLATE
    image_timeout: float = 10.0

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    """Read settings from the process environment (``.env`` already loaded)."""
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY") or None,
        storage_bucket=os.getenv("SUPABASE_STORAGE_BUCKET", DEFAULT_STORAGE_BUCKET),
        landlord_name=os.getenv("LANDLORD_NAME", ""),
        landlord_id_number=os.getenv("LANDLORD_ID_NUMBER", ""),
        contract_city=os.getenv("CONTRACT_CITY", DEFAULT_CONTRACT_CITY),
        contract_template=os.getenv("CONTRACT_TEMPLATE", DEFAULT_CONTRACT_TEMPLATE).strip().lower(),
        image_timeout=_float_env("IMAGE_TIMEOUT", 10.0),
    )
