"""
Resolve records from a store and produce PDFs.

Missing identity records (tenant, room, property) yield ``None`` rather than an
exception; the caller decides how to surface that.
"""

from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Union

from PIL import Image

from rentals.contract import ContractTemplate
from rentals.images import download_images
from rentals.layout import MAX_GRID_PHOTOS
from rentals.pdf_generator import PDFGenerator
from rentals.room_ad import COMMON_PHOTOS_PER_ROOM
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

ImageLoader = Callable[..., List[Image.Image]]


class DocumentService:
    def __init__(
        self,
        store,
        generator: Optional[PDFGenerator] = None,
        image_loader: Optional[ImageLoader] = None,
    ) -> None:
        self.store = store
        self.generator = generator or PDFGenerator()
        self.image_loader = image_loader or partial(download_images, timeout=self.generator.settings.image_timeout)

    def _load(self, paths: Sequence[str], limit: int) -> List[Image.Image]:
        urls = [self.store.photo_url(path) for path in paths[:limit]]
        return self.image_loader(urls, limit=limit)

    def contract_for_tenant(
        self,
        tenant_id: str,
        *,
        template: Union[ContractTemplate, str, None] = None,
        now: Optional[datetime] = None,
    ) -> Optional[bytes]:
        tenant = self.store.fetch_tenant(tenant_id)
        if tenant is None:
            logger.warning("contract_tenant_missing", extra={"tenant_id": tenant_id})
            return None
        if not tenant.is_assigned_to_room:
            logger.warning("contract_room_missing", extra={"tenant_id": tenant_id})
            return None
        prop = self.store.fetch_property(tenant.property_id)
        if prop is None:
            logger.warning("contract_property_missing", extra={"tenant_id": tenant_id, "property_id": tenant.property_id})
            return None
        room = next((r for r in prop.rooms if r.id == tenant.room.id), None)
        if room is None:
            logger.warning("contract_room_missing", extra={"tenant_id": tenant_id, "room_id": tenant.room.id})
            return None

        rules = [rule.text for rule in self.store.fetch_house_rules(prop.id)]
        return self.generator.generate_contract(
            tenant, room, prop, now=now, template=template, house_rules=rules or None
        )

    def room_ad(
        self,
        property_id: str,
        room_id: Optional[str] = None,
        owner_contact: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[bytes]:
        """Advertise ``room_id``, or the property's first vacant private room when it is omitted."""
        prop = self.store.fetch_property(property_id)
        if prop is None:
            logger.warning("room_ad_property_missing", extra={"property_id": property_id})
            return None
        if room_id is None:
            vacant = prop.vacant_private_rooms
            if not vacant:
                logger.warning("room_ad_no_vacancy", extra={"property_id": property_id})
                return None
            room_id = vacant[0].id
        room = next((r for r in prop.rooms if r.id == room_id), None)
        if room is None:
            logger.warning("room_ad_room_missing", extra={"property_id": property_id, "room_id": room_id})
            return None

        common_rooms = prop.common_rooms
        room_images = self._load(room.photos, MAX_GRID_PHOTOS)
        common_images: Dict[str, List[Image.Image]] = {}
        for common in common_rooms:
            if common.photos:
                common_images[common.id] = self._load(common.photos, COMMON_PHOTOS_PER_ROOM)

        return self.generator.generate_room_ad(
            room,
            prop,
            common_rooms=common_rooms,
            owner_contact=owner_contact,
            room_images=room_images,
            common_room_images=common_images,
            now=now,
        )
