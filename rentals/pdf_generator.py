"""
PDF generation entry point: rental contracts and room advertisements.

Both operations are pure with respect to their inputs and ``now``: the same
records and the same ``now`` yield byte-identical PDFs.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence, Union

from PIL import Image

from rentals.config import Settings, load_settings
from rentals.contract import ContractTemplate, render_contract
from rentals.models import Property, Room, Tenant
from rentals.room_ad import render_room_ad
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


class PDFGenerator:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or load_settings()
        self.default_template = ContractTemplate.parse(self.settings.contract_template)

    def generate_contract(
        self,
        tenant: Tenant,
        room: Room,
        prop: Property,
        *,
        now: Optional[datetime] = None,
        template: Union[ContractTemplate, str, None] = None,
        house_rules: Optional[Sequence[str]] = None,
    ) -> bytes:
        """Render the rental contract for ``tenant`` in ``room``.

        ``house_rules`` replaces the default convivencia rules on the rules page.
        """
        now = now or datetime.now()
        chosen = template if isinstance(template, ContractTemplate) else ContractTemplate.parse(
            template, self.default_template
        )
        layout = render_contract(
            tenant,
            room,
            prop,
            today=now.date(),
            template=chosen,
            landlord_name=self.settings.landlord_name,
            landlord_id=self.settings.landlord_id_number,
            city=self.settings.contract_city,
            house_rules=house_rules,
        )
        data = layout.finish()
        logger.info(
            "contract_generated",
            extra={"tenant_id": tenant.id, "template": chosen.value, "pages": layout.page_count, "size": len(data)},
        )
        return data

    def generate_room_ad(
        self,
        room: Room,
        prop: Property,
        common_rooms: Sequence[Room] = (),
        deposit_amount: Optional[Decimal] = None,
        owner_contact: Optional[str] = None,
        room_images: Sequence[Image.Image] = (),
        common_room_images: Optional[Mapping[str, Sequence[Image.Image]]] = None,
        *,
        now: Optional[datetime] = None,
    ) -> bytes:
        now = now or datetime.now()
        layout = render_room_ad(
            room,
            prop,
            today=now.date(),
            common_rooms=common_rooms,
            deposit_amount=deposit_amount,
            owner_contact=owner_contact,
            room_images=room_images,
            common_room_images=common_room_images,
        )
        data = layout.finish()
        logger.info(
            "room_ad_generated",
            extra={"room_id": room.id, "photos": len(room_images), "pages": layout.page_count, "size": len(data)},
        )
        return data
