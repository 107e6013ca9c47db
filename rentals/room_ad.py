"""Single-page (or longer, with many photos) advertisement for a vacant room."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from PIL import Image
from reportlab.pdfbase.pdfmetrics import stringWidth

from rentals.amenities import amenity_chips
from rentals.formatting import format_currency, format_number
from rentals.layout import (
    CONTENT_WIDTH,
    EMERALD,
    GOLD,
    LIGHT_GRAY,
    MARGIN,
    NAVY,
    PAGE_WIDTH,
    WHITE,
    PageLayout,
)
from rentals.models import Property, Room

HEADER_HEIGHT = 90.0
CONTENT_TOP = 110.0
DESCRIPTION_LINES = 5
COMMON_PHOTOS_PER_ROOM = 2
CONTACT_BOX_HEIGHT = 40.0

# Minimum room left on the page before each late section starts.
ROOM_PHOTOS_SPACE = 200.0
COMMON_AREAS_SPACE = 160.0
CONTACT_SPACE = 80.0


def _header(layout: PageLayout, room: Room, prop: Property) -> None:
    layout.fill_rect(0, 0, PAGE_WIDTH, HEADER_HEIGHT, NAVY)

    badge = "EN ALQUILER"
    badge_w = stringWidth(badge, "Helvetica-Bold", 9) + 16
    layout.fill_rect(MARGIN, 18, badge_w, 20, EMERALD, radius=10)
    layout.draw_text(badge, MARGIN + 8, 23, max_width=badge_w, size=9, is_bold=True, color=WHITE)

    price = f"{format_currency(room.monthly_rent, whole=True)}/mes"
    price_w = stringWidth(price, "Helvetica-Bold", 16) + 24
    layout.fill_rect(PAGE_WIDTH - MARGIN - price_w, 16, price_w, 30, GOLD, radius=8)
    layout.draw_text(
        price, PAGE_WIDTH - MARGIN - price_w + 12, 22, max_width=price_w, size=16, is_bold=True, color=NAVY
    )

    layout.draw_text(room.name, MARGIN, 50, max_width=CONTENT_WIDTH - price_w, size=18, is_bold=True, color=WHITE)
    subtitle = " · ".join(part for part in (prop.name, prop.address) if part)
    layout.draw_text(subtitle, MARGIN, 73, max_width=CONTENT_WIDTH, size=10, color=WHITE)

    layout.fill_rect(0, HEADER_HEIGHT + 2, PAGE_WIDTH, 3, GOLD)
    layout.y = CONTENT_TOP


def summary_boxes(room: Room, deposit_amount: Optional[Decimal] = None) -> List[Tuple[str, str]]:
    deposit = deposit_amount if deposit_amount is not None else room.monthly_rent
    return [
        ("Alquiler", f"{format_currency(room.monthly_rent)}/mes"),
        ("Fianza", format_currency(deposit)),
        ("Disponibilidad", "Inmediata"),
    ]


def _details(layout: PageLayout, room: Room) -> None:
    layout.section_title("DETALLES", keep_with=20)
    layout.label_value("Tipo:", "Habitación privada" if room.is_private else "Zona común")
    if room.size_sqm is not None:
        layout.label_value("Tamaño:", f"{format_number(room.size_sqm)} m²")
    layout.y += 10


def _description(layout: PageLayout, notes: Optional[str]) -> None:
    text = (notes or "").strip()
    if not text:
        return
    description = "\n".join(text.splitlines()[:DESCRIPTION_LINES])
    layout.section_title("DESCRIPCIÓN", keep_with=layout.text_height(description))
    layout.flow_text(description, spacing_after=14)


def _common_entry_space(layout: PageLayout, has_photos: bool) -> float:
    """Room for a common-area name plus, when it has photos, their first row."""
    return 30 + (layout.photo_row_space() if has_photos else 0)


def _common_areas(
    layout: PageLayout, common_rooms: Sequence[Room], common_room_images: Mapping[str, Sequence[Image.Image]]
) -> None:
    if not common_rooms:
        return
    entries = [
        (common, list(common_room_images.get(common.id, ()))[:COMMON_PHOTOS_PER_ROOM]) for common in common_rooms
    ]
    layout.ensure_space(COMMON_AREAS_SPACE)
    layout.section_title("ZONAS COMUNES", keep_with=_common_entry_space(layout, bool(entries[0][1])))
    for common, photos in entries:
        layout.ensure_space(_common_entry_space(layout, bool(photos)))
        layout.flow_text(f"• {common.name}", is_bold=True, spacing_after=4, kind="common_room")
        if photos:
            layout.photo_grid(photos)
    layout.y += 6


def _contact(layout: PageLayout, owner_contact: Optional[str]) -> None:
    contact = (owner_contact or "").strip()
    if not contact:
        return
    layout.ensure_space(max(CONTACT_SPACE, CONTACT_BOX_HEIGHT + 10))
    top = layout.y
    layout.fill_rect(MARGIN, top, CONTENT_WIDTH, CONTACT_BOX_HEIGHT, LIGHT_GRAY, radius=6)
    layout.draw_text(
        f"Contacto: {contact}", MARGIN + 12, top + 13, max_width=CONTENT_WIDTH - 24, size=12, is_bold=True, color=NAVY
    )
    layout.record("contact", MARGIN, top, CONTENT_WIDTH, CONTACT_BOX_HEIGHT)
    layout.y = top + CONTACT_BOX_HEIGHT + 10


def render_room_ad(
    room: Room,
    prop: Property,
    *,
    today: date,
    common_rooms: Sequence[Room] = (),
    deposit_amount: Optional[Decimal] = None,
    owner_contact: Optional[str] = None,
    room_images: Sequence[Image.Image] = (),
    common_room_images: Optional[Mapping[str, Sequence[Image.Image]]] = None,
) -> PageLayout:
    layout = PageLayout(title=f"Anuncio - {room.name}", generated_on=today)
    _header(layout, room, prop)

    layout.chips(amenity_chips(room, common_rooms))
    layout.y += 16

    layout.info_boxes(summary_boxes(room, deposit_amount))

    _details(layout, room)
    _description(layout, room.notes)

    if room_images:
        layout.ensure_space(ROOM_PHOTOS_SPACE)
        layout.section_title("FOTOS DE LA HABITACIÓN", keep_with=layout.photo_row_space())
        layout.photo_grid(room_images)
        layout.y += 6

    images: Dict[str, Sequence[Image.Image]] = dict(common_room_images or {})
    _common_areas(layout, common_rooms, images)
    _contact(layout, owner_contact)

    layout.finish()
    return layout
