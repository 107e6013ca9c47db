"""Amenity chips for the room advertisement, detected from common-room names."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from rentals.formatting import format_number
from rentals.models import Room

# Ordered: chips appear in this order regardless of how common rooms are listed.
AMENITY_KEYWORDS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("piscina",), "Piscina"),
    (("jardín", "jardin"), "Jardín"),
    (("terraza",), "Terraza"),
    (("parking", "garaje"), "Parking"),
    (("cocina",), "Cocina"),
    (("salón", "salon"), "Salón"),
    (("wifi",), "WiFi"),
)


def detect_amenities(
    common_room_names: Iterable[str],
    keywords: Sequence[Tuple[Tuple[str, ...], str]] = AMENITY_KEYWORDS,
) -> List[str]:
    names = [name.lower() for name in common_room_names]
    found: List[str] = []
    for needles, label in keywords:
        if any(needle in name for name in names for needle in needles):
            found.append(label)
    return found


def amenity_chips(room: Room, common_rooms: Iterable[Room]) -> List[str]:
    """Size chip (when known) followed by the detected amenities."""
    chips: List[str] = []
    size: Optional[str] = format_number(room.size_sqm) if room.size_sqm is not None else None
    if size:
        chips.append(f"{size} m²")
    chips.extend(detect_amenities(common.name for common in common_rooms))
    return chips
