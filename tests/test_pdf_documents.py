from datetime import timedelta
from decimal import Decimal

import pytest

from rentals.contract import DEFAULT_HOUSE_RULES, ContractTemplate, render_contract
from rentals.layout import MARGIN, PAGE_HEIGHT, PAGE_WIDTH, PageLayout, aspect_fill
from rentals.models import Room, RoomType
from rentals.room_ad import render_room_ad, summary_boxes


def _assert_paginated(layout: PageLayout):
    usable = PAGE_HEIGHT - 2 * MARGIN
    for block in layout.blocks:
        assert block.y >= MARGIN - 0.01, block
        assert block.x >= MARGIN - 0.01, block
        assert block.right <= PAGE_WIDTH - MARGIN + 0.01, block
        if block.height <= usable:
            assert block.bottom <= PAGE_HEIGHT - MARGIN + 0.01, block


def test_aspect_fill_covers_cell_and_centres():
    wide = aspect_fill((400, 100), (0, 0, 200, 100))
    assert wide == (-100.0, 0, 400.0, 100)
    tall = aspect_fill((100, 400), (10, 10, 100, 100))
    assert tall[0] == 10 and tall[2] == 100 and tall[3] == 400
    assert tall[1] == pytest.approx(10 - 150)


def test_contract_is_pdf_and_deterministic(generator, tenant, room, prop, now):
    first = generator.generate_contract(tenant, room, prop, now=now)
    second = generator.generate_contract(tenant, room, prop, now=now)
    assert first.startswith(b"%PDF")
    assert first == second


def test_contract_changes_with_date(generator, tenant, room, prop, now):
    assert generator.generate_contract(tenant, room, prop, now=now) != generator.generate_contract(
        tenant, room, prop, now=now + timedelta(days=1)
    )


@pytest.mark.parametrize("template", list(ContractTemplate))
def test_contract_templates_paginate(template, tenant, room, prop, now):
    layout = render_contract(tenant, room, prop, today=now.date(), template=template, city="Guadalajara")
    if template == ContractTemplate.LEGAL:
        assert layout.page_count >= 2
    _assert_paginated(layout)


def test_legal_contract_puts_house_rules_on_new_page(tenant, room, prop, now):
    layout = render_contract(tenant, room, prop, today=now.date())
    titles = [block for block in layout.blocks if block.kind == "title"]
    assert len(titles) == 2
    assert titles[1].page > titles[0].page
    assert titles[1].y == MARGIN
    bullets = [block for block in layout.blocks if block.kind == "bullet"]
    assert len(bullets) == len(DEFAULT_HOUSE_RULES)


def test_contract_custom_rules_and_notes(tenant, room, prop, now):
    noted = tenant.model_copy(update={"contract_notes": "Plaza de garaje incluida.", "dni": None})
    layout = render_contract(noted, room, prop, today=now.date(), house_rules=["Regla única"])
    assert len([b for b in layout.blocks if b.kind == "bullet"]) == 1
    _assert_paginated(layout)


def test_contract_handles_missing_optional_data(generator, room, prop, now):
    from rentals.models import Tenant

    bare = Tenant(id="t9", property_id="prop-1", full_name="Sin Datos")
    pdf = generator.generate_contract(bare, room, prop, now=now, template="structured")
    assert pdf.startswith(b"%PDF")


def test_unknown_template_falls_back_to_default(settings, tenant, room, prop, now):
    assert ContractTemplate.parse("nope") == ContractTemplate.LEGAL
    assert ContractTemplate.parse(None, ContractTemplate.STRUCTURED) == ContractTemplate.STRUCTURED
    assert ContractTemplate.parse(" Structured ") == ContractTemplate.STRUCTURED


def test_room_ad_deterministic_with_images(generator, prop, now, make_image):
    vacant = prop.rooms[1]
    images = [make_image(), make_image(300, 600, (10, 200, 30)), make_image(mode="RGBA", color=(0, 0, 255, 128))]
    kwargs = dict(
        common_rooms=prop.common_rooms,
        owner_contact="600 123 456",
        room_images=images,
        common_room_images={"common-1": [make_image(), make_image(), make_image()]},
        now=now,
    )
    first = generator.generate_room_ad(vacant, prop, **kwargs)
    second = generator.generate_room_ad(vacant, prop, **kwargs)
    assert first.startswith(b"%PDF")
    assert first == second


def test_room_ad_limits_photos_and_paginates(prop, now, make_image):
    vacant = prop.rooms[1]
    layout = render_room_ad(
        vacant,
        prop,
        today=now.date(),
        common_rooms=prop.common_rooms,
        room_images=[make_image() for _ in range(9)],
        common_room_images={"common-1": [make_image() for _ in range(4)], "common-2": [make_image()]},
        owner_contact="ana@example.com",
    )
    rows = [b for b in layout.blocks if b.kind == "photo_row"]
    # 6 room photos in 3 rows, then 2 + 1 common-area photos in one row each.
    assert len(rows) == 5
    assert layout.page_count >= 2
    assert any(b.kind == "contact" for b in layout.blocks)
    _assert_paginated(layout)


def test_room_ad_without_optional_data(generator, now):
    from rentals.models import Property

    lonely = Property(id="p", name="Ático")
    room = Room(id="r", property_id="p", name="Hab", monthly_rent=Decimal("300"))
    layout = render_room_ad(room, lonely, today=now.date())
    assert layout.page_count == 1
    assert not any(b.kind in ("photo_row", "contact", "chips") for b in layout.blocks)
    assert generator.generate_room_ad(room, lonely, now=now).startswith(b"%PDF")


def test_unreadable_image_is_skipped(prop, now, caplog):
    class Broken:
        mode = "P"

        def convert(self, mode):
            raise OSError("truncated")

    broken = Broken()
    with caplog.at_level("WARNING"):
        layout = render_room_ad(prop.rooms[1], prop, today=now.date(), room_images=[broken])
    assert layout.finish().startswith(b"%PDF")
    assert any(r.getMessage() == "photo_unreadable" for r in caplog.records)


def test_common_area_without_photos_still_listed(prop, now):
    layout = render_room_ad(
        prop.rooms[1],
        prop,
        today=now.date(),
        common_rooms=[Room(id="c", property_id="prop-1", name="Patio", room_type=RoomType.COMMON)],
    )
    assert [b.kind for b in layout.blocks].count("common_room") == 1


def test_long_text_flows_across_pages(now):
    layout = PageLayout(title="t", generated_on=now.date())
    for _ in range(60):
        layout.flow_text("Lorem ipsum dolor sit amet " * 12, spacing_after=4)
    assert layout.page_count > 1
    _assert_paginated(layout)
    assert layout.finish().startswith(b"%PDF")


@pytest.mark.parametrize("words", range(0, 401, 20))
def test_room_ad_headings_stay_with_their_content(words, prop, now, make_image):
    vacant = prop.rooms[1].model_copy(update={"notes": " ".join(["luminosa"] * words) or None})
    kitchen = prop.common_rooms[0]
    layout = render_room_ad(
        vacant,
        prop,
        today=now.date(),
        common_rooms=[kitchen],
        room_images=[make_image(), make_image()],
        common_room_images={kitchen.id: [make_image(), make_image()]},
        owner_contact="600 123 456",
    )
    blocks = layout.blocks
    for index, block in enumerate(blocks):
        if block.kind == "section":
            assert index + 1 < len(blocks), block
            assert blocks[index + 1].page == block.page, (block, blocks[index + 1])
    _assert_paginated(layout)


def test_contract_notes_heading_stays_with_notes(tenant, room, prop, now):
    for words in range(0, 600, 40):
        notes = " ".join(["garaje"] * words) or None
        noted = tenant.model_copy(update={"contract_notes": notes})
        layout = render_contract(noted, room, prop, today=now.date(), template=ContractTemplate.STRUCTURED)
        blocks = layout.blocks
        for index, block in enumerate(blocks):
            if block.kind == "section":
                assert blocks[index + 1].page == block.page, (words, block)


def test_room_ad_summary_boxes_show_cents(prop):
    vacant = prop.rooms[1]
    assert summary_boxes(vacant) == [
        ("Alquiler", "450,00 €/mes"),
        ("Fianza", "450,00 €"),
        ("Disponibilidad", "Inmediata"),
    ]
    assert summary_boxes(vacant, Decimal("900.5"))[1] == ("Fianza", "900,50 €")
