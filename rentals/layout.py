"""
Top-down page layout on a ReportLab canvas.

Blocks are laid out with a cursor ``y`` measured from the top edge of the page
(ReportLab's origin is bottom-left; conversion happens only at draw time).
Every block returns the cursor after it, and every flow block is recorded as a
``Placement`` so callers and tests can inspect where content landed.

Pagination is conservative: callers reserve a fixed estimate with
``ensure_space`` before a group of blocks, and text blocks are also measured
exactly and moved to a fresh page when they would cross the bottom margin.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from PIL import Image
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from rentals.formatting import medium_date
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

PAGE_WIDTH = 595.2  # A4
PAGE_HEIGHT = 841.8
MARGIN = 40.0
CONTENT_WIDTH = PAGE_WIDTH - MARGIN * 2
LINE_SPACING = 3.0

GRID_COLUMNS = 2
GRID_SPACING = 8.0
CELL_ASPECT = 0.65
MAX_GRID_PHOTOS = 6
GRID_BOTTOM_GUARD = 60.0
PHOTO_RADIUS = 6.0

CHIP_HEIGHT = 22.0
CHIP_FONT_SIZE = 9.0

NAVY = colors.Color(0.11, 0.15, 0.27)
GOLD = colors.Color(0.84, 0.64, 0.26)
EMERALD = colors.Color(0.04, 0.54, 0.39)
CHARCOAL = colors.Color(0.17, 0.17, 0.17)
LIGHT_GRAY = colors.Color(0.95, 0.95, 0.95)
MID_GRAY = colors.Color(0.5, 0.5, 0.5)
BORDER_GRAY = colors.Color(0.83, 0.83, 0.83)
WHITE = colors.white

FOOTER_TEXT = "Generado con Rental Manager"

# (text, bold) pairs flowing in one paragraph.
Span = Tuple[str, bool]


def regular(text: Optional[str]) -> Span:
    return (text or "", False)


def bold(text: Optional[str]) -> Span:
    return (text or "", True)


def _font_name(is_bold: bool, italic: bool) -> str:
    if is_bold and italic:
        return "Helvetica-BoldOblique"
    if is_bold:
        return "Helvetica-Bold"
    if italic:
        return "Helvetica-Oblique"
    return "Helvetica"


def _markup(text: str) -> str:
    return escape(text).replace("\n", "<br/>")


def spans_markup(spans: Iterable[Span]) -> str:
    return "".join(f"<b>{_markup(text)}</b>" if is_bold else _markup(text) for text, is_bold in spans)


def aspect_fill(
    image_size: Tuple[float, float], cell: Tuple[float, float, float, float]
) -> Tuple[float, float, float, float]:
    """Rect that covers ``cell`` (x, y, w, h) keeping the image's aspect ratio, centred.

    The overflow on one axis is cropped by the caller's clip path; the image is
    never letterboxed.
    """
    img_w, img_h = image_size
    x, y, w, h = cell
    image_aspect = img_w / img_h
    cell_aspect = w / h
    if image_aspect > cell_aspect:
        draw_w = h * image_aspect
        return (x + (w - draw_w) / 2, y, draw_w, h)
    draw_h = w / image_aspect
    return (x, y + (h - draw_h) / 2, w, draw_h)


@dataclass(frozen=True)
class Placement:
    page: int
    kind: str
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width


class PageLayout:
    """One PDF document under construction plus its vertical cursor."""

    def __init__(self, *, title: str, generated_on: date, author: str = "Rental Manager") -> None:
        self._buffer = io.BytesIO()
        # invariant=1 pins creation date and document id so equal inputs give equal bytes.
        self.canvas = canvas.Canvas(self._buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), invariant=1)
        self.canvas.setTitle(title)
        self.canvas.setAuthor(author)
        self.canvas.setCreator(FOOTER_TEXT)
        self.footer_text = f"{FOOTER_TEXT} · {medium_date(generated_on)}"
        self.page = 0
        self.y = MARGIN
        self.blocks: List[Placement] = []
        self._styles: Dict[Tuple, ParagraphStyle] = {}
        self._finished = False

    # ----------------------------------------------------------------- pages

    @property
    def bottom_limit(self) -> float:
        return PAGE_HEIGHT - MARGIN

    @property
    def page_count(self) -> int:
        return self.page + 1

    def remaining(self) -> float:
        return self.bottom_limit - self.y

    def new_page(self) -> float:
        self._draw_footer()
        self.canvas.showPage()
        self.page += 1
        self.y = MARGIN
        return self.y

    def ensure_space(self, needed: float) -> float:
        """Start a new page when fewer than ``needed`` units remain above the bottom margin."""
        if self.remaining() < needed and self.y > MARGIN:
            self.new_page()
        return self.y

    def finish(self) -> bytes:
        if not self._finished:
            self._draw_footer()
            self.canvas.showPage()
            self.canvas.save()
            self._finished = True
        return self._buffer.getvalue()

    def record(self, kind: str, x: float, y: float, width: float, height: float) -> None:
        self.blocks.append(Placement(self.page, kind, x, y, width, height))

    @staticmethod
    def _pdf_y(top: float, height: float) -> float:
        return PAGE_HEIGHT - top - height

    # ----------------------------------------------------------------- text

    def _style(
        self, size: float, is_bold: bool, italic: bool, color: colors.Color, alignment: int
    ) -> ParagraphStyle:
        key = (size, is_bold, italic, color.hexval(), alignment)
        style = self._styles.get(key)
        if style is None:
            style = ParagraphStyle(
                f"s{len(self._styles)}",
                fontName=_font_name(is_bold, italic),
                fontSize=size,
                leading=size * 1.2 + LINE_SPACING,
                textColor=color,
                alignment=alignment,
            )
            self._styles[key] = style
        return style

    def measure(self, markup: str, width: float, style: ParagraphStyle) -> Tuple[Paragraph, float]:
        paragraph = Paragraph(markup, style)
        _, height = paragraph.wrap(width, PAGE_HEIGHT)
        return paragraph, height

    def _draw_markup(self, markup: str, x: float, y: float, width: float, style: ParagraphStyle) -> float:
        paragraph, height = self.measure(markup, width, style)
        paragraph.drawOn(self.canvas, x, self._pdf_y(y, height))
        return height

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        max_width: float,
        size: float = 11,
        is_bold: bool = False,
        italic: bool = False,
        color: colors.Color = CHARCOAL,
        align: str = "left",
    ) -> float:
        """Draw wrapped text at a fixed position (no pagination); return the y below it."""
        style = self._style(size, is_bold, italic, color, TA_CENTER if align == "center" else TA_LEFT)
        return y + self._draw_markup(_markup(text), x, y, max_width, style)

    def _flow(self, markup: str, style: ParagraphStyle, kind: str, indent: float, spacing_after: float) -> float:
        width = CONTENT_WIDTH - indent
        paragraph, height = self.measure(markup, width, style)
        usable = self.bottom_limit - MARGIN
        if self.y + height > self.bottom_limit and height <= usable and self.y > MARGIN:
            self.new_page()
        x = MARGIN + indent
        paragraph.drawOn(self.canvas, x, self._pdf_y(self.y, height))
        self.record(kind, x, self.y, width, height)
        self.y += height + spacing_after
        return self.y

    def flow_text(
        self,
        text: str,
        *,
        size: float = 11,
        is_bold: bool = False,
        italic: bool = False,
        color: colors.Color = CHARCOAL,
        indent: float = 0,
        spacing_after: float = 0,
        align: str = "left",
        kind: str = "paragraph",
    ) -> float:
        style = self._style(size, is_bold, italic, color, TA_CENTER if align == "center" else TA_LEFT)
        return self._flow(_markup(text), style, kind, indent, spacing_after)

    def text_height(self, text: str, *, size: float = 11, is_bold: bool = False, italic: bool = False) -> float:
        style = self._style(size, is_bold, italic, CHARCOAL, TA_LEFT)
        return self.measure(_markup(text), CONTENT_WIDTH, style)[1]

    def flow_spans(self, spans: Sequence[Span], *, size: float = 11, spacing_after: float = 0) -> float:
        """Regular and bold runs wrapped together as one paragraph."""
        style = self._style(size, False, False, CHARCOAL, TA_LEFT)
        return self._flow(spans_markup(spans), style, "mixed", 0, spacing_after)

    # ----------------------------------------------------------------- shapes

    def fill_rect(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        color: colors.Color,
        *,
        radius: float = 0,
        alpha: Optional[float] = None,
    ) -> None:
        c = self.canvas
        c.saveState()
        c.setFillColor(color)
        if alpha is not None:
            c.setFillAlpha(alpha)
        pdf_y = self._pdf_y(y, height)
        if radius > 0:
            c.roundRect(x, pdf_y, width, height, radius, stroke=0, fill=1)
        else:
            c.rect(x, pdf_y, width, height, stroke=0, fill=1)
        c.restoreState()

    def line(self, x1: float, y1: float, x2: float, y2: float, *, color: colors.Color = CHARCOAL, width: float = 0.5) -> None:
        c = self.canvas
        c.saveState()
        c.setStrokeColor(color)
        c.setLineWidth(width)
        c.line(x1, PAGE_HEIGHT - y1, x2, PAGE_HEIGHT - y2)
        c.restoreState()

    def _draw_footer(self) -> None:
        footer_y = PAGE_HEIGHT - 35
        self.line(MARGIN, footer_y - 5, PAGE_WIDTH - MARGIN, footer_y - 5, color=BORDER_GRAY)
        self.draw_text(
            self.footer_text,
            MARGIN,
            footer_y,
            max_width=CONTENT_WIDTH,
            size=8,
            italic=True,
            color=MID_GRAY,
            align="center",
        )

    # ----------------------------------------------------------------- composite blocks

    def section_title(self, title: str, *, size: float = 13, keep_with: float = 0) -> float:
        """Navy heading with a short gold underline.

        ``keep_with`` is the room the first block under the heading needs; the
        heading moves to a new page with it rather than being left behind.
        """
        self.ensure_space(40 + keep_with)
        y = self.flow_text(title, size=size, is_bold=True, color=NAVY, kind="section") + 2
        self.line(MARGIN, y, MARGIN + 60, y, color=GOLD, width=2)
        self.y = y + 8
        return self.y

    def label_value(self, label: str, value: str, *, label_width: float = 130) -> float:
        self.ensure_space(20)
        style_label = self._style(11, True, False, CHARCOAL, TA_LEFT)
        style_value = self._style(11, False, False, CHARCOAL, TA_LEFT)
        top = self.y
        label_h = self._draw_markup(_markup(label), MARGIN, top, label_width, style_label)
        value_h = self._draw_markup(_markup(value), MARGIN + label_width, top, CONTENT_WIDTH - label_width, style_value)
        height = max(label_h, value_h)
        self.record("label_value", MARGIN, top, CONTENT_WIDTH, height)
        self.y = top + height + 4
        return self.y

    def bullet(self, text: str, *, indent: float = 10, spacing_after: float = 4) -> float:
        return self.flow_text(f"• {text}", indent=indent, spacing_after=spacing_after, kind="bullet")

    def info_box(self, title: str, value: str, x: float, y: float, width: float, height: float) -> None:
        self.fill_rect(x, y, width, height, LIGHT_GRAY, radius=6)
        self.draw_text(title, x + 8, y + 8, max_width=width - 16, size=9, color=MID_GRAY)
        self.draw_text(value, x + 8, y + 24, max_width=width - 16, size=13, is_bold=True, color=NAVY)

    def info_boxes(self, items: Sequence[Tuple[str, str]], *, height: float = 50, gap: float = 10) -> float:
        """A row of equally wide boxes (title above a bold value)."""
        self.ensure_space(height + 20)
        count = max(len(items), 1)
        width = (CONTENT_WIDTH - gap * (count - 1)) / count
        for index, (title, value) in enumerate(items):
            self.info_box(title, value, MARGIN + index * (width + gap), self.y, width, height)
        self.record("info_boxes", MARGIN, self.y, CONTENT_WIDTH, height)
        self.y += height + 20
        return self.y

    def info_card(self, title: str, lines: Sequence[str], x: float, y: float, width: float, height: float) -> None:
        self.fill_rect(x, y, width, height, LIGHT_GRAY, radius=6)
        cursor = y + 8
        self.draw_text(title, x + 10, cursor, max_width=width - 20, size=9, is_bold=True, color=NAVY)
        cursor += 14
        for text in lines:
            if cursor >= y + height - 8:
                break
            cursor = self.draw_text(text, x + 10, cursor, max_width=width - 20, size=10) + 2

    def info_cards(self, cards: Sequence[Tuple[str, Sequence[str]]], *, height: float = 90, gap: float = 10) -> float:
        self.ensure_space(height + 12)
        count = max(len(cards), 1)
        width = (CONTENT_WIDTH - gap * (count - 1)) / count
        for index, (title, lines) in enumerate(cards):
            self.info_card(title, lines, MARGIN + index * (width + gap), self.y, width, height)
        self.record("info_cards", MARGIN, self.y, CONTENT_WIDTH, height)
        self.y += height + 12
        return self.y

    def chips(self, labels: Sequence[str], *, spacing: float = 8) -> float:
        """Rounded pills that wrap onto new rows; returns the y under the last row."""
        if not labels:
            return self.y
        self.ensure_space(CHIP_HEIGHT * 2)
        top = self.y
        x = MARGIN
        row_y = top
        for label in labels:
            chip_width = stringWidth(label, "Helvetica", CHIP_FONT_SIZE) + 16
            if x + chip_width > MARGIN + CONTENT_WIDTH and x > MARGIN:
                x = MARGIN
                row_y += CHIP_HEIGHT + 4
            self.fill_rect(x, row_y, chip_width, CHIP_HEIGHT, NAVY, radius=11, alpha=0.1)
            self.draw_text(label, x + 8, row_y + 5, max_width=chip_width - 8, size=CHIP_FONT_SIZE, color=NAVY)
            x += chip_width + spacing
        self.record("chips", MARGIN, top, CONTENT_WIDTH, row_y + CHIP_HEIGHT - top)
        self.y = row_y + CHIP_HEIGHT
        return self.y

    def signatures(self, left: str, right: str, *, gap: float = 40) -> float:
        self.ensure_space(80)
        width = (CONTENT_WIDTH - gap) / 2
        top = self.y
        self.draw_text(left, MARGIN, top, max_width=width, size=11, is_bold=True, color=NAVY, align="center")
        self.draw_text(right, MARGIN + width + gap, top, max_width=width, size=11, is_bold=True, color=NAVY, align="center")
        line_y = top + 35
        self.line(MARGIN + 10, line_y, MARGIN + width - 10, line_y)
        self.line(MARGIN + width + gap + 10, line_y, PAGE_WIDTH - MARGIN - 10, line_y)
        self.record("signatures", MARGIN, top, CONTENT_WIDTH, line_y - top)
        self.y = line_y + 10
        return self.y

    # ----------------------------------------------------------------- images

    @staticmethod
    def photo_row_space() -> float:
        """Room one photo row needs above the bottom margin, in ``ensure_space`` terms."""
        cell_h = (CONTENT_WIDTH - GRID_SPACING) / GRID_COLUMNS * CELL_ASPECT
        return cell_h + GRID_BOTTOM_GUARD - MARGIN

    def photo_grid(self, images: Sequence[Image.Image], *, max_photos: int = MAX_GRID_PHOTOS) -> float:
        """Two-column aspect-filled photo grid; photos beyond ``max_photos`` are dropped."""
        cell_w = (CONTENT_WIDTH - GRID_SPACING) / GRID_COLUMNS
        cell_h = cell_w * CELL_ASPECT
        photos = list(images)[:max_photos]
        for start in range(0, len(photos), GRID_COLUMNS):
            if self.remaining() < self.photo_row_space():
                self.new_page()
            for column, image in enumerate(photos[start : start + GRID_COLUMNS]):
                x = MARGIN + column * (cell_w + GRID_SPACING)
                self._draw_photo(image, x, self.y, cell_w, cell_h)
            self.record("photo_row", MARGIN, self.y, CONTENT_WIDTH, cell_h)
            self.y += cell_h + GRID_SPACING
        return self.y

    def _draw_photo(self, image: Image.Image, x: float, y: float, width: float, height: float) -> None:
        try:
            if image.mode not in ("RGB", "RGBA", "L"):
                image = image.convert("RGB")
            reader = ImageReader(image)
            img_w, img_h = reader.getSize()
        except (OSError, ValueError, AttributeError) as exc:
            logger.warning("photo_unreadable", extra={"error": str(exc)[:200]})
            return
        if not img_w or not img_h:
            logger.warning("photo_empty", extra={"size": [img_w, img_h]})
            return
        draw_x, draw_y, draw_w, draw_h = aspect_fill((img_w, img_h), (x, y, width, height))

        c = self.canvas
        pdf_y = self._pdf_y(y, height)
        c.saveState()
        clip = c.beginPath()
        clip.roundRect(x, pdf_y, width, height, PHOTO_RADIUS)
        c.clipPath(clip, stroke=0, fill=0)
        c.drawImage(reader, draw_x, self._pdf_y(draw_y, draw_h), draw_w, draw_h, mask="auto")
        c.restoreState()

        c.saveState()
        c.setStrokeColor(BORDER_GRAY)
        c.setStrokeAlpha(0.3)
        c.setLineWidth(0.5)
        c.roundRect(x, pdf_y, width, height, PHOTO_RADIUS, stroke=1, fill=0)
        c.restoreState()
