"""Thermal service-ticket printing for accepted bookings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from backoffice.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from backoffice.data import MENU_CATALOG
from backoffice.models import BookingRequest, MenuCatalog
from backoffice.pricing import compute_extras_total
from backoffice.rendering import format_money
from backoffice.slots import slot_for_booking

logger = logging.getLogger(__name__)

_FONT_OVERRIDE_ENV = "BACKOFFICE_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
)
_RULE_HEIGHT_PX = 20
_RULE_THICKNESS_PX = 4

MAIN = "main"
COMPACT = "compact"
SEPARATOR = "separator"

# Vertical padding per line kind; main lines keep room for descenders.
_LINE_PADDING_PX = {MAIN: 20, COMPACT: 6}


@dataclass(frozen=True)
class TicketLine:
    text: str
    kind: str = MAIN


def resolve_printer_font_path() -> str:
    """First existing font of: the env override, PRINTER_FONT_PATH, common Linux fonts."""
    candidates = [os.environ.get(_FONT_OVERRIDE_ENV, "").strip(), PRINTER_FONT_PATH, *_LINUX_FONT_FALLBACKS]
    tried = [candidate for candidate in candidates if candidate]
    for candidate in tried:
        if Path(candidate).is_file():
            return candidate
    raise RuntimeError(f"No printer font found; set {_FONT_OVERRIDE_ENV}. Tried: {', '.join(tried)}")


def check_printer_dependencies() -> tuple[bool, str]:
    """Report whether a ticket could be printed right now."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def ticket_lines(booking: BookingRequest, catalog: MenuCatalog = MENU_CATALOG) -> list[TicketLine]:
    """Lay out a booking's service ticket, top to bottom."""
    slot = slot_for_booking(booking)
    when = f"{booking.start:%a %d/%m %H:%M}"
    if booking.end is not None:
        when += f"-{booking.end:%H:%M}"

    lines = [
        TicketLine(when),
        TicketLine(f"{slot.label if slot else 'Off-hours'} - {booking.guest_count} pax"),
        TicketLine(f"{booking.kind.label}: {booking.client_name}", COMPACT),
    ]

    if booking.selection.items:
        lines.append(TicketLine("", SEPARATOR))
        for category in catalog.categories:
            chosen = booking.selection.in_category(category.category_id)
            if not chosen:
                continue
            lines.append(TicketLine(category.name.upper(), COMPACT))
            lines.extend(TicketLine(f"  {item.name}") for item in chosen)
        known = {category.category_id for category in catalog.categories}
        lines.extend(TicketLine(f"  {item.name}") for item in booking.selection if item.category_id not in known)

    if booking.extras:
        lines.append(TicketLine("", SEPARATOR))
        for line in booking.extras:
            lines.append(
                TicketLine(f"{line.item.name} {line.quantity.normalize():f} {line.item.unit} {format_money(line.subtotal)}")
            )

    lines.append(TicketLine("", SEPARATOR))
    per_person = f"{format_money(booking.per_person)}/person"
    if booking.kind.cover_charge:
        per_person += f" incl. {booking.kind.cover_charge:.2f} cover"
    lines.append(TicketLine(per_person, COMPACT))
    lines.append(TicketLine(f"Total {format_money(booking.total + compute_extras_total(booking.extras))}"))
    return lines


def _fit_text_to_px(text: str, font: object, max_width_px: int) -> str:
    """Trim `text` with an ellipsis until it fits `max_width_px`."""
    from PIL import ImageDraw, Image

    draw = ImageDraw.Draw(Image.new("1", (1, 1), color=1))
    fitted = text
    while fitted and draw.textlength(fitted if fitted == text else f"{fitted}...", font=font) > max_width_px:
        fitted = fitted[:-1]
    return fitted if fitted == text else f"{fitted}..."


def render_ticket_line(line: TicketLine, font: object) -> object:
    """Rasterize one ticket line to a 1-bit image as wide as the paper."""
    from PIL import Image, ImageDraw

    if line.kind == SEPARATOR:
        img = Image.new("1", (PRINTER_WIDTH_PX, _RULE_HEIGHT_PX), color=1)
        top = (_RULE_HEIGHT_PX - _RULE_THICKNESS_PX) // 2
        ImageDraw.Draw(img).rectangle((0, top, PRINTER_WIDTH_PX - 1, top + _RULE_THICKNESS_PX - 1), fill=0)
        return img

    text = _fit_text_to_px(line.text, font, PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX * 2)
    measure = ImageDraw.Draw(Image.new("1", (1, 1), color=1))
    left, top, _, bottom = measure.textbbox((0, 0), text or " ", font=font)
    height = bottom - top + _LINE_PADDING_PX[line.kind]
    img = Image.new("1", (PRINTER_WIDTH_PX, height), color=1)
    ImageDraw.Draw(img).text((PRINTER_LEFT_INDENT_PX - left, (height - (bottom - top)) // 2 - top), text, font=font, fill=0)
    return img


def print_booking_ticket(booking: BookingRequest, catalog: MenuCatalog = MENU_CATALOG) -> None:
    """Print a booking's service ticket and cut it."""
    try:
        from escpos.printer import Usb
        from PIL import Image, ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    font_path = resolve_printer_font_path()
    fonts = {
        MAIN: ImageFont.truetype(font_path, PRINTER_FONT_SIZE),
        COMPACT: ImageFont.truetype(font_path, max(14, PRINTER_FONT_SIZE // 2)),
    }
    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    for line in ticket_lines(booking, catalog):
        printer.image(render_ticket_line(line, fonts.get(line.kind, fonts[MAIN])))
    printer.image(Image.new("1", (PRINTER_WIDTH_PX, PRINTER_TAIL_SPACER_PX), color=1))
    printer.cut()
    logger.info("ticket_printed booking=%s", booking.booking_id)
