"""Rendering helpers for bookings, slot cards and prices."""

from __future__ import annotations

from decimal import Decimal

from rich.text import Text

from backoffice.config import CURRENCY_SYMBOL
from backoffice.models import BookingKind, BookingRequest, MenuCategory, MenuSelection, SlotOccupancy, Totals


def badge_style(badge: str) -> str:
    """Return a consistent badge style for booking kinds."""
    if badge == "L":
        return "bold #ffffff on #b23a48"
    return "bold #0b1f0f on #5fbf72"


def format_money(amount: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def format_kind_badge(kind: BookingKind) -> Text:
    text = Text()
    text.append(kind.badge, style=badge_style(kind.badge))
    return text


def format_booking_label(booking: BookingRequest) -> Text:
    """Render a booking card line: badge, time, name and guests."""
    text = format_kind_badge(booking.kind)
    text.append(f" {booking.start:%H:%M}")
    if booking.end is not None:
        text.append(f"-{booking.end:%H:%M}")
    text.append(f" {booking.client_name}")
    text.append(f" ({booking.guest_count} pax)", style="dim")
    return text


def occupancy_style(occupancy: SlotOccupancy) -> str:
    if occupancy.occupied > occupancy.capacity:
        return "bold #ffffff on #b23a48"
    if occupancy.is_full:
        return "bold #b23a48"
    if occupancy.capacity and occupancy.occupied * 10 >= occupancy.capacity * 8:
        return "bold #d9a441"
    return "bold #5fbf72"


def format_slot_header(occupancy: SlotOccupancy) -> Text:
    """Render the slot card title, e.g. "Morning 10/30"."""
    text = Text()
    text.append(occupancy.slot.label, style="bold")
    text.append(" ")
    text.append(f"{occupancy.occupied}/{occupancy.capacity}", style=occupancy_style(occupancy))
    return text


def format_price_label(totals: Totals) -> str:
    """Per-person price, with the cover charge broken out when present."""
    label = f"{format_money(totals.per_person)}/person"
    if totals.cover_charge:
        label += f" ({totals.base_per_person:.2f} + {totals.cover_charge:.2f} cover)"
    return label


def format_totals(totals: Totals, guest_count: int) -> Text:
    text = Text()
    text.append(format_price_label(totals))
    text.append(f"\nTotal ({guest_count} pax): ")
    text.append(format_money(totals.total), style="bold")
    if totals.extras_total:
        text.append(f"\nExtras: {format_money(totals.extras_total)}")
        text.append("\nGrand total: ")
        text.append(format_money(totals.grand_total), style="bold")
    return text


def format_category_counter(category: MenuCategory, selection: MenuSelection) -> str:
    """Selected count for a category, with its limit when it has one."""
    count = len(selection.in_category(category.category_id))
    if category.single_choice:
        return f"({count}/1 selected)"
    if category.max_count is not None:
        return f"({count}/{category.max_count} selected)"
    return f"({count} selected)"


def format_selection_tags(selection: MenuSelection) -> Text:
    """Render selected items as compact tags."""
    text = Text()
    for idx, item in enumerate(selection):
        if idx > 0:
            text.append(" ")
        text.append(f"[{item.name}]", style="white")
    return text
