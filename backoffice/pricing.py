"""Per-person and booking totals derived from a menu selection."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from backoffice.models import ZERO, BookingKind, ExtraLine, MenuSelection, Totals

_CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round to the currency's minor unit."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def compute_extras_total(extras: Iterable[ExtraLine]) -> Decimal:
    """Sum booking-level extras (e.g. tiramisu by the kilogram)."""
    return to_cents(sum((line.subtotal for line in extras), ZERO))


def compute_totals(
    selection: MenuSelection,
    guest_count: int,
    kind: BookingKind,
    extras: Iterable[ExtraLine] = (),
) -> Totals:
    """
    Derive prices for a booking.

    `per_person` is the sum of the selected items' unit prices plus the
    kind's cover charge; `total` is `per_person * guest_count`, or 0 while
    nothing is selected. Extras are reported separately and only reach
    `grand_total`.
    """
    if guest_count < 0:
        raise ValueError("guest_count must not be negative")

    base = to_cents(sum((item.price for item in selection), ZERO))
    cover = to_cents(kind.cover_charge)
    per_person = base + cover
    return Totals(
        per_person=per_person,
        total=to_cents(per_person * guest_count) if len(selection) else ZERO,
        base_per_person=base,
        cover_charge=cover,
        extras_total=compute_extras_total(extras),
    )
