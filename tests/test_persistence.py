from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from backoffice.data import GRADUATION_RECEPTION, TABLE
from backoffice.engine import apply_preset_menu, freeze_draft, open_draft, set_extra
from backoffice.models import BookingStatus, TimeSlot

from conftest import DAY


def at(clock: str) -> datetime:
    return datetime.fromisoformat(f"{DAY.isoformat()}T{clock}")


def reception(catalog, guests=12, clock="12:00", status=BookingStatus.ACCEPTED):
    draft = open_draft(GRADUATION_RECEPTION, guest_count=guests, start=at(clock))
    apply_preset_menu(draft, "menu_2", catalog)
    set_extra(draft, catalog.extra("tiramisu"), Decimal("1.5"))
    return freeze_draft(draft, "Famiglia Rossi", status=status)


def test_save_and_reload_keeps_frozen_menu(sqlite_store, catalog):
    booking = reception(catalog)
    saved = sqlite_store.save_booking(booking)

    assert saved.booking_id == booking.booking_id
    assert saved.selection.item_ids == booking.selection.item_ids
    assert saved.per_person == booking.per_person
    assert saved.total == booking.total
    assert saved.extras_total == Decimal("37.50")
    assert saved.kind == GRADUATION_RECEPTION
    assert saved.created_at


def test_list_bookings_for_date_returns_accepted_only(sqlite_store, catalog):
    accepted = sqlite_store.save_booking(reception(catalog))
    sqlite_store.save_booking(reception(catalog, clock="13:00", status=BookingStatus.PENDING))

    listed = sqlite_store.list_bookings_for_date(DAY)
    assert [booking.booking_id for booking in listed] == [accepted.booking_id]
    assert len(sqlite_store.list_bookings(day=DAY)) == 2
    assert sqlite_store.list_bookings(day=DAY, statuses=[]) == []


def test_status_transitions(sqlite_store):
    draft = open_draft(TABLE, guest_count=2, start=at("20:00"))
    booking = sqlite_store.save_booking(freeze_draft(draft, "Verdi"))

    accepted = sqlite_store.update_booking_status(booking.booking_id, BookingStatus.ACCEPTED)
    assert accepted.status is BookingStatus.ACCEPTED

    cancelled = sqlite_store.update_booking_status(booking.booking_id, BookingStatus.CANCELLED, "client called")
    assert cancelled.reason == "client called"
    assert sqlite_store.list_bookings_for_date(DAY) == []

    with pytest.raises(ValueError):
        sqlite_store.update_booking_status(booking.booking_id, BookingStatus.ACCEPTED)
    with pytest.raises(ValueError):
        sqlite_store.update_booking_status("missing", BookingStatus.ACCEPTED)


def test_save_refuses_reception_without_menu(sqlite_store):
    draft = open_draft(TABLE, guest_count=2, start=at("20:00"))
    booking = freeze_draft(draft, "Verdi")
    broken = replace(booking, kind=GRADUATION_RECEPTION)

    with pytest.raises(ValueError):
        sqlite_store.save_booking(broken)


def test_slot_capacities_default_and_override(sqlite_store):
    assert sqlite_store.get_slot_capacities() == {
        TimeSlot.MORNING: 100,
        TimeSlot.AFTERNOON: 80,
        TimeSlot.EVENING: 100,
    }

    sqlite_store.set_slot_capacity(TimeSlot.AFTERNOON, 30)
    assert sqlite_store.get_slot_capacities()[TimeSlot.AFTERNOON] == 30
    assert sqlite_store.get_slot_capacities()[TimeSlot.MORNING] == 100
    with pytest.raises(ValueError):
        sqlite_store.set_slot_capacity(TimeSlot.EVENING, -1)


def test_menu_catalog_is_exposed(sqlite_store, catalog):
    assert sqlite_store.get_menu_catalog() is catalog
