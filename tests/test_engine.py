from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from backoffice.data import GRADUATION_RECEPTION, TABLE
from backoffice.engine import (
    accept_booking,
    apply_preset_menu,
    assign_slot,
    check_admission,
    clear_menu,
    close_booking,
    freeze_draft,
    open_draft,
    set_extra,
    set_guest_count,
    set_start,
    submit_draft,
    toggle_menu_item,
    validate_draft,
)
from backoffice.errors import InvalidTimeInput
from backoffice.models import BookingStatus, TimeSlot

from conftest import DAY


def at(clock: str) -> datetime:
    return datetime.fromisoformat(f"{DAY.isoformat()}T{clock}")


def test_open_draft_has_prices():
    draft = open_draft(GRADUATION_RECEPTION, guest_count=10)

    assert draft.totals is not None
    assert draft.totals.per_person == Decimal("2.00")
    assert draft.totals.total == Decimal("0.00")


def test_toggle_refreshes_prices(catalog):
    draft = open_draft(GRADUATION_RECEPTION, guest_count=20)
    toggle_menu_item(draft, catalog.item("caraffe_drink"), catalog)
    toggle_menu_item(draft, catalog.item("cotoletta"), catalog)

    assert draft.totals.per_person == Decimal("15.00")
    assert draft.totals.total == Decimal("300.00")

    set_guest_count(draft, 10)
    assert draft.totals.total == Decimal("150.00")


def test_rejected_toggle_leaves_draft_unchanged(catalog):
    draft = open_draft(TABLE)
    for item_id in ("olive_ascolana", "anelli_cipolla", "patatine_fritte"):
        toggle_menu_item(draft, catalog.item(item_id), catalog)
    before = draft.selection

    result = toggle_menu_item(draft, catalog.item("crocchette"), catalog)

    assert result.rejected
    assert draft.selection == before


def test_preset_and_clear(catalog):
    draft = open_draft(GRADUATION_RECEPTION, guest_count=2)
    apply_preset_menu(draft, "menu_1", catalog)

    assert draft.selection.item_ids == ("caraffe_drink", "pizza_margherita")
    assert draft.totals.per_person == Decimal("10.00")

    clear_menu(draft)
    assert len(draft.selection) == 0
    assert draft.totals.total == Decimal("0.00")
    with pytest.raises(ValueError):
        apply_preset_menu(draft, "menu_9", catalog)


def test_extras(catalog):
    draft = open_draft(TABLE, guest_count=4)
    tiramisu = catalog.extra("tiramisu")
    set_extra(draft, tiramisu, Decimal("2"))
    assert draft.totals.extras_total == Decimal("50.00")

    set_extra(draft, tiramisu, Decimal("0"))
    assert draft.extras == []
    with pytest.raises(ValueError):
        set_extra(draft, tiramisu, Decimal("-1"))


def test_set_start_returns_slot():
    draft = open_draft(TABLE)
    assert set_start(draft, at("19:00")) is TimeSlot.EVENING
    with pytest.raises(InvalidTimeInput):
        set_start(draft, at("08:00"))
    with pytest.raises(ValueError):
        set_start(draft, at("19:00"), end=at("18:00"))
    assert assign_slot("14:31") is TimeSlot.AFTERNOON


def test_guest_count_must_be_positive():
    draft = open_draft(TABLE)
    with pytest.raises(ValueError):
        set_guest_count(draft, 0)


def test_validate_draft_lists_issues():
    draft = open_draft(GRADUATION_RECEPTION)
    fields = {issue.field for issue in validate_draft(draft)}

    assert fields == {"start", "menu"}


def test_freeze_draft(catalog):
    draft = open_draft(GRADUATION_RECEPTION, guest_count=5, start=at("12:00"))
    apply_preset_menu(draft, "menu_1", catalog)
    booking = freeze_draft(draft, "  Bianchi ")

    assert booking.client_name == "Bianchi"
    assert booking.status is BookingStatus.PENDING
    assert booking.total == Decimal("50.00")
    with pytest.raises(ValueError):
        freeze_draft(open_draft(TABLE), "Bianchi")


def test_submit_saves_when_slot_has_room(fake_store):
    draft = open_draft(TABLE, guest_count=4, start=at("20:00"))
    result = submit_draft(fake_store, draft, "Verdi")

    assert result.saved
    assert result.booking.status is BookingStatus.ACCEPTED
    assert check_admission(fake_store, DAY, TimeSlot.EVENING, 26).allowed
    assert not check_admission(fake_store, DAY, TimeSlot.EVENING, 27).allowed


def test_submit_reports_missing_fields(fake_store):
    result = submit_draft(fake_store, open_draft(TABLE), " ")

    assert not result.saved
    assert {issue.field for issue in result.issues} == {"start", "client_name"}


def test_submit_over_capacity_needs_override(fake_store):
    submit_draft(fake_store, open_draft(TABLE, guest_count=25, start=at("11:00")), "Neri")
    draft = open_draft(TABLE, guest_count=10, start=at("12:30"))

    blocked = submit_draft(fake_store, draft, "Gialli")
    assert not blocked.saved
    assert blocked.admission is not None and not blocked.admission.allowed

    forced = submit_draft(fake_store, draft, "Gialli", override_capacity=True)
    assert forced.saved


def test_pending_request_is_saved_even_when_full(fake_store):
    submit_draft(fake_store, open_draft(TABLE, guest_count=30, start=at("11:00")), "Neri")
    result = submit_draft(
        fake_store, open_draft(TABLE, guest_count=5, start=at("11:30")), "Blu", status=BookingStatus.PENDING
    )

    assert result.saved
    assert not result.admission.allowed


def test_accept_booking_checks_capacity(fake_store):
    submit_draft(fake_store, open_draft(TABLE, guest_count=28, start=at("15:00")), "Neri")
    pending = submit_draft(
        fake_store, open_draft(TABLE, guest_count=5, start=at("16:00")), "Blu", status=BookingStatus.PENDING
    ).booking

    held = accept_booking(fake_store, pending.booking_id)
    assert not held.saved
    assert fake_store.get_booking(pending.booking_id).status is BookingStatus.PENDING

    accepted = accept_booking(fake_store, pending.booking_id, override_capacity=True)
    assert accepted.booking.status is BookingStatus.ACCEPTED

    with pytest.raises(ValueError):
        accept_booking(fake_store, "missing")


def test_close_booking_keeps_reason(fake_store):
    booking = submit_draft(fake_store, open_draft(TABLE, guest_count=4, start=at("20:00")), "Verdi").booking

    rejected = close_booking(fake_store, booking.booking_id, BookingStatus.REJECTED, "  kitchen closed ")
    assert rejected.status is BookingStatus.REJECTED
    assert rejected.reason == "kitchen closed"


def test_close_booking_blank_reason_is_dropped(fake_store):
    booking = submit_draft(fake_store, open_draft(TABLE, guest_count=4, start=at("20:00")), "Verdi").booking

    assert close_booking(fake_store, booking.booking_id, BookingStatus.CANCELLED, "   ").reason is None
    with pytest.raises(ValueError):
        close_booking(fake_store, booking.booking_id, BookingStatus.ACCEPTED, "why")
