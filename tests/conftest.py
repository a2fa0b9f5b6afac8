from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal

import pytest

from backoffice.data import MENU_CATALOG, TABLE
from backoffice.models import BookingRequest, BookingStatus, MenuSelection, TimeSlot
from backoffice.persistence import SqliteBookingStore

DAY = date(2026, 6, 12)


class FakeStore:
    """In-memory booking store."""

    def __init__(self, capacities: dict[TimeSlot, int] | None = None) -> None:
        self.bookings: dict[str, BookingRequest] = {}
        self.capacities = capacities or {TimeSlot.MORNING: 30, TimeSlot.AFTERNOON: 30, TimeSlot.EVENING: 30}

    def get_menu_catalog(self):
        return MENU_CATALOG

    def list_bookings_for_date(self, day):
        return [b for b in self.bookings.values() if b.day == day and b.status is BookingStatus.ACCEPTED]

    def get_slot_capacities(self):
        return dict(self.capacities)

    def save_booking(self, booking):
        self.bookings[booking.booking_id] = booking
        return booking

    def get_booking(self, booking_id):
        return self.bookings.get(booking_id)

    def update_booking_status(self, booking_id, status, reason=None):
        current = self.bookings[booking_id]
        updated = replace(current, status=status, reason=reason)
        self.bookings[booking_id] = updated
        return updated


@pytest.fixture
def catalog():
    return MENU_CATALOG


@pytest.fixture
def make_booking():
    counter = iter(range(1, 10_000))

    def _make(
        start: str,
        guests: int,
        status: BookingStatus = BookingStatus.ACCEPTED,
        end: str | None = None,
        kind=TABLE,
        booking_id: str | None = None,
        selection: MenuSelection | None = None,
        client_name: str = "Rossi",
    ) -> BookingRequest:
        return BookingRequest(
            booking_id=booking_id or f"b{next(counter)}",
            client_name=client_name,
            kind=kind,
            guest_count=guests,
            start=datetime.fromisoformat(f"{DAY.isoformat()}T{start}"),
            end=datetime.fromisoformat(f"{DAY.isoformat()}T{end}") if end else None,
            status=status,
            selection=selection or MenuSelection(),
            per_person=Decimal("0.00"),
            total=Decimal("0.00"),
        )

    return _make


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SqliteBookingStore(db_path=tmp_path / "backoffice.db")
    store.bootstrap_schema()
    return store
