"""SQLite persistence for booking requests and slot capacity settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Protocol
from uuid import uuid4

from backoffice.config import DB_PATH, DEFAULT_SLOT_CAPACITIES
from backoffice.data import MENU_CATALOG, booking_kind
from backoffice.models import (
    BookingRequest,
    BookingStatus,
    ExtraItem,
    ExtraLine,
    MenuCatalog,
    MenuItem,
    MenuSelection,
    TimeSlot,
)

logger = logging.getLogger(__name__)

_SLOT_CAPACITIES_KEY = "slot_capacities"

_ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.ACCEPTED, BookingStatus.REJECTED, BookingStatus.CANCELLED},
    BookingStatus.ACCEPTED: {BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),
    BookingStatus.CANCELLED: set(),
}


class BookingStore(Protocol):
    """What the booking engine reads from the surrounding application."""

    def get_menu_catalog(self) -> MenuCatalog: ...

    def list_bookings_for_date(self, day: date) -> list[BookingRequest]: ...

    def get_slot_capacities(self) -> dict[TimeSlot, int]: ...


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_booking_id() -> str:
    return uuid4().hex


class SqliteBookingStore:
    """Booking store backed by a local SQLite file."""

    def __init__(self, db_path: str | Path = DB_PATH, catalog: MenuCatalog = MENU_CATALOG) -> None:
        self.db_path = Path(db_path)
        self.catalog = catalog

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        return conn

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS bookings (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    client_name TEXT NOT NULL,
                    kind TEXT NOT NULL,
                    guest_count INTEGER NOT NULL,
                    start_at TEXT NOT NULL,
                    end_at TEXT,
                    status TEXT NOT NULL,
                    per_person TEXT NOT NULL,
                    total TEXT NOT NULL,
                    reason TEXT
                );

                CREATE TABLE IF NOT EXISTS booking_menu_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    booking_id TEXT NOT NULL,
                    line_index INTEGER NOT NULL,
                    item_id TEXT NOT NULL,
                    item_name TEXT NOT NULL,
                    category_id TEXT NOT NULL,
                    price TEXT NOT NULL,
                    exclusion_group TEXT,
                    FOREIGN KEY(booking_id) REFERENCES bookings(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS booking_extras (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    booking_id TEXT NOT NULL,
                    line_index INTEGER NOT NULL,
                    item_id TEXT NOT NULL,
                    item_name TEXT NOT NULL,
                    unit TEXT NOT NULL,
                    unit_price TEXT NOT NULL,
                    quantity TEXT NOT NULL,
                    FOREIGN KEY(booking_id) REFERENCES bookings(id) ON DELETE CASCADE
                );

                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_bookings_start_at
                    ON bookings(start_at);

                CREATE INDEX IF NOT EXISTS idx_booking_menu_items_booking_line
                    ON booking_menu_items(booking_id, line_index);
                """
            )

    def save_booking(self, booking: BookingRequest) -> BookingRequest:
        """Persist a new booking with its frozen menu and extras."""
        if booking.guest_count < 1:
            raise ValueError("guest_count must be at least 1")
        if booking.kind.requires_menu and not booking.selection.items:
            raise ValueError(f"{booking.kind.label} bookings need at least one menu item")

        now = _utc_now_iso()
        created_at = booking.created_at or now
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO bookings (
                        id, created_at, updated_at, client_name, kind, guest_count,
                        start_at, end_at, status, per_person, total, reason
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        booking.booking_id,
                        created_at,
                        now,
                        booking.client_name,
                        booking.kind.kind_id,
                        booking.guest_count,
                        booking.start.isoformat(),
                        booking.end.isoformat() if booking.end else None,
                        booking.status.value,
                        str(booking.per_person),
                        str(booking.total),
                        booking.reason,
                    ),
                )
                for idx, item in enumerate(booking.selection):
                    conn.execute(
                        """
                        INSERT INTO booking_menu_items (
                            booking_id, line_index, item_id, item_name, category_id, price, exclusion_group
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            booking.booking_id,
                            idx,
                            item.item_id,
                            item.name,
                            item.category_id,
                            str(item.price),
                            item.exclusion_group,
                        ),
                    )
                for idx, line in enumerate(booking.extras):
                    conn.execute(
                        """
                        INSERT INTO booking_extras (
                            booking_id, line_index, item_id, item_name, unit, unit_price, quantity
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            booking.booking_id,
                            idx,
                            line.item.item_id,
                            line.item.name,
                            line.item.unit,
                            str(line.item.unit_price),
                            str(line.quantity),
                        ),
                    )

        logger.info("booking_saved id=%s status=%s guests=%d", booking.booking_id, booking.status.value, booking.guest_count)
        return self.get_booking(booking.booking_id) or booking

    def get_booking(self, booking_id: str) -> BookingRequest | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)).fetchone()
            if row is None:
                return None
            return self._load(conn, row)

    def list_bookings(
        self,
        day: date | None = None,
        statuses: Iterable[BookingStatus] | None = None,
    ) -> list[BookingRequest]:
        """Bookings ordered by start, optionally restricted to a day and statuses."""
        clauses: list[str] = []
        params: list[str] = []
        if day is not None:
            clauses.append("substr(start_at, 1, 10) = ?")
            params.append(day.isoformat())
        if statuses is not None:
            wanted = [status.value for status in statuses]
            if not wanted:
                return []
            clauses.append(f"status IN ({', '.join('?' for _ in wanted)})")
            params.extend(wanted)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._connect() as conn:
            rows = conn.execute(f"SELECT * FROM bookings {where} ORDER BY start_at, created_at", params).fetchall()
            return [self._load(conn, row) for row in rows]

    def list_bookings_for_date(self, day: date) -> list[BookingRequest]:
        """Accepted bookings on `day`; the input to slot occupancy."""
        return self.list_bookings(day=day, statuses=[BookingStatus.ACCEPTED])

    def update_booking_status(self, booking_id: str, status: BookingStatus, reason: str | None = None) -> BookingRequest:
        """Move a booking to a new status, enforcing allowed transitions."""
        current = self.get_booking(booking_id)
        if current is None:
            raise ValueError(f"Unknown booking {booking_id}")
        if status not in _ALLOWED_TRANSITIONS[current.status]:
            raise ValueError(f"Cannot move booking from {current.status.value} to {status.value}")

        with self._connect() as conn:
            with conn:
                conn.execute(
                    "UPDATE bookings SET status = ?, reason = ?, updated_at = ? WHERE id = ?",
                    (status.value, reason, _utc_now_iso(), booking_id),
                )
        logger.info("booking_status id=%s %s->%s", booking_id, current.status.value, status.value)
        updated = self.get_booking(booking_id)
        assert updated is not None
        return updated

    def get_slot_capacities(self) -> dict[TimeSlot, int]:
        """Configured maximum guests per slot, falling back to defaults."""
        raw = dict(DEFAULT_SLOT_CAPACITIES)
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (_SLOT_CAPACITIES_KEY,)).fetchone()
        if row is not None:
            raw.update(json.loads(row["value"]))
        return {slot: int(raw[slot.value]) for slot in TimeSlot}

    def set_slot_capacity(self, slot: TimeSlot, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("capacity must not be negative")
        stored = {slot_key.value: value for slot_key, value in self.get_slot_capacities().items()}
        stored[slot.value] = capacity
        with self._connect() as conn:
            with conn:
                conn.execute(
                    """
                    INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (_SLOT_CAPACITIES_KEY, json.dumps(stored), _utc_now_iso()),
                )

    def get_menu_catalog(self) -> MenuCatalog:
        return self.catalog

    def _load(self, conn: sqlite3.Connection, row: sqlite3.Row) -> BookingRequest:
        items = tuple(
            MenuItem(
                item_id=item_row["item_id"],
                category_id=item_row["category_id"],
                name=item_row["item_name"],
                price=Decimal(item_row["price"]),
                exclusion_group=item_row["exclusion_group"],
            )
            for item_row in conn.execute(
                "SELECT * FROM booking_menu_items WHERE booking_id = ? ORDER BY line_index",
                (row["id"],),
            )
        )
        extras = tuple(
            ExtraLine(
                item=ExtraItem(
                    item_id=extra_row["item_id"],
                    name=extra_row["item_name"],
                    unit=extra_row["unit"],
                    unit_price=Decimal(extra_row["unit_price"]),
                ),
                quantity=Decimal(extra_row["quantity"]),
            )
            for extra_row in conn.execute(
                "SELECT * FROM booking_extras WHERE booking_id = ? ORDER BY line_index",
                (row["id"],),
            )
        )
        return BookingRequest(
            booking_id=row["id"],
            client_name=row["client_name"],
            kind=booking_kind(row["kind"]),
            guest_count=int(row["guest_count"]),
            start=datetime.fromisoformat(row["start_at"]),
            end=datetime.fromisoformat(row["end_at"]) if row["end_at"] else None,
            status=BookingStatus(row["status"]),
            selection=MenuSelection(items),
            per_person=Decimal(row["per_person"]),
            total=Decimal(row["total"]),
            extras=extras,
            created_at=row["created_at"],
            reason=row["reason"],
        )
