"""Main Textual app class."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from backoffice.data import GRADUATION_RECEPTION, TABLE
from backoffice.engine import (
    accept_booking,
    check_admission,
    close_booking,
    open_draft,
    set_extra,
    set_guest_count,
    set_start,
    submit_draft,
    validate_draft,
)
from backoffice.entry_modal import EntryModal, any_printable, clock_chars, decimal_chars, digits_only
from backoffice.errors import InvalidTimeInput
from backoffice.menu_modal import MenuModal
from backoffice.models import BookingDraft, BookingKind, BookingRequest, BookingStatus, TimeSlot
from backoffice.persistence import SqliteBookingStore
from backoffice.printer import check_printer_dependencies, print_booking_ticket
from backoffice.rendering import (
    format_booking_label,
    format_kind_badge,
    format_money,
    format_selection_tags,
    format_slot_header,
    format_totals,
)
from backoffice.slots import assign, group_by_slot, occupancy, parse_clock, slot_for_booking

logger = logging.getLogger(__name__)

_TIRAMISU_ID = "tiramisu"


class BackofficeApp(App):
    """A Textual app for reviewing a day's bookings and entering new ones."""

    TITLE = "Reservation Back-office"
    SUB_TITLE = "Tables / Graduation receptions"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #day-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #draft-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #status-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #slots {
        height: 2fr;
        border: tall $surface;
        padding: 0 1;
    }

    #pending-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #draft {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    booking_selected_index = reactive(None)

    BINDINGS = [
        Binding("ctrl+s", "submit_draft", "Submit draft", priority=True),
        ("ctrl+c", "discard_draft", "Discard draft"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, store: SqliteBookingStore | None = None, day: date | None = None) -> None:
        super().__init__()
        self.store = store or SqliteBookingStore()
        self.catalog = self.store.get_menu_catalog()
        self.day = day or date.today()
        self.day_bookings: list[BookingRequest] = []
        self.draft: BookingDraft | None = None
        self.client_name = ""
        self.system_status = ""
        # Booking id (or "draft") whose next accept/submit overrides capacity.
        self._override_armed: str | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="day-pane"):
                yield Static(id="day-title", classes="pane-title")
                yield Static(id="slots")
                yield Static("Pending requests", classes="pane-title")
                yield Static(id="pending-list")
            with Vertical(id="draft-pane"):
                yield Static(id="status-bar")
                yield Static(id="draft")

    def on_mount(self) -> None:
        self.store.bootstrap_schema()
        _, msg = check_printer_dependencies()
        self.system_status = msg
        logger.info("on_mount printer_status=%r", msg)
        self._reload_day()

    def on_key(self, event: Key) -> None:
        # While a modal is active, let the modal own keyboard handling.
        if isinstance(self.screen, ModalScreen):
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        key = event.character.lower()
        handlers = {
            "h": lambda: self._shift_day(-1),
            "l": lambda: self._shift_day(1),
            "j": lambda: self._move_booking_selection(1),
            "k": lambda: self._move_booking_selection(-1),
            "a": self._accept_selected,
            "x": lambda: self._close_selected(BookingStatus.REJECTED),
            "c": lambda: self._close_selected(BookingStatus.CANCELLED),
            "p": self._print_selected,
            "t": lambda: self._start_draft(TABLE),
            "r": lambda: self._start_draft(GRADUATION_RECEPTION),
            "g": self._ask_guest_count,
            "s": self._ask_start_time,
            "n": self._ask_client_name,
            "m": self._open_menu,
            "e": self._ask_tiramisu,
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def action_submit_draft(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.draft is None:
            self._set_status("Nothing to submit (T table, R reception)")
            return

        override = self._override_armed == "draft"
        result = submit_draft(self.store, self.draft, self.client_name, override_capacity=override)
        if result.issues:
            self._set_status("; ".join(issue.message for issue in result.issues))
            return
        if not result.saved:
            assert result.admission is not None and result.admission.reason is not None
            self._override_armed = "draft"
            self._set_status(f"{result.admission.reason.message}. Ctrl+S again to override.")
            return

        assert result.booking is not None
        logger.info("draft_submitted id=%s override=%s", result.booking.booking_id, override)
        self.draft = None
        self.client_name = ""
        self._override_armed = None
        self.system_status = f"Saved {result.booking.client_name} ({result.booking.booking_id[:8]})"
        self._reload_day()

    def action_discard_draft(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        if self.draft is None:
            return
        self.draft = None
        self.client_name = ""
        self._override_armed = None
        self._set_status("Draft discarded")

    def _start_draft(self, kind: BookingKind) -> None:
        self.draft = open_draft(kind)
        self.client_name = ""
        self._override_armed = None
        self._set_status(f"New {kind.label} draft")

    def _ask_guest_count(self) -> None:
        if self.draft is None:
            return

        def validate(value: str) -> str | None:
            return None if value.isdigit() and int(value) >= 1 else "At least one guest is required."

        def done(value: str | None) -> None:
            if value is None or self.draft is None:
                return
            set_guest_count(self.draft, int(value))
            self._override_armed = None
            self._refresh_draft()

        self.push_screen(
            EntryModal("Guests", "Number of guests", digits_only, validate, str(self.draft.guest_count), 4),
            done,
        )

    def _ask_start_time(self) -> None:
        if self.draft is None:
            return

        def validate(value: str) -> str | None:
            try:
                assign(value)
            except InvalidTimeInput as exc:
                return str(exc)
            return None

        def done(value: str | None) -> None:
            if value is None or self.draft is None:
                return
            clock = parse_clock(value)
            slot = set_start(self.draft, datetime.combine(self.day, clock))
            self._override_armed = None
            self._set_status(f"Start {clock:%H:%M} ({slot.label})")

        initial = f"{self.draft.start:%H:%M}" if self.draft.start else ""
        self.push_screen(EntryModal("Start time", "HH:MM", clock_chars, validate, initial, 5), done)

    def _ask_client_name(self) -> None:
        if self.draft is None:
            return

        def done(value: str | None) -> None:
            if value is None:
                return
            self.client_name = value
            self._refresh_draft()

        self.push_screen(EntryModal("Client", "Client name", any_printable, None, self.client_name), done)

    def _ask_tiramisu(self) -> None:
        if self.draft is None:
            return
        extra = self.catalog.extra(_TIRAMISU_ID)

        def validate(value: str) -> str | None:
            try:
                quantity = Decimal(value.replace(",", "."))
            except InvalidOperation:
                return "Enter a quantity like 1.5"
            return None if quantity >= 0 else "Quantity must not be negative."

        def done(value: str | None) -> None:
            if value is None or self.draft is None:
                return
            set_extra(self.draft, extra, Decimal(value.replace(",", ".")))
            self._refresh_draft()

        prompt = f"{extra.name} ({extra.unit}, {format_money(extra.unit_price)}/{extra.unit}); 0 removes it"
        self.push_screen(EntryModal("Extra", prompt, decimal_chars, validate, "", 6), done)

    def _open_menu(self) -> None:
        if self.draft is None:
            return
        self.push_screen(MenuModal(self.draft, self.catalog, on_change=self._refresh_draft))

    def _accept_selected(self) -> None:
        booking = self._selected_booking()
        if booking is None or booking.status is not BookingStatus.PENDING:
            return

        override = self._override_armed == booking.booking_id
        result = accept_booking(self.store, booking.booking_id, override_capacity=override)
        if result.issues:
            self._set_status("; ".join(issue.message for issue in result.issues))
            return
        if not result.saved:
            assert result.admission is not None and result.admission.reason is not None
            self._override_armed = booking.booking_id
            self._set_status(f"{result.admission.reason.message}. A again to override.")
            return

        self._override_armed = None
        self.system_status = f"Accepted {booking.client_name}"
        self._reload_day()

    def _close_selected(self, status: BookingStatus) -> None:
        booking = self._selected_booking()
        if booking is None:
            return

        def done(value: str | None) -> None:
            if value is None:
                return
            try:
                close_booking(self.store, booking.booking_id, status, value)
            except ValueError as exc:
                self._set_status(str(exc))
                return
            self.system_status = f"{status.value.title()} {booking.client_name}"
            self._reload_day()

        verb = "rejecting" if status is BookingStatus.REJECTED else "cancelling"
        self.push_screen(EntryModal("Reason", f"Reason for {verb} {booking.client_name}", any_printable, None, ""), done)

    def _print_selected(self) -> None:
        booking = self._selected_booking()
        if booking is None:
            return
        try:
            print_booking_ticket(booking, self.catalog)
        except Exception as exc:
            logger.exception("print_failed id=%s", booking.booking_id)
            self._set_status(f"Print failed: {exc}")
            return
        self._set_status(f"Printed {booking.client_name}")

    def _shift_day(self, delta: int) -> None:
        self.day += timedelta(days=delta)
        self.booking_selected_index = None
        self._override_armed = None
        self._reload_day()

    def _reload_day(self) -> None:
        self.day_bookings = self.store.list_bookings(
            day=self.day, statuses=[BookingStatus.ACCEPTED, BookingStatus.PENDING]
        )
        self._refresh_all()

    def _day_rows(self) -> list[BookingRequest]:
        """Selectable bookings: accepted ones slot by slot, then pending requests."""
        grouped = group_by_slot(self.day, self.day_bookings)
        rows = [booking for slot in TimeSlot for booking in grouped[slot]]
        rows.extend(booking for booking in self.day_bookings if booking.status is BookingStatus.PENDING)
        return rows

    def _move_booking_selection(self, delta: int) -> None:
        rows = self._day_rows()
        if not rows:
            return

        if self.booking_selected_index is None:
            self.booking_selected_index = 0 if delta > 0 else len(rows) - 1
        else:
            self.booking_selected_index = (self.booking_selected_index + delta) % len(rows)
        self._refresh_day()

    def _selected_booking(self) -> BookingRequest | None:
        rows = self._day_rows()
        if self.booking_selected_index is None:
            return None
        if not (0 <= self.booking_selected_index < len(rows)):
            return None
        return rows[self.booking_selected_index]

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_status()
        self._refresh_draft()

    def _refresh_all(self) -> None:
        self._refresh_day()
        self._refresh_status()
        self._refresh_draft()

    def _refresh_day(self) -> None:
        try:
            title = self.query_one("#day-title", Static)
            slots_widget = self.query_one("#slots", Static)
            pending_widget = self.query_one("#pending-list", Static)
        except NoMatches:
            return

        title.update(f"{self.day:%A %d %B %Y}")
        rows = self._day_rows()
        if self.booking_selected_index is not None and self.booking_selected_index >= len(rows):
            self.booking_selected_index = len(rows) - 1 if rows else None
        selected = self._selected_booking()

        grouped = group_by_slot(self.day, self.day_bookings)
        occupied = occupancy(self.day, self.day_bookings, self.store.get_slot_capacities())
        lines = Text()
        for idx, slot in enumerate(TimeSlot):
            if idx > 0:
                lines.append("\n\n")
            lines.append_text(format_slot_header(occupied[slot]))
            if not grouped[slot]:
                lines.append("\n  (no bookings)", style="dim")
            for booking in grouped[slot]:
                lines.append("\n")
                lines.append("➤ " if booking == selected else "  ")
                lines.append_text(format_booking_label(booking))
        slots_widget.update(lines)

        pending = [booking for booking in self.day_bookings if booking.status is BookingStatus.PENDING]
        if not pending:
            pending_widget.update("(no pending requests)")
            return
        lines = Text()
        for idx, booking in enumerate(pending):
            if idx > 0:
                lines.append("\n")
            lines.append("➤ " if booking == selected else "  ")
            lines.append_text(format_booking_label(booking))
            slot = slot_for_booking(booking)
            lines.append(f" {slot.label if slot else 'off-hours'}", style="dim")
        pending_widget.update(lines)

    def _refresh_status(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return
        status = self.system_status or "Ready"
        bar.update(
            "H/L day, J/K select, A accept, X reject, C cancel, P print\n"
            "T/R new draft, G guests, S start, N name, M menu, E tiramisu, Ctrl+S submit\n"
            f"{status}"
        )

    def _refresh_draft(self) -> None:
        try:
            draft_widget = self.query_one("#draft", Static)
        except NoMatches:
            return
        if self.draft is None:
            draft_widget.update("No draft. Press T for a table or R for a graduation reception.")
            return

        draft = self.draft
        text = format_kind_badge(draft.kind)
        text.append(f" {draft.kind.label}\n", style="bold")
        text.append(f"Client: {self.client_name or '-'}\n")
        text.append(f"Guests: {draft.guest_count}\n")
        if draft.start is None:
            text.append("Start: -\n")
        else:
            text.append(f"Start: {draft.start:%H:%M} ({assign(draft.start).label})\n")

        text.append("\nMenu: ")
        if draft.selection.items:
            text.append_text(format_selection_tags(draft.selection))
        else:
            text.append("(none)", style="dim")
        for line in draft.extras:
            text.append(f"\n{line.item.name}: {line.quantity.normalize():f} {line.item.unit}")

        if draft.totals is not None:
            text.append("\n\n")
            text.append_text(format_totals(draft.totals, draft.guest_count))

        if draft.start is not None:
            admission = check_admission(self.store, draft.start.date(), assign(draft.start), draft.guest_count)
            text.append("\n\n")
            if admission.allowed:
                text.append(
                    f"{admission.slot.label}: {admission.projected}/{admission.capacity} after this booking",
                    style="#5fbf72",
                )
            else:
                assert admission.reason is not None
                text.append(admission.reason.message, style="bold #b23a48")

        issues = validate_draft(draft)
        if issues:
            text.append("\n")
            for issue in issues:
                text.append(f"\n• {issue.message}", style="dim")
        draft_widget.update(text)
