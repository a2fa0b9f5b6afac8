"""Operations the back-office screens call on booking drafts and bookings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from backoffice.data import MENU_CATALOG
from backoffice.errors import InvalidTimeInput
from backoffice.models import (
    ZERO,
    BookingDraft,
    BookingKind,
    BookingRequest,
    BookingStatus,
    ExtraItem,
    ExtraLine,
    MenuCatalog,
    MenuItem,
    MenuSelection,
    TimeSlot,
    Totals,
)
from backoffice.persistence import BookingStore, new_booking_id
from backoffice.pricing import compute_totals
from backoffice.selection import ToggleResult, apply_preset, toggle
from backoffice.slots import DEFAULT_SCHEDULE, AdmissionCheck, SlotSchedule, assign
from backoffice.slots import check_admission as _check_slot_admission

logger = logging.getLogger(__name__)


class WritableBookingStore(BookingStore, Protocol):
    def save_booking(self, booking: BookingRequest) -> BookingRequest: ...

    def get_booking(self, booking_id: str) -> BookingRequest | None: ...

    def update_booking_status(
        self, booking_id: str, status: BookingStatus, reason: str | None = None
    ) -> BookingRequest: ...


@dataclass(frozen=True)
class DraftIssue:
    """A reason a draft cannot be submitted yet."""

    field: str
    message: str


@dataclass(frozen=True)
class SubmissionResult:
    booking: BookingRequest | None
    issues: tuple[DraftIssue, ...] = ()
    admission: AdmissionCheck | None = None

    @property
    def saved(self) -> bool:
        return self.booking is not None


def open_draft(kind: BookingKind, guest_count: int = 1, start: datetime | None = None) -> BookingDraft:
    """Start an empty draft with prices already derived."""
    draft = BookingDraft(kind=kind)
    set_guest_count(draft, guest_count)
    if start is not None:
        set_start(draft, start)
    return draft


def recalculate_prices(draft: BookingDraft) -> Totals:
    draft.totals = compute_totals(draft.selection, draft.guest_count, draft.kind, draft.extras)
    return draft.totals


def toggle_menu_item(draft: BookingDraft, item: MenuItem, catalog: MenuCatalog = MENU_CATALOG) -> ToggleResult:
    """Toggle one item on the draft's menu and refresh its prices."""
    result = toggle(draft.selection, item, catalog)
    if not result.rejected:
        draft.selection = result.selection
        recalculate_prices(draft)
    return result


def apply_preset_menu(draft: BookingDraft, preset_id: str, catalog: MenuCatalog = MENU_CATALOG) -> MenuSelection:
    """Replace the draft's menu with a preset."""
    try:
        preset = catalog.preset(preset_id)
    except KeyError:
        raise ValueError(f"Unknown preset menu: {preset_id!r}") from None
    draft.selection = apply_preset(preset, catalog)
    recalculate_prices(draft)
    return draft.selection


def clear_menu(draft: BookingDraft) -> None:
    draft.selection = MenuSelection()
    recalculate_prices(draft)


def set_guest_count(draft: BookingDraft, guest_count: int) -> Totals:
    if guest_count < 1:
        raise ValueError("guest_count must be at least 1")
    draft.guest_count = guest_count
    return recalculate_prices(draft)


def set_start(
    draft: BookingDraft,
    start: datetime,
    end: datetime | None = None,
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> TimeSlot:
    """Set the draft's start (and optional end) and return its slot."""
    slot = assign(start, schedule)
    if end is not None and end <= start:
        raise ValueError("end must be after start")
    draft.start = start
    draft.end = end
    return slot


def set_extra(draft: BookingDraft, extra: ExtraItem, quantity: Decimal) -> Totals:
    """Set the quantity of a booking-level extra; zero removes it."""
    if quantity < 0:
        raise ValueError("quantity must not be negative")
    lines = [line for line in draft.extras if line.item.item_id != extra.item_id]
    if quantity > ZERO:
        lines.append(ExtraLine(item=extra, quantity=quantity))
    draft.extras = lines
    return recalculate_prices(draft)


def assign_slot(start: datetime | str, schedule: SlotSchedule = DEFAULT_SCHEDULE) -> TimeSlot:
    return assign(start, schedule)


def check_admission(
    store: BookingStore,
    day: date,
    proposed_slot: TimeSlot,
    guest_count: int,
    exclude_booking_id: str | None = None,
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> AdmissionCheck:
    """Check a proposed booking against the store's current occupancy."""
    return _check_slot_admission(
        day,
        proposed_slot,
        guest_count,
        store.list_bookings_for_date(day),
        store.get_slot_capacities(),
        schedule=schedule,
        exclude_booking_id=exclude_booking_id,
    )


def validate_draft(draft: BookingDraft, schedule: SlotSchedule = DEFAULT_SCHEDULE) -> list[DraftIssue]:
    """Everything that blocks submission, as structured issues."""
    issues: list[DraftIssue] = []
    if draft.guest_count < 1:
        issues.append(DraftIssue("guest_count", "At least one guest is required"))
    if draft.start is None:
        issues.append(DraftIssue("start", "Start time is required"))
    else:
        try:
            assign(draft.start, schedule)
        except InvalidTimeInput as exc:
            issues.append(DraftIssue("start", str(exc)))
        if draft.end is not None and draft.end <= draft.start:
            issues.append(DraftIssue("end", "End must be after start"))
    if draft.kind.requires_menu and not draft.selection.items:
        issues.append(DraftIssue("menu", f"{draft.kind.label} needs at least one menu item"))
    return issues


def freeze_draft(
    draft: BookingDraft,
    client_name: str,
    status: BookingStatus = BookingStatus.PENDING,
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> BookingRequest:
    """Turn a valid draft into an immutable booking request."""
    issues = validate_draft(draft, schedule)
    if issues:
        raise ValueError("; ".join(issue.message for issue in issues))
    if not client_name.strip():
        raise ValueError("client_name is required")
    assert draft.start is not None

    totals = recalculate_prices(draft)
    return BookingRequest(
        booking_id=new_booking_id(),
        client_name=client_name.strip(),
        kind=draft.kind,
        guest_count=draft.guest_count,
        start=draft.start,
        end=draft.end,
        status=status,
        selection=draft.selection,
        per_person=totals.per_person,
        total=totals.total,
        extras=tuple(draft.extras),
    )


def submit_draft(
    store: WritableBookingStore,
    draft: BookingDraft,
    client_name: str,
    status: BookingStatus = BookingStatus.ACCEPTED,
    override_capacity: bool = False,
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> SubmissionResult:
    """
    Validate, admission-check and save a draft.

    Accepted bookings that would overfill their slot are held back unless
    staff pass `override_capacity`. Pending requests do not occupy seats, so
    the check is only reported for them.
    """
    issues = validate_draft(draft, schedule)
    if not client_name.strip():
        issues.append(DraftIssue("client_name", "Client name is required"))
    if issues:
        return SubmissionResult(booking=None, issues=tuple(issues))

    assert draft.start is not None
    admission = check_admission(
        store,
        draft.start.date(),
        assign(draft.start, schedule),
        draft.guest_count,
        schedule=schedule,
    )
    if status is BookingStatus.ACCEPTED and not admission.allowed and not override_capacity:
        return SubmissionResult(booking=None, admission=admission)
    if not admission.allowed and override_capacity:
        logger.warning("capacity_override slot=%s projected=%d capacity=%d", admission.slot.value, admission.projected, admission.capacity)

    booking = store.save_booking(freeze_draft(draft, client_name, status=status, schedule=schedule))
    return SubmissionResult(booking=booking, admission=admission)


def accept_booking(
    store: WritableBookingStore,
    booking_id: str,
    override_capacity: bool = False,
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> SubmissionResult:
    """Accept a pending request if its slot has room (or staff override)."""
    booking = store.get_booking(booking_id)
    if booking is None:
        raise ValueError(f"Unknown booking {booking_id}")

    try:
        slot = assign(booking.start, schedule)
    except InvalidTimeInput as exc:
        return SubmissionResult(booking=None, issues=(DraftIssue("start", str(exc)),))

    admission = check_admission(
        store,
        booking.day,
        slot,
        booking.guest_count,
        exclude_booking_id=booking.booking_id,
        schedule=schedule,
    )
    if not admission.allowed and not override_capacity:
        return SubmissionResult(booking=None, admission=admission)

    accepted = store.update_booking_status(booking_id, BookingStatus.ACCEPTED)
    return SubmissionResult(booking=accepted, admission=admission)


def close_booking(
    store: WritableBookingStore, booking_id: str, status: BookingStatus, reason: str | None = None
) -> BookingRequest:
    """Reject or cancel a booking, keeping staff's reason when one was given."""
    if status not in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
        raise ValueError(f"{status.value} does not close a booking")
    reason = (reason or "").strip() or None
    return store.update_booking_status(booking_id, status, reason)
