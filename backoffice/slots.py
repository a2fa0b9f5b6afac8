"""Service slot assignment and per-slot occupancy.

A booking belongs to the slot its start time falls in, and only that slot.
The same assignment drives both the day view grouping and the capacity
tally, so a booking is never shown under one slot and counted in another.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Mapping

from backoffice.config import SLOT_WINDOWS
from backoffice.errors import CapacityExceeded, InvalidTimeInput
from backoffice.models import BookingRequest, SlotOccupancy, SlotWindow, TimeSlot

logger = logging.getLogger(__name__)

_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2})?")
# Time part of an ISO string: optional seconds, fraction and UTC offset.
_ISO_TIME_RE = re.compile(r"(\d{2}):(\d{2})(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _fmt(value: time) -> str:
    return value.strftime("%H:%M")


def parse_clock(raw: str) -> time:
    """Parse "HH:MM" (or the time part of an ISO string) without timezone conversion."""
    raw = raw.strip()
    if "T" in raw:
        day_part, time_part = raw.split("T", 1)
        match = _ISO_TIME_RE.fullmatch(time_part) if _ISO_DATE_RE.fullmatch(day_part) else None
    else:
        match = _CLOCK_RE.fullmatch(raw)
    if match is None:
        raise ValueError(f"No HH:MM time in {raw!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid clock time {raw!r}")
    return time(hour, minute)


@dataclass(frozen=True)
class SlotSchedule:
    """The three slot windows of a service day."""

    windows: tuple[SlotWindow, ...]

    def __post_init__(self) -> None:
        slots = [window.slot for window in self.windows]
        if slots != list(TimeSlot):
            raise ValueError("Schedule needs exactly one window per slot, in day order")
        for window in self.windows:
            if window.start > window.end:
                raise ValueError(f"{window.slot.label} window starts after it ends")
        for previous, current in zip(self.windows, self.windows[1:]):
            if _minutes(current.start) != _minutes(previous.end) + 1:
                raise ValueError(
                    f"{previous.slot.label} and {current.slot.label} windows must be contiguous "
                    f"({_fmt(previous.end)} -> {_fmt(current.start)})"
                )

    @classmethod
    def from_config(cls, raw: Mapping[str, tuple[str, str]]) -> SlotSchedule:
        windows = [
            SlotWindow(slot=TimeSlot(slot_id), start=parse_clock(start), end=parse_clock(end))
            for slot_id, (start, end) in raw.items()
        ]
        windows.sort(key=lambda window: list(TimeSlot).index(window.slot))
        return cls(tuple(windows))

    @property
    def earliest(self) -> time:
        return self.windows[0].start

    @property
    def latest(self) -> time:
        return self.windows[-1].end

    def window(self, slot: TimeSlot) -> SlotWindow:
        for window in self.windows:
            if window.slot is slot:
                return window
        raise KeyError(slot)


DEFAULT_SCHEDULE = SlotSchedule.from_config(SLOT_WINDOWS)


def parse_start_time(value: time | datetime | str, schedule: SlotSchedule = DEFAULT_SCHEDULE) -> time:
    """Normalize a start time to minute precision."""
    if isinstance(value, datetime):
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, str):
        try:
            return parse_clock(value)
        except ValueError:
            raise InvalidTimeInput(value, _fmt(schedule.earliest), _fmt(schedule.latest)) from None
    raise InvalidTimeInput(value, _fmt(schedule.earliest), _fmt(schedule.latest))


def assign(start: time | datetime | str, schedule: SlotSchedule = DEFAULT_SCHEDULE) -> TimeSlot:
    """Return the slot a booking starting at `start` belongs to."""
    minutes = _minutes(parse_start_time(start, schedule))
    for window in schedule.windows:
        if _minutes(window.start) <= minutes <= _minutes(window.end):
            return window.slot
    raise InvalidTimeInput(start, _fmt(schedule.earliest), _fmt(schedule.latest))


def slot_for_booking(booking: BookingRequest, schedule: SlotSchedule = DEFAULT_SCHEDULE) -> TimeSlot | None:
    """Slot of a stored booking, or None when its start is out of service hours."""
    try:
        return assign(booking.start, schedule)
    except InvalidTimeInput:
        logger.warning("booking_outside_service_hours id=%s start=%s", booking.booking_id, booking.start)
        return None


def group_by_slot(
    day: date,
    bookings: Iterable[BookingRequest],
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> dict[TimeSlot, list[BookingRequest]]:
    """Group the day's active bookings under the slot they are displayed in."""
    grouped: dict[TimeSlot, list[BookingRequest]] = {slot: [] for slot in TimeSlot}
    for booking in bookings:
        if not booking.is_active or booking.day != day:
            continue
        slot = slot_for_booking(booking, schedule)
        if slot is None:
            continue
        grouped[slot].append(booking)
    for members in grouped.values():
        members.sort(key=lambda booking: booking.start)
    return grouped


def occupancy(
    day: date,
    bookings: Iterable[BookingRequest],
    capacities: Mapping[TimeSlot, int],
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
) -> dict[TimeSlot, SlotOccupancy]:
    """Seats taken and configured capacity for each slot of `day`."""
    missing = [slot.value for slot in TimeSlot if slot not in capacities]
    if missing:
        raise ValueError(f"No capacity configured for: {', '.join(missing)}")

    grouped = group_by_slot(day, bookings, schedule)
    return {
        slot: SlotOccupancy(
            slot=slot,
            occupied=sum(booking.guest_count for booking in grouped[slot]),
            capacity=capacities[slot],
        )
        for slot in TimeSlot
    }


@dataclass(frozen=True)
class AdmissionCheck:
    """Advisory result of checking a new booking against slot capacity."""

    allowed: bool
    slot: TimeSlot
    occupied: int
    capacity: int
    requested: int
    reason: CapacityExceeded | None = None

    @property
    def projected(self) -> int:
        return self.occupied + self.requested


def check_admission(
    day: date,
    slot: TimeSlot,
    guest_count: int,
    bookings: Iterable[BookingRequest],
    capacities: Mapping[TimeSlot, int],
    schedule: SlotSchedule = DEFAULT_SCHEDULE,
    exclude_booking_id: str | None = None,
) -> AdmissionCheck:
    """
    Check whether `guest_count` more guests fit in `slot` on `day`.

    `exclude_booking_id` leaves a booking out of the tally, so re-checking a
    booking that is being edited or accepted does not count it twice.
    """
    if guest_count < 1:
        raise ValueError("guest_count must be at least 1")

    pool = [booking for booking in bookings if booking.booking_id != exclude_booking_id]
    current = occupancy(day, pool, capacities, schedule)[slot]
    projected = current.occupied + guest_count
    if projected <= current.capacity:
        return AdmissionCheck(
            allowed=True,
            slot=slot,
            occupied=current.occupied,
            capacity=current.capacity,
            requested=guest_count,
        )

    logger.info(
        "admission_over_capacity day=%s slot=%s occupied=%d requested=%d capacity=%d",
        day.isoformat(),
        slot.value,
        current.occupied,
        guest_count,
        current.capacity,
    )
    return AdmissionCheck(
        allowed=False,
        slot=slot,
        occupied=current.occupied,
        capacity=current.capacity,
        requested=guest_count,
        reason=CapacityExceeded(
            slot_label=slot.label,
            occupied=current.occupied,
            capacity=current.capacity,
            requested=guest_count,
        ),
    )
