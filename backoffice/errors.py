"""Rejections and errors raised or returned by the booking engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleViolation:
    """A category count cap was reached; nothing was changed."""

    category_id: str
    category_name: str
    limit: int

    @property
    def message(self) -> str:
        return f"You can choose at most {self.limit} from {self.category_name}"


@dataclass(frozen=True)
class CapacityExceeded:
    """Advisory: admitting the booking would overfill the slot."""

    slot_label: str
    occupied: int
    capacity: int
    requested: int

    @property
    def message(self) -> str:
        available = max(0, self.capacity - self.occupied)
        return (
            f"{self.slot_label} slot: {available} seats available of {self.capacity} "
            f"(requested: {self.requested})"
        )


class InvalidTimeInput(ValueError):
    """A start time is unparseable or outside the serviceable range."""

    def __init__(self, value: object, earliest: str, latest: str) -> None:
        self.value = value
        self.earliest = earliest
        self.latest = latest
        super().__init__(f"Start time {value!r} is outside service hours {earliest}-{latest}")


class CatalogError(ValueError):
    """The menu catalog data is inconsistent."""


class UnknownMenuItem(KeyError):
    """A referenced menu item or category is not in the catalog."""
