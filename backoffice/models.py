"""Domain models for the reservation back office."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0.00")


class TimeSlot(str, Enum):
    """One of the three daily service windows."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def label(self) -> str:
        return self.value.title()


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Unbounded:
    """Any number of items may be selected."""


@dataclass(frozen=True)
class MaxCount:
    """At most `limit` items of the category may be selected."""

    limit: int


@dataclass(frozen=True)
class SingleChoice:
    """Exactly one item at a time; a new pick replaces the old one."""


@dataclass(frozen=True)
class MutualExclusion:
    """Items sharing an exclusion tag replace each other."""


CategoryRule = Unbounded | MaxCount | SingleChoice | MutualExclusion


@dataclass(frozen=True)
class MenuCategory:
    """A menu section and the rules its selections must satisfy."""

    category_id: str
    name: str
    position: int
    rules: tuple[CategoryRule, ...] = (Unbounded(),)

    @property
    def max_count(self) -> int | None:
        for rule in self.rules:
            if isinstance(rule, MaxCount):
                return rule.limit
        return None

    @property
    def single_choice(self) -> bool:
        return any(isinstance(rule, SingleChoice) for rule in self.rules)

    @property
    def has_exclusion_groups(self) -> bool:
        return any(isinstance(rule, MutualExclusion) for rule in self.rules)


@dataclass(frozen=True)
class MenuItem:
    """A priced dish or drink, priced per person."""

    item_id: str
    category_id: str
    name: str
    price: Decimal
    exclusion_group: str | None = None


@dataclass(frozen=True)
class ExtraItem:
    """A booking-level item sold by quantity rather than per person."""

    item_id: str
    name: str
    unit: str
    unit_price: Decimal


@dataclass(frozen=True)
class ExtraLine:
    item: ExtraItem
    quantity: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.item.unit_price * self.quantity


@dataclass(frozen=True)
class PresetMenu:
    """A named bundle of items staff can apply to a draft in one go."""

    preset_id: str
    label: str
    item_ids: tuple[str, ...]


@dataclass(frozen=True)
class MenuSelection:
    """An ordered set of distinct menu items attached to one booking."""

    items: tuple[MenuItem, ...] = ()

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, MenuItem):
            return False
        return any(selected.item_id == item.item_id for selected in self.items)

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def item_ids(self) -> tuple[str, ...]:
        return tuple(item.item_id for item in self.items)

    def in_category(self, category_id: str) -> list[MenuItem]:
        return [item for item in self.items if item.category_id == category_id]

    def in_exclusion_group(self, category_id: str, group: str) -> list[MenuItem]:
        return [
            item for item in self.items if item.category_id == category_id and item.exclusion_group == group
        ]

    def with_item(self, item: MenuItem) -> MenuSelection:
        if item in self:
            return self
        return MenuSelection(self.items + (item,))

    def without(self, *items: MenuItem) -> MenuSelection:
        drop = {item.item_id for item in items}
        return MenuSelection(tuple(item for item in self.items if item.item_id not in drop))


@dataclass(frozen=True)
class MenuCatalog:
    """Read-only view of categories, items, presets and extras."""

    categories: tuple[MenuCategory, ...]
    items: tuple[MenuItem, ...]
    presets: tuple[PresetMenu, ...] = ()
    extras: tuple[ExtraItem, ...] = ()

    def category(self, category_id: str) -> MenuCategory:
        for category in self.categories:
            if category.category_id == category_id:
                return category
        raise KeyError(category_id)

    def item(self, item_id: str) -> MenuItem:
        for item in self.items:
            if item.item_id == item_id:
                return item
        raise KeyError(item_id)

    def items_in(self, category_id: str) -> list[MenuItem]:
        return [item for item in self.items if item.category_id == category_id]

    def preset(self, preset_id: str) -> PresetMenu:
        for preset in self.presets:
            if preset.preset_id == preset_id:
                return preset
        raise KeyError(preset_id)

    def extra(self, item_id: str) -> ExtraItem:
        for extra in self.extras:
            if extra.item_id == item_id:
                return extra
        raise KeyError(item_id)


@dataclass(frozen=True)
class BookingKind:
    """What is being booked; decides cover charge and menu requirements."""

    kind_id: str
    label: str
    badge: str
    cover_charge: Decimal = ZERO
    requires_menu: bool = False


@dataclass(frozen=True)
class Totals:
    """Derived prices for a selection, guest count and booking kind."""

    per_person: Decimal
    total: Decimal
    base_per_person: Decimal
    cover_charge: Decimal = ZERO
    extras_total: Decimal = ZERO

    @property
    def grand_total(self) -> Decimal:
        return self.total + self.extras_total


@dataclass(frozen=True)
class SlotWindow:
    """Inclusive start/end bounds of one slot."""

    slot: TimeSlot
    start: time
    end: time


@dataclass(frozen=True)
class SlotOccupancy:
    slot: TimeSlot
    occupied: int
    capacity: int

    @property
    def available(self) -> int:
        return max(0, self.capacity - self.occupied)

    @property
    def is_full(self) -> bool:
        return self.occupied >= self.capacity


@dataclass
class BookingDraft:
    """An in-progress booking held by the caller until submission."""

    kind: BookingKind
    guest_count: int = 1
    start: datetime | None = None
    end: datetime | None = None
    selection: MenuSelection = field(default_factory=MenuSelection)
    extras: list[ExtraLine] = field(default_factory=list)
    totals: Totals | None = None


@dataclass(frozen=True)
class BookingRequest:
    """A submitted booking with its frozen selection and prices."""

    booking_id: str
    client_name: str
    kind: BookingKind
    guest_count: int
    start: datetime
    status: BookingStatus
    selection: MenuSelection
    per_person: Decimal
    total: Decimal
    end: datetime | None = None
    extras: tuple[ExtraLine, ...] = ()
    created_at: str = ""
    reason: str | None = None

    @property
    def day(self) -> date:
        return self.start.date()

    @property
    def is_active(self) -> bool:
        return self.status is BookingStatus.ACCEPTED

    @property
    def extras_total(self) -> Decimal:
        return sum((line.subtotal for line in self.extras), ZERO)
