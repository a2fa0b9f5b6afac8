"""Static menu catalog and booking kinds built from app constants."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from backoffice.constant import BOOKING_KINDS as _BOOKING_KINDS_RAW
from backoffice.constant import EXTRA_ITEMS, MENU_CATEGORIES, MENU_ITEMS, PRESET_MENUS
from backoffice.errors import CatalogError
from backoffice.models import (
    BookingKind,
    CategoryRule,
    ExtraItem,
    MaxCount,
    MenuCatalog,
    MenuCategory,
    MenuItem,
    MutualExclusion,
    PresetMenu,
    SingleChoice,
    Unbounded,
)
from backoffice.selection import apply_preset

_CENT = Decimal("0.01")


def parse_money(raw: object) -> Decimal:
    """Parse a non-negative amount with two decimals."""
    try:
        amount = Decimal(str(raw))
    except InvalidOperation as exc:
        raise CatalogError(f"Invalid amount: {raw!r}") from exc
    if amount < 0:
        raise CatalogError(f"Amount must not be negative: {raw!r}")
    return amount.quantize(_CENT)


def parse_rule(spec: object) -> CategoryRule:
    """Turn a rule spec from constant.py into a rule value."""
    if spec == "unbounded":
        return Unbounded()
    if spec == "single":
        return SingleChoice()
    if spec == "exclusive":
        return MutualExclusion()
    if isinstance(spec, (tuple, list)) and len(spec) == 2 and spec[0] == "max":
        limit = int(spec[1])
        if limit < 1:
            raise CatalogError(f"Max-count limit must be positive: {spec!r}")
        return MaxCount(limit)
    raise CatalogError(f"Unknown category rule: {spec!r}")


def _check_rule_combination(category_id: str, rules: tuple[CategoryRule, ...]) -> None:
    if not rules:
        raise CatalogError(f"Category {category_id!r} has no rule")
    if len(rules) == 1:
        return
    kinds = {type(rule) for rule in rules}
    if kinds == {MaxCount, MutualExclusion} and len(rules) == 2:
        return
    names = ", ".join(type(rule).__name__ for rule in rules)
    raise CatalogError(f"Category {category_id!r} combines incompatible rules: {names}")


def build_catalog(
    categories_raw: dict[str, dict[str, object]],
    items_raw: dict[str, dict[str, str | None]],
    presets_raw: dict[str, dict[str, object]] | None = None,
    extras_raw: dict[str, dict[str, str]] | None = None,
) -> MenuCatalog:
    """Validate raw catalog data and wrap it into a MenuCatalog."""
    categories: list[MenuCategory] = []
    for category_id, meta in categories_raw.items():
        rules = tuple(parse_rule(spec) for spec in meta.get("rules", ["unbounded"]))  # type: ignore[union-attr]
        _check_rule_combination(category_id, rules)
        categories.append(
            MenuCategory(
                category_id=category_id,
                name=str(meta["name"]),
                position=int(meta.get("position", len(categories) + 1)),  # type: ignore[arg-type]
                rules=rules,
            )
        )
    categories.sort(key=lambda category: category.position)
    by_id = {category.category_id: category for category in categories}

    items: list[MenuItem] = []
    for item_id, meta in items_raw.items():
        category = by_id.get(str(meta["category"]))
        if category is None:
            raise CatalogError(f"Item {item_id!r} references unknown category {meta['category']!r}")
        group = meta.get("group")
        if group and not category.has_exclusion_groups:
            raise CatalogError(
                f"Item {item_id!r} has exclusion group {group!r} but {category.name} has no exclusion rule"
            )
        items.append(
            MenuItem(
                item_id=item_id,
                category_id=category.category_id,
                name=str(meta["name"]),
                price=parse_money(meta["price"]),
                exclusion_group=group or None,
            )
        )
    known_items = {item.item_id for item in items}

    presets: list[PresetMenu] = []
    for preset_id, meta in (presets_raw or {}).items():
        item_ids = tuple(str(item_id) for item_id in meta["items"])  # type: ignore[union-attr]
        missing = [item_id for item_id in item_ids if item_id not in known_items]
        if missing:
            raise CatalogError(f"Preset {preset_id!r} references unknown items: {', '.join(missing)}")
        presets.append(PresetMenu(preset_id=preset_id, label=str(meta["label"]), item_ids=item_ids))

    extras = [
        ExtraItem(item_id=item_id, name=meta["name"], unit=meta["unit"], unit_price=parse_money(meta["unit_price"]))
        for item_id, meta in (extras_raw or {}).items()
    ]

    catalog = MenuCatalog(
        categories=tuple(categories),
        items=tuple(items),
        presets=tuple(presets),
        extras=tuple(extras),
    )
    # Presets must be reachable through the toggle rules.
    for preset in catalog.presets:
        apply_preset(preset, catalog)
    return catalog


MENU_CATALOG = build_catalog(MENU_CATEGORIES, MENU_ITEMS, PRESET_MENUS, EXTRA_ITEMS)

BOOKING_KINDS: dict[str, BookingKind] = {
    kind_id: BookingKind(
        kind_id=kind_id,
        label=str(meta["label"]),
        badge=str(meta["badge"]),
        cover_charge=parse_money(meta["cover_charge"]),
        requires_menu=bool(meta["requires_menu"]),
    )
    for kind_id, meta in _BOOKING_KINDS_RAW.items()
}

TABLE = BOOKING_KINDS["table"]
GRADUATION_RECEPTION = BOOKING_KINDS["graduation_reception"]


def booking_kind(kind_id: str) -> BookingKind:
    """Look up a booking kind by id."""
    try:
        return BOOKING_KINDS[kind_id]
    except KeyError:
        raise CatalogError(f"Unknown booking kind: {kind_id!r}") from None
