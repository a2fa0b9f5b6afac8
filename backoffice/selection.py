"""Menu selection rules: toggling items under per-category constraints."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from backoffice.errors import CatalogError, RuleViolation, UnknownMenuItem
from backoffice.models import (
    MaxCount,
    MenuCatalog,
    MenuCategory,
    MenuItem,
    MenuSelection,
    MutualExclusion,
    PresetMenu,
    SingleChoice,
    Unbounded,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    """Outcome of one toggle: the new selection plus what happened to it."""

    selection: MenuSelection
    rejected: bool = False
    reason: RuleViolation | None = None
    added: MenuItem | None = None
    removed: MenuItem | None = None
    deselected: tuple[MenuItem, ...] = ()


def category_for(item: MenuItem, catalog: MenuCatalog) -> MenuCategory:
    """Resolve the category governing an item."""
    try:
        return catalog.category(item.category_id)
    except KeyError:
        raise UnknownMenuItem(f"{item.item_id}: unknown category {item.category_id!r}") from None


def _displaced_by(selection: MenuSelection, item: MenuItem, category: MenuCategory) -> list[MenuItem]:
    """Items that must leave the selection for `item` to come in."""
    displaced: list[MenuItem] = []
    for rule in category.rules:
        if isinstance(rule, SingleChoice):
            displaced.extend(selection.in_category(category.category_id))
        elif isinstance(rule, MutualExclusion):
            if item.exclusion_group:
                displaced.extend(selection.in_exclusion_group(category.category_id, item.exclusion_group))
        elif isinstance(rule, (MaxCount, Unbounded)):
            continue
        else:
            raise CatalogError(f"Unsupported rule {rule!r} on {category.category_id}")

    unique: dict[str, MenuItem] = {}
    for candidate in displaced:
        unique.setdefault(candidate.item_id, candidate)
    return list(unique.values())


def toggle(selection: MenuSelection, item: MenuItem, catalog: MenuCatalog) -> ToggleResult:
    """
    Add or remove `item`, keeping every category rule satisfied.

    Removal is always allowed. Additions first drop whatever the item replaces
    (single-choice categories, same exclusion group), then check the count cap
    against what is left. A capped category that is still full rejects the
    toggle and returns the selection untouched.
    """
    category = category_for(item, catalog)

    if item in selection:
        return ToggleResult(selection=selection.without(item), removed=item)

    displaced = _displaced_by(selection, item, category)
    remaining = selection.without(*displaced)

    limit = category.max_count
    if limit is not None and len(remaining.in_category(category.category_id)) >= limit:
        violation = RuleViolation(category_id=category.category_id, category_name=category.name, limit=limit)
        logger.info("toggle_rejected item=%s category=%s limit=%d", item.item_id, category.category_id, limit)
        return ToggleResult(selection=selection, rejected=True, reason=violation)

    if displaced:
        logger.debug(
            "toggle_substituted item=%s deselected=%s",
            item.item_id,
            ",".join(old.item_id for old in displaced),
        )
    return ToggleResult(selection=remaining.with_item(item), added=item, deselected=tuple(displaced))


def validate_selection(selection: MenuSelection, catalog: MenuCatalog) -> list[str]:
    """List every rule a selection breaks; empty when it is valid."""
    problems: list[str] = []
    seen: set[str] = set()
    for item in selection:
        if item.item_id in seen:
            problems.append(f"{item.name} selected more than once")
        seen.add(item.item_id)

    for category in catalog.categories:
        chosen = selection.in_category(category.category_id)
        if category.single_choice and len(chosen) > 1:
            problems.append(f"{category.name}: only one item may be selected")
        limit = category.max_count
        if limit is not None and len(chosen) > limit:
            problems.append(f"{category.name}: {len(chosen)} selected, limit is {limit}")
        if category.has_exclusion_groups:
            groups: dict[str, int] = {}
            for item in chosen:
                if item.exclusion_group:
                    groups[item.exclusion_group] = groups.get(item.exclusion_group, 0) + 1
            for group, count in groups.items():
                if count > 1:
                    problems.append(f"{category.name}: {count} items from exclusive group {group!r}")

    known = {category.category_id for category in catalog.categories}
    for item in selection:
        if item.category_id not in known:
            problems.append(f"{item.name}: unknown category {item.category_id!r}")
    return problems


def apply_preset(preset: PresetMenu, catalog: MenuCatalog) -> MenuSelection:
    """Build a fresh selection from a preset menu through the toggle rules."""
    selection = MenuSelection()
    for item_id in preset.item_ids:
        try:
            item = catalog.item(item_id)
        except KeyError:
            raise UnknownMenuItem(item_id) from None
        result = toggle(selection, item, catalog)
        if result.rejected or result.deselected or result.removed:
            raise CatalogError(f"Preset {preset.preset_id!r} breaks the menu rules at {item_id!r}")
        selection = result.selection
    return selection
