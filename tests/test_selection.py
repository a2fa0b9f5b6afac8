from __future__ import annotations

from decimal import Decimal

import pytest

from backoffice.errors import CatalogError, UnknownMenuItem
from backoffice.models import MenuItem, MenuSelection, PresetMenu
from backoffice.selection import apply_preset, toggle, validate_selection


def pick(selection, catalog, *item_ids):
    for item_id in item_ids:
        result = toggle(selection, catalog.item(item_id), catalog)
        assert not result.rejected
        selection = result.selection
    return selection


def test_single_choice_replaces_previous_pick(catalog):
    selection = pick(MenuSelection(), catalog, "cannelloni")
    result = toggle(selection, catalog.item("lasagne_ragu"), catalog)

    assert result.selection.item_ids == ("lasagne_ragu",)
    assert [item.item_id for item in result.deselected] == ["cannelloni"]


def test_exclusive_carafes_replace_each_other_both_ways(catalog):
    standard = pick(MenuSelection(), catalog, "caraffe_drink")
    premium = toggle(standard, catalog.item("caraffe_premium"), catalog).selection
    assert premium.item_ids == ("caraffe_premium",)

    back = toggle(premium, catalog.item("caraffe_drink"), catalog).selection
    assert back.item_ids == ("caraffe_drink",)


def test_exclusion_keeps_items_outside_the_group(catalog):
    selection = pick(MenuSelection(), catalog, "caffe", "caraffe_drink")
    result = toggle(selection, catalog.item("caraffe_premium"), catalog)

    assert set(result.selection.item_ids) == {"caffe", "caraffe_premium"}


def test_fourth_item_in_capped_category_is_rejected(catalog):
    selection = pick(MenuSelection(), catalog, "olive_ascolana", "anelli_cipolla", "patatine_fritte")
    result = toggle(selection, catalog.item("scamorzine"), catalog)

    assert result.rejected
    assert result.selection is selection
    assert result.reason is not None
    assert result.reason.limit == 3
    assert result.reason.message == "You can choose at most 3 from Fritti"


def test_deselect_then_add_in_full_category(catalog):
    selection = pick(MenuSelection(), catalog, "olive_ascolana", "anelli_cipolla", "patatine_fritte")
    removed = toggle(selection, catalog.item("anelli_cipolla"), catalog)
    assert removed.removed == catalog.item("anelli_cipolla")

    added = toggle(removed.selection, catalog.item("scamorzine"), catalog)
    assert not added.rejected
    assert set(added.selection.item_ids) == {"olive_ascolana", "patatine_fritte", "scamorzine"}


def test_exclusion_substitution_runs_before_the_cap(catalog):
    selection = pick(MenuSelection(), catalog, "pizza_margherita", "farinata", "panelle")
    result = toggle(selection, catalog.item("focaccia_rosmarino"), catalog)

    assert not result.rejected
    assert set(result.selection.item_ids) == {"focaccia_rosmarino", "farinata", "panelle"}


def test_full_capped_category_rejects_item_outside_group(catalog):
    selection = pick(MenuSelection(), catalog, "pizza_margherita", "farinata", "panelle")
    result = toggle(selection, catalog.item("camembert"), catalog)

    assert result.rejected


def test_removal_is_always_allowed(catalog):
    selection = pick(MenuSelection(), catalog, "cannelloni")
    result = toggle(selection, catalog.item("cannelloni"), catalog)

    assert len(result.selection) == 0
    assert not result.rejected


def test_item_with_unknown_category_raises(catalog):
    stray = MenuItem(item_id="ghost", category_id="nope", name="Ghost", price=Decimal("1.00"))
    with pytest.raises(UnknownMenuItem):
        toggle(MenuSelection(), stray, catalog)


def test_validate_selection_reports_broken_rules(catalog):
    broken = MenuSelection(
        (
            catalog.item("cannelloni"),
            catalog.item("lasagne_ragu"),
            catalog.item("caraffe_drink"),
            catalog.item("caraffe_premium"),
        )
    )
    problems = validate_selection(broken, catalog)

    assert any("Primi Piatti" in problem for problem in problems)
    assert any("caraffe" in problem for problem in problems)
    assert validate_selection(pick(MenuSelection(), catalog, "cannelloni"), catalog) == []


@pytest.mark.parametrize("preset_id", ["menu_1", "menu_2", "menu_3", "menu_4"])
def test_presets_satisfy_the_rules(catalog, preset_id):
    preset = catalog.preset(preset_id)
    selection = apply_preset(preset, catalog)

    assert selection.item_ids == preset.item_ids
    assert validate_selection(selection, catalog) == []


def test_preset_breaking_rules_raises(catalog):
    preset = PresetMenu("bad", "Bad", ("cannelloni", "lasagne_ragu"))
    with pytest.raises(CatalogError):
        apply_preset(preset, catalog)
