from __future__ import annotations

from decimal import Decimal

import pytest

from backoffice.data import GRADUATION_RECEPTION, TABLE
from backoffice.models import ExtraLine, MenuSelection
from backoffice.pricing import compute_extras_total, compute_totals, to_cents


def test_reception_price_includes_cover_charge(catalog):
    selection = MenuSelection((catalog.item("caraffe_drink"), catalog.item("cotoletta")))
    totals = compute_totals(selection, 20, GRADUATION_RECEPTION)

    assert totals.base_per_person == Decimal("13.00")
    assert totals.cover_charge == Decimal("2.00")
    assert totals.per_person == Decimal("15.00")
    assert totals.total == Decimal("300.00")


def test_table_has_no_cover_charge(catalog):
    selection = MenuSelection((catalog.item("caraffe_drink"), catalog.item("cotoletta")))
    totals = compute_totals(selection, 4, TABLE)

    assert totals.per_person == Decimal("13.00")
    assert totals.total == Decimal("52.00")


def test_total_is_linear_in_guest_count(catalog):
    selection = MenuSelection((catalog.item("pizza_rossa"), catalog.item("cannoli")))
    one = compute_totals(selection, 1, GRADUATION_RECEPTION)
    for guests in (2, 7, 33):
        assert compute_totals(selection, guests, GRADUATION_RECEPTION).total == one.per_person * guests


def test_empty_selection():
    assert compute_totals(MenuSelection(), 10, TABLE).total == Decimal("0.00")
    reception = compute_totals(MenuSelection(), 10, GRADUATION_RECEPTION)
    assert reception.per_person == Decimal("2.00")
    assert reception.total == Decimal("0.00")
    assert reception.grand_total == Decimal("0.00")


def test_negative_guest_count_is_refused():
    with pytest.raises(ValueError):
        compute_totals(MenuSelection(), -1, TABLE)


def test_extras_only_reach_grand_total(catalog):
    tiramisu = catalog.extra("tiramisu")
    extras = [ExtraLine(item=tiramisu, quantity=Decimal("1.5"))]
    selection = MenuSelection((catalog.item("caraffe_drink"),))
    totals = compute_totals(selection, 10, TABLE, extras)

    assert totals.total == Decimal("50.00")
    assert totals.extras_total == Decimal("37.50")
    assert totals.grand_total == Decimal("87.50")
    assert compute_extras_total(extras) == Decimal("37.50")


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("1.005")) == Decimal("1.01")
    assert to_cents(Decimal("2.994")) == Decimal("2.99")
