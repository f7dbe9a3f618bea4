"""Unit tests for the totals calculator."""

import random

import pytest

from vqs_billing import config
from vqs_billing.models import ChargeSpec, LineItem
from vqs_billing.totals import charge_amount, compute_totals, totals_for_record

NO_CHARGE = {"type": "fixed", "value": 0}


def test_percentage_service_charge():
    totals = compute_totals([{"qty": 2, "price": 50}], {"type": "percentage", "value": 10}, NO_CHARGE, 0)

    assert totals.subtotal == 100
    assert totals.service_charge_amount == 10
    assert totals.grand_total == 110
    assert totals.net_total == 110


def test_fixed_service_charge_ignores_subtotal():
    small = compute_totals([{"qty": 2, "price": 50}], {"type": "fixed", "value": 25}, NO_CHARGE, 0)
    large = compute_totals([{"qty": 200, "price": 50}], {"type": "fixed", "value": 25}, NO_CHARGE, 0)

    assert small.service_charge_amount == 25
    assert large.service_charge_amount == 25


def test_vat_follows_the_same_rules():
    totals = compute_totals([{"qty": 4, "price": 25}], NO_CHARGE, {"type": "percentage", "value": 7.5}, 0)

    assert totals.vat_amount == pytest.approx(7.5)
    assert totals.grand_total == pytest.approx(107.5)


def test_string_and_junk_numbers_coerce_to_zero():
    items = [
        {"quantity": "3", "price": "10.50"},
        {"quantity": "abc", "price": 99},
        {"quantity": None, "price": ""},
        {"quantity": 1, "price": float("nan")},
    ]
    totals = compute_totals(items, {"type": "percentage", "value": "x"}, {"type": "fixed", "value": None}, "oops")

    assert totals.subtotal == pytest.approx(31.5)
    assert totals.service_charge_amount == 0
    assert totals.vat_amount == 0
    assert totals.special_discount == 0
    assert totals.net_total == pytest.approx(31.5)


def test_discount_larger_than_grand_total_goes_negative():
    totals = compute_totals([{"qty": 1, "price": 100}], NO_CHARGE, NO_CHARGE, 150)

    assert totals.net_total == -50


def test_net_floor_is_opt_in():
    totals = compute_totals([{"qty": 1, "price": 100}], NO_CHARGE, NO_CHARGE, 150, net_floor=0)

    assert totals.net_total == 0


def test_negative_discount_is_ignored():
    totals = compute_totals([{"qty": 1, "price": 100}], NO_CHARGE, NO_CHARGE, -30)

    assert totals.special_discount == 0
    assert totals.net_total == 100


def test_negative_price_propagates():
    totals = compute_totals([{"qty": 2, "price": -5}], NO_CHARGE, NO_CHARGE, 0)

    assert totals.subtotal == -10
    assert totals.net_total == -10


def test_empty_items_give_zero_subtotal():
    totals = compute_totals([], {"type": "fixed", "value": 5}, None, 0)

    assert totals.subtotal == 0
    assert totals.grand_total == 5


def test_accepts_line_items_and_charge_specs():
    items = [LineItem(1, "Planks", "CFT", 2, 50), LineItem(2, "Nails", "KG", 3, 120.5)]
    totals = compute_totals(items, ChargeSpec("percentage", 10), ChargeSpec("fixed", 15), 20)

    assert totals.subtotal == pytest.approx(461.5)
    assert totals.service_charge_amount == pytest.approx(46.15)
    assert totals.grand_total == pytest.approx(522.65)
    assert totals.net_total == pytest.approx(502.65)


def test_unknown_charge_kind_is_flat():
    assert charge_amount({"type": "weird", "value": 12}, 1000) == 12


def test_identities_hold_for_random_inputs():
    rng = random.Random(42)
    for _ in range(200):
        items = [{"qty": rng.uniform(0, 50), "price": rng.uniform(0, 5000)} for _ in range(rng.randint(1, 8))]
        sc = {"type": rng.choice(["fixed", "percentage"]), "value": rng.uniform(0, 30)}
        vat = {"type": rng.choice(["fixed", "percentage"]), "value": rng.uniform(0, 30)}
        discount = rng.uniform(0, 1000)

        totals = compute_totals(items, sc, vat, discount)

        assert totals.subtotal == pytest.approx(sum(i["qty"] * i["price"] for i in items), abs=1e-9)
        assert totals.grand_total == pytest.approx(
            totals.subtotal + totals.service_charge_amount + totals.vat_amount, abs=1e-9)
        assert totals.net_total == pytest.approx(totals.grand_total - totals.special_discount, abs=1e-9)


def test_same_inputs_same_output():
    args = ([{"qty": 3, "price": 33.33}], {"type": "percentage", "value": 12.5}, {"type": "fixed", "value": 7}, 4)

    assert compute_totals(*args) == compute_totals(*args)


def test_totals_for_record_applies_configured_floor(record, monkeypatch):
    monkeypatch.setattr(config, "NET_TOTAL_FLOOR", None)
    assert totals_for_record(record).net_total == pytest.approx(502.65)

    monkeypatch.setattr(config, "NET_TOTAL_FLOOR", 600.0)
    assert totals_for_record(record).net_total == 600.0
