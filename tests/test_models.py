"""Unit tests for the invoice record types."""

from dataclasses import replace
from datetime import date

from vqs_billing.models import ChargeSpec, InvoiceRecord, LineItem, TotalsResult, parse_date


def test_from_dict_reads_client_keys(record):
    assert record.invoice_number == "INV-2026-0007"
    assert record.issue_date == date(2026, 10, 19)
    assert record.due_date == date(2026, 11, 3)
    assert record.customer_phone == "01711000000"
    assert record.service_charge == ChargeSpec("percentage", 10.0)
    assert record.vat.kind == "fixed"
    assert record.special_discount == 20.0
    assert [it.product_description for it in record.items] == ["Teak planks", "Nails"]
    assert record.items[0].quantity == 2.0


def test_from_dict_accepts_snake_case():
    rec = InvoiceRecord.from_dict({
        "invoice_number": "INV-2026-0001",
        "customer_name": "Karim",
        "items": [{"product_description": "Tiles", "unit_of_measure": "sft", "qty": 10, "unit_price": 45}],
        "service_charge": 30,
    })

    assert rec.customer_name == "Karim"
    assert rec.items[0].unit_of_measure == "SFT"
    assert rec.items[0].line_total == 450
    assert rec.service_charge == ChargeSpec("fixed", 30.0)


def test_line_total_is_never_taken_from_input():
    item = LineItem.from_dict({"quantity": 2, "price": 50, "total": 9999})

    assert item.line_total == 100


def test_line_total_follows_replace():
    item = LineItem(1, "Planks", "CFT", 2, 50)

    assert replace(item, quantity=3).line_total == 150


def test_missing_sequence_numbers_use_position():
    rec = InvoiceRecord.from_dict({"items": [{"productName": "a"}, {"productName": "b"}]})

    assert [it.sequence_number for it in rec.items] == [1, 2]


def test_charge_spec_amounts():
    assert ChargeSpec("percentage", 15).amount_for(200) == 30
    assert ChargeSpec("fixed", 15).amount_for(200) == 15
    assert ChargeSpec("percentage", 15).with_amount(200).computed_amount == 30


def test_to_dict_round_trips_the_client_shape(record):
    data = record.to_dict()

    assert data["date"] == "2026-10-19"
    assert data["items"][1] == {
        "srNo": 2, "productName": "Nails", "measurement": "KG", "quantity": 3.0, "price": 120.5, "total": 361.5,
    }
    assert InvoiceRecord.from_dict(data) == record


def test_totals_from_dict_tolerates_junk():
    totals = TotalsResult.from_dict({"subtotal": "100", "grandTotal": "x", "net_total": 90})

    assert totals.subtotal == 100
    assert totals.grand_total == 0
    assert totals.net_total == 90


def test_parse_date_formats():
    assert parse_date("2026-10-19T00:00:00.000Z") == date(2026, 10, 19)
    assert parse_date("19/10/2026") == date(2026, 10, 19)
    assert parse_date("not a date") is None
    assert parse_date("") is None
