"""Shared fixtures: sample invoices, an in-memory store and a fake worksheet."""

from dataclasses import replace
from datetime import date, datetime

import pytest

from vqs_billing import config
from vqs_billing.models import InvoiceRecord
from vqs_billing.store import DuplicateInvoice, InvoiceNotFound, fallback_invoice_number, next_invoice_number


@pytest.fixture
def invoice_dict():
    return {
        "invoiceNumber": "INV-2026-0007",
        "date": "2026-10-19",
        "dueDate": "2026-11-03",
        "customerName": "Rahim Traders",
        "customerEmail": "rahim@example.com",
        "customerAddress": "12 Station Road, Feni",
        "customerPhone": "01711000000",
        "paymentStatus": "pending",
        "items": [
            {"srNo": 1, "productName": "Teak planks", "measurement": "CFT", "quantity": "2", "price": "50"},
            {"srNo": 2, "productName": "Nails", "measurement": "KG", "quantity": 3, "price": 120.5},
        ],
        "serviceCharge": {"type": "percentage", "value": 10},
        "vat": {"type": "fixed", "value": 15},
        "specialDiscount": 20,
        "notes": "Deliver before noon",
    }


@pytest.fixture
def record(invoice_dict):
    return InvoiceRecord.from_dict(invoice_dict)


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 10, 30, tzinfo=config.APP_TZ)


@pytest.fixture
def today():
    return date(2026, 10, 19)


class MemoryInvoiceStore:
    """Same surface as SheetInvoiceStore, kept in a dict."""

    def __init__(self, records=()):
        self.records = {r.invoice_number: r for r in records}
        self.totals = {}
        self.unavailable = False

    def list(self):
        return list(self.records.values())

    def get(self, invoice_number):
        try:
            return self.records[invoice_number]
        except KeyError:
            raise InvoiceNotFound(f"Invoice {invoice_number} not found")

    def create(self, record, totals):
        if record.invoice_number in self.records:
            raise DuplicateInvoice(f"Invoice {record.invoice_number} already exists")
        self.records[record.invoice_number] = record
        self.totals[record.invoice_number] = totals
        return record

    def update(self, invoice_number, record, totals):
        self.get(invoice_number)
        del self.records[invoice_number]
        self.records[record.invoice_number] = record
        self.totals[record.invoice_number] = totals
        return record

    def set_payment_status(self, invoice_number, status):
        rec = replace(self.get(invoice_number), payment_status=status)
        self.records[invoice_number] = rec
        return rec

    def delete(self, invoice_number):
        self.get(invoice_number)
        del self.records[invoice_number]

    def next_number(self, now=None):
        if self.unavailable:
            return fallback_invoice_number(now)
        return next_invoice_number(self.records, now)


@pytest.fixture
def memory_store(record):
    return MemoryInvoiceStore([record])


class FakeWorksheet:
    """Just enough of gspread.Worksheet for SheetInvoiceStore."""

    def __init__(self, values=None):
        self.values = [list(r) for r in (values or [])]
        self.calls = []

    def get_all_values(self):
        return [list(r) for r in self.values]

    def _set_row(self, row_num, row):
        while len(self.values) < row_num:
            self.values.append([])
        self.values[row_num - 1] = list(row)

    def update(self, range_name=None, values=None, value_input_option=None):
        self.calls.append(("update", range_name))
        row_num = int(range_name.lstrip("A"))
        self._set_row(row_num, values[0])

    def append_row(self, row, value_input_option=None):
        self.calls.append(("append_row", value_input_option))
        self.values.append(list(row))

    def update_cell(self, row, col, value):
        self.calls.append(("update_cell", row, col))
        current = self.values[row - 1]
        while len(current) < col:
            current.append("")
        current[col - 1] = value

    def delete_rows(self, index):
        self.calls.append(("delete_rows", index))
        del self.values[index - 1]


@pytest.fixture
def worksheet():
    return FakeWorksheet()
