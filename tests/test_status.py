"""Unit tests for display status derivation."""

from datetime import date, datetime, timedelta, timezone

from vqs_billing import config
from vqs_billing.models import InvoiceRecord
from vqs_billing.status import (
    DUE_SOON, OVERDUE, PAID, PENDING,
    days_until_due, derive_status, status_summary, toggle_payment_status,
)


def test_paid_wins_over_any_due_date(today):
    assert derive_status("paid", today - timedelta(days=400), today) == PAID
    assert derive_status("paid", None, today) == PAID


def test_yesterday_is_overdue(today):
    assert derive_status("pending", today - timedelta(days=1), today) == OVERDUE


def test_due_today_is_not_overdue(today):
    assert derive_status("pending", today, today) == DUE_SOON


def test_due_within_three_days(today):
    assert derive_status("pending", today + timedelta(days=2), today) == DUE_SOON
    assert derive_status("pending", today + timedelta(days=3), today) == DUE_SOON
    assert derive_status("pending", today + timedelta(days=4), today) == PENDING


def test_falls_back_to_stored_status(today):
    assert derive_status("overdue", today + timedelta(days=10), today) == OVERDUE
    assert derive_status("", today + timedelta(days=10), today) == PENDING
    assert derive_status(None, None, today) == PENDING


def test_window_is_configurable(today, monkeypatch):
    monkeypatch.setattr(config, "DUE_SOON_DAYS", 7)

    assert derive_status("pending", today + timedelta(days=6), today) == DUE_SOON


def test_days_until_due_accepts_strings_and_datetimes(today):
    assert days_until_due("2026-10-21", today) == 2
    assert days_until_due("2026-10-18T00:00:00.000Z", today) == -1
    assert days_until_due(None, today) is None
    assert days_until_due(date(2026, 10, 20), datetime(2026, 10, 19, 23, 0)) == 1


def test_aware_now_uses_app_timezone():
    # 20:00 UTC on the 19th is already the 20th in Dhaka (UTC+6)
    now = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)

    assert days_until_due(date(2026, 10, 20), now) == 0


def test_summary_counts(today):
    records = [
        InvoiceRecord.from_dict({"invoiceNumber": "A", "paymentStatus": "paid", "dueDate": "2026-01-01"}),
        InvoiceRecord.from_dict({"invoiceNumber": "B", "dueDate": "2026-10-01"}),
        InvoiceRecord.from_dict({"invoiceNumber": "C", "dueDate": "2026-10-20"}),
        InvoiceRecord.from_dict({"invoiceNumber": "D", "dueDate": "2026-12-01"}),
    ]

    counts = status_summary(records, today)

    assert counts == {PAID: 1, OVERDUE: 1, DUE_SOON: 1, PENDING: 1, "total": 4}


def test_toggle():
    assert toggle_payment_status("paid") == "pending"
    assert toggle_payment_status("pending") == "paid"
    assert toggle_payment_status("overdue") == "paid"
