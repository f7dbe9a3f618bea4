# Display status: derived on every read from payment status + due date, never stored.
#
# Day boundary: calendar dates in APP_TZ. An invoice due today is not overdue;
# it becomes overdue once today's date is past the due date.

from datetime import date, datetime

from . import config
from .models import parse_date

PAID, OVERDUE, PENDING, DUE_SOON = "paid", "overdue", "pending", "due-soon"
DISPLAY_STATUSES = (PAID, OVERDUE, PENDING, DUE_SOON)

# RGB used by the PDF badge and the HTML list
STATUS_COLORS = {
    PAID:     (46, 204, 113),
    OVERDUE:  (230, 126, 34),
    PENDING:  (231, 76, 60),
    DUE_SOON: (243, 156, 18),
}
STATUS_LABELS = {PAID: "PAID", OVERDUE: "OVERDUE", PENDING: "PENDING", DUE_SOON: "DUE SOON"}


def today(now=None):
    """`now` as a calendar date in APP_TZ (aware datetimes are converted, naive ones taken as-is)."""
    if now is None:
        return datetime.now(config.APP_TZ).date()
    if isinstance(now, datetime):
        return now.astimezone(config.APP_TZ).date() if now.tzinfo else now.date()
    if isinstance(now, date):
        return now
    return parse_date(now) or datetime.now(config.APP_TZ).date()


def days_until_due(due_date, now=None):
    """Whole days from today to the due date (negative once overdue), None without a due date."""
    due = parse_date(due_date)
    if due is None:
        return None
    return (due - today(now)).days


def derive_status(payment_status, due_date, now=None, due_soon_days=None):
    status = (payment_status or "").strip().lower() or PENDING
    if status == PAID:
        return PAID
    days = days_until_due(due_date, now)
    if days is not None:
        if days < 0:
            return OVERDUE
        window = config.DUE_SOON_DAYS if due_soon_days is None else due_soon_days
        if days <= window:
            return DUE_SOON
    return status


def toggle_payment_status(current):
    """List page toggle: paid -> pending, anything else -> paid."""
    return PENDING if current == PAID else PAID


def record_status(record, now=None):
    return derive_status(record.payment_status, record.due_date, now)


def status_summary(records, now=None):
    """Counts per display status for the list page header."""
    counts = {s: 0 for s in DISPLAY_STATUSES}
    for rec in records:
        st = record_status(rec, now)
        counts[st] = counts.get(st, 0) + 1
    counts["total"] = sum(counts[s] for s in DISPLAY_STATUSES)
    return counts
