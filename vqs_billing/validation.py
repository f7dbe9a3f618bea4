# Form-layer checks run before an invoice is saved. The calculator and the PDF
# never call this: they take whatever they are given.

import re

from . import config
from .models import UNITS, PAYMENT_STATUSES, CHARGE_KINDS
from .money import to_number

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def valid_email(email):
    return not email or bool(EMAIL_RE.match(email))


def validate_invoice(record, require_positive_price=None):
    """-> list of human readable problems (empty when the record can be saved)."""
    if require_positive_price is None:
        require_positive_price = config.REQUIRE_POSITIVE_PRICE
    errors = []
    if not record.invoice_number:
        errors.append("Invoice number is required")
    elif "/" in record.invoice_number:
        # numbers travel as a single URL path segment
        errors.append("Invoice number cannot contain '/'")
    if not record.customer_name:
        errors.append("Customer name is required")
    if not valid_email(record.customer_email):
        errors.append("Customer email is not a valid address")
    if record.payment_status not in PAYMENT_STATUSES:
        errors.append(f"Payment status must be one of: {', '.join(PAYMENT_STATUSES)}")

    if not record.items:
        errors.append("At least one item is required")
    for item in record.items:
        label = f"Item {item.sequence_number}"
        if not item.product_description:
            errors.append(f"{label}: product name is required")
        if item.unit_of_measure not in UNITS:
            errors.append(f"{label}: unit must be one of: {', '.join(UNITS)}")
        if to_number(item.quantity) <= 0:
            errors.append(f"{label}: quantity must be greater than 0")
        price = to_number(item.unit_price)
        if price < 0 or (require_positive_price and price == 0):
            errors.append(f"{label}: price must be {'greater than 0' if require_positive_price else '0 or more'}")

    for name, charge in (("Service charge", record.service_charge), ("VAT", record.vat)):
        if charge.kind not in CHARGE_KINDS:
            errors.append(f"{name} type must be fixed or percentage")
        if to_number(charge.value) < 0:
            errors.append(f"{name} cannot be negative")
    if to_number(record.special_discount) < 0:
        errors.append("Special discount cannot be negative")
    return errors
