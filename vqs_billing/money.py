# Number coercion + currency formatting shared by the API, the HTML list and the PDF.

import math
from decimal import Decimal, InvalidOperation

from . import config


def to_number(value, default=0.0):
    """Lenient float conversion: None, '', junk, NaN and inf all become `default`."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, Decimal):
        try:
            num = float(value)
        except (InvalidOperation, ValueError):
            return default
    else:
        text = str(value).replace(",", "").replace(" ", "").strip()
        if not text:
            return default
        try:
            num = float(text)
        except ValueError:
            return default
    if math.isnan(num) or math.isinf(num):
        return default
    return num


def group_digits(digits, style=None):
    """'1234567' -> '12,34,567' (south_asian) or '1,234,567' (western)."""
    style = style or config.NUMBER_GROUPING
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    step = 2 if style == "south_asian" else 3
    groups = []
    while head:
        groups.insert(0, head[-step:])
        head = head[:-step]
    return ",".join(groups + [tail])


def format_amount(value, grouping=None):
    num = to_number(value)
    text = f"{abs(num):.2f}"
    whole, frac = text.split(".")
    sign = "-" if num < 0 and text != "0.00" else ""
    return f"{sign}{group_digits(whole, grouping)}.{frac}"


def format_money(value, prefix=None, grouping=None):
    """Currency display: 'Tk 1,23,456.00'. Negative values carry the sign before the prefix."""
    prefix = config.CURRENCY_PREFIX if prefix is None else prefix
    amount = format_amount(value, grouping)
    if amount.startswith("-"):
        return f"-{prefix} {amount[1:]}" if prefix else amount
    return f"{prefix} {amount}" if prefix else amount


def format_quantity(value, grouping=None):
    """Quantities keep up to 3 decimals, trailing zeros trimmed: 1500 -> '1,500', 2.5 -> '2.5'."""
    num = to_number(value)
    text = f"{abs(num):.3f}".rstrip("0").rstrip(".")
    whole, _, frac = text.partition(".")
    sign = "-" if num < 0 and text != "0" else ""
    out = group_digits(whole, grouping)
    return f"{sign}{out}.{frac}" if frac else f"{sign}{out}"
