# Line-item editing rules used by the invoice form.
# Every helper returns a new tuple; the caller's sequence is never touched.

from dataclasses import replace

from .models import LineItem, DEFAULT_UNIT
from .money import to_number


def renumber(items):
    return tuple(
        it if it.sequence_number == i + 1 else replace(it, sequence_number=i + 1)
        for i, it in enumerate(items)
    )


def new_item(position):
    return LineItem(sequence_number=position, unit_of_measure=DEFAULT_UNIT, quantity=1, unit_price=0)


def add_item(items):
    items = tuple(items)
    return items + (new_item(len(items) + 1),)


def remove_item(items, index):
    """Drop items[index] and renumber. The last remaining item cannot be removed."""
    items = tuple(items)
    if len(items) <= 1 or not 0 <= index < len(items):
        return items
    return renumber(items[:index] + items[index + 1:])


def _update(items, index, **changes):
    items = tuple(items)
    if not 0 <= index < len(items):
        raise IndexError(f"line item {index} out of range")
    return items[:index] + (replace(items[index], **changes),) + items[index + 1:]


def set_quantity(items, index, value):
    return _update(items, index, quantity=to_number(value))


def set_unit_price(items, index, value):
    return _update(items, index, unit_price=to_number(value))


def set_description(items, index, text):
    return _update(items, index, product_description=(text or "").strip())


def set_unit(items, index, unit):
    return _update(items, index, unit_of_measure=(unit or DEFAULT_UNIT).strip().upper())
