# Invoice totals. One function feeds the sheet row, the live preview and the PDF.

from . import config
from .models import ChargeSpec, LineItem, TotalsResult, pick_field
from .money import to_number


def _line_amount(item):
    if isinstance(item, LineItem):
        return to_number(item.quantity) * to_number(item.unit_price)
    return to_number(pick_field(item, "quantity")) * to_number(pick_field(item, "unit_price"))


def charge_amount(charge, subtotal):
    """Percentage -> subtotal * value / 100, anything else is a flat amount."""
    return ChargeSpec.from_dict(charge).amount_for(subtotal)


def compute_totals(items, service_charge=None, vat=None, special_discount=0, net_floor=None):
    """Derive subtotal, charges, grand total and net total.

    Items may be LineItem objects or raw dicts from the form; numbers may be
    strings. Anything unparsable counts as 0, nothing here raises.
    The net total is not floored unless `net_floor` is given, so a discount
    bigger than the grand total yields a negative net total.
    """
    subtotal = 0.0
    for item in items or ():
        subtotal += _line_amount(item)
    sc_amount = charge_amount(service_charge, subtotal)
    vat_amount = charge_amount(vat, subtotal)
    grand_total = subtotal + sc_amount + vat_amount
    discount = max(to_number(special_discount), 0.0)
    net_total = grand_total - discount
    if net_floor is not None:
        net_total = max(net_total, to_number(net_floor))
    return TotalsResult(
        subtotal=subtotal,
        service_charge_amount=sc_amount,
        vat_amount=vat_amount,
        grand_total=grand_total,
        special_discount=discount,
        net_total=net_total,
    )


def totals_for_record(record):
    """The single call site for persistence, preview and PDF (applies NET_TOTAL_FLOOR)."""
    return compute_totals(
        record.items,
        record.service_charge,
        record.vat,
        record.special_discount,
        net_floor=config.NET_TOTAL_FLOOR,
    )
