# Typed invoice record. Payloads arrive as camelCase JSON from the form, or as
# snake_case dicts from scripts; both go through the same synonym table.

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Tuple

from .money import to_number

UNITS = ("PCS", "CFT", "SFT", "KG", "LTR", "M")
DEFAULT_UNIT = "PCS"
PAYMENT_STATUSES = ("pending", "paid", "overdue")
CHARGE_KINDS = ("fixed", "percentage")


def _norm_key(s):
    return re.sub(r"[^a-z0-9]+", "", (s or "").lower())


# canonical field -> accepted spellings (compared after _norm_key)
KEY_SYNONYMS = {
    "sequence_number":     ["srNo", "sr_no", "sequenceNumber", "sl", "no"],
    "product_description": ["productName", "productDescription", "description", "desc", "item", "particulars"],
    "unit_of_measure":     ["measurement", "unit", "unitOfMeasure", "uom"],
    "quantity":            ["qty", "quantity"],
    "unit_price":          ["price", "unitPrice", "rate"],
    "kind":                ["type", "kind"],
    "value":               ["value"],
    "computed_amount":     ["amount", "computedAmount"],
    "invoice_number":      ["invoiceNumber", "invoice_no", "number"],
    "issue_date":          ["date", "issueDate", "invoiceDate"],
    "due_date":            ["dueDate"],
    "customer_name":       ["customerName"],
    "customer_email":      ["customerEmail"],
    "customer_address":    ["customerAddress"],
    "customer_phone":      ["customerPhone"],
    "payment_status":      ["paymentStatus", "status"],
    "items":               ["items", "lineItems"],
    "service_charge":      ["serviceCharge"],
    "vat":                 ["vat"],
    "special_discount":    ["specialDiscount", "discount"],
    "notes":               ["notes"],
}


def pick_field(data, canon, default=None):
    """Value for a canonical field from a dict using any accepted spelling."""
    if not isinstance(data, dict):
        return default
    wanted = {_norm_key(k) for k in [canon] + KEY_SYNONYMS.get(canon, [])}
    for key, val in data.items():
        if _norm_key(key) in wanted:
            return val
    return default


def _text(value):
    return "" if value is None else str(value).strip()


def parse_date(value):
    """date | datetime | ISO string ('2026-01-31' or '2026-01-31T00:00:00.000Z') -> date or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class LineItem:
    sequence_number: int
    product_description: str = ""
    unit_of_measure: str = DEFAULT_UNIT
    quantity: float = 1.0
    unit_price: float = 0.0
    line_total: float = field(init=False)

    def __post_init__(self):
        # always derived, never taken from input
        object.__setattr__(self, "line_total", to_number(self.quantity) * to_number(self.unit_price))

    @classmethod
    def from_dict(cls, data, position=1):
        seq = pick_field(data, "sequence_number")
        try:
            seq = int(seq)
        except (TypeError, ValueError):
            seq = 0
        return cls(
            sequence_number=seq if seq > 0 else position,
            product_description=_text(pick_field(data, "product_description")),
            unit_of_measure=(_text(pick_field(data, "unit_of_measure")) or DEFAULT_UNIT).upper(),
            quantity=to_number(pick_field(data, "quantity")),
            unit_price=to_number(pick_field(data, "unit_price")),
        )

    def to_dict(self):
        return {
            "srNo": self.sequence_number,
            "productName": self.product_description,
            "measurement": self.unit_of_measure,
            "quantity": self.quantity,
            "price": self.unit_price,
            "total": self.line_total,
        }


@dataclass(frozen=True)
class ChargeSpec:
    kind: str = "fixed"
    value: float = 0.0
    computed_amount: float = 0.0

    @property
    def is_percentage(self):
        return self.kind == "percentage"

    def amount_for(self, subtotal):
        value = to_number(self.value)
        return to_number(subtotal) * value / 100 if self.is_percentage else value

    def with_amount(self, subtotal):
        return replace(self, computed_amount=self.amount_for(subtotal))

    @classmethod
    def from_dict(cls, data):
        if isinstance(data, ChargeSpec):
            return data
        if not isinstance(data, dict):
            # a bare number is a fixed charge
            return cls(kind="fixed", value=to_number(data))
        kind = _text(pick_field(data, "kind")).lower() or "fixed"
        return cls(
            kind=kind,
            value=to_number(pick_field(data, "value")),
            computed_amount=to_number(pick_field(data, "computed_amount")),
        )

    def to_dict(self):
        return {"type": self.kind, "value": self.value, "amount": self.computed_amount}


@dataclass(frozen=True)
class InvoiceRecord:
    invoice_number: str
    customer_name: str
    items: Tuple[LineItem, ...]
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    customer_email: str = ""
    customer_address: str = ""
    customer_phone: str = ""
    payment_status: str = "pending"
    service_charge: ChargeSpec = field(default_factory=ChargeSpec)
    vat: ChargeSpec = field(default_factory=ChargeSpec)
    special_discount: float = 0.0
    notes: str = ""

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        raw_items = pick_field(data, "items") or []
        if not isinstance(raw_items, (list, tuple)):
            raw_items = []
        items = tuple(
            it if isinstance(it, LineItem) else LineItem.from_dict(it, position=i + 1)
            for i, it in enumerate(raw_items)
        )
        return cls(
            invoice_number=_text(pick_field(data, "invoice_number")),
            customer_name=_text(pick_field(data, "customer_name")),
            items=items,
            issue_date=parse_date(pick_field(data, "issue_date")),
            due_date=parse_date(pick_field(data, "due_date")),
            customer_email=_text(pick_field(data, "customer_email")),
            customer_address=_text(pick_field(data, "customer_address")),
            customer_phone=_text(pick_field(data, "customer_phone")),
            payment_status=_text(pick_field(data, "payment_status")).lower() or "pending",
            service_charge=ChargeSpec.from_dict(pick_field(data, "service_charge")),
            vat=ChargeSpec.from_dict(pick_field(data, "vat")),
            special_discount=to_number(pick_field(data, "special_discount")),
            notes=_text(pick_field(data, "notes")),
        )

    def to_dict(self):
        return {
            "invoiceNumber": self.invoice_number,
            "date": self.issue_date.isoformat() if self.issue_date else None,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerAddress": self.customer_address,
            "customerPhone": self.customer_phone,
            "paymentStatus": self.payment_status,
            "items": [it.to_dict() for it in self.items],
            "serviceCharge": self.service_charge.to_dict(),
            "vat": self.vat.to_dict(),
            "specialDiscount": self.special_discount,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class TotalsResult:
    subtotal: float = 0.0
    service_charge_amount: float = 0.0
    vat_amount: float = 0.0
    grand_total: float = 0.0
    special_discount: float = 0.0
    net_total: float = 0.0

    @classmethod
    def from_dict(cls, data):
        """camelCase or snake_case keys; missing or junk values become 0."""
        data = data or {}

        def num(snake, camel):
            return to_number(data.get(camel, data.get(snake)))

        return cls(
            subtotal=num("subtotal", "subtotal"),
            service_charge_amount=num("service_charge_amount", "serviceChargeAmount"),
            vat_amount=num("vat_amount", "vatAmount"),
            grand_total=num("grand_total", "grandTotal"),
            special_discount=num("special_discount", "specialDiscount"),
            net_total=num("net_total", "netTotal"),
        )

    def to_dict(self):
        return {
            "subtotal": self.subtotal,
            "serviceChargeAmount": self.service_charge_amount,
            "vatAmount": self.vat_amount,
            "grandTotal": self.grand_total,
            "specialDiscount": self.special_discount,
            "netTotal": self.net_total,
        }
