# Google Sheets persistence: one row per invoice in the INVOICE_TAB_NAME tab.
# - Header is ensured by name (missing columns appended, never reordered)
# - Items live in a JSON column; totals are written next to the record for audit
# - Invoice numbers are matched on the Invoice_Number column

import re, json, logging
from datetime import datetime
from functools import wraps

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials as SA_Credentials

from . import config
from .models import InvoiceRecord, PAYMENT_STATUSES

log = logging.getLogger(__name__)

INVOICE_HEADER = [
    "Invoice_Number", "Issue_Date", "Due_Date",
    "Customer_Name", "Customer_Email", "Customer_Address", "Customer_Phone",
    "Payment_Status", "Items_JSON",
    "Service_Charge_Type", "Service_Charge_Value", "VAT_Type", "VAT_Value",
    "Special_Discount", "Notes",
    "Subtotal", "Service_Charge_Amount", "VAT_Amount", "Grand_Total", "Net_Total",
    "Created_At", "Updated_At",
]


class StoreError(Exception):
    pass


class StoreUnavailable(StoreError):
    """Sheet cannot be reached (missing credentials, auth or API failure)."""


class InvoiceNotFound(StoreError, LookupError):
    pass


class DuplicateInvoice(StoreError, ValueError):
    pass


def _sheet_call(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except (gspread.exceptions.GSpreadException, GoogleAuthError) as e:
            log.error("Sheet call %s failed: %s", fn.__name__, e)
            raise StoreUnavailable(str(e)) from e
    return wrapper


def _now_stamp():
    return datetime.now(config.APP_TZ).strftime("%Y-%m-%d %H:%M:%S")


def _gc():
    if not config.GOOGLE_SA_JSON or not config.SPREADSHEET_ID:
        raise StoreUnavailable("Missing env vars: GOOGLE_SA_JSON and/or SPREADSHEET_ID.")
    try:
        info = json.loads(config.GOOGLE_SA_JSON)
    except ValueError as e:
        raise StoreUnavailable(f"GOOGLE_SA_JSON is not valid JSON: {e}") from e
    creds = SA_Credentials.from_service_account_info(info, scopes=config.SHEETS_SCOPES)
    return gspread.authorize(creds)


@_sheet_call
def open_worksheet(sheet_name):
    sh = _gc().open_by_key(config.SPREADSHEET_ID)
    try:
        return sh.worksheet(sheet_name)
    except gspread.exceptions.WorksheetNotFound:
        log.info("Creating worksheet %s", sheet_name)
        return sh.add_worksheet(title=sheet_name, rows=1000, cols=len(INVOICE_HEADER))


# ---------- numbering ----------
def next_invoice_number(existing_numbers, now=None):
    """INV-<year>-<seq:04d>, one past the highest sequence already used this year."""
    now = now or datetime.now(config.APP_TZ)
    pat = re.compile(rf"^INV-{now.year}-(\d+)$")
    max_num = 0
    for raw in existing_numbers:
        m = pat.match(str(raw or "").strip())
        if m and int(m.group(1)) > max_num:
            max_num = int(m.group(1))
    return f"INV-{now.year}-{max_num + 1:04d}"


def fallback_invoice_number(now=None):
    """Used when the sheet cannot be read: INV-<YYYYMMDD>-<last 4 digits of the ms timestamp>."""
    now = now or datetime.now(config.APP_TZ)
    stamp = str(int(now.timestamp() * 1000))[-4:]
    return f"INV-{now:%Y%m%d}-{stamp}"


# ---------- row <-> record ----------
def _money(v):
    return f"{float(v):.2f}"


def record_values(record, totals):
    """Column name -> cell value for one invoice."""
    return {
        "Invoice_Number":        record.invoice_number,
        "Issue_Date":            record.issue_date.isoformat() if record.issue_date else "",
        "Due_Date":              record.due_date.isoformat() if record.due_date else "",
        "Customer_Name":         record.customer_name,
        "Customer_Email":        record.customer_email,
        "Customer_Address":      record.customer_address,
        "Customer_Phone":        record.customer_phone,
        "Payment_Status":        record.payment_status,
        "Items_JSON":            json.dumps([it.to_dict() for it in record.items]),
        "Service_Charge_Type":   record.service_charge.kind,
        "Service_Charge_Value":  record.service_charge.value,
        "VAT_Type":              record.vat.kind,
        "VAT_Value":             record.vat.value,
        "Special_Discount":      record.special_discount,
        "Notes":                 record.notes,
        "Subtotal":              _money(totals.subtotal),
        "Service_Charge_Amount": _money(totals.service_charge_amount),
        "VAT_Amount":            _money(totals.vat_amount),
        "Grand_Total":           _money(totals.grand_total),
        "Net_Total":             _money(totals.net_total),
    }


def row_to_record(row):
    """Sheet row dict (column name -> cell text) -> InvoiceRecord."""
    try:
        items = json.loads(row.get("Items_JSON") or "[]")
    except ValueError as e:
        log.warning("Items skipped for %s: %s", row.get("Invoice_Number"), e)
        items = []
    return InvoiceRecord.from_dict({
        "invoiceNumber":   row.get("Invoice_Number", ""),
        "date":            row.get("Issue_Date", ""),
        "dueDate":         row.get("Due_Date", ""),
        "customerName":    row.get("Customer_Name", ""),
        "customerEmail":   row.get("Customer_Email", ""),
        "customerAddress": row.get("Customer_Address", ""),
        "customerPhone":   row.get("Customer_Phone", ""),
        "paymentStatus":   row.get("Payment_Status", ""),
        "items":           items if isinstance(items, list) else [],
        "serviceCharge":   {"type": row.get("Service_Charge_Type", ""), "value": row.get("Service_Charge_Value", ""),
                            "amount": row.get("Service_Charge_Amount", "")},
        "vat":             {"type": row.get("VAT_Type", ""), "value": row.get("VAT_Value", ""),
                            "amount": row.get("VAT_Amount", "")},
        "specialDiscount": row.get("Special_Discount", ""),
        "notes":           row.get("Notes", ""),
    })


class SheetInvoiceStore:
    def __init__(self, worksheet=None, tab_name=None):
        self._worksheet = worksheet
        self.tab_name = tab_name or config.INVOICE_TAB_NAME

    def _ws(self):
        if self._worksheet is None:
            self._worksheet = open_worksheet(self.tab_name)
        return self._worksheet

    def _ensure_header(self, ws):
        vals = ws.get_all_values()
        header = list(vals[0]) if vals else []
        if not header:
            header = INVOICE_HEADER[:]
            ws.update(range_name="A1", values=[header])
        else:
            existing_l = [h.strip().lower() for h in header]
            missing = [col for col in INVOICE_HEADER if col.lower() not in existing_l]
            if missing:
                header += missing
                ws.update(range_name="A1", values=[header])
        return header, vals[1:] if vals else []

    def _rows(self):
        """-> (header, [(sheet_row_number, {column: value})])"""
        header, body = self._ensure_header(self._ws())
        rows = []
        for i, r in enumerate(body, start=2):
            if not any(str(c).strip() for c in r):
                continue
            rows.append((i, {h: (r[j] if j < len(r) else "") for j, h in enumerate(header)}))
        return header, rows

    def _find(self, invoice_number):
        header, rows = self._rows()
        wanted = (invoice_number or "").strip()
        for row_num, row in rows:
            if str(row.get("Invoice_Number", "")).strip() == wanted:
                return header, row_num, row
        raise InvoiceNotFound(f"Invoice {invoice_number} not found")

    @_sheet_call
    def list(self):
        _, rows = self._rows()
        return [row_to_record(row) for _, row in rows]

    @_sheet_call
    def get(self, invoice_number):
        return row_to_record(self._find(invoice_number)[2])

    @_sheet_call
    def count(self):
        return len(self._rows()[1])

    def exists(self, invoice_number):
        try:
            self._find(invoice_number)
            return True
        except InvoiceNotFound:
            return False

    @_sheet_call
    def create(self, record, totals):
        if self.exists(record.invoice_number):
            raise DuplicateInvoice(f"Invoice {record.invoice_number} already exists")
        header, _ = self._ensure_header(self._ws())
        stamp = _now_stamp()
        values = {**record_values(record, totals), "Created_At": stamp, "Updated_At": stamp}
        self._ws().append_row([values.get(h, "") for h in header], value_input_option="RAW")
        log.info("Invoice %s created", record.invoice_number)
        return record

    @_sheet_call
    def update(self, invoice_number, record, totals):
        header, row_num, row = self._find(invoice_number)
        if record.invoice_number != invoice_number and self.exists(record.invoice_number):
            raise DuplicateInvoice(f"Invoice {record.invoice_number} already exists")
        merged = {**row, **record_values(record, totals), "Updated_At": _now_stamp()}
        self._ws().update(range_name=f"A{row_num}", values=[[merged.get(h, "") for h in header]],
                          value_input_option="RAW")
        log.info("Invoice %s updated", invoice_number)
        return record

    @_sheet_call
    def set_payment_status(self, invoice_number, status):
        if status not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown payment status: {status}")
        header, row_num, row = self._find(invoice_number)
        ws = self._ws()
        ws.update_cell(row_num, header.index("Payment_Status") + 1, status)
        ws.update_cell(row_num, header.index("Updated_At") + 1, _now_stamp())
        return row_to_record({**row, "Payment_Status": status})

    @_sheet_call
    def delete(self, invoice_number):
        _, row_num, _ = self._find(invoice_number)
        self._ws().delete_rows(row_num)
        log.info("Invoice %s deleted", invoice_number)

    def next_number(self, now=None):
        try:
            return next_invoice_number([r.invoice_number for r in self.list()], now)
        except StoreUnavailable as e:
            log.warning("Invoice numbering fell back to timestamp: %s", e)
            return fallback_invoice_number(now)
