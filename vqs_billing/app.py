# web app: invoices (Flask) with Google Sheets storage + reportlab PDF
# - JSON API under /api for the invoice form and list
# - "/" renders the invoice list with live display status
# - Secrets via ENV: SPREADSHEET_ID, GOOGLE_SA_JSON, SESSION_SECRET
# - Optional ENV: SAVE_DIR (server copy of every generated PDF)
#
# run: gunicorn vqs_billing.app:app

import os, io, logging
from dataclasses import replace
from datetime import datetime, timedelta

from flask import Flask, current_app, jsonify, render_template, request, send_file
from jinja2 import DictLoader

from . import config
from .models import InvoiceRecord, PAYMENT_STATUSES, UNITS
from .money import format_money
from .pdf import render_invoice_pdf, invoice_filename
from .status import (derive_status, days_until_due, record_status, status_summary,
                     toggle_payment_status, STATUS_COLORS, STATUS_LABELS)
from .store import SheetInvoiceStore, StoreUnavailable, InvoiceNotFound, DuplicateInvoice
from .totals import totals_for_record
from .validation import validate_invoice
from .words import amount_in_words

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = config.SESSION_SECRET


def get_store():
    store = current_app.config.get("INVOICE_STORE")
    if store is None:
        store = current_app.config["INVOICE_STORE"] = SheetInvoiceStore()
    return store


# ==============================
# Small helpers
# ==============================
def _now():
    return datetime.now(config.APP_TZ)


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _bad_request(message, details=None):
    body = {"error": message}
    if details:
        body["details"] = details
    return jsonify(body), 400


def with_defaults(record, now=None):
    """New invoices: issue date today, due date DEFAULT_DUE_DAYS later."""
    day = (now or _now()).date()
    issue = record.issue_date or day
    due = record.due_date or issue + timedelta(days=config.DEFAULT_DUE_DAYS)
    return replace(record, issue_date=issue, due_date=due)


def with_charge_amounts(record, totals):
    """Charge specs carry the amounts the calculator produced."""
    return replace(
        record,
        service_charge=record.service_charge.with_amount(totals.subtotal),
        vat=record.vat.with_amount(totals.subtotal),
    )


def invoice_payload(record, totals=None, now=None):
    totals = totals or totals_for_record(record)
    now = now or _now()
    return {
        **record.to_dict(),
        "totals": totals.to_dict(),
        "displayStatus": derive_status(record.payment_status, record.due_date, now),
        "daysUntilDue": days_until_due(record.due_date, now),
    }


def _save_copy(filename, data_bytes):
    if not config.SAVE_DIR:
        return
    try:
        sub = os.path.join(os.path.abspath(config.SAVE_DIR), "invoice")
        os.makedirs(sub, exist_ok=True)
        path = os.path.join(sub, filename)
        with open(path, "wb") as f:
            f.write(data_bytes)
        log.info("Saved copy at: %s", path)
    except OSError as e:
        log.warning("Skip saving copy: %s", e)


def _pdf_response(record, totals):
    data = render_invoice_pdf(record, totals)
    dl_name = invoice_filename(record.invoice_number, _now())
    _save_copy(dl_name, data)
    return send_file(io.BytesIO(data), as_attachment=True, download_name=dl_name, mimetype="application/pdf")


# ==============================
# Errors
# ==============================
@app.errorhandler(StoreUnavailable)
def store_unavailable(e):
    return jsonify({"error": "Invoice storage unavailable", "detail": str(e)}), 503


@app.errorhandler(InvoiceNotFound)
def invoice_not_found(e):
    return jsonify({"error": str(e)}), 404


@app.errorhandler(DuplicateInvoice)
def duplicate_invoice(e):
    return jsonify({"error": str(e)}), 409


# ==============================
# Templates (in-memory)
# ==============================
TEMPLATES = {
"base.html": r"""<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{{ company }} Invoices</title>
  <style>
    :root { --navy:#19375a; --blue:#2980b9; --grey:#6b7280; --b:#e5e7eb; --text:#111827; }
    body { font-family: system-ui, -apple-system, "Segoe UI", Roboto, Arial, sans-serif; margin: 18px; color: var(--text); }
    header { display: flex; align-items: center; justify-content: space-between; margin-bottom: 16px; }
    .btn { display:inline-block; padding:6px 10px; background:var(--blue); color:white; text-decoration:none; border-radius:6px; border:0; cursor:pointer; font-size:14px; }
    .btn.secondary { background:var(--grey); }
    .card { border:1px solid var(--b); border-radius:10px; padding:16px; margin:12px 0; }
    .stats { display:flex; gap:12px; flex-wrap:wrap; }
    .stat { flex:1 1 120px; }
    table { border-collapse: collapse; width:100%; }
    th, td { border:1px solid var(--b); padding:8px; text-align:left; }
    td.right { text-align:right; }
    .pill { color:white; padding:2px 10px; border-radius:999px; font-size:12px; font-weight:600; }
    .msg { color:#dc2626; margin-bottom:8px; }
  </style>
</head>
<body>
  <header><h2>{{ company }} Invoice System</h2></header>
  {% block content %}{% endblock %}
</body>
</html>
""",
"invoices.html": r"""
{% extends "base.html" %}
{% block content %}
  {% if error %}<div class="msg">{{ error }}</div>{% endif %}
  <div class="stats">
    {% for key in ["pending", "due-soon", "overdue", "paid"] %}
    <div class="card stat"><div>{{ labels[key] }}</div><h3>{{ summary[key] }}</h3></div>
    {% endfor %}
  </div>
  <div class="card">
    <table>
      <thead><tr><th>Invoice</th><th>Customer</th><th>Date</th><th>Due</th><th>Net Total</th><th>Status</th><th></th></tr></thead>
      <tbody>
      {% for row in rows %}
        <tr>
          <td>{{ row.record.invoice_number }}</td>
          <td>{{ row.record.customer_name }}</td>
          <td>{{ row.record.issue_date or "" }}</td>
          <td>{{ row.record.due_date or "Upon Receipt" }}</td>
          <td class="right">{{ row.totals.net_total|money }}</td>
          <td><span class="pill" style="background: rgb{{ colors[row.status] }}">{{ labels[row.status] }}</span></td>
          <td>
            <a class="btn" href="{{ url_for('invoice_pdf', invoice_number=row.record.invoice_number) }}">PDF</a>
            <button class="btn secondary" data-invoice="{{ row.record.invoice_number }}" data-status="{{ toggle(row.record.payment_status) }}"
                    onclick="setStatus(this.dataset.invoice, this.dataset.status)">
              Mark {{ toggle(row.record.payment_status)|capitalize }}</button>
            <button class="btn secondary" data-invoice="{{ row.record.invoice_number }}"
                    onclick="removeInvoice(this.dataset.invoice)">Delete</button>
          </td>
        </tr>
      {% else %}
        <tr><td colspan="7">No invoices yet.</td></tr>
      {% endfor %}
      </tbody>
    </table>
  </div>
<script>
async function setStatus(no, status){
  const res = await fetch(`/api/invoices/${encodeURIComponent(no)}`, {
    method: "PATCH", headers: {"Content-Type": "application/json"}, body: JSON.stringify({paymentStatus: status})
  });
  if(!res.ok){ alert("Failed to update status. Please try again."); return; }
  location.reload();
}
async function removeInvoice(no){
  if(!confirm("Are you sure you want to delete this invoice? This action cannot be undone.")) return;
  const res = await fetch(`/api/invoices/${encodeURIComponent(no)}`, { method: "DELETE" });
  if(!res.ok){ alert("Failed to delete invoice. Please try again."); return; }
  location.reload();
}
</script>
{% endblock %}
""",
}

# mount in-memory templates
app.jinja_loader = DictLoader(TEMPLATES)
app.jinja_env.filters["money"] = format_money


# ==============================
# Routes
# ==============================
@app.route("/healthz")
def healthz():
    return "ok", 200


@app.route("/", methods=["GET"])
def invoice_list_page():
    now = _now()
    error, records = None, []
    try:
        records = get_store().list()
    except StoreUnavailable as e:
        error = f"Failed to load invoices: {e}"
    rows = [{"record": r, "totals": totals_for_record(r), "status": record_status(r, now)} for r in records]
    return render_template("invoices.html",
                           company=config.COMPANY_NAME,
                           rows=rows,
                           summary=status_summary(records, now),
                           labels=STATUS_LABELS,
                           colors=STATUS_COLORS,
                           toggle=toggle_payment_status,
                           error=error)


@app.route("/api/invoices", methods=["GET"])
def list_invoices():
    now = _now()
    return jsonify([invoice_payload(r, now=now) for r in get_store().list()])


@app.route("/api/invoices/summary", methods=["GET"])
def invoices_summary():
    return jsonify(status_summary(get_store().list(), _now()))


@app.route("/api/invoices/next-number", methods=["GET"])
def next_number():
    return jsonify({"invoiceNumber": get_store().next_number(_now())})


@app.route("/api/invoices", methods=["POST"])
def create_invoice():
    data = _json_body()
    if data is None:
        return _bad_request("Expected a JSON object")
    store = get_store()
    record = InvoiceRecord.from_dict(data)
    if not record.invoice_number:
        record = replace(record, invoice_number=store.next_number(_now()))
    record = with_defaults(record)
    errors = validate_invoice(record)
    if errors:
        return _bad_request("Validation failed", errors)
    totals = totals_for_record(record)
    record = with_charge_amounts(record, totals)
    store.create(record, totals)
    return jsonify(invoice_payload(record, totals)), 201


@app.route("/api/invoices/<invoice_number>", methods=["GET"])
def get_invoice(invoice_number):
    return jsonify(invoice_payload(get_store().get(invoice_number)))


@app.route("/api/invoices/<invoice_number>", methods=["PUT"])
def update_invoice(invoice_number):
    data = _json_body()
    if data is None:
        return _bad_request("Expected a JSON object")
    store = get_store()
    store.get(invoice_number)
    record = InvoiceRecord.from_dict(data)
    if not record.invoice_number:
        record = replace(record, invoice_number=invoice_number)
    record = with_defaults(record)
    errors = validate_invoice(record)
    if errors:
        return _bad_request("Validation failed", errors)
    totals = totals_for_record(record)
    record = with_charge_amounts(record, totals)
    store.update(invoice_number, record, totals)
    return jsonify(invoice_payload(record, totals))


@app.route("/api/invoices/<invoice_number>", methods=["PATCH"])
def update_payment_status(invoice_number):
    data = _json_body() or {}
    status = str(data.get("paymentStatus", "")).strip().lower()
    if status not in PAYMENT_STATUSES:
        return _bad_request(f"paymentStatus must be one of: {', '.join(PAYMENT_STATUSES)}")
    record = get_store().set_payment_status(invoice_number, status)
    return jsonify(invoice_payload(record))


@app.route("/api/invoices/<invoice_number>", methods=["DELETE"])
def delete_invoice(invoice_number):
    get_store().delete(invoice_number)
    return "", 204


@app.route("/api/totals", methods=["POST"])
def preview_totals():
    """Live summary for the invoice form; same calculation as save and PDF."""
    data = _json_body()
    if data is None:
        return _bad_request("Expected a JSON object")
    record = InvoiceRecord.from_dict(data)
    totals = totals_for_record(record)
    return jsonify({
        "items": [it.to_dict() for it in record.items],
        "totals": totals.to_dict(),
        "formatted": {k: format_money(v) for k, v in totals.to_dict().items()},
        "amountInWords": amount_in_words(totals.net_total),
    })


@app.route("/api/invoices/<invoice_number>/pdf", methods=["GET"])
def invoice_pdf(invoice_number):
    record = get_store().get(invoice_number)
    return _pdf_response(record, totals_for_record(record))


@app.route("/api/invoices/pdf", methods=["POST"])
def preview_pdf():
    """PDF of an unsaved form; no validation, like the form's preview button."""
    data = _json_body()
    if data is None:
        return _bad_request("Expected a JSON object")
    record = InvoiceRecord.from_dict(data)
    return _pdf_response(record, totals_for_record(record))


@app.route("/api/meta", methods=["GET"])
def meta():
    return jsonify({
        "units": list(UNITS),
        "paymentStatuses": list(PAYMENT_STATUSES),
        "currencyPrefix": config.CURRENCY_PREFIX,
        "defaultDueDays": config.DEFAULT_DUE_DAYS,
    })


# ==============================
# Main
# ==============================
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8080")), debug=True)
