# Invoice PDF (reportlab canvas, A4 portrait).
#
# Layout works in millimetres measured from the TOP of the page; the helpers
# below flip to reportlab's bottom-left origin. Stages run in order and move
# self.y down the page:
#   header band -> bill from / bill to -> items table -> summary block
#   (calculations box, due date + status pill, amount in words, notes,
#   signatures, footer). The watermark goes on every page before it is closed.

import io, re, logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.lib import colors
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from . import config
from .logo import resolve_logo
from .models import InvoiceRecord, TotalsResult
from .money import format_money, format_quantity, to_number
from .status import derive_status, STATUS_COLORS, STATUS_LABELS, today
from .totals import totals_for_record
from .words import amount_in_words

log = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4[0] / mm, A4[1] / mm     # 210 x 297
MARGIN = 15
CONTENT_W = PAGE_W - 2 * MARGIN
BOTTOM_LIMIT = PAGE_H - 10                   # footer may dip into the bottom margin

HEADER_H = 35
LOGO_CX, LOGO_CY, LOGO_R = 30, 18, 12
PANEL_TOP, PANEL_H, PANEL_GAP = 40, 45, 10

COLS = [                                     # title, width, align
    ("#", 10, "center"),
    ("PRODUCT", 55, "left"),
    ("UNIT", 20, "center"),
    ("QUANTITY", 25, "center"),
    ("PRICE", 35, "right"),
    ("AMOUNT", 35, "right"),
]
HEAD_ROW_H = 9
CELL_PAD_X, CELL_PAD_Y, CELL_LINE_H = 2.5, 2.2, 3.9
BODY_BOTTOM = PAGE_H - MARGIN - 1                # table rows end here (1 mm gap after the table)
PAGE_DESC_LINES = int((BODY_BOTTOM - MARGIN - HEAD_ROW_H - 2 * CELL_PAD_Y) // CELL_LINE_H)

CALC_W, CALC_ROW_H, CALC_PAD = 80, 6, 10
WORDS_LINE_H, NOTES_LINE_H = 5, 4.5
BADGE_W, BADGE_H = 30, 8
NOTES_MAX_LINES = 6

NAVY      = (25, 55, 90)
BLUE      = (41, 128, 185)
INK       = (44, 62, 80)
GREY_TEXT = (80, 80, 80)
PANEL_BG  = (248, 250, 252)
RULE      = (220, 220, 220)
ROW_ALT   = (250, 252, 255)
DISCOUNT  = (200, 50, 50)
WATERMARK = (230, 150, 100)

_RESOLVE = object()


class LayoutError(RuntimeError):
    """Layout arithmetic produced an impossible box; a bug, never caught."""


def _rgb(t):
    return colors.Color(t[0] / 255.0, t[1] / 255.0, t[2] / 255.0)


def _wrap(text, max_width, font="Helvetica", size=9):
    """Greedy word wrap; max_width in mm."""
    text = (text or "").replace("\r", " ").replace("\n", " ").strip()
    if not text: return [""]
    limit = max_width * mm
    words = text.split()
    lines, line = [], ""
    for w in words:
        test = (line + " " + w).strip()
        if pdfmetrics.stringWidth(test, font, size) <= limit: line = test
        else:
            if line: lines.append(line)
            line = w
    if line: lines.append(line)
    return lines


def _ellipsize(text, max_width, font="Helvetica", size=9):
    limit = max_width * mm
    while text and pdfmetrics.stringWidth(text + "...", font, size) > limit:
        text = text[:-1]
    return text.rstrip() + "..."


def _fit(text, max_width, font="Helvetica", size=9):
    """Single line clipped with '...' to max_width (mm)."""
    text = text or ""
    if pdfmetrics.stringWidth(text, font, size) <= max_width * mm:
        return text
    return _ellipsize(text, max_width, font, size)


def _clip_lines(lines, max_lines, max_width, font="Helvetica", size=9):
    """Keep at most max_lines; the last kept line ends with '...' when something was cut."""
    if len(lines) <= max_lines:
        return lines
    if max_lines <= 0:
        return []
    kept = lines[:max_lines]
    kept[-1] = _ellipsize(kept[-1], max_width, font, size)
    return kept


def _fmt_date(d):
    return d.strftime("%d %b %Y") if d else ""


def _fmt_pct(value):
    return f"{to_number(value):.2f}".rstrip("0").rstrip(".")


def company_initials(name):
    words = [w for w in re.split(r"\s+", (name or "").strip()) if w]
    if not words:
        return "?"
    if len(words) == 1:
        return words[0][:3].upper()
    return "".join(w[0] for w in words[:3]).upper()


def invoice_filename(invoice_number, generated_on=None):
    """Invoice_<number>_<YYYY-MM-DD>.pdf"""
    day = today(generated_on)
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", (invoice_number or "").strip()) or config.COMPANY_NAME
    return f"Invoice_{safe}_{day.isoformat()}.pdf"


def _coerce_totals(record, totals):
    if totals is None:
        return totals_for_record(record)
    if isinstance(totals, TotalsResult):
        return totals
    return TotalsResult.from_dict(totals)


class InvoiceLayout:
    def __init__(self, record, totals, logo=None, generated_at=None):
        self.record = record
        self.totals = totals
        self.logo = logo
        self.day = today(generated_at)
        self.buf = io.BytesIO()
        self.c = canvas.Canvas(self.buf, pagesize=A4, invariant=1, pageCompression=1)
        self.c.setTitle(f"Invoice {record.invoice_number}".strip())
        self.c.setAuthor(config.COMPANY_NAME)
        self.y = MARGIN
        self.pages = 1

    # ---------- primitives (x, y in mm from top-left) ----------
    def _Y(self, y):
        return (PAGE_H - y) * mm

    def text(self, x, y, s, font="Helvetica", size=9, color=GREY_TEXT, align="left"):
        c = self.c
        c.setFont(font, size)
        c.setFillColor(_rgb(color))
        if align == "center":
            c.drawCentredString(x * mm, self._Y(y), s)
        elif align == "right":
            c.drawRightString(x * mm, self._Y(y), s)
        else:
            c.drawString(x * mm, self._Y(y), s)

    def rect(self, x, y, w, h, fill=None, stroke=None, radius=0, line_w=0.1):
        c = self.c
        if fill: c.setFillColor(_rgb(fill))
        if stroke:
            c.setStrokeColor(_rgb(stroke))
            c.setLineWidth(line_w * mm)
        args = (x * mm, self._Y(y + h), w * mm, h * mm)
        if radius:
            c.roundRect(*args, radius * mm, stroke=1 if stroke else 0, fill=1 if fill else 0)
        else:
            c.rect(*args, stroke=1 if stroke else 0, fill=1 if fill else 0)

    def line(self, x1, y1, x2, y2, color=RULE, line_w=0.2):
        self.c.setStrokeColor(_rgb(color))
        self.c.setLineWidth(line_w * mm)
        self.c.line(x1 * mm, self._Y(y1), x2 * mm, self._Y(y2))

    # ---------- pages ----------
    def new_page(self):
        self.watermark()
        self.c.showPage()
        self.pages += 1
        self.y = MARGIN

    def watermark(self):
        c = self.c
        c.saveState()
        c.setFillColor(_rgb(WATERMARK))
        c.setFillAlpha(0.1)
        c.setFont("Helvetica-Bold", 60)
        c.translate(PAGE_W / 2 * mm, PAGE_H / 2 * mm)
        c.rotate(45)
        c.drawCentredString(0, 0, config.COMPANY_NAME)
        c.restoreState()
        c.setFillAlpha(1)

    # ---------- stages ----------
    def header(self):
        r = self.record
        self.rect(0, 0, PAGE_W, HEADER_H, fill=NAVY)
        self.draw_logo()

        self.text(PAGE_W / 2, 18, config.COMPANY_NAME, "Helvetica-Bold", 16, (255, 255, 255), "center")
        self.text(PAGE_W / 2, 26, config.COMPANY_TAGLINE, "Helvetica", 10, (200, 220, 255), "center")

        rx = PAGE_W - MARGIN - 10
        self.text(rx, 10, "INVOICE", "Helvetica-Bold", 12, (255, 255, 255), "right")
        self.text(rx, 18, _fit(f"Invoice No: {r.invoice_number or 'INV-0000'}", 60), "Helvetica", 9, (255, 255, 255), "right")
        self.text(rx, 23, f"Date: {_fmt_date(r.issue_date or self.day)}", "Helvetica", 9, (255, 255, 255), "right")
        self.y = PANEL_TOP

    def draw_logo(self):
        c = self.c
        c.setFillColor(colors.white)
        c.circle(LOGO_CX * mm, self._Y(LOGO_CY), LOGO_R * mm, stroke=0, fill=1)
        if self.logo:
            try:
                img = ImageReader(io.BytesIO(self.logo))
                side = 2 * LOGO_R
                c.drawImage(img, (LOGO_CX - LOGO_R) * mm, self._Y(LOGO_CY + LOGO_R),
                            side * mm, side * mm, preserveAspectRatio=True, mask="auto")
                return
            except Exception as e:
                log.warning("Logo draw skipped: %s", e)
        self.text_badge()

    def text_badge(self):
        c = self.c
        c.setFillColor(colors.white)
        c.setStrokeColor(_rgb(NAVY))
        c.setLineWidth(0.6 * mm)
        c.circle(LOGO_CX * mm, self._Y(LOGO_CY), LOGO_R * mm, stroke=1, fill=1)
        self.text(LOGO_CX, LOGO_CY + 2, company_initials(config.COMPANY_NAME),
                  "Helvetica-Bold", 16, NAVY, "center")

    def parties(self):
        r = self.record
        y = self.y
        col_w = (CONTENT_W - PANEL_GAP) / 2
        inner_w = col_w - 20

        # bill from
        x = MARGIN
        self.rect(x, y, col_w, PANEL_H, fill=PANEL_BG, stroke=RULE, radius=3)
        self.text(x + 10, y + 8, "BILL FROM", "Helvetica-Bold", 10, INK)
        from_lines = [config.COMPANY_NAME] + list(config.COMPANY_ADDRESS_LINES)
        for i, ln in enumerate(from_lines):
            by = y + 13 + i * 4
            if by > y + PANEL_H - 3: break
            self.text(x + 10, by, _fit(ln, inner_w), "Helvetica", 9, GREY_TEXT)

        # bill to: address wraps, then clips so phone/email always fit the fixed panel
        x = MARGIN + col_w + PANEL_GAP
        self.rect(x, y, col_w, PANEL_H, fill=PANEL_BG, stroke=RULE, radius=3)
        self.text(x + 10, y + 8, "BILL TO", "Helvetica-Bold", 10, INK)
        self.text(x + 10, y + 13, _fit(r.customer_name or "Customer Name", inner_w, "Helvetica-Bold", 9),
                  "Helvetica-Bold", 9, GREY_TEXT)

        contacts = []
        if r.customer_phone: contacts.append(f"Phone: {r.customer_phone}")
        if r.customer_email: contacts.append(f"Email: {r.customer_email}")

        addr_top, addr_step, contact_step = 17.5, 3.8, 4
        last_baseline = PANEL_H - 3
        contact_h = (0.7 + len(contacts) * contact_step) if contacts else 0
        max_addr = 1 + int((last_baseline - addr_top - contact_h) // addr_step)
        addr = _wrap(r.customer_address or "Address not provided", inner_w)
        addr = _clip_lines(addr, max_addr, inner_w)
        for i, ln in enumerate(addr):
            self.text(x + 10, y + addr_top + i * addr_step, ln, "Helvetica", 9, GREY_TEXT)
        cy = y + addr_top + (len(addr) - 1) * addr_step + contact_step + 0.7
        for ln in contacts:
            self.text(x + 10, cy, _fit(ln, inner_w), "Helvetica", 9, GREY_TEXT)
            cy += contact_step

        self.y = y + PANEL_H + 1

    def table_head(self):
        x = MARGIN
        y = self.y
        for title, w, _ in COLS:
            self.rect(x, y, w, HEAD_ROW_H, fill=BLUE, stroke=RULE)
            self.text(x + w / 2, y + 6, title, "Helvetica-Bold", 9, (255, 255, 255), "center")
            x += w
        self.y += HEAD_ROW_H

    def _desc_room(self):
        """Description lines that still fit in a row on the current page."""
        free = BODY_BOTTOM - self.y - 2 * CELL_PAD_Y
        return max(int(free // CELL_LINE_H), 0)

    def table_row(self, i, cells):
        row_h = 2 * CELL_PAD_Y + max(len(lines) for lines in cells) * CELL_LINE_H
        x = MARGIN
        for (title, w, align), lines in zip(COLS, cells):
            self.rect(x, self.y, w, row_h, fill=ROW_ALT if i % 2 else (255, 255, 255), stroke=RULE)
            tx = {"left": x + CELL_PAD_X, "center": x + w / 2, "right": x + w - CELL_PAD_X}[align]
            for j, ln in enumerate(lines):
                self.text(tx, self.y + CELL_PAD_Y + 3 + j * CELL_LINE_H, ln, "Helvetica", 9, GREY_TEXT, align)
            x += w
        self.y += row_h

    def table(self):
        self.table_head()
        desc_w = COLS[1][1] - 2 * CELL_PAD_X
        for i, item in enumerate(self.record.items):
            cells = [
                [str(i + 1)],
                _wrap(item.product_description or "Product", desc_w),
                [item.unit_of_measure or "PCS"],
                [format_quantity(item.quantity)],
                [format_money(item.unit_price)],
                [format_money(item.line_total)],
            ]
            # a row that fits on a fresh page moves whole; a taller one continues over pages
            while True:
                desc, room = cells[1], self._desc_room()
                if len(desc) <= room:
                    self.table_row(i, cells)
                    break
                if room < 1 or len(desc) <= PAGE_DESC_LINES:
                    self.new_page()
                    self.table_head()
                    continue
                self.table_row(i, [desc[:room] if k == 1 else c for k, c in enumerate(cells)])
                cells = [desc[room:] if k == 1 else [] for k in range(len(COLS))]
        self.y += 1

    def calc_rows(self):
        """(label, value, style) rows actually rendered; Subtotal, Grand Total and NET TOTAL always."""
        r, t = self.record, self.totals
        rows = [("Subtotal", to_number(t.subtotal), "normal")]
        sc = to_number(t.service_charge_amount)
        if sc > 0:
            label = f"Service Charge ({_fmt_pct(r.service_charge.value)}%)" if r.service_charge.is_percentage else "Service Charge"
            rows.append((label, sc, "normal"))
        vat = to_number(t.vat_amount)
        if vat > 0:
            label = f"VAT ({_fmt_pct(r.vat.value)}%)" if r.vat.is_percentage else "VAT"
            rows.append((label, vat, "normal"))
        rows.append(("Grand Total", to_number(t.grand_total), "bold"))
        discount = to_number(t.special_discount)
        if discount > 0:
            rows.append(("Special Discount", -discount, "discount"))
        rows.append(("NET TOTAL", to_number(t.net_total), "total"))
        return rows

    def summary_metrics(self, top):
        """Vertical positions of the summary block starting at `top`."""
        rows = self.calc_rows()
        calc_h = len(rows) * CALC_ROW_H + CALC_PAD
        if calc_h <= 0:
            raise LayoutError(f"calculations box height {calc_h}")
        calc_bottom = top + calc_h
        words = _wrap(amount_in_words(self.totals.net_total), CONTENT_W - 30)
        words_y = calc_bottom + 3
        cursor = words_y + len(words) * WORDS_LINE_H
        notes = []
        if self.record.notes:
            notes = _clip_lines(_wrap(self.record.notes, CONTENT_W - 30), NOTES_MAX_LINES, CONTENT_W - 30)
            cursor += 4 + len(notes) * NOTES_LINE_H
        sig_y = max(cursor + 30, calc_bottom + 30)
        footer_y = sig_y + 25
        return {
            "rows": rows, "calc_h": calc_h, "calc_bottom": calc_bottom,
            "words": words, "words_y": words_y, "notes": notes, "notes_y": words_y + len(words) * WORDS_LINE_H + 4,
            "sig_y": sig_y, "footer_y": footer_y, "bottom": footer_y + 3,
        }

    def summary(self):
        m = self.summary_metrics(self.y)
        if m["bottom"] > BOTTOM_LIMIT and self.y > MARGIN:
            self.new_page()
            m = self.summary_metrics(self.y)
        top = self.y
        self.status_badge(top)
        self.calc_box(top, m)
        self.amount_words(m)
        self.notes(m)
        self.signatures(m["sig_y"])
        self.footer(m["footer_y"])
        self.y = m["bottom"]

    def status_badge(self, top):
        r = self.record
        ly = top + 5
        due = f"Due Date: {_fmt_date(r.due_date)}" if r.due_date else "Due Date: Upon Receipt"
        self.text(MARGIN, ly, due, "Helvetica-Bold", 9, GREY_TEXT)

        status = derive_status(r.payment_status, r.due_date, self.day)
        color = STATUS_COLORS.get(status, STATUS_COLORS["pending"])
        label = STATUS_LABELS.get(status, status.upper())
        by = ly + 6
        self.rect(MARGIN, by, BADGE_W, BADGE_H, fill=color, radius=BADGE_H / 2)
        self.text(MARGIN + BADGE_W / 2, by + 5, label, "Helvetica-Bold", 8.5, (255, 255, 255), "center")

    def calc_box(self, top, m):
        x = PAGE_W - MARGIN - CALC_W
        self.rect(x, top, CALC_W, m["calc_h"], fill=(255, 255, 255), stroke=RULE, radius=3)
        cy = top + 7
        for label, value, style in m["rows"]:
            size, font, color = 9, "Helvetica", GREY_TEXT
            if style == "bold":
                font, color = "Helvetica-Bold", (50, 50, 50)
                self.line(x + 5, cy - 3.5, x + CALC_W - 5, cy - 3.5, (150, 150, 150), 0.2)
            elif style == "discount":
                color = DISCOUNT
            elif style == "total":
                size, font, color = 11, "Helvetica-Bold", NAVY
                self.line(x + 5, cy - 4.5, x + CALC_W - 5, cy - 4.5, (150, 150, 150), 0.3)
            shown = f"- {format_money(-value)}" if style == "discount" else format_money(value)
            self.text(x + 6, cy, label, font, size, color)
            self.text(x + CALC_W - 6, cy, shown, font, size, color, "right")
            cy += CALC_ROW_H

    def amount_words(self, m):
        y = m["words_y"]
        self.text(MARGIN, y, "Amount in Words:", "Helvetica-Bold", 9, (55, 55, 55))
        for i, ln in enumerate(m["words"]):
            self.text(MARGIN + 30, y + i * WORDS_LINE_H, ln, "Helvetica", 9, GREY_TEXT)

    def notes(self, m):
        if not m["notes"]:
            return
        y = m["notes_y"]
        self.text(MARGIN, y, "Notes:", "Helvetica-Bold", 9, (55, 55, 55))
        for i, ln in enumerate(m["notes"]):
            self.text(MARGIN + 30, y + i * NOTES_LINE_H, ln, "Helvetica", 9, GREY_TEXT)

    def signatures(self, sig_y):
        for cx, caption, title in (
            (MARGIN + 55, "All items supplied as receiver order", "Supplier Signature"),
            (155, "All items received as my order", "Customer Signature & Date"),
        ):
            self.text(cx, sig_y - 15, caption, "Helvetica-Oblique", 8, (120, 120, 120), "center")
            self.line(cx - 30, sig_y, cx + 30, sig_y, (150, 150, 150), 0.3)
            self.text(cx, sig_y + 8, title, "Helvetica-Bold", 10, INK, "center")

    def footer(self, footer_y):
        self.text(PAGE_W / 2, footer_y, config.THANK_YOU_TEXT, "Helvetica-Oblique", 11, BLUE, "center")
        self.line(MARGIN, footer_y + 3, PAGE_W - MARGIN, footer_y + 3, BLUE, 0.3)

    def render(self):
        self.header()
        self.parties()
        self.table()
        self.summary()
        self.watermark()
        self.c.showPage()
        self.c.save()
        return self.buf.getvalue()


def render_invoice_pdf(record, totals=None, logo=_RESOLVE, generated_at=None):
    """Lay out one invoice and return the PDF bytes.

    `record` may be an InvoiceRecord or the raw JSON dict; `totals` a
    TotalsResult, a dict, or None (computed from the record). By default the
    logo is resolved from config.LOGO_SOURCES; pass PNG bytes to skip the
    lookup or None to draw the text badge directly.
    """
    if not isinstance(record, InvoiceRecord):
        record = InvoiceRecord.from_dict(record)
    totals = _coerce_totals(record, totals)
    if logo is _RESOLVE:
        logo = resolve_logo()
    layout = InvoiceLayout(record, totals, logo=logo, generated_at=generated_at)
    data = layout.render()
    log.info("Rendered invoice %s (%d page%s, %d bytes)",
             record.invoice_number, layout.pages, "" if layout.pages == 1 else "s", len(data))
    return data
