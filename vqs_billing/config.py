# Config from ENV
# - Secrets: SPREADSHEET_ID, GOOGLE_SA_JSON, SESSION_SECRET
# - Optional: SAVE_DIR (server copy of every generated PDF)
# - Policy knobs: NET_TOTAL_FLOOR, REQUIRE_POSITIVE_PRICE, DUE_SOON_DAYS

import os, json
from zoneinfo import ZoneInfo


def _env_float(name, default=None):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name, default):
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_bool(name, default=False):
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_list(name, default):
    """JSON list or '|'-separated string -> list of non-empty strings."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return list(default)
    if raw.startswith("["):
        try:
            vals = json.loads(raw)
            return [str(v).strip() for v in vals if str(v).strip()]
        except (ValueError, TypeError):
            return list(default)
    return [p.strip() for p in raw.split("|") if p.strip()]


# ==============================
# Google Sheets
# ==============================
SPREADSHEET_ID   = os.getenv("SPREADSHEET_ID")        # required for the sheet store
GOOGLE_SA_JSON   = os.getenv("GOOGLE_SA_JSON")        # service account JSON (single env var)
INVOICE_TAB_NAME = os.getenv("INVOICE_TAB_NAME", "Invoices")
SHEETS_SCOPES    = ["https://www.googleapis.com/auth/spreadsheets"]

SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me")
SAVE_DIR       = os.getenv("SAVE_DIR", "").strip()
LOG_LEVEL      = os.getenv("LOG_LEVEL", "INFO").upper()

# ==============================
# Locale
# ==============================
APP_TZ          = ZoneInfo(os.getenv("APP_TZ", "Asia/Dhaka"))
CURRENCY_PREFIX = os.getenv("CURRENCY_PREFIX", "Tk")
NUMBER_GROUPING = os.getenv("NUMBER_GROUPING", "south_asian")   # or "western"

# ==============================
# Business policy
# ==============================
NET_TOTAL_FLOOR        = _env_float("NET_TOTAL_FLOOR")          # None -> net total may go negative
REQUIRE_POSITIVE_PRICE = _env_bool("REQUIRE_POSITIVE_PRICE")    # False -> zero price allowed
DUE_SOON_DAYS          = _env_int("DUE_SOON_DAYS", 3)
DEFAULT_DUE_DAYS       = _env_int("DEFAULT_DUE_DAYS", 15)

# ==============================
# Branding
# ==============================
COMPANY_NAME    = os.getenv("COMPANY_NAME", "VQS")
COMPANY_TAGLINE = os.getenv("COMPANY_TAGLINE", "VALUE | QUALITY | SERVICE")
COMPANY_ADDRESS_LINES = _env_list("COMPANY_ADDRESS_LINES", [
    "256, Old Police Quarter",
    "Shahid Shahidullah Kayser Sarak",
    "Link Shahid Wayez Uddin Road",
    "Feni City, Feni-3900, Bangladesh",
    "Cell Phone: 01842956166",
    "Email: tipucbc@gmail.com",
])
THANK_YOU_TEXT = os.getenv("THANK_YOU_TEXT", "Thank you for your business!")

# Logo candidates, tried in order: local path, data:image URI or http(s) URL.
# e.g. LOGO_SOURCES='["static/VQS.jpeg","https://i.postimg.cc/xxxx/vqs.jpg"]'
_PKG_DIR = os.path.dirname(os.path.abspath(__file__))
LOGO_SOURCES = _env_list("LOGO_SOURCES", [
    os.path.join(_PKG_DIR, "static", "VQS.jpeg"),
    os.path.join(_PKG_DIR, "static", "VQS.png"),
    os.path.join("static", "VQS.jpeg"),
])
LOGO_TIMEOUT = _env_float("LOGO_TIMEOUT", 8.0)
