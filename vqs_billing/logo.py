# Company logo for the PDF header.
#
# Candidates come from config.LOGO_SOURCES and are tried in order:
#   local path | data:image/...;base64 URI | http(s) URL (share links normalized)
# Resolver states: pending -> loaded(png bytes) | exhausted (caller draws the text badge)

import io, os, re, base64, logging
from dataclasses import dataclass
from typing import Optional

import requests
from PIL import Image, ImageDraw, ImageOps

from . import config

log = logging.getLogger(__name__)

PENDING, LOADED, EXHAUSTED = "pending", "loaded", "exhausted"
LOGO_PX = 256

# HTTP session for remote logos
HTTP = requests.Session()
HTTP.headers.update({
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome Safari"
})


class LogoError(Exception):
    pass


@dataclass
class LogoAttempt:
    source: str
    ok: bool
    error: Optional[str] = None


def normalize_remote_url(u):
    u = u.strip()
    # Google Drive share -> direct
    if u.startswith("https://drive.google.com/file/d/"):
        m = re.search(r"/file/d/([^/]+)/", u)
        if m: return f"https://drive.google.com/uc?export=download&id={m.group(1)}"
    # Dropbox share -> raw
    if "dropbox.com" in u and "raw=1" not in u and "dl=1" not in u:
        sep = "&" if "?" in u else "?"
        u = u + sep + "raw=1"
    # Imgur page -> direct
    if "imgur.com" in u and "i.imgur.com" not in u:
        m = re.search(r"imgur\.com/([^./?]+)$", u)
        if m: return f"https://i.imgur.com/{m.group(1)}.jpg"
        u = u.replace("://imgur.com/", "://i.imgur.com/")
    return u


def resolve_og_image(page_url, http=None, timeout=None):
    http = http or HTTP
    try:
        r = http.get(page_url, timeout=timeout or config.LOGO_TIMEOUT)
        r.raise_for_status()
    except requests.RequestException as e:
        log.warning("og:image lookup skipped: %s", e)
        return None
    m = re.search(r'<meta[^>]+property=["\']og:image["\'][^>]+content=["\']([^"\']+)["\']', r.text, re.I)
    return m.group(1) if m else None


def circular_crop(raw, size=LOGO_PX):
    """Centre-crop to a square and mask to a circle -> PNG bytes with alpha."""
    with Image.open(io.BytesIO(raw)) as src:
        img = ImageOps.fit(src.convert("RGBA"), (size, size))
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    img.putalpha(mask)
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


class LogoResolver:
    def __init__(self, sources=None, http=None, timeout=None, size=LOGO_PX):
        self.sources = list(config.LOGO_SOURCES if sources is None else sources)
        self.http = http or HTTP
        self.timeout = timeout or config.LOGO_TIMEOUT
        self.size = size
        self.state = PENDING
        self.image = None
        self.attempts = []

    def resolve(self):
        """PNG bytes of the first candidate that loads, None once every candidate failed."""
        if self.state != PENDING:
            return self.image
        for src in self.sources:
            try:
                image = circular_crop(self._fetch(src), self.size)
            except Exception as e:
                self.attempts.append(LogoAttempt(src, False, str(e)))
                log.warning("Logo skipped (%s): %s", src[:80], e)
                continue
            self.attempts.append(LogoAttempt(src, True))
            self.state, self.image = LOADED, image
            return image
        self.state = EXHAUSTED
        log.info("No logo candidate loaded, using text badge")
        return None

    def _fetch(self, src):
        u = (src or "").strip()
        if not u:
            raise LogoError("empty source")

        if u.startswith("data:image/"):
            _, b64 = u.split(",", 1)
            return base64.b64decode(b64)

        if u.startswith("http://") or u.startswith("https://"):
            u = normalize_remote_url(u)
            looks_like_page = not re.search(r"\.(jpg|jpeg|png|webp|gif)(\?|$)", u, re.I)
            if looks_like_page:
                og = resolve_og_image(u, self.http, self.timeout)
                if og: u = og
            r = self.http.get(u, timeout=self.timeout)
            r.raise_for_status()
            ctype = r.headers.get("Content-Type", "").lower()
            if not (ctype.startswith("image/") or ctype.startswith("application/octet-stream")):
                raise LogoError(f"not an image: {ctype or 'unknown content type'}")
            return r.content

        if os.path.exists(u):
            with open(u, "rb") as f:
                return f.read()
        raise LogoError("file not found")


def resolve_logo(sources=None):
    return LogoResolver(sources).resolve()
