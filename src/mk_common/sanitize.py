"""Sanitization and validation helpers for untrusted input.

Pure functions: every value that comes from a buyer, a seller form or a
stored document passes through one of these before it is written back to the
gateway or handed to a view.
"""

import math
import re
from typing import Any

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"'`=/]")

_BLOCKED_URL_PREFIXES = ("javascript:", "vbscript:", "data:text/html")
_ALLOWED_URL_PREFIXES = ("/", "http://", "https://", "data:image/")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGIT_RE = re.compile(r"\D")

DEFAULT_IMAGE_URL = "images/placeholder.png"


def escape_html(value: Any) -> str:
    """Escape HTML special characters; None becomes an empty string."""
    if value is None:
        return ""
    return _HTML_ESCAPE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], str(value))


def sanitize_url(url: Any, fallback: str = DEFAULT_IMAGE_URL) -> str:
    """Return ``url`` if it is safe to embed, otherwise ``fallback``.

    Relative paths, http(s) and image data URLs pass; script-capable schemes
    and unknown schemes are replaced.
    """
    if not url or not isinstance(url, str):
        return fallback
    lowered = url.strip().lower()
    if lowered.startswith(_BLOCKED_URL_PREFIXES):
        return fallback
    if lowered.startswith(_ALLOWED_URL_PREFIXES):
        return url
    if ":" not in lowered:
        return url
    return fallback


def validate_price(value: Any, min_value: float = 0, max_value: float = 10_000_000) -> float | None:
    """Parse a price, rounded to 2 decimal places; None if invalid or out of range."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    if number < min_value or number > max_value:
        return None
    return round(number, 2)


def validate_quantity(value: Any, min_value: int = 0, max_value: int = 1_000_000) -> int | None:
    """Parse an integer quantity/stock value; None if invalid or out of range."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(float(value)) if isinstance(value, (float, str)) else int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if number < min_value or number > max_value:
        return None
    return number


def validate_phone(phone: Any) -> str | None:
    """Normalise a Kenyan mobile number to 2547XXXXXXXX; None if not recognised."""
    if not phone or not isinstance(phone, str):
        return None
    digits = _NON_DIGIT_RE.sub("", phone)
    if len(digits) == 9 and digits.startswith("7"):
        return "254" + digits
    if len(digits) == 10 and digits.startswith("07"):
        return "254" + digits[1:]
    if len(digits) == 12 and digits.startswith("254"):
        return digits
    if len(digits) == 13 and digits.startswith("2547"):
        return digits[1:]
    return None


def validate_email(email: Any) -> str | None:
    """Return the lower-cased address if it looks like an e-mail, else None."""
    if not email or not isinstance(email, str):
        return None
    trimmed = email.strip().lower()
    return trimmed if _EMAIL_RE.match(trimmed) else None


def sanitize_text(text: Any, max_length: int = 1000) -> str:
    """Strip and truncate free text; anything that is not a string becomes ''."""
    if not text or not isinstance(text, str):
        return ""
    return text.strip()[:max_length]
