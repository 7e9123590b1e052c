import math
import re
from typing import Any, Dict, List
from urllib.parse import urlparse

REQUIRED_STR_FIELDS = ["title", "category", "description", "location", "contact", "posterType"]
OPTIONAL_STR_FIELDS = [
    "currency",
    "sampleLink",
    "portfolioLink",
    "media",
    "mediaType",
]

DESCRIPTION_MIN_LENGTH = 20
DESCRIPTION_MAX_LENGTH = 1000
SKILLS_MIN_LENGTH = 20
ALLOWED_MEDIA_PREFIXES = ("image/", "video/")

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^\+?[\d\s\-()]{7,}$")
_HTTP_PREFIX_RE = re.compile(r"^https?://", re.IGNORECASE)

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
}


def _as_text(v: Any) -> str:
    return "" if v is None else str(v)


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def escape_html(value: Any) -> str:
    return "".join(_HTML_ESCAPES.get(ch, ch) for ch in _as_text(value))


def is_email(value: Any) -> bool:
    return bool(_EMAIL_RE.match(_as_text(value).strip()))


def is_phone(value: Any) -> bool:
    return bool(_PHONE_RE.match(_as_text(value).strip()))


def safe_http_url(value: Any) -> str:
    """Return the URL if it is an absolute http(s) URL, else an empty string."""
    raw = _as_text(value).strip()
    if not raw:
        return ""
    try:
        p = urlparse(raw)
    except ValueError:
        return ""
    if p.scheme.lower() in ("http", "https") and p.netloc:
        return raw
    return ""


def _is_valid_price(v: Any) -> bool:
    if isinstance(v, bool) or v is None:
        return False
    if isinstance(v, str) and not v.strip():
        return False
    try:
        price = float(v)
    except (TypeError, ValueError, OverflowError):
        return False
    return math.isfinite(price) and price >= 0


def validate_posting(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    Mirrors the checks the post-a-job form applies before a record is created.
    """
    errors: List[str] = []

    for f in REQUIRED_STR_FIELDS:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in OPTIONAL_STR_FIELDS:
        if f in data and data[f] is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    if "price" not in data:
        errors.append("Missing required field: price")
    elif not _is_valid_price(data["price"]):
        errors.append("Field 'price' must be a non-negative number")

    description = data.get("description")
    if _is_non_empty_str(description):
        length = len(description.strip())
        if length < DESCRIPTION_MIN_LENGTH:
            errors.append(f"Field 'description' must be at least {DESCRIPTION_MIN_LENGTH} characters")
        elif length > DESCRIPTION_MAX_LENGTH:
            errors.append(f"Field 'description' must be at most {DESCRIPTION_MAX_LENGTH} characters")

    contact = data.get("contact")
    if _is_non_empty_str(contact) and not (is_email(contact) or is_phone(contact)):
        errors.append("Field 'contact' must be a valid email or phone number")

    if "isOnline" in data and not isinstance(data["isOnline"], bool):
        errors.append("Field 'isOnline' must be a boolean if provided")

    sample_link = _as_text(data.get("sampleLink")).strip()
    if data.get("isOnline") is True and not sample_link:
        errors.append("Field 'sampleLink' is required for online jobs")

    for f in ("sampleLink", "portfolioLink"):
        link = _as_text(data.get(f)).strip()
        if link and not _HTTP_PREFIX_RE.match(link):
            errors.append(f"Field '{f}' must start with http:// or https://")

    if _as_text(data.get("media")).strip():
        media_type = _as_text(data.get("mediaType")).strip().lower()
        if not media_type.startswith(ALLOWED_MEDIA_PREFIXES):
            errors.append("Field 'mediaType' must be an image or video MIME type when media is attached")

    return errors


def validate_feedback(name: str, email: str, message: str) -> List[str]:
    errors: List[str] = []
    if not _is_non_empty_str(message):
        errors.append("Please enter your feedback.")
    if _is_non_empty_str(email) and not is_email(email):
        errors.append("Please enter a valid email address.")
    return errors


def validate_seeker_profile(name: str, location: str, skills: str, contact: str) -> List[str]:
    errors: List[str] = []
    if not all(_is_non_empty_str(v) for v in (name, location, skills, contact)):
        errors.append("Please complete all fields.")
        return errors
    if len(skills.strip()) < SKILLS_MIN_LENGTH:
        errors.append(f"Please add at least {SKILLS_MIN_LENGTH} characters about your skills.")
    if not is_email(contact) and not is_phone(contact):
        errors.append("Contact must be a valid email or phone number.")
    return errors
