import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def identity_key(value: Any) -> str:
    """String form of an id used for equality checks.

    Integral floats render without a trailing ".0" so 17 and 17.0 and "17"
    all compare equal.
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def email_key(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def is_job_owner(job: Optional[Dict[str, Any]], user: Optional[Dict[str, Any]]) -> bool:
    """True if `user` may manage `job`: same poster id, or same email ignoring case.

    A matching display name is never enough.
    """
    if not job or not user:
        return False
    poster_id = identity_key(job.get("posterId"))
    user_id = identity_key(user.get("id"))
    if poster_id and user_id and poster_id == user_id:
        return True
    posted_by = email_key(job.get("postedBy"))
    user_email = email_key(user.get("email"))
    if posted_by and user_email and posted_by == user_email:
        return True
    return False


def coerce_price(value: Any) -> float:
    """Numeric price for sorting. Missing, non-numeric and non-finite values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(price):
        return 0.0
    return price


def parse_timestamp(value: Any) -> float:
    """
    Epoch seconds for a createdAt value.

    ISO-8601 strings (with or without a trailing Z) and epoch milliseconds
    are accepted. Naive datetimes are read as UTC. Anything unparsable
    returns 0.0, the epoch.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            seconds = float(value) / 1000.0
        except OverflowError:
            return 0.0
        return seconds if math.isfinite(seconds) else 0.0
    text = str(value).strip()
    if not text:
        return 0.0
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def format_timestamp(dt: datetime) -> str:
    """Render an aware datetime as YYYY-MM-DDTHH:MM:SS.mmmZ in UTC."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def epoch_millis(dt: datetime) -> int:
    return (dt.astimezone(timezone.utc) - _EPOCH) // timedelta(milliseconds=1)
