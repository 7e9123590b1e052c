"""
Auxiliary submissions: feedback, newsletter signups and job-seeker profiles.

Each is a validate-and-append flow over a list stored under its own key.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Optional

from .logger import StructuredLogger, get_logger
from .normalize import epoch_millis, format_timestamp
from .repository import RepositoryError
from .schema import is_email, validate_feedback, validate_seeker_profile
from .storage import FEEDBACK_KEY, NEWSLETTER_KEY, SEEKER_POSTS_KEY, read_json, utc_now, write_json

MAX_SEEKER_POSTS = 200


class SubmissionStore:
    def __init__(self, repository, clock: Callable[[], datetime] = utc_now, logger: Optional[StructuredLogger] = None):
        self.repository = repository
        self.clock = clock
        self.logger = logger or get_logger()

    def _read_list(self, key: str) -> list:
        items = read_json(self.repository, key, [])
        return items if isinstance(items, list) else []

    def _save_list(self, key: str, items: list) -> bool:
        self.logger.record_write_attempt(key)
        try:
            write_json(self.repository, key, items)
        except RepositoryError as e:
            self.logger.record_write_failure(key, type(e).__name__)
            self.logger.error("Failed to save submission", key=key, error=str(e))
            return False
        self.logger.record_write_success(key)
        return True

    def submit_feedback(self, name: str = "", email: str = "", message: str = "") -> Dict[str, Any]:
        name = (name or "").strip() or "Anonymous"
        email = (email or "").strip()
        message = (message or "").strip()
        errors = validate_feedback(name, email, message)
        if errors:
            return {"status": "validation_error", "errors": errors}

        feedback = self._read_list(FEEDBACK_KEY)
        feedback.append({
            "name": name,
            "email": email,
            "message": message,
            "timestamp": format_timestamp(self.clock()),
        })
        if not self._save_list(FEEDBACK_KEY, feedback):
            return {"status": "storage_error"}
        return {"status": "saved"}

    def subscribe_newsletter(self, email: str) -> Dict[str, Any]:
        email = (email or "").strip().lower()
        if not is_email(email):
            return {"status": "validation_error", "errors": ["Enter a valid email address."]}

        entries = self._read_list(NEWSLETTER_KEY)
        if email in entries:
            return {"status": "already-subscribed"}
        entries.append(email)
        if not self._save_list(NEWSLETTER_KEY, entries):
            return {"status": "storage_error"}
        return {"status": "subscribed"}

    def post_seeker_profile(self, name: str, location: str, skills: str, contact: str) -> Dict[str, Any]:
        """Prepend a job-seeker profile; only the newest MAX_SEEKER_POSTS are kept."""
        name, location, skills, contact = (
            (v or "").strip() for v in (name, location, skills, contact)
        )
        errors = validate_seeker_profile(name, location, skills, contact)
        if errors:
            return {"status": "validation_error", "errors": errors}

        now = self.clock()
        profile = {
            "id": epoch_millis(now),
            "name": name,
            "location": location,
            "skills": skills,
            "contact": contact,
            "createdAt": format_timestamp(now),
        }
        posts = [profile] + self._read_list(SEEKER_POSTS_KEY)
        if not self._save_list(SEEKER_POSTS_KEY, posts[:MAX_SEEKER_POSTS]):
            return {"status": "storage_error"}
        return {"status": "saved", "profile": profile}
