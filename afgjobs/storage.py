"""
Job record store.

Owns the canonical, newest-first list of job postings kept under the
current jobs key, the one-time migration from the legacy key, and the
ownership-checked create/delete operations.
"""

import copy
import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .logger import StructuredLogger, get_logger
from .normalize import epoch_millis, format_timestamp, identity_key, is_job_owner
from .repository import QuotaExceededError, Repository, RepositoryError

JOBS_KEY = "afg_jobs_data"
LEGACY_JOBS_KEY = "jobs"
USERS_KEY = "afg_users"
CURRENT_USER_KEY = "afg_current_user"
THEME_KEY = "afg_theme"
SETTINGS_KEY = "afg_settings"
FEEDBACK_KEY = "afg_feedback"
NEWSLETTER_KEY = "afg_newsletter"
SEEKER_POSTS_KEY = "afg_job_seeker_posts"

DEFAULT_JOBS: List[Dict[str, Any]] = [
    {
        "id": -1,
        "title": "Social Media Manager for Local Bakery",
        "category": "Social Media",
        "description": "Create weekly posts, reply to comments, and help improve local visibility on Facebook and Instagram.",
        "location": "Kabul",
        "contact": "bakery.hiring@example.com",
        "posterType": "Business",
        "price": 180,
        "currency": "USD",
        "isOnline": True,
        "sampleLink": "https://example.com/sample-work",
        "portfolioLink": "",
        "media": "",
        "mediaType": "",
        "postedByName": "City Bakery",
        "createdAt": "2026-01-15T09:00:00.000Z",
    },
    {
        "id": -2,
        "title": "Arabic to Dari Translator Needed",
        "category": "Translator",
        "description": "Translate short legal and business documents with clear formatting and accurate terminology.",
        "location": "Herat",
        "contact": "+93 700 123 456",
        "posterType": "Poster",
        "price": 120,
        "currency": "USD",
        "isOnline": True,
        "sampleLink": "https://example.com/translation-sample",
        "portfolioLink": "",
        "media": "",
        "mediaType": "",
        "postedByName": "Hamid",
        "createdAt": "2026-01-10T11:30:00.000Z",
    },
    {
        "id": -3,
        "title": "Part-time Math Tutor (Grade 9-12)",
        "category": "Tutor",
        "description": "Provide three evening sessions per week for high school students. Prior tutoring experience preferred.",
        "location": "Kandahar",
        "contact": "tutor.jobs@example.com",
        "posterType": "Poster",
        "price": 90,
        "currency": "USD",
        "isOnline": False,
        "sampleLink": "",
        "portfolioLink": "",
        "media": "",
        "mediaType": "",
        "postedByName": "Zainab",
        "createdAt": "2026-01-05T08:45:00.000Z",
    },
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def read_json(repository: Repository, key: str, fallback: Any) -> Any:
    """Decode the JSON stored under key; missing or corrupt values give fallback."""
    raw = repository.get(key)
    if not raw:
        return fallback
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return fallback


def write_json(repository: Repository, key: str, value: Any) -> None:
    repository.set(key, json.dumps(value, ensure_ascii=False))


def parse_job_list(raw: Optional[str]) -> Tuple[Optional[List[Dict[str, Any]]], Optional[str]]:
    """
    Parse a stored job collection.

    Returns:
        (jobs, None) on success, (None, error message) otherwise.
        A missing value is reported as an error so callers fall through.
    """
    if raw is None or not raw.strip():
        return None, "missing"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return None, f"invalid JSON: {e.msg}"
    if not isinstance(data, list):
        return None, f"expected a list, got {type(data).__name__}"
    if not all(isinstance(item, dict) for item in data):
        return None, "list contains non-object entries"
    return data, None


class JobStore:
    """Durable, newest-first collection of job records."""

    def __init__(
        self,
        repository: Repository,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[StructuredLogger] = None,
    ):
        self.repository = repository
        self.clock = clock
        self.logger = logger or get_logger()

    def load_all(self) -> List[Dict[str, Any]]:
        """
        Return every job, materialising the collection on first use.

        Current data wins; an empty current list is re-seeded; otherwise
        legacy data is copied forward once; otherwise the default jobs are
        written. A storage failure yields an empty list.
        """
        try:
            return self._resolve()
        except RepositoryError as e:
            self.logger.error("Failed to load jobs", error=str(e), error_type=type(e).__name__)
            return []

    def _resolve(self) -> List[Dict[str, Any]]:
        self.logger.record_read()
        raw = self.repository.get(JOBS_KEY)
        jobs, error = parse_job_list(raw)
        if jobs:
            return jobs
        if jobs is not None:
            # Present but emptied: never fall back to legacy data again
            self.logger.info("Job list is empty, restoring defaults")
            return self._seed()
        if raw is not None:
            self.logger.warning("Ignoring unreadable job list", key=JOBS_KEY, error=error)

        legacy_raw = self.repository.get(LEGACY_JOBS_KEY)
        legacy, legacy_error = parse_job_list(legacy_raw)
        if legacy:
            self._persist(legacy)
            self.logger.info("Migrated legacy jobs", count=len(legacy), source=LEGACY_JOBS_KEY)
            self.logger.record_outcome("load", "migrated")
            return legacy
        if legacy_raw is not None and legacy is None:
            self.logger.warning("Ignoring unreadable legacy job list", key=LEGACY_JOBS_KEY, error=legacy_error)

        return self._seed()

    def _seed(self) -> List[Dict[str, Any]]:
        self._persist(DEFAULT_JOBS)
        self.logger.record_outcome("load", "seeded")
        return copy.deepcopy(DEFAULT_JOBS)

    def _persist(self, jobs: List[Dict[str, Any]]) -> None:
        self.logger.record_write_attempt(JOBS_KEY)
        try:
            write_json(self.repository, JOBS_KEY, jobs)
        except RepositoryError as e:
            self.logger.record_write_failure(JOBS_KEY, type(e).__name__)
            raise
        self.logger.record_write_success(JOBS_KEY)

    def get_by_id(self, job_id: Any) -> Optional[Dict[str, Any]]:
        wanted = identity_key(job_id)
        for job in self.load_all():
            if identity_key(job.get("id")) == wanted:
                return job
        return None

    def _next_id(self, jobs: List[Dict[str, Any]], now: datetime) -> int:
        job_id = epoch_millis(now)
        taken = [job.get("id") for job in jobs if isinstance(job.get("id"), int) and not isinstance(job.get("id"), bool)]
        if taken and job_id <= max(taken):
            # Same millisecond as a previous create, or the clock went back
            job_id = max(taken) + 1
        return job_id

    def create(self, job: Dict[str, Any]) -> bool:
        """
        Prepend a new job with a fresh id and createdAt.

        Returns False, leaving stored data as it was, when the write would
        exceed the storage quota or the backend rejects it.
        """
        return self.save_new(job) == "created"

    def save_new(self, job: Dict[str, Any]) -> str:
        """Same as create(), reporting "created", "quota-exceeded" or "storage-error"."""
        jobs = self.load_all()
        now = self.clock()
        record = {
            **job,
            "id": self._next_id(jobs, now),
            "createdAt": format_timestamp(now),
        }
        try:
            self._persist([record] + jobs)
        except QuotaExceededError as e:
            self.logger.warning("Storage is full, job not saved", error=str(e), title=record.get("title"))
            self.logger.record_outcome("create", "quota-exceeded")
            return "quota-exceeded"
        except RepositoryError as e:
            self.logger.error("Failed to save job", error=str(e), title=record.get("title"))
            self.logger.record_outcome("create", "storage-error")
            return "storage-error"
        self.logger.info("Job created", job_id=record["id"], title=record.get("title"))
        self.logger.record_outcome("create", "created")
        return "created"

    def delete_by_id(self, job_id: Any, user: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Delete a job if `user` owns it.

        Returns:
            {"ok": True} or {"ok": False, "reason": "not-found" | "not-owner"}.
            A backend write failure reports "storage-error".
        """
        wanted = identity_key(job_id)
        jobs = self.load_all()
        target = next((job for job in jobs if identity_key(job.get("id")) == wanted), None)
        if target is None:
            self.logger.record_outcome("delete", "not-found")
            return {"ok": False, "reason": "not-found"}
        if not is_job_owner(target, user):
            self.logger.warning("Delete refused: not the owner", job_id=wanted)
            self.logger.record_outcome("delete", "not-owner")
            return {"ok": False, "reason": "not-owner"}

        remaining = [job for job in jobs if job is not target]
        try:
            self._persist(remaining)
        except RepositoryError as e:
            self.logger.error("Failed to save after delete", job_id=wanted, error=str(e))
            self.logger.record_outcome("delete", "storage-error")
            return {"ok": False, "reason": "storage-error"}
        self.logger.info("Job deleted", job_id=wanted)
        self.logger.record_outcome("delete", "deleted")
        return {"ok": True}
