"""
Local identities and the current-user session.

Identity here is locally trusted: signing in only selects a registered user
by email, there are no passwords.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .logger import StructuredLogger, get_logger
from .normalize import email_key, epoch_millis, format_timestamp
from .repository import RepositoryError
from .schema import is_email
from .storage import CURRENT_USER_KEY, USERS_KEY, read_json, utc_now, write_json


class AuthStore:
    """Identity provider backed by the users and current-user keys."""

    def __init__(self, repository, clock: Callable[[], datetime] = utc_now, logger: Optional[StructuredLogger] = None):
        self.repository = repository
        self.clock = clock
        self.logger = logger or get_logger()

    def get_users(self) -> List[Dict[str, Any]]:
        users = read_json(self.repository, USERS_KEY, [])
        if not isinstance(users, list):
            return []
        return [u for u in users if isinstance(u, dict)]

    def find_user(self, email: str) -> Optional[Dict[str, Any]]:
        wanted = email_key(email)
        if not wanted:
            return None
        return next((u for u in self.get_users() if email_key(u.get("email")) == wanted), None)

    def register_user(self, fullname: str, email: str) -> Dict[str, Any]:
        fullname = (fullname or "").strip()
        email = (email or "").strip()
        errors = []
        if not fullname:
            errors.append("Full name is required.")
        if not is_email(email):
            errors.append("Enter a valid email address.")
        if errors:
            return {"status": "validation_error", "errors": errors}
        if self.find_user(email) is not None:
            return {"status": "already-registered"}

        now = self.clock()
        user = {
            "id": epoch_millis(now),
            "fullname": fullname,
            "email": email,
            "createdAt": format_timestamp(now),
        }
        try:
            write_json(self.repository, USERS_KEY, self.get_users() + [user])
        except RepositoryError as e:
            self.logger.error("Failed to register user", error=str(e))
            return {"status": "storage_error"}
        self.logger.info("User registered", user_id=user["id"])
        return {"status": "registered", "user": user}

    def sign_in(self, email: str) -> Optional[Dict[str, Any]]:
        user = self.find_user(email)
        if user is None:
            self.logger.warning("Sign-in for unknown email")
            return None
        write_json(self.repository, CURRENT_USER_KEY, user)
        self.logger.info("Signed in", user_id=user.get("id"))
        return user

    def sign_out(self) -> None:
        self.repository.remove(CURRENT_USER_KEY)

    def get_current_user(self) -> Optional[Dict[str, Any]]:
        user = read_json(self.repository, CURRENT_USER_KEY, None)
        return user if isinstance(user, dict) else None
