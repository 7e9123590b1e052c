"""
Key-value repositories.

Every piece of persisted state is a JSON text blob stored under a string
key. Three interchangeable backends share one interface:

- InMemoryRepository: dict-backed, used by tests
- JsonFileRepository: a single JSON object file on disk
- SQLiteRepository: a SQLite table accessed through SQLAlchemy

Each backend enforces an optional capacity quota counted in characters
(len(key) + len(value) summed over every entry). A write that would exceed
it raises QuotaExceededError and leaves the stored data untouched.
"""

import errno
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import KeyValueEntry, init_database

DEFAULT_QUOTA_CHARS = 5 * 1024 * 1024
MEMORY_LOCATION = ":memory:"


class RepositoryError(Exception):
    """Raised when the storage backend cannot be read or written."""
    pass


class QuotaExceededError(RepositoryError):
    """Raised when a write would push the store past its capacity quota."""
    pass


def _entry_size(key: str, value: str) -> int:
    return len(key) + len(value)


class Repository(ABC):
    """Storage capability injected into every store."""

    def __init__(self, quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS):
        self.quota_chars = quota_chars

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored text for key, or None when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return all stored keys."""

    def _check_quota(self, used_by_others: int, key: str, value: str) -> None:
        if self.quota_chars is None:
            return
        needed = used_by_others + _entry_size(key, value)
        if needed > self.quota_chars:
            raise QuotaExceededError(
                f"Writing '{key}' needs {needed} chars, quota is {self.quota_chars}"
            )


class InMemoryRepository(Repository):
    def __init__(self, initial: Optional[Dict[str, str]] = None, quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS):
        super().__init__(quota_chars)
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        used = sum(_entry_size(k, v) for k, v in self._data.items() if k != key)
        self._check_quota(used, key, value)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class JsonFileRepository(Repository):
    """All keys in one JSON object file. A missing, empty or corrupt file reads as empty."""

    def __init__(self, path: Path, quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS):
        super().__init__(quota_chars)
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                content = f.read().strip()
        except OSError as e:
            raise RepositoryError(f"Cannot read {self.path}: {e}") from e
        if not content:
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            return {}
        if not isinstance(data, dict):
            return {}
        return {
            str(k): v if isinstance(v, str) else json.dumps(v, ensure_ascii=False)
            for k, v in data.items()
        }

    def _save(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            if e.errno in (errno.ENOSPC, errno.EDQUOT):
                raise QuotaExceededError(f"No space left writing {self.path}") from e
            raise RepositoryError(f"Cannot write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        used = sum(_entry_size(k, v) for k, v in data.items() if k != key)
        self._check_quota(used, key, value)
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def keys(self) -> List[str]:
        return list(self._load().keys())


class SQLiteRepository(Repository):
    """Keys stored as rows of the key_value table."""

    def __init__(self, db_path: Path, quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS):
        super().__init__(quota_chars)
        self.db_path = Path(db_path)
        try:
            engine = init_database(self.db_path)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Cannot open database {self.db_path}: {e}") from e
        self._Session = sessionmaker(bind=engine)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._Session() as session:
                entry = session.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as e:
            raise RepositoryError(f"Cannot read '{key}': {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._Session.begin() as session:
                if self.quota_chars is not None:
                    used = (
                        session.query(
                            func.coalesce(
                                func.sum(func.length(KeyValueEntry.key) + func.length(KeyValueEntry.value)),
                                0,
                            )
                        )
                        .filter(KeyValueEntry.key != key)
                        .scalar()
                    )
                    self._check_quota(int(used), key, value)
                entry = session.get(KeyValueEntry, key)
                if entry is None:
                    session.add(KeyValueEntry(key=key, value=value))
                else:
                    entry.value = value
        except OperationalError as e:
            # SQLITE_FULL surfaces as "database or disk is full"
            if "full" in str(e.orig).lower():
                raise QuotaExceededError(f"Database full writing '{key}'") from e
            raise RepositoryError(f"Cannot write '{key}': {e}") from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Cannot write '{key}': {e}") from e

    def remove(self, key: str) -> None:
        try:
            with self._Session.begin() as session:
                session.query(KeyValueEntry).filter_by(key=key).delete()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Cannot remove '{key}': {e}") from e

    def keys(self) -> List[str]:
        try:
            with self._Session() as session:
                return [row.key for row in session.query(KeyValueEntry.key).order_by(KeyValueEntry.key)]
        except SQLAlchemyError as e:
            raise RepositoryError(f"Cannot list keys: {e}") from e


def open_repository(location: str, quota_chars: Optional[int] = DEFAULT_QUOTA_CHARS) -> Repository:
    """
    Open the repository for a configured location.

    ":memory:" gives an in-memory store, a path ending in .json a JSON-file
    store, and any other path a SQLite database.
    """
    if location == MEMORY_LOCATION:
        return InMemoryRepository(quota_chars=quota_chars)
    path = Path(location)
    if path.suffix.lower() == ".json":
        return JsonFileRepository(path, quota_chars=quota_chars)
    return SQLiteRepository(path, quota_chars=quota_chars)


def copy_repository(source: Repository, target: Repository, overwrite: bool = False) -> Dict[str, int]:
    """
    Copy every key from source into target.

    Keys already present in target are skipped unless overwrite is set.

    Returns:
        Counts of copied and skipped keys
    """
    copied = skipped = 0
    existing = set(target.keys())
    for key in source.keys():
        if key in existing and not overwrite:
            skipped += 1
            continue
        value = source.get(key)
        if value is None:
            skipped += 1
            continue
        target.set(key, value)
        copied += 1
    return {"copied": copied, "skipped": skipped}
