"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Any

from afgjobs.logger import get_logger, reset_logger

# Quiet, file-less logger for every store created during the test run
reset_logger()
get_logger(enable_file=False, enable_console=False)

from afgjobs.app import Board
from afgjobs.repository import InMemoryRepository
from afgjobs.storage import JobStore


class FakeClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def job_store(memory_repo, clock) -> JobStore:
    return JobStore(memory_repo, clock=clock)


@pytest.fixture
def board(memory_repo, clock) -> Board:
    return Board(memory_repo, clock=clock)


@pytest.fixture
def owner() -> Dict[str, Any]:
    return {"id": 1769940000000, "email": "Owner@Example.com", "fullname": "Owner"}


@pytest.fixture
def stranger() -> Dict[str, Any]:
    return {"id": 42, "email": "someone@example.com", "fullname": "Owner"}


@pytest.fixture
def valid_job_posting() -> Dict[str, Any]:
    """Valid post-a-job form input."""
    return {
        "title": "Logo Designer for Cafe",
        "category": "Design",
        "description": "Design a simple logo and menu header for a small cafe in Mazar.",
        "location": "Mazar-i-Sharif",
        "contact": "cafe@example.com",
        "posterType": "Business",
        "price": 75,
        "currency": "USD",
        "isOnline": True,
        "sampleLink": "https://example.com/brief",
        "portfolioLink": "",
    }


@pytest.fixture
def legacy_jobs() -> list:
    return [
        {
            "id": 1700000000000,
            "title": "Legacy Driver",
            "category": "Driver",
            "description": "Old format record that should be migrated forward.",
            "location": "Kabul",
            "price": 50,
            "createdAt": "2025-11-14T22:13:20.000Z",
        }
    ]


@pytest.fixture
def json_store_file(tmp_path, legacy_jobs) -> Path:
    """A JSON-file store holding legacy jobs and a settings record."""
    store_file = tmp_path / "store.json"
    data = {
        "jobs": json.dumps(legacy_jobs),
        "afg_settings": json.dumps({"jobSort": "budget-high"}),
    }
    store_file.write_text(json.dumps(data, indent=2))
    return store_file
