"""
Pytest configuration and shared fixtures.
"""

import pytest
import json
from pathlib import Path
from typing import Dict, Any, List

from jobtracker.logger import StructuredLogger, reset_logger
from jobtracker.storage import JsonFileSlot
from jobtracker.store import JobStore


class FakeClock:
    """Returns a strictly increasing timestamp on every call."""

    def __init__(self, start: int = 0):
        self.ticks = start

    def __call__(self) -> str:
        self.ticks += 1
        minutes, seconds = divmod(self.ticks, 60)
        return f"2024-06-01T10:{minutes:02d}:{seconds:02d}.000Z"


class CountingIds:
    def __init__(self, prefix: str = "job"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


@pytest.fixture(autouse=True)
def fresh_global_logger():
    """Keep the process-wide logger from leaking between tests."""
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def quiet_logger(tmp_path) -> StructuredLogger:
    logger = StructuredLogger(
        name="jobtracker-test",
        level="DEBUG",
        log_dir=tmp_path / "logs",
        enable_console=False,
    )
    yield logger
    logger.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ids() -> CountingIds:
    return CountingIds()


@pytest.fixture
def store_path(tmp_path) -> Path:
    return tmp_path / "data" / "jobs.json"


@pytest.fixture
def make_store(store_path, clock, ids, quiet_logger):
    """Build a JobStore over the temp JSON file (reloads what is on disk)."""
    def _make(path: Path = None) -> JobStore:
        return JobStore(
            JsonFileSlot(path or store_path),
            clock=clock,
            id_factory=ids,
            logger=quiet_logger,
        )
    return _make


@pytest.fixture
def store(make_store) -> JobStore:
    return make_store()


@pytest.fixture
def valid_job_fields() -> Dict[str, Any]:
    """Fields for a new job, as a form would submit them."""
    return {
        "companyName": "Acme Corp",
        "jobTitle": "Software Engineer",
        "status": "Applied",
        "appliedDate": "2024-01-15",
        "location": "Remote",
        "notes": "Referred by Sam",
    }


@pytest.fixture
def sample_jobs() -> List[Dict[str, Any]]:
    """Stored records with ids and timestamps."""
    return [
        {
            "id": "a1",
            "companyName": "Acme",
            "jobTitle": "Backend Engineer",
            "status": "Applied",
            "appliedDate": "2024-01-10",
            "lastUpdated": "2024-01-10T09:00:00.000Z",
        },
        {
            "id": "b2",
            "companyName": "Beta Labs",
            "jobTitle": "Product Manager",
            "status": "Interviewing",
            "appliedDate": "2024-02-01",
            "salary": "120k",
            "lastUpdated": "2024-02-03T12:00:00.000Z",
        },
        {
            "id": "c3",
            "companyName": "Gamma Engineering",
            "jobTitle": "Designer",
            "status": "Offer",
            "appliedDate": "2024-01-10",
            "lastUpdated": "2024-02-10T08:30:00.000Z",
        },
    ]


@pytest.fixture
def populated_store(store_path, sample_jobs, make_store) -> JobStore:
    """A store loaded from a file holding sample_jobs."""
    store_path.parent.mkdir(parents=True, exist_ok=True)
    store_path.write_text(json.dumps(sample_jobs, indent=2))
    return make_store()
