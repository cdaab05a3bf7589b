import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import Slot, init_database, get_session
from .errors import StorageReadError

DEFAULT_SLOT_KEY = "jobApplications"


class JsonFileSlot:
    """A slot backed by one JSON file on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        with self.path.open("r", encoding="utf-8") as f:
            content = f.read().strip()
        return content or None

    def write(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            f.write(value)
        tmp.replace(self.path)

    def describe(self) -> str:
        return str(self.path)


class SqliteSlot:
    """A slot stored as one row of the SQLite ``slots`` table."""

    def __init__(self, db_path: Path, key: str = DEFAULT_SLOT_KEY):
        self.db_path = Path(db_path)
        self.key = key
        init_database(self.db_path)

    def read(self) -> Optional[str]:
        session = get_session(self.db_path)
        try:
            row = session.get(Slot, self.key)
            return row.value if row is not None else None
        finally:
            session.close()

    def write(self, value: str) -> None:
        session = get_session(self.db_path)
        try:
            row = session.get(Slot, self.key)
            if row is None:
                session.add(Slot(key=self.key, value=value))
            else:
                row.value = value
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def describe(self) -> str:
        return f"{self.db_path}#{self.key}"


def open_slot(settings: Dict[str, Any]):
    """Build the slot named by ``settings`` (see env.get_settings)."""
    if settings["backend"] == "sqlite":
        return SqliteSlot(Path(settings["store"]), settings.get("slot_key", DEFAULT_SLOT_KEY))
    return JsonFileSlot(Path(settings["store"]))


def load_jobs(slot) -> Optional[List[Dict[str, Any]]]:
    """
    Read the collection from a slot.

    Returns None when nothing has been stored yet. Raises StorageReadError
    when the stored blob is not a JSON array of objects.
    """
    try:
        content = slot.read()
    except (OSError, UnicodeDecodeError, SQLAlchemyError) as e:
        raise StorageReadError(f"Failed to read saved jobs: {e}", slot.describe()) from e
    if content is None:
        return None
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageReadError(f"Failed to parse saved jobs: {e}", slot.describe()) from e
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise StorageReadError("Saved jobs are not an array of records", slot.describe())
    return data


def save_jobs(slot, jobs: List[Dict[str, Any]]) -> None:
    slot.write(json.dumps(jobs, indent=2, ensure_ascii=False))
