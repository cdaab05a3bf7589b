"""
The job store: authoritative in-memory collection mirrored to a storage slot.

Every successful mutation writes the full collection to the slot and then
notifies subscribed observers. Reads hand out copies, so callers never hold
a reference into the store's own records.
"""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from .errors import ImportFormatError, StorageReadError
from .logger import StructuredLogger, get_logger
from .query import ALL_STATUSES, status_counts, visible_jobs
from .schema import (
    ALL_FIELDS,
    OPTIONAL_STR_FIELDS,
    REQUIRED_FIELDS,
    later_timestamp,
    new_job_id,
    pick_fields,
    utc_timestamp,
    validate_record,
)
from .storage import load_jobs, save_jobs
from .transfer import build_export, export_filename, prepare_import

EDITABLE_FIELDS = REQUIRED_FIELDS + OPTIONAL_STR_FIELDS

Observer = Callable[[str, "JobStore"], None]


class ImportResult(NamedTuple):
    added: int
    skipped: int
    message: str


class ExportResult(NamedTuple):
    envelope: Dict[str, Any]
    count: int
    message: str
    path: Optional[Path] = None


class JobStore:
    """
    Owns the job collection and keeps it mirrored to ``slot``.

    Args:
        slot: Storage slot with read()/write()/describe() (see storage.py)
        clock: Returns the current timestamp string (default: UTC ISO-8601)
        id_factory: Returns a fresh job id (default: uuid4 hex)
        logger: StructuredLogger (default: the global logger)
    """

    def __init__(
        self,
        slot,
        clock: Optional[Callable[[], str]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self._slot = slot
        self._clock = clock or utc_timestamp
        self._id_factory = id_factory or new_job_id
        self._logger = logger or get_logger()
        self._jobs: List[Dict[str, Any]] = []
        self._observers: List[Observer] = []
        self._load()

    def _load(self) -> None:
        try:
            data = load_jobs(self._slot)
        except StorageReadError as e:
            self._logger.error(
                "Failed to parse saved jobs, starting with an empty collection",
                error=str(e),
                location=e.location,
            )
            self._logger.record_storage_error()
            data = None
        self._jobs = data or []
        self._logger.debug("Loaded jobs", count=len(self._jobs), location=self._slot.describe())

    def _commit(self, jobs: List[Dict[str, Any]], event: str) -> None:
        # Persist before swapping so a failed write leaves memory untouched.
        save_jobs(self._slot, jobs)
        self._jobs = jobs
        for observer in list(self._observers):
            observer(event, self)

    def _index_of(self, job_id: Any) -> Optional[int]:
        for i, job in enumerate(self._jobs):
            if job.get("id") == job_id:
                return i
        return None

    def _fresh_id(self) -> str:
        existing = {job.get("id") for job in self._jobs}
        job_id = self._id_factory()
        while job_id in existing:
            job_id = self._id_factory()
        return job_id

    # Observers

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Call ``observer(event, store)`` after each successful mutation.

        Events: created, updated, deleted, imported.
        Returns a function that removes the observer.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # Reads

    @property
    def jobs(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        index = self._index_of(job_id)
        if index is None:
            return None
        return copy.deepcopy(self._jobs[index])

    def search(self, term: str = "", status: Optional[str] = ALL_STATUSES) -> List[Dict[str, Any]]:
        """Jobs matching term and status, newest appliedDate first."""
        return copy.deepcopy(visible_jobs(self._jobs, term, status))

    def status_counts(self) -> Dict[str, int]:
        return status_counts(self._jobs)

    # Mutations

    def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a new job built from ``fields``.

        Any id/lastUpdated in ``fields`` is ignored. Raises ValidationError
        without touching the store if the fields are not acceptable.
        """
        record = pick_fields(fields, EDITABLE_FIELDS)
        validate_record(record)
        record = copy.deepcopy(record)
        record["id"] = self._fresh_id()
        record["lastUpdated"] = self._clock()
        record = pick_fields(record, ALL_FIELDS)

        self._commit(self._jobs + [record], "created")
        self._logger.record_mutation("created")
        self._logger.debug("Job created", id=record["id"], company=record["companyName"])
        return copy.deepcopy(record)

    def update(self, record: Dict[str, Any]) -> bool:
        """
        Replace every field of the job with ``record["id"]``.

        Returns False, and changes nothing, when no job has that id.
        """
        job_id = record.get("id")
        validate_record(record)
        index = self._index_of(job_id)
        if index is None:
            self._logger.warning("Update ignored, job not found", id=job_id)
            self._logger.record_missed_update()
            return False

        updated = copy.deepcopy(pick_fields(record, EDITABLE_FIELDS))
        updated["id"] = job_id
        updated["lastUpdated"] = later_timestamp(self._clock(), self._jobs[index].get("lastUpdated"))
        jobs = list(self._jobs)
        jobs[index] = pick_fields(updated, ALL_FIELDS)

        self._commit(jobs, "updated")
        self._logger.record_mutation("updated")
        self._logger.debug("Job updated", id=job_id)
        return True

    def delete(self, job_id: str) -> bool:
        """Remove the job with ``job_id``. Returns False if there was none."""
        index = self._index_of(job_id)
        if index is None:
            return False
        jobs = self._jobs[:index] + self._jobs[index + 1:]

        self._commit(jobs, "deleted")
        self._logger.record_mutation("deleted")
        self._logger.debug("Job deleted", id=job_id)
        return True

    # Import / export

    def export(self) -> ExportResult:
        """Build the export envelope for the whole collection."""
        envelope = build_export(self.jobs, self._clock())
        count = len(envelope["jobs"])
        self._logger.record_export()
        self._logger.info("Jobs exported", count=count)
        return ExportResult(envelope, count, f"Successfully exported {count} jobs")

    def export_to_file(self, target: Path) -> ExportResult:
        """
        Write the export envelope as JSON.

        ``target`` may be a file path or an existing directory; a directory
        gets the dated default file name.
        """
        result = self.export()
        target = Path(target)
        if target.is_dir():
            target = target / export_filename(result.envelope["metadata"]["exportDate"])
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as f:
            json.dump(result.envelope, f, indent=2, ensure_ascii=False)
        return result._replace(path=target)

    def import_jobs(self, data: Any, merge: bool = False) -> ImportResult:
        """
        Import an already-parsed JSON payload.

        With ``merge`` False the payload replaces the collection. With
        ``merge`` True only records whose id is not already present are
        appended. Raises ImportFormatError, with the store unchanged, if any
        record is unacceptable.
        """
        try:
            records = copy.deepcopy(prepare_import(data, self._clock, self._id_factory))
        except ImportFormatError as e:
            self._logger.warning("Import rejected", error=str(e), merge=merge)
            self._logger.record_import_failure()
            raise

        seen = set()
        unique = []
        for record in records:
            if record["id"] in seen:
                continue
            seen.add(record["id"])
            unique.append(record)

        if merge:
            existing = {job.get("id") for job in self._jobs}
            new_jobs = [r for r in unique if r["id"] not in existing]
            skipped = len(records) - len(new_jobs)
            jobs = self._jobs + new_jobs
            added = len(new_jobs)
            message = f"Successfully imported {added} new jobs ({skipped} duplicates skipped)"
        else:
            jobs = unique
            added = len(unique)
            skipped = len(records) - added
            message = f"Successfully imported {added} jobs"
            if skipped:
                message += f" ({skipped} duplicates skipped)"

        self._commit(jobs, "imported")
        self._logger.record_import(added, skipped)
        self._logger.info("Jobs imported", added=added, skipped=skipped, merge=merge)
        return ImportResult(added, skipped, message)

    def import_file(self, path: Path, merge: bool = False) -> ImportResult:
        """Read a JSON file and import it (see import_jobs)."""
        with Path(path).open("r", encoding="utf-8") as f:
            text = f.read()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            self._logger.warning("Import rejected, invalid JSON", error=str(e), path=str(path))
            self._logger.record_import_failure()
            raise ImportFormatError(f"Invalid JSON: {e}") from e
        return self.import_jobs(data, merge=merge)
