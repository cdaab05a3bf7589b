"""
Import/export transformations for job collections.

Export wraps the collection in a metadata envelope. Import accepts three
payload shapes and converges them on one validated list of records before
the store applies anything:

- a bare array of records
- an envelope object with a ``jobs`` array (what export produces)
- a legacy envelope with an ``applications`` array using older field names
"""

from typing import Any, Callable, Dict, List, NamedTuple

from .errors import ImportFormatError
from .schema import ALL_FIELDS, DATE_PATTERN, REQUIRED_FIELDS, STATUSES, pick_fields

EXPORT_VERSION = "1.0"
APP_NAME = "ARCANE JOBS"

BARE_ARRAY = "bare_array"
ENVELOPE = "envelope"
LEGACY_ENVELOPE = "legacy_envelope"

# canonical field -> names tried in order, first truthy value wins
LEGACY_FIELD_MAP = {
    "companyName": ["company", "companyName"],
    "jobTitle": ["title", "jobTitle", "position"],
    "appliedDate": ["appliedDate", "dateApplied"],
}


class ImportPayload(NamedTuple):
    kind: str
    records: List[Any]


def build_export(jobs: List[Dict[str, Any]], export_date: str) -> Dict[str, Any]:
    return {
        "metadata": {
            "exportDate": export_date,
            "version": EXPORT_VERSION,
            "appName": APP_NAME,
            "jobCount": len(jobs),
        },
        "jobs": jobs,
    }


def export_filename(export_date: str) -> str:
    """File name for an export taken at ``export_date`` (ISO-8601)."""
    return f"arcane-jobs-export-{export_date[:10]}.json"


def parse_payload(data: Any) -> ImportPayload:
    """Decide which import shape ``data`` is by its top-level structure."""
    if isinstance(data, list):
        return ImportPayload(BARE_ARRAY, data)
    if isinstance(data, dict):
        if isinstance(data.get("jobs"), list):
            return ImportPayload(ENVELOPE, data["jobs"])
        if isinstance(data.get("applications"), list):
            return ImportPayload(LEGACY_ENVELOPE, data["applications"])
        raise ImportFormatError("Invalid import format. Could not find jobs array.")
    raise ImportFormatError(
        "Invalid import format. Expected an array of jobs or an object with jobs."
    )


def remap_legacy_record(item: Any) -> Any:
    """Rename legacy ``applications`` fields to their current names."""
    if not isinstance(item, dict):
        return item
    aliases = {name for names in LEGACY_FIELD_MAP.values() for name in names}
    out = {k: v for k, v in item.items() if k not in aliases}
    for canonical, names in LEGACY_FIELD_MAP.items():
        for name in names:
            if item.get(name):
                out[canonical] = item[name]
                break
    return out


def _check_record(index: int, item: Any) -> None:
    if not isinstance(item, dict):
        raise ImportFormatError(f"Invalid job data structure: record {index} is not an object")

    missing = [f for f in REQUIRED_FIELDS if item.get(f) is None]
    if missing:
        raise ImportFormatError(
            f"Invalid job data structure: record {index} is missing {', '.join(missing)}"
        )

    for f in REQUIRED_FIELDS:
        if not isinstance(item[f], str):
            raise ImportFormatError(
                f"Invalid job data structure: record {index} field '{f}' must be a string"
            )

    if item["status"] not in STATUSES:
        raise ImportFormatError(
            f"Invalid job status values: record {index} has status '{item['status']}'"
        )

    if not DATE_PATTERN.fullmatch(item["appliedDate"]):
        raise ImportFormatError(
            f"Invalid job data structure: record {index} appliedDate must be YYYY-MM-DD"
        )


def canonical_records(payload: ImportPayload) -> List[Dict[str, Any]]:
    """
    Validate every record of a parsed payload.

    Raises ImportFormatError on the first bad record; nothing is returned
    unless all records pass.
    """
    items = payload.records
    if payload.kind == LEGACY_ENVELOPE:
        items = [remap_legacy_record(item) for item in items]

    for index, item in enumerate(items):
        _check_record(index, item)

    records = []
    for item in items:
        record = pick_fields(item, ALL_FIELDS)
        if "id" in record:
            record["id"] = str(record["id"])
        records.append(record)
    return records


def backfill(
    records: List[Dict[str, Any]],
    clock: Callable[[], str],
    id_factory: Callable[[], str],
) -> List[Dict[str, Any]]:
    """Give records without an id or lastUpdated fresh values."""
    filled = []
    for record in records:
        record = dict(record)
        if not record.get("id"):
            record["id"] = id_factory()
        if not record.get("lastUpdated"):
            record["lastUpdated"] = clock()
        filled.append(record)
    return filled


def prepare_import(
    data: Any,
    clock: Callable[[], str],
    id_factory: Callable[[], str],
) -> List[Dict[str, Any]]:
    """Parse, validate and back-fill an import payload in one step."""
    payload = parse_payload(data)
    return backfill(canonical_records(payload), clock, id_factory)
