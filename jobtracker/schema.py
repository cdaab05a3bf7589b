import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .formatting import parse_timestamp

STATUS_APPLIED = "Applied"
STATUS_INTERVIEWING = "Interviewing"
STATUS_OFFER = "Offer"
STATUS_REJECTED = "Rejected"

STATUSES = [STATUS_APPLIED, STATUS_INTERVIEWING, STATUS_OFFER, STATUS_REJECTED]

REQUIRED_FIELDS = ["companyName", "jobTitle", "status", "appliedDate"]
OPTIONAL_STR_FIELDS = [
    "notes",
    "location",
    "salary",
    "contactEmail",
    "contactName",
    "url",
]

ALL_FIELDS = ["id"] + REQUIRED_FIELDS + OPTIONAL_STR_FIELDS + ["lastUpdated"]

# Pattern only: "2024-13-40" is accepted.
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _text(v: Any) -> str:
    return v if isinstance(v, str) else ""


def validate_job_input(company_name: Any, job_title: Any, applied_date: Any) -> Dict[str, str]:
    """
    Check the user-editable required fields of a job.

    Returns a dict of field name -> error message. Empty dict means valid.
    """
    errors: Dict[str, str] = {}

    if not _text(company_name).strip():
        errors["companyName"] = "Company name is required"

    if not _text(job_title).strip():
        errors["jobTitle"] = "Job title is required"

    if not _text(applied_date).strip():
        errors["appliedDate"] = "Application date is required"
    elif not DATE_PATTERN.fullmatch(applied_date):
        errors["appliedDate"] = "Invalid date format (YYYY-MM-DD)"

    return errors


def validate_record(record: Dict[str, Any]) -> None:
    """Raise ValidationError unless the record may enter the store."""
    errors = validate_job_input(
        record.get("companyName"),
        record.get("jobTitle"),
        record.get("appliedDate"),
    )
    if record.get("status") not in STATUSES:
        errors["status"] = f"Status must be one of: {', '.join(STATUSES)}"
    for f in OPTIONAL_STR_FIELDS:
        if record.get(f) is not None and not isinstance(record[f], str):
            errors[f] = f"Field '{f}' must be a string if provided"
    if errors:
        raise ValidationError(errors)


def pick_fields(data: Dict[str, Any], fields: List[str]) -> Dict[str, Any]:
    """Copy the listed fields that are present and not None."""
    return {f: data[f] for f in fields if data.get(f) is not None}


def new_job_id() -> str:
    return uuid.uuid4().hex


def _format_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-05T10:00:00.000Z"""
    return _format_timestamp(datetime.now(timezone.utc))


def later_timestamp(current: str, previous: Optional[str]) -> str:
    """
    ``current``, or one millisecond past ``previous`` when ``current`` is not
    strictly later. Unparseable values fall back to ``current``.
    """
    now = parse_timestamp(current)
    before = parse_timestamp(previous) if previous else None
    if now is None or before is None or now > before:
        return current
    return _format_timestamp(before + timedelta(milliseconds=1))
