"""
Derived reads over a job collection.

Nothing here is cached: every call recomputes from the list it is given.
"""

from typing import Any, Dict, List, Optional

from .schema import STATUSES

ALL_STATUSES = "All"


def matches_search(job: Dict[str, Any], term: str) -> bool:
    """Case-insensitive substring match against company name or job title."""
    needle = term.lower()
    return (
        needle in str(job.get("companyName", "")).lower()
        or needle in str(job.get("jobTitle", "")).lower()
    )


def filter_jobs(
    jobs: List[Dict[str, Any]],
    term: str = "",
    status: Optional[str] = ALL_STATUSES,
) -> List[Dict[str, Any]]:
    """Jobs matching the search term AND the status ("All" or None matches any)."""
    return [
        job for job in jobs
        if matches_search(job, term or "")
        and (status in (None, ALL_STATUSES) or job.get("status") == status)
    ]


def sort_by_applied_date(jobs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest appliedDate first. Equal dates keep collection order."""
    return sorted(jobs, key=lambda job: job.get("appliedDate", ""), reverse=True)


def status_counts(jobs: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {status: 0 for status in STATUSES}
    for job in jobs:
        if job.get("status") in counts:
            counts[job["status"]] += 1
    return counts


def visible_jobs(
    jobs: List[Dict[str, Any]],
    term: str = "",
    status: Optional[str] = ALL_STATUSES,
) -> List[Dict[str, Any]]:
    """Filtered and sorted view, as shown in the job list."""
    return sort_by_applied_date(filter_jobs(jobs, term, status))
