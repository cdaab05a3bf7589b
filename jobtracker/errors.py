"""
Exception types raised by the job store.
"""

from typing import Dict, Optional


class JobTrackerError(Exception):
    """Base class for all job tracker errors."""
    pass


class ValidationError(JobTrackerError):
    """Raised when a record fails field validation.

    ``errors`` maps field name to a human readable message.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid job fields: {fields}")


class ImportFormatError(JobTrackerError):
    """Raised when an import payload cannot be accepted."""
    pass


class StorageReadError(JobTrackerError):
    """Raised when the persisted collection cannot be parsed."""

    def __init__(self, message: str, location: Optional[str] = None):
        self.location = location
        super().__init__(message)
