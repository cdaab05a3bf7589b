"""
Tests for display helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from jobtracker.formatting import format_date, format_relative_time, job_summary

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def _ago(**kwargs) -> str:
    return (NOW - timedelta(**kwargs)).isoformat().replace("+00:00", "Z")


class TestFormatDate:

    def test_plain_date(self):
        """Dates render as 'Mon D, YYYY'."""
        assert format_date("2024-01-05") == "Jan 5, 2024"

    def test_timestamp(self):
        """Full timestamps render as their date."""
        assert format_date("2024-12-31T23:00:00.000Z") == "Dec 31, 2024"

    def test_impossible_date_returned_as_is(self):
        """Dates that do not exist are shown raw."""
        assert format_date("2024-13-40") == "2024-13-40"

    def test_empty(self):
        """Empty input stays empty."""
        assert format_date("") == ""


class TestFormatRelativeTime:

    @pytest.mark.parametrize("delta, expected", [
        (timedelta(seconds=30), "just now"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(hours=23), "23 hours ago"),
        (timedelta(days=2), "2 days ago"),
        (timedelta(days=45), "1 month ago"),
        (timedelta(days=400), "1 year ago"),
        (timedelta(days=800), "2 years ago"),
    ])
    def test_buckets(self, delta, expected):
        """Ages fall into the expected unit."""
        assert format_relative_time(_ago(seconds=delta.total_seconds()), now=NOW) == expected

    def test_unparseable(self):
        """Unparseable input is returned unchanged."""
        assert format_relative_time("whenever", now=NOW) == "whenever"


def test_job_summary(sample_jobs):
    """Summary line carries company, title, date and id."""
    line = job_summary(sample_jobs[1])
    assert "Beta Labs - Product Manager" in line
    assert "Feb 1, 2024" in line
    assert "id=b2" in line
