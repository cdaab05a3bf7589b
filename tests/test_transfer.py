"""
Tests for import payload parsing and export envelopes.
"""

import pytest

from jobtracker.errors import ImportFormatError
from jobtracker.transfer import (
    BARE_ARRAY,
    ENVELOPE,
    LEGACY_ENVELOPE,
    build_export,
    canonical_records,
    export_filename,
    parse_payload,
    prepare_import,
    remap_legacy_record,
)


def _clock():
    return "2024-05-01T00:00:00.000Z"


class _Ids:
    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1
        return f"new-{self.n}"


class TestParsePayload:
    """Top-level shape detection."""

    def test_bare_array(self, sample_jobs):
        """A list is a bare array payload."""
        payload = parse_payload(sample_jobs)
        assert payload.kind == BARE_ARRAY
        assert payload.records == sample_jobs

    def test_envelope(self, sample_jobs):
        """Envelope carries metadata and the jobs array."""
        payload = parse_payload({"metadata": {}, "jobs": sample_jobs})
        assert payload.kind == ENVELOPE
        assert len(payload.records) == 3

    def test_legacy_envelope(self):
        """An applications array is a legacy payload."""
        payload = parse_payload({"applications": []})
        assert payload.kind == LEGACY_ENVELOPE

    def test_jobs_preferred_over_applications(self):
        """A jobs array wins over applications."""
        payload = parse_payload({"jobs": [], "applications": [{}]})
        assert payload.kind == ENVELOPE

    @pytest.mark.parametrize("data", [
        {"items": []},
        {"jobs": "not a list"},
        "jobs",
        42,
        None,
    ])
    def test_unrecognized_shapes(self, data):
        """Other shapes are rejected."""
        with pytest.raises(ImportFormatError):
            parse_payload(data)


class TestLegacyRemap:

    def test_alternate_names(self):
        """Legacy names map to current ones."""
        record = remap_legacy_record({
            "company": "Acme",
            "title": "Engineer",
            "status": "Applied",
            "dateApplied": "2024-01-01",
        })
        assert record == {
            "companyName": "Acme",
            "jobTitle": "Engineer",
            "status": "Applied",
            "appliedDate": "2024-01-01",
        }

    def test_position_used_for_title(self):
        """position fills jobTitle."""
        record = remap_legacy_record({"company": "Acme", "position": "Analyst"})
        assert record["jobTitle"] == "Analyst"
        assert "position" not in record

    def test_current_names_still_accepted(self):
        """Legacy records may already use current names."""
        record = remap_legacy_record({"companyName": "Acme", "jobTitle": "Engineer", "appliedDate": "2024-02-02"})
        assert record["companyName"] == "Acme"
        assert record["jobTitle"] == "Engineer"
        assert record["appliedDate"] == "2024-02-02"

    def test_other_fields_kept(self):
        """Non-aliased fields survive the remap."""
        record = remap_legacy_record({"company": "Acme", "notes": "call back", "id": "x"})
        assert record["notes"] == "call back"
        assert record["id"] == "x"


class TestCanonicalRecords:

    def test_missing_required_field(self, sample_jobs):
        """Missing required field rejects the payload."""
        broken = dict(sample_jobs[1])
        del broken["appliedDate"]
        with pytest.raises(ImportFormatError, match="appliedDate"):
            canonical_records(parse_payload([sample_jobs[0], broken]))

    def test_invalid_status(self, sample_jobs):
        """Unknown status rejects the payload."""
        bad = {**sample_jobs[0], "status": "Pending"}
        with pytest.raises(ImportFormatError, match="status"):
            canonical_records(parse_payload([bad]))

    def test_non_object_record(self):
        """Non-object entries reject the payload."""
        with pytest.raises(ImportFormatError):
            canonical_records(parse_payload(["oops"]))

    def test_malformed_date(self, sample_jobs):
        """Badly shaped date rejects the payload."""
        bad = {**sample_jobs[0], "appliedDate": "Jan 1"}
        with pytest.raises(ImportFormatError, match="appliedDate"):
            canonical_records(parse_payload([bad]))

    def test_unknown_fields_dropped(self, sample_jobs):
        """Unknown fields are dropped."""
        records = canonical_records(parse_payload([{**sample_jobs[0], "color": "red"}]))
        assert "color" not in records[0]

    def test_numeric_id_becomes_text(self, sample_jobs):
        """Numeric ids are stored as text."""
        records = canonical_records(parse_payload([{**sample_jobs[0], "id": 1700000000000}]))
        assert records[0]["id"] == "1700000000000"


class TestPrepareImport:

    def test_backfills_id_and_timestamp(self):
        """Missing id and lastUpdated are generated."""
        data = [{"companyName": "Acme", "jobTitle": "Engineer", "status": "Offer", "appliedDate": "2024-03-03"}]
        records = prepare_import(data, _clock, _Ids())
        assert records[0]["id"] == "new-1"
        assert records[0]["lastUpdated"] == "2024-05-01T00:00:00.000Z"

    def test_existing_id_and_timestamp_kept(self, sample_jobs):
        """Present id and lastUpdated are kept."""
        records = prepare_import(sample_jobs, _clock, _Ids())
        assert [r["id"] for r in records] == ["a1", "b2", "c3"]
        assert records[1]["lastUpdated"] == "2024-02-03T12:00:00.000Z"

    def test_legacy_example(self):
        """Legacy record converts to a full job."""
        data = {"applications": [
            {"company": "Acme", "title": "Engineer", "status": "Applied", "dateApplied": "2024-01-01"},
        ]}
        record = prepare_import(data, _clock, _Ids())[0]
        assert record["companyName"] == "Acme"
        assert record["jobTitle"] == "Engineer"
        assert record["appliedDate"] == "2024-01-01"
        assert record["status"] == "Applied"

    def test_legacy_missing_company_rejected(self):
        """Legacy record without a company is rejected."""
        data = {"applications": [{"title": "Engineer", "status": "Applied", "dateApplied": "2024-01-01"}]}
        with pytest.raises(ImportFormatError, match="companyName"):
            prepare_import(data, _clock, _Ids())


class TestExport:

    def test_envelope(self, sample_jobs):
        """Envelope carries metadata and the jobs array."""
        envelope = build_export(sample_jobs, "2024-06-01T10:00:00.000Z")
        assert envelope["metadata"] == {
            "exportDate": "2024-06-01T10:00:00.000Z",
            "version": "1.0",
            "appName": "ARCANE JOBS",
            "jobCount": 3,
        }
        assert envelope["jobs"] == sample_jobs

    def test_filename(self):
        """Export file name carries the date."""
        assert export_filename("2024-06-01T10:00:00.000Z") == "arcane-jobs-export-2024-06-01.json"
