#!/usr/bin/env python3
"""
Validate that the database slot contains every job from the JSON store.

Usage:
    python scripts/validate_migration.py --json data/jobs.json --db data/jobs.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobtracker.errors import StorageReadError
from jobtracker.schema import ALL_FIELDS
from jobtracker.storage import DEFAULT_SLOT_KEY, JsonFileSlot, SqliteSlot, load_jobs


def validate(json_path: Path, db_path: Path, key: str = DEFAULT_SLOT_KEY) -> bool:
    """
    Compare JSON store and database slot contents.

    Returns True if every JSON job is in the database with identical fields.
    """
    print(f"Loading JSON from {json_path}...")
    try:
        json_jobs = {job.get("id"): job for job in load_jobs(JsonFileSlot(json_path)) or []}
    except StorageReadError as e:
        print(f"❌ {e}")
        return False
    print(f"  JSON: {len(json_jobs)} jobs")

    print(f"\nReading database slot {key!r} at {db_path}...")
    try:
        db_jobs = {job.get("id"): job for job in load_jobs(SqliteSlot(db_path, key)) or []}
    except StorageReadError as e:
        print(f"❌ {e}")
        return False
    print(f"  DB:   {len(db_jobs)} jobs")

    print("\nValidating job data...")
    mismatches = []
    missing = []

    for job_id, job in json_jobs.items():
        if job_id not in db_jobs:
            missing.append(job_id)
            continue

        db_job = db_jobs[job_id]
        for field in ALL_FIELDS:
            if job.get(field) != db_job.get(field):
                mismatches.append({
                    "id": job_id,
                    "field": field,
                    "json": job.get(field),
                    "db": db_job.get(field),
                })

    if missing:
        print(f"\n❌ MISSING from DB: {len(missing)} jobs")
        for job_id in missing[:5]:
            print(f"   - {job_id}")
        if len(missing) > 5:
            print(f"   ... and {len(missing) - 5} more")

    if mismatches:
        print(f"\n❌ DATA MISMATCHES: {len(mismatches)} field differences")
        for mismatch in mismatches[:5]:
            print(f"   - {mismatch['id']}")
            print(f"     {mismatch['field']}: JSON='{mismatch['json']}' vs DB='{mismatch['db']}'")
        if len(mismatches) > 5:
            print(f"   ... and {len(mismatches) - 5} more")

    if not missing and not mismatches:
        print("✅ All jobs validated successfully!")
        return True
    return False


def main():
    parser = argparse.ArgumentParser(description="Validate migration from JSON to database")
    parser.add_argument("--json", type=Path, default=Path("data/jobs.json"),
                        help="Path to JSON store file")
    parser.add_argument("--db", type=Path, default=Path("data/jobs.db"),
                        help="Path to SQLite database file")
    parser.add_argument("--key", default=DEFAULT_SLOT_KEY, help="Slot key in the database")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not args.db.exists():
        print(f"❌ Database file not found: {args.db}")
        sys.exit(1)

    success = validate(args.json, args.db, key=args.key)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
