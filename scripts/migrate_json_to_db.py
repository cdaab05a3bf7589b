#!/usr/bin/env python3
"""
Copy the job collection from the JSON file store into the SQLite store.

Usage:
    python scripts/migrate_json_to_db.py --json data/jobs.json --db data/jobs.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from jobtracker.errors import StorageReadError
from jobtracker.schema import REQUIRED_FIELDS, STATUSES
from jobtracker.storage import DEFAULT_SLOT_KEY, JsonFileSlot, SqliteSlot, load_jobs, save_jobs


def migrate(json_path: Path, db_path: Path, key: str = DEFAULT_SLOT_KEY, dry_run: bool = False) -> bool:
    """
    Migrate jobs from the JSON store to the database slot ``key``.

    Records missing a required field or carrying an unknown status are
    skipped. An existing database slot is merged with, never overwritten:
    jobs whose id is already there are left alone.

    Args:
        json_path: Path to JSON store file
        db_path: Path to SQLite database file
        key: Slot key in the database
        dry_run: If True, don't write to database
    """
    print(f"Loading jobs from {json_path}...")
    try:
        jobs = load_jobs(JsonFileSlot(json_path)) or []
    except StorageReadError as e:
        print(f"❌ {e}")
        return False
    print(f"Found {len(jobs)} jobs in JSON store")

    if dry_run:
        print("\n[DRY RUN] Would migrate the following jobs:")
        for i, job in enumerate(jobs[:5], 1):
            print(f"  {i}. {job.get('id')}: {job.get('companyName')} - {job.get('jobTitle')}")
        if len(jobs) > 5:
            print(f"  ... and {len(jobs) - 5} more")
        return True

    print(f"\nOpening database at {db_path}...")
    slot = SqliteSlot(db_path, key)
    try:
        existing = load_jobs(slot) or []
    except StorageReadError as e:
        print(f"❌ {e}")
        return False
    existing_ids = {job.get("id") for job in existing}

    migrated = 0
    skipped = 0
    merged = list(existing)

    for job in jobs:
        job_id = job.get("id")
        if not job_id or not all(job.get(field) for field in REQUIRED_FIELDS):
            print(f"⚠️  Skipping {job_id}: missing required fields")
            skipped += 1
            continue
        if job["status"] not in STATUSES:
            print(f"⚠️  Skipping {job_id}: unknown status {job['status']!r}")
            skipped += 1
            continue
        if job_id in existing_ids:
            print(f"⚠️  Job {job_id} already exists, skipping")
            skipped += 1
            continue
        merged.append(job)
        existing_ids.add(job_id)
        migrated += 1

    save_jobs(slot, merged)
    print("\n✅ Migration complete!")
    print(f"   Migrated: {migrated}")
    print(f"   Skipped:  {skipped}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Migrate jobs from JSON to database")
    parser.add_argument("--json", type=Path, default=Path("data/jobs.json"),
                        help="Path to JSON store file")
    parser.add_argument("--db", type=Path, default=Path("data/jobs.db"),
                        help="Path to SQLite database file")
    parser.add_argument("--key", default=DEFAULT_SLOT_KEY, help="Slot key in the database")
    parser.add_argument("--dry-run", action="store_true",
                        help="Show what would be migrated without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not migrate(args.json, args.db, key=args.key, dry_run=args.dry_run):
        sys.exit(1)


if __name__ == "__main__":
    main()
