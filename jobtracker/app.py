import argparse
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from .env import load_env, get_settings

from . import __version__
from .errors import ImportFormatError, ValidationError
from .formatting import format_date, format_relative_time, job_summary
from .logger import get_logger
from .query import ALL_STATUSES
from .schema import OPTIONAL_STR_FIELDS, STATUSES, validate_job_input
from .storage import open_slot
from .store import JobStore
from .transfer import prepare_import

# CLI flag dest -> record field
FIELD_FLAGS = {
    "company": "companyName",
    "title": "jobTitle",
    "status": "status",
    "date": "appliedDate",
    "notes": "notes",
    "location": "location",
    "salary": "salary",
    "contact_email": "contactEmail",
    "contact_name": "contactName",
    "url": "url",
}


def confirm(question: str) -> bool:
    """Ask a yes/no question. Closed stdin counts as no."""
    try:
        answer = input(f"{question} [y/N] ").strip().lower()
    except EOFError:
        print()
        return False
    return answer in ("y", "yes")


def open_store(args: argparse.Namespace) -> JobStore:
    try:
        settings = get_settings(store=args.store, backend=args.backend)
    except ValueError as e:
        raise SystemExit(str(e))
    logger = get_logger(level=settings["log_level"], log_dir=Path(settings["log_dir"]))
    return JobStore(open_slot(settings), logger=logger)


def fields_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        field: getattr(args, flag)
        for flag, field in FIELD_FLAGS.items()
        if getattr(args, flag, None) is not None
    }


def check_input(fields: Dict[str, Any]) -> None:
    errors = validate_job_input(
        fields.get("companyName", ""),
        fields.get("jobTitle", ""),
        fields.get("appliedDate", ""),
    )
    if errors:
        print("Invalid:")
        for field, message in errors.items():
            print(f" - {field}: {message}")
        raise SystemExit(2)


def print_job(job: Dict[str, Any]) -> None:
    print(f"ID: {job['id']}")
    print(f"  Company: {job.get('companyName')}")
    print(f"  Title: {job.get('jobTitle')}")
    print(f"  Status: {job.get('status')}")
    print(f"  Applied: {format_date(job.get('appliedDate', ''))}")
    for field in OPTIONAL_STR_FIELDS:
        if job.get(field):
            print(f"  {field}: {job[field]}")
    last = job.get("lastUpdated", "")
    print(f"  Last updated: {format_date(last)} ({format_relative_time(last)})")


def cmd_add(args: argparse.Namespace) -> None:
    store = open_store(args)
    fields = fields_from_args(args)
    check_input(fields)
    try:
        job = store.create(fields)
    except ValidationError as e:
        raise SystemExit(f"Invalid job: {e.errors}")
    print(f"Added: {job['id']}")


def cmd_edit(args: argparse.Namespace) -> None:
    store = open_store(args)
    job = store.get(args.id)
    if job is None:
        raise SystemExit(f"Job not found: {args.id}")
    job.update(fields_from_args(args))
    for field in args.clear or []:
        job.pop(field, None)
    check_input(job)
    try:
        store.update(job)
    except ValidationError as e:
        raise SystemExit(f"Invalid job: {e.errors}")
    print(f"Updated: {job['id']}")


def cmd_delete(args: argparse.Namespace) -> None:
    store = open_store(args)
    job = store.get(args.id)
    if job is None:
        raise SystemExit(f"Job not found: {args.id}")
    if not args.yes and not confirm(f"Delete {job['companyName']} - {job['jobTitle']}?"):
        print("Cancelled.")
        return
    store.delete(args.id)
    print(f"Deleted: {args.id}")


def cmd_show(args: argparse.Namespace) -> None:
    store = open_store(args)
    job = store.get(args.id)
    if job is None:
        raise SystemExit(f"Job not found: {args.id}")
    print_job(job)


def cmd_list(args: argparse.Namespace) -> None:
    store = open_store(args)
    jobs = store.search(args.search or "", args.status)
    if not jobs:
        if len(store) == 0:
            print("No jobs tracked yet.")
        else:
            print("No jobs match your search criteria.")
        return
    print(f"Found {len(jobs)} of {len(store)} jobs:\n")
    for job in jobs:
        print(job_summary(job))


def cmd_stats(args: argparse.Namespace) -> None:
    store = open_store(args)
    counts = store.status_counts()
    print(f"Total: {len(store)}")
    for status, count in counts.items():
        print(f"  {status}: {count}")


def cmd_export(args: argparse.Namespace) -> None:
    store = open_store(args)
    result = store.export_to_file(Path(args.output))
    print(result.message)
    print(f"Written to {result.path}")


def _load_json(path: Path) -> Any:
    if not path.exists():
        raise SystemExit(f"Input file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Failed to import: invalid JSON ({e})")


def cmd_import(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    store = open_store(args)
    if args.merge is None:
        merge = not confirm(
            "Replace all existing job data? Answer 'y' to replace, 'n' to merge with existing jobs."
        )
    else:
        merge = args.merge
    try:
        result = store.import_file(input_path, merge=merge)
    except ImportFormatError as e:
        raise SystemExit(f"Import failed: {e}")
    print(result.message)


def cmd_validate(args: argparse.Namespace) -> None:
    data = _load_json(Path(args.input))
    try:
        records = prepare_import(data, clock=lambda: "", id_factory=lambda: "")
    except ImportFormatError as e:
        print("Invalid:")
        print(f" - {e}")
        raise SystemExit(2)
    print(f"Valid ({len(records)} jobs)")


def _add_field_flags(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--company", required=required, help="Company name")
    parser.add_argument("--title", required=required, help="Job title")
    parser.add_argument("--status", choices=STATUSES, default="Applied" if required else None,
                        help="Application status (default: Applied)" if required else "Application status")
    parser.add_argument("--date", default=date.today().isoformat() if required else None,
                        help="Applied date YYYY-MM-DD (default: today)" if required else "Applied date YYYY-MM-DD")
    parser.add_argument("--notes", help="Free-form notes")
    parser.add_argument("--location", help="Job location")
    parser.add_argument("--salary", help="Salary or range")
    parser.add_argument("--contact-email", help="Contact email")
    parser.add_argument("--contact-name", help="Contact name")
    parser.add_argument("--url", help="Job posting URL")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jobtracker", description="Job application tracker")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--store", help="Path to the store (default: data/jobs.json, or JOBTRACKER_STORE)")
    parser.add_argument("--backend", choices=["json", "sqlite"],
                        help="Storage backend (default: json, or JOBTRACKER_BACKEND)")

    subparsers = parser.add_subparsers(dest="command")

    add = subparsers.add_parser("add", help="Track a new job application")
    _add_field_flags(add, required=True)
    add.set_defaults(func=cmd_add)

    edt = subparsers.add_parser("edit", help="Change fields of an existing job")
    edt.add_argument("--id", required=True, help="Job id")
    _add_field_flags(edt, required=False)
    edt.add_argument("--clear", action="append", choices=OPTIONAL_STR_FIELDS,
                     help="Remove an optional field (repeatable)")
    edt.set_defaults(func=cmd_edit)

    dlt = subparsers.add_parser("delete", help="Delete a job")
    dlt.add_argument("--id", required=True, help="Job id")
    dlt.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    dlt.set_defaults(func=cmd_delete)

    shw = subparsers.add_parser("show", help="Show all fields of a job")
    shw.add_argument("--id", required=True, help="Job id")
    shw.set_defaults(func=cmd_show)

    lst = subparsers.add_parser("list", help="List jobs, newest application first")
    lst.add_argument("--search", help="Case-insensitive match on company or title")
    lst.add_argument("--status", choices=[ALL_STATUSES] + STATUSES, default=ALL_STATUSES,
                     help="Only show jobs with this status")
    lst.set_defaults(func=cmd_list)

    sts = subparsers.add_parser("stats", help="Count jobs per status")
    sts.set_defaults(func=cmd_stats)

    exp = subparsers.add_parser("export", help="Export all jobs to a JSON file")
    exp.add_argument("--output", default=".", help="Output file or directory (default: current directory)")
    exp.set_defaults(func=cmd_export)

    imp = subparsers.add_parser("import", help="Import jobs from a JSON file")
    imp.add_argument("--input", required=True, help="Path to JSON export or job array")
    mode = imp.add_mutually_exclusive_group()
    mode.add_argument("--merge", dest="merge", action="store_const", const=True,
                      help="Keep existing jobs and add new ones")
    mode.add_argument("--replace", dest="merge", action="store_const", const=False,
                      help="Replace all existing jobs")
    imp.set_defaults(func=cmd_import, merge=None)

    val = subparsers.add_parser("validate", help="Check an import file without applying it")
    val.add_argument("--input", required=True, help="Path to JSON input")
    val.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None):
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
