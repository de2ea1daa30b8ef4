from __future__ import annotations

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from pydantic import ValidationError
from pymongo.errors import ConnectionFailure

from minedir.cleanup import DirectoryMaintenance
from minedir.db import connect, environment_summary
from minedir.directory_store import DirectoryStore
from minedir.models import (
    DIRECTORY_LABELS,
    IDENTIFIER_FIELDS,
    RECORD_MODELS,
    CleanupReport,
    DirectoryKind,
    PreviewReport,
    ScanReport,
)

SCAN_SAMPLE_SIZE = 10
RULE = "=" * 60


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def print_environment() -> None:
    print("Environment:")
    for key, value in environment_summary().items():
        print(f"  {key:<12} {value}")
    print()


def print_preview(report: PreviewReport) -> None:
    for kind in DirectoryKind:
        print(f"{DIRECTORY_LABELS[kind].upper()} DIRECTORY PREVIEW:")
        previews = [preview for preview in report.collections if preview.kind == kind]
        if not previews:
            print("  (no collections)")
        for preview in previews:
            print(f"  {preview.collection}: {preview.document_count} documents")
            for entry in preview.entries:
                print(f'    "{entry.original}" -> "{entry.cleaned}"')
        print()
    print("Preview complete. Run with --execute to apply changes.")


def print_cleanup(report: CleanupReport) -> None:
    print()
    print("CLEANUP SUMMARY:")
    for kind, result in report.results.items():
        for stats in result.collections:
            print(
                f"  {stats.collection:<28} {stats.updated:>5} updated "
                f"{stats.errors:>4} errors {stats.total:>6} total"
            )
        print(f"  {DIRECTORY_LABELS[kind]}: {result.updated}/{result.total} updated")
    print(f"  Total Errors: {report.errors}")
    if report.errors:
        print(f"Completed with {report.errors} errors. {report.updated} records were cleaned.")
    else:
        print(f"All {report.updated} corrupted records cleaned successfully.")


def print_scan(report: ScanReport) -> None:
    for scan in report.collections:
        print(f"{scan.collection}:")
        print(f"  Total documents:    {scan.total_count}")
        print(f"  Corrupted records:  {scan.corrupted_count}")
        print(f"  Affected documents: {scan.affected_count}")
        print(f"  Corruption rate:    {scan.corruption_rate:.1f}%")
        if scan.error:
            print(f"  Error: {scan.error}")
        for index, record in enumerate(scan.corrupted[:SCAN_SAMPLE_SIZE], start=1):
            print(f'    {index}. {record.field}: "{record.original}" -> "{record.cleaned}"')
        if scan.corrupted_count > SCAN_SAMPLE_SIZE:
            print(f"    ... and {scan.corrupted_count - SCAN_SAMPLE_SIZE} more")
    print(RULE)
    print(f"Total documents scanned: {report.total_documents}")
    print(f"Total corrupted records: {report.total_corrupted}")
    print(f"Overall corruption rate: {report.corruption_rate:.1f}%")
    if report.total_corrupted:
        print("Run `manage_directory.py clean --execute` to fix them.")
    else:
        print("All data is clean. No corrupted records found.")


@asynccontextmanager
async def open_store(ns: argparse.Namespace) -> AsyncIterator[DirectoryStore]:
    async with connect(ns.uri, ns.db_name) as database:
        yield DirectoryStore(database)


async def cmd_clean(maintenance: DirectoryMaintenance, ns: argparse.Namespace) -> None:
    if not ns.execute:
        print("Running in PREVIEW mode. Add --execute to apply changes.\n")
        print_preview(await maintenance.preview())
        return
    print("Starting identifier cleanup...\n")
    print_cleanup(await maintenance.clean(execute=True))


async def cmd_scan(maintenance: DirectoryMaintenance, ns: argparse.Namespace) -> None:
    print_scan(await maintenance.scan())


async def cmd_check(maintenance: DirectoryMaintenance, ns: argparse.Namespace) -> None:
    store = maintenance.store
    collections = await maintenance.find_directory_collections()
    grand_total = 0
    for kind in DirectoryKind:
        model = RECORD_MODELS[kind]
        for name in collections[kind]:
            count = await store.count_documents(name)
            grand_total += count
            print(f"{name}: {count} records")
            for index, doc in enumerate(await store.find_documents(name, limit=maintenance.preview_limit), start=1):
                try:
                    line = model.from_document(doc).summary()
                except ValidationError:
                    line = f"{doc.get(IDENTIFIER_FIELDS[kind]) or '-'} (does not match the {kind.value} schema)"
                print(f"  {index}. {line}")
    print(f"Grand total: {grand_total} records")

    duplicates = await maintenance.duplicates()
    if not duplicates:
        print("No duplicate identifiers found")
        return
    print(f"Duplicate identifiers found: {len(duplicates)}")
    for dup in duplicates:
        print(f"  {dup.collection}.{dup.field} {dup.value!r} x{dup.count}")


async def run(ns: argparse.Namespace) -> None:
    async with open_store(ns) as store:
        maintenance = DirectoryMaintenance(store, preview_limit=ns.limit)
        await ns.func(maintenance, ns)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Maintain mining directory identifiers")
    parser.add_argument("--uri", help="MongoDB connection string (defaults to MONGO_URI)")
    parser.add_argument("--db", dest="db_name", help="Database name (defaults to DB_NAME or the URI database)")
    parser.add_argument("--limit", type=int, help="Sample size for previews and checks")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p_clean = sub.add_parser("clean", help="Repair corrupted contract/permit/complaint numbers")
    p_clean.add_argument("--execute", action="store_true", help="Write changes (default is a preview)")
    p_clean.set_defaults(func=cmd_clean)

    p_scan = sub.add_parser("scan", help="Report corrupted identifiers per collection")
    p_scan.set_defaults(func=cmd_scan)

    p_check = sub.add_parser("check", help="Show environment, record counts and duplicate identifiers")
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if args.command == "check":
        print_environment()
    try:
        asyncio.run(run(args))
    except ConnectionFailure as exc:
        raise SystemExit(f"MongoDB connection error: {exc}")
    except RuntimeError as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
