"""Batch maintenance over the national, local and hotspots directories."""

from __future__ import annotations

import logging
import os
from typing import Dict, Iterable, List, Optional, Union

from pymongo.errors import ConnectionFailure, PyMongoError

from minedir.directory_store import DirectoryStore
from minedir.identifiers import get_cleaner
from minedir.models import (
    DIRECTORY_LABELS,
    IDENTIFIER_FIELDS,
    IDENTIFIER_KINDS,
    CleanupReport,
    CollectionPreview,
    CollectionScan,
    CorruptedRecord,
    DirectoryCleanupResult,
    DirectoryKind,
    DuplicateValue,
    PreviewEntry,
    PreviewReport,
    ScanReport,
)
from minedir.rewriter import rewrite_collection

log = logging.getLogger(__name__)

PREVIEW_LIMIT = int(os.environ.get("PREVIEW_LIMIT", "5"))
DIRECTORY_KEYWORDS = ("directory", "national", "local", "hotspot")


def is_directory_collection(name: str) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in DIRECTORY_KEYWORDS)


def classify_collections(names: Iterable[str]) -> Dict[DirectoryKind, List[str]]:
    """Group collection names by the directory they hold.

    A bare ``directory`` name with no local/hotspot marker counts as national.
    """
    found: Dict[DirectoryKind, List[str]] = {kind: [] for kind in DirectoryKind}
    for name in names:
        lowered = name.lower()
        if "hotspot" in lowered:
            found[DirectoryKind.HOTSPOTS].append(name)
        elif "local" in lowered and "directory" in lowered:
            found[DirectoryKind.LOCAL].append(name)
        elif "national" in lowered or "directory" in lowered:
            found[DirectoryKind.NATIONAL].append(name)
    return found


class DirectoryMaintenance:
    def __init__(self, store: DirectoryStore, *, preview_limit: Optional[int] = None):
        self.store = store
        self.preview_limit = PREVIEW_LIMIT if preview_limit is None else preview_limit

    async def find_directory_collections(self) -> Dict[DirectoryKind, List[str]]:
        names = await self.store.list_collection_names()
        log.info("Found %d collections: %s", len(names), ", ".join(names) or "-")
        collections = classify_collections(names)
        for kind, matched in collections.items():
            log.info("%s collection candidates: %s", DIRECTORY_LABELS[kind], matched)
        return collections

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------
    async def scan_collection(self, collection: str) -> CollectionScan:
        result = CollectionScan(collection=collection)
        try:
            result.total_count = await self.store.count_documents(collection)
            if not result.total_count:
                log.warning("Collection %s is empty", collection)
                return result
            documents = await self.store.find_documents(collection)
        except ConnectionFailure:
            raise
        except PyMongoError as exc:
            log.error("Error scanning collection %s: %s", collection, exc)
            result.error = str(exc)
            return result

        for doc in documents:
            for kind, field in IDENTIFIER_FIELDS.items():
                value = doc.get(field)
                if not value or not isinstance(value, str):
                    continue
                cleaned = get_cleaner(IDENTIFIER_KINDS[kind]).clean(value)
                if cleaned != value:
                    result.corrupted.append(
                        CorruptedRecord(document_id=str(doc.get("_id")), field=field, original=value, cleaned=cleaned)
                    )
        log.info("%s: %d of %d records need repair", collection, result.affected_count, result.total_count)
        return result

    async def scan(self) -> ScanReport:
        """Report identifiers the cleaners would rewrite, per directory-related collection."""
        names = await self.store.list_collection_names()
        report = ScanReport()
        for name in names:
            if is_directory_collection(name):
                report.collections.append(await self.scan_collection(name))
        return report

    # ------------------------------------------------------------------
    # Preview / clean
    # ------------------------------------------------------------------
    async def preview(self, limit: Optional[int] = None) -> PreviewReport:
        limit = self.preview_limit if limit is None else limit
        collections = await self.find_directory_collections()
        report = PreviewReport()
        for kind in DirectoryKind:
            field = IDENTIFIER_FIELDS[kind]
            cleaner = get_cleaner(IDENTIFIER_KINDS[kind])
            for name in collections[kind]:
                preview = CollectionPreview(kind=kind, collection=name, field=field)
                preview.document_count = await self.store.count_documents(name)
                if preview.document_count:
                    for doc in await self.store.find_documents(name, limit=limit):
                        original = doc.get(field)
                        if not original:
                            continue
                        cleaned = cleaner.clean(original)
                        if cleaned != original:
                            preview.entries.append(
                                PreviewEntry(document_id=str(doc.get("_id")), original=original, cleaned=cleaned)
                            )
                report.collections.append(preview)
        return report

    async def clean_directory(self, kind: DirectoryKind, collections: List[str]) -> DirectoryCleanupResult:
        label = DIRECTORY_LABELS[kind]
        result = DirectoryCleanupResult(kind=kind)
        if not collections:
            log.warning("No %s directory collections found", label.lower())
            return result

        log.info("Starting %s directory cleanup", label)
        cleaner = get_cleaner(IDENTIFIER_KINDS[kind])
        for name in collections:
            stats = await rewrite_collection(self.store, name, IDENTIFIER_FIELDS[kind], cleaner)
            result.collections.append(stats)
        log.info("%s cleanup complete: %d updated, %d errors", label, result.updated, result.errors)
        return result

    async def clean(self, execute: bool = False) -> Union[CleanupReport, PreviewReport]:
        """Preview by default; rewrite identifiers in place when ``execute``."""
        if not execute:
            return await self.preview()

        collections = await self.find_directory_collections()
        report = CleanupReport()
        for kind in DirectoryKind:
            report.results[kind] = await self.clean_directory(kind, collections[kind])
        return report

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    async def duplicates(self) -> List[DuplicateValue]:
        collections = await self.find_directory_collections()
        found: List[DuplicateValue] = []
        for kind in DirectoryKind:
            field = IDENTIFIER_FIELDS[kind]
            for name in collections[kind]:
                for row in await self.store.duplicate_values(name, field):
                    found.append(DuplicateValue(collection=name, field=field, value=str(row["value"]), count=row["count"]))
        return found
