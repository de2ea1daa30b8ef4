"""Collision-safe rewriting of one identifier field across a collection."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set

from pymongo.errors import ConnectionFailure, PyMongoError

from minedir.directory_store import DirectoryStore
from minedir.models import IdentifierChange, RewriteStats

log = logging.getLogger(__name__)

Cleaner = Callable[[Any], Any]


def resolve_collision(candidate: str, used: Set[str]) -> str:
    """Return ``candidate`` or ``candidate-N`` with the lowest free N."""
    final = candidate
    suffix = 1
    while final in used:
        final = f"{candidate}-{suffix}"
        suffix += 1
    return final


async def collect_used_identifiers(store: DirectoryStore, collection: str, field: str) -> Set[str]:
    values = await store.distinct(collection, field)
    return {value for value in values if value is not None}


async def rewrite_documents(
    store: DirectoryStore,
    collection: str,
    documents: Iterable[Dict[str, Any]],
    field: str,
    clean: Cleaner,
    used: Set[str],
    *,
    dry_run: bool = False,
) -> RewriteStats:
    """Clean ``field`` on each document in order, keeping values unique.

    ``used`` must hold every value already present in the collection; it is
    extended in place with each value the loop keeps or assigns.
    """
    documents = list(documents)
    stats = RewriteStats(collection=collection, field=field, total=len(documents), dry_run=dry_run)

    for doc in documents:
        original = doc.get(field)
        if not original:
            continue

        cleaned = clean(original)
        if cleaned == original:
            used.add(original)
            continue

        final = resolve_collision(cleaned, used)
        used.add(final)
        change = IdentifierChange(
            document_id=str(doc.get("_id")),
            field=field,
            original=original,
            cleaned=cleaned,
            final=final,
        )

        if not dry_run:
            try:
                matched = await store.update_identifier(collection, doc["_id"], field, final)
            except ConnectionFailure:
                raise
            except PyMongoError as exc:
                stats.errors += 1
                log.error("Error updating document %s in %s: %s", doc.get("_id"), collection, exc)
                continue
            if not matched:
                stats.errors += 1
                log.warning("Document %s vanished from %s before it could be updated", doc.get("_id"), collection)
                continue

        stats.updated += 1
        stats.changes.append(change)
        if change.suffixed:
            log.info('Updated (with suffix): "%s" -> "%s"', original, final)
        else:
            log.info('Updated: "%s" -> "%s"', original, final)

    return stats


async def rewrite_collection(
    store: DirectoryStore,
    collection: str,
    field: str,
    clean: Cleaner,
    *,
    dry_run: bool = False,
    used: Optional[Set[str]] = None,
) -> RewriteStats:
    log.info("Processing collection: %s", collection)
    documents = await store.find_documents(collection)
    log.info("Found %d documents in %s", len(documents), collection)

    if used is None:
        used = await collect_used_identifiers(store, collection, field)
    log.info("Found %d existing %s values in %s", len(used), field, collection)

    stats = await rewrite_documents(store, collection, documents, field, clean, used, dry_run=dry_run)
    log.info("%s: %d updated, %d errors", collection, stats.updated, stats.errors)
    return stats
