"""
Shared fixtures: an in-memory stand-in for the MongoDB directory store.
"""
from typing import Any, Dict, List, Optional

import pytest
from bson import ObjectId
from pymongo.errors import AutoReconnect, WriteError


class FakeDirectoryStore:
    """Implements the DirectoryStore surface over plain dicts.

    ``fail_updates`` maps a document id to the exception its update raises.
    """

    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.collections: Dict[str, List[Dict[str, Any]]] = {}
        self.fail_updates: Dict[Any, Exception] = {}
        self.updates: List[tuple] = []
        for name, documents in (collections or {}).items():
            self.add_collection(name, documents)

    def add_collection(self, name: str, documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        stored = []
        for doc in documents:
            doc = dict(doc)
            doc.setdefault("_id", ObjectId())
            stored.append(doc)
        self.collections[name] = stored
        return stored

    def values(self, name: str, field: str) -> List[Any]:
        return [doc.get(field) for doc in self.collections[name]]

    async def list_collection_names(self) -> List[str]:
        return sorted(self.collections)

    async def count_documents(self, collection: str, query: Optional[Dict[str, Any]] = None) -> int:
        return len(self.collections.get(collection, []))

    async def find_documents(self, collection: str, query=None, *, limit: int = 0) -> List[Dict[str, Any]]:
        documents = sorted(self.collections.get(collection, []), key=lambda doc: doc["_id"])
        if limit:
            documents = documents[:limit]
        return [dict(doc) for doc in documents]

    async def distinct(self, collection: str, field: str) -> List[Any]:
        seen = []
        for doc in self.collections.get(collection, []):
            value = doc.get(field)
            if field in doc and value not in seen:
                seen.append(value)
        return seen

    async def update_identifier(self, collection: str, document_id: Any, field: str, value: str) -> bool:
        if document_id in self.fail_updates:
            raise self.fail_updates[document_id]
        for doc in self.collections.get(collection, []):
            if doc["_id"] == document_id:
                doc[field] = value
                self.updates.append((collection, document_id, field, value))
                return True
        return False

    async def duplicate_values(self, collection: str, field: str) -> List[Dict[str, Any]]:
        counts: Dict[Any, int] = {}
        for value in self.values(collection, field):
            if value in (None, ""):
                continue
            counts[value] = counts.get(value, 0) + 1
        return [{"value": value, "count": count} for value, count in counts.items() if count > 1]


@pytest.fixture
def store() -> FakeDirectoryStore:
    return FakeDirectoryStore()


@pytest.fixture
def seeded_store() -> FakeDirectoryStore:
    return FakeDirectoryStore(
        {
            "directorynationals": [
                {"contractNumber": "071-97-IV-1758080332921-0vq071-97-IV-1758080332921-0vq", "contractor": "Alpha Mining"},
                {"contractNumber": "071-97-IV-1758080332999-1ab", "contractor": "Alpha Mining"},
                {"contractNumber": "125-98-IV-Amended B", "contractor": "Beta Quarry"},
                {"contractNumber": "029-95-IV", "contractor": "Gamma Resources"},
            ],
            "directorylocals": [
                {"permitNumber": "QP-Q-0064-1758080332921-0vqQP-Q-0064-1758080332921-0vq", "permitHolder": "Delta Sand"},
                {"permitNumber": "QPA-CAV-2021", "permitHolder": "Epsilon Gravel"},
                {"permitHolder": "No Permit Holder"},
            ],
            "directoryhotspots": [
                {"complaintNumber": "GENERATED-HOTSPOT-1758080332921-k3j9x0abc", "subject": "Illegal quarrying"},
                {"complaintNumber": "HS-2024-001", "subject": "River siltation"},
            ],
            "users": [
                {"username": "admin", "contractNumber": "999-99-IV-1758080332921-zzz"},
            ],
        }
    )


@pytest.fixture
def write_error() -> WriteError:
    return WriteError("Document failed validation", code=121)


@pytest.fixture
def connection_error() -> AutoReconnect:
    return AutoReconnect("connection closed")
