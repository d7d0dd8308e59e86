"""
EventHub Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── events_collection: In-memory stand-in for the Motor events collection
    ├── sample_image_bytes: Small PNG payload for upload tests
    ├── seeded_events: Four stored events with distinct schedules
    └── test_client: HTTPX AsyncClient wired to a fresh app

No MongoDB server is needed: the app's get_events_collection dependency is
overridden with the in-memory collection.
"""

import copy
import os
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

# Override settings for testing BEFORE any app imports
os.environ["MONGO_URI"] = "mongodb://localhost:27017"
os.environ["MONGO_DB_NAME"] = "eventsDB_test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# In-memory collection
# ══════════════════════════════════════════════════════════════════════════

def _matches(document: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    return all(document.get(key) == value for key, value in (query or {}).items())


def _project(document: Dict[str, Any], projection: Optional[Dict[str, int]]) -> Dict[str, Any]:
    if not projection:
        return copy.deepcopy(document)
    keep = {key for key, flag in projection.items() if flag}
    keep.add("_id")
    return {key: copy.deepcopy(value) for key, value in document.items() if key in keep}


class FakeCursor:
    """Chainable subset of AsyncIOMotorCursor: sort / skip / limit / to_list."""

    def __init__(self, documents: List[Dict[str, Any]]):
        self._documents = documents
        self._sort: List[tuple] = []
        self._skip = 0
        self._limit = 0

    def sort(self, key_or_list, direction=None):
        if isinstance(key_or_list, str):
            key_or_list = [(key_or_list, direction or 1)]
        self._sort = list(key_or_list)
        return self

    def skip(self, count: int):
        self._skip = count
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    async def to_list(self, length: Optional[int] = None):
        documents = list(self._documents)
        # Stable sort, least significant key first; None sorts lowest like BSON null
        for key, direction in reversed(self._sort):
            documents.sort(
                key=lambda d: (d.get(key) is not None, d.get(key) if d.get(key) is not None else 0),
                reverse=direction < 0,
            )
        documents = documents[self._skip:]
        if self._limit:
            documents = documents[: self._limit]
        if length is not None:
            documents = documents[:length]
        return [copy.deepcopy(d) for d in documents]


class FakeEventsCollection:
    """
    The handful of AsyncIOMotorCollection methods EventService uses.

    `calls` records every method invoked, so tests can assert that a request
    never reached the database.
    """

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []
        self.calls: List[str] = []

    async def insert_one(self, document: Dict[str, Any]):
        self.calls.append("insert_one")
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        document["_id"] = stored["_id"]
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    async def find_one(self, query=None, projection=None):
        self.calls.append("find_one")
        for document in self.documents:
            if _matches(document, query):
                return _project(document, projection)
        return None

    def find(self, query=None, projection=None):
        self.calls.append("find")
        return FakeCursor([d for d in self.documents if _matches(d, query)])

    async def update_one(self, query, update):
        self.calls.append("update_one")
        for document in self.documents:
            if _matches(document, query):
                document.update(copy.deepcopy(update.get("$set", {})))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query):
        self.calls.append("delete_one")
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def get(self, event_id) -> Optional[Dict[str, Any]]:
        """Direct lookup for assertions (not part of the Motor API)."""
        oid = ObjectId(event_id) if isinstance(event_id, str) else event_id
        for document in self.documents:
            if document["_id"] == oid:
                return document
        return None


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def events_collection():
    return FakeEventsCollection()


@pytest.fixture
def sample_image_bytes():
    """
    A 1x1 transparent PNG.

    Contains bytes that are not valid UTF-8, so a lossy round trip would show.
    """
    return (
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
        b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\xff"
        b"\xff?\x00\x05\xfe\x02\xfe\xa7\x35\x81\x84\x00\x00\x00\x00IEND\xaeB`\x82"
    )


@pytest.fixture
def sample_event_fields():
    """Form fields for a complete create request."""
    return {
        "name": "Distributed Systems Meetup",
        "tagline": "Consensus over coffee",
        "schedule": "2024-06-01T18:00:00+00:00",
        "description": "Monthly meetup on replication and consensus.",
        "moderator": "moderator-17",
        "category": "tech",
        "sub_category": "databases",
        "rigor_rank": "3",
    }


@pytest.fixture
def seeded_events(events_collection):
    """Four events, schedules one day apart (Jan 1 .. Jan 4, 2024)."""
    for day in range(1, 5):
        events_collection.documents.append(
            {
                "_id": ObjectId(),
                "type": "event",
                "uid": day,
                "name": f"Event {day}",
                "schedule": datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
                "rigor_rank": day,
                "attendees": [],
                "image": "",
            }
        )
    return events_collection


@pytest_asyncio.fixture
async def test_client(events_collection):
    """
    Async HTTP client talking to a fresh app through ASGITransport.

    ASGITransport does not run the lifespan, so no MongoDB connection is
    attempted; the collection dependency is overridden instead.
    """
    from eventhub.database import get_events_collection
    from eventhub.main import create_app

    app = create_app()
    app.dependency_overrides[get_events_collection] = lambda: events_collection
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
