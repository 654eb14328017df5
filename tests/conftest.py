"""
Pytest Configuration and Fixtures

Unit tests run without Mongo or Redis: repositories talk to an in-memory
stand-in for the Motor database, and the note cache is disabled unless a test
injects its own client.
"""

import os

# ---------------------------------------------------------------------------
# Test environment defaults: MUST be before any `app` imports so that
# pydantic Settings picks them up.
# ---------------------------------------------------------------------------
os.environ["JWT_SECRET"] = "test-secret"
os.environ["NOTES_REDIS_URL"] = ""
os.environ.setdefault("MONGO_DB", "notes_test")

import copy  # noqa: E402
import fnmatch  # noqa: E402
from collections.abc import Generator  # noqa: E402
from typing import Any, Dict, List, Optional  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from bson import ObjectId  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pymongo.errors import DuplicateKeyError  # noqa: E402

from app.infrastructure.cache.redis_cache import NoteCache, set_note_cache  # noqa: E402
from app.infrastructure.security.token_service import create_access_token  # noqa: E402


# ---------------------------------------------------------------------------
# In-memory Motor stand-in (equality filters, inclusion projections)
# ---------------------------------------------------------------------------
class _Result:
    def __init__(self, **kwargs: Any) -> None:
        self.__dict__.update(kwargs)


def _matches(doc: Dict[str, Any], flt: Dict[str, Any]) -> bool:
    # Mongo semantics: {field: None} also matches a missing field
    for k, v in flt.items():
        if k == "$or":
            if not any(_matches(doc, sub) for sub in v):
                return False
        elif isinstance(v, dict) and "$ne" in v:
            if doc.get(k) == v["$ne"]:
                return False
        elif doc.get(k) != v:
            return False
    return True


def _project(doc: Dict[str, Any], projection: Optional[Dict[str, int]]) -> Dict[str, Any]:
    if not projection:
        return copy.deepcopy(doc)
    keep = {k for k, v in projection.items() if v and k != "_id"}
    out = {k: copy.deepcopy(v) for k, v in doc.items() if k in keep}
    if projection.get("_id", 1):
        out["_id"] = doc["_id"]
    return out


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]) -> None:
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def skip(self, n: int) -> "FakeCursor":
        self._skip = n
        return self

    def limit(self, n: int) -> "FakeCursor":
        self._limit = n
        return self

    def __aiter__(self):
        docs = self._docs[self._skip:]
        if self._limit:
            docs = docs[: self._limit]
        return self._gen(docs)

    async def _gen(self, docs):
        for d in docs:
            yield d


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: List[Dict[str, Any]] = []

    async def insert_one(self, doc: Dict[str, Any]) -> _Result:
        data = copy.deepcopy(doc)
        data.setdefault("_id", ObjectId())
        if any(d["_id"] == data["_id"] for d in self.docs):
            raise DuplicateKeyError(f"duplicate _id {data['_id']}")
        self.docs.append(data)
        return _Result(inserted_id=data["_id"])

    async def find_one(self, flt: Dict[str, Any], projection: Optional[Dict[str, int]] = None):
        for d in self.docs:
            if _matches(d, flt):
                return _project(d, projection)
        return None

    def find(self, flt: Dict[str, Any], projection: Optional[Dict[str, int]] = None) -> FakeCursor:
        return FakeCursor([_project(d, projection) for d in self.docs if _matches(d, flt)])

    async def count_documents(self, flt: Dict[str, Any], limit: int = 0) -> int:
        n = sum(1 for d in self.docs if _matches(d, flt))
        return min(n, limit) if limit else n

    async def update_one(self, flt: Dict[str, Any], update: Dict[str, Any]) -> _Result:
        for d in self.docs:
            if _matches(d, flt):
                changes = {k: v for k, v in update.get("$set", {}).items() if d.get(k) != v}
                d.update(copy.deepcopy(changes))
                return _Result(matched_count=1, modified_count=1 if changes else 0)
        return _Result(matched_count=0, modified_count=0)

    async def delete_one(self, flt: Dict[str, Any]) -> _Result:
        for i, d in enumerate(self.docs):
            if _matches(d, flt):
                del self.docs[i]
                return _Result(deleted_count=1)
        return _Result(deleted_count=0)


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(name))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def fake_db() -> Generator[FakeDatabase, None, None]:
    """In-memory database wired into both repositories."""
    db = FakeDatabase()
    with (
        patch("app.repositories.note_repo.get_async_db", return_value=db),
        patch("app.repositories.channel_repo.get_async_db", return_value=db),
    ):
        yield db


@pytest.fixture(autouse=True)
def disabled_cache() -> Generator[NoteCache, None, None]:
    cache = NoteCache(None)
    set_note_cache(cache)
    yield cache
    set_note_cache(None)


@pytest.fixture
def add_channel(fake_db):
    """Inserts a channel document and returns its ObjectId."""

    def _add(user: str, *, is_default: bool = True, deleted_at=None, name: str = "inbox", type_: str = "telegram") -> ObjectId:
        oid = ObjectId()
        fake_db["channels"].docs.append({
            "_id": oid,
            "name": name,
            "type": type_,
            "isDefault": is_default,
            "user": user,
            "deletedAt": deleted_at,
        })
        return oid

    return _add


@pytest.fixture
def client(fake_db) -> Generator[TestClient, None, None]:
    """TestClient with startup checks mocked (no Mongo bootstrap)."""
    from app.main import app

    with patch("app.main.ping", new_callable=AsyncMock) as mock_ping:
        mock_ping.return_value = False
        with TestClient(app) as c:
            yield c


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id=user_id)}"}

    return _headers


class FakeRedis:
    """Dict-backed stand-in for the redis.asyncio calls NoteCache makes."""

    def __init__(self) -> None:
        self.store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.store[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        return sum(1 for k in keys if self.store.pop(k, None) is not None)

    async def scan_iter(self, match: str = "*"):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self) -> bool:
        return True


@pytest.fixture
def redis_store() -> Generator[FakeRedis, None, None]:
    """Enables the note cache over an in-memory Redis."""
    client = FakeRedis()
    set_note_cache(NoteCache(client, ttl_seconds=60))
    yield client
    set_note_cache(None)
