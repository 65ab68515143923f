import json
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import event
from sqlalchemy.pool import StaticPool

from app.client.moderation.moderation import ModerationResult
from app.db import models  # noqa: F401
from app.db.session import Base, build_engine, build_session_factory
from app.main import app
from app.model.complaint.complaint_response import ComplaintResponse
from app.service.complaint.processor import ComplaintProcessor
from app.service.complaint.types import CategoryRef
from app.service.complaint.validation import ValidationPipeline
from app.service.queue.processed_queue import ProcessedComplaintQueue
from app.service.queue.queue_store import RedisQueueStore

REG_QUEUE = "complaint:registration:queue"
PROC_QUEUE = "complaint:processing:inprogress"
PROCESSED_QUEUE = "complaint:processed:queue"
CATEGORY_ID = "11111111-1111-1111-1111-111111111111"

VALID_COMPLAINT = {
    "complainantId": "00000000-0000-0000-0000-000000000001",
    "categoryId": CATEGORY_ID,
    "subCategory": "Water leakage",
    "description": "There is a water leakage near the park that needs fixing.",
    "urgency": "LOW",
    "attachmentUrl": "https://example.com/image.jpg",
    "assignedDepartment": "WATER_SUPPLY_SANITATION",
    "isPublic": True,
    "location": {
        "pin": "560001",
        "district": "Bangalore",
        "city": "Bangalore",
        "locality": "MG Road",
        "street": "Church Street",
        "latitude": 12.97,
        "longitude": 77.59,
    },
    "submissionDate": "2026-10-19T08:30:00+00:00",
}


class FakeRedis:
    """In-memory list store with the subset of Redis list commands the queue store uses."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.down = False

    def _check(self):
        if self.down:
            raise RedisConnectionError("redis down")

    def _list(self, key):
        return self.lists.setdefault(key, [])

    def lmove(self, first_list, second_list, src="LEFT", dest="RIGHT"):
        self._check()
        source = self._list(first_list)
        if not source:
            return None
        value = source.pop(0) if src == "LEFT" else source.pop()
        target = self._list(second_list)
        if dest == "RIGHT":
            target.append(value)
        else:
            target.insert(0, value)
        return value

    def lrem(self, name, count, value):
        self._check()
        items = self._list(name)
        indexes = [i for i, item in enumerate(items) if item == value]
        if count < 0:
            indexes = list(reversed(indexes))
        if count != 0:
            indexes = indexes[: abs(count)]
        for i in sorted(indexes, reverse=True):
            del items[i]
        return len(indexes)

    def rpush(self, name, *values):
        self._check()
        items = self._list(name)
        items.extend(values)
        return len(items)

    def lindex(self, name, index):
        self._check()
        items = self._list(name)
        return items[index] if -len(items) <= index < len(items) else None

    def lpop(self, name):
        self._check()
        items = self._list(name)
        return items.pop(0) if items else None

    def llen(self, name):
        self._check()
        return len(self._list(name))

    def register_script(self, _script):
        def requeue(keys, args):
            self._check()
            if self.lrem(keys[0], -1, args[0]) > 0:
                return self.rpush(keys[1], args[0])
            return 0

        return requeue


class StubRepository:
    def __init__(self, categories=None, duplicate_of=None, create_error=None, lookup_error=None):
        self.categories = {CATEGORY_ID: CategoryRef(id=CATEGORY_ID, name="Water Supply")} if categories is None else categories
        self.duplicate_of = duplicate_of
        self.create_error = create_error
        self.lookup_error = lookup_error
        self.created = []

    def find_category(self, category_id):
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.categories.get(category_id)

    def find_recent_duplicate(self, validated, window):
        return self.duplicate_of

    def create_complaint(self, validated, is_duplicate):
        if self.create_error is not None:
            raise self.create_error
        submission = validated.submission
        self.created.append(validated)
        return ComplaintResponse(
            id=len(self.created),
            complainant_id=submission.complainant_id,
            category_id=submission.category_id,
            sub_category=submission.sub_category,
            standardized_sub_category=validated.standardized_sub_category,
            description=validated.description,
            urgency=submission.urgency.value,
            is_public=submission.is_public,
            status="REGISTERED",
            is_duplicate=is_duplicate,
            is_moderated=validated.is_moderated,
            created_at=datetime.now(timezone.utc),
        )


class StubModerator:
    def __init__(self, result=None, error=None):
        self.result = result or ModerationResult()
        self.error = error
        self.calls = []

    async def moderate_text_safe(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


class StubClassifier:
    def __init__(self, term="Water Leakage", error=None):
        self.term = term
        self.error = error

    async def standardize_safe(self, raw_text, category_name=""):
        if self.error is not None:
            raise self.error
        return self.term


class StubBadgeService:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def check_badges_after_complaint(self, complaint):
        self.calls.append(complaint)
        if self.error is not None:
            raise self.error
        return ["FIRST_COMPLAINT"]


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def queue_store(fake_redis):
    return RedisQueueStore(fake_redis)


@pytest.fixture
def valid_payload():
    return json.dumps(VALID_COMPLAINT)


@pytest.fixture
def make_processor(queue_store):
    def _make(repository=None, moderator=None, classifier=None, badge_service=None):
        repository = repository or StubRepository()
        return ComplaintProcessor(
            queue_store=queue_store,
            pipeline=ValidationPipeline(repository, moderator or StubModerator(), classifier or StubClassifier()),
            repository=repository,
            processed_queue=ProcessedComplaintQueue(queue_store, PROCESSED_QUEUE),
            badge_service=badge_service or StubBadgeService(),
            registration_queue=REG_QUEUE,
            processing_queue=PROC_QUEUE,
        )

    return _make


@pytest.fixture
def session_factory():
    engine = build_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


#scope : function < class < module < package < session
@pytest.fixture(scope="function")
def client():
    return TestClient(app)
