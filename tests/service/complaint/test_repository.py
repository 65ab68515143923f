from datetime import datetime, timedelta, timezone

import pytest

from app.client.db.psql import session_scope
from app.db.models.category import Category
from app.db.models.complaint import Complaint
from app.service.complaint.errors import ConstraintViolation
from app.service.complaint.repository import ComplaintRepository
from app.service.complaint.types import CategoryRef, ValidatedComplaint
from app.service.complaint.validation import parse_submission
from conftest import CATEGORY_ID


@pytest.fixture
def repository(session_factory):
    with session_scope(session_factory) as db:
        db.add(Category(id=CATEGORY_ID, name="Water Supply", assigned_department="WATER_SUPPLY_SANITATION"))
    return ComplaintRepository(session_factory)


def _validated(payload: str, description: str | None = None) -> ValidatedComplaint:
    submission = parse_submission(payload)
    return ValidatedComplaint(
        submission=submission,
        category=CategoryRef(id=submission.category_id, name="Water Supply"),
        description=description or submission.description,
        standardized_sub_category="Water Leakage",
    )


def test_find_category(repository):
    category = repository.find_category(CATEGORY_ID)

    assert category == CategoryRef(id=CATEGORY_ID, name="Water Supply", assigned_department="WATER_SUPPLY_SANITATION")
    assert repository.find_category("missing") is None


def test_create_complaint_persists_record(repository, session_factory, valid_payload):
    created = repository.create_complaint(_validated(valid_payload), is_duplicate=False)

    assert created.id is not None
    assert created.status == "REGISTERED"
    assert created.standardized_sub_category == "Water Leakage"
    assert created.location["pin"] == "560001"
    with session_scope(session_factory) as db:
        assert db.get(Complaint, created.id).description.startswith("There is a water leakage")


def test_create_complaint_with_deleted_category_is_constraint_violation(repository, valid_payload):
    validated = _validated(valid_payload.replace(CATEGORY_ID, "22222222-2222-2222-2222-222222222222"))

    with pytest.raises(ConstraintViolation) as exc:
        repository.create_complaint(validated, is_duplicate=False)

    assert exc.value.reason == "invalid complaint removed from queue"


def test_find_recent_duplicate_inside_window(repository, valid_payload):
    first = repository.create_complaint(_validated(valid_payload), is_duplicate=False)

    assert repository.find_recent_duplicate(_validated(valid_payload), timedelta(hours=24)) == first.id


def test_find_recent_duplicate_ignores_different_description(repository, valid_payload):
    repository.create_complaint(_validated(valid_payload), is_duplicate=False)

    other = _validated(valid_payload, description="A completely different problem on the same street.")
    assert repository.find_recent_duplicate(other, timedelta(hours=24)) is None


def test_find_recent_duplicate_ignores_old_complaints(repository, session_factory, valid_payload):
    validated = _validated(valid_payload)
    submission = validated.submission
    with session_scope(session_factory) as db:
        db.add(
            Complaint(
                complainant_id=submission.complainant_id,
                category_id=submission.category_id,
                sub_category=submission.sub_category,
                description=submission.description,
                urgency="LOW",
                created_at=datetime.now(timezone.utc) - timedelta(days=3),
            )
        )

    assert repository.find_recent_duplicate(validated, timedelta(hours=24)) is None
