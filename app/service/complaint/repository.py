from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.client.db.psql import session_scope
from app.db.models.category import Category
from app.db.models.complaint import Complaint
from app.model.complaint.complaint_response import ComplaintResponse
from app.service.complaint.errors import ConstraintViolation, TransientInfra
from app.service.complaint.types import CategoryRef, ValidatedComplaint

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ComplaintRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def find_category(self, category_id: str) -> Optional[CategoryRef]:
        try:
            with session_scope(self._session_factory) as db:
                row = db.get(Category, category_id)
                if row is None:
                    return None
                return CategoryRef(id=row.id, name=row.name, assigned_department=row.assigned_department)
        except SQLAlchemyError as e:
            raise TransientInfra("category lookup failed", cause=e) from e

    def find_recent_duplicate(self, validated: ValidatedComplaint, window: timedelta) -> Optional[int]:
        """
        Id of an earlier complaint by the same complainant with the same
        category, sub-category and description inside the window, if any.
        """
        submission = validated.submission
        since = _utcnow() - window
        stmt = (
            select(Complaint.id)
            .where(
                Complaint.complainant_id == submission.complainant_id,
                Complaint.category_id == submission.category_id,
                Complaint.sub_category == submission.sub_category,
                Complaint.description == validated.description,
                Complaint.created_at >= since,
            )
            .order_by(Complaint.created_at.desc())
            .limit(1)
        )
        try:
            with session_scope(self._session_factory) as db:
                return db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise TransientInfra("duplicate lookup failed", cause=e) from e

    def create_complaint(self, validated: ValidatedComplaint, is_duplicate: bool) -> ComplaintResponse:
        submission = validated.submission
        try:
            with session_scope(self._session_factory) as db:
                row = Complaint(
                    complainant_id=submission.complainant_id,
                    category_id=submission.category_id,
                    sub_category=submission.sub_category,
                    standardized_sub_category=validated.standardized_sub_category,
                    description=validated.description,
                    urgency=submission.urgency.value,
                    is_public=submission.is_public,
                    attachment_url=submission.attachment_url,
                    assigned_department=validated.assigned_department,
                    location=submission.location.model_dump(exclude_none=True) if submission.location else None,
                    status="REGISTERED",
                    is_duplicate=is_duplicate,
                    is_moderated=validated.is_moderated,
                    submission_date=submission.submission_date,
                    created_at=_utcnow(),
                )
                db.add(row)
                db.flush()
                created = ComplaintResponse.model_validate(row)
        except IntegrityError as e:
            raise ConstraintViolation("invalid complaint removed from queue", cause=e) from e
        except SQLAlchemyError as e:
            raise TransientInfra("complaint persistence failed", cause=e) from e
        return created
