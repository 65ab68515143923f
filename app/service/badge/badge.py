import logging

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from app.client.db.psql import session_scope
from app.db.models.complaint import Complaint
from app.db.models.user_badge import UserBadge
from app.model.complaint.complaint_response import ComplaintResponse

logger = logging.getLogger(__name__)

# badge key -> number of registered complaints required
COUNT_BADGES = {
    "FIRST_COMPLAINT": 1,
    "ACTIVE_CITIZEN": 5,
    "CIVIC_CHAMPION": 25,
}
URGENT_REPORTER = "URGENT_REPORTER"
URGENT_LEVELS = ("HIGH", "CRITICAL")


class BadgeService:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def check_badges_after_complaint(self, complaint: ComplaintResponse) -> list[str]:
        """Award every badge the complainant now qualifies for and return the newly awarded keys."""
        complainant_id = complaint.complainant_id
        with session_scope(self._session_factory) as db:
            owned = set(
                db.execute(
                    select(UserBadge.badge_key).where(UserBadge.complainant_id == complainant_id)
                ).scalars()
            )
            total = db.execute(
                select(func.count(Complaint.id)).where(
                    Complaint.complainant_id == complainant_id,
                    Complaint.is_duplicate.is_(False),
                )
            ).scalar_one()

            earned = [key for key, needed in COUNT_BADGES.items() if total >= needed]
            if complaint.urgency in URGENT_LEVELS:
                earned.append(URGENT_REPORTER)

            awarded = [key for key in earned if key not in owned]
            for key in awarded:
                db.add(UserBadge(complainant_id=complainant_id, badge_key=key))

        if awarded:
            logger.info("badges awarded complainant=%s badges=%s", complainant_id, awarded)
        return awarded
