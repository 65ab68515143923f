from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.db.session import Base


class UserBadge(Base):
    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("complainant_id", "badge_key", name="uq_user_badges_complainant_badge"),)

    id = Column(Integer, primary_key=True, index=True)
    complainant_id = Column(String(64), nullable=False, index=True)
    badge_key = Column(String(64), nullable=False)
    awarded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
