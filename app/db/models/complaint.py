from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.db.session import Base


class Complaint(Base):
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True)
    complainant_id = Column(String(64), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    # Free text as submitted
    sub_category = Column(String, nullable=False)
    # Controlled vocabulary term from the classifier; equals sub_category when it was unavailable
    standardized_sub_category = Column(String, nullable=True)
    description = Column(String, nullable=False)
    # LOW | MEDIUM | HIGH | CRITICAL
    urgency = Column(String, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    attachment_url = Column(String, nullable=True)
    assigned_department = Column(String, nullable=True)
    location = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    # REGISTERED | IN_PROGRESS | RESOLVED | CLOSED
    status = Column(String, default="REGISTERED", nullable=False)
    is_duplicate = Column(Boolean, default=False, nullable=False)
    # Description was replaced by the moderation service
    is_moderated = Column(Boolean, default=False, nullable=False)
    submission_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
