from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.model.complaint.complaint_response import ComplaintResponse


class OutcomeKind(str, Enum):
    PROCESSED = "processed"
    REJECTED = "rejected"
    REQUEUED = "requeued"
    EMPTY = "empty"


class ProcessingOutcome(BaseModel):
    """Result of one processing cycle. Only used for logging and the manual trigger response."""

    kind: OutcomeKind
    reason: Optional[str] = None
    complaint: Optional[ComplaintResponse] = None
    is_duplicate: bool = False

    @classmethod
    def processed(cls, complaint: ComplaintResponse, is_duplicate: bool) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.PROCESSED, complaint=complaint, is_duplicate=is_duplicate)

    @classmethod
    def rejected(cls, reason: str) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.REJECTED, reason=reason)

    @classmethod
    def requeued(cls, reason: str) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.REQUEUED, reason=reason)

    @classmethod
    def empty(cls) -> "ProcessingOutcome":
        return cls(kind=OutcomeKind.EMPTY)


class QueueStatus(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    registration_queue_length: int = Field(..., ge=0)
    processing_queue_length: int = Field(..., ge=0)
    processed_queue_length: Optional[int] = None


class ProcessingResponse(BaseModel):
    success: bool
    message: str
    data: Optional[ComplaintResponse] = None


class PollingStatusResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    is_polling: bool
    queues: Optional[QueueStatus] = None
    error: Optional[str] = None
