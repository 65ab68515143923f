import json
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

import app.config.config as configs


class Urgency(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Location(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    pin: str = Field(..., pattern=r"^\d{6}$")
    district: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    locality: str = Field(..., min_length=1)
    street: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class ComplaintSubmission(BaseModel):
    """Raw complaint as pushed onto the registration queue by the ingress service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    complainant_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    sub_category: str = Field(..., min_length=1)
    description: str
    urgency: Urgency = Urgency.LOW
    is_public: bool = True
    attachment_url: Optional[str] = None
    assigned_department: Optional[str] = None
    location: Optional[Location] = None
    submission_date: Optional[datetime] = None

    @field_validator("description")
    @classmethod
    def _description_long_enough(cls, value: str) -> str:
        if len(value.strip()) < configs.MIN_DESCRIPTION_LENGTH:
            raise ValueError(f"description must be at least {configs.MIN_DESCRIPTION_LENGTH} characters")
        return value


def serialize_submission(submission: ComplaintSubmission) -> str:
    """
    Canonical wire form of a submission.
    In-flight removal matches on the exact string, so key order and separators must be stable.
    """
    data = submission.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
