from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ComplaintResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    complainant_id: str
    category_id: str
    sub_category: str
    standardized_sub_category: Optional[str] = None
    description: str
    urgency: str
    is_public: bool
    attachment_url: Optional[str] = None
    assigned_department: Optional[str] = None
    location: Optional[Dict[str, Any]] = None
    status: str
    is_duplicate: bool = False
    is_moderated: bool = False
    submission_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
