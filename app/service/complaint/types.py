from dataclasses import dataclass
from typing import Optional

from app.model.complaint.complaint_request import ComplaintSubmission


@dataclass(frozen=True)
class CategoryRef:
    id: str
    name: str
    assigned_department: Optional[str] = None


@dataclass(frozen=True)
class ValidatedComplaint:
    submission: ComplaintSubmission
    category: CategoryRef
    # Description after moderation
    description: str
    standardized_sub_category: str
    is_moderated: bool = False

    @property
    def assigned_department(self) -> Optional[str]:
        return self.submission.assigned_department or self.category.assigned_department
