from .category import Category
from .complaint import Complaint
from .user_badge import UserBadge

__all__ = ["Category", "Complaint", "UserBadge"]
