from .approval_status import ApprovalStatus
from .category import DEFAULT_CATEGORY, Category, sanitize_category
from .storage_name import StorageName

__all__ = [
    "DEFAULT_CATEGORY",
    "ApprovalStatus",
    "Category",
    "StorageName",
    "sanitize_category",
]
