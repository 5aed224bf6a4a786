from .activity_log import ActivityLog
from .category import Category, Subcategory
from .cloth_type import ClothType, ClothTypeSubcategory
from .token_blacklist import TokenBlacklist
from .user import Role, User, role_user

__all__ = [
    "ActivityLog",
    "Category",
    "ClothType",
    "ClothTypeSubcategory",
    "Role",
    "Subcategory",
    "TokenBlacklist",
    "User",
    "role_user",
]
