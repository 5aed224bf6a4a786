from .activity_log import ActivityLogResponse
from .category import (
    CategoryBrief,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ClothTypeBrief,
    SubcategoryBrief,
    SubcategoryCreate,
    SubcategoryResponse,
    SubcategoryUpdate,
)
from .cloth_type import ClothTypeCreate, ClothTypeResponse, ClothTypeUpdate
from .common import ErrorResponse, MessageResponse, Page
from .user import (
    LoginResponse,
    RoleResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    # Activity log
    "ActivityLogResponse",
    # Category / Subcategory
    "CategoryBrief",
    "CategoryCreate",
    "CategoryResponse",
    "CategoryUpdate",
    "ClothTypeBrief",
    "SubcategoryBrief",
    "SubcategoryCreate",
    "SubcategoryResponse",
    "SubcategoryUpdate",
    # Cloth type
    "ClothTypeCreate",
    "ClothTypeResponse",
    "ClothTypeUpdate",
    # Common
    "ErrorResponse",
    "MessageResponse",
    "Page",
    # User / auth
    "LoginResponse",
    "RoleResponse",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
]
