from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .validators import EntityId, optional_text, required_text


class SubcategoryBrief(BaseModel):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class CategoryBrief(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ClothTypeBrief(BaseModel):
    id: int
    code: str
    name: str

    model_config = {"from_attributes": True}


class CategoryCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    subcategories: List[SubcategoryBrief] = []

    model_config = {"from_attributes": True}


class SubcategoryCreate(BaseModel):
    category_id: EntityId
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)


class SubcategoryUpdate(BaseModel):
    category_id: Optional[EntityId] = None
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)

    @field_validator("category_id", mode="before")
    @classmethod
    def require_category(cls, value):
        if value is None:
            raise ValueError("The category_id field is required.")
        return value

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)


class SubcategoryResponse(BaseModel):
    id: int
    category_id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[CategoryBrief] = None
    cloth_types: List[ClothTypeBrief] = []

    model_config = {"from_attributes": True}
