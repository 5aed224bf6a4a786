from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .category import SubcategoryBrief
from .validators import EntityId, optional_text, required_text


def _dedupe(ids: Optional[List[int]]) -> Optional[List[int]]:
    if ids is None:
        return None
    return list(dict.fromkeys(ids))


class ClothTypeCreate(BaseModel):
    code: str = Field(..., max_length=100)
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    subcat_id: Optional[List[EntityId]] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        return required_text(value, "code")

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)

    @field_validator("subcat_id")
    @classmethod
    def dedupe_subcategories(cls, value):
        return _dedupe(value)

    def fields(self) -> dict:
        """Column values for the cloth type row itself."""
        return self.model_dump(exclude={"subcat_id"})


class ClothTypeUpdate(BaseModel):
    """
    Partial update.

    ``subcat_id`` distinguishes three states: key absent or null (associations
    untouched), ``[]`` (clear all) and a non-empty list (replace the set).
    Presence is read from ``model_fields_set``, never from the default value.
    """

    code: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    subcat_id: Optional[List[EntityId]] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, value):
        return required_text(value, "code")

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return required_text(value, "name")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, value):
        return optional_text(value)

    @field_validator("subcat_id")
    @classmethod
    def dedupe_subcategories(cls, value):
        return _dedupe(value)

    @property
    def subcat_id_supplied(self) -> bool:
        return "subcat_id" in self.model_fields_set and self.subcat_id is not None

    def fields(self) -> dict:
        """Supplied column values only."""
        return self.model_dump(exclude_unset=True, exclude={"subcat_id"})


class ClothTypeResponse(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    subcategories: List[SubcategoryBrief] = []

    model_config = {"from_attributes": True}
