"""
Category Pydantic schemas for API validation.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional


class CategoryBase(BaseModel):
    """Base category schema."""
    code: str = Field(..., min_length=1, max_length=20)
    label: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    type: Literal["Income", "Expense"]
    hmrc_box: Optional[str] = Field(None, pattern=r"^(1[7-9]|2[0-9]|30)$")


class CategoryCreate(CategoryBase):
    """Schema for creating a category."""
    pass


class CategoryUpdate(BaseModel):
    """Schema for updating a category."""
    label: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    hmrc_box: Optional[str] = Field(None, pattern=r"^(1[7-9]|2[0-9]|30)$")


class CategoryResponse(CategoryBase):
    """Schema for category response."""
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryList(BaseModel):
    """Schema for listing categories."""
    items: list[CategoryResponse]
    total: int
