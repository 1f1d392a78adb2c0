"""
Categorization rule schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from taxtrack.models.transaction import TransactionType, BusinessType


def _clean_keyword(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("keyword must not be blank")
    return value


class RuleBase(BaseModel):
    keyword: str = Field(..., min_length=1, max_length=255)
    type: TransactionType
    business_type: Optional[BusinessType] = None
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("keyword")
    @classmethod
    def strip_keyword(cls, value: str) -> str:
        return _clean_keyword(value)


class RuleCreate(RuleBase):
    pass


class RuleUpdate(BaseModel):
    keyword: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[TransactionType] = None
    business_type: Optional[BusinessType] = None
    category: Optional[str] = Field(None, max_length=100)

    @field_validator("keyword")
    @classmethod
    def strip_keyword(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("keyword must not be blank")
        return _clean_keyword(value)


class RuleResponse(RuleBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class ApplyRulesResponse(BaseModel):
    updated: int
    message: str
