"""
Category API Schema Definitions.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    icon: str = Field(default="tag", max_length=50, description="Icon identifier used by the client")


class CategoryUpdate(BaseModel):
    """Renaming reassigns every expense filed under the old name."""
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    icon: Optional[str] = Field(None, max_length=50)


class CategoryResponse(BaseModel):
    id: int
    name: str
    icon: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
