"""
Pydantic schemas that validate mapped target entities before they are written
"""

from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime


class ArticleValidation(BaseModel):
    """
    Business rules for ``models.Article``.

    Ensures:
    - Title is present and not blank
    - Text fields fit their columns
    """

    title: Optional[str] = Field(None, max_length=500)
    slug: Optional[str] = Field(None, max_length=255)
    external_id: Optional[str] = Field(None, max_length=255)
    author: Optional[str] = Field(None, max_length=200)
    body: Optional[str] = None
    published_at: Optional[datetime] = None

    @validator("title", always=True)
    def title_not_empty(cls, v):
        """Title must not be empty"""
        if v is None or not str(v).strip():
            raise ValueError("Title must not be empty")
        return v

    class Config:
        from_attributes = True


# Validation schema per target kind name
TARGET_VALIDATORS = {
    "Article": ArticleValidation,
}
