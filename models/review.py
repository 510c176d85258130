# models/review.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from models.course import new_id

class Review(BaseModel):
    id: str = Field(default_factory=new_id)
    courseId: str
    userId: str
    userName: str = "User"
    rating: int = Field(ge=1, le=5)
    title: str = Field(max_length=100)
    comment: str = Field(max_length=1000)
    helpfulCount: int = 0
    unhelpfulCount: int = 0
    isApproved: bool = True
    isDeleted: bool = False
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

# Request bodies

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    title: str = Field(max_length=100)
    comment: str = Field(max_length=1000)

    @field_validator("title", "comment")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title and comment are required")
        return v.strip()

class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=100)
    comment: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("title", "comment")
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("must not be blank")
        return v.strip() if v is not None else v
