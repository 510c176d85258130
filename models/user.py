# models/user.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional
from models.course import new_id

VALID_ROLES = {"user", "admin"}

class Enrollment(BaseModel):
    courseId: str
    enrolledAt: datetime = Field(default_factory=datetime.utcnow)
    lastAccessed: Optional[datetime] = None

class User(BaseModel):
    id: str = Field(default_factory=new_id)
    email: str
    name: str = ""
    role: str = "user"
    enrolledCourses: List[Enrollment] = []
    createdAt: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        if v not in VALID_ROLES:
            raise ValueError(f"Invalid role. Must be one of {', '.join(sorted(VALID_ROLES))}")
        return v

def display_name(user: Optional[dict]) -> str:
    """Name shown on certificates and reviews, from a stored user document."""
    user = user or {}
    return user.get("name") or user.get("username") or "User"
