# models/course.py
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import List, Optional
from bson import ObjectId
import re
import config

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")

def slugify(title: str) -> str:
    """URL-friendly slug: lowercase, non-alphanumeric runs become '-'."""
    return _SLUG_STRIP.sub("-", str(title).strip().lower()).strip("-")

def new_id() -> str:
    return str(ObjectId())

class Question(BaseModel):
    question: str
    options: List[str]
    correctAnswer: str
    explanation: Optional[str] = None
    order: int = 0

    @field_validator("question", "correctAnswer")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("options")
    @classmethod
    def has_options(cls, v):
        if not v:
            raise ValueError("a question needs at least one option")
        return v

class FinalExam(BaseModel):
    questions: List[Question] = []
    passingScore: int = Field(default_factory=lambda: config.DEFAULT_EXAM_PASSING_SCORE, ge=0, le=100)
    duration: Optional[int] = None  # minutes
    isEnabled: bool = False
    createdAt: datetime = Field(default_factory=datetime.utcnow)

class Lesson(BaseModel):
    id: str = Field(default_factory=new_id)  # referenced by Progress, never regenerated
    title: str
    content: Optional[str] = None
    contentUrl: Optional[str] = None
    contentFileKey: Optional[str] = None
    videoUrl: Optional[str] = None
    videoDuration: Optional[int] = None  # seconds
    quiz: List[Question] = []
    order: int = 0
    createdAt: datetime = Field(default_factory=datetime.utcnow)

class Module(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    description: Optional[str] = None
    lessons: List[Lesson] = []
    order: int = 0

class Pricing(BaseModel):
    oneTimeFee: float = 0
    monthlyPrice: float = 0
    yearlyPrice: float = 0
    lifetimeAccess: bool = False
    currency: str = "USD"

class Course(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    slug: Optional[str] = None
    description: Optional[str] = None
    imageUrl: Optional[str] = None
    imageFileKey: Optional[str] = None
    modules: List[Module] = []
    finalExam: Optional[FinalExam] = None
    status: str = Field(default="draft", pattern="^(draft|published)$")
    tier: str = Field(default="free", pattern="^(free|premium|enterprise)$")
    accessType: str = Field(default="public", pattern="^(public|premium|subscription)$")
    pricing: Pricing = Field(default_factory=Pricing)
    enrollmentCount: int = 0
    certificateCount: int = 0
    createdBy: Optional[str] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
    updatedAt: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("title")
    @classmethod
    def title_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Course title is required.")
        return v

    @model_validator(mode="after")
    def derive_slug(self):
        if not self.slug:
            self.slug = slugify(self.title)
        return self

    def lesson_ids(self) -> List[str]:
        return [lesson.id for module in self.modules for lesson in module.lessons]

    def find_lesson(self, lesson_id: str) -> Optional[Lesson]:
        for module in self.modules:
            for lesson in module.lessons:
                if lesson.id == lesson_id:
                    return lesson
        return None

    def has_enabled_exam(self) -> bool:
        return bool(self.finalExam and self.finalExam.isEnabled and self.finalExam.questions)

    def is_free(self) -> bool:
        return self.tier == "free" and self.accessType == "public"

# Request bodies

class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None
    modules: List[Module] = []
    finalExam: Optional[FinalExam] = None
    status: str = "draft"
    tier: str = "free"
    accessType: str = "public"
    pricing: Optional[Pricing] = None

class CourseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    modules: Optional[List[Module]] = None
    finalExam: Optional[FinalExam] = None
    status: Optional[str] = None
    tier: Optional[str] = None
    accessType: Optional[str] = None
    pricing: Optional[Pricing] = None
