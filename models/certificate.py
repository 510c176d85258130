# models/certificate.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, Optional
from models.course import new_id
import config

class IssuedBy(BaseModel):
    organization: str = config.CERTIFICATE_ORGANIZATION
    signature: str = config.CERTIFICATE_SIGNATURE

class Certificate(BaseModel):
    id: str = Field(default_factory=new_id)
    userId: str
    courseId: str
    courseTitle: str  # copied at issue time, not a live reference
    userName: str
    completionDate: datetime = Field(default_factory=datetime.utcnow)
    certificateNumber: str = Field(pattern=r"^[A-Z]+-\d+-[A-Z0-9]+$")
    quizScores: Dict[str, int] = {}
    totalQuizScore: int = Field(default=0, ge=0, le=100)
    completionPath: str = Field(default="lessons", pattern="^(lessons|exam)$")
    issuedBy: IssuedBy = Field(default_factory=IssuedBy)
    isDownloaded: bool = False
    downloadedAt: Optional[datetime] = None
    createdAt: datetime = Field(default_factory=datetime.utcnow)
