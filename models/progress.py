# models/progress.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class CompletedLesson(BaseModel):
    lessonId: str
    completedAt: datetime
    quizScore: int = Field(default=0, ge=0, le=100)

class ExamAttempt(BaseModel):
    score: int = Field(ge=0, le=100)
    attemptDate: datetime
    passed: bool

class Progress(BaseModel):
    userId: str
    courseId: str
    completedLessons: List[CompletedLesson] = []
    finalExamScore: Optional[int] = None
    finalExamPassed: Optional[bool] = None
    examAttempts: List[ExamAttempt] = []
    enrolledAt: datetime = Field(default_factory=datetime.utcnow)
    lastAccessed: datetime = Field(default_factory=datetime.utcnow)
    version: int = 0

    def completed_ids(self) -> set:
        return {entry.lessonId for entry in self.completedLessons}

    def complete_lesson(self, lesson_id: str, quiz_score: int, now: datetime) -> bool:
        """Apply a completion in place. Returns True when a new entry was added.

        An already-completed lesson only has its score raised, never lowered.
        """
        for entry in self.completedLessons:
            if entry.lessonId == lesson_id:
                if quiz_score > entry.quizScore:
                    entry.quizScore = quiz_score
                return False
        self.completedLessons.append(
            CompletedLesson(lessonId=lesson_id, completedAt=now, quizScore=quiz_score)
        )
        return True

class LessonCompleteRequest(BaseModel):
    quizScore: Optional[int] = Field(default=0, ge=0, le=100)

class AnswersRequest(BaseModel):
    answers: dict
