# routes/progress.py
from fastapi import APIRouter, BackgroundTasks, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
import logging
import config
from database import get_db
from models.progress import LessonCompleteRequest, AnswersRequest
from services.course_resolver import resolve_course, find_lesson
from services.access import check_course_access
from services.grader import grade
from services.progress import record_lesson_completion, is_course_complete
from services.certificates import issue_certificate, get_certificate
from services.enrollment import touch
from services.mailer import get_mailer
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["progress"])

@router.post("/{course_id}/lesson/{lesson_id}/complete")
async def complete_lesson(
    course_id: str,
    lesson_id: str,
    background_tasks: BackgroundTasks,
    body: Optional[LessonCompleteRequest] = None,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    mailer=Depends(get_mailer),
):
    course = await resolve_course(db, course_id)
    find_lesson(course, lesson_id)
    await check_course_access(db, course, current_user)

    quiz_score = body.quizScore if body else 0
    progress = await record_lesson_completion(db, current_user["id"], course.id, lesson_id, quiz_score)
    await touch(db, current_user["id"], course.id)

    is_complete = is_course_complete(course, progress)
    certificate = None
    if is_complete:
        if course.has_enabled_exam():
            # courses with a final exam certify through the exam
            certificate = await get_certificate(db, current_user["id"], course.id)
        else:
            certificate, _ = await issue_certificate(
                db, current_user["id"], course, progress, mailer=mailer, background_tasks=background_tasks
            )

    return {
        "success": True,
        "message": "Congratulations! Course completed!" if is_complete else "Lesson marked as complete!",
        "progress": progress.model_dump(),
        "isCourseComplete": is_complete,
        "certificate": certificate.model_dump() if certificate else None,
    }

@router.post("/{course_id}/lessons/{lesson_id}/quiz/submit")
async def submit_lesson_quiz(
    course_id: str,
    lesson_id: str,
    body: AnswersRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await resolve_course(db, course_id)
    lesson = find_lesson(course, lesson_id)
    await check_course_access(db, course, current_user)

    result = grade(lesson.quiz, body.answers)
    passed = result.score >= config.LESSON_QUIZ_PASSING_SCORE
    logger.info(f"Quiz for lesson {lesson_id} graded for user {current_user['id']}: {result.score}")
    return {
        "success": True,
        **result.model_dump(),
        "passed": passed,
        "passingScore": config.LESSON_QUIZ_PASSING_SCORE,
    }
