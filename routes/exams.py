# routes/exams.py
from fastapi import APIRouter, BackgroundTasks, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging
from database import get_db
from models.progress import AnswersRequest
from services.course_resolver import resolve_course
from services.access import check_course_access
from services.grader import grade
from services.progress import record_exam_attempt, get_progress, exam_history
from services.certificates import issue_certificate
from services.mailer import get_mailer
from errors import NotFoundError
from .auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["exams"])

@router.post("/{course_id}/exam/submit")
async def submit_final_exam(
    course_id: str,
    body: AnswersRequest,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    mailer=Depends(get_mailer),
):
    course = await resolve_course(db, course_id)
    if not course.has_enabled_exam():
        raise NotFoundError("Final exam not available for this course.")
    await check_course_access(db, course, current_user)

    result = grade(course.finalExam.questions, body.answers)
    passing_score = course.finalExam.passingScore
    passed = result.score >= passing_score

    progress = await record_exam_attempt(db, current_user["id"], course.id, result.score, passed)

    certificate = None
    if passed:
        certificate, _ = await issue_certificate(
            db, current_user["id"], course, progress, path="exam", exam_score=result.score,
            mailer=mailer, background_tasks=background_tasks,
        )

    return {
        "success": True,
        "message": "Congratulations! You passed the final exam!" if passed else "You did not reach the passing score. Try again!",
        **result.model_dump(),
        "passed": passed,
        "passingScore": passing_score,
        "attemptNumber": len(progress.examAttempts),
        "certificate": certificate.model_dump() if certificate else None,
    }

@router.get("/{course_id}/exam/attempts")
async def get_exam_attempts(course_id: str, current_user: dict = Depends(get_current_user), db: AsyncIOMotorDatabase = Depends(get_db)):
    course = await resolve_course(db, course_id)
    progress = await get_progress(db, current_user["id"], course.id)
    history = exam_history(progress)
    return {
        "success": True,
        **history,
        "passingScore": course.finalExam.passingScore if course.finalExam else None,
    }
