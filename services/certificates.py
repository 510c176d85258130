# services/certificates.py
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError
from fastapi import BackgroundTasks
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Tuple
import logging
import secrets
import string
import time
import config
from models.course import Course
from models.progress import Progress
from models.certificate import Certificate
from models.user import display_name
from services.grader import mean_score
from services.mailer import send_email
from services.email_templates import course_completion_email, course_completion_text
from errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

MAX_NUMBER_ATTEMPTS = 5
SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 9

Mailer = Callable[..., Awaitable[dict]]

def generate_certificate_number(now_ms: int = None) -> str:
    """VA-<epoch millis>-<9 random base36 chars>. Uniqueness is enforced by
    the certificateNumber index, a collision is retried by the issuer."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{config.CERTIFICATE_PREFIX}-{now_ms}-{suffix}"

async def get_certificate(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Optional[Certificate]:
    doc = await db.certificates.find_one({"userId": user_id, "courseId": course_id}, {"_id": 0})
    return Certificate(**doc) if doc else None

async def list_certificates(db: AsyncIOMotorDatabase, user_id: str) -> List[Certificate]:
    docs = await db.certificates.find({"userId": user_id}, {"_id": 0}).sort("completionDate", -1).to_list(None)
    return [Certificate(**doc) for doc in docs]

async def mark_downloaded(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Certificate:
    doc = await db.certificates.find_one_and_update(
        {"userId": user_id, "courseId": course_id},
        {"$set": {"isDownloaded": True, "downloadedAt": datetime.utcnow()}},
        projection={"_id": 0},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise NotFoundError("Certificate not found.")
    return Certificate(**doc)

async def issue_certificate(
    db: AsyncIOMotorDatabase,
    user_id: str,
    course: Course,
    progress: Progress,
    path: str = "lessons",
    exam_score: int = None,
    mailer: Mailer = send_email,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Tuple[Certificate, bool]:
    """Issue the (user, course) certificate once. Returns (certificate, created).

    The caller has already established completion. The unique index on
    (userId, courseId) decides who wins when two requests race: the loser
    gets the stored certificate back, unchanged. With ``background_tasks`` the
    completion email goes out after the response instead of inside the call.
    """
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "password": 0}) or {}
    user_name = display_name(user)

    quiz_scores = {entry.lessonId: entry.quizScore for entry in progress.completedLessons}
    if path == "exam":
        total_score = exam_score if exam_score is not None else (progress.finalExamScore or 0)
    else:
        total_score = mean_score(list(quiz_scores.values()))

    for _ in range(MAX_NUMBER_ATTEMPTS):
        certificate = Certificate(
            userId=user_id,
            courseId=course.id,
            courseTitle=course.title,
            userName=user_name,
            certificateNumber=generate_certificate_number(),
            quizScores=quiz_scores,
            totalQuizScore=total_score,
            completionPath=path,
        )
        try:
            await db.certificates.insert_one(certificate.model_dump())
            break
        except DuplicateKeyError:
            existing = await get_certificate(db, user_id, course.id)
            if existing:
                return existing, False
            logger.warning(f"Certificate number collision on {certificate.certificateNumber}, regenerating")
    else:
        raise ConflictError("Could not allocate a unique certificate number. Please retry.")

    await db.courses.update_one({"id": course.id}, {"$inc": {"certificateCount": 1}})
    logger.info(f"Certificate {certificate.certificateNumber} issued to user {user_id} for course {course.id}")

    if user.get("email"):
        email_args = (mailer, user["email"], user_name, course.title, certificate.certificateNumber)
        if background_tasks is not None:
            background_tasks.add_task(_send_completion_email, *email_args)
        else:
            await _send_completion_email(*email_args)
    else:
        logger.warning(f"No email on file for user {user_id}, skipping completion email")
    return certificate, True

async def _send_completion_email(mailer: Mailer, to: str, user_name: str, course_title: str, number: str):
    certificate_url = f"{config.FRONTEND_URL}/v/my-certificates"
    try:
        result = await mailer(
            to=to,
            subject=f'Congratulations! You\'ve Completed "{course_title}"',
            html=course_completion_email(user_name, course_title, number, certificate_url),
            text=course_completion_text(user_name, course_title, number, certificate_url),
        )
        if result.get("success"):
            logger.info(f"Congratulations email sent to {to} for course {course_title}")
        else:
            logger.warning(f"Congratulations email to {to} not delivered: {result.get('message')}")
    except Exception:
        # the certificate stands whether or not the email goes out
        logger.exception(f"Failed to send congratulations email to {to}")
