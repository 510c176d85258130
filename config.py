# config.py
import os
from dotenv import load_dotenv

load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "academy_db")

JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "120"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

# Email (SendGrid v3 API)
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_API_URL = os.getenv("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send")
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@academy.local")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Object storage (Backblaze B2, S3-compatible)
B2_KEY_ID = os.getenv("B2_KEY_ID", "")
B2_APP_KEY = os.getenv("B2_APP_KEY", "")
B2_BUCKET_NAME = os.getenv("B2_BUCKET_NAME", "")
B2_REGION = os.getenv("B2_REGION", "us-east-005")
B2_ENDPOINT = os.getenv("B2_ENDPOINT", f"https://s3.{B2_REGION}.backblazeb2.com")

# Grading
LESSON_QUIZ_PASSING_SCORE = int(os.getenv("LESSON_QUIZ_PASSING_SCORE", "70"))
DEFAULT_EXAM_PASSING_SCORE = int(os.getenv("DEFAULT_EXAM_PASSING_SCORE", "70"))

# Certificates
CERTIFICATE_PREFIX = "VA"
CERTIFICATE_ORGANIZATION = os.getenv("CERTIFICATE_ORGANIZATION", "Verve Academy")
CERTIFICATE_SIGNATURE = os.getenv("CERTIFICATE_SIGNATURE", "Verve Academy Team")
