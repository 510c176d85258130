# services/email_templates.py
from html import escape
import config

def course_completion_email(user_name: str, course_name: str, certificate_number: str, certificate_url: str) -> str:
    user_name, course_name = escape(user_name), escape(course_name)
    return f"""
<div style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.8; color: #333; max-width: 600px; margin: auto;">
  <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 40px 20px; text-align: center;">
    <h1 style="color: #fff; margin: 0 0 5px 0; font-size: 28px;">{escape(config.CERTIFICATE_ORGANIZATION)}</h1>
    <h2 style="color: #fff; margin: 0; font-size: 24px;">Congratulations!</h2>
    <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">You've Successfully Completed a Course</p>
  </div>
  <div style="padding: 40px 30px; background: #fff;">
    <p>Dear <strong>{user_name}</strong>,</p>
    <p>We're thrilled to inform you that you have successfully completed the course:</p>
    <div style="border-left: 4px solid #667eea; padding: 20px; margin: 25px 0;">
      <h3 style="margin: 0 0 10px 0; color: #667eea;">{course_name}</h3>
      <p style="margin: 8px 0; color: #666;">
        <strong>Certificate Number:</strong> <span style="font-family: monospace;">{certificate_number}</span>
      </p>
    </div>
    <p>Your certificate of completion is ready for download:</p>
    <div style="text-align: center; margin: 30px 0;">
      <a href="{certificate_url}" style="color: #fff; background: #667eea; padding: 14px 32px; text-decoration: none; border-radius: 6px;">View My Certificate</a>
    </div>
  </div>
</div>
"""

def course_completion_text(user_name: str, course_name: str, certificate_number: str, certificate_url: str) -> str:
    return f"""{config.CERTIFICATE_ORGANIZATION}
Congratulations! You've Successfully Completed a Course

Dear {user_name},

We're thrilled to inform you that you have successfully completed the course: {course_name}

Certificate Number: {certificate_number}

Your certificate of completion has been generated and is ready for download.

View your certificate here: {certificate_url}

---
This is an automated message, please do not reply to this email.
"""
