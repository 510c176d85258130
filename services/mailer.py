# services/mailer.py
import httpx
import logging
import config

logger = logging.getLogger(__name__)

def is_configured() -> bool:
    return config.SENDGRID_API_KEY.startswith("SG.")

async def send_email(to: str, subject: str, html: str, text: str = None, client: httpx.AsyncClient = None) -> dict:
    """Send a message through the SendGrid v3 API.

    Never raises: callers get ``{"success": bool, "message": str}`` and decide
    whether a failure matters.
    """
    if not is_configured():
        logger.warning(f"SendGrid not configured - email to {to} not sent (subject: {subject})")
        return {"success": False, "message": "Email service not configured", "error": "SENDGRID_NOT_CONFIGURED"}

    content = []
    if text:
        content.append({"type": "text/plain", "value": text})  # SendGrid requires text/plain first
    content.append({"type": "text/html", "value": html})
    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": config.MAIL_FROM},
        "subject": subject,
        "content": content,
    }
    headers = {"Authorization": f"Bearer {config.SENDGRID_API_KEY}"}

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=10.0)
    try:
        response = await client.post(config.SENDGRID_API_URL, json=payload, headers=headers)
        response.raise_for_status()
        logger.info(f"Email sent to {to}: {subject}")
        return {"success": True, "message": "Email sent successfully"}
    except httpx.HTTPError as e:
        logger.error(f"SendGrid email send error for {to}: {str(e)}")
        return {"success": False, "message": f"Failed to send email: {str(e)}"}
    finally:
        if owns_client:
            await client.aclose()

def get_mailer():
    """Dependency hook so routes can be given another sender."""
    return send_email
