# backend/utils/mailer.py
import logging

import resend

from config import settings

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str) -> bool:
    """Sends an email through Resend. Returns False instead of raising on failure."""
    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not configured, email to %s skipped", to)
        return False
    if not to:
        logger.warning("Email '%s' has no recipient, skipped", subject)
        return False

    resend.api_key = settings.RESEND_API_KEY
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    try:
        response = resend.Emails.send(payload)
    except Exception as e:
        logger.exception("Failed to send email '%s' to %s: %s", subject, to, e)
        return False
    logger.info("Email '%s' sent to %s (id=%s)", subject, to, (response or {}).get("id"))
    return True
