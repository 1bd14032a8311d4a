# ridepay/service/notifications/email_sender.py
import logging
from typing import Dict, Optional
import resend
from flask import current_app

# sends the email using resend

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str, sender: Optional[str] = None) -> Dict:
    resend.api_key = current_app.config.get("RESEND_API_KEY")
    payload = {
        "from": sender or current_app.config.get("MAIL_DEFAULT_SENDER"),
        "to": to,
        "subject": subject,
        "html": html,
    }
    logger.info(f"Sending email to {to} with subject '{subject}'")
    return resend.Emails.send(payload)
