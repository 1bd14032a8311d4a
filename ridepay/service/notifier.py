"""Notification collaborator.

``notify`` records an in-app notification in the caller's unit of work, so
the row commits (or rolls back) together with whatever state change caused
it. Email is a best-effort extra channel: delivery problems are logged and
recorded on the notification, never raised.
"""
import logging
from flask import current_app
from ridepay.extension import db
from ridepay.models import Notification, User
from ridepay.utils.email_templates import notification_text, notification_email_html
from ridepay.service.notifications.email_sender import send_email

logger = logging.getLogger(__name__)

NOTIFICATION_KINDS = (
    "payment_reminder_3day",
    "payment_reminder_1day",
    "payment_overdue",
    "budget_warning",
    "budget_limit_reached",
)


class Notifier:
    def notify(self, recipient_id, kind, payload):
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification kind: {kind}")

        title, message = notification_text(kind, payload)
        notification = Notification(
            recipient_id=recipient_id,
            kind=kind,
            title=title,
            message=message,
            data=payload,
        )
        db.session.add(notification)

        notification.email_status = self._send_email(recipient_id, title, message, payload)
        logger.info(f"Notification {kind} queued for user {recipient_id}")
        return notification

    def _send_email(self, recipient_id, title, message, payload):
        if not current_app.config.get("NOTIFY_EMAIL_ENABLED"):
            return "skipped"

        user = db.session.get(User, recipient_id)
        if not user or not user.email:
            logger.warning(f"User {recipient_id} has no email, skipping email channel")
            return "skipped"

        try:
            send_email(
                to=user.email,
                subject=title,
                html=notification_email_html(user.name, title, message, payload),
            )
            return "sent"
        except Exception as e:
            logger.error(f"Failed to email user {recipient_id} [{title}]: {e}")
            return "failed"
