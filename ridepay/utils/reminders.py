# ridepay/utils/reminders.py
from ridepay.extension import db
from ridepay.models import ChangeLog
from ridepay.utils.change_logger import log_change


def log_reminder(transaction, channel, reminder_type, status="sent", actor_user_id=None, error=None):
    """Create a ChangeLog row for a reminder attempt (works with/without request ctx)."""
    details = {
        "channel": channel,
        "reminder_type": reminder_type,
        "status": status,
        "booking_id": transaction.booking_id,
        "transaction_status": transaction.status,
        "remaining_amount": transaction.remaining_amount,
        "due_date": transaction.balance_due_date.isoformat() if transaction.balance_due_date else None,
    }
    if error:
        details["error"] = str(error)[:500]
    return log_change("PaymentTransaction", transaction.id, "reminder", details, actor_user_id)


def reminder_history(transaction):
    return (
        db.session.query(ChangeLog)
        .filter(
            ChangeLog.entity_type == "PaymentTransaction",
            ChangeLog.entity_id == transaction.id,
            ChangeLog.action == "reminder",
        )
        .order_by(ChangeLog.timestamp.desc(), ChangeLog.id.desc())
        .all()
    )
