"""Balance-payment reminder sweep.

Safe to run any number of times from a cold start: everything it needs is
read from the ledger and the ``now`` it is given. A reminder flag is only
ever set in the same commit as the notification it stands for.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from ridepay.extension import db
from ridepay.models import PaymentTransaction
from ridepay.models.payment_transaction import STATUS_UPFRONT_PAID
from ridepay.service.notifier import Notifier
from ridepay.service.payment_ledger import get_transaction_by_booking
from ridepay.service.payment_split import REMINDER_OFFSETS_DAYS
from ridepay.service.suspension import suspend_transaction
from ridepay.utils.reminders import log_reminder, reminder_history

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = max(REMINDER_OFFSETS_DAYS.values())

REMINDER_3DAY = "payment_reminder_3day"
REMINDER_1DAY = "payment_reminder_1day"


@dataclass
class ReminderSweepResult:
    examined: int = 0
    three_day_sent: int = 0
    one_day_sent: int = 0
    suspended: int = 0
    failed: int = 0

    def to_dict(self):
        return dict(self.__dict__)


def _start_of_day(moment):
    return datetime(moment.year, moment.month, moment.day)


def due_transactions(now):
    """upfront_paid transactions due within the lookahead window or already past due."""
    window_end = _start_of_day(now) + timedelta(days=LOOKAHEAD_DAYS + 1)
    return (
        PaymentTransaction.query
        .filter(
            PaymentTransaction.status == STATUS_UPFRONT_PAID,
            PaymentTransaction.balance_due_date < window_end,
        )
        .order_by(PaymentTransaction.balance_due_date)
        .all()
    )


def reminder_due(transaction, now):
    """Which reminder (if any) this transaction owes today."""
    today = now.date()
    due = transaction.balance_due_date
    three_day_mark = (due - timedelta(days=REMINDER_OFFSETS_DAYS["threeDays"])).date()
    one_day_mark = (due - timedelta(days=REMINDER_OFFSETS_DAYS["oneDay"])).date()

    if today == three_day_mark and not transaction.reminder_three_days_sent:
        return REMINDER_3DAY
    if today == one_day_mark and not transaction.reminder_one_day_sent:
        return REMINDER_1DAY
    return None


def send_reminder(transaction, kind, now, notifier):
    try:
        notifier.notify(transaction.parent_id, kind, {
            "booking_id": transaction.booking_id,
            "transaction_id": transaction.id,
            "remaining_amount": transaction.remaining_amount,
            "due_date": transaction.balance_due_date.isoformat(),
        })
        if kind == REMINDER_3DAY:
            transaction.reminder_three_days_sent = True
        else:
            transaction.reminder_one_day_sent = True
        transaction.updated_at = now
        log_reminder(transaction, "in_app", kind, "sent")
        db.session.commit()
        return True
    except Exception as e:
        db.session.rollback()
        logger.error(f"Reminder {kind} for transaction {transaction.id} failed: {e}", exc_info=True)
        # record the failure on its own so the next sweep retries the reminder
        try:
            log_reminder(transaction, "in_app", kind, "failed", error=e)
            db.session.commit()
        except Exception as log_error:
            db.session.rollback()
            logger.error(f"Could not record failed reminder for transaction {transaction.id}: {log_error}")
        return False


def run_reminder_sweep(now=None, notifier=None, bookings=None):
    now = now or datetime.utcnow()
    notifier = notifier or Notifier()
    result = ReminderSweepResult()

    transactions = due_transactions(now)
    logger.info(f"Reminder sweep at {now.isoformat()}: {len(transactions)} candidate transactions")

    for transaction in transactions:
        result.examined += 1

        if now > transaction.balance_due_date:
            try:
                suspend_transaction(transaction, now=now, notifier=notifier, bookings=bookings)
                result.suspended += 1
            except Exception as e:
                result.failed += 1
                logger.error(f"Suspension of transaction {transaction.id} failed: {e}", exc_info=True)
            continue

        kind = reminder_due(transaction, now)
        if not kind:
            continue

        if send_reminder(transaction, kind, now, notifier):
            if kind == REMINDER_3DAY:
                result.three_day_sent += 1
            else:
                result.one_day_sent += 1
        else:
            result.failed += 1

    logger.info(f"Reminder sweep finished: {result.to_dict()}")
    return result


def list_reminders(booking_id):
    """Reminder attempts (sent and failed) logged for a booking, newest first."""
    return reminder_history(get_transaction_by_booking(booking_id))
