import logging
from datetime import datetime
from ridepay.extension import db
from ridepay.models import PaymentTransaction
from ridepay.models.booking import BOOKING_SUSPENDED_PAYMENT
from ridepay.models.payment_transaction import STATUS_UPFRONT_PAID, STATUS_SUSPENDED
from ridepay.service.bookings import BookingDirectory
from ridepay.service.notifier import Notifier
from ridepay.utils.change_logger import log_change

logger = logging.getLogger(__name__)

DEFAULT_SUSPENSION_REASON = "Balance payment not received by the due date"


def suspend_transaction(transaction, reason=DEFAULT_SUSPENSION_REASON, now=None,
                        notifier=None, bookings=None):
    """Suspend one overdue transaction and its booking in a single commit."""
    now = now or datetime.utcnow()
    notifier = notifier or Notifier()
    bookings = bookings or BookingDirectory()

    try:
        transaction = (
            db.session.query(PaymentTransaction)
            .filter_by(id=transaction.id)
            .with_for_update()
            .populate_existing()
            .one()
        )
        if not transaction.is_overdue(now):
            # paid or already suspended since it was selected
            db.session.rollback()
            return transaction

        previous_status = transaction.status
        transaction.status = STATUS_SUSPENDED
        transaction.suspension_reason = reason
        transaction.updated_at = now

        bookings.set_booking_status(transaction.booking_id, BOOKING_SUSPENDED_PAYMENT, reason)
        notifier.notify(transaction.parent_id, "payment_overdue", {
            "booking_id": transaction.booking_id,
            "transaction_id": transaction.id,
            "remaining_amount": transaction.remaining_amount,
            "due_date": transaction.balance_due_date.isoformat(),
            "reason": reason,
        })
        log_change("PaymentTransaction", transaction.id, "suspend", {
            "booking_id": transaction.booking_id,
            "reason": reason,
            "status": {"old": previous_status, "new": STATUS_SUSPENDED},
        })
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Booking {transaction.booking_id} suspended for non-payment (transaction {transaction.id})")
    return transaction


def find_overdue(now=None):
    now = now or datetime.utcnow()
    return (
        PaymentTransaction.query
        .filter(
            PaymentTransaction.status == STATUS_UPFRONT_PAID,
            PaymentTransaction.balance_due_date < now,
        )
        .order_by(PaymentTransaction.balance_due_date)
        .all()
    )


def enforce_overdue(now=None, notifier=None, bookings=None):
    """Suspend every overdue transaction. Returns (suspended, failed) counts."""
    now = now or datetime.utcnow()
    suspended, failed = 0, 0
    for transaction in find_overdue(now):
        if not transaction.is_overdue(now):
            continue
        try:
            suspend_transaction(transaction, now=now, notifier=notifier, bookings=bookings)
            suspended += 1
        except Exception as e:
            failed += 1
            logger.error(f"Failed to suspend transaction {transaction.id}: {e}", exc_info=True)
    return suspended, failed
