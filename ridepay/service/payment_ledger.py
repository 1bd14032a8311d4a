"""Transaction ledger: the payment state machine for one booking.

pending_upfront -> upfront_paid -> fully_paid
pending_upfront -> fully_paid                  (single payment covers everything)
upfront_paid    -> suspended                   (via the suspension enforcer only)

Each payment is one unit of work: the ledger row and the matching driver
wallet credit commit together or not at all.
"""
import logging
from datetime import datetime
from sqlalchemy.orm.exc import StaleDataError
from ridepay.extension import db
from ridepay.models import PaymentTransaction
from ridepay.models.payment_transaction import (
    STATUS_PENDING_UPFRONT,
    STATUS_UPFRONT_PAID,
    STATUS_FULLY_PAID,
    STATUS_SUSPENDED,
)
from ridepay.models.driver_wallet import ENTRY_UPFRONT_EARNING, ENTRY_BALANCE_EARNING
from ridepay.errors import (
    PaymentError,
    InsufficientAmount,
    ExceedsRemaining,
    AlreadySuspended,
    TransactionNotFound,
    GatewayFailure,
    ConcurrentModification,
    UnappliedCharge,
)
from ridepay.service import driver_wallet
from ridepay.service.bookings import BookingDirectory
from ridepay.service.gateways import SimulatedPaymentGateway
from ridepay.service.payment_split import compute_split, compute_increment
from ridepay.utils.change_logger import log_change

logger = logging.getLogger(__name__)

PAYMENT_UPFRONT = "upfront"
PAYMENT_BALANCE = "balance"

# ledger write attempts once the gateway has taken the money
APPLY_ATTEMPTS = 3


def derive_status(transaction):
    if transaction.status == STATUS_SUSPENDED:
        return STATUS_SUSPENDED
    if transaction.amount_paid >= transaction.total_amount:
        return STATUS_FULLY_PAID
    if transaction.upfront_paid >= transaction.required_upfront:
        return STATUS_UPFRONT_PAID
    return STATUS_PENDING_UPFRONT


def create_transaction(booking_id, parent_id, driver_id, total_amount, bookings=None):
    existing = PaymentTransaction.query.filter_by(booking_id=booking_id).first()
    if existing:
        return existing

    bookings = bookings or BookingDirectory()
    split = compute_split(total_amount, bookings.get_booking_end_date(booking_id))

    transaction = PaymentTransaction(
        booking_id=booking_id,
        parent_id=parent_id,
        driver_id=driver_id,
        total_amount=total_amount,
        required_upfront=split.upfront_amount,
        upfront_paid=0,
        balance_paid=0,
        system_commission=0,
        gateway_fee=0,
        driver_earning=0,
        balance_due_date=split.balance_due_date,
        reminder_three_days_sent=False,
        reminder_one_day_sent=False,
        status=STATUS_PENDING_UPFRONT,
    )
    db.session.add(transaction)
    try:
        db.session.flush()
        log_change("PaymentTransaction", transaction.id, "create", {
            "booking_id": booking_id,
            "total_amount": total_amount,
            "required_upfront": split.upfront_amount,
            "balance_due_date": split.balance_due_date.isoformat(),
        })
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info(f"Payment transaction {transaction.id} created for booking {booking_id}")
    return transaction


def get_transaction(transaction_id):
    transaction = db.session.get(PaymentTransaction, transaction_id)
    if not transaction:
        raise TransactionNotFound(transaction_id=transaction_id)
    return transaction


def get_transaction_by_booking(booking_id):
    transaction = PaymentTransaction.query.filter_by(booking_id=booking_id).first()
    if not transaction:
        raise TransactionNotFound(booking_id=booking_id)
    return transaction


def list_transactions(parent_id=None, driver_id=None, status=None):
    query = PaymentTransaction.query
    if parent_id is not None:
        query = query.filter_by(parent_id=parent_id)
    if driver_id is not None:
        query = query.filter_by(driver_id=driver_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(PaymentTransaction.created_at.desc()).all()


def _load_for_update(transaction_id):
    transaction = (
        db.session.query(PaymentTransaction)
        .filter_by(id=transaction_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not transaction:
        raise TransactionNotFound(transaction_id=transaction_id)
    return transaction


def validate_upfront(transaction, amount):
    if transaction.status == STATUS_SUSPENDED:
        raise AlreadySuspended(transaction_id=transaction.id)

    minimum = max(transaction.required_upfront - transaction.upfront_paid, 0)
    if amount is None or amount <= 0 or amount < minimum:
        raise InsufficientAmount(
            f"Minimum upfront payment is {minimum}",
            minimum=minimum,
        )
    if amount > transaction.remaining_amount:
        raise ExceedsRemaining(
            f"Payment amount exceeds remaining balance: {transaction.remaining_amount}",
            remaining=transaction.remaining_amount,
        )


def validate_balance(transaction, amount):
    if transaction.status == STATUS_SUSPENDED:
        raise AlreadySuspended(transaction_id=transaction.id)

    remaining = transaction.remaining_amount
    if amount is None or amount <= 0:
        raise InsufficientAmount("Payment amount must be greater than zero")
    if amount > remaining:
        raise ExceedsRemaining(
            f"Payment amount exceeds remaining balance: {remaining}",
            remaining=remaining,
        )
    upfront_missing = transaction.upfront_paid < transaction.required_upfront
    if upfront_missing and amount < remaining:
        raise InsufficientAmount(
            f"An upfront payment of {transaction.required_upfront} is required before balance payments",
            minimum=transaction.required_upfront - transaction.upfront_paid,
        )


def _apply(transaction_id, amount, payment_type, gateway_ref=None, now=None):
    now = now or datetime.utcnow()
    try:
        transaction = _load_for_update(transaction_id)
        if payment_type == PAYMENT_UPFRONT:
            validate_upfront(transaction, amount)
        else:
            validate_balance(transaction, amount)

        previous_status = transaction.status
        increment = compute_increment(amount)

        if payment_type == PAYMENT_UPFRONT:
            transaction.upfront_paid += amount
            transaction.upfront_payment_date = now
            transaction.upfront_gateway_ref = gateway_ref
            entry_type = ENTRY_UPFRONT_EARNING
        else:
            transaction.balance_paid += amount
            transaction.balance_payment_date = now
            transaction.balance_gateway_ref = gateway_ref
            entry_type = ENTRY_BALANCE_EARNING

        transaction.gateway_fee += increment.gateway_fee
        transaction.system_commission += increment.system_commission
        transaction.driver_earning += increment.driver_earning
        transaction.status = derive_status(transaction)
        transaction.updated_at = now

        driver_wallet.credit(
            transaction.driver_id,
            increment.driver_earning,
            entry_type,
            booking_id=transaction.booking_id,
            parent_id=transaction.parent_id,
            payment_transaction_id=transaction.id,
            now=now,
        )
        log_change("PaymentTransaction", transaction.id, "payment", {
            "payment_type": payment_type,
            "amount": amount,
            "gateway_ref": gateway_ref,
            "driver_earning": increment.driver_earning,
            "status": {"old": previous_status, "new": transaction.status},
        })
        db.session.commit()
    except StaleDataError as e:
        db.session.rollback()
        logger.warning(f"Concurrent update on payment transaction {transaction_id}: {e}")
        raise ConcurrentModification(transaction_id=transaction_id)
    except Exception:
        db.session.rollback()
        raise

    logger.info(
        f"{payment_type} payment of {amount} applied to transaction {transaction.id} "
        f"({previous_status} -> {transaction.status})"
    )
    return transaction


def apply_upfront_payment(transaction_id, amount, gateway_ref=None, now=None):
    return _apply(transaction_id, amount, PAYMENT_UPFRONT, gateway_ref, now)


def apply_balance_payment(transaction_id, amount, gateway_ref=None, now=None):
    return _apply(transaction_id, amount, PAYMENT_BALANCE, gateway_ref, now)


def process_payment(transaction_id, payment_type, amount, customer_info=None, gateway=None, now=None):
    """Charge through the gateway, then apply the payment to the ledger.

    The payment is validated before charging so a request that would be
    rejected never reaches the gateway. A failed charge leaves the ledger
    untouched. Once the charge succeeds the ledger write is retried on
    concurrent updates; a charge that still cannot be applied is kept in the
    change log with its gateway reference and raised as ``UnappliedCharge``.
    """
    if payment_type not in (PAYMENT_UPFRONT, PAYMENT_BALANCE):
        raise PaymentError(f"Unknown payment type: {payment_type}")

    gateway = gateway or SimulatedPaymentGateway()
    transaction = get_transaction(transaction_id)
    if payment_type == PAYMENT_UPFRONT:
        validate_upfront(transaction, amount)
    else:
        validate_balance(transaction, amount)

    result = gateway.charge(amount, customer_info or {})
    if not result.success:
        logger.warning(f"Gateway rejected {payment_type} payment for transaction {transaction_id}: {result.message}")
        raise GatewayFailure(result.message or None)

    for attempt in range(1, APPLY_ATTEMPTS + 1):
        try:
            transaction = _apply(transaction_id, amount, payment_type, result.transaction_id, now)
            return transaction, result
        except ConcurrentModification as e:
            logger.warning(
                f"Applying charged {payment_type} payment {result.transaction_id} to transaction "
                f"{transaction_id} failed (attempt {attempt}/{APPLY_ATTEMPTS})"
            )
            error = e
        except PaymentError as e:
            error = e
            break

    _record_unapplied_charge(transaction_id, payment_type, amount, result.transaction_id, error)
    raise UnappliedCharge(
        transaction_id=transaction_id,
        gateway_transaction_id=result.transaction_id,
        reason=error.code,
    )


def _record_unapplied_charge(transaction_id, payment_type, amount, gateway_ref, error):
    logger.error(
        f"Charged {payment_type} payment of {amount} ({gateway_ref}) could not be applied "
        f"to transaction {transaction_id}: {error.message}"
    )
    try:
        log_change("PaymentTransaction", transaction_id, "charge_unapplied", {
            "payment_type": payment_type,
            "amount": amount,
            "gateway_ref": gateway_ref,
            "reason": error.code,
        })
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
