import logging
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from ridepay.extension import db
from ridepay.models import DriverWallet, WalletTransaction
from ridepay.models.driver_wallet import ENTRY_PENDING

logger = logging.getLogger(__name__)


def _lock_wallet(driver_id):
    return (
        db.session.query(DriverWallet)
        .filter_by(driver_id=driver_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def get_or_create_wallet(driver_id):
    """Locked wallet row for ``driver_id``, created on first use."""
    wallet = _lock_wallet(driver_id)
    if wallet:
        return wallet

    wallet = DriverWallet(driver_id=driver_id, total_earnings=0, pending_payouts=0)
    try:
        with db.session.begin_nested():
            db.session.add(wallet)
    except IntegrityError:
        # another request created it first
        logger.info(f"Wallet for driver {driver_id} created concurrently, re-reading")
        wallet = _lock_wallet(driver_id)
    return wallet


def credit(driver_id, amount, entry_type, booking_id=None, parent_id=None,
           payment_transaction_id=None, now=None):
    """Append a pending earning and grow the balances.

    Joins the caller's unit of work: nothing is committed here.
    """
    if amount < 0:
        raise ValueError("Credit amount cannot be negative")

    now = now or datetime.utcnow()
    wallet = get_or_create_wallet(driver_id)

    entry = WalletTransaction(
        wallet=wallet,
        driver_id=driver_id,
        booking_id=booking_id,
        parent_id=parent_id,
        payment_transaction_id=payment_transaction_id,
        amount=amount,
        type=entry_type,
        date=now,
        status=ENTRY_PENDING,
    )
    db.session.add(entry)

    wallet.total_earnings += amount
    wallet.pending_payouts += amount
    wallet.updated_at = now
    return entry


def get_wallet(driver_id):
    return DriverWallet.query.filter_by(driver_id=driver_id).first()


def pending_total(wallet):
    return sum(tx.amount for tx in wallet.transactions if tx.status == ENTRY_PENDING)


def wallet_summary(driver_id, recent=20):
    wallet = get_wallet(driver_id)
    if not wallet:
        return {
            "driver_id": driver_id,
            "total_earnings": 0,
            "pending_payouts": 0,
            "last_payout_date": None,
            "transactions": [],
        }
    recent_entries = (
        WalletTransaction.query.filter_by(wallet_id=wallet.id)
        .order_by(WalletTransaction.date.desc(), WalletTransaction.id.desc())
        .limit(recent)
        .all()
    )
    return {
        "driver_id": driver_id,
        "total_earnings": wallet.total_earnings,
        "pending_payouts": wallet.pending_payouts,
        "last_payout_date": wallet.last_payout_date,
        "transactions": recent_entries,
    }
