"""Weekly payout batcher.

For each wallet the drain is snapshot-and-subtract: the pending entries
and balance seen under the wallet lock are what gets paid, and exactly that
amount is subtracted. Earnings credited while the batch runs stay pending
for the next cycle. A rejected transfer is compensated (entries re-flagged,
amount added back) and never stops the other drivers' payouts. A payout
left drained by a sweep that died before the transfer is compensated the
same way at the start of the next sweep.
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy import func
from ridepay.extension import db
from ridepay.models import DriverWallet, WalletTransaction, PayoutBatch, PayoutTransaction
from ridepay.models.driver_wallet import ENTRY_PENDING, ENTRY_COMPLETED, ENTRY_PAYOUT
from ridepay.models.payout import (
    BATCH_PENDING,
    BATCH_PROCESSING,
    BATCH_COMPLETED,
    BATCH_FAILED,
    PAYOUT_PENDING,
    PAYOUT_COMPLETED,
    PAYOUT_FAILED,
)
from ridepay.errors import PayoutTransferFailure
from ridepay.service.gateways import SimulatedPayoutRail
from ridepay.utils.change_logger import log_change

logger = logging.getLogger(__name__)

# a batch still holding pending payouts after this long was interrupted
INTERRUPTED_AFTER = timedelta(hours=1)


def _lock_wallet(driver_id):
    return (
        db.session.query(DriverWallet)
        .filter_by(driver_id=driver_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _drain_wallet(batch, driver_id, now):
    """Snapshot and subtract under the wallet lock. Returns (payout, entry ids) or (None, [])."""
    try:
        wallet = _lock_wallet(driver_id)
        if not wallet or wallet.pending_payouts <= 0:
            db.session.rollback()
            return None, []

        snapshot_amount = wallet.pending_payouts
        entries = (
            WalletTransaction.query
            .filter_by(wallet_id=wallet.id, status=ENTRY_PENDING)
            .with_for_update()
            .all()
        )
        entry_ids = [entry.id for entry in entries]
        entries_total = sum(entry.amount for entry in entries)
        if entries_total != snapshot_amount:
            logger.warning(
                f"Wallet {wallet.id} pending balance {snapshot_amount} does not match "
                f"pending entries total {entries_total}"
            )

        for entry in entries:
            entry.status = ENTRY_COMPLETED
            entry.payout_batch_id = batch.id

        wallet.pending_payouts -= snapshot_amount
        wallet.last_payout_date = now
        wallet.updated_at = now

        payout = PayoutTransaction(
            batch_id=batch.id,
            driver_id=driver_id,
            amount=snapshot_amount,
            status=PAYOUT_PENDING,
        )
        db.session.add(payout)
        db.session.commit()
        return payout, entry_ids
    except Exception:
        db.session.rollback()
        raise


def _complete_payout(payout, wallet_driver_id, reference, now):
    try:
        wallet = _lock_wallet(wallet_driver_id)
        payout.status = PAYOUT_COMPLETED
        payout.rail_reference = reference
        db.session.add(WalletTransaction(
            wallet_id=wallet.id,
            driver_id=wallet_driver_id,
            amount=payout.amount,
            type=ENTRY_PAYOUT,
            date=now,
            status=ENTRY_COMPLETED,
            payout_batch_id=payout.batch_id,
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _restore_wallet(payout, entry_ids, error_message, now):
    """Compensate a rejected transfer: give the snapshot back to the wallet."""
    try:
        wallet = _lock_wallet(payout.driver_id)
        entries = (
            WalletTransaction.query
            .filter(WalletTransaction.id.in_(entry_ids))
            .with_for_update()
            .all()
        ) if entry_ids else []
        for entry in entries:
            entry.status = ENTRY_PENDING
            entry.payout_batch_id = None

        wallet.pending_payouts += payout.amount
        wallet.updated_at = now
        payout.status = PAYOUT_FAILED
        payout.error_message = (error_message or "Transfer rejected")[:500]
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _pay_driver(batch, driver_id, rail, now):
    payout, entry_ids = _drain_wallet(batch, driver_id, now)
    if payout is None:
        logger.info(f"Driver {driver_id} has nothing pending, skipped")
        return None

    try:
        result = rail.transfer(driver_id, payout.amount)
        if not result.success:
            raise PayoutTransferFailure(result.error_message or None, driver_id=driver_id)
    except Exception as e:
        message = e.message if isinstance(e, PayoutTransferFailure) else str(e)
        logger.error(f"Payout of {payout.amount} to driver {driver_id} failed: {message}")
        _restore_wallet(payout, entry_ids, message, now)
        return payout

    _complete_payout(payout, driver_id, result.reference, now)
    logger.info(f"Payout of {payout.amount} to driver {driver_id} completed ({result.reference})")
    return payout


def recover_interrupted_payouts(now=None):
    """Give back payouts left drained but never transferred by an earlier sweep.

    Only batches older than ``INTERRUPTED_AFTER`` are touched so a sweep
    still running elsewhere keeps its own payouts.
    """
    now = now or datetime.utcnow()
    stale = (
        PayoutTransaction.query
        .join(PayoutBatch)
        .filter(
            PayoutTransaction.status == PAYOUT_PENDING,
            PayoutBatch.created_at < now - INTERRUPTED_AFTER,
        )
        .order_by(PayoutTransaction.id)
        .all()
    )

    recovered = 0
    for payout in stale:
        entry_ids = [
            entry.id for entry in WalletTransaction.query.filter(
                WalletTransaction.payout_batch_id == payout.batch_id,
                WalletTransaction.driver_id == payout.driver_id,
                WalletTransaction.status == ENTRY_COMPLETED,
                WalletTransaction.type != ENTRY_PAYOUT,
            ).all()
        ]
        try:
            _restore_wallet(payout, entry_ids, "Payout interrupted before transfer", now)
        except Exception as e:
            logger.error(f"Could not recover payout {payout.id} for driver {payout.driver_id}: {e}", exc_info=True)
            continue
        recovered += 1
        logger.warning(f"Recovered interrupted payout {payout.id} of {payout.amount} for driver {payout.driver_id}")

        batch = payout.batch
        if batch.status in (BATCH_PENDING, BATCH_PROCESSING):
            batch.status = BATCH_FAILED
            batch.processed_at = now
            log_change("PayoutBatch", batch.id, "recover", {"payout_id": payout.id, "driver_id": payout.driver_id})
            db.session.commit()

    return recovered


def run_payout_sweep(now=None, rail=None, driver_ids=None, trigger="scheduled"):
    """Drain every wallet with a positive pending balance into one batch.

    Returns the batch, or None when nothing is owed.
    """
    now = now or datetime.utcnow()
    rail = rail or SimulatedPayoutRail()
    recover_interrupted_payouts(now)

    query = DriverWallet.query.filter(DriverWallet.pending_payouts > 0)
    if driver_ids:
        query = query.filter(DriverWallet.driver_id.in_(driver_ids))
    candidates = [wallet.driver_id for wallet in query.order_by(DriverWallet.driver_id).all()]

    if not candidates:
        logger.info("Payout sweep: no wallets with pending payouts")
        return None

    batch = PayoutBatch(driver_ids=candidates, total_amount=0, status=BATCH_PENDING,
                        trigger=trigger, created_at=now)
    db.session.add(batch)
    db.session.commit()

    batch.status = BATCH_PROCESSING
    db.session.commit()
    logger.info(f"Payout batch {batch.id} processing {len(candidates)} drivers ({trigger})")

    for driver_id in candidates:
        try:
            _pay_driver(batch, driver_id, rail, now)
        except Exception as e:
            # drain or compensation itself failed; the wallet is untouched or restored
            logger.error(f"Payout batch {batch.id}: driver {driver_id} not processed: {e}", exc_info=True)

    payouts = PayoutTransaction.query.filter_by(batch_id=batch.id).all()
    paid = [p for p in payouts if p.status == PAYOUT_COMPLETED]
    failed = [p for p in payouts if p.status != PAYOUT_COMPLETED]

    batch.driver_ids = [p.driver_id for p in payouts]
    batch.total_amount = sum(p.amount for p in paid)
    batch.status = BATCH_FAILED if failed else BATCH_COMPLETED
    batch.processed_at = now
    log_change("PayoutBatch", batch.id, "payout", {
        "trigger": trigger,
        "drivers": len(payouts),
        "paid": len(paid),
        "failed": len(failed),
        "total_amount": batch.total_amount,
    })
    db.session.commit()

    logger.info(
        f"Payout batch {batch.id} {batch.status}: {len(paid)} paid, {len(failed)} failed, "
        f"total {batch.total_amount}"
    )
    return batch


def trigger_manual_payout(driver_id=None, now=None, rail=None):
    """Out-of-cycle payout for one driver, or for everyone."""
    driver_ids = [driver_id] if driver_id is not None else None
    return run_payout_sweep(now=now, rail=rail, driver_ids=driver_ids, trigger="manual")


def get_batch(batch_id):
    return db.session.get(PayoutBatch, batch_id)


def list_batches(limit=20):
    return PayoutBatch.query.order_by(PayoutBatch.created_at.desc(), PayoutBatch.id.desc()).limit(limit).all()


def driver_payout_history(driver_id):
    return (
        PayoutTransaction.query
        .filter_by(driver_id=driver_id)
        .order_by(PayoutTransaction.created_at.desc(), PayoutTransaction.id.desc())
        .all()
    )


def payout_statistics(now=None):
    now = now or datetime.utcnow()
    week_start = now - timedelta(days=7)
    month_start = datetime(now.year, now.month, 1)

    def _sum_paid(since):
        return db.session.query(func.coalesce(func.sum(PayoutTransaction.amount), 0)).join(PayoutBatch).filter(
            PayoutTransaction.status == PAYOUT_COMPLETED,
            PayoutBatch.processed_at >= since,
        ).scalar()

    pending = db.session.query(func.coalesce(func.sum(DriverWallet.pending_payouts), 0)).scalar()
    failed = db.session.query(func.coalesce(func.sum(PayoutTransaction.amount), 0)).filter(
        PayoutTransaction.status == PAYOUT_FAILED
    ).scalar()

    return {
        "total_paid_this_week": int(_sum_paid(week_start)),
        "total_paid_this_month": int(_sum_paid(month_start)),
        "pending_payouts": int(pending),
        "failed_payouts": int(failed),
    }
