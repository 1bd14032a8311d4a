from datetime import datetime, timedelta

import pytest

from ridepay.extension import db as _db
from ridepay.models import DriverWallet, WalletTransaction, PayoutBatch, PayoutTransaction
from ridepay.models.driver_wallet import ENTRY_UPFRONT_EARNING, ENTRY_BALANCE_EARNING, ENTRY_PAYOUT
from ridepay.service import driver_wallet, payouts
from ridepay.service.payouts import run_payout_sweep, trigger_manual_payout, recover_interrupted_payouts

from conftest import FakeRail

SWEEP_AT = datetime(2026, 3, 23, 10, 0)


def _earn(driver, amount, entry_type=ENTRY_UPFRONT_EARNING):
    driver_wallet.credit(driver.id, amount, entry_type, now=datetime(2026, 3, 20))
    _db.session.commit()


def _wallet(driver):
    _db.session.expire_all()
    return DriverWallet.query.filter_by(driver_id=driver.id).one()


def test_credit_during_batch_stays_pending(users):
    driver = users["driver"]
    _earn(driver, 5000)

    def mid_batch_credit(driver_id, amount):
        driver_wallet.credit(driver_id, 1000, ENTRY_BALANCE_EARNING, now=SWEEP_AT)
        _db.session.commit()

    batch = run_payout_sweep(now=SWEEP_AT, rail=FakeRail(on_transfer=mid_batch_credit))

    wallet = _wallet(driver)
    assert wallet.pending_payouts == 1000
    assert wallet.total_earnings == 6000
    assert wallet.last_payout_date == SWEEP_AT

    assert batch.status == "completed"
    assert [(p.driver_id, p.amount, p.status) for p in batch.transactions] == [(driver.id, 5000, "completed")]

    pending = WalletTransaction.query.filter_by(wallet_id=wallet.id, status="pending").all()
    assert [(e.amount, e.payout_batch_id) for e in pending] == [(1000, None)]


def test_sweep_pays_every_driver_and_marks_entries(users):
    _earn(users["driver"], 2042)
    _earn(users["driver"], 6127, ENTRY_BALANCE_EARNING)
    _earn(users["second_driver"], 3000)
    rail = FakeRail()

    batch = run_payout_sweep(now=SWEEP_AT, rail=rail)

    assert batch.status == "completed"
    assert batch.total_amount == 2042 + 6127 + 3000
    assert sorted(batch.driver_ids) == sorted([users["driver"].id, users["second_driver"].id])
    assert sorted(rail.transfers) == sorted([(users["driver"].id, 8169), (users["second_driver"].id, 3000)])

    wallet = _wallet(users["driver"])
    assert wallet.pending_payouts == 0
    earnings = [e for e in wallet.transactions if e.type != ENTRY_PAYOUT]
    assert all(e.status == "completed" and e.payout_batch_id == batch.id for e in earnings)
    payout_entries = [e for e in wallet.transactions if e.type == ENTRY_PAYOUT]
    assert [(e.amount, e.status) for e in payout_entries] == [(8169, "completed")]


def test_failed_transfer_is_isolated_and_restored(users):
    _earn(users["driver"], 4000)
    _earn(users["second_driver"], 3000)

    batch = run_payout_sweep(now=SWEEP_AT, rail=FakeRail(failing={users["driver"].id}))

    assert batch.status == "failed"
    assert batch.failed_count == 1
    assert batch.total_amount == 3000

    failed = PayoutTransaction.query.filter_by(driver_id=users["driver"].id).one()
    assert failed.status == "failed"
    assert failed.error_message == "Account closed"

    wallet = _wallet(users["driver"])
    assert wallet.pending_payouts == 4000
    assert [(e.status, e.payout_batch_id) for e in wallet.transactions] == [("pending", None)]

    assert _wallet(users["second_driver"]).pending_payouts == 0


def test_rail_exception_is_treated_as_a_failed_transfer(users):
    _earn(users["driver"], 4000)

    def explode(driver_id, amount):
        raise ConnectionError("rail timeout")

    batch = run_payout_sweep(now=SWEEP_AT, rail=FakeRail(on_transfer=explode))

    assert batch.status == "failed"
    assert _wallet(users["driver"]).pending_payouts == 4000
    assert "rail timeout" in PayoutTransaction.query.one().error_message


def test_failed_driver_is_paid_on_the_next_run(users):
    _earn(users["driver"], 4000)
    run_payout_sweep(now=SWEEP_AT, rail=FakeRail(failing={users["driver"].id}))

    batch = run_payout_sweep(now=datetime(2026, 3, 30, 10, 0), rail=FakeRail())

    assert batch.status == "completed"
    assert batch.total_amount == 4000
    assert _wallet(users["driver"]).pending_payouts == 0


def test_money_is_conserved(users):
    for amount in (1200, 800, 3500):
        _earn(users["driver"], amount)
    run_payout_sweep(now=SWEEP_AT, rail=FakeRail())
    _earn(users["driver"], 900)
    run_payout_sweep(now=datetime(2026, 3, 30, 10, 0), rail=FakeRail(failing={users["driver"].id}))

    wallet = _wallet(users["driver"])
    paid_out = sum(
        p.amount for p in PayoutTransaction.query.filter_by(driver_id=users["driver"].id, status="completed")
    )
    assert wallet.total_earnings == paid_out + wallet.pending_payouts
    assert wallet.pending_payouts == driver_wallet.pending_total(wallet)


def test_nothing_pending_creates_no_batch(users):
    assert run_payout_sweep(now=SWEEP_AT, rail=FakeRail()) is None
    assert PayoutBatch.query.count() == 0


def test_second_sweep_is_a_no_op(users):
    _earn(users["driver"], 4000)
    run_payout_sweep(now=SWEEP_AT, rail=FakeRail())

    assert run_payout_sweep(now=SWEEP_AT, rail=FakeRail()) is None
    assert PayoutTransaction.query.count() == 1


def test_manual_payout_for_one_driver(users):
    _earn(users["driver"], 4000)
    _earn(users["second_driver"], 3000)

    batch = trigger_manual_payout(driver_id=users["second_driver"].id, now=SWEEP_AT, rail=FakeRail())

    assert batch.trigger == "manual"
    assert batch.driver_ids == [users["second_driver"].id]
    assert _wallet(users["driver"]).pending_payouts == 4000
    assert _wallet(users["second_driver"]).pending_payouts == 0


def test_payout_statistics(users):
    _earn(users["driver"], 4000)
    _earn(users["second_driver"], 3000)
    run_payout_sweep(now=SWEEP_AT, rail=FakeRail(failing={users["second_driver"].id}))

    stats = payouts.payout_statistics(now=datetime(2026, 3, 24, 8, 0))

    assert stats == {
        "total_paid_this_week": 4000,
        "total_paid_this_month": 4000,
        "pending_payouts": 3000,
        "failed_payouts": 3000,
    }
    assert [p.amount for p in payouts.driver_payout_history(users["driver"].id)] == [4000]


def test_negative_credit_is_rejected(users):
    with pytest.raises(ValueError):
        driver_wallet.credit(users["driver"].id, -1, ENTRY_UPFRONT_EARNING)


def test_wallet_summary_for_driver_without_wallet(users):
    summary = driver_wallet.wallet_summary(users["driver"].id)

    assert summary["pending_payouts"] == 0
    assert summary["transactions"] == []


def _interrupted_drain(driver, created_at=SWEEP_AT):
    """Drain a wallet into a batch whose sweep died before the transfer."""
    batch = PayoutBatch(driver_ids=[driver.id], total_amount=0, status="processing", created_at=created_at)
    _db.session.add(batch)
    _db.session.commit()
    payouts._drain_wallet(batch, driver.id, created_at)
    return batch.id


def test_interrupted_payout_is_paid_by_the_next_sweep(users):
    driver = users["driver"]
    _earn(driver, 5000)
    crashed_batch_id = _interrupted_drain(driver)
    assert _wallet(driver).pending_payouts == 0

    rail = FakeRail()
    batch = run_payout_sweep(now=SWEEP_AT + timedelta(days=7), rail=rail)

    assert rail.transfers == [(driver.id, 5000)]
    assert batch.status == "completed"
    assert batch.total_amount == 5000

    wallet = _wallet(driver)
    assert wallet.pending_payouts == 0
    earnings = [e for e in wallet.transactions if e.type != ENTRY_PAYOUT]
    assert [(e.status, e.payout_batch_id) for e in earnings] == [("completed", batch.id)]

    stale = PayoutTransaction.query.filter_by(batch_id=crashed_batch_id).one()
    assert stale.status == "failed"
    assert stale.error_message == "Payout interrupted before transfer"
    assert _db.session.get(PayoutBatch, crashed_batch_id).status == "failed"


def test_running_sweep_keeps_its_pending_payouts(users):
    driver = users["driver"]
    _earn(driver, 5000)
    _interrupted_drain(driver)

    assert recover_interrupted_payouts(now=SWEEP_AT + timedelta(minutes=5)) == 0
    assert _wallet(driver).pending_payouts == 0

    assert recover_interrupted_payouts(now=SWEEP_AT + timedelta(hours=2)) == 1
    assert _wallet(driver).pending_payouts == 5000
