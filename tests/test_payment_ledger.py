from datetime import datetime

import pytest
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ridepay.errors import (
    ConcurrentModification,
    UnappliedCharge,
    InsufficientAmount,
    ExceedsRemaining,
    AlreadySuspended,
    GatewayFailure,
    TransactionNotFound,
    BookingNotFound,
)
from ridepay.models import PaymentTransaction, DriverWallet, WalletTransaction, ChangeLog
from ridepay.models.payment_transaction import (
    STATUS_PENDING_UPFRONT,
    STATUS_UPFRONT_PAID,
    STATUS_FULLY_PAID,
    STATUS_SUSPENDED,
)
from ridepay.service import payment_ledger
from ridepay.service.payment_ledger import (
    create_transaction,
    apply_upfront_payment,
    apply_balance_payment,
    process_payment,
)

from conftest import FakeGateway

PAID_AT = datetime(2026, 3, 1, 10, 0)


@pytest.fixture
def transaction(booking, users):
    return create_transaction(booking.id, users["parent"].id, users["driver"].id, 10000)


def _wallet(db, driver):
    db.session.expire_all()
    return DriverWallet.query.filter_by(driver_id=driver.id).one()


def test_create_transaction_sets_up_the_ledger(transaction, booking):
    assert transaction.status == STATUS_PENDING_UPFRONT
    assert transaction.required_upfront == 2500
    assert transaction.upfront_paid == 0
    assert transaction.balance_paid == 0
    assert transaction.driver_earning == 0
    assert transaction.balance_due_date == datetime(2026, 3, 18, 12, 0)
    assert transaction.reminders_sent == {"threeDays": False, "oneDay": False}
    assert ChangeLog.query.filter_by(entity_id=transaction.id, action="create").count() == 1


def test_create_transaction_is_idempotent_per_booking(transaction, booking, users):
    again = create_transaction(booking.id, users["parent"].id, users["driver"].id, 99999)

    assert again.id == transaction.id
    assert again.total_amount == 10000
    assert PaymentTransaction.query.count() == 1


def test_create_transaction_for_unknown_booking(users):
    with pytest.raises(BookingNotFound):
        create_transaction(404, users["parent"].id, users["driver"].id, 10000)


def test_exact_upfront_moves_to_upfront_paid(db, transaction, users):
    updated = apply_upfront_payment(transaction.id, 2500, gateway_ref="TXN_1", now=PAID_AT)

    assert updated.status == STATUS_UPFRONT_PAID
    assert updated.upfront_paid == 2500
    assert updated.upfront_payment_date == PAID_AT
    assert updated.upfront_gateway_ref == "TXN_1"
    assert updated.gateway_fee == 83
    assert updated.system_commission == 375
    assert updated.driver_earning == 2042

    wallet = _wallet(db, users["driver"])
    assert wallet.total_earnings == 2042
    assert wallet.pending_payouts == 2042
    assert [(e.type, e.amount, e.status) for e in wallet.transactions] == [("upfront_earning", 2042, "pending")]


def test_upfront_below_minimum_is_rejected(db, transaction, users):
    with pytest.raises(InsufficientAmount):
        apply_upfront_payment(transaction.id, 2400)

    db.session.expire_all()
    unchanged = db.session.get(PaymentTransaction, transaction.id)
    assert unchanged.upfront_paid == 0
    assert unchanged.status == STATUS_PENDING_UPFRONT
    assert DriverWallet.query.count() == 0


def test_balance_after_upfront_settles_the_booking(db, transaction, users):
    apply_upfront_payment(transaction.id, 2500, now=PAID_AT)
    updated = apply_balance_payment(transaction.id, 7500, gateway_ref="TXN_2", now=PAID_AT)

    assert updated.status == STATUS_FULLY_PAID
    assert updated.upfront_paid + updated.balance_paid == 10000
    assert updated.remaining_amount == 0
    assert updated.gateway_fee + updated.system_commission + updated.driver_earning == 10000

    wallet = _wallet(db, users["driver"])
    assert wallet.total_earnings == updated.driver_earning
    assert sorted(e.type for e in wallet.transactions) == ["balance_earning", "upfront_earning"]


def test_partial_balance_payments_accumulate(transaction):
    apply_upfront_payment(transaction.id, 2500)
    apply_balance_payment(transaction.id, 3000)
    updated = apply_balance_payment(transaction.id, 4500)

    assert updated.balance_paid == 7500
    assert updated.status == STATUS_FULLY_PAID


def test_single_payment_covering_everything(transaction):
    updated = apply_upfront_payment(transaction.id, 10000)

    assert updated.status == STATUS_FULLY_PAID
    assert updated.driver_earning == 8170


def test_overpayment_is_rejected(db, transaction):
    apply_upfront_payment(transaction.id, 2500)

    with pytest.raises(ExceedsRemaining):
        apply_balance_payment(transaction.id, 7501)

    db.session.expire_all()
    assert db.session.get(PaymentTransaction, transaction.id).balance_paid == 0


def test_upfront_larger_than_total_is_rejected(transaction):
    with pytest.raises(ExceedsRemaining):
        apply_upfront_payment(transaction.id, 10001)


@pytest.mark.parametrize("amount", [0, -100, None])
def test_non_positive_balance_is_rejected(transaction, amount):
    apply_upfront_payment(transaction.id, 2500)

    with pytest.raises(InsufficientAmount):
        apply_balance_payment(transaction.id, amount)


def test_partial_balance_before_upfront_is_rejected(transaction):
    with pytest.raises(InsufficientAmount):
        apply_balance_payment(transaction.id, 5000)


def test_full_balance_before_upfront_settles(transaction):
    updated = apply_balance_payment(transaction.id, 10000)

    assert updated.status == STATUS_FULLY_PAID


def test_suspended_transaction_refuses_payments(db, transaction):
    apply_upfront_payment(transaction.id, 2500)
    record = db.session.get(PaymentTransaction, transaction.id)
    record.status = STATUS_SUSPENDED
    db.session.commit()

    with pytest.raises(AlreadySuspended) as excinfo:
        apply_balance_payment(transaction.id, 7500)
    assert excinfo.value.http_status == 409
    assert "suspended for non-payment" in excinfo.value.message


def test_paid_amounts_never_decrease(transaction):
    seen = []
    for pay, amount in ((apply_upfront_payment, 2500), (apply_balance_payment, 1000),
                        (apply_balance_payment, 2000), (apply_balance_payment, 4500)):
        updated = pay(transaction.id, amount)
        seen.append((updated.upfront_paid, updated.balance_paid, updated.driver_earning))

    assert seen == sorted(seen)
    assert seen[-1][:2] == (2500, 7500)


def test_failed_wallet_credit_rolls_back_the_ledger(db, transaction, monkeypatch):
    def broken_credit(*args, **kwargs):
        raise RuntimeError("wallet store unavailable")

    monkeypatch.setattr(payment_ledger.driver_wallet, "credit", broken_credit)

    with pytest.raises(RuntimeError):
        apply_upfront_payment(transaction.id, 2500)

    db.session.expire_all()
    record = db.session.get(PaymentTransaction, transaction.id)
    assert record.upfront_paid == 0
    assert record.driver_earning == 0
    assert record.status == STATUS_PENDING_UPFRONT
    assert WalletTransaction.query.count() == 0


def test_unknown_transaction(app):
    with pytest.raises(TransactionNotFound):
        apply_upfront_payment(12345, 2500)


def test_process_payment_charges_then_applies(transaction):
    gateway = FakeGateway()

    updated, charge = process_payment(
        transaction.id, "upfront", 2500,
        customer_info={"email": "parent@example.com"}, gateway=gateway,
    )

    assert charge.success
    assert gateway.charges == [(2500, {"email": "parent@example.com"})]
    assert updated.upfront_gateway_ref == charge.transaction_id
    assert updated.status == STATUS_UPFRONT_PAID


def test_invalid_payment_never_reaches_the_gateway(transaction):
    gateway = FakeGateway()

    with pytest.raises(InsufficientAmount):
        process_payment(transaction.id, "upfront", 100, gateway=gateway)
    assert gateway.charges == []


def test_gateway_failure_leaves_ledger_untouched(db, transaction):
    with pytest.raises(GatewayFailure) as excinfo:
        process_payment(transaction.id, "upfront", 2500, gateway=FakeGateway(success=False))

    assert excinfo.value.message == "Card declined"
    db.session.expire_all()
    assert db.session.get(PaymentTransaction, transaction.id).upfront_paid == 0
    assert DriverWallet.query.count() == 0


def test_list_transactions_filters(make_booking, users):
    first = create_transaction(make_booking().id, users["parent"].id, users["driver"].id, 10000)
    create_transaction(make_booking(driver=users["second_driver"]).id, users["parent"].id,
                       users["second_driver"].id, 8000)
    apply_upfront_payment(first.id, 2500)

    assert len(payment_ledger.list_transactions(parent_id=users["parent"].id)) == 2
    assert len(payment_ledger.list_transactions(driver_id=users["driver"].id)) == 1
    assert [t.id for t in payment_ledger.list_transactions(status=STATUS_UPFRONT_PAID)] == [first.id]


def test_second_of_two_racing_balance_payments_fails(db, transaction, users, monkeypatch):
    apply_upfront_payment(transaction.id, 2500)
    real_increment = payment_ledger.compute_increment

    def other_request_pays_first(amount):
        monkeypatch.setattr(payment_ledger, "compute_increment", real_increment)
        other = Session(db.engine)
        try:
            competing = other.get(PaymentTransaction, transaction.id)
            competing.balance_paid += 5000
            other.commit()
        finally:
            other.close()
        return real_increment(amount)

    monkeypatch.setattr(payment_ledger, "compute_increment", other_request_pays_first)

    # 5000 + 5000 exceeds the 7500 still owed
    with pytest.raises(ConcurrentModification):
        apply_balance_payment(transaction.id, 5000)

    db.session.expire_all()
    record = db.session.get(PaymentTransaction, transaction.id)
    assert record.balance_paid == 5000
    assert record.driver_earning == 2042
    assert _wallet(db, users["driver"]).pending_payouts == 2042

    with pytest.raises(ExceedsRemaining):
        apply_balance_payment(transaction.id, 5000)


def test_charged_payment_survives_a_concurrent_update(db, transaction, monkeypatch):
    real_credit = payment_ledger.driver_wallet.credit
    calls = []

    def stale_once(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise StaleDataError("wallet version changed")
        return real_credit(*args, **kwargs)

    monkeypatch.setattr(payment_ledger.driver_wallet, "credit", stale_once)
    gateway = FakeGateway()

    updated, charge = process_payment(transaction.id, "upfront", 2500, gateway=gateway)

    assert len(gateway.charges) == 1
    assert len(calls) == 2
    db.session.expire_all()
    record = db.session.get(PaymentTransaction, transaction.id)
    assert record.upfront_paid == 2500
    assert record.upfront_gateway_ref == charge.transaction_id
    assert WalletTransaction.query.count() == 1


def test_charge_that_cannot_be_applied_is_kept(db, transaction, monkeypatch):
    def always_stale(*args, **kwargs):
        raise StaleDataError("wallet version changed")

    monkeypatch.setattr(payment_ledger.driver_wallet, "credit", always_stale)

    with pytest.raises(UnappliedCharge) as excinfo:
        process_payment(transaction.id, "upfront", 2500, gateway=FakeGateway())

    assert excinfo.value.http_status == 409
    assert excinfo.value.details["gateway_transaction_id"] == "TXN_TEST_1"

    entry = ChangeLog.query.filter_by(entity_id=transaction.id, action="charge_unapplied").one()
    assert entry.details["gateway_ref"] == "TXN_TEST_1"
    assert entry.details["amount"] == 2500
    assert entry.details["reason"] == "concurrent_modification"

    db.session.expire_all()
    assert db.session.get(PaymentTransaction, transaction.id).upfront_paid == 0
