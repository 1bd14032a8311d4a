from datetime import datetime
from ridepay.extension import db


ENTRY_UPFRONT_EARNING = "upfront_earning"
ENTRY_BALANCE_EARNING = "balance_earning"
ENTRY_PAYOUT = "payout"

ENTRY_PENDING = "pending"
ENTRY_COMPLETED = "completed"


class DriverWallet(db.Model):
    __tablename__ = "driver_wallets"

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)
    total_earnings = db.Column(db.Integer, nullable=False, default=0)
    pending_payouts = db.Column(db.Integer, nullable=False, default=0)
    last_payout_date = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    transactions = db.relationship(
        "WalletTransaction",
        back_populates="wallet",
        order_by="WalletTransaction.id",
    )


class WalletTransaction(db.Model):
    """Append-only wallet entry. Only ``status``/``payout_batch_id`` ever change."""

    __tablename__ = "wallet_transactions"

    id = db.Column(db.Integer, primary_key=True)
    wallet_id = db.Column(db.Integer, db.ForeignKey("driver_wallets.id"), nullable=False, index=True)
    driver_id = db.Column(db.Integer, nullable=False, index=True)
    booking_id = db.Column(db.Integer, nullable=True)
    parent_id = db.Column(db.Integer, nullable=True)
    payment_transaction_id = db.Column(db.Integer, db.ForeignKey("payment_transactions.id"), nullable=True)
    amount = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(20), nullable=False)
    date = db.Column(db.DateTime, default=datetime.utcnow)
    status = db.Column(db.String(20), nullable=False, default=ENTRY_PENDING, index=True)
    payout_batch_id = db.Column(db.Integer, db.ForeignKey("payout_batches.id"), nullable=True)

    wallet = db.relationship("DriverWallet", back_populates="transactions")
