from datetime import datetime
from ridepay.extension import db


BATCH_PENDING = "pending"
BATCH_PROCESSING = "processing"
BATCH_COMPLETED = "completed"
BATCH_FAILED = "failed"

PAYOUT_PENDING = "pending"
PAYOUT_COMPLETED = "completed"
PAYOUT_FAILED = "failed"


class PayoutBatch(db.Model):
    __tablename__ = "payout_batches"

    id = db.Column(db.Integer, primary_key=True)
    driver_ids = db.Column(db.JSON, nullable=False, default=list)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=BATCH_PENDING)
    trigger = db.Column(db.String(20), nullable=False, default="scheduled")  # scheduled, manual
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    processed_at = db.Column(db.DateTime)

    transactions = db.relationship(
        "PayoutTransaction",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="PayoutTransaction.id",
    )

    @property
    def failed_count(self):
        return sum(1 for tx in self.transactions if tx.status == PAYOUT_FAILED)


class PayoutTransaction(db.Model):
    __tablename__ = "payout_transactions"

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("payout_batches.id"), nullable=False, index=True)
    driver_id = db.Column(db.Integer, nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PAYOUT_PENDING)
    error_message = db.Column(db.String(500))
    rail_reference = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    batch = db.relationship("PayoutBatch", back_populates="transactions")
