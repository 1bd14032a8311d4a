from datetime import datetime
from ridepay.extension import db


STATUS_PENDING_UPFRONT = "pending_upfront"
STATUS_UPFRONT_PAID = "upfront_paid"
STATUS_FULLY_PAID = "fully_paid"
STATUS_OVERDUE = "overdue"  # derived, never stored
STATUS_SUSPENDED = "suspended"

PAYMENT_STATUSES = (
    STATUS_PENDING_UPFRONT,
    STATUS_UPFRONT_PAID,
    STATUS_FULLY_PAID,
    STATUS_OVERDUE,
    STATUS_SUSPENDED,
)


class PaymentTransaction(db.Model):
    """One payment record per booking.

    Amounts are integers in the smallest currency unit. ``system_commission``,
    ``gateway_fee`` and ``driver_earning`` accumulate as payments land.
    Mutations go through ``ridepay.service.payment_ledger`` only.
    """

    __tablename__ = "payment_transactions"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, unique=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_amount = db.Column(db.Integer, nullable=False)
    required_upfront = db.Column(db.Integer, nullable=False)
    upfront_paid = db.Column(db.Integer, nullable=False, default=0)
    balance_paid = db.Column(db.Integer, nullable=False, default=0)
    system_commission = db.Column(db.Integer, nullable=False, default=0)
    gateway_fee = db.Column(db.Integer, nullable=False, default=0)
    driver_earning = db.Column(db.Integer, nullable=False, default=0)

    balance_due_date = db.Column(db.DateTime, nullable=False, index=True)
    reminder_three_days_sent = db.Column(db.Boolean, nullable=False, default=False)
    reminder_one_day_sent = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING_UPFRONT, index=True)
    suspension_reason = db.Column(db.String(255))

    upfront_payment_date = db.Column(db.DateTime)
    balance_payment_date = db.Column(db.DateTime)
    upfront_gateway_ref = db.Column(db.String(100))
    balance_gateway_ref = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    version = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    booking = db.relationship("Booking")

    @property
    def amount_paid(self):
        return self.upfront_paid + self.balance_paid

    @property
    def remaining_amount(self):
        return self.total_amount - self.amount_paid

    @property
    def reminders_sent(self):
        return {
            "threeDays": bool(self.reminder_three_days_sent),
            "oneDay": bool(self.reminder_one_day_sent),
        }

    def is_overdue(self, now=None):
        now = now or datetime.utcnow()
        return (
            self.status == STATUS_UPFRONT_PAID
            and self.remaining_amount > 0
            and now > self.balance_due_date
        )

    def __repr__(self):
        return f"<PaymentTransaction {self.id} booking={self.booking_id} {self.status}>"
