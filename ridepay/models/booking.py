from datetime import datetime
from ridepay.extension import db


BOOKING_SUSPENDED_PAYMENT = "suspended_payment"


class Booking(db.Model):
    """The slice of the booking record the payment engine may touch.

    Matching, routes and seats live in the booking service; here we only
    read the trip end date and write back the resulting status.
    """

    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    parent_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    driver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(30), default="confirmed")
    status_reason = db.Column(db.String(255))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
