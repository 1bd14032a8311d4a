"""Booking collaborator: the only door from the payment engine to bookings."""
import logging
from datetime import datetime
from ridepay.extension import db
from ridepay.models import Booking
from ridepay.errors import BookingNotFound

logger = logging.getLogger(__name__)


class BookingDirectory:
    def get_booking_end_date(self, booking_id):
        booking = db.session.get(Booking, booking_id)
        if not booking:
            raise BookingNotFound(booking_id=booking_id)
        return booking.end_date

    def set_booking_status(self, booking_id, status, reason=None):
        """Stage the status change in the current session; the caller commits."""
        booking = db.session.get(Booking, booking_id)
        if not booking:
            raise BookingNotFound(booking_id=booking_id)
        booking.status = status
        booking.status_reason = reason
        booking.updated_at = datetime.utcnow()
        logger.info(f"Booking {booking_id} -> {status}")
        return booking
