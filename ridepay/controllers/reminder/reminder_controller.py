from flask_restful import Resource, Api
from ridepay.errors import PaymentError
from ridepay.service import payment_ledger
from ridepay.service.payment_reminders import run_reminder_sweep, list_reminders
from ridepay.utils.decorators import role_required
from ridepay.utils.roles import ROLE_ADMIN
from . import reminder_bp

api = Api(reminder_bp)


# admin runs the reminder sweep out of schedule
class RunReminderSweep(Resource):
    @role_required(ROLE_ADMIN)
    def post(self):
        result = run_reminder_sweep()
        return {
            "message": "Reminder sweep executed",
            **result.to_dict(),
        }, 200


class BookingReminderLog(Resource):
    @role_required(ROLE_ADMIN)
    def get(self, booking_id):
        try:
            transaction = payment_ledger.get_transaction_by_booking(booking_id)
        except PaymentError as e:
            return e.to_dict(), e.http_status

        return {
            "booking_id": booking_id,
            "reminders_sent": transaction.reminders_sent,
            "history": [
                entry.to_dict(only=("id", "timestamp", "changed_by", "details"))
                for entry in list_reminders(booking_id)
            ],
        }, 200


api.add_resource(RunReminderSweep, "/reminders/run")
api.add_resource(BookingReminderLog, "/reminders/bookings/<int:booking_id>")
