from datetime import datetime
from flask_restful import Resource, Api
from flask import request, g, current_app
from marshmallow import ValidationError
from ridepay.errors import PaymentError
from ridepay.models import Booking
from ridepay.models.payment_transaction import PAYMENT_STATUSES
from ridepay.extension import db
from ridepay.schemas.payment_schema import (
    PaymentTransactionSchema,
    PaymentSplitSchema,
    CreateTransactionSchema,
    PaymentRequestSchema,
)
from ridepay.service import payment_ledger
from ridepay.service.payment_split import compute_split
from ridepay.utils.decorators import role_required
from ridepay.utils.roles import ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN
from . import payment_bp

api = Api(payment_bp)

# Schemas
transaction_schema = PaymentTransactionSchema()
transactions_schema = PaymentTransactionSchema(many=True)
split_schema = PaymentSplitSchema()
create_schema = CreateTransactionSchema()
payment_request_schema = PaymentRequestSchema()


def can_access_transaction(user, transaction):
    """
    - Admin: every transaction
    - Parent: transactions they pay for
    - Driver: transactions they earn from
    """
    if user.role == ROLE_ADMIN:
        return True
    if user.role == ROLE_PARENT:
        return transaction.parent_id == user.id
    if user.role == ROLE_DRIVER:
        return transaction.driver_id == user.id
    return False


def _parse_date(value):
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


class PaymentSplitResource(Resource):
    @role_required()
    def get(self):
        try:
            total_amount = int(request.args.get("total_amount", ""))
        except ValueError:
            return {"message": "total_amount must be an integer"}, 400

        end_date = _parse_date(request.args.get("end_date"))
        if not end_date:
            return {"message": "end_date must be an ISO date"}, 400

        try:
            split = compute_split(total_amount, end_date)
        except PaymentError as e:
            return e.to_dict(), e.http_status
        return split_schema.dump(split), 200


class PaymentTransactionListResource(Resource):
    @role_required(ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN)
    def get(self):
        current_user = g.current_user
        status = request.args.get("status")
        if status and status not in PAYMENT_STATUSES:
            return {"message": f"Unknown status: {status}"}, 400

        if current_user.role == ROLE_PARENT:
            transactions = payment_ledger.list_transactions(parent_id=current_user.id, status=status)
        elif current_user.role == ROLE_DRIVER:
            transactions = payment_ledger.list_transactions(driver_id=current_user.id, status=status)
        else:
            transactions = payment_ledger.list_transactions(
                parent_id=request.args.get("parent_id", type=int),
                driver_id=request.args.get("driver_id", type=int),
                status=status,
            )
        return transactions_schema.dump(transactions), 200

    @role_required(ROLE_PARENT, ROLE_ADMIN)
    def post(self):
        current_user = g.current_user
        try:
            data = create_schema.load(request.get_json() or {})
        except ValidationError as err:
            return {"message": "Invalid input", "errors": err.messages}, 400

        booking = db.session.get(Booking, data["booking_id"])
        if not booking:
            return {"message": "Booking not found"}, 404
        if current_user.role == ROLE_PARENT and booking.parent_id != current_user.id:
            return {"message": "Access denied"}, 403

        parent_id = data.get("parent_id") or booking.parent_id
        try:
            transaction = payment_ledger.create_transaction(
                booking_id=booking.id,
                parent_id=parent_id,
                driver_id=data["driver_id"],
                total_amount=data["total_amount"],
            )
        except PaymentError as e:
            return e.to_dict(), e.http_status

        return transaction_schema.dump(transaction), 201


class PaymentTransactionResource(Resource):
    @role_required(ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN)
    def get(self, transaction_id):
        try:
            transaction = payment_ledger.get_transaction(transaction_id)
        except PaymentError as e:
            return e.to_dict(), e.http_status

        if not can_access_transaction(g.current_user, transaction):
            return {"message": "Access denied"}, 403
        return transaction_schema.dump(transaction), 200


class BookingPaymentResource(Resource):
    @role_required(ROLE_PARENT, ROLE_DRIVER, ROLE_ADMIN)
    def get(self, booking_id):
        try:
            transaction = payment_ledger.get_transaction_by_booking(booking_id)
        except PaymentError as e:
            return e.to_dict(), e.http_status

        if not can_access_transaction(g.current_user, transaction):
            return {"message": "Access denied"}, 403
        return transaction_schema.dump(transaction), 200


class ProcessPaymentResource(Resource):
    @role_required(ROLE_PARENT)
    def post(self, transaction_id):
        current_user = g.current_user
        try:
            data = payment_request_schema.load(request.get_json() or {})
        except ValidationError as err:
            return {"message": "Invalid input", "errors": err.messages}, 400

        customer_info = {
            "name": current_user.name,
            "email": current_user.email,
            "phone": current_user.phone,
        }
        customer_info.update({k: v for k, v in data["customer_info"].items() if v})

        try:
            transaction = payment_ledger.get_transaction(transaction_id)
            if transaction.parent_id != current_user.id:
                return {"message": "Access denied"}, 403

            transaction, charge = payment_ledger.process_payment(
                transaction_id,
                data["payment_type"],
                data["amount"],
                customer_info=customer_info,
                gateway=current_app.extensions["ridepay.payment_gateway"],
            )
        except PaymentError as e:
            return e.to_dict(), e.http_status

        return {
            "message": f"{data['payment_type'].capitalize()} payment processed successfully",
            "gateway_transaction_id": charge.transaction_id,
            "transaction": transaction_schema.dump(transaction),
        }, 200


api.add_resource(PaymentSplitResource, "/payments/split")
api.add_resource(PaymentTransactionListResource, "/payments/transactions")
api.add_resource(PaymentTransactionResource, "/payments/transactions/<int:transaction_id>")
api.add_resource(BookingPaymentResource, "/payments/bookings/<int:booking_id>")
api.add_resource(ProcessPaymentResource, "/payments/transactions/<int:transaction_id>/pay")
