"""Error taxonomy for the payment engine.

Validation errors are returned to the caller as-is and never retried.
Background sweeps log and isolate their failures instead of raising.
"""


class PaymentError(Exception):
    http_status = 400
    code = "payment_error"
    default_message = "Payment could not be processed"

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        body = {"message": self.message, "error": self.code}
        if self.details:
            body["details"] = self.details
        return body


class InsufficientAmount(PaymentError):
    code = "insufficient_amount"
    default_message = "Payment is below the required minimum"


class ExceedsRemaining(PaymentError):
    code = "exceeds_remaining"
    default_message = "Payment exceeds the remaining balance"


class AlreadySuspended(PaymentError):
    http_status = 409
    code = "booking_suspended"
    default_message = "This booking has been suspended for non-payment. Please contact support."


class TransactionNotFound(PaymentError):
    http_status = 404
    code = "transaction_not_found"
    default_message = "Payment transaction not found"


class GatewayFailure(PaymentError):
    http_status = 402
    code = "gateway_failure"
    default_message = "Payment failed. Please try again."


class PayoutTransferFailure(PaymentError):
    http_status = 502
    code = "payout_transfer_failure"
    default_message = "Payout transfer was rejected"


class ConcurrentModification(PaymentError):
    http_status = 409
    code = "concurrent_modification"
    default_message = "The record was changed by another request, please retry"


class BudgetNotFound(PaymentError):
    http_status = 404
    code = "budget_not_found"
    default_message = "Budget limit not found"


class InvalidBudget(PaymentError):
    code = "invalid_budget"
    default_message = "Invalid budget configuration"


class BookingNotFound(PaymentError):
    http_status = 404
    code = "booking_not_found"
    default_message = "Booking not found"


class BudgetAccessDenied(PaymentError):
    http_status = 403
    code = "budget_access_denied"
    default_message = "This child's budget belongs to another parent"


class UnappliedCharge(PaymentError):
    http_status = 409
    code = "charge_not_applied"
    default_message = "Payment was charged but could not be recorded. Support has been notified."
