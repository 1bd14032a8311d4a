from ridepay.extension import db
from ridepay.models.user import User
from ridepay.models.changelog import ChangeLog
from ridepay.models.booking import Booking
from ridepay.models.notification import Notification
from ridepay.models.payment_transaction import PaymentTransaction
from ridepay.models.driver_wallet import DriverWallet, WalletTransaction
from ridepay.models.payout import PayoutBatch, PayoutTransaction
from ridepay.models.budget import BudgetLimit, MonthlyExpense, ExpenseEntry

__all__ = [
    "db",
    "User",
    "ChangeLog",
    "Booking",
    "Notification",
    "PaymentTransaction",
    "DriverWallet",
    "WalletTransaction",
    "PayoutBatch",
    "PayoutTransaction",
    "BudgetLimit",
    "MonthlyExpense",
    "ExpenseEntry",
]
