"""Payment split calculator.

All amounts are integers in the smallest currency unit. Fees, commission
and the upfront minimum round up (in the platform's favour); the driver
earning is whatever remains, so every split adds back up to its amount.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict
from ridepay.errors import InsufficientAmount

UPFRONT_PERCENTAGE = 25
GATEWAY_FEE_BASIS_POINTS = 330  # 3.30%
SYSTEM_COMMISSION_PERCENTAGE = 15
BALANCE_DUE_DAYS_BEFORE_END = 2
REMINDER_OFFSETS_DAYS = {"threeDays": 3, "oneDay": 1}


def _ceil_share(amount: int, numerator: int, denominator: int) -> int:
    return -(-amount * numerator // denominator)


@dataclass
class PaymentIncrement:
    amount: int
    gateway_fee: int
    system_commission: int
    driver_earning: int


@dataclass
class PaymentSplit:
    total_amount: int
    upfront_amount: int
    balance_amount: int
    gateway_fee: int
    system_commission: int
    driver_earning: int
    balance_due_date: datetime
    reminder_dates: Dict[str, datetime] = field(default_factory=dict)


def compute_increment(amount: int) -> PaymentIncrement:
    """Fee/commission/earning attributable to one applied payment."""
    gateway_fee = _ceil_share(amount, GATEWAY_FEE_BASIS_POINTS, 10000)
    # tiny amounts: the fees never take more than the amount itself
    gateway_fee = min(gateway_fee, amount)
    system_commission = min(_ceil_share(amount, SYSTEM_COMMISSION_PERCENTAGE, 100), amount - gateway_fee)
    return PaymentIncrement(
        amount=amount,
        gateway_fee=gateway_fee,
        system_commission=system_commission,
        driver_earning=amount - gateway_fee - system_commission,
    )


def required_upfront(total_amount: int) -> int:
    return _ceil_share(total_amount, UPFRONT_PERCENTAGE, 100)


def balance_due_date_for(booking_end_date: datetime) -> datetime:
    return booking_end_date - timedelta(days=BALANCE_DUE_DAYS_BEFORE_END)


def compute_split(total_amount: int, booking_end_date: datetime) -> PaymentSplit:
    if total_amount is None or total_amount <= 0:
        raise InsufficientAmount("Total amount must be greater than zero")

    upfront_amount = required_upfront(total_amount)
    increment = compute_increment(total_amount)
    due_date = balance_due_date_for(booking_end_date)

    return PaymentSplit(
        total_amount=total_amount,
        upfront_amount=upfront_amount,
        balance_amount=total_amount - upfront_amount,
        gateway_fee=increment.gateway_fee,
        system_commission=increment.system_commission,
        driver_earning=increment.driver_earning,
        balance_due_date=due_date,
        reminder_dates={
            name: due_date - timedelta(days=days)
            for name, days in REMINDER_OFFSETS_DAYS.items()
        },
    )
