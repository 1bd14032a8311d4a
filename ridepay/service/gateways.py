"""Simulated payment gateway and payout rail.

Real gateway integration is out of scope; these stand in for the remote
calls and keep the same result shapes a real integration would return.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ChargeResult:
    success: bool
    transaction_id: Optional[str]
    message: str


@dataclass
class TransferResult:
    success: bool
    reference: Optional[str] = None
    error_message: Optional[str] = None


class SimulatedPaymentGateway:
    def charge(self, amount, customer_info):
        customer_info = customer_info or {}
        if amount <= 0:
            return ChargeResult(False, None, "Invalid payment amount")
        if not customer_info.get("email") and not customer_info.get("phone"):
            return ChargeResult(False, None, "Customer contact details are required")

        transaction_id = f"TXN_{uuid.uuid4().hex[:16].upper()}"
        logger.info(f"Simulated charge of {amount} for {customer_info.get('email') or customer_info.get('phone')}: {transaction_id}")
        return ChargeResult(True, transaction_id, "Payment processed successfully")


class SimulatedPayoutRail:
    def transfer(self, driver_id, amount):
        if amount <= 0:
            return TransferResult(False, error_message="Transfer amount must be positive")
        reference = f"PO_{uuid.uuid4().hex[:16].upper()}"
        logger.info(f"Simulated transfer of {amount} to driver {driver_id}: {reference}")
        return TransferResult(True, reference=reference)
