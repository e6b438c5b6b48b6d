"""
Payment gateway integration.

Only order creation on the gateway side is used: the storefront asks the
gateway for a payment order, the browser completes payment, and the returned
identifiers are stored on our Order as razorpay_order_id/razorpay_payment_id.
Payment signatures are not verified here.
"""
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

import structlog

from errors import ServerError

logger = structlog.get_logger(__name__)

RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")


@dataclass(frozen=True)
class PaymentOrder:
    id: str
    amount: int
    currency: str


class PaymentGateway(ABC):
    @abstractmethod
    def create_order(self, amount: int, currency: str, receipt: Optional[str]) -> PaymentOrder:
        """Create a gateway-side order. `amount` is in minor currency units (paise for INR)."""
        ...


class RazorpayGateway(PaymentGateway):
    def __init__(self, key_id: str, key_secret: str) -> None:
        import razorpay
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(self, amount: int, currency: str, receipt: Optional[str]) -> PaymentOrder:
        options = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            order = self.client.order.create(data=options)
        except Exception as e:
            logger.error("Razorpay order creation failed", receipt=receipt, error=str(e))
            raise ServerError(f"Failed to create Razorpay order: {e}")
        return PaymentOrder(id=order["id"], amount=order["amount"], currency=order["currency"])


class FakeGateway(PaymentGateway):
    """In-process gateway for development and tests. Records every call."""

    def __init__(self) -> None:
        self.should_succeed = True
        self.calls: list = []

    def create_order(self, amount: int, currency: str, receipt: Optional[str]) -> PaymentOrder:
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt})
        if not self.should_succeed:
            raise ServerError("Failed to create Razorpay order: gateway unavailable")
        return PaymentOrder(id=f"order_fake_{uuid4().hex[:14]}", amount=amount, currency=currency)


_current_gateway: Optional[PaymentGateway] = None


def get_gateway() -> PaymentGateway:
    """Return the active gateway: Razorpay when keys are configured, otherwise the fake."""
    global _current_gateway
    if _current_gateway is None:
        if RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET:
            _current_gateway = RazorpayGateway(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET)
        else:
            logger.warning("Razorpay keys not set, using fake payment gateway")
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: Optional[PaymentGateway]) -> None:
    global _current_gateway
    _current_gateway = gateway
