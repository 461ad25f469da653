"""
Payment gateway boundary.

Checkout only talks to the ``PaymentGateway`` protocol. The production
implementation captures a Razorpay payment: the client-side checkout widget
authorizes a payment and hands us its id, which is the opaque ``source``
here; capturing it for the server-computed amount is the charge. Capturing
the same payment id twice is rejected by Razorpay, which makes the charge
itself idempotent per source.
"""

from dataclasses import dataclass
from typing import Protocol
import razorpay
import requests
from core.config import Settings
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChargeReceipt:
    id: str
    settled_amount: int


class ChargeDeclined(Exception):
    """The gateway definitely did not take the money."""


class ChargeTimeout(Exception):
    """No answer in time: the charge may or may not have gone through."""


class PaymentGateway(Protocol):

    def charge(self, amount: int, currency: str, source: str) -> ChargeReceipt:
        """Charge ``amount`` minor units. Raises ChargeDeclined or ChargeTimeout."""
        ...

    def fetch_charge(self, source: str) -> ChargeReceipt | None:
        """Return the receipt if ``source`` was captured, else None."""
        ...


class RazorpayGateway:

    def __init__(self, settings: Settings, client: razorpay.Client = None):
        self.client = client or razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )
        self.timeout = settings.PAYMENT_TIMEOUT_SECONDS

    def charge(self, amount: int, currency: str, source: str) -> ChargeReceipt:
        try:
            payment = self.client.payment.capture(
                source, amount, {"currency": currency}, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ChargeTimeout(str(e)) from e
        except (razorpay.errors.BadRequestError,
                razorpay.errors.GatewayError,
                razorpay.errors.ServerError,
                requests.exceptions.RequestException) as e:
            logger.warning(
                "Razorpay capture failed",
                extra={"error": str(e), "error_type": type(e).__name__}
            )
            raise ChargeDeclined(str(e)) from e

        if payment.get("status") != "captured":
            raise ChargeDeclined(f"Payment status is {payment.get('status')}")

        return ChargeReceipt(id=payment["id"], settled_amount=int(payment["amount"]))

    def fetch_charge(self, source: str) -> ChargeReceipt | None:
        try:
            payment = self.client.payment.fetch(source, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise ChargeTimeout(str(e)) from e
        except razorpay.errors.BadRequestError as e:
            # Unknown payment id: nothing was captured under it
            logger.warning("Razorpay fetch failed", extra={"error": str(e)})
            return None

        if payment.get("status") != "captured":
            return None

        return ChargeReceipt(id=payment["id"], settled_amount=int(payment["amount"]))
