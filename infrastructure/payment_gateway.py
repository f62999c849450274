"""Payment gateway adapters"""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from domain.exceptions import ExternalServiceError
from domain.interfaces import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass
class RazorpayConfig:
    key_id: str
    key_secret: str
    api_url: str = "https://api.razorpay.com/v1"
    timeout: int = 25


class RazorpayGateway(PaymentGateway):
    """Razorpay Orders API over REST, checkout signatures checked locally"""

    def __init__(self, cfg: RazorpayConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.session = session or requests.Session()

    def _ensure_configured(self) -> None:
        if not self.cfg.key_id.strip() or not self.cfg.key_secret.strip():
            raise ExternalServiceError(
                "Payment gateway configuration is missing. Please add key id and secret."
            )

    def create_order(self, amount_minor: int, currency: str, receipt: str, notes: Optional[dict] = None) -> dict:
        self._ensure_configured()
        body = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
            "notes": notes or {},
        }
        url = self.cfg.api_url.rstrip("/") + "/orders"
        try:
            resp = self.session.post(
                url,
                json=body,
                auth=(self.cfg.key_id, self.cfg.key_secret),
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as e:
            logger.error("Payment gateway unreachable: %s", e)
            raise ExternalServiceError(
                "Unable to create payment order at the moment. Please try again."
            ) from e

        if resp.status_code >= 300:
            logger.error("Payment gateway rejected order %s: HTTP %s %s", receipt, resp.status_code, resp.text[:500])
            raise ExternalServiceError(
                "Unable to create payment order at the moment. Please try again."
            )

        order = resp.json()
        logger.info("Gateway order created: %s", order.get("id"))
        return order

    def expected_signature(self, order_id: str, payment_id: str) -> str:
        msg = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.cfg.key_secret.encode("utf-8"), msg, hashlib.sha256).hexdigest()

    def verify_payment(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        self._ensure_configured()
        logger.info("Verifying payment - order: %s, payment: %s", order_id, payment_id)
        if not signature or not signature.strip():
            return False
        return hmac.compare_digest(self.expected_signature(order_id, payment_id), signature.strip())


class SandboxGateway(PaymentGateway):
    """Offline gateway for local runs and tests.

    Orders are echoed back; any non-blank signature verifies except the
    ones listed in ``declined_signatures``.
    """

    def __init__(self, declined_signatures=("declined",)):
        self.declined_signatures = set(declined_signatures)
        self.orders = {}

    def create_order(self, amount_minor: int, currency: str, receipt: str, notes: Optional[dict] = None) -> dict:
        order = {
            "id": f"order_{receipt}",
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
            "notes": notes or {},
        }
        self.orders[order["id"]] = order
        return order

    def verify_payment(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        if not signature or not signature.strip():
            return False
        return signature not in self.declined_signatures


def build_gateway(settings) -> PaymentGateway:
    """Pick the gateway adapter named in settings"""
    if settings.PAYMENT_GATEWAY == "razorpay":
        return RazorpayGateway(RazorpayConfig(
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            api_url=settings.RAZORPAY_API_URL,
            timeout=settings.GATEWAY_TIMEOUT,
        ))
    return SandboxGateway()
