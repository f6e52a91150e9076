import hashlib
import hmac
import logging

import requests

from sharelink.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """Order creation plus client-side checkout signature checks.

    Razorpay confirms a payment by handing the browser a signature that
    must equal HMAC-SHA256(key_secret, "<order_id>|<payment_id>").
    """

    def __init__(self, key_id: str, key_secret: str, client=None):
        self.key_id = key_id
        self._key_secret = key_secret
        self._client = client

    @property
    def client(self):
        if self._client is None:
            import razorpay

            self._client = razorpay.Client(auth=(self.key_id, self._key_secret))
        return self._client

    def create_order(self, amount: float, currency: str = "INR", receipt: str = "") -> dict:
        """Create an auto-captured order. `amount` is in whole currency units."""
        import razorpay.errors

        data = {
            "amount": int(round(amount * 100)),  # paise
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        try:
            return self.client.order.create(data=data)
        except (razorpay.errors.BadRequestError, razorpay.errors.ServerError,
                razorpay.errors.GatewayError, requests.RequestException) as exc:
            logger.exception("Razorpay order creation failed (receipt=%s)", receipt)
            raise UpstreamError("Error creating payment order") from exc

    def compute_signature(self, order_id: str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode()
        return hmac.new(self._key_secret.encode(), message, hashlib.sha256).hexdigest()

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = self.compute_signature(order_id, payment_id)
        return hmac.compare_digest(expected, signature or "")
