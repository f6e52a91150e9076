import logging
from typing import Dict, Optional, Union

import stripe

from sharelink.core.errors import InvalidSignatureError, UpstreamError

logger = logging.getLogger(__name__)


class StripeGateway:
    """PaymentIntent creation, polling and webhook signature checks."""

    def __init__(self, secret_key: str, public_key: str, webhook_secret: str):
        self._secret_key = secret_key
        self.public_key = public_key
        self._webhook_secret = webhook_secret

    def create_payment_intent(self, amount: float, currency: str = "USD",
                              metadata: Optional[Dict[str, str]] = None):
        """`amount` is in whole currency units; Stripe wants the smallest unit."""
        try:
            return stripe.PaymentIntent.create(
                amount=int(round(amount * 100)),
                currency=currency.lower(),
                metadata=metadata or {},
                automatic_payment_methods={"enabled": True},
                api_key=self._secret_key,
            )
        except stripe.StripeError as exc:
            logger.exception("Stripe PaymentIntent creation failed")
            raise UpstreamError("Error creating payment intent") from exc

    def retrieve_payment_intent(self, payment_intent_id: str):
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self._secret_key)
        except stripe.StripeError as exc:
            logger.exception("Stripe PaymentIntent lookup failed for %s", payment_intent_id)
            raise UpstreamError("Error checking payment status") from exc

    def construct_event(self, payload: Union[bytes, str], signature_header: Optional[str]):
        """Verify the signature over the exact raw request body and parse the event."""
        if not signature_header:
            raise InvalidSignatureError("Missing Stripe signature")
        try:
            return stripe.Webhook.construct_event(payload, signature_header, self._webhook_secret)
        except ValueError as exc:
            raise InvalidSignatureError("Invalid webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            logger.warning("Rejected Stripe webhook: %s", exc)
            raise InvalidSignatureError("Invalid webhook signature") from exc
