"""Payment orchestration for the two gateways.

Razorpay completes through a checkout signature the client posts back.
Stripe completes through a signed webhook, or through a status poll when
the webhook is late. All three paths end in ``_complete``, a conditional
``created -> successful`` update: only the caller whose UPDATE matched
applies the tier to the file.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from sharelink.core.config import settings
from sharelink.core.errors import InvalidSignatureError, NotFoundError, ValidationError
from sharelink.core.timeutils import utcnow
from sharelink.models.file import File
from sharelink.models.payment import Payment, PaymentGateway, PaymentStatus
from sharelink.models.pricing_tier import PricingTier
from sharelink.network.razorpay_gateway import RazorpayGateway
from sharelink.network.stripe_gateway import StripeGateway
from sharelink.services.files import FileManager
from sharelink.services.pricing import PricingRegistry

logger = logging.getLogger(__name__)

STRIPE_SUCCEEDED = "payment_intent.succeeded"
STRIPE_FAILED = "payment_intent.payment_failed"


@dataclass
class PaymentResult:
    payment: Payment
    tier: PricingTier
    file: Optional[File] = None
    # True only for the call that moved the payment out of `created`
    applied: bool = False

    @property
    def transaction_id(self) -> str:
        return self.payment.gateway_payment_id or self.payment.id


def stripe_charge(price: float, tier_currency: str, requested: Optional[str] = None) -> Tuple[float, str]:
    """Amount and currency of a Stripe charge.

    The tier's own price and currency are used, except that an INR tier is
    charged in USD when USD is requested: a fixed divisor, rounded up to a
    whole dollar. Any other requested currency is ignored.
    """
    tier_currency = tier_currency.upper()
    if tier_currency == "INR" and (requested or "").upper() == "USD":
        return float(math.ceil(price / settings.INR_PER_USD)), "USD"
    return price, tier_currency


class PaymentOrchestrator:
    def __init__(self, db: Session, files: FileManager,
                 razorpay: RazorpayGateway, stripe: StripeGateway,
                 pricing: Optional[PricingRegistry] = None):
        self.db = db
        self.files = files
        self.razorpay = razorpay
        self.stripe = stripe
        self.pricing = pricing or PricingRegistry(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_payment(self, payment_id: str) -> Payment:
        payment = self.db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

    def _purchasable(self, file_id: str, pricing_tier_id: str) -> Tuple[File, PricingTier]:
        file = self.files.get_live(file_id)
        tier = self.pricing.get_active_tier(pricing_tier_id)
        if tier.is_free:
            raise ValidationError("The free tier cannot be purchased")
        return file, tier

    def _result(self, payment: Payment, applied: bool = False, file: Optional[File] = None) -> PaymentResult:
        if file is None and payment.file_id:
            file = self.db.get(File, payment.file_id)
        return PaymentResult(payment=payment, tier=payment.pricing_tier, file=file, applied=applied)

    def _transition(self, payment: Payment, status: str, now: datetime, **values) -> bool:
        """Move `payment` out of `created`. Returns False if another caller got there first."""
        result = self.db.execute(
            update(Payment)
            .where(Payment.id == payment.id, Payment.status == PaymentStatus.CREATED)
            .values(status=status, completed_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(payment)
        return result.rowcount == 1

    def _complete(self, payment: Payment, gateway_payment_id: Optional[str] = None) -> PaymentResult:
        now = utcnow()
        values = {"gateway_payment_id": gateway_payment_id} if gateway_payment_id else {}
        if not self._transition(payment, PaymentStatus.SUCCESSFUL, now, **values):
            logger.info("Payment %s already %s, nothing to apply", payment.id, payment.status)
            return self._result(payment)

        file = self.files.apply_tier(payment.file_id, payment.pricing_tier, payment.id, now)
        logger.info("Payment %s successful via %s", payment.id, payment.gateway)
        return self._result(payment, applied=True, file=file)

    def _fail(self, payment: Payment) -> PaymentResult:
        if self._transition(payment, PaymentStatus.FAILED, utcnow()):
            logger.info("Payment %s marked failed", payment.id)
        return self._result(payment)

    # ------------------------------------------------------------------
    # Razorpay
    # ------------------------------------------------------------------

    def init_razorpay(self, file_id: str, pricing_tier_id: str) -> Tuple[Payment, dict]:
        file, tier = self._purchasable(file_id, pricing_tier_id)
        order = self.razorpay.create_order(tier.price, tier.currency_code, receipt=f"File-{file.id}")

        payment = Payment(
            amount=tier.price,
            currency=tier.currency_code,
            file_id=file.id,
            gateway=PaymentGateway.RAZORPAY,
            gateway_order_id=order["id"],
            status=PaymentStatus.CREATED,
            pricing_tier_id=tier.id,
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info("Razorpay order %s created for file %s (payment %s)", order["id"], file.id, payment.id)
        return payment, order

    def verify_razorpay(self, payment_id: str, razorpay_payment_id: str,
                        razorpay_order_id: str, razorpay_signature: str) -> PaymentResult:
        payment = self.get_payment(payment_id)
        if payment.gateway != PaymentGateway.RAZORPAY:
            raise ValidationError("Payment was not made through Razorpay")
        if payment.gateway_order_id != razorpay_order_id:
            raise InvalidSignatureError("Order does not match this payment")
        if not self.razorpay.verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature):
            logger.warning("Bad Razorpay signature for payment %s", payment.id)
            raise InvalidSignatureError("Invalid payment signature")
        return self._complete(payment, gateway_payment_id=razorpay_payment_id)

    # ------------------------------------------------------------------
    # Stripe
    # ------------------------------------------------------------------

    def init_stripe(self, file_id: str, pricing_tier_id: str,
                    currency: Optional[str] = None) -> Tuple[Payment, object]:
        file, tier = self._purchasable(file_id, pricing_tier_id)
        amount, currency = stripe_charge(tier.price, tier.currency_code, currency)

        payment = Payment(
            amount=amount,
            currency=currency,
            file_id=file.id,
            gateway=PaymentGateway.STRIPE,
            status=PaymentStatus.CREATED,
            pricing_tier_id=tier.id,
        )
        self.db.add(payment)
        self.db.flush()

        try:
            intent = self.stripe.create_payment_intent(
                amount,
                currency,
                metadata={"fileId": file.id, "pricingTierId": tier.id, "paymentId": payment.id},
            )
        except Exception:
            self.db.rollback()
            raise

        payment.gateway_payment_id = intent["id"]
        self.db.commit()
        self.db.refresh(payment)
        logger.info("Stripe intent %s created for file %s (payment %s)", intent["id"], file.id, payment.id)
        return payment, intent

    def _find_stripe_payment(self, intent_id: str) -> Optional[Payment]:
        return (
            self.db.query(Payment)
            .filter(Payment.gateway == PaymentGateway.STRIPE, Payment.gateway_payment_id == intent_id)
            .first()
        )

    def handle_stripe_webhook(self, payload: bytes, signature_header: Optional[str]) -> Optional[PaymentResult]:
        """Returns None for events that do not concern a known payment."""
        event = self.stripe.construct_event(payload, signature_header)
        event_type = event["type"]
        if event_type not in (STRIPE_SUCCEEDED, STRIPE_FAILED):
            logger.debug("Ignoring Stripe event %s", event_type)
            return None

        intent = event["data"]["object"]
        payment = self._find_stripe_payment(intent["id"])
        if payment is None:
            logger.warning("Stripe event %s for unknown intent %s", event_type, intent["id"])
            return None

        if event_type == STRIPE_SUCCEEDED:
            return self._complete(payment)
        return self._fail(payment)

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def check_status(self, payment_id: str) -> PaymentResult:
        payment = self.get_payment(payment_id)
        if (payment.status == PaymentStatus.CREATED
                and payment.gateway == PaymentGateway.STRIPE
                and payment.gateway_payment_id):
            intent = self.stripe.retrieve_payment_intent(payment.gateway_payment_id)
            if intent["status"] == "succeeded":
                return self._complete(payment)
            if intent["status"] == "canceled":
                return self._fail(payment)
        return self._result(payment)
