from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Query, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from sharelink.api.deps import get_current_user, get_mailer, get_payment_orchestrator
from sharelink.db.session import get_db
from sharelink.models.user import User
from sharelink.network.email_service import EmailService
from sharelink.schemas.common import StandardResponse
from sharelink.schemas.payment import (
    InitPaymentRequest,
    PaymentStatusOut,
    PaymentVerifyOut,
    PricingTierOut,
    RazorpayInitOut,
    RazorpayVerifyRequest,
    StripeInitOut,
)
from sharelink.services.payments import PaymentOrchestrator, PaymentResult
from sharelink.services.pricing import PricingRegistry

router = APIRouter()


def _notify(background_tasks: BackgroundTasks, mailer: EmailService, result: Optional[PaymentResult]):
    """Confirmation mail goes out once, from the call that applied the tier."""
    if result is None or not result.applied or result.file is None or not result.file.email:
        return
    background_tasks.add_task(
        mailer.send_payment_confirmation,
        result.file.email,
        result.payment.amount,
        result.payment.currency,
        result.tier.name,
        result.transaction_id,
    )


def _status_out(result: PaymentResult) -> PaymentStatusOut:
    payment = result.payment
    return PaymentStatusOut(
        payment_id=payment.id,
        status=payment.status,
        amount=payment.amount,
        currency=payment.currency,
        file_id=payment.file_id,
        gateway=payment.gateway,
    )


@router.get("/pricing-tiers", response_model=StandardResponse[List[PricingTierOut]])
def list_pricing_tiers(
    include_free: bool = Query(False, alias="includeFree"),
    db: Session = Depends(get_db),
):
    tiers = PricingRegistry(db).list_active_tiers(include_free=include_free)
    return StandardResponse(success=True, message="Pricing tiers", data=tiers)

# ============================================================================
# Razorpay: order -> checkout in the browser -> signature verification
# ============================================================================

@router.post("/razorpay/init", response_model=StandardResponse[RazorpayInitOut])
def init_razorpay_payment(
    payload: InitPaymentRequest,
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator),
    _: User = Depends(get_current_user),
):
    payment, order = payments.init_razorpay(payload.file_id, payload.pricing_tier_id)
    return StandardResponse(
        success=True,
        message="Payment order created",
        data=RazorpayInitOut(
            payment_id=payment.id,
            order_id=order["id"],
            amount=payment.amount,
            currency=payment.currency,
            key_id=payments.razorpay.key_id,
        ),
    )


@router.post("/razorpay/verify", response_model=StandardResponse[PaymentVerifyOut])
def verify_razorpay_payment(
    payload: RazorpayVerifyRequest,
    background_tasks: BackgroundTasks,
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator),
    mailer: EmailService = Depends(get_mailer),
    _: User = Depends(get_current_user),
):
    result = payments.verify_razorpay(
        payload.payment_id,
        payload.razorpay_payment_id,
        payload.razorpay_order_id,
        payload.razorpay_signature,
    )
    _notify(background_tasks, mailer, result)
    return StandardResponse(
        success=True,
        message="Payment verified" if result.applied else f"Payment already {result.payment.status}",
        data=PaymentVerifyOut(
            payment_id=result.payment.id,
            file_id=result.payment.file_id,
            status=result.payment.status,
        ),
    )

# ============================================================================
# Stripe: PaymentIntent -> webhook (or status poll)
# ============================================================================

@router.post("/stripe/init", response_model=StandardResponse[StripeInitOut])
def init_stripe_payment(
    payload: InitPaymentRequest,
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator),
    _: User = Depends(get_current_user),
):
    payment, intent = payments.init_stripe(payload.file_id, payload.pricing_tier_id, payload.currency)
    return StandardResponse(
        success=True,
        message="Payment intent created",
        data=StripeInitOut(
            payment_id=payment.id,
            client_secret=intent["client_secret"],
            public_key=payments.stripe.public_key,
            amount=payment.amount,
            currency=payment.currency,
        ),
    )


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: Optional[str] = Header(None),
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator),
    mailer: EmailService = Depends(get_mailer),
):
    """Gateway callback. The signature covers the raw body, so it is read unparsed."""
    payload = await request.body()
    result = await run_in_threadpool(payments.handle_stripe_webhook, payload, stripe_signature)
    _notify(background_tasks, mailer, result)
    return {"received": True}


@router.get("/{payment_id}/status", response_model=StandardResponse[PaymentStatusOut])
def get_payment_status(
    payment_id: str,
    background_tasks: BackgroundTasks,
    payments: PaymentOrchestrator = Depends(get_payment_orchestrator),
    mailer: EmailService = Depends(get_mailer),
    _: User = Depends(get_current_user),
):
    result = payments.check_status(payment_id)
    _notify(background_tasks, mailer, result)
    return StandardResponse(success=True, message="Payment status", data=_status_out(result))
