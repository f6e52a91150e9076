from pydantic import Field
from typing import Optional
from sharelink.schemas.common import CamelModel, CamelORMModel

class PricingTierOut(CamelORMModel):
    id: str
    name: str
    description: str
    file_size_limit: float
    validity_in_hours: int
    price: float
    currency_code: str
    is_default: bool

class InitPaymentRequest(CamelModel):
    file_id: str
    pricing_tier_id: str
    currency: Optional[str] = Field(None, min_length=3, max_length=3)

class RazorpayInitOut(CamelModel):
    payment_id: str
    order_id: str
    amount: float
    currency: str
    key_id: str

class StripeInitOut(CamelModel):
    payment_id: str
    client_secret: str
    public_key: str
    amount: float
    currency: str

class RazorpayVerifyRequest(CamelModel):
    payment_id: str
    razorpay_payment_id: str
    razorpay_order_id: str
    razorpay_signature: str

class PaymentVerifyOut(CamelModel):
    payment_id: str
    file_id: Optional[str] = None
    status: str

class PaymentStatusOut(CamelModel):
    payment_id: str
    status: str
    amount: float
    currency: str
    file_id: Optional[str] = None
    gateway: str
