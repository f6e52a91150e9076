import uuid
from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sharelink.core.timeutils import utcnow
from sharelink.db.session import Base

def _id32() -> str:
    return uuid.uuid4().hex

class PaymentGateway:
    RAZORPAY = "razorpay"
    STRIPE = "stripe"

class PaymentStatus:
    CREATED = "created"
    SUCCESSFUL = "successful"
    FAILED = "failed"

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(32), primary_key=True, default=_id32)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    file_id = Column(String(32), ForeignKey("files.id", ondelete="SET NULL"), nullable=True, index=True)
    gateway = Column(String(20), nullable=False)
    gateway_payment_id = Column(String(255), nullable=True, index=True)
    gateway_order_id = Column(String(255), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.CREATED, index=True)
    pricing_tier_id = Column(String(32), ForeignKey("pricing_tiers.id"), nullable=False)

    created_at = Column(DateTime, default=utcnow)
    completed_at = Column(DateTime, nullable=True)

    pricing_tier = relationship("PricingTier")
