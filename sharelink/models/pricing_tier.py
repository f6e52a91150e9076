import uuid
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Index, text
from sharelink.core.timeutils import utcnow
from sharelink.db.session import Base

def _id32() -> str:
    return uuid.uuid4().hex

class PricingTier(Base):
    __tablename__ = "pricing_tiers"

    id = Column(String(32), primary_key=True, default=_id32)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=False)
    file_size_limit = Column(Float, nullable=False)  # GB
    validity_in_hours = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)  # whole currency units
    currency_code = Column(String(3), nullable=False, default="INR")
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # At most one default (free) tier
        Index(
            "uq_pricing_tiers_default",
            "is_default",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    @property
    def is_free(self) -> bool:
        return not self.price
