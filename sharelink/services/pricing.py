from typing import List, Optional

from sqlalchemy.orm import Session

from sharelink.core.config import settings
from sharelink.core.errors import NotFoundError
from sharelink.models.pricing_tier import PricingTier


class FreeEntitlement:
    """Size limit and validity applied to a new upload before any payment."""

    def __init__(self, max_size: float, validity_hours: int):
        self.max_size = max_size
        self.validity_hours = validity_hours


class PricingRegistry:
    """Read-only view over the pricing tier catalog."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_tiers(self, include_free: bool = True) -> List[PricingTier]:
        query = self.db.query(PricingTier).filter(PricingTier.is_active.is_(True))
        if not include_free:
            query = query.filter(PricingTier.price > 0)
        return query.order_by(PricingTier.price.asc(), PricingTier.name.asc()).all()

    def get_active_tier(self, tier_id: str) -> PricingTier:
        tier = self.db.get(PricingTier, tier_id)
        if tier is None or not tier.is_active:
            raise NotFoundError("Invalid or inactive pricing tier")
        return tier

    def get_default_tier(self) -> Optional[PricingTier]:
        return (
            self.db.query(PricingTier)
            .filter(PricingTier.is_default.is_(True), PricingTier.is_active.is_(True))
            .first()
        )

    def free_entitlement(self) -> FreeEntitlement:
        """The default tier when one is seeded, otherwise the configured defaults."""
        tier = self.get_default_tier()
        if tier is not None:
            return FreeEntitlement(tier.file_size_limit, tier.validity_in_hours)
        return FreeEntitlement(settings.DEFAULT_FILE_SIZE_LIMIT, settings.DEFAULT_FILE_VALIDITY_HOURS)
