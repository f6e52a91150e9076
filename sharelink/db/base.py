# Import every model so Base.metadata knows all tables before create_all
from sharelink.db.session import Base  # noqa: F401
from sharelink.models.user import User  # noqa: F401
from sharelink.models.pricing_tier import PricingTier  # noqa: F401
from sharelink.models.file import File  # noqa: F401
from sharelink.models.payment import Payment  # noqa: F401
