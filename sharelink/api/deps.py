from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from sharelink.core.config import settings
from sharelink.core.errors import ForbiddenError, UnauthorizedError
from sharelink.core.security import decode_token
from sharelink.db.session import get_db
from sharelink.models.user import User
from sharelink.network.email_service import EmailService
from sharelink.network.razorpay_gateway import RazorpayGateway
from sharelink.network.storage import S3Storage
from sharelink.network.stripe_gateway import StripeGateway
from sharelink.services.files import FileManager
from sharelink.services.payments import PaymentOrchestrator

# Bearer token from the Authorization header. Missing tokens are handled
# below so optional-auth routes can share the scheme.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


# =================================================================
# External clients (one instance per process, overridable in tests)
# =================================================================

@lru_cache
def get_storage() -> S3Storage:
    return S3Storage(
        bucket=settings.S3_BUCKET_NAME,
        region=settings.AWS_REGION,
        access_key_id=settings.AWS_ACCESS_KEY_ID,
        secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


@lru_cache
def get_razorpay() -> RazorpayGateway:
    return RazorpayGateway(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)


@lru_cache
def get_stripe() -> StripeGateway:
    return StripeGateway(
        settings.STRIPE_SECRET_KEY,
        settings.STRIPE_PUBLIC_KEY,
        settings.STRIPE_WEBHOOK_SECRET,
    )


@lru_cache
def get_mailer() -> EmailService:
    return EmailService(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        sender=settings.SMTP_FROM,
        app_name=settings.PROJECT_NAME,
        enabled=settings.SEND_NOTIFICATIONS,
    )


# =================================================================
# Services
# =================================================================

def get_file_manager(
    db: Session = Depends(get_db),
    storage: S3Storage = Depends(get_storage),
) -> FileManager:
    return FileManager(db, storage)


def get_payment_orchestrator(
    db: Session = Depends(get_db),
    files: FileManager = Depends(get_file_manager),
    razorpay: RazorpayGateway = Depends(get_razorpay),
    stripe: StripeGateway = Depends(get_stripe),
) -> PaymentOrchestrator:
    return PaymentOrchestrator(db, files, razorpay, stripe)


# =================================================================
# Authentication
# =================================================================

def _user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    if payload is None:
        raise UnauthorizedError("Unauthorized - Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Unauthorized - Invalid token")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Unauthorized - User not found")
    return user


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Required authentication for private routes."""
    if not token:
        raise UnauthorizedError("Unauthorized - No token provided")
    return _user_from_token(token, db)


def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Attach the caller when a valid token is sent; never fail the request."""
    if not token:
        return None
    try:
        return _user_from_token(token, db)
    except UnauthorizedError:
        return None


def get_current_admin_user(
    current_user: User = Depends(get_current_user),
    x_admin_api_key: Optional[str] = Header(None),
) -> User:
    if not current_user.is_admin:
        raise ForbiddenError("Forbidden - Admin access required")
    if settings.ADMIN_API_KEY and x_admin_api_key != settings.ADMIN_API_KEY:
        raise UnauthorizedError("Unauthorized - Invalid admin API key")
    return current_user
