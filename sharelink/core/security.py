import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt, ExpiredSignatureError
from passlib.context import CryptContext
from sharelink.core.config import settings

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create a signed JWT.

    - `sub` is always a string for portability
    - `exp` is a numeric UNIX timestamp to avoid datetime encoding issues
    """
    to_encode = data.copy()
    if expires_delta:
        expire_dt = datetime.now(timezone.utc) + expires_delta
    else:
        expire_dt = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    to_encode.update({"exp": int(expire_dt.timestamp())})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def create_user_token(user) -> str:
    """Token carrying user id, email and admin flag."""
    return create_access_token(
        data={"sub": user.id, "email": user.email, "is_admin": bool(user.is_admin)}
    )

def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT. Returns the payload, or None on any failure."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_exp": True, "leeway": 60},
        )
        return payload
    except ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except JWTError:
        logger.info("Rejected invalid token")
        return None
