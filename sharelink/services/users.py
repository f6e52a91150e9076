import logging
from typing import Optional

from sqlalchemy.orm import Session

from sharelink.core.errors import ConflictError, UnauthorizedError, ValidationError
from sharelink.core.security import get_password_hash, verify_password
from sharelink.models.user import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register(db: Session, name: str, email: str, password: str, is_admin: bool = False) -> User:
    if get_by_email(db, email) is not None:
        raise ConflictError("User with this email already exists")

    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=get_password_hash(password),
        is_admin=is_admin,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s registered", user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Same error for an unknown email and a wrong password."""
    user = get_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid email or password")
    return user


def update_profile(db: Session, user: User, name: Optional[str] = None,
                   email: Optional[str] = None) -> User:
    name = name.strip() if name else None
    if not name and not email:
        raise ValidationError("Nothing to update")

    if email:
        email = normalize_email(email)
        if email != user.email:
            other = get_by_email(db, email)
            if other is not None and other.id != user.id:
                raise ConflictError("Email is already in use")
            user.email = email
    if name:
        user.name = name

    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise UnauthorizedError("Current password is incorrect")
    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("Password changed for user %s", user.id)
