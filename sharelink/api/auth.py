from datetime import timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from sharelink.api.deps import get_current_user, get_mailer
from sharelink.core.config import settings
from sharelink.core.security import create_user_token
from sharelink.core.timeutils import utcnow
from sharelink.db.session import get_db
from sharelink.models.user import User
from sharelink.network.email_service import EmailService
from sharelink.schemas.common import StandardResponse
from sharelink.schemas.user import PasswordChange, ProfileUpdate, Token, UserLogin, UserOut, UserRegister
from sharelink.services import users

router = APIRouter()


def _token_for(user: User) -> Token:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expires_at = (utcnow() + expires_delta).replace(microsecond=0).isoformat() + "Z"
    return Token(
        access_token=create_user_token(user),
        token_type="bearer",
        expires_in=int(expires_delta.total_seconds()),
        expires_at=expires_at,
        user=UserOut.model_validate(user),
    )


@router.post("/register", response_model=StandardResponse[Token], status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: EmailService = Depends(get_mailer),
):
    """
    Create an account and log it in.
    """
    user = users.register(db, user_data.name, user_data.email, user_data.password)
    background_tasks.add_task(mailer.send_welcome, user.email, user.name)
    return StandardResponse(success=True, message="Registration successful", data=_token_for(user))


@router.post("/login", response_model=StandardResponse[Token])
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Exchange email + password for a JWT.
    """
    user = users.authenticate(db, credentials.email, credentials.password)
    return StandardResponse(success=True, message="Login successful", data=_token_for(user))


@router.get("/me", response_model=StandardResponse[UserOut])
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return StandardResponse(success=True, message="User info", data=current_user)


@router.post("/logout", response_model=StandardResponse)
def logout(current_user: User = Depends(get_current_user)):
    """
    Tokens are stateless; the client drops its copy.
    """
    return StandardResponse(success=True, message=f"Logged out. Goodbye {current_user.name}!", data=None)


@router.put("/profile", response_model=StandardResponse[UserOut])
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = users.update_profile(db, current_user, name=payload.name, email=payload.email)
    return StandardResponse(success=True, message="Profile updated", data=user)


@router.put("/change-password", response_model=StandardResponse)
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    users.change_password(db, current_user, payload.current_password, payload.new_password)
    return StandardResponse(success=True, message="Password changed", data=None)
