from pydantic import EmailStr, Field, field_validator
from typing import Optional
from sharelink.schemas.common import CamelModel, CamelORMModel, UTCDateTime

# Request bodies
class UserRegister(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

class UserLogin(CamelModel):
    email: EmailStr
    password: str

class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None

class PasswordChange(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

# Response (never carries the password)
class UserOut(CamelORMModel):
    id: int
    name: str
    email: EmailStr
    is_admin: bool
    created_at: UTCDateTime

# Token response
class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    expires_at: Optional[str] = None
    user: Optional[UserOut] = None
