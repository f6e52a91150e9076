from pydantic import EmailStr, Field, field_validator
from typing import List, Optional
from sharelink.schemas.common import CamelModel, UTCDateTime

# =================================================================
# Input schemas
# =================================================================

class UploadSlotRequest(CamelModel):
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[float] = None

class ConfirmUploadRequest(CamelModel):
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

# Manual attribute update. Omitted fields stay untouched, see FilePatch.
class FileUpdate(CamelModel):
    max_size: Optional[float] = Field(None, gt=0)
    validity_hours: Optional[int] = Field(None, gt=0)
    is_premium: Optional[bool] = None
    payment_id: Optional[str] = None

# =================================================================
# Output schemas
# =================================================================

class UploadSlotOut(CamelModel):
    upload_url: str
    file_id: str
    expires_at: UTCDateTime

class ConfirmUploadOut(CamelModel):
    file_id: str
    download_url: str
    expires_at: UTCDateTime

class FileDetailsOut(CamelModel):
    file_id: str
    file_name: str
    file_size: int
    mime_type: str
    download_url: Optional[str] = None
    expires_at: UTCDateTime
    uploaded_at: UTCDateTime
    is_premium: bool
    validity_hours: int
    max_size: float

    @classmethod
    def from_record(cls, file):
        return cls(
            file_id=file.id,
            file_name=file.original_name,
            file_size=file.size,
            mime_type=file.mime_type,
            download_url=file.download_url,
            expires_at=file.expires_at,
            uploaded_at=file.uploaded_at,
            is_premium=file.is_premium,
            validity_hours=file.validity_hours,
            max_size=file.max_size,
        )

class FileSummaryOut(FileDetailsOut):
    is_confirmed: bool
    is_expired: bool

    @classmethod
    def from_record(cls, file, now=None):
        base = FileDetailsOut.from_record(file).model_dump()
        return cls(**base, is_confirmed=file.is_confirmed, is_expired=file.is_expired(now))

class FileListOut(CamelModel):
    total: int
    files: List[FileSummaryOut]
