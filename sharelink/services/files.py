"""File lifecycle: pending upload -> confirmed -> (premium) -> expired.

Bytes never pass through here. A pending record is created when the
client asks for an upload slot, the client PUTs straight to storage, then
reports completion. Expiry is checked on every read; physical removal of
expired records is left to ``sharelink.services.sweeper``.
"""
import logging
import re
import secrets
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath, PureWindowsPath
from typing import FrozenSet, List, Optional, Tuple

from sqlalchemy.orm import Session

from sharelink.core.config import settings
from sharelink.core.errors import GoneError, NotFoundError, ValidationError
from sharelink.core.timeutils import bytes_to_gb, hours_after, utcnow
from sharelink.models.file import File
from sharelink.models.payment import Payment
from sharelink.network.storage import S3Storage
from sharelink.services.pricing import PricingRegistry

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass
class FilePatch:
    """Partial update. Only names listed in `present` are applied; a present
    field may carry None, which is different from leaving it out."""

    max_size: Optional[float] = None
    validity_hours: Optional[int] = None
    is_premium: Optional[bool] = None
    payment_id: Optional[str] = None
    present: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_model(cls, body) -> "FilePatch":
        return cls(**body.model_dump(), present=frozenset(body.model_fields_set))

    def has(self, name: str) -> bool:
        return name in self.present


def make_storage_key(file_name: str, prefix: str = "uploads/") -> str:
    # Drop any client-side directory part, then spaces
    name = PureWindowsPath(PurePosixPath(file_name).name).name or "file"
    name = _WHITESPACE.sub("_", name.strip()) or "file"
    return f"{prefix}{secrets.token_hex(16)}-{name}"


class FileManager:
    def __init__(self, db: Session, storage: S3Storage, pricing: Optional[PricingRegistry] = None):
        self.db = db
        self.storage = storage
        self.pricing = pricing or PricingRegistry(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, file_id: str) -> File:
        file = self.db.get(File, file_id)
        if file is None:
            raise NotFoundError("File not found")
        return file

    def get_live(self, file_id: str, now: Optional[datetime] = None) -> File:
        """Like `get`, but an expired record is reported gone even before it is purged."""
        file = self.get(file_id)
        if file.is_expired(now):
            raise GoneError("This file has expired")
        return file

    def _refresh_download_url(self, file: File) -> str:
        file.download_url = self.storage.generate_download_url(
            file.storage_key, file.original_name, file.validity_hours * 3600
        )
        return file.download_url

    # ------------------------------------------------------------------
    # Upload protocol
    # ------------------------------------------------------------------

    def request_upload_slot(self, file_name: Optional[str], file_type: Optional[str],
                            file_size: Optional[float], user_id: Optional[int] = None) -> Tuple[File, str]:
        if not file_name or not file_type:
            raise ValidationError("Filename and file type are required")
        if file_size is None or file_size <= 0:
            raise ValidationError("Valid file size is required")

        entitlement = self.pricing.free_entitlement()
        if bytes_to_gb(file_size) > entitlement.max_size:
            raise ValidationError(
                f"File size exceeds the {entitlement.max_size:g}GB limit. Please upgrade for larger uploads.",
                requiresUpgrade=True,
            )

        storage_key = make_storage_key(file_name, settings.S3_UPLOAD_PREFIX)
        upload_url = self.storage.generate_upload_url(
            storage_key, file_type, settings.UPLOAD_URL_EXPIRY_SECONDS
        )

        now = utcnow()
        file = File(
            storage_key=storage_key,
            original_name=file_name,
            mime_type=file_type,
            size=int(file_size),
            user_id=user_id,
            max_size=entitlement.max_size,
            validity_hours=entitlement.validity_hours,
            uploaded_at=now,
            expires_at=hours_after(now, entitlement.validity_hours),
        )
        self.db.add(file)
        self.db.commit()
        self.db.refresh(file)
        logger.info("Upload slot %s issued for %s (%d bytes)", file.id, storage_key, file.size)
        return file, upload_url

    def confirm_upload(self, file_id: str, email: Optional[str] = None,
                       user_id: Optional[int] = None) -> File:
        """Trust the client's word that the bytes landed; storage is not checked."""
        file = self.get_live(file_id)
        self._refresh_download_url(file)
        if email:
            file.email = email.strip().lower()
        if user_id is not None and file.user_id is None:
            file.user_id = user_id
        if file.confirmed_at is None:
            file.confirmed_at = utcnow()
        self.db.commit()
        self.db.refresh(file)
        logger.info("Upload %s confirmed", file.id)
        return file

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_file_details(self, file_id: str) -> File:
        """Refresh-on-read: pre-signed URLs expire on their own clock."""
        file = self.get_live(file_id)
        self._refresh_download_url(file)
        self.db.commit()
        self.db.refresh(file)
        return file

    def list_by_user(self, user_id: int) -> List[File]:
        files = (
            self.db.query(File)
            .filter(File.user_id == user_id)
            .order_by(File.uploaded_at.desc())
            .all()
        )
        if not files:
            raise NotFoundError("No files found for this user")
        return files

    # ------------------------------------------------------------------
    # Entitlement changes
    # ------------------------------------------------------------------

    def apply_upgrade(self, file_id: str, patch: FilePatch) -> File:
        """Manual update. A new validity is counted from the original upload time."""
        file = self.get(file_id)

        for name in ("max_size", "validity_hours", "is_premium"):
            if patch.has(name) and getattr(patch, name) is None:
                raise ValidationError(f"{name} cannot be null")

        if patch.has("max_size"):
            file.max_size = patch.max_size
        if patch.has("validity_hours"):
            file.validity_hours = patch.validity_hours
            file.expires_at = hours_after(file.uploaded_at, patch.validity_hours)
        if patch.has("is_premium"):
            file.is_premium = patch.is_premium
        if patch.has("payment_id"):
            if patch.payment_id is not None and self.db.get(Payment, patch.payment_id) is None:
                raise ValidationError("Unknown payment")
            file.payment_id = patch.payment_id

        self._refresh_download_url(file)
        self.db.commit()
        self.db.refresh(file)
        logger.info("File %s updated (%s)", file.id, ", ".join(sorted(patch.present)) or "no fields")
        return file

    def apply_tier(self, file_id: Optional[str], tier, payment_id: str,
                   now: Optional[datetime] = None) -> Optional[File]:
        """Payment path. The new validity is counted from the completion instant."""
        file = self.db.get(File, file_id) if file_id else None
        if file is None:
            logger.warning("Payment %s completed for missing file %s", payment_id, file_id)
            return None
        completed_at = now or utcnow()
        file.max_size = tier.file_size_limit
        file.validity_hours = tier.validity_in_hours
        file.is_premium = True
        file.payment_id = payment_id
        file.expires_at = hours_after(completed_at, tier.validity_in_hours)
        self.db.commit()
        self.db.refresh(file)
        logger.info("File %s upgraded to tier %s until %s", file.id, tier.name, file.expires_at)
        return file

    # ------------------------------------------------------------------
    # Reclamation
    # ------------------------------------------------------------------

    def delete_all(self) -> int:
        count = self.db.query(File).delete(synchronize_session=False)
        self.db.commit()
        return count
