import uuid
from sqlalchemy import Column, Integer, String, BigInteger, Boolean, DateTime, Float, Text, ForeignKey
from sqlalchemy.orm import relationship
from sharelink.core.timeutils import utcnow
from sharelink.db.session import Base

def _id32() -> str:
    return uuid.uuid4().hex

class File(Base):
    __tablename__ = "files"

    id = Column(String(32), primary_key=True, default=_id32)
    storage_key = Column(String(500), nullable=False, unique=True)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(BigInteger, nullable=False)  # bytes, as declared by the client

    # Notification / ownership
    email = Column(String(255), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Entitlement
    max_size = Column(Float, nullable=False)  # GB
    validity_hours = Column(Integer, nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)
    payment_id = Column(String(32), nullable=True)

    # Cached pre-signed read URL, regenerated on read
    download_url = Column(Text, nullable=True)

    # Timestamps
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)
    confirmed_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=False, index=True)

    owner = relationship("User", back_populates="files")

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    def is_expired(self, now=None) -> bool:
        return self.expires_at < (now or utcnow())
