import asyncio
import logging
from datetime import datetime
from typing import Optional

from sharelink.core.timeutils import utcnow
from sharelink.db.session import SessionLocal
from sharelink.models.file import File

logger = logging.getLogger(__name__)


def purge_expired_files(session_factory=SessionLocal, now: Optional[datetime] = None) -> int:
    """Delete every file record past its expiry. Storage objects are left alone."""
    cutoff = now or utcnow()
    db = session_factory()
    try:
        count = (
            db.query(File)
            .filter(File.expires_at < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
    finally:
        db.close()
    if count:
        logger.info("Purged %d expired file record(s)", count)
    return count


async def expiry_sweep_loop(interval_seconds: int, session_factory=SessionLocal) -> None:
    """Run `purge_expired_files` every `interval_seconds` until cancelled."""
    logger.info("Expiry sweep started (every %ds)", interval_seconds)
    while True:
        try:
            await asyncio.to_thread(purge_expired_files, session_factory)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Expiry sweep iteration failed")
        await asyncio.sleep(interval_seconds)
