from datetime import datetime, timedelta, timezone

HOUR = timedelta(hours=1)


def utcnow() -> datetime:
    """Naive UTC now; every timestamp column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_after(start: datetime, hours: float) -> datetime:
    return start + hours * HOUR


def bytes_to_gb(size: float) -> float:
    return size / (1024 * 1024 * 1024)
