"""Application error taxonomy.

Services raise these; the handlers registered in ``sharelink.main`` turn
them into ``{"success": false, "message": ...}`` JSON bodies with the
matching HTTP status.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class InvalidSignatureError(ValidationError):
    default_message = "Invalid payment signature"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized - Invalid token"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden - Admin access required"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Resource already exists"


class GoneError(AppError):
    status_code = 410
    default_message = "This file has expired"


class UpstreamError(AppError):
    """A storage, gateway or transport call failed. Detail goes to the log only."""

    status_code = 500
    default_message = "An upstream service is unavailable"
