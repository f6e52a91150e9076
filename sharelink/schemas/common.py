from datetime import datetime, timezone
from typing import Annotated, Generic, TypeVar, Optional
from pydantic import AfterValidator, BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar('T')

def _as_utc(value: datetime) -> datetime:
    # Columns hold naive UTC; mark it so clients do not read local time
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

# Serialized with a trailing "Z"
UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]

class CamelModel(BaseModel):
    """Request/response base: snake_case in Python, camelCase on the wire."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "protected_namespaces": (),
    }

class CamelORMModel(CamelModel):
    """Same as CamelModel, readable straight from SQLAlchemy objects."""
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "protected_namespaces": (),
    }

class StandardResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "OK"
    data: Optional[T] = None
