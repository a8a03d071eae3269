from datetime import datetime, timezone
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes coming from clients or storage as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseDBModel(BaseModel):
    id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        ser_json_timedelta="iso8601",
    )
