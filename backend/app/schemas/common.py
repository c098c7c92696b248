import calendar
from datetime import datetime

from pydantic import BaseModel, field_validator


def to_unix(value: datetime | None) -> int:
    if value is None:
        return 0
    # stored timestamps are naive UTC
    return calendar.timegm(value.utctimetuple())


class TimestampedOut(BaseModel):
    created_at: int
    updated_at: int

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _unix(cls, v):
        return to_unix(v) if isinstance(v, datetime) else v

    class Config:
        from_attributes = True


class OkResponse(BaseModel):
    ok: bool = True
