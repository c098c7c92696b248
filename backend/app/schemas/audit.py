from pydantic import BaseModel, field_validator

from app.schemas.common import to_unix


class AuditLogOut(BaseModel):
    id: int
    content: str
    created_at: int

    @field_validator("created_at", mode="before")
    @classmethod
    def _unix(cls, v):
        return v if isinstance(v, int) else to_unix(v)

    class Config:
        from_attributes = True


class AuditList(BaseModel):
    total: int
    list: list[AuditLogOut]
