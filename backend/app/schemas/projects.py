from typing import Any

from pydantic import BaseModel, Field

from app.schemas.common import TimestampedOut


class ProjectOut(TimestampedOut):
    id: int
    name: str
    desc: str | None = None
    status: str


class ProjectList(BaseModel):
    total: int
    list: list[ProjectOut]


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    desc: str | None = Field(default=None, max_length=500)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=80)
    desc: str | None = Field(default=None, max_length=500)
    status: str | None = None


class ProjectPatchOp(BaseModel):
    op: str
    path: str
    value: Any = None
