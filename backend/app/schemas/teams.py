from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.common import TimestampedOut
from app.schemas.user import UserOut


class TeamProjectBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class TeamOut(TimestampedOut):
    id: int
    name: str
    desc: str | None = None
    leader: UserOut | None = None
    projects: list[TeamProjectBrief] = []


class TeamList(BaseModel):
    total: int
    list: list[TeamOut]


class TeamCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    desc: str | None = Field(default=None, max_length=500)


class TeamUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=80)
    desc: str | None = Field(default=None, max_length=500)


class LeaderRef(BaseModel):
    id: int | None = None


class TeamLeaderPatch(BaseModel):
    op: Literal["replace"]
    path: Literal["/leader"]
    value: LeaderRef | None = None


class MemberRequest(BaseModel):
    user_id: int
