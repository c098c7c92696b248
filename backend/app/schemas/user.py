from pydantic import BaseModel, EmailStr, Field

from app.schemas.common import TimestampedOut


class RoleOut(BaseModel):
    id: int
    name: str
    type: str
    desc: str | None = None


class RoleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=60)
    desc: str | None = Field(default=None, max_length=500)


class RoleList(BaseModel):
    total: int
    list: list[RoleOut]


class UserOut(TimestampedOut):
    id: int
    username: str
    email: str | None = None
    nickname: str | None = None
    logo: str | None = None
    roles: list[RoleOut] = []


class UserList(BaseModel):
    total: int
    list: list[UserOut]


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=60)
    password: str = Field(min_length=1, max_length=200)


class UpdateMeRequest(BaseModel):
    email: EmailStr | None = None
    nickname: str | None = Field(default=None, max_length=60)
    logo: str | None = Field(default=None, max_length=500)


class AddRoleRequest(BaseModel):
    role_id: int
