from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    nickname = Column(String, nullable=True)
    logo = Column(String, nullable=True)

    password_hash = Column(String, nullable=False)
    # bumped on every password change; sessions minted under an older epoch are dead
    credential_epoch = Column(Integer, nullable=False, default=0)
    must_change_password = Column(Boolean, nullable=False, default=True)

    # the designated admin account: never deletable, never loses "admin"
    is_protected = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    kind = Column(String, nullable=False)  # System | Custom
    description = Column(String, nullable=True)


class UserRole(Base):
    """Stored role edge. Only "admin" (seeded) and Custom roles ever live here."""

    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), index=True, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_role"),)
