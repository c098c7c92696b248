"""
Role resolver and role management.

Only two kinds of user/role edges are ever stored: the seeded ``admin`` edge
and Custom roles. ``team leader`` and ``normal user`` are derived when roles
are read, so they cannot drift from the leadership relation.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.errors import Conflict, Forbidden, InvalidOperation, NotFound
from app.core.roles import KIND_CUSTOM, KIND_SYSTEM, ROLE_ADMIN, ROLE_NORMAL_USER, ROLE_TEAM_LEADER
from app.models.teams import Team
from app.models.user import Role, User, UserRole
from app.services import audit

logger = logging.getLogger(__name__)


def get_role_by_name(db: Session, name: str) -> Role | None:
    return db.query(Role).filter(Role.name == name).first()


def stored_roles(db: Session, user_id: int) -> list[Role]:
    return (
        db.query(Role)
        .join(UserRole, UserRole.role_id == Role.id)
        .filter(UserRole.user_id == user_id)
        .all()
    )


def is_admin(db: Session, user) -> bool:
    if user is None:
        return False
    return (
        db.query(UserRole.id)
        .join(Role, Role.id == UserRole.role_id)
        .filter(UserRole.user_id == user.id, Role.name == ROLE_ADMIN)
        .first()
        is not None
    )


def leads_any_team(db: Session, user_id: int) -> bool:
    return db.query(Team.id).filter(Team.leader_id == user_id).first() is not None


def effective_roles(db: Session, user) -> list[Role]:
    """Stored roles + ``normal user`` + ``team leader`` when leading at least one team."""
    roles = {r.id: r for r in stored_roles(db, user.id)}

    derived = [ROLE_NORMAL_USER]
    if leads_any_team(db, user.id):
        derived.append(ROLE_TEAM_LEADER)
    for name in derived:
        role = get_role_by_name(db, name)
        if role is not None:
            roles[role.id] = role

    return sorted(roles.values(), key=lambda r: r.id)


def effective_role_names(db: Session, user) -> set[str]:
    return {r.name for r in effective_roles(db, user)}


def require_admin(db: Session, actor) -> None:
    if not is_admin(db, actor):
        raise Forbidden("Admin privileges required")


def _get_role(db: Session, role_id: int) -> Role:
    role = db.query(Role).filter(Role.id == role_id).first()
    if role is None:
        raise NotFound("Role not found")
    return role


def list_roles(db: Session) -> tuple[int, list[Role]]:
    roles = db.query(Role).order_by(Role.id.asc()).all()
    return len(roles), roles


def create_role(db: Session, actor, name: str, description: str | None = None) -> Role:
    require_admin(db, actor)

    name = name.strip()
    if not name:
        raise InvalidOperation("Role name is required")
    if get_role_by_name(db, name) is not None:
        raise Conflict("Role name already in use")

    # only Custom roles can be created; System roles are seeded
    role = Role(name=name, kind=KIND_CUSTOM, description=description)
    db.add(role)
    db.commit()
    db.refresh(role)

    audit.record(db, actor, f"user {actor.username} created role {role.name!r} (id={role.id})")
    return role


def delete_role(db: Session, actor, role_id: int) -> None:
    require_admin(db, actor)
    role = _get_role(db, role_id)
    if role.kind == KIND_SYSTEM:
        raise InvalidOperation("System roles cannot be deleted")

    # unassign from every holder; the users themselves stay
    db.query(UserRole).filter(UserRole.role_id == role.id).delete(synchronize_session=False)
    name = role.name
    db.delete(role)
    db.commit()

    audit.record(db, actor, f"user {actor.username} deleted role {name!r} (id={role_id})")


def _get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User not found")
    return user


def assign_role(db: Session, actor, user_id: int, role_id: int) -> None:
    require_admin(db, actor)
    user = _get_user(db, user_id)
    role = _get_role(db, role_id)
    if role.kind == KIND_SYSTEM:
        raise InvalidOperation("System roles cannot be assigned manually")

    exists = db.query(UserRole).filter_by(user_id=user.id, role_id=role.id).first()
    if exists is not None:
        return
    db.add(UserRole(user_id=user.id, role_id=role.id))
    db.commit()

    audit.record(
        db, actor, f"user {actor.username} assigned role {role.name!r} to user {user.username} (id={user.id})"
    )


def revoke_role(db: Session, actor, user_id: int, role_id: int) -> None:
    require_admin(db, actor)
    user = _get_user(db, user_id)
    role = _get_role(db, role_id)
    if role.kind == KIND_SYSTEM:
        raise InvalidOperation("System roles cannot be revoked manually")

    deleted = db.query(UserRole).filter_by(user_id=user.id, role_id=role.id).delete(synchronize_session=False)
    if not deleted:
        raise NotFound("User does not hold this role")
    db.commit()

    audit.record(
        db, actor, f"user {actor.username} revoked role {role.name!r} from user {user.username} (id={user.id})"
    )
