"""
Identity store operations: creating, reading, updating and deleting users,
plus the per-user team/project views.
"""
from __future__ import annotations

import logging

from sqlalchemy import or_, select, true
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidOperation
from app.core.roles import ROLE_NORMAL_USER, ROLE_TEAM_LEADER
from app.core.security import hash_password
from app.models.auth_session import AuthSession
from app.models.projects import Project, ProjectMember
from app.models.teams import Team, TeamMember
from app.models.user import Role, User, UserRole
from app.services import audit, membership
from app.services.access import AccessPolicy
from app.services.pagination import ListParams, apply_ordering, paginate, substring_match

logger = logging.getLogger(__name__)

USER_ORDER_FIELDS = ("id", "username", "created_at", "updated_at")


def create_user(db: Session, actor: User, username: str, password: str) -> User:
    policy = AccessPolicy(db, actor)
    policy.require_admin()

    username = (username or "").strip()
    if not username or not password:
        raise InvalidOperation("username and password are required")
    if db.query(User.id).filter(User.username == username).first() is not None:
        raise Conflict("Username already in use")

    user = User(
        username=username,
        password_hash=hash_password(password),
        must_change_password=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    audit.record(db, actor, f"user {actor.username} created user {user.username} (id={user.id})")
    return user


def get_user(db: Session, actor: User, user_id: int) -> User:
    return AccessPolicy(db, actor).get_user(user_id)


def _role_condition(names: list[str]):
    conditions = []
    for name in names:
        if name == ROLE_NORMAL_USER:
            conditions.append(true())
        elif name == ROLE_TEAM_LEADER:
            conditions.append(User.id.in_(select(Team.leader_id).where(Team.leader_id.is_not(None))))
        else:
            conditions.append(
                User.id.in_(
                    select(UserRole.user_id).join(Role, Role.id == UserRole.role_id).where(Role.name == name)
                )
            )
    return or_(*conditions)


def list_users(db: Session, actor: User, params: ListParams) -> tuple[int, list[User]]:
    policy = AccessPolicy(db, actor)
    q = policy.scope_users(db.query(User))

    if params.keyword:
        q = q.filter(substring_match(params.keyword, User.username, User.nickname, User.email))
    if params.name:
        q = q.filter(substring_match(params.name, User.username, User.nickname))
    if params.team_ids:
        q = q.filter(User.id.in_(select(TeamMember.user_id).where(TeamMember.team_id.in_(params.team_ids))))
    if params.role_names:
        q = q.filter(_role_condition(params.role_names))

    return paginate(apply_ordering(q, User, params.order_by, USER_ORDER_FIELDS), params)


def update_me(db: Session, actor: User, email: str | None = None, nickname: str | None = None, logo: str | None = None) -> User:
    if email is not None:
        taken = db.query(User.id).filter(User.email == email, User.id != actor.id).first()
        if taken is not None:
            raise Conflict("Email already in use")
        actor.email = email
    if nickname is not None:
        actor.nickname = nickname
    if logo is not None:
        actor.logo = logo
    db.commit()
    db.refresh(actor)

    audit.record(db, actor, f"user {actor.username} updated own profile")
    return actor


def delete_user(db: Session, actor: User, user_id: int) -> None:
    policy = AccessPolicy(db, actor)
    user = policy.get_user(user_id)
    policy.require_admin()
    if user.is_protected:
        raise InvalidOperation("The admin account cannot be deleted")

    username = user.username
    membership.detach_user(db, user.id)
    db.query(UserRole).filter(UserRole.user_id == user.id).delete(synchronize_session=False)
    db.query(AuthSession).filter(AuthSession.user_id == user.id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()

    audit.record(db, actor, f"user {actor.username} deleted user {username} (id={user_id})")


def list_user_teams(db: Session, actor: User, user_id: int, params: ListParams) -> tuple[int, list[Team]]:
    """The target's teams, limited to what the actor can see."""
    policy = AccessPolicy(db, actor)
    user = policy.get_user(user_id)

    q = db.query(Team).filter(Team.id.in_(select(TeamMember.team_id).where(TeamMember.user_id == user.id)))
    q = policy.scope_teams(q)
    text = params.name or params.keyword
    if text:
        q = q.filter(substring_match(text, Team.name))
    return paginate(apply_ordering(q, Team, params.order_by), params)


def list_user_projects(db: Session, actor: User, user_id: int, params: ListParams) -> tuple[int, list[Project]]:
    policy = AccessPolicy(db, actor)
    user = policy.get_user(user_id)

    q = db.query(Project).filter(
        Project.id.in_(select(ProjectMember.project_id).where(ProjectMember.user_id == user.id))
    )
    q = policy.scope_projects(q)
    if params.team_ids:
        q = q.filter(Project.team_id.in_(params.team_ids))
    text = params.name or params.keyword
    if text:
        q = q.filter(substring_match(text, Project.name))
    return paginate(apply_ordering(q, Project, params.order_by), params)
