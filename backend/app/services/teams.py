from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidOperation
from app.models.projects import Project, ProjectMember
from app.models.teams import Team, TeamMember
from app.models.user import User
from app.services import audit
from app.services.access import AccessPolicy
from app.services.pagination import ListParams, apply_ordering, paginate, substring_match


def _name_filter(query, column, params: ListParams):
    text = params.name or params.keyword
    if text:
        query = query.filter(substring_match(text, column))
    return query


def _check_name_free(db: Session, name: str, team_id: int | None = None) -> None:
    q = db.query(Team.id).filter(Team.name == name)
    if team_id is not None:
        q = q.filter(Team.id != team_id)
    if q.first() is not None:
        raise Conflict("Team name already in use")


def create_team(db: Session, actor: User, name: str, description: str | None = None) -> Team:
    policy = AccessPolicy(db, actor)
    policy.require_admin()

    name = (name or "").strip()
    if not name:
        raise InvalidOperation("Team name is required")
    _check_name_free(db, name)

    team = Team(name=name, description=description)
    db.add(team)
    db.commit()
    db.refresh(team)

    audit.record(db, actor, f"user {actor.username} created team {team.name!r} (id={team.id})")
    return team


def update_team(db: Session, actor: User, team_id: int, name: str | None = None, description: str | None = None) -> Team:
    policy = AccessPolicy(db, actor)
    team = policy.get_team_for_update(team_id)

    # absent/blank fields are left as they are
    changed = False
    if name is not None and name.strip() and name.strip() != team.name:
        _check_name_free(db, name.strip(), team.id)
        team.name = name.strip()
        changed = True
    if description is not None and description != team.description:
        team.description = description
        changed = True
    if not changed:
        return team
    db.commit()
    db.refresh(team)

    audit.record(db, actor, f"user {actor.username} updated team {team.name!r} (id={team.id}) desc={team.description!r}")
    return team


def get_team(db: Session, actor: User, team_id: int) -> Team:
    return AccessPolicy(db, actor).get_team(team_id)


def team_projects_brief(db: Session, team: Team) -> list[Project]:
    return db.query(Project).filter(Project.team_id == team.id).order_by(Project.id.asc()).all()


def _leading_filter(query, user_id: int, leading: bool | None):
    if leading is True:
        query = query.filter(Team.leader_id == user_id)
    elif leading is False:
        query = query.filter((Team.leader_id.is_(None)) | (Team.leader_id != user_id))
    return query


def list_teams(db: Session, actor: User, params: ListParams) -> tuple[int, list[Team]]:
    policy = AccessPolicy(db, actor)
    q = policy.scope_teams(db.query(Team))
    q = _name_filter(q, Team.name, params)
    q = _leading_filter(q, actor.id, params.leading)
    return paginate(apply_ordering(q, Team, params.order_by), params)


def list_my_teams(db: Session, actor: User, params: ListParams) -> tuple[int, list[Team]]:
    # teams I belong to, even for an admin
    q = db.query(Team).filter(
        Team.id.in_(select(TeamMember.team_id).where(TeamMember.user_id == actor.id))
    )
    q = _name_filter(q, Team.name, params)
    q = _leading_filter(q, actor.id, params.leading)
    return paginate(apply_ordering(q, Team, params.order_by), params)


def list_team_users(db: Session, actor: User, team_id: int, params: ListParams) -> tuple[int, list[User]]:
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)

    q = db.query(User).filter(
        User.id.in_(select(TeamMember.user_id).where(TeamMember.team_id == team.id))
    )
    text = params.name or params.keyword
    if text:
        q = q.filter(substring_match(text, User.username, User.nickname))
    return paginate(apply_ordering(q, User, params.order_by, ("id", "username", "created_at", "updated_at")), params)


def list_team_projects(db: Session, actor: User, team_id: int, params: ListParams) -> tuple[int, list[Project]]:
    """The team's project catalog, readable by anyone who can see the team."""
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)

    q = db.query(Project).filter(Project.team_id == team.id)
    q = _name_filter(q, Project.name, params)

    mine = select(ProjectMember.project_id).where(ProjectMember.user_id == actor.id)
    if params.part_in is True:
        q = q.filter(Project.id.in_(mine))
    elif params.part_in is False:
        q = q.filter(~Project.id.in_(mine))

    return paginate(apply_ordering(q, Project, params.order_by), params)
