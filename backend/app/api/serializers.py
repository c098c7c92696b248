"""ORM rows -> response schemas. Roles are always the effective set."""
from sqlalchemy.orm import Session

from app.models.projects import Project
from app.models.teams import Team
from app.models.user import Role, User
from app.schemas.projects import ProjectOut
from app.schemas.teams import TeamOut, TeamProjectBrief
from app.schemas.user import RoleOut, UserOut
from app.services import roles, teams


def role_out(role: Role) -> RoleOut:
    return RoleOut(id=role.id, name=role.name, type=role.kind, desc=role.description)


def user_out(db: Session, user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        nickname=user.nickname,
        logo=user.logo,
        roles=[role_out(r) for r in roles.effective_roles(db, user)],
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def project_out(project: Project) -> ProjectOut:
    return ProjectOut(
        id=project.id,
        name=project.name,
        desc=project.description,
        status=project.status,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


def team_out(db: Session, team: Team) -> TeamOut:
    leader = db.get(User, team.leader_id) if team.leader_id is not None else None
    projects = teams.team_projects_brief(db, team)
    return TeamOut(
        id=team.id,
        name=team.name,
        desc=team.description,
        leader=user_out(db, leader) if leader is not None else None,
        projects=[TeamProjectBrief(id=p.id, name=p.name) for p in projects],
        created_at=team.created_at,
        updated_at=team.updated_at,
    )
