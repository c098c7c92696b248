from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidOperation
from app.core.roles import PROJECT_STATUSES, STATUS_WAIT_FOR_SCHEDULE
from app.models.projects import Project, ProjectMember
from app.models.user import User
from app.services import audit
from app.services.access import AccessPolicy
from app.services.pagination import ListParams, apply_ordering, paginate, substring_match

PATCHABLE_PATHS = {"/name": "name", "/desc": "description", "/status": "status"}


def _check_status(status: str) -> str:
    if status not in PROJECT_STATUSES:
        raise InvalidOperation(f"Invalid status. Allowed: {list(PROJECT_STATUSES)}")
    return status


def create_project(db: Session, actor: User, team_id: int, name: str, description: str | None = None) -> Project:
    policy = AccessPolicy(db, actor)
    team = policy.get_team_for_update(team_id)

    name = (name or "").strip()
    if not name:
        raise InvalidOperation("Project name is required")

    project = Project(
        name=name,
        description=description,
        status=STATUS_WAIT_FOR_SCHEDULE,
        team_id=team.id,
    )
    db.add(project)
    db.commit()
    db.refresh(project)

    audit.record(db, actor, f"user {actor.username} created project {project.name!r} (id={project.id}) in team {team.name!r} (id={team.id})")
    return project


def get_project(db: Session, actor: User, project_id: int) -> Project:
    return AccessPolicy(db, actor).get_project(project_id)


def _apply_changes(db: Session, actor: User, project: Project, changes: dict) -> Project:
    changes = {k: v for k, v in changes.items() if getattr(project, k) != v}
    if not changes:
        return project

    for field, value in changes.items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)

    summary = ", ".join(f"{k}={v!r}" for k, v in changes.items())
    audit.record(db, actor, f"user {actor.username} updated project {project.name!r} (id={project.id}): {summary}")
    return project


def update_project(
    db: Session,
    actor: User,
    project_id: int,
    name: str | None = None,
    description: str | None = None,
    status: str | None = None,
) -> Project:
    policy = AccessPolicy(db, actor)
    project, _ = policy.get_project_for_update(project_id)

    # blank/absent fields are left unchanged
    changes = {}
    if name is not None and name.strip():
        changes["name"] = name.strip()
    if description is not None:
        changes["description"] = description
    if status:
        changes["status"] = _check_status(status)

    return _apply_changes(db, actor, project, changes)


def patch_project(db: Session, actor: User, project_id: int, operations: list) -> Project:
    """Apply ``[{op: "replace", path, value}]``; the whole patch is rejected on any bad entry."""
    policy = AccessPolicy(db, actor)
    project, _ = policy.get_project_for_update(project_id)

    changes = {}
    for operation in operations:
        if operation.op != "replace":
            raise InvalidOperation(f"Unsupported patch op: {operation.op}")
        field = PATCHABLE_PATHS.get(operation.path)
        if field is None:
            raise InvalidOperation(f"Unsupported patch path: {operation.path}")

        value = operation.value
        if field == "description":
            if value is not None and not isinstance(value, str):
                raise InvalidOperation("desc must be a string or null")
        else:
            if not isinstance(value, str) or not value.strip():
                raise InvalidOperation(f"{operation.path} must be a non-empty string")
            value = value.strip()
            if field == "status":
                _check_status(value)
        changes[field] = value

    return _apply_changes(db, actor, project, changes)


def list_my_projects(db: Session, actor: User, params: ListParams) -> tuple[int, list[Project]]:
    q = db.query(Project).filter(
        Project.id.in_(select(ProjectMember.project_id).where(ProjectMember.user_id == actor.id))
    )
    if params.team_ids:
        q = q.filter(Project.team_id.in_(params.team_ids))
    text = params.name or params.keyword
    if text:
        q = q.filter(substring_match(text, Project.name))
    return paginate(apply_ordering(q, Project, params.order_by), params)


def list_project_users(db: Session, actor: User, project_id: int, params: ListParams) -> tuple[int, list[User]]:
    policy = AccessPolicy(db, actor)
    project = policy.get_project(project_id)

    q = db.query(User).filter(
        User.id.in_(select(ProjectMember.user_id).where(ProjectMember.project_id == project.id))
    )
    text = params.name or params.keyword
    if text:
        q = q.filter(substring_match(text, User.username, User.nickname))
    return paginate(apply_ordering(q, User, params.order_by, ("id", "username", "created_at", "updated_at")), params)
