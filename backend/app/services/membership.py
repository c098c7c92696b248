"""
Membership graph: team/project membership edges, team leadership and the
cascades between them.

Invariants kept here:

* ``Team.leader_id`` is NULL or a current member of that team.
* A project membership implies a membership of the owning team. Adding to a
  project adds to the team; removing from a team leaves project edges alone.
* Deleting a team deletes its projects and every edge touching either, in a
  single commit. Users are never deleted here.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import InvalidOperation, NotFound
from app.models.projects import Project, ProjectMember
from app.models.teams import Team, TeamMember
from app.models.user import User
from app.services import audit
from app.services.access import AccessPolicy

logger = logging.getLogger(__name__)


def _insert_edge(db: Session, edge) -> bool:
    # a concurrent identical add trips the unique constraint; that is still "already a member"
    try:
        with db.begin_nested():
            db.add(edge)
    except IntegrityError:
        return False
    return True


def _ensure_team_member(db: Session, team_id: int, user_id: int) -> bool:
    exists = db.query(TeamMember.id).filter_by(team_id=team_id, user_id=user_id).first()
    if exists is not None:
        return False
    return _insert_edge(db, TeamMember(team_id=team_id, user_id=user_id))


def _ensure_project_member(db: Session, project_id: int, user_id: int) -> bool:
    exists = db.query(ProjectMember.id).filter_by(project_id=project_id, user_id=user_id).first()
    if exists is not None:
        return False
    return _insert_edge(db, ProjectMember(project_id=project_id, user_id=user_id))


def _drop_team_member(db: Session, team: Team, user_id: int) -> None:
    deleted = (
        db.query(TeamMember)
        .filter_by(team_id=team.id, user_id=user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFound("User is not a member of this team")
    if team.leader_id == user_id:
        # the derived "team leader" role goes with it
        team.leader_id = None


def _drop_project_member(db: Session, project: Project, user_id: int) -> None:
    deleted = (
        db.query(ProjectMember)
        .filter_by(project_id=project.id, user_id=user_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFound("User is not a member of this project")


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


# --- team membership ------------------------------------------------------


def add_team_member(db: Session, actor: User, team_id: int, user_id: int) -> None:
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)
    user = policy.get_recruit(user_id)
    policy.require_team_manager(team)

    added = _ensure_team_member(db, team.id, user.id)
    db.commit()

    if added:
        audit.record(db, actor, f"user {actor.username} added user {user.username} (id={user.id}) to team {team.name!r} (id={team.id})")


def remove_team_member(db: Session, actor: User, team_id: int, user_id: int) -> None:
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)
    user = _get_user(db, user_id)
    policy.require_team_manager(team)

    # project memberships inside the team's projects are left in place
    _drop_team_member(db, team, user.id)
    db.commit()

    audit.record(db, actor, f"user {actor.username} removed user {user.username} (id={user.id}) from team {team.name!r} (id={team.id})")


def exit_team(db: Session, actor: User, team_id: int) -> None:
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)

    _drop_team_member(db, team, actor.id)
    db.commit()

    audit.record(db, actor, f"user {actor.username} left team {team.name!r} (id={team.id})")


def _leader_candidate(db: Session, policy: AccessPolicy, team: Team, user_id: int | None) -> User | None:
    if user_id is None:
        return None
    user = _get_user(db, user_id)
    if not policy.is_team_member(team.id, user.id):
        raise InvalidOperation("Team leader must be a member of the team")
    return user


def set_team_leaders(db: Session, actor: User, team_id: int, user_ids: list[int | None]) -> Team:
    """
    Apply a sequence of leader replacements. Every candidate is checked
    before anything is written; the last one wins, in a single commit.
    """
    policy = AccessPolicy(db, actor)
    team = policy.get_team(team_id)
    policy.require_team_manager(team)

    candidates = [_leader_candidate(db, policy, team, user_id) for user_id in user_ids]
    if not candidates:
        return team

    leader = candidates[-1]
    team.leader_id = leader.id if leader is not None else None
    db.commit()

    if leader is None:
        audit.record(db, actor, f"user {actor.username} cleared the leader of team {team.name!r} (id={team.id})")
    else:
        audit.record(db, actor, f"user {actor.username} set user {leader.username} (id={leader.id}) as leader of team {team.name!r} (id={team.id})")
    return team


def set_team_leader(db: Session, actor: User, team_id: int, user_id: int | None) -> Team:
    return set_team_leaders(db, actor, team_id, [user_id])


# --- project membership ---------------------------------------------------


def add_project_member(db: Session, actor: User, project_id: int, user_id: int) -> None:
    policy = AccessPolicy(db, actor)
    project = policy.get_project(project_id)
    user = policy.get_recruit(user_id)
    team = policy.require_project_manager(project)

    # cascade up: a project member is always a member of the owning team
    joined_team = _ensure_team_member(db, team.id, user.id)
    added = _ensure_project_member(db, project.id, user.id)
    db.commit()

    if joined_team:
        audit.record(db, actor, f"user {actor.username} added user {user.username} (id={user.id}) to team {team.name!r} (id={team.id}) via project {project.name!r}")
    if added:
        audit.record(db, actor, f"user {actor.username} added user {user.username} (id={user.id}) to project {project.name!r} (id={project.id})")


def remove_project_member(db: Session, actor: User, project_id: int, user_id: int) -> None:
    policy = AccessPolicy(db, actor)
    project = policy.get_project(project_id)
    user = _get_user(db, user_id)
    policy.require_project_manager(project)

    _drop_project_member(db, project, user.id)
    db.commit()

    audit.record(db, actor, f"user {actor.username} removed user {user.username} (id={user.id}) from project {project.name!r} (id={project.id})")


def exit_project(db: Session, actor: User, project_id: int) -> None:
    policy = AccessPolicy(db, actor)
    project = policy.get_project(project_id)

    _drop_project_member(db, project, actor.id)
    db.commit()

    audit.record(db, actor, f"user {actor.username} left project {project.name!r} (id={project.id})")


# --- cascading deletes ----------------------------------------------------


def _purge_projects(db: Session, project_ids: list[int]) -> None:
    if not project_ids:
        return
    db.query(ProjectMember).filter(ProjectMember.project_id.in_(project_ids)).delete(synchronize_session=False)
    db.query(Project).filter(Project.id.in_(project_ids)).delete(synchronize_session=False)


def delete_team(db: Session, actor: User, team_id: int) -> None:
    policy = AccessPolicy(db, actor)
    team = policy.get_team_for_update(team_id)
    name = team.name

    # Team -> Projects -> edges, one transaction
    project_ids = [pid for (pid,) in db.query(Project.id).filter(Project.team_id == team.id).all()]
    _purge_projects(db, project_ids)
    db.query(TeamMember).filter(TeamMember.team_id == team.id).delete(synchronize_session=False)
    db.delete(team)
    db.commit()

    logger.info("team %s deleted with %d project(s)", team_id, len(project_ids))
    audit.record(db, actor, f"user {actor.username} deleted team {name!r} (id={team_id}) and {len(project_ids)} project(s)")


def delete_project(db: Session, actor: User, project_id: int) -> None:
    policy = AccessPolicy(db, actor)
    project, team = policy.get_project_for_update(project_id)
    name = project.name

    _purge_projects(db, [project.id])
    db.commit()

    audit.record(db, actor, f"user {actor.username} deleted project {name!r} (id={project_id}) of team {team.name!r}")


def detach_user(db: Session, user_id: int) -> None:
    """Drop every membership edge of a user and any leadership it held. Caller commits."""
    db.query(Team).filter(Team.leader_id == user_id).update({Team.leader_id: None}, synchronize_session=False)
    db.query(TeamMember).filter(TeamMember.user_id == user_id).delete(synchronize_session=False)
    db.query(ProjectMember).filter(ProjectMember.user_id == user_id).delete(synchronize_session=False)
