"""
Visibility & permission engine.

Every handler builds one ``AccessPolicy`` for the calling user and asks it
two kinds of questions:

* visibility -- may the actor observe this user / team / project at all?
  Used both to scope listings and to load single targets.
* permission -- may the actor mutate it?

Visibility is checked first. A target that exists but is not visible raises
``NotVisible``; a missing one raises ``NotFound``; only a visible target can
fail with a plain ``Forbidden``.

Nothing here is cached: every answer is computed from the membership edges
as they are in the current transaction.
"""
from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.errors import Forbidden, NotFound, NotVisible
from app.models.projects import Project, ProjectMember
from app.models.teams import Team, TeamMember
from app.models.user import User
from app.services import roles


class AccessPolicy:
    def __init__(self, db: Session, actor: User):
        self.db = db
        self.actor = actor
        self.is_admin = roles.is_admin(db, actor)

    # --- membership facts -------------------------------------------------

    def my_team_ids(self):
        return select(TeamMember.team_id).where(TeamMember.user_id == self.actor.id)

    def my_project_ids(self):
        return select(ProjectMember.project_id).where(ProjectMember.user_id == self.actor.id)

    def my_led_team_ids(self):
        return select(Team.id).where(Team.leader_id == self.actor.id)

    def is_team_member(self, team_id: int, user_id: int | None = None) -> bool:
        user_id = self.actor.id if user_id is None else user_id
        return (
            self.db.query(TeamMember.id).filter_by(team_id=team_id, user_id=user_id).first()
            is not None
        )

    def is_project_member(self, project_id: int, user_id: int | None = None) -> bool:
        user_id = self.actor.id if user_id is None else user_id
        return (
            self.db.query(ProjectMember.id).filter_by(project_id=project_id, user_id=user_id).first()
            is not None
        )

    def leads(self, team: Team) -> bool:
        return team.leader_id is not None and team.leader_id == self.actor.id

    # --- visibility -------------------------------------------------------

    def visible_user_ids(self):
        """Users sharing at least one team with the actor (the actor included once it has a team)."""
        return select(TeamMember.user_id).where(TeamMember.team_id.in_(self.my_team_ids())).distinct()

    def scope_users(self, query):
        if self.is_admin:
            return query
        return query.filter(or_(User.id == self.actor.id, User.id.in_(self.visible_user_ids())))

    def scope_teams(self, query):
        if self.is_admin:
            return query
        return query.filter(Team.id.in_(self.my_team_ids()))

    def scope_projects(self, query):
        if self.is_admin:
            return query
        return query.filter(
            or_(
                Project.id.in_(self.my_project_ids()),
                Project.team_id.in_(self.my_led_team_ids()),
            )
        )

    def can_see_user(self, user: User) -> bool:
        if self.is_admin or user.id == self.actor.id:
            return True
        return (
            self.db.query(TeamMember.id)
            .filter(TeamMember.user_id == user.id, TeamMember.team_id.in_(self.my_team_ids()))
            .first()
            is not None
        )

    def can_see_team(self, team: Team) -> bool:
        # the leader is always a member, so membership covers leadership
        return self.is_admin or self.is_team_member(team.id)

    def can_see_project(self, project: Project) -> bool:
        if self.is_admin or self.is_project_member(project.id):
            return True
        team = self.db.get(Team, project.team_id)
        return team is not None and self.leads(team)

    def can_recruit(self, user: User) -> bool:
        """
        Whether the actor may pull ``user`` into one of its teams or projects.

        Visible users qualify. So do users that belong to no team at all:
        they are invisible in listings but nobody else's member yet.
        """
        if self.can_see_user(user):
            return True
        return self.db.query(TeamMember.id).filter(TeamMember.user_id == user.id).first() is None

    # --- loaders: existence, then visibility ------------------------------

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        if not self.can_see_user(user):
            raise NotVisible("User is not visible to you")
        return user

    def get_team(self, team_id: int) -> Team:
        team = self.db.get(Team, team_id)
        if team is None:
            raise NotFound("Team not found")
        if not self.can_see_team(team):
            raise NotVisible("Team is not visible to you")
        return team

    def get_project(self, project_id: int) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFound("Project not found")
        if not self.can_see_project(project):
            raise NotVisible("Project is not visible to you")
        return project

    def get_recruit(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        if not self.can_recruit(user):
            raise NotVisible("User is not visible to you")
        return user

    # --- permissions ------------------------------------------------------

    def require_admin(self) -> None:
        if not self.is_admin:
            raise Forbidden("Admin privileges required")

    def can_manage_team(self, team: Team) -> bool:
        return self.is_admin or self.leads(team)

    def require_team_manager(self, team: Team) -> None:
        if not self.can_manage_team(team):
            raise Forbidden("Only an admin or the team leader can do this")

    def owning_team(self, project: Project) -> Team:
        team = self.db.get(Team, project.team_id)
        if team is None:
            # a project never outlives its team
            raise NotFound("Project not found")
        return team

    def require_project_manager(self, project: Project) -> Team:
        team = self.owning_team(project)
        if not self.can_manage_team(team):
            raise Forbidden("Only an admin or the team leader can do this")
        return team

    # --- composed loaders ---------------------------------------------------

    def get_team_for_update(self, team_id: int) -> Team:
        team = self.get_team(team_id)
        self.require_team_manager(team)
        return team

    def get_project_for_update(self, project_id: int) -> tuple[Project, Team]:
        project = self.get_project(project_id)
        team = self.require_project_manager(project)
        return project, team
