from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import list_params
from app.api.serializers import project_out, team_out, user_out
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import OkResponse
from app.schemas.projects import ProjectCreate, ProjectList, ProjectOut
from app.schemas.teams import MemberRequest, TeamCreate, TeamLeaderPatch, TeamList, TeamOut, TeamUpdate
from app.schemas.user import UserList
from app.services import membership, projects, teams
from app.services.pagination import ListParams

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.get("", response_model=TeamList)
def list_teams(
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = teams.list_teams(db, actor, params)
    return TeamList(total=total, list=[team_out(db, t) for t in items])


@router.post("", response_model=TeamOut)
def create_team(data: TeamCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    team = teams.create_team(db, actor, data.name, data.desc)
    return team_out(db, team)


@router.get("/{team_id}", response_model=TeamOut)
def get_team(team_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return team_out(db, teams.get_team(db, actor, team_id))


@router.put("/{team_id}", response_model=TeamOut)
def update_team(
    team_id: int,
    data: TeamUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    team = teams.update_team(db, actor, team_id, name=data.name, description=data.desc)
    return team_out(db, team)


@router.patch("/{team_id}", response_model=TeamOut)
def patch_team(
    team_id: int,
    ops: list[TeamLeaderPatch],
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    leader_ids = [op.value.id if op.value is not None else None for op in ops]
    team = membership.set_team_leaders(db, actor, team_id, leader_ids)
    return team_out(db, team)


@router.delete("/{team_id}", response_model=OkResponse)
def delete_team(team_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership.delete_team(db, actor, team_id)
    return OkResponse()


@router.get("/{team_id}/users", response_model=UserList)
def team_users(
    team_id: int,
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = teams.list_team_users(db, actor, team_id, params)
    return UserList(total=total, list=[user_out(db, u) for u in items])


@router.post("/{team_id}/users", response_model=OkResponse)
def add_team_user(
    team_id: int,
    data: MemberRequest,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership.add_team_member(db, actor, team_id, data.user_id)
    return OkResponse()


@router.delete("/{team_id}/users/{user_id}", response_model=OkResponse)
def remove_team_user(team_id: int, user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership.remove_team_member(db, actor, team_id, user_id)
    return OkResponse()


@router.get("/{team_id}/projects", response_model=ProjectList)
def team_projects(
    team_id: int,
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = teams.list_team_projects(db, actor, team_id, params)
    return ProjectList(total=total, list=[project_out(p) for p in items])


@router.post("/{team_id}/projects", response_model=ProjectOut)
def create_project(
    team_id: int,
    data: ProjectCreate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = projects.create_project(db, actor, team_id, data.name, data.desc)
    return project_out(project)
