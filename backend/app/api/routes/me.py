from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import list_params
from app.api.serializers import project_out, team_out, user_out
from app.core.security import AuthContext, get_auth_context, get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import PasswordChangeRequest
from app.schemas.common import OkResponse
from app.schemas.projects import ProjectList
from app.schemas.teams import TeamList
from app.schemas.user import UpdateMeRequest, UserOut
from app.services import membership, projects, sessions, teams, users
from app.services.pagination import ListParams

router = APIRouter(prefix="/api/me", tags=["me"])


@router.get("", response_model=UserOut)
def me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return user_out(db, user)


@router.put("", response_model=UserOut)
def update_me(data: UpdateMeRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = users.update_me(db, user, email=data.email, nickname=data.nickname, logo=data.logo)
    return user_out(db, user)


@router.put("/password", response_model=OkResponse)
def change_password(
    data: PasswordChangeRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: Session = Depends(get_db),
):
    # the one call a pending password change does not block
    sessions.change_password(db, ctx.user, data.old_password, data.new_password)
    return OkResponse()


@router.get("/teams", response_model=TeamList)
def my_teams(
    params: ListParams = Depends(list_params),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = teams.list_my_teams(db, user, params)
    return TeamList(total=total, list=[team_out(db, t) for t in items])


@router.delete("/teams/{team_id}", response_model=OkResponse)
def exit_team(team_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership.exit_team(db, user, team_id)
    return OkResponse()


@router.get("/projects", response_model=ProjectList)
def my_projects(
    params: ListParams = Depends(list_params),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = projects.list_my_projects(db, user, params)
    return ProjectList(total=total, list=[project_out(p) for p in items])


@router.delete("/projects/{project_id}", response_model=OkResponse)
def exit_project(project_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership.exit_project(db, user, project_id)
    return OkResponse()
