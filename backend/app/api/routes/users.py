from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import list_params
from app.api.serializers import project_out, team_out, user_out
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import OkResponse
from app.schemas.projects import ProjectList
from app.schemas.teams import TeamList
from app.schemas.user import AddRoleRequest, UserCreate, UserList, UserOut
from app.services import roles, users
from app.services.pagination import ListParams

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=UserOut)
def create_user(data: UserCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = users.create_user(db, actor, data.username, data.password)
    return user_out(db, user)


@router.get("", response_model=UserList)
def list_users(
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = users.list_users(db, actor, params)
    return UserList(total=total, list=[user_out(db, u) for u in items])


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return user_out(db, users.get_user(db, actor, user_id))


@router.delete("/{user_id}", response_model=OkResponse)
def delete_user(user_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    users.delete_user(db, actor, user_id)
    return OkResponse()


@router.get("/{user_id}/teams", response_model=TeamList)
def user_teams(
    user_id: int,
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = users.list_user_teams(db, actor, user_id, params)
    return TeamList(total=total, list=[team_out(db, t) for t in items])


@router.get("/{user_id}/projects", response_model=ProjectList)
def user_projects(
    user_id: int,
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = users.list_user_projects(db, actor, user_id, params)
    return ProjectList(total=total, list=[project_out(p) for p in items])


@router.post("/{user_id}/roles", response_model=UserOut)
def add_role(
    user_id: int,
    data: AddRoleRequest,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    roles.assign_role(db, actor, user_id, data.role_id)
    return user_out(db, db.get(User, user_id))


@router.delete("/{user_id}/roles/{role_id}", response_model=OkResponse)
def remove_role(user_id: int, role_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    roles.revoke_role(db, actor, user_id, role_id)
    return OkResponse()
