from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import list_params
from app.api.serializers import project_out, user_out
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import OkResponse
from app.schemas.projects import ProjectOut, ProjectPatchOp, ProjectUpdate
from app.schemas.teams import MemberRequest
from app.schemas.user import UserList
from app.services import membership, projects
from app.services.pagination import ListParams

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return project_out(projects.get_project(db, actor, project_id))


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    data: ProjectUpdate,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project = projects.update_project(
        db, actor, project_id, name=data.name, description=data.desc, status=data.status
    )
    return project_out(project)


@router.patch("/{project_id}", response_model=ProjectOut)
def patch_project(
    project_id: int,
    ops: list[ProjectPatchOp],
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return project_out(projects.patch_project(db, actor, project_id, ops))


@router.delete("/{project_id}", response_model=OkResponse)
def delete_project(project_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    membership.delete_project(db, actor, project_id)
    return OkResponse()


@router.get("/{project_id}/users", response_model=UserList)
def project_users(
    project_id: int,
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    total, items = projects.list_project_users(db, actor, project_id, params)
    return UserList(total=total, list=[user_out(db, u) for u in items])


@router.post("/{project_id}/users", response_model=OkResponse)
def add_project_user(
    project_id: int,
    data: MemberRequest,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership.add_project_member(db, actor, project_id, data.user_id)
    return OkResponse()


@router.delete("/{project_id}/users/{user_id}", response_model=OkResponse)
def remove_project_user(
    project_id: int,
    user_id: int,
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    membership.remove_project_member(db, actor, project_id, user_id)
    return OkResponse()
