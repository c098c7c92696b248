from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.serializers import role_out
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import OkResponse
from app.schemas.user import RoleCreate, RoleList, RoleOut
from app.services import roles

router = APIRouter(prefix="/api/roles", tags=["roles"])


@router.get("", response_model=RoleList)
def list_roles(actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    total, items = roles.list_roles(db)
    return RoleList(total=total, list=[role_out(r) for r in items])


@router.post("", response_model=RoleOut)
def create_role(data: RoleCreate, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return role_out(roles.create_role(db, actor, data.name, data.desc))


@router.delete("/{role_id}", response_model=OkResponse)
def delete_role(role_id: int, actor: User = Depends(get_current_user), db: Session = Depends(get_db)):
    roles.delete_role(db, actor, role_id)
    return OkResponse()
