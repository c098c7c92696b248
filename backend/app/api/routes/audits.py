from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import list_params
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.audit import AuditList, AuditLogOut
from app.services import audit, roles
from app.services.pagination import ListParams

router = APIRouter(prefix="/api/audits", tags=["audits"])


@router.get("", response_model=AuditList)
def list_audits(
    params: ListParams = Depends(list_params),
    actor: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    roles.require_admin(db, actor)
    total, items = audit.list_entries(db, params)
    return AuditList(total=total, list=[AuditLogOut.model_validate(e) for e in items])
