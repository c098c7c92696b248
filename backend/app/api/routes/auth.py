from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.api.serializers import user_out
from app.core.config import settings
from app.core.security import AuthContext, get_active_context
from app.db.session import get_db
from app.schemas.auth import LoginRequest
from app.schemas.common import OkResponse
from app.schemas.user import UserOut
from app.services import sessions

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=UserOut)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user, token = sessions.authenticate(
        db,
        data.password,
        username=data.username.strip() if data.username else None,
        email=data.email.strip() if data.email else None,
    )
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token,
        max_age=settings.JWT_EXPIRE_MIN * 60,
        httponly=True,
        samesite="lax",
    )
    return user_out(db, user)


@router.post("/logout", response_model=OkResponse)
def logout(response: Response, ctx: AuthContext = Depends(get_active_context), db: Session = Depends(get_db)):
    sessions.logout(db, ctx)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return OkResponse()
