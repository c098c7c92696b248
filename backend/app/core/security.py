from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import PasswordChangeRequired, Unauthenticated
from app.db.session import get_db

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_session_token(user_id: int, session_id: str, credential_epoch: int, expires_at: datetime) -> str:
    to_encode = {
        "sub": str(user_id),
        "sid": session_id,
        "ver": credential_epoch,
        "exp": expires_at,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_session_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError:
        raise Unauthenticated("Invalid session")
    if payload.get("sub") is None or payload.get("sid") is None:
        raise Unauthenticated("Invalid session")
    return payload


def session_expiry() -> datetime:
    return datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MIN)


bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """Who is calling, resolved from a live session for the current request only."""

    user: "User"  # noqa: F821
    session_id: str
    must_change_password: bool


def _extract_token(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    if creds is not None and creds.scheme.lower() == "bearer":
        return creds.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_auth_context(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AuthContext:
    # imported here: services depend on this module for hashing
    from app.services.sessions import resolve_session

    token = _extract_token(request, creds)
    if not token:
        raise Unauthenticated()
    return resolve_session(db, token)


def get_active_context(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """A live session whose mandatory password change is done."""
    if ctx.must_change_password:
        raise PasswordChangeRequired()
    return ctx


def get_current_user(ctx: AuthContext = Depends(get_active_context)):
    return ctx.user
