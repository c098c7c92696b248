"""
Session manager: login, per-request session resolution, logout and
credential changes.

A token is only ever as good as its ``auth_sessions`` row. Nothing about
session validity is cached beyond the current request, so a password change
or logout is seen by the very next call.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.errors import InvalidOperation, NotFound, Unauthenticated
from app.core.security import (
    AuthContext,
    create_session_token,
    decode_session_token,
    hash_password,
    session_expiry,
    verify_password,
)
from app.models.auth_session import AuthSession
from app.models.user import User
from app.services import audit

logger = logging.getLogger(__name__)


def _find_principal(db: Session, username: str | None, email: str | None) -> User | None:
    # exact match on both; usernames are case-sensitive
    if username:
        return db.query(User).filter(User.username == username).first()
    if email:
        return db.query(User).filter(User.email == email).first()
    return None


def authenticate(db: Session, password: str, username: str | None = None, email: str | None = None) -> tuple[User, str]:
    """Check credentials and open a new session. Returns ``(user, token)``."""
    user = _find_principal(db, username, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("rejected login for principal %r", username or email)
        raise Unauthenticated("Invalid credentials")

    session = AuthSession(
        id=uuid.uuid4().hex,
        user_id=user.id,
        credential_epoch=user.credential_epoch,
        expires_at=session_expiry(),
    )
    db.add(session)
    db.commit()

    token = create_session_token(user.id, session.id, session.credential_epoch, session.expires_at)
    logger.info("user %s logged in (session %s)", user.id, session.id[:8])
    return user, token


def resolve_session(db: Session, token: str) -> AuthContext:
    payload = decode_session_token(token)

    session = db.query(AuthSession).filter(AuthSession.id == payload["sid"]).first()
    if session is None or session.revoked_at is not None:
        raise Unauthenticated("Session is no longer valid")
    if session.expires_at <= datetime.utcnow():
        raise Unauthenticated("Session expired")
    if str(session.user_id) != str(payload["sub"]):
        raise Unauthenticated("Invalid session")

    user = db.query(User).filter(User.id == session.user_id).first()
    if user is None:
        raise Unauthenticated("User not found")
    # a credential change after this session was opened kills it
    if session.credential_epoch != user.credential_epoch or payload.get("ver") != user.credential_epoch:
        raise Unauthenticated("Session invalidated by credential change")

    return AuthContext(user=user, session_id=session.id, must_change_password=bool(user.must_change_password))


def logout(db: Session, ctx: AuthContext) -> None:
    session = db.query(AuthSession).filter(AuthSession.id == ctx.session_id).first()
    if session is not None and session.revoked_at is None:
        session.revoked_at = datetime.utcnow()
        db.commit()
    logger.info("user %s logged out", ctx.user.id)


def revoke_all_sessions(db: Session, user_id: int) -> int:
    """Revoke every live session of a user. Caller commits."""
    now = datetime.utcnow()
    return (
        db.query(AuthSession)
        .filter(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
        .update({AuthSession.revoked_at: now}, synchronize_session=False)
    )


def change_password(db: Session, user: User, old_password: str, new_password: str) -> None:
    if not verify_password(old_password, user.password_hash):
        raise InvalidOperation("Old password does not match")

    user.password_hash = hash_password(new_password)
    user.credential_epoch = int(user.credential_epoch or 0) + 1
    user.must_change_password = False
    revoked = revoke_all_sessions(db, user.id)
    db.commit()

    logger.info("user %s changed password, %d session(s) revoked", user.id, revoked)
    audit.record(db, user, f"user {user.username} changed password")


def reset_password(db: Session, user_id: int, new_password: str) -> User:
    """Operator reset: new credential, forced change on next login, all sessions revoked."""
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFound("User not found")

    user.password_hash = hash_password(new_password)
    user.credential_epoch = int(user.credential_epoch or 0) + 1
    user.must_change_password = True
    revoke_all_sessions(db, user.id)
    db.commit()

    audit.record(db, None, f"operator reset password of user {user.username} (id={user.id})")
    return user
