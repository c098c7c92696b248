import logging

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.roles import KIND_SYSTEM, ROLE_ADMIN, SYSTEM_ROLES
from app.core.security import hash_password
from app.db.base import Base
from app.db.session import SessionLocal, engine

# registers the models on Base.metadata before create_all
import app.models  # noqa: F401
from app.models.user import Role, User, UserRole

logger = logging.getLogger(__name__)


def seed_system(db: Session) -> User:
    """Seed the System roles and the designated admin account. Idempotent."""
    roles = {r.name: r for r in db.query(Role).filter(Role.name.in_(SYSTEM_ROLES)).all()}
    for name in SYSTEM_ROLES:
        if name not in roles:
            roles[name] = Role(name=name, kind=KIND_SYSTEM)
            db.add(roles[name])
    db.flush()

    admin = db.query(User).filter_by(username=settings.ADMIN_USERNAME).first()
    if admin is None:
        admin = User(
            username=settings.ADMIN_USERNAME,
            password_hash=hash_password(settings.ADMIN_INITIAL_PASSWORD),
            must_change_password=True,
            is_protected=True,
        )
        db.add(admin)
        db.flush()
        logger.info("seeded admin account %r", admin.username)

    has_admin_role = (
        db.query(UserRole).filter_by(user_id=admin.id, role_id=roles[ROLE_ADMIN].id).first()
    )
    if not has_admin_role:
        db.add(UserRole(user_id=admin.id, role_id=roles[ROLE_ADMIN].id))

    db.commit()
    return admin


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
    db = SessionLocal(bind=bind) if bind is not None else SessionLocal()
    try:
        seed_system(db)
    finally:
        db.close()
