from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Text

from app.db.base import Base


class AuditLog(Base):
    """Append-only. Nothing in the app updates or deletes these rows."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, index=True, nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)
