"""
Audit recorder.

``record`` is called by the engine only after the mutation it describes has
been committed, so a failed operation never leaves an entry behind.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.errors import InvalidOperation
from app.models.audit import AuditLog
from app.services.pagination import ListParams, paginate, substring_match

logger = logging.getLogger(__name__)

_ASC = (AuditLog.created_at.asc(), AuditLog.id.asc())
_DESC = (AuditLog.created_at.desc(), AuditLog.id.desc())

_ORDERINGS = {
    "created_at": _ASC,
    "created_at asc": _ASC,
    "-created_at": _DESC,
    "created_at desc": _DESC,
    "id": (AuditLog.id.asc(),),
    "id asc": (AuditLog.id.asc(),),
    "-id": (AuditLog.id.desc(),),
    "id desc": (AuditLog.id.desc(),),
}


def record(db: Session, actor, content: str) -> AuditLog:
    entry = AuditLog(actor_id=getattr(actor, "id", None), content=content)
    db.add(entry)
    db.commit()
    logger.info("audit: %s", content)
    return entry


def from_unix(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def list_entries(db: Session, params: ListParams) -> tuple[int, list[AuditLog]]:
    q = db.query(AuditLog)

    keyword = params.keyword or params.name
    if keyword:
        q = q.filter(substring_match(keyword, AuditLog.content))
    if params.start_at is not None:
        q = q.filter(AuditLog.created_at >= from_unix(params.start_at))
    if params.end_at is not None:
        # stored timestamps carry microseconds; the bound is a whole second, inclusive
        q = q.filter(AuditLog.created_at < from_unix(params.end_at + 1))

    ordering = _ORDERINGS.get((params.order_by or "created_at").strip().lower())
    if ordering is None:
        raise InvalidOperation(f"Unsupported order_by: {params.order_by}")

    return paginate(q.order_by(*ordering), params)
