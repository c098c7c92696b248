from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import or_

from app.core.config import settings
from app.core.errors import InvalidOperation


@dataclass
class ListParams:
    page: int = 1
    page_size: int | None = None
    keyword: str | None = None
    name: str | None = None
    team_ids: list[int] = field(default_factory=list)
    role_names: list[str] = field(default_factory=list)
    leading: bool | None = None
    part_in: bool | None = None
    start_at: int | None = None
    end_at: int | None = None
    order_by: str | None = None

    @property
    def limit(self) -> int:
        size = self.page_size or settings.DEFAULT_PAGE_SIZE
        return max(1, min(size, settings.MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (max(1, self.page) - 1) * self.limit


def paginate(query, params: ListParams) -> tuple[int, list]:
    # total is taken after filters, before limit/offset
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.limit).all()
    return total, items


def apply_ordering(query, model, order_by: str | None, allowed: tuple[str, ...] = ("id", "name", "created_at", "updated_at")):
    """
    ``order_by`` accepts ``field``, ``-field``, ``field asc`` or ``field desc``.
    The primary key is always appended so pages stay stable.
    """
    if not order_by:
        return query.order_by(model.id.asc())

    raw = order_by.strip()
    descending = raw.startswith("-")
    raw = raw.lstrip("-")
    parts = raw.split()
    name = parts[0] if parts else ""
    if len(parts) > 1:
        descending = parts[1].lower() == "desc"

    if name not in allowed:
        raise InvalidOperation(f"Unsupported order_by: {order_by}")

    column = getattr(model, name)
    if descending:
        return query.order_by(column.desc(), model.id.desc())
    return query.order_by(column.asc(), model.id.asc())


def substring_match(text: str, *columns):
    """Case-insensitive literal substring match on any of ``columns``; ``%`` and ``_`` are not wildcards."""
    escaped = text.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(*(column.ilike(pattern, escape="\\") for column in columns))
