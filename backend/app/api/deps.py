from fastapi import Query

from app.services.pagination import ListParams


def list_params(
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    keyword: str | None = None,
    name: str | None = None,
    team_ids: list[int] = Query([], alias="team_id"),
    role_names: list[str] = Query([], alias="role_name"),
    leading: bool | None = None,
    part_in: bool | None = None,
    start_at: int | None = Query(None, ge=0),
    end_at: int | None = Query(None, ge=0),
    order_by: str | None = None,
) -> ListParams:
    """Common list query parameters; ``team_id`` and ``role_name`` repeat."""
    return ListParams(
        page=page,
        page_size=page_size,
        keyword=keyword,
        name=name,
        team_ids=team_ids,
        role_names=role_names,
        leading=leading,
        part_in=part_in,
        start_at=start_at,
        end_at=end_at,
        order_by=order_by,
    )
