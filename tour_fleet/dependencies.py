from datetime import date
from fastapi import Header, Query
from typing import NamedTuple

from tour_fleet.config import settings
from tour_fleet.schemas.common import PaginationParams
from tour_fleet.utils.exceptions import ValidationException


# ─── Actor ────────────────────────────────────────────────────────────────────
def get_actor(x_actor: str | None = Header(None, max_length=100)) -> str | None:
    """
    Name of whoever is acting, recorded in the audit trail.
    There is no authentication here; the calling workflow passes it through.
    """
    return x_actor.strip() if x_actor and x_actor.strip() else None


# ─── Pagination ───────────────────────────────────────────────────────────────
def get_pagination(
    page:     int = Query(1, ge=1),
    pageSize: int | None = Query(None, ge=1),
) -> PaginationParams:
    """
    Usage:
        @router.get("")
        def list_items(pagination: PaginationParams = Depends(get_pagination)):
            ...
    """
    params = PaginationParams(page=page, pageSize=pageSize or settings.DEFAULT_PAGE_SIZE)
    return params.clamp(settings.MAX_PAGE_SIZE)


# ─── Date range ───────────────────────────────────────────────────────────────
class DateRange(NamedTuple):
    dateFrom: date | None
    dateTo:   date | None


def get_date_range(
    dateFrom: date | None = Query(None, description="YYYY-MM-DD, inclusive"),
    dateTo:   date | None = Query(None, description="YYYY-MM-DD, inclusive"),
) -> DateRange:
    if dateFrom and dateTo and dateFrom > dateTo:
        raise ValidationException("dateFrom must not be after dateTo", field="dateFrom")
    return DateRange(dateFrom, dateTo)
