from pydantic import BaseModel, ConfigDict
from datetime import datetime, timezone
from typing import Any


# ─── Strict request base ──────────────────────────────────────────────────────
class StrictRequest(BaseModel):
    """Request bodies reject unknown fields instead of merging them in."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ─── Error Response ───────────────────────────────────────────────────────────
class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    details: Any = None
    field: str | None = None


# ─── Helper Functions ─────────────────────────────────────────────────────────
def success_response(message: str, data: Any = None) -> dict:
    """Return a standardized success dict (used in route handlers)."""
    return {"success": True, "message": message, "data": data}


def paginated_response(
    message: str,
    items: list,
    total: int,
    page: int,
    page_size: int,
) -> dict:
    """Return a standardized paginated dict: data = {items, pagination}."""
    total_pages = (total + page_size - 1) // page_size if page_size > 0 else 0
    return {
        "success": True,
        "message": message,
        "data": {
            "items": items,
            "pagination": {
                "page":       page,
                "pageSize":   page_size,
                "totalItems": total,
                "totalPages": total_pages,
            },
        },
    }


# ─── Common Query Params ──────────────────────────────────────────────────────
class PaginationParams(BaseModel):
    page: int = 1
    pageSize: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.pageSize

    def clamp(self, max_page_size: int = 100) -> "PaginationParams":
        """Ensure pageSize doesn't exceed max."""
        self.pageSize = max(min(self.pageSize, max_page_size), 1)
        self.page     = max(self.page, 1)
        return self


# ─── Timestamps ───────────────────────────────────────────────────────────────
def iso_utc(value: datetime | None) -> str | None:
    """
    ISO-8601 in UTC with an explicit offset. SQLite hands back naive values
    for timezone-aware columns; those are stored in UTC, so they are tagged as such.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()
