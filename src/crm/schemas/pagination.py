"""Pagination schemas for cursor-based pagination."""

import base64
from datetime import datetime
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response with cursor-based pagination.

    The cursor is an opaque string that encodes the position in the result set.
    Clients should treat it as an opaque token and pass it back to get the next page.
    """

    items: list[T]
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for fetching the next page. None if no more pages.",
    )
    has_more: bool = Field(
        default=False,
        description="Whether there are more items after this page.",
    )


def encode_cursor(created_at: datetime, id: UUID) -> str:
    """Encode the position of a row (newest-first ordering) as an opaque cursor.

    The row id breaks ties between rows created in the same microsecond.
    """
    raw = f"{created_at.isoformat()}|{id}"
    return base64.urlsafe_b64encode(raw.encode()).decode()


def decode_cursor(cursor: str) -> tuple[datetime, UUID]:
    """Decode a cursor produced by encode_cursor.

    Raises:
        ValueError: If cursor is invalid
    """
    try:
        raw = base64.urlsafe_b64decode(cursor.encode()).decode()
        created_at, _, id = raw.partition("|")
        return datetime.fromisoformat(created_at), UUID(id)
    except Exception as e:
        raise ValueError("Invalid cursor") from e
