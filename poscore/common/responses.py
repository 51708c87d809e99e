"""
Response Envelope and Pagination

Every successful response has the shape ``{"data": ..., "meta": {...}}``.
Paginated lists put ``page``, ``limit`` and ``total`` in ``meta``; other
responses send an empty ``meta``. Bodies use camelCase keys on the wire.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, TypeVar

from fastapi import Query
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar('T')

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 25


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    """Success envelope."""
    data: T
    meta: Dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class Pagination:
    """Validated page/limit query parameters."""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> Dict[str, int]:
        return {"page": self.page, "limit": self.limit, "total": total}


def pagination_params(
    page: int = Query(DEFAULT_PAGE, ge=1, description="Page number, starting at 1"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, description="Items per page"),
) -> Pagination:
    """FastAPI dependency reading ``?page&limit``."""
    return Pagination(page=page, limit=limit)


def envelope(data: Any, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Wrap ``data`` in the success envelope."""
    return {"data": data, "meta": meta or {}}
