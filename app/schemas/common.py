"""
Shared response schemas
"""
from pydantic import BaseModel


class Pagination(BaseModel):
    """Pagination block returned with list endpoints"""
    total: int
    skip: int
    limit: int
    has_more: bool

    @classmethod
    def build(cls, total: int, skip: int, limit: int) -> "Pagination":
        return cls(total=total, skip=skip, limit=limit, has_more=skip + limit < total)

