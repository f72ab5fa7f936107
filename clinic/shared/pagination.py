import math

from pydantic import BaseModel


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


def paginate(query, page: int, limit: int) -> tuple[list, Pagination]:
    """Apply offset/limit to a query and return the page with its metadata"""
    page = max(page, 1)
    limit = max(limit, 1)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination(
        page=page, limit=limit, total=total, pages=math.ceil(total / limit) if total else 0
    )
