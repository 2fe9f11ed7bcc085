# Overview: Offset pagination shared by every list operation.

from __future__ import annotations

from typing import Callable

from ..validation import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def paginate(query, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, serialize: Callable | None = None) -> dict:
    """
    Run `query` for one page.

    Returns a dict with 'items', 'count' (items on this page) and
    'pagination' metadata. page/limit are clamped to their legal ranges.
    """
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    page = max(page or 1, 1)

    total = query.order_by(None).count()
    total_pages = (total + limit - 1) // limit if total > 0 else 1

    rows = query.offset((page - 1) * limit).limit(limit).all()
    serialize = serialize or (lambda row: row.to_dict())

    return {
        "items": [serialize(row) for row in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
