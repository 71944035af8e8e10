"""
List query helpers shared by the CRUD services.

Applies the search/sort/paginate parameters of ``ListParams`` to a
SQLAlchemy query and returns the page together with the total count.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query

from stockroom.core.dependencies import ListParams


def paginate(
    query: Query,
    params: ListParams,
    search_columns: Sequence = (),
    sort_columns: Dict[str, object] = None,
    default_sort: str = "created_at",
) -> Tuple[List, int]:
    """
    Filter, order and slice ``query``.

    Unknown sort fields fall back to ``default_sort``.

    Returns:
        (items, total) where total counts all matches before slicing
    """
    if params.search and search_columns:
        pattern = f"%{params.search.lower()}%"
        query = query.filter(
            or_(*[column.ilike(pattern) for column in search_columns])
        )

    total = query.count()

    sort_columns = sort_columns or {}
    column = sort_columns.get(params.sort) or sort_columns.get(default_sort)
    if column is not None:
        query = query.order_by(column.desc() if params.descending else column.asc())

    items = query.offset(params.offset).limit(params.limit).all()
    return items, total
