"""
Helpers shared by the server-side table services.

Each table service builds a queryset, hands it to :func:`order_queryset`
with a map of allowed sort keys and finally slices it with
:func:`paginate`.  Unknown sort keys fall back to the table default so
a stale query string never breaks a page.
"""
from __future__ import annotations

import math
from typing import Callable, Iterable, Mapping

from django.db.models import QuerySet


def order_queryset(qs: QuerySet, sort_map: Mapping[str, str], sort_by: str, sort_order: str,
                   default: str) -> QuerySet:
    field = sort_map.get(sort_by or '', sort_map[default])
    prefix = '' if sort_order == 'asc' else '-'
    return qs.order_by(f'{prefix}{field}', f'{prefix}id')


def paginate(qs: QuerySet, page: int, page_size: int, row: Callable) -> dict:
    """Slice ``qs`` to one page and render each object with ``row``."""
    total = qs.count()
    start = (page - 1) * page_size
    items: Iterable = qs[start:start + page_size]
    return {
        'data': [row(obj) for obj in items],
        'pagination': {
            'total': total,
            'page': page,
            'pageSize': page_size,
            'pages': math.ceil(total / page_size) if total else 0,
        },
    }


def iso(value):
    return value.isoformat() if value else None
