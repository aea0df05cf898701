import math
from typing import List, Sequence, Tuple

from shopledger.errors import ValidationError
from shopledger.utils.dates import day_bounds


def paginate(query, f) -> Tuple[List, int]:
    """Runs `query` for the page described by filter `f`. Returns (rows, total)."""
    total = query.count()
    rows = query.offset(f.offset).limit(f.limit).all()
    return rows, total


def slice_page(rows: Sequence, f) -> Tuple[List, int]:
    """Same as paginate() for lists already filtered in Python."""
    return list(rows[f.offset:f.offset + f.limit]), len(rows)


def page_payload(items: List, total: int, f) -> dict:
    return {
        "items": items,
        "total": total,
        "page": f.page,
        "total_pages": math.ceil(total / f.limit),
    }


def filter_dates(query, column, f):
    if f.start_date and f.end_date and f.start_date > f.end_date:
        raise ValidationError("start_date must not be after end_date")

    start, end = day_bounds(f.start_date, f.end_date)
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query
