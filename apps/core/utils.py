"""
Utility functions for LocalBiz
"""
import calendar
from datetime import date, datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Tuple

from django.utils import timezone

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def get_pagination(params: Mapping[str, Any]) -> Tuple[int, int, int]:
    """
    Read 1-based ``page`` and ``limit`` query parameters.
    Returns (page, limit, offset); garbage values fall back to the defaults.
    """
    try:
        page = int(params.get('page', 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(params.get('limit', DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE

    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def build_pagination_response(data: List[Any], total: int, page: int, limit: int) -> Dict:
    """
    Build the ``data`` + ``pagination`` part of a list response.
    """
    pages = (total + limit - 1) // limit if limit else 0
    return {
        "data": data,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": pages,
            "hasNext": page < pages,
            "hasPrev": page > 1,
        }
    }


def round_money(value) -> Decimal:
    """Round to whole currency units, half up."""
    return Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def local_day_bounds(day: date = None) -> Tuple[datetime, datetime]:
    """
    Aware [start, end) datetimes of a calendar day in the current time zone.
    """
    tz = timezone.get_current_timezone()
    day = day or timezone.localdate()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min), tz)
    return start, end


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def truncate_for_display(text: str, max_length: int = 100) -> str:
    """
    Truncate text for display purposes.
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
