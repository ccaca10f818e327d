"""Page/limit normalization and paginated result envelopes"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

RawValue = Optional[Union[str, int]]

_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


@dataclass(frozen=True)
class PaginationOptions:
    page: int
    limit: int
    skip: int


def _parse_int(value: RawValue) -> Optional[int]:
    """Leading integer of the value ("12abc" -> 12, "2.5" -> 2), None if there is none"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT_RE.match(str(value))
    return int(match.group(0)) if match else None


def normalize(raw_page: RawValue = None, raw_limit: RawValue = None, default_limit: int = DEFAULT_LIMIT) -> PaginationOptions:
    """
    Turn raw query values into bounded pagination options.

    Values are read from their leading integer, so "2.5" is 2 and "12abc" is 12.
    Unparseable or missing pages fall back to 1 and are clamped to >= 1.
    Unparseable, missing or zero limits fall back to ``default_limit``; the
    result is clamped to [1, MAX_LIMIT].
    """
    page = max(1, _parse_int(raw_page) or 1)
    limit = max(1, min(MAX_LIMIT, _parse_int(raw_limit) or default_limit))
    return PaginationOptions(page=page, limit=limit, skip=(page - 1) * limit)


def envelope(items: List[Any], total: int, options: PaginationOptions) -> Dict[str, Any]:
    """Wrap one page of items with pagination metadata"""
    total_pages = math.ceil(total / options.limit) if total > 0 else 0
    return {
        "data": items,
        "pagination": {
            "total": total,
            "page": options.page,
            "limit": options.limit,
            "totalPages": total_pages,
            "hasNextPage": options.page < total_pages,
            "hasPrevPage": options.page > 1,
        },
    }
