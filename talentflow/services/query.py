"""
Query Engine - search, filter, sort and paginate a collection snapshot

Runs in memory over the records returned by `DocumentStore.snapshot()`, so
every page is computed from one consistent read of the collection.

Pipeline:
    1. Search: case-insensitive substring match on any of `search_fields`
    2. Filter: equality on named fields (None / "" filters are ignored)
    3. Sort: one of the fixed SortKey values; all sorts are stable
    4. Paginate: 1-based page, ceil(total / page_size) pages

Usage:
    params = QueryParams(search="engineer", filters={"status": "active"},
                         sort=SortKey.TITLE_ASC, page=1, page_size=10)
    page = run_query(jobs, params, search_fields=("title", "slug"))
"""

import math
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Sequence, Tuple, TypeVar

from talentflow.errors import InvalidInputError

T = TypeVar("T")


class SortKey(str, Enum):
    """Supported sort orders (values are the wire names)."""

    ORDER = "order"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"


@dataclass
class QueryParams:
    search: str = ""
    filters: Dict[str, Any] = field(default_factory=dict)
    sort: SortKey = SortKey.ORDER
    page: int = 1
    page_size: int = 10


@dataclass
class Page(Generic[T]):
    data: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int


def locale_key(text: str) -> Tuple[str, str]:
    """
    Collation key approximating a locale-aware comparison.

    Compares accent- and case-insensitively first ("émile" sorts with
    "emile", "apple" before "Banana"), then by the raw text so the
    ordering stays total.
    """
    decomposed = unicodedata.normalize("NFKD", text or "")
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text or ""


def parse_sort(value: str) -> SortKey:
    try:
        return SortKey(value or SortKey.ORDER.value)
    except ValueError:
        allowed = ", ".join(k.value for k in SortKey)
        raise InvalidInputError(f"Unknown sort '{value}' (expected one of: {allowed})")


def run_query(
    records: Sequence[T],
    params: QueryParams,
    search_fields: Sequence[str],
    natural_field: str = "order",
    natural_descending: bool = False,
    title_field: str = "title",
    date_field: str = "created_at",
) -> Page[T]:
    """
    Apply search, filters, sort and pagination to a snapshot.

    Args:
        records: Collection snapshot (any objects exposing the named attributes)
        params: Query parameters
        search_fields: Attributes matched by the free-text search
        natural_field: Attribute used by SortKey.ORDER
        natural_descending: Whether the natural order runs high-to-low
        title_field: Attribute used by the title sorts
        date_field: Attribute used by the date sorts

    Returns:
        Page with the requested slice, total match count and page count

    Raises:
        InvalidInputError: If page or page_size is not a positive integer
    """
    if params.page_size <= 0:
        raise InvalidInputError("pageSize must be a positive integer")
    if params.page <= 0:
        raise InvalidInputError("page must be a positive integer")

    matched = list(records)

    needle = (params.search or "").strip().casefold()
    if needle:
        matched = [
            r for r in matched
            if any(needle in str(getattr(r, f, "") or "").casefold() for f in search_fields)
        ]

    for name, expected in params.filters.items():
        if expected is None or expected == "":
            continue
        matched = [r for r in matched if getattr(r, name) == expected]

    sort = parse_sort(params.sort)
    matched = _sort(matched, sort, natural_field, natural_descending, title_field, date_field)

    total = len(matched)
    start = (params.page - 1) * params.page_size
    return Page(
        data=matched[start:start + params.page_size],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=math.ceil(total / params.page_size),
    )


def _sort(
    records: List[T],
    sort: SortKey,
    natural_field: str,
    natural_descending: bool,
    title_field: str,
    date_field: str,
) -> List[T]:
    # sorted() is stable, including with reverse=True
    if sort is SortKey.TITLE_ASC:
        return sorted(records, key=lambda r: locale_key(getattr(r, title_field)))
    if sort is SortKey.TITLE_DESC:
        return sorted(records, key=lambda r: locale_key(getattr(r, title_field)), reverse=True)
    if sort is SortKey.DATE_ASC:
        return sorted(records, key=lambda r: getattr(r, date_field))
    if sort is SortKey.DATE_DESC:
        return sorted(records, key=lambda r: getattr(r, date_field), reverse=True)
    return sorted(records, key=lambda r: getattr(r, natural_field), reverse=natural_descending)
