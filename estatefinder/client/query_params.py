# Search filters <-> URL query string, so a search page can be bookmarked and restored.
# Parsing mirrors the server: malformed numbers are dropped instead of raising.
from typing import Optional, Union

import httpx
from pydantic import BaseModel

from ..listing_query import DEFAULT_LIMIT, DEFAULT_PAGE, INT32_MAX, SORT_KEYS, parse_float, parse_int


class SearchFilters(BaseModel):
    keywords: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    property_type: Optional[str] = None
    city: Optional[str] = None
    agent_id: Optional[int] = None
    sort: Optional[str] = None
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    def with_page(self, page: int) -> "SearchFilters":
        return self.model_copy(update={"page": max(page, 1)})


def _fmt(value) -> str:
    # 150000.0 -> "150000" keeps URLs tidy
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_query_params(filters: SearchFilters) -> httpx.QueryParams:
    """Only set filters are emitted; page/limit are omitted while at their defaults."""
    items = []
    for name, value in filters.model_dump().items():
        if value is None or value == "":
            continue
        if name == "page" and value == DEFAULT_PAGE:
            continue
        if name == "limit" and value == DEFAULT_LIMIT:
            continue
        items.append((name, _fmt(value)))
    return httpx.QueryParams(items)


def to_query_string(filters: SearchFilters) -> str:
    return str(to_query_params(filters))


def from_query_string(query: Union[str, httpx.QueryParams]) -> SearchFilters:
    params = query if isinstance(query, httpx.QueryParams) else httpx.QueryParams(query.lstrip("?"))

    def text(name: str) -> Optional[str]:
        value = params.get(name)
        return value.strip() if value and value.strip() else None

    page = parse_int(params.get("page"))
    limit = parse_int(params.get("limit"))
    sort = text("sort")
    return SearchFilters(
        keywords=text("keywords"),
        price_min=parse_float(params.get("price_min")),
        price_max=parse_float(params.get("price_max")),
        bedrooms=parse_int(params.get("bedrooms"), INT32_MAX),
        bathrooms=parse_int(params.get("bathrooms"), INT32_MAX),
        property_type=text("property_type"),
        city=text("city"),
        agent_id=parse_int(params.get("agent_id"), INT32_MAX),
        sort=sort if sort in SORT_KEYS else None,
        page=page if page and page > 0 else DEFAULT_PAGE,
        limit=limit if limit and limit > 0 else DEFAULT_LIMIT,
    )
