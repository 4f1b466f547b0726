# Search over published listings: untrusted query-string values -> filtered, sorted, paginated query.
# Every value reaches the database as a bound parameter; malformed numbers are dropped, never rejected.
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Query, Session

from . import models

logger = logging.getLogger("estatefinder.listings")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# LIMIT/OFFSET are bound as 64-bit integers; filters compare against 32-bit INTEGER columns
INT64_MAX = 2**63 - 1
INT32_MAX = 2**31 - 1
MAX_PAGE = INT64_MAX // MAX_LIMIT

SORT_KEYS = ("price_asc", "price_desc", "newest")
DEFAULT_SORT = "newest"

# Leading integer, like "2.5" -> 2 or "3rooms" -> 3
_LEADING_INT = re.compile(r"[+-]?\d+")


def _clean(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    val = str(val).strip()
    return val or None


def parse_int(val: Optional[str], max_abs: int = INT64_MAX) -> Optional[int]:
    """Leading integer of val, or None when there is none or it is out of range."""
    val = _clean(val)
    if val is None:
        return None
    match = _LEADING_INT.match(val)
    if match is None:
        return None
    num = int(match.group())
    if abs(num) > max_abs:
        return None
    return num


def parse_float(val: Optional[str]) -> Optional[float]:
    val = _clean(val)
    if val is None:
        return None
    try:
        num = float(val)
    except ValueError:
        return None
    return num if math.isfinite(num) else None


@dataclass
class ListingSearch:
    """Parsed search parameters; None means the predicate is omitted."""
    keywords: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    property_type: Optional[str] = None
    city: Optional[str] = None
    agent_id: Optional[int] = None
    sort: str = DEFAULT_SORT
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_params(cls, raw: Mapping[str, Optional[str]]) -> "ListingSearch":
        """
        Parse raw query-string values permissively.

        - Numbers read their leading integer ("2.5" -> 2); unparseable or out-of-range values are treated as absent.
        - page: default 1; non-numeric or <= 0 becomes 1; capped at MAX_PAGE so the offset fits 64 bits.
        - limit: default 10; non-numeric or <= 0 becomes 10; capped at MAX_LIMIT.
        - sort: unknown values fall back to 'newest'.
        """
        page = parse_int(raw.get("page"))
        if page is None or page <= 0:
            page = DEFAULT_PAGE
        page = min(page, MAX_PAGE)
        limit = parse_int(raw.get("limit"))
        if limit is None or limit <= 0:
            limit = DEFAULT_LIMIT
        limit = min(limit, MAX_LIMIT)

        sort = _clean(raw.get("sort"))
        if sort not in SORT_KEYS:
            sort = DEFAULT_SORT

        return cls(
            keywords=_clean(raw.get("keywords")),
            price_min=parse_float(raw.get("price_min")),
            price_max=parse_float(raw.get("price_max")),
            bedrooms=parse_int(raw.get("bedrooms"), INT32_MAX),
            bathrooms=parse_int(raw.get("bathrooms"), INT32_MAX),
            property_type=_clean(raw.get("property_type")),
            city=_clean(raw.get("city")),
            agent_id=parse_int(raw.get("agent_id"), INT32_MAX),
            sort=sort,
            page=page,
            limit=limit,
        )


def primary_image_url_column():
    """Correlated scalar subquery: URL of the listing's lowest display_order image, or NULL."""
    img = models.PropertyImage
    return (
        select(img.image_url)
        .where(img.property_listing_id == models.PropertyListing.id)
        .order_by(img.display_order.asc(), img.id.asc())
        .limit(1)
        .correlate(models.PropertyListing)
        .scalar_subquery()
        .label("primary_image_url")
    )


def build_search_query(db: Session, search: ListingSearch) -> Query:
    PL = models.PropertyListing
    q = db.query(PL, primary_image_url_column()).filter(PL.status == "published")

    if search.keywords is not None:
        q = q.filter(
            or_(
                PL.title.icontains(search.keywords, autoescape=True),
                PL.description.icontains(search.keywords, autoescape=True),
            )
        )
    if search.price_min is not None:
        q = q.filter(PL.price >= search.price_min)
    if search.price_max is not None:
        q = q.filter(PL.price <= search.price_max)
    if search.bedrooms is not None:
        q = q.filter(PL.bedrooms == search.bedrooms)
    if search.bathrooms is not None:
        q = q.filter(PL.bathrooms == search.bathrooms)
    if search.property_type is not None:
        q = q.filter(PL.property_type == search.property_type)
    if search.city is not None:
        q = q.filter(PL.city.icontains(search.city, autoescape=True))
    if search.agent_id is not None:
        q = q.filter(PL.agent_id == search.agent_id)

    # id breaks ties so repeated queries return the same slice
    if search.sort == "price_asc":
        q = q.order_by(PL.price.asc(), PL.id.asc())
    elif search.sort == "price_desc":
        q = q.order_by(PL.price.desc(), PL.id.desc())
    else:
        q = q.order_by(PL.published_at.desc(), PL.id.desc())

    return q.limit(search.limit).offset(search.offset)


def summary_row(listing: models.PropertyListing, primary_image_url: Optional[str]) -> Dict[str, Any]:
    row = {c.name: getattr(listing, c.name) for c in models.PropertyListing.__table__.columns}
    row["primary_image_url"] = primary_image_url
    return row


def search_listings(db: Session, search: ListingSearch) -> List[Dict[str, Any]]:
    """Run the search and return one dict per listing, including primary_image_url."""
    rows = [summary_row(listing, url) for listing, url in build_search_query(db, search).all()]
    logger.debug(
        "listings.search",
        extra={"sort": search.sort, "page": search.page, "limit": search.limit, "count": len(rows)},
    )
    return rows
