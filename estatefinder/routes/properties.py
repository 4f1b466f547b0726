# Property listing endpoints.
# Anyone can search published listings and read a listing by id; agents manage their own listings.
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import listings, schemas
from ..db import get_db
from ..listing_query import ListingSearch, search_listings
from ..rate_limit import rate_limit
from .auth import require_agent

router = APIRouter()


@router.get("/properties", response_model=List[schemas.ListingSummary])
def list_properties(
    keywords: Optional[str] = None,
    price_min: Optional[str] = None,
    price_max: Optional[str] = None,
    bedrooms: Optional[str] = None,
    bathrooms: Optional[str] = None,
    property_type: Optional[str] = None,
    city: Optional[str] = None,
    agent_id: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Search published listings.

    Parameters arrive as raw strings and are parsed permissively: a malformed number
    drops its filter instead of failing the request. No total count is returned.
    """
    search = ListingSearch.from_params(
        {
            "keywords": keywords,
            "price_min": price_min,
            "price_max": price_max,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "property_type": property_type,
            "city": city,
            "agent_id": agent_id,
            "sort": sort,
            "page": page,
            "limit": limit,
        }
    )
    return search_listings(db, search)


@router.get("/properties/{listing_id}", response_model=schemas.ListingDetail)
def get_property(listing_id: int, db: Session = Depends(get_db)) -> schemas.ListingDetail:
    return listings.get_listing_detail(db, listing_id)


@router.post(
    "/properties",
    response_model=schemas.ListingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def create_property(
    payload: schemas.ListingPayload,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(require_agent),
):
    return listings.create_listing(db, payload, user)


@router.put(
    "/properties/{listing_id}",
    response_model=schemas.ListingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_property(
    listing_id: int,
    payload: schemas.ListingPayload,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(require_agent),
):
    return listings.update_listing(db, listing_id, payload, user)


@router.delete(
    "/properties/{listing_id}",
    response_model=schemas.MessageResponse,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_property(
    listing_id: int,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(require_agent),
) -> schemas.MessageResponse:
    listings.soft_delete_listing(db, listing_id, user)
    return schemas.MessageResponse(message="Property listing deleted successfully.")
