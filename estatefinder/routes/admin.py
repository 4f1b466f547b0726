# Admin moderation endpoints.
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import listings, models, schemas
from ..db import get_db
from .auth import require_admin

router = APIRouter()


@router.get("/admin/users", response_model=List[schemas.UserRead])
def list_users(
    db: Session = Depends(get_db),
    _: schemas.CurrentUser = Depends(require_admin),
) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.desc(), models.User.id.desc()).all()


@router.get("/admin/listings", response_model=List[schemas.ListingRead])
def list_all_listings(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    _: schemas.CurrentUser = Depends(require_admin),
) -> List[models.PropertyListing]:
    """Every listing regardless of status, optionally narrowed to one status."""
    return listings.list_all_listings(db, status)


@router.put("/admin/listings/{listing_id}", response_model=schemas.ListingRead)
def moderate_listing(
    listing_id: int,
    payload: schemas.ModerationRequest,
    db: Session = Depends(get_db),
    admin: schemas.CurrentUser = Depends(require_admin),
) -> models.PropertyListing:
    """Publish or deactivate any listing without the owner check agents are subject to."""
    return listings.moderate_listing(db, listing_id, payload.status, admin)
