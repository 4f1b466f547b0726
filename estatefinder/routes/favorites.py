# Saved listings for any authenticated user.
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import listings, models, schemas
from ..db import get_db
from ..errors import Forbidden, NotFound, ValidationError
from .auth import get_current_user

router = APIRouter()
logger = logging.getLogger("estatefinder.favorites")


def _find_favorite(db: Session, user_id: int, listing_id: int):
    return (
        db.query(models.Favorite)
        .filter(models.Favorite.user_id == user_id, models.Favorite.property_listing_id == listing_id)
        .first()
    )


@router.get("/favorites", response_model=List[schemas.FavoriteRead])
def list_favorites(
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(get_current_user),
) -> List[models.Favorite]:
    return (
        db.query(models.Favorite)
        .filter(models.Favorite.user_id == user.id)
        .order_by(models.Favorite.created_at.desc(), models.Favorite.id.desc())
        .all()
    )


@router.post("/favorites", response_model=schemas.FavoriteRead)
def add_favorite(
    payload: schemas.FavoriteCreate,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(get_current_user),
) -> models.Favorite:
    """Save a listing; saving it again returns the existing favorite."""
    if not payload.property_listing_id:
        raise ValidationError("property_listing_id is required")
    listings.get_listing(db, payload.property_listing_id)

    existing = _find_favorite(db, user.id, payload.property_listing_id)
    if existing is not None:
        return existing

    obj = models.Favorite(user_id=user.id, property_listing_id=payload.property_listing_id)
    try:
        db.add(obj)
        db.commit()
    except IntegrityError:
        # A concurrent request saved the same listing first
        db.rollback()
        existing = _find_favorite(db, user.id, payload.property_listing_id)
        if existing is None:
            raise
        return existing
    db.refresh(obj)

    logger.info("favorites.added", extra={"favorite_id": obj.id, "user_id": user.id})
    return obj


@router.delete("/favorites/{favorite_id}", response_model=schemas.MessageResponse)
def remove_favorite(
    favorite_id: int,
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(get_current_user),
) -> schemas.MessageResponse:
    obj = db.get(models.Favorite, favorite_id)
    if obj is None:
        raise NotFound("Favorite not found")
    if obj.user_id != user.id:
        raise Forbidden("You are not authorized to remove this favorite")

    try:
        db.delete(obj)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return schemas.MessageResponse(message="Favorite removed successfully.")
