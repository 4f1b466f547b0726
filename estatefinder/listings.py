# Listing read model and mutations (create / update / soft delete / moderation).
# Each mutation commits once: the listing row, its images and the audit entry land together or not at all.
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .errors import Forbidden, NotFound, ValidationError
from .listing_query import primary_image_url_column, summary_row
from .models import utcnow

logger = logging.getLogger("estatefinder.listings")

REQUIRED_FIELDS = (
    "title",
    "description",
    "property_type",
    "price",
    "address",
    "city",
    "zip_code",
    "bedrooms",
    "bathrooms",
    "area",
)

# Scalar fields merged on update: a truthy value overwrites, anything falsy keeps the stored value
MERGE_FIELDS = REQUIRED_FIELDS + ("latitude", "longitude")


def _is_blank(val: Any) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


def _fields_present(payload: schemas.ListingPayload) -> List[str]:
    # Keys the client actually sent (including explicit nulls), in declaration order
    return list(payload.model_dump(exclude_unset=True).keys())


def _add_images(db: Session, listing_id: int, images: Iterable[schemas.ImageIn]) -> None:
    for img in images:
        db.add(
            models.PropertyImage(
                property_listing_id=listing_id,
                image_url=img.image_url,
                alt_text=img.alt_text or None,
                display_order=img.display_order or 0,
            )
        )


def _audit(db: Session, listing_id: int, action: str, details: Dict[str, Any], user_id: int) -> None:
    db.add(
        models.ListingAudit(
            property_listing_id=listing_id,
            action=action,
            change_details=details,
            performed_by=user_id,
        )
    )


def get_listing(db: Session, listing_id: int) -> models.PropertyListing:
    listing = db.get(models.PropertyListing, listing_id)
    if listing is None:
        raise NotFound("Property listing not found")
    return listing


def _owned_listing(db: Session, listing_id: int, user: schemas.CurrentUser, verb: str) -> models.PropertyListing:
    listing = get_listing(db, listing_id)
    if listing.agent_id != user.id:
        raise Forbidden(f"You are not authorized to {verb} this listing")
    return listing


def get_listing_detail(db: Session, listing_id: int) -> schemas.ListingDetail:
    """
    Compose the detail read model: listing fields + ordered images + the agent's public profile.

    Status is not checked, so deleted or deactivated listings stay readable by id.
    """
    listing = get_listing(db, listing_id)
    images = (
        db.query(models.PropertyImage)
        .filter(models.PropertyImage.property_listing_id == listing.id)
        .order_by(models.PropertyImage.display_order.asc(), models.PropertyImage.id.asc())
        .all()
    )
    agent = db.get(models.User, listing.agent_id)

    base = schemas.ListingRead.model_validate(listing).model_dump()
    return schemas.ListingDetail(
        **base,
        images=[schemas.ImageRead.model_validate(img) for img in images],
        agent=schemas.UserRead.model_validate(agent) if agent is not None else None,
    )


def create_listing(db: Session, payload: schemas.ListingPayload, user: schemas.CurrentUser) -> models.PropertyListing:
    """
    Create a listing owned by the calling agent.

    The listing is always published immediately; any client-supplied status is ignored.
    """
    missing = [f for f in REQUIRED_FIELDS if _is_blank(getattr(payload, f))]
    if missing:
        raise ValidationError("Missing required property listing fields")
    if payload.price <= 0:
        raise ValidationError("Price must be greater than zero")

    now = utcnow()
    listing = models.PropertyListing(
        agent_id=user.id,
        title=payload.title,
        description=payload.description,
        property_type=payload.property_type,
        price=payload.price,
        address=payload.address,
        city=payload.city,
        zip_code=payload.zip_code,
        amenities=list(payload.amenities) if payload.amenities is not None else None,
        bedrooms=payload.bedrooms,
        bathrooms=payload.bathrooms,
        area=payload.area,
        latitude=payload.latitude,
        longitude=payload.longitude,
        status="published",
        created_at=now,
        updated_at=now,
        published_at=now,
    )
    try:
        db.add(listing)
        db.flush()  # assigns listing.id for the child rows
        _add_images(db, listing.id, payload.images or [])
        _audit(db, listing.id, "created", {"fields_changed": _fields_present(payload)}, user.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)

    logger.info(
        "listings.created",
        extra={"listing_id": listing.id, "agent_id": user.id, "images": len(payload.images or [])},
    )
    return listing


def update_listing(
    db: Session, listing_id: int, payload: schemas.ListingPayload, user: schemas.CurrentUser
) -> models.PropertyListing:
    """
    Merge the payload into the caller's listing.

    Merge rules:
    - Scalar fields overwrite only when the supplied value is truthy (0, "" and null keep the stored value).
    - amenities overwrites whenever supplied, including an empty list.
    - images, when supplied (even empty), replace the whole image set.
    """
    listing = _owned_listing(db, listing_id, user, "update")
    # 0 means "keep the stored price"; a negative price is never stored
    if payload.price is not None and payload.price < 0:
        raise ValidationError("Price must be greater than zero")
    try:
        for field in MERGE_FIELDS:
            value = getattr(payload, field)
            if value:
                setattr(listing, field, value)
        if payload.amenities is not None:
            listing.amenities = list(payload.amenities)
        listing.updated_at = utcnow()

        if payload.images is not None:
            db.query(models.PropertyImage).filter(
                models.PropertyImage.property_listing_id == listing.id
            ).delete(synchronize_session=False)
            _add_images(db, listing.id, payload.images)

        _audit(db, listing.id, "updated", {"fields_changed": _fields_present(payload)}, user.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)

    logger.info(
        "listings.updated",
        extra={"listing_id": listing.id, "agent_id": user.id, "images_replaced": payload.images is not None},
    )
    return listing


def soft_delete_listing(db: Session, listing_id: int, user: schemas.CurrentUser) -> models.PropertyListing:
    """Flip status to 'deleted'. Images, favorites and inquiries are left in place."""
    listing = _owned_listing(db, listing_id, user, "delete")
    try:
        listing.status = "deleted"
        listing.updated_at = utcnow()
        _audit(db, listing.id, "deleted", {}, user.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)

    logger.info("listings.deleted", extra={"listing_id": listing.id, "agent_id": user.id})
    return listing


def moderate_listing(db: Session, listing_id: int, status: str, admin: schemas.CurrentUser) -> models.PropertyListing:
    """Admin status change between published and deactivated; no ownership check."""
    listing = get_listing(db, listing_id)
    if listing.status == "deleted":
        raise ValidationError("Deleted listings cannot be moderated")
    try:
        listing.status = status
        now = utcnow()
        if status == "published" and listing.published_at is None:
            listing.published_at = now
        listing.updated_at = now
        _audit(db, listing.id, "moderated", {"status": status}, admin.id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(listing)

    logger.info("listings.moderated", extra={"listing_id": listing.id, "status": status, "admin_id": admin.id})
    return listing


def list_agent_listings(db: Session, agent_id: int) -> List[Dict[str, Any]]:
    """All of an agent's listings that are not deleted, whatever their status."""
    PL = models.PropertyListing
    rows = (
        db.query(PL, primary_image_url_column())
        .filter(PL.agent_id == agent_id, PL.status != "deleted")
        .order_by(PL.updated_at.desc(), PL.id.desc())
        .all()
    )
    return [summary_row(listing, url) for listing, url in rows]


def list_all_listings(db: Session, status: Optional[str] = None) -> List[models.PropertyListing]:
    q = db.query(models.PropertyListing)
    if status:
        q = q.filter(models.PropertyListing.status == status)
    return q.order_by(models.PropertyListing.created_at.desc(), models.PropertyListing.id.desc()).all()
