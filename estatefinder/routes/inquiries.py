# Inquiry submission (open to guests) and the agent's inquiry inbox.
import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import listings, models, schemas
from ..db import get_db
from ..errors import ValidationError
from ..rate_limit import rate_limit
from .auth import require_agent

router = APIRouter()
logger = logging.getLogger("estatefinder.inquiries")


@router.post(
    "/inquiries",
    response_model=schemas.InquiryRead,
    dependencies=[Depends(rate_limit("write"))],
)
def create_inquiry(payload: schemas.InquiryCreate, db: Session = Depends(get_db)) -> models.Inquiry:
    if not (payload.property_listing_id and payload.sender_name and payload.sender_email and payload.message):
        raise ValidationError("Missing required inquiry fields")
    # Reject references to listings that do not exist
    listings.get_listing(db, payload.property_listing_id)

    obj = models.Inquiry(
        property_listing_id=payload.property_listing_id,
        sender_name=payload.sender_name,
        sender_email=payload.sender_email,
        sender_phone=payload.sender_phone or None,
        message=payload.message,
        is_read=False,
    )
    try:
        db.add(obj)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(obj)

    logger.info("inquiries.created", extra={"inquiry_id": obj.id, "listing_id": obj.property_listing_id})
    return obj


@router.get("/agent/inquiries", response_model=List[schemas.InquiryRead])
def list_agent_inquiries(
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(require_agent),
) -> List[models.Inquiry]:
    """Inquiries on any of the caller's listings, newest first. Not paginated."""
    return (
        db.query(models.Inquiry)
        .join(models.PropertyListing, models.PropertyListing.id == models.Inquiry.property_listing_id)
        .filter(models.PropertyListing.agent_id == user.id)
        .order_by(models.Inquiry.created_at.desc(), models.Inquiry.id.desc())
        .all()
    )


@router.get("/agent/listings", response_model=List[schemas.ListingSummary])
def list_agent_listings(
    db: Session = Depends(get_db),
    user: schemas.CurrentUser = Depends(require_agent),
):
    """The caller's own listings in every status except deleted, for the agent dashboard."""
    return listings.list_agent_listings(db, user.id)
