# SQLAlchemy ORM models for the marketplace tables.
# Keep business logic out of models; listing rules live in listings.py and listing_query.py.
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_mixin

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps.

    Set by the application so ordering keeps sub-second precision on every backend;
    the server default only covers rows inserted outside the ORM.
    """
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )


class User(Base, TimestampMixin):
    """Marketplace account.

    Roles:
    - seeker: browses listings and keeps favorites
    - agent: publishes and manages their own listings
    - admin: moderates users and listings
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, index=True)
    company_name = Column(String(255), nullable=True)


class PropertyListing(Base, TimestampMixin):
    """Property advertised by an agent.

    Status values: draft, published, deleted, deactivated.
    "Deleting" only flips status to 'deleted'; rows are never removed.
    """
    __tablename__ = "property_listings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    property_type = Column(String(50), nullable=False)
    price = Column(Float, nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)
    amenities = Column(JSON, nullable=True)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)
    area = Column(Float, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default="published")
    published_at = Column(DateTime(timezone=True), nullable=True)

    # Search always filters on status; sorts by price or published_at
    __table_args__ = (
        Index("ix_property_listings_status_published_at", "status", "published_at"),
        Index("ix_property_listings_status_price", "status", "price"),
        Index("ix_property_listings_city", "city"),
    )


class PropertyImage(Base):
    """Image attached to a listing; rendered ascending by display_order, then id."""
    __tablename__ = "property_images"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_listing_id = Column(Integer, ForeignKey("property_listings.id"), nullable=False, index=True)
    image_url = Column(String(1024), nullable=False)
    alt_text = Column(String(255), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_property_images_listing_order", "property_listing_id", "display_order"),
    )


class ListingAudit(Base):
    """Append-only record of who touched a listing and which request fields were present."""
    __tablename__ = "listing_audits"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_listing_id = Column(Integer, ForeignKey("property_listings.id"), nullable=False, index=True)
    action = Column(String(20), nullable=False)
    change_details = Column(JSON, nullable=False, default=dict)
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    performed_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Inquiry(Base):
    """Message from a prospective buyer or renter about a listing."""
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    property_listing_id = Column(Integer, ForeignKey("property_listings.id"), nullable=False, index=True)
    sender_name = Column(String(255), nullable=False)
    sender_email = Column(String(255), nullable=False)
    sender_phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Favorite(Base):
    """Listing saved by a user."""
    __tablename__ = "favorites"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    property_listing_id = Column(Integer, ForeignKey("property_listings.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "property_listing_id", name="uq_favorites_user_listing"),
    )


class PasswordReset(Base):
    """Single-use password reset token; unusable after expires_at or once used."""
    __tablename__ = "password_resets"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reset_token = Column(String(128), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
