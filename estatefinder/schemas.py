# Pydantic models (request/response DTOs) used by the API layer and the Python client.
# Request bodies keep required fields Optional: presence is checked by the handlers so a
# missing field yields the API's own 400 message instead of a schema error.
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# User roles within the system
Role = Literal["seeker", "agent", "admin"]
ListingStatus = Literal["draft", "published", "deleted", "deactivated"]


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
    return v


# ----------------
# Auth and users
# ----------------
class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None

    # Emails are case-sensitive as stored; only surrounding whitespace is dropped
    @field_validator("email", "first_name", "last_name", "role", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip(v)


class PasswordResetRequest(BaseModel):
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return _strip(v)


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    company_name: Optional[str] = None


# Public profile; never carries the password hash
class UserRead(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: Role
    company_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    token: str
    user: UserRead


# Identity decoded from a bearer token
class CurrentUser(BaseModel):
    id: int
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# ----------------
# Listings
# ----------------
class ImageIn(BaseModel):
    image_url: str = Field(..., min_length=1)
    alt_text: Optional[str] = None
    display_order: Optional[int] = None


class ListingPayload(BaseModel):
    """Body for both create and update.

    Field presence matters: the audit trail records which top-level keys were sent.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    property_type: Optional[str] = None
    price: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    zip_code: Optional[str] = None
    amenities: Optional[List[str]] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    images: Optional[List[ImageIn]] = None
    # Sent by the listing form (draft/published); the server always publishes
    status: Optional[str] = None


class ModerationRequest(BaseModel):
    status: Literal["published", "deactivated"]


class ImageRead(BaseModel):
    id: int
    property_listing_id: int
    image_url: str
    alt_text: Optional[str] = None
    display_order: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ListingRead(BaseModel):
    id: int
    agent_id: int
    title: str
    description: str
    property_type: str
    price: float
    address: str
    city: str
    zip_code: str
    amenities: Optional[List[str]] = None
    bedrooms: int
    bathrooms: int
    area: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: ListingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Search result row: listing plus the URL of its first image
class ListingSummary(ListingRead):
    primary_image_url: Optional[str] = None


# Read model for the detail page
class ListingDetail(ListingRead):
    images: List[ImageRead] = []
    agent: Optional[UserRead] = None


# ----------------
# Inquiries and favorites
# ----------------
class InquiryCreate(BaseModel):
    property_listing_id: Optional[int] = None
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    sender_phone: Optional[str] = None
    message: Optional[str] = None

    @field_validator("sender_name", "sender_email", "message", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class InquiryRead(BaseModel):
    id: int
    property_listing_id: int
    sender_name: str
    sender_email: str
    sender_phone: Optional[str] = None
    message: str
    is_read: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FavoriteCreate(BaseModel):
    property_listing_id: Optional[int] = None


class FavoriteRead(BaseModel):
    id: int
    user_id: int
    property_listing_id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
