"""initial schema: users, listings, images, audits, inquiries, favorites, password resets

Revision ID: 3c8d1e2f9a10
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c8d1e2f9a10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "property_listings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("agent_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("property_type", sa.String(length=50), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("zip_code", sa.String(length=20), nullable=False),
        sa.Column("amenities", sa.JSON(), nullable=True),
        sa.Column("bedrooms", sa.Integer(), nullable=False),
        sa.Column("bathrooms", sa.Integer(), nullable=False),
        sa.Column("area", sa.Float(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_property_listings_id", "property_listings", ["id"])
    op.create_index("ix_property_listings_agent_id", "property_listings", ["agent_id"])
    op.create_index("ix_property_listings_status_published_at", "property_listings", ["status", "published_at"])
    op.create_index("ix_property_listings_status_price", "property_listings", ["status", "price"])
    op.create_index("ix_property_listings_city", "property_listings", ["city"])

    op.create_table(
        "property_images",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("property_listing_id", sa.Integer(), sa.ForeignKey("property_listings.id"), nullable=False),
        sa.Column("image_url", sa.String(length=1024), nullable=False),
        sa.Column("alt_text", sa.String(length=255), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _timestamp("created_at"),
    )
    op.create_index("ix_property_images_id", "property_images", ["id"])
    op.create_index("ix_property_images_property_listing_id", "property_images", ["property_listing_id"])
    op.create_index("ix_property_images_listing_order", "property_images", ["property_listing_id", "display_order"])

    op.create_table(
        "listing_audits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("property_listing_id", sa.Integer(), sa.ForeignKey("property_listings.id"), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("change_details", sa.JSON(), nullable=False),
        sa.Column("performed_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        _timestamp("performed_at"),
    )
    op.create_index("ix_listing_audits_id", "listing_audits", ["id"])
    op.create_index("ix_listing_audits_property_listing_id", "listing_audits", ["property_listing_id"])
    op.create_index("ix_listing_audits_performed_by", "listing_audits", ["performed_by"])

    op.create_table(
        "inquiries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("property_listing_id", sa.Integer(), sa.ForeignKey("property_listings.id"), nullable=False),
        sa.Column("sender_name", sa.String(length=255), nullable=False),
        sa.Column("sender_email", sa.String(length=255), nullable=False),
        sa.Column("sender_phone", sa.String(length=50), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index("ix_inquiries_id", "inquiries", ["id"])
    op.create_index("ix_inquiries_property_listing_id", "inquiries", ["property_listing_id"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("property_listing_id", sa.Integer(), sa.ForeignKey("property_listings.id"), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", "property_listing_id", name="uq_favorites_user_listing"),
    )
    op.create_index("ix_favorites_id", "favorites", ["id"])
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])
    op.create_index("ix_favorites_property_listing_id", "favorites", ["property_listing_id"])

    op.create_table(
        "password_resets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reset_token", sa.String(length=128), nullable=False),
        _timestamp("created_at"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_password_resets_id", "password_resets", ["id"])
    op.create_index("ix_password_resets_user_id", "password_resets", ["user_id"])
    op.create_index("ix_password_resets_reset_token", "password_resets", ["reset_token"], unique=True)


def downgrade() -> None:
    op.drop_table("password_resets")
    op.drop_table("favorites")
    op.drop_table("inquiries")
    op.drop_table("listing_audits")
    op.drop_table("property_images")
    op.drop_table("property_listings")
    op.drop_table("users")
