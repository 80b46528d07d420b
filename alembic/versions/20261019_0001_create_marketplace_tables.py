# mypy: ignore-errors
"""
Migration Alembic initiale de la marketplace.

Crée les tables des utilisateurs, entreprises, revendications, types de séances, séances,
réservations, coachs personnels et réservations de coachs.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_update: bool = True) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(), nullable=False)]
    if with_update:
        cols.append(sa.Column("updated_at", sa.DateTime(), nullable=False))
    return cols


def upgrade() -> None:
    """Crée toutes les tables de la marketplace et leurs index."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=255), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=True, unique=True),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("profile_image_url", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="user"),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "businesses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("postcode", sa.String(length=32), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("website", sa.String(length=1024), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("facebook_url", sa.String(length=1024), nullable=True),
        sa.Column("instagram_url", sa.String(length=1024), nullable=True),
        sa.Column("twitter_url", sa.String(length=1024), nullable=True),
        sa.Column("youtube_url", sa.String(length=1024), nullable=True),
        sa.Column("business_type", sa.String(length=64), nullable=True),
        sa.Column("specialties", sa.JSON(), nullable=False),
        sa.Column("age_ranges", sa.JSON(), nullable=False),
        sa.Column("difficulty_levels", sa.JSON(), nullable=False),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("claimed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manually_added", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("subscription_tier", sa.String(length=32), nullable=False, server_default="free"),
        sa.Column("booking_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("subscription_expiry", sa.DateTime(), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_businesses_user_id", "businesses", ["user_id"])
    op.create_index(
        "ix_businesses_stripe_subscription_id", "businesses", ["stripe_subscription_id"]
    )

    op.create_table(
        "session_types",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(with_update=False),
    )

    op.create_table(
        "fitness_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column(
            "session_type_id", sa.Integer(), sa.ForeignKey("session_types.id"), nullable=False
        ),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.JSON(), nullable=False),
        sa.Column("age_groups", sa.JSON(), nullable=False),
        sa.Column("gender", sa.String(length=32), nullable=False, server_default="mixed"),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("schedule", sa.JSON(), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_fitness_sessions_business_id", "fitness_sessions", ["business_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "session_id", sa.Integer(), sa.ForeignKey("fitness_sessions.id"), nullable=False
        ),
        sa.Column("session_date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="confirmed"),
        sa.Column("payment_intent_id", sa.String(length=255), nullable=True, unique=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("special_requirements", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("ix_bookings_session_date", "bookings", ["session_id", "session_date"])

    op.create_table(
        "business_claims",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("business_id", sa.Integer(), sa.ForeignKey("businesses.id"), nullable=False),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("claim_message", sa.Text(), nullable=True),
        sa.Column("verification_documents", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_business_claims_business_id", "business_claims", ["business_id"])

    op.create_table(
        "personal_trainers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("specialties", sa.JSON(), nullable=False),
        sa.Column("certifications", sa.JSON(), nullable=False),
        sa.Column("experience", sa.Integer(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("profile_image_url", sa.String(length=1024), nullable=True),
        sa.Column("phone_number", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("preferred_times", sa.JSON(), nullable=False),
        sa.Column("session_types", sa.JSON(), nullable=False),
        sa.Column("travel_radius", sa.Integer(), nullable=True),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("booking_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_personal_trainers_user_id", "personal_trainers", ["user_id"])

    op.create_table(
        "trainer_bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=255), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "trainer_id", sa.Integer(), sa.ForeignKey("personal_trainers.id"), nullable=False
        ),
        sa.Column("session_date", sa.DateTime(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("session_type", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="confirmed"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("client_name", sa.String(length=255), nullable=False),
        sa.Column("client_email", sa.String(length=255), nullable=False),
        sa.Column("client_phone", sa.String(length=64), nullable=True),
        sa.Column("stripe_payment_intent_id", sa.String(length=255), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_trainer_bookings_user_id", "trainer_bookings", ["user_id"])
    op.create_index("ix_trainer_bookings_trainer_id", "trainer_bookings", ["trainer_id"])


def downgrade() -> None:
    """Supprime les tables dans l'ordre inverse des dépendances."""
    for table in (
        "trainer_bookings",
        "personal_trainers",
        "business_claims",
        "bookings",
        "fitness_sessions",
        "session_types",
        "businesses",
        "users",
    ):
        op.drop_table(table)
