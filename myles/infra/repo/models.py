"""SQLAlchemy models for the marketplace persistence layer."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class UserORM(Base):
    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    role = Column(String(32), nullable=False, default="user")
    stripe_customer_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class BusinessORM(Base):
    __tablename__ = "businesses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # nullable: entreprises ajoutées manuellement (non revendiquées)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    address = Column(Text, nullable=False)
    postcode = Column(String(32), nullable=False)
    phone = Column(String(64), nullable=True)
    website = Column(String(1024), nullable=True)
    email = Column(String(255), nullable=True)
    facebook_url = Column(String(1024), nullable=True)
    instagram_url = Column(String(1024), nullable=True)
    twitter_url = Column(String(1024), nullable=True)
    youtube_url = Column(String(1024), nullable=True)
    business_type = Column(String(64), nullable=True)
    specialties = Column(JSON, nullable=False, default=list)
    age_ranges = Column(JSON, nullable=False, default=list)
    difficulty_levels = Column(JSON, nullable=False, default=list)
    amenities = Column(JSON, nullable=False, default=list)
    latitude = Column(Numeric(10, 8), nullable=True)
    longitude = Column(Numeric(11, 8), nullable=True)
    approved = Column(Boolean, nullable=False, default=False)
    claimed = Column(Boolean, nullable=False, default=False)
    manually_added = Column(Boolean, nullable=False, default=False)
    subscription_tier = Column(String(32), nullable=False, default="free")
    booking_enabled = Column(Boolean, nullable=False, default=False)
    subscription_expiry = Column(DateTime, nullable=True)
    stripe_subscription_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class SessionTypeORM(Base):
    __tablename__ = "session_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class FitnessSessionORM(Base):
    __tablename__ = "fitness_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    session_type_id = Column(Integer, ForeignKey("session_types.id"), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    difficulty = Column(JSON, nullable=False)
    age_groups = Column(JSON, nullable=False)
    gender = Column(String(32), nullable=False, default="mixed")
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False)
    max_participants = Column(Integer, nullable=False)
    schedule = Column(JSON, nullable=False)
    approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class BookingORM(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("fitness_sessions.id"), nullable=False)
    session_date = Column(DateTime, nullable=False)
    status = Column(String(32), nullable=False, default="confirmed")
    payment_intent_id = Column(String(255), nullable=True, unique=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    special_requirements = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_bookings_session_date", "session_id", "session_date"),)


class BusinessClaimORM(Base):
    __tablename__ = "business_claims"

    id = Column(Integer, primary_key=True, autoincrement=True)
    business_id = Column(Integer, ForeignKey("businesses.id"), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    claim_message = Column(Text, nullable=True)
    verification_documents = Column(JSON, nullable=False, default=list)
    status = Column(String(32), nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PersonalTrainerORM(Base):
    __tablename__ = "personal_trainers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    specialties = Column(JSON, nullable=False)
    certifications = Column(JSON, nullable=False, default=list)
    experience = Column(Integer, nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=True)
    location = Column(String(255), nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    phone_number = Column(String(64), nullable=True)
    email = Column(String(255), nullable=True)
    available_days = Column(JSON, nullable=False, default=list)
    preferred_times = Column(JSON, nullable=False, default=list)
    session_types = Column(JSON, nullable=False, default=list)
    travel_radius = Column(Integer, nullable=True)
    approved = Column(Boolean, nullable=False, default=False)
    booking_enabled = Column(Boolean, nullable=False, default=False)
    featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class TrainerBookingORM(Base):
    __tablename__ = "trainer_bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    trainer_id = Column(Integer, ForeignKey("personal_trainers.id"), nullable=False, index=True)
    session_date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)
    session_type = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(32), nullable=False, default="confirmed")
    notes = Column(Text, nullable=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(64), nullable=True)
    stripe_payment_intent_id = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
