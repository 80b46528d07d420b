# Schémas Pydantic exposés par l'API (requêtes et réponses), sérialisés en camelCase.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from myles.domain.entities import (
    BookingDetails,
    BookingStatus,
    ClaimDetails,
    ClaimStatus,
    Gender,
    Role,
    SessionDetails,
    SubscriptionTier,
    TrainerBookingDetails,
)


class ApiModel(BaseModel):
    """Base commune: alias camelCase, lecture depuis les entités du domaine."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ---------------------------------------------------------------- réponses


class UserOut(ApiModel):
    id: str
    email: str
    role: Role
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None


class BusinessOut(ApiModel):
    id: int
    user_id: str | None = None
    name: str
    description: str | None = None
    address: str
    postcode: str
    phone: str | None = None
    website: str | None = None
    email: str | None = None
    facebook_url: str | None = None
    instagram_url: str | None = None
    twitter_url: str | None = None
    youtube_url: str | None = None
    business_type: str | None = None
    specialties: list[str] = []
    age_ranges: list[str] = []
    difficulty_levels: list[str] = []
    amenities: list[str] = []
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    approved: bool
    claimed: bool
    manually_added: bool
    subscription_tier: SubscriptionTier
    booking_enabled: bool
    subscription_expiry: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionTypeOut(ApiModel):
    id: int
    name: str
    description: str | None = None


class ScheduleSlotOut(ApiModel):
    day_of_week: int
    start_time: str
    end_time: str


class FitnessSessionOut(ApiModel):
    id: int
    business_id: int
    session_type_id: int
    title: str
    description: str | None = None
    difficulty: list[str]
    age_groups: list[str]
    gender: Gender
    price: Decimal
    duration: int
    max_participants: int
    schedule: list[ScheduleSlotOut]
    approved: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SessionDetailsOut(FitnessSessionOut):
    """Séance avec son entreprise et son type (références hydratées)."""

    business: BusinessOut
    session_type: SessionTypeOut

    @classmethod
    def build(cls, details: SessionDetails) -> SessionDetailsOut:
        base = FitnessSessionOut.model_validate(details.session).model_dump()
        return cls(
            **base,
            business=BusinessOut.model_validate(details.business),
            session_type=SessionTypeOut.model_validate(details.session_type),
        )


class BookingOut(ApiModel):
    id: int
    user_id: str
    session_id: int
    session_date: datetime
    status: BookingStatus
    payment_intent_id: str | None = None
    total_amount: Decimal
    special_requirements: str | None = None
    created_at: datetime | None = None


class BookingDetailsOut(BookingOut):
    session: SessionDetailsOut

    @classmethod
    def build(cls, details: BookingDetails) -> BookingDetailsOut:
        base = BookingOut.model_validate(details.booking).model_dump()
        return cls(**base, session=SessionDetailsOut.build(details.session))


class ClaimOut(ApiModel):
    id: int
    business_id: int
    user_id: str
    claim_message: str | None = None
    verification_documents: list[str] = []
    status: ClaimStatus
    admin_notes: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None


class ClaimDetailsOut(ClaimOut):
    business: BusinessOut
    user: UserOut

    @classmethod
    def build(cls, details: ClaimDetails) -> ClaimDetailsOut:
        base = ClaimOut.model_validate(details.claim).model_dump()
        return cls(
            **base,
            business=BusinessOut.model_validate(details.business),
            user=UserOut.model_validate(details.user),
        )


class TrainerOut(ApiModel):
    id: int
    user_id: str
    first_name: str
    last_name: str
    bio: str | None = None
    specialties: list[str]
    certifications: list[str] = []
    experience: int | None = None
    hourly_rate: Decimal | None = None
    location: str | None = None
    profile_image_url: str | None = None
    phone_number: str | None = None
    email: str | None = None
    available_days: list[str] = []
    preferred_times: list[str] = []
    session_types: list[str] = []
    travel_radius: int | None = None
    approved: bool
    booking_enabled: bool
    featured: bool
    created_at: datetime | None = None


class TrainerBookingOut(ApiModel):
    id: int
    user_id: str
    trainer_id: int
    session_date: datetime
    duration: int
    session_type: str
    location: str | None = None
    total_amount: Decimal
    status: BookingStatus
    notes: str | None = None
    client_name: str
    client_email: str
    client_phone: str | None = None
    payment_intent_id: str | None = None
    created_at: datetime | None = None


class TrainerBookingDetailsOut(TrainerBookingOut):
    trainer: TrainerOut

    @classmethod
    def build(cls, details: TrainerBookingDetails) -> TrainerBookingDetailsOut:
        base = TrainerBookingOut.model_validate(details.booking).model_dump()
        return cls(**base, trainer=TrainerOut.model_validate(details.trainer))


class StatsOut(ApiModel):
    total_users: int
    total_businesses: int
    total_sessions: int
    pending_businesses: int
    pending_sessions: int
    pending_claims: int
    pending_trainers: int


class PaymentIntentOut(ApiModel):
    client_secret: str
    payment_intent_id: str
    amount: Decimal
    fee: Decimal | None = None
    total: Decimal
    currency: str


class SubscriptionOut(ApiModel):
    business: BusinessOut
    subscription_id: str | None = None
    client_secret: str | None = None


# ---------------------------------------------------------------- requêtes


class ApprovalIn(ApiModel):
    approved: bool


class BookingEnabledIn(ApiModel):
    booking_enabled: bool


class UpgradeIn(ApiModel):
    tier: str


class ClaimIn(ApiModel):
    claim_message: str | None = None
    verification_documents: list[str] = Field(default_factory=list)


class DecideClaimIn(ApiModel):
    approve: bool
    admin_notes: str | None = None


class StatusIn(ApiModel):
    status: str


class SessionTypeIn(ApiModel):
    name: str
    description: str | None = None


class RoleIn(ApiModel):
    role: str


class PaymentIntentIn(ApiModel):
    """Demande d'autorisation: séance (`sessionId`) ou coach (`trainerId` + `duration`)."""

    session_id: int | None = None
    trainer_id: int | None = None
    duration: int | None = Field(default=None, ge=15)
    amount: Decimal | None = Field(default=None, ge=0)
