"""
Entités du domaine métier.

Ce module définit les objets de domaine de la marketplace (POPO) et les vocabulaires fermés
utilisés par les règles d'approbation et d'admission. Les relations sont exprimées par
identifiants; l'assemblage avec les entités liées passe par les objets `*Details` construits
explicitement par les dépôts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class Role(str, Enum):
    USER = "user"
    BUSINESS = "business"
    ADMIN = "admin"


class SubscriptionTier(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ClaimStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Gender(str, Enum):
    MIXED = "mixed"
    FEMALE_ONLY = "female_only"
    MALE_ONLY = "male_only"


ALL_LEVELS = "all_levels"
ALL_AGES = "all_ages"
DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced", ALL_LEVELS)
AGE_GROUPS = ("18-25", "26-35", "36-50", "50+", ALL_AGES)

# Seules transitions autorisées; tout statut absent des clés est terminal.
BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
}


@dataclass
class Identity:
    """Identité fournie par le fournisseur d'authentification (claims du jeton)."""

    user_id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None


@dataclass
class User:
    """Utilisateur authentifié; le rôle est muable et détenu par la base."""

    id: str
    email: str
    role: Role = Role.USER
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    payment_customer_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email


@dataclass
class Business:
    """
    Profil d'entreprise.

    Invariants
    - booking_enabled ⇒ subscription_tier ≠ free ∧ approved
    - claimed ⇒ user_id non nul
    """

    id: int
    name: str
    address: str
    postcode: str
    user_id: str | None = None
    description: str | None = None
    phone: str | None = None
    website: str | None = None
    email: str | None = None
    facebook_url: str | None = None
    instagram_url: str | None = None
    twitter_url: str | None = None
    youtube_url: str | None = None
    business_type: str | None = None
    specialties: list[str] = field(default_factory=list)
    age_ranges: list[str] = field(default_factory=list)
    difficulty_levels: list[str] = field(default_factory=list)
    amenities: list[str] = field(default_factory=list)
    latitude: Decimal | None = None
    longitude: Decimal | None = None
    approved: bool = False
    claimed: bool = False
    manually_added: bool = False
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    booking_enabled: bool = False
    subscription_expiry: datetime | None = None
    subscription_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_claimable(self) -> bool:
        return self.manually_added and not self.claimed and self.user_id is None


def derive_booking_enabled(tier: SubscriptionTier | str, approved: bool) -> bool:
    """Réservation possible seulement sur un palier payant d'une entreprise approuvée."""
    return SubscriptionTier(tier) != SubscriptionTier.FREE and bool(approved)


@dataclass
class SessionType:
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class ScheduleSlot:
    """Créneau hebdomadaire (0 = dimanche … 6 = samedi), heures au format HH:MM."""

    day_of_week: int
    start_time: str
    end_time: str


@dataclass
class FitnessSession:
    id: int
    business_id: int
    session_type_id: int
    title: str
    price: Decimal
    duration: int
    max_participants: int
    difficulty: list[str] = field(default_factory=list)
    age_groups: list[str] = field(default_factory=list)
    gender: Gender = Gender.MIXED
    schedule: list[ScheduleSlot] = field(default_factory=list)
    description: str | None = None
    approved: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class SessionDetails:
    """Séance hydratée avec son entreprise et son type."""

    session: FitnessSession
    business: Business
    session_type: SessionType

    @property
    def is_visible(self) -> bool:
        return self.session.approved and self.business.approved

    @property
    def is_bookable(self) -> bool:
        return self.is_visible and self.business.booking_enabled


@dataclass
class Booking:
    id: int
    user_id: str
    session_id: int
    session_date: datetime
    total_amount: Decimal
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_intent_id: str | None = None
    special_requirements: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class BookingDetails:
    booking: Booking
    session: SessionDetails


@dataclass
class BusinessClaim:
    id: int
    business_id: int
    user_id: str
    claim_message: str | None = None
    verification_documents: list[str] = field(default_factory=list)
    status: ClaimStatus = ClaimStatus.PENDING
    admin_notes: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ClaimDetails:
    claim: BusinessClaim
    business: Business
    user: User


@dataclass
class PersonalTrainer:
    """Profil de coach; `booking_enabled` est un drapeau administrateur direct."""

    id: int
    user_id: str
    first_name: str
    last_name: str
    specialties: list[str] = field(default_factory=list)
    bio: str | None = None
    certifications: list[str] = field(default_factory=list)
    experience: int | None = None
    hourly_rate: Decimal | None = None
    location: str | None = None
    profile_image_url: str | None = None
    phone_number: str | None = None
    email: str | None = None
    available_days: list[str] = field(default_factory=list)
    preferred_times: list[str] = field(default_factory=list)
    session_types: list[str] = field(default_factory=list)
    travel_radius: int | None = None
    approved: bool = False
    booking_enabled: bool = False
    featured: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class TrainerBooking:
    id: int
    user_id: str
    trainer_id: int
    session_date: datetime
    duration: int
    session_type: str
    total_amount: Decimal
    client_name: str
    client_email: str
    status: BookingStatus = BookingStatus.CONFIRMED
    location: str | None = None
    notes: str | None = None
    client_phone: str | None = None
    payment_intent_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class TrainerBookingDetails:
    booking: TrainerBooking
    trainer: PersonalTrainer


@dataclass
class SessionSearchFilters:
    """Filtres de recherche de séances, combinés en ET."""

    postcode: str | None = None
    session_type: str | None = None
    age_group: str | None = None
    difficulty: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None


@dataclass
class TrainerSearchFilters:
    search: str | None = None
    specialty: str | None = None
    location: str | None = None
    max_rate: Decimal | None = None


@dataclass
class MarketplaceStats:
    total_users: int
    total_businesses: int
    total_sessions: int
    pending_businesses: int
    pending_sessions: int
    pending_claims: int = 0
    pending_trainers: int = 0
