"""
Données d'exemple pour une base de développement.

Insère le vocabulaire des types de séances, un administrateur, quelques entreprises approuvées
avec leurs séances et des fiches ajoutées manuellement (revendicables). Rejouable: les types
existants sont conservés et les entreprises ne sont insérées que si la table est vide.
"""

from __future__ import annotations

import argparse
from decimal import Decimal

import structlog

from myles.core.logging import setup_logging
from myles.core.settings import get_settings
from myles.domain.entities import Identity, Role, ScheduleSlot, SubscriptionTier
from myles.infra.repo.db import get_engine, get_session_factory
from myles.infra.repo.models import Base
from myles.infra.repo.uow import UnitOfWorkFactory, unit_of_work_factory

log = structlog.get_logger(__name__)

SESSION_TYPES = [
    ("Yoga", "Mindful movement and flexibility training"),
    ("HIIT", "High-intensity interval training"),
    ("Personal Training", "One-on-one fitness coaching"),
    ("Pilates", "Core strength and body alignment"),
    ("Boxing", "Combat sports training and fitness"),
    ("Spin Class", "Indoor cycling workouts"),
    ("Crossfit", "Functional fitness and strength training"),
    ("Swimming", "Aquatic fitness and technique training"),
]

ADMIN = Identity(user_id="admin_1", email="admin@myles.co.uk", first_name="Admin", last_name="User")

OWNERS = [
    Identity("user_1", "sarah.coach@example.com", "Sarah", "Johnson"),
    Identity("user_2", "mike.trainer@example.com", "Mike", "Thompson"),
]

OWNED_BUSINESSES = [
    {
        "name": "FitLife Studio",
        "description": "Premium fitness studio offering yoga, pilates and personal training.",
        "address": "45 High Street",
        "postcode": "SW1A 1AA",
        "phone": "020 7123 4567",
        "website": "https://fitlifestudio.co.uk",
        "business_type": "studio",
        "specialties": ["Yoga", "Pilates"],
        "age_ranges": ["all_ages"],
        "difficulty_levels": ["all_levels"],
        "latitude": Decimal("51.5014"),
        "longitude": Decimal("-0.1419"),
    },
    {
        "name": "Iron Temple Gym",
        "description": "Strength training, crossfit and boxing.",
        "address": "123 Brick Lane",
        "postcode": "E1 6SB",
        "phone": "020 7234 5678",
        "website": "https://irontemple.co.uk",
        "business_type": "gym",
        "specialties": ["Crossfit", "Boxing"],
        "age_ranges": ["18-25", "26-35"],
        "difficulty_levels": ["intermediate", "advanced"],
        "latitude": Decimal("51.5200"),
        "longitude": Decimal("-0.0710"),
    },
]

UNCLAIMED_BUSINESSES = [
    {
        "name": "Aqua Sports Centre",
        "description": "Aquatic facility with pools, spa and wellness programs.",
        "address": "78 Park Road",
        "postcode": "NW1 4SH",
        "phone": "020 7345 6789",
        "business_type": "leisure_centre",
        "specialties": ["Swimming"],
        "age_ranges": ["all_ages"],
        "difficulty_levels": ["all_levels"],
    },
    {
        "name": "Riverside Spin",
        "address": "9 Wharf Street",
        "postcode": "SE1 9PX",
        "business_type": "studio",
        "specialties": ["Spin Class"],
        "age_ranges": ["18-25", "26-35", "36-50"],
        "difficulty_levels": ["all_levels"],
    },
]

SESSIONS = [
    # (index entreprise, type, titre, difficulté, âges, prix, durée, places, créneaux)
    (0, "Yoga", "Morning Hatha Yoga", ["beginner"], ["26-35"], "25.00", 60, 15,
     [ScheduleSlot(1, "08:00", "09:00"), ScheduleSlot(3, "08:00", "09:00")]),
    (0, "Pilates", "Core Power Pilates", ["intermediate"], ["all_ages"], "30.00", 45, 12,
     [ScheduleSlot(2, "18:00", "18:45")]),
    (1, "Boxing", "Boxing Fundamentals", ["all_levels"], ["18-25"], "20.00", 60, 20,
     [ScheduleSlot(4, "19:00", "20:00")]),
]


def seed(uow_factory: UnitOfWorkFactory) -> dict[str, int]:
    """Insère les données d'exemple et retourne le nombre d'éléments créés par catégorie."""
    created = {"session_types": 0, "businesses": 0, "sessions": 0}
    with uow_factory() as uow:
        types = {}
        for name, description in SESSION_TYPES:
            existing = uow.session_types.get_by_name(name)
            if existing is None:
                existing = uow.session_types.create(name, description)
                created["session_types"] += 1
            types[name] = existing

        admin = uow.users.upsert(ADMIN)
        if admin.role != Role.ADMIN:
            uow.users.set_role(admin.id, Role.ADMIN)

        if uow.businesses.count() > 0:
            log.info("seed_businesses_skipped", reason="businesses table not empty")
            return created

        owned = []
        for owner, fields in zip(OWNERS, OWNED_BUSINESSES, strict=True):
            uow.users.upsert(owner, role=Role.BUSINESS)
            # Palier payant et approuvé: réservable
            owned.append(
                uow.businesses.create(
                    user_id=owner.user_id,
                    **fields,
                    approved=True,
                    claimed=True,
                    manually_added=False,
                    subscription_tier=SubscriptionTier.BASIC,
                    booking_enabled=True,
                )
            )
        for fields in UNCLAIMED_BUSINESSES:
            uow.businesses.create(
                user_id=None,
                **fields,
                approved=True,
                claimed=False,
                manually_added=True,
                subscription_tier=SubscriptionTier.FREE,
                booking_enabled=False,
            )
        created["businesses"] = len(owned) + len(UNCLAIMED_BUSINESSES)

        for index, type_name, title, difficulty, ages, price, duration, places, slots in SESSIONS:
            uow.sessions.create(
                business_id=owned[index].id,
                session_type_id=types[type_name].id,
                title=title,
                difficulty=difficulty,
                age_groups=ages,
                price=Decimal(price),
                duration=duration,
                max_participants=places,
                schedule=slots,
                approved=True,
            )
            created["sessions"] += 1
    return created


def main() -> None:
    """Point d'entrée: crée le schéma si demandé puis insère les données d'exemple."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    parser.add_argument("--create-schema", action="store_true", help="Run create_all first")
    args = parser.parse_args()

    setup_logging()
    settings = get_settings()
    engine = get_engine(args.database_url or settings.DATABASE_URL)
    if args.create_schema:
        Base.metadata.create_all(engine)
    created = seed(unit_of_work_factory(get_session_factory(engine)))
    log.info("seed_completed", **created)


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
