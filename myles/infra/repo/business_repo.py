# ============================================================
# Module : myles/infra/repo/business_repo.py
# Objet  : Accès SQL aux entreprises et aux demandes de revendication.
# ============================================================

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from myles.domain.entities import (
    Business,
    BusinessClaim,
    ClaimDetails,
    ClaimStatus,
    SubscriptionTier,
)
from myles.infra.repo.models import BusinessClaimORM, BusinessORM
from myles.infra.repo.user_repo import UserRepo

# Champs du domaine dont le nom de colonne diffère
_BUSINESS_COLUMNS = {"subscription_id": "stripe_subscription_id"}


def to_business(row: BusinessORM) -> Business:
    return Business(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        description=row.description,
        address=row.address,
        postcode=row.postcode,
        phone=row.phone,
        website=row.website,
        email=row.email,
        facebook_url=row.facebook_url,
        instagram_url=row.instagram_url,
        twitter_url=row.twitter_url,
        youtube_url=row.youtube_url,
        business_type=row.business_type,
        specialties=list(row.specialties or []),
        age_ranges=list(row.age_ranges or []),
        difficulty_levels=list(row.difficulty_levels or []),
        amenities=list(row.amenities or []),
        latitude=row.latitude,
        longitude=row.longitude,
        approved=bool(row.approved),
        claimed=bool(row.claimed),
        manually_added=bool(row.manually_added),
        subscription_tier=SubscriptionTier(row.subscription_tier),
        booking_enabled=bool(row.booking_enabled),
        subscription_expiry=row.subscription_expiry,
        subscription_id=row.stripe_subscription_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def to_claim(row: BusinessClaimORM) -> BusinessClaim:
    return BusinessClaim(
        id=row.id,
        business_id=row.business_id,
        user_id=row.user_id,
        claim_message=row.claim_message,
        verification_documents=list(row.verification_documents or []),
        status=ClaimStatus(row.status),
        admin_notes=row.admin_notes,
        approved_at=row.approved_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _plain(value: Any) -> Any:
    # Les enums str sont stockés par valeur
    return getattr(value, "value", value)


class BusinessRepo:
    """Dépôt des entreprises."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, business_id: int, for_update: bool = False) -> BusinessORM | None:
        stmt = select(BusinessORM).where(BusinessORM.id == business_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> Business:
        row = BusinessORM(**{_BUSINESS_COLUMNS.get(k, k): _plain(v) for k, v in fields.items()})
        self._session.add(row)
        self._session.flush()
        return to_business(row)

    def get(self, business_id: int, for_update: bool = False) -> Business | None:
        row = self._row(business_id, for_update=for_update)
        return to_business(row) if row else None

    def get_many(self, business_ids: set[int]) -> dict[int, Business]:
        if not business_ids:
            return {}
        stmt = select(BusinessORM).where(BusinessORM.id.in_(business_ids))
        return {r.id: to_business(r) for r in self._session.execute(stmt).scalars()}

    def get_by_subscription_id(self, subscription_id: str, for_update: bool = False) -> Business | None:
        stmt = select(BusinessORM).where(BusinessORM.stripe_subscription_id == subscription_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = self._session.execute(stmt).scalars().first()
        return to_business(row) if row else None

    def update(self, business_id: int, **fields: Any) -> Business:
        row = self._row(business_id)
        if row is None:
            raise KeyError(business_id)
        for key, value in fields.items():
            setattr(row, _BUSINESS_COLUMNS.get(key, key), _plain(value))
        self._session.flush()
        return to_business(row)

    def list_by_user(self, user_id: str) -> list[Business]:
        stmt = select(BusinessORM).where(BusinessORM.user_id == user_id).order_by(BusinessORM.id)
        return [to_business(r) for r in self._session.execute(stmt).scalars()]

    def list_unclaimed(self) -> list[Business]:
        stmt = (
            select(BusinessORM)
            .where(
                BusinessORM.claimed.is_(False),
                BusinessORM.manually_added.is_(True),
                BusinessORM.user_id.is_(None),
            )
            .order_by(BusinessORM.id)
        )
        return [to_business(r) for r in self._session.execute(stmt).scalars()]

    def list_pending(self) -> list[Business]:
        stmt = select(BusinessORM).where(BusinessORM.approved.is_(False)).order_by(BusinessORM.id)
        return [to_business(r) for r in self._session.execute(stmt).scalars()]

    def count(self, approved: bool | None = None) -> int:
        stmt = select(func.count()).select_from(BusinessORM)
        if approved is not None:
            stmt = stmt.where(BusinessORM.approved.is_(approved))
        return int(self._session.execute(stmt).scalar_one())


class BusinessClaimRepo:
    """Dépôt des demandes de revendication."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, claim_id: int, for_update: bool = False) -> BusinessClaimORM | None:
        stmt = select(BusinessClaimORM).where(BusinessClaimORM.id == claim_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def create(self, **fields: Any) -> BusinessClaim:
        row = BusinessClaimORM(**{k: _plain(v) for k, v in fields.items()})
        self._session.add(row)
        self._session.flush()
        return to_claim(row)

    def get(self, claim_id: int, for_update: bool = False) -> BusinessClaim | None:
        row = self._row(claim_id, for_update=for_update)
        return to_claim(row) if row else None

    def update(self, claim_id: int, **fields: Any) -> BusinessClaim:
        row = self._row(claim_id)
        if row is None:
            raise KeyError(claim_id)
        for key, value in fields.items():
            setattr(row, key, _plain(value))
        self._session.flush()
        return to_claim(row)

    def list_pending(self) -> list[BusinessClaim]:
        stmt = (
            select(BusinessClaimORM)
            .where(BusinessClaimORM.status == ClaimStatus.PENDING.value)
            .order_by(BusinessClaimORM.id)
        )
        return [to_claim(r) for r in self._session.execute(stmt).scalars()]

    def find_pending(self, business_id: int, user_id: str) -> BusinessClaim | None:
        stmt = select(BusinessClaimORM).where(
            BusinessClaimORM.business_id == business_id,
            BusinessClaimORM.user_id == user_id,
            BusinessClaimORM.status == ClaimStatus.PENDING.value,
        )
        row = self._session.execute(stmt).scalars().first()
        return to_claim(row) if row else None

    def list_pending_for_business(self, business_id: int) -> list[BusinessClaim]:
        stmt = (
            select(BusinessClaimORM)
            .where(
                BusinessClaimORM.business_id == business_id,
                BusinessClaimORM.status == ClaimStatus.PENDING.value,
            )
            .order_by(BusinessClaimORM.id)
            .with_for_update()
        )
        return [to_claim(r) for r in self._session.execute(stmt).scalars()]

    def count_pending(self) -> int:
        stmt = select(func.count()).select_from(BusinessClaimORM).where(
            BusinessClaimORM.status == ClaimStatus.PENDING.value
        )
        return int(self._session.execute(stmt).scalar_one())

    def hydrate(self, claims: list[BusinessClaim]) -> list[ClaimDetails]:
        """Assemble chaque demande avec son entreprise et son auteur (requêtes groupées)."""
        businesses = BusinessRepo(self._session).get_many({c.business_id for c in claims})
        users = UserRepo(self._session).get_many({c.user_id for c in claims})
        return [
            ClaimDetails(claim=c, business=businesses[c.business_id], user=users[c.user_id])
            for c in claims
            if c.business_id in businesses and c.user_id in users
        ]
