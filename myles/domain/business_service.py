"""
Cycle de vie des entreprises.

Ce module orchestre l'inscription, l'approbation administrateur, la revendication des
fiches ajoutées manuellement et les changements de palier d'abonnement. Invariant maintenu à
chaque écriture: `booking_enabled ⇔ palier payant ∧ approved` (voir `derive_booking_enabled`).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog

from myles.app.metrics import APPROVALS_TOTAL, CLAIMS_TOTAL, SUBSCRIPTION_CHANGES_TOTAL
from myles.core.settings import MarketplaceConfig
from myles.domain import emails
from myles.domain.authz import require_admin, require_owner
from myles.domain.entities import (
    Business,
    BusinessClaim,
    ClaimDetails,
    ClaimStatus,
    Role,
    SubscriptionTier,
    User,
    derive_booking_enabled,
)
from myles.domain.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PaymentGatewayError,
    ValidationError,
)
from myles.domain.validation import BusinessInput, coerce
from myles.infra.notifications.base import Notifier
from myles.infra.payments.base import PaymentGateway, SubscriptionStatus, WebhookEvent
from myles.infra.payments.stripe_gateway import map_subscription_status, subscription_period_end
from myles.infra.repo.uow import UnitOfWorkFactory

log = structlog.get_logger(__name__)

SUBSCRIPTION_EVENTS = ("customer.subscription.updated", "customer.subscription.created")
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
SUPERSEDED_CLAIM_NOTE = "Another claim for this business was approved"


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


@dataclass
class SubscriptionUpgrade:
    business: Business
    client_secret: str | None = None
    subscription_id: str | None = None


class BusinessService:
    """Service métier du cycle de vie des entreprises.

    Dépendances:
    - uow_factory: fabrique d'unités de travail (une transaction par intention).
    - config: `MarketplaceConfig` (email admin, prix des paliers).
    - payments: passerelle de paiement (clients et abonnements).
    - notifier: transport d'emails, appelé après commit.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        config: MarketplaceConfig,
        payments: PaymentGateway,
        notifier: Notifier,
    ) -> None:
        self._uow = uow_factory
        self.config = config
        self.payments = payments
        self.notifier = notifier

    # ------------------------------------------------------------------ registration

    def register_business(
        self, owner_id: str, attributes: BusinessInput | Mapping[str, Any]
    ) -> Business:
        """Inscrit une entreprise en attente d'approbation et prévient l'administrateur."""
        data = coerce(BusinessInput, attributes)
        with self._uow() as uow:
            owner = uow.users.get(owner_id)
            if owner is None:
                raise NotFoundError("user_not_found")
            business = uow.businesses.create(
                user_id=owner_id,
                **data.model_dump(),
                approved=False,
                claimed=True,
                manually_added=False,
                subscription_tier=SubscriptionTier.FREE,
                booking_enabled=False,
            )
            if owner.role == Role.USER:
                owner = uow.users.set_role(owner_id, Role.BUSINESS) or owner
            uow.after_commit(
                self.notifier.deliver,
                emails.business_registered(self.config.admin_email, business, owner),
            )
        log.info("business_registered", business_id=business.id, owner_id=owner_id)
        return business

    def approve_business(self, admin: User | None, business_id: int, approved: bool) -> Business:
        """Fixe le drapeau d'approbation; idempotent. N'accorde jamais la réservation seul."""
        require_admin(admin)
        with self._uow() as uow:
            current = uow.businesses.get(business_id, for_update=True)
            if current is None:
                raise NotFoundError("business_not_found")
            business = uow.businesses.update(
                business_id,
                approved=approved,
                booking_enabled=derive_booking_enabled(current.subscription_tier, approved),
            )
            owner = uow.users.get(business.user_id) if business.user_id else None
            if owner is not None and owner.email:
                uow.after_commit(
                    self.notifier.deliver, emails.business_decision(owner.email, business, approved)
                )
        APPROVALS_TOTAL.labels(entity="business", decision="approved" if approved else "rejected").inc()
        log.info("business_approval_set", business_id=business_id, approved=approved)
        return business

    # ------------------------------------------------------------------ subscription

    def upgrade_subscription(
        self, owner_id: str, business_id: int, tier: SubscriptionTier | str
    ) -> SubscriptionUpgrade:
        """
        Change le palier d'abonnement d'une entreprise.

        `free` rétrograde immédiatement sans appel au fournisseur. Un palier payant crée
        l'abonnement chez le fournisseur puis active le palier de façon optimiste (le premier
        paiement est confirmé côté client avec le secret retourné; le webhook réconcilie).

        Raises:
            ValidationError: Palier inconnu.
            AuthorizationError: L'appelant n'est pas propriétaire.
            PaymentGatewayError: Prix non configuré ou échec fournisseur (rien n'est persisté).
        """
        try:
            target = SubscriptionTier(tier)
        except ValueError as exc:
            raise ValidationError({"tier": f"unknown tier: {tier}"}) from exc

        if target == SubscriptionTier.FREE:
            with self._uow() as uow:
                business = self._owned(uow, owner_id, business_id, for_update=True)
                business = uow.businesses.update(
                    business.id,
                    subscription_tier=SubscriptionTier.FREE,
                    booking_enabled=False,
                    subscription_expiry=None,
                    subscription_id=None,
                )
            SUBSCRIPTION_CHANGES_TOTAL.labels(tier=target.value, source="owner").inc()
            log.info("subscription_downgraded", business_id=business_id)
            return SubscriptionUpgrade(business=business)

        price_id = self.config.plan_price(target.value)
        if not price_id:
            raise PaymentGatewayError(f"plan_price_not_configured:{target.value}")

        with self._uow() as uow:
            self._owned(uow, owner_id, business_id)
            owner = uow.users.get(owner_id)
            if owner is None:
                raise NotFoundError("user_not_found")

        # Appels fournisseur hors transaction: un échec ne laisse aucune écriture
        customer_id = owner.payment_customer_id
        new_customer = customer_id is None
        if new_customer:
            customer_id = self.payments.ensure_customer(
                owner.email, owner.display_name, {"user_id": owner.id}
            )
        subscription = self.payments.create_subscription(customer_id, price_id)

        with self._uow() as uow:
            if new_customer:
                uow.users.set_payment_customer(owner.id, customer_id)
            current = self._owned(uow, owner_id, business_id, for_update=True)
            business = uow.businesses.update(
                current.id,
                subscription_tier=target,
                booking_enabled=derive_booking_enabled(target, current.approved),
                subscription_expiry=subscription.period_end,
                subscription_id=subscription.subscription_id,
            )
        SUBSCRIPTION_CHANGES_TOTAL.labels(tier=target.value, source="owner").inc()
        log.info(
            "subscription_upgraded",
            business_id=business_id,
            tier=target.value,
            subscription_id=subscription.subscription_id,
        )
        return SubscriptionUpgrade(
            business=business,
            client_secret=subscription.client_secret,
            subscription_id=subscription.subscription_id,
        )

    def reconcile_subscription(
        self,
        subscription_id: str,
        status: SubscriptionStatus,
        period_end: datetime | None,
    ) -> Business | None:
        """Aligne une entreprise sur l'état d'abonnement notifié par le fournisseur."""
        with self._uow() as uow:
            current = uow.businesses.get_by_subscription_id(subscription_id, for_update=True)
            if current is None:
                log.info("subscription_unknown", subscription_id=subscription_id)
                return None
            if status.is_terminal:
                business = uow.businesses.update(
                    current.id,
                    subscription_tier=SubscriptionTier.FREE,
                    booking_enabled=False,
                    subscription_expiry=None,
                    subscription_id=None,
                )
                SUBSCRIPTION_CHANGES_TOTAL.labels(tier="free", source="webhook").inc()
            elif status == SubscriptionStatus.ACTIVE and period_end is not None:
                business = uow.businesses.update(current.id, subscription_expiry=period_end)
            else:
                business = current
        log.info(
            "subscription_reconciled",
            business_id=business.id,
            subscription_id=subscription_id,
            status=status.value,
        )
        return business

    def handle_payment_event(self, event: WebhookEvent) -> Business | None:
        """Traite un évènement webhook; les types non gérés sont ignorés."""
        if event.event_type == SUBSCRIPTION_DELETED:
            status = SubscriptionStatus.CANCELED
        elif event.event_type in SUBSCRIPTION_EVENTS:
            status = map_subscription_status(event.data.get("status"))
        else:
            log.debug("webhook_ignored", event_type=event.event_type)
            return None
        subscription_id = event.data.get("id")
        if not subscription_id:
            return None
        return self.reconcile_subscription(
            str(subscription_id), status, subscription_period_end(event.data)
        )

    # ------------------------------------------------------------------ claims

    def claim_business(
        self,
        user_id: str,
        business_id: int,
        message: str | None = None,
        documents: list[str] | None = None,
    ) -> BusinessClaim:
        """Dépose une demande de revendication sur une fiche ajoutée manuellement."""
        with self._uow() as uow:
            business = uow.businesses.get(business_id, for_update=True)
            if business is None:
                raise NotFoundError("business_not_found")
            if not business.is_claimable:
                raise ConflictError("business_not_claimable")
            if uow.claims.find_pending(business_id, user_id) is not None:
                raise ConflictError("claim_already_pending")
            claimant = uow.users.get(user_id)
            if claimant is None:
                raise NotFoundError("user_not_found")
            claim = uow.claims.create(
                business_id=business_id,
                user_id=user_id,
                claim_message=message,
                verification_documents=list(documents or []),
                status=ClaimStatus.PENDING,
            )
            uow.after_commit(
                self.notifier.deliver,
                emails.claim_submitted(self.config.admin_email, business, claimant, claim),
            )
        CLAIMS_TOTAL.labels(status="pending").inc()
        log.info("claim_submitted", claim_id=claim.id, business_id=business_id)
        return claim

    def decide_claim(
        self, admin: User | None, claim_id: int, approve: bool, notes: str | None = None
    ) -> BusinessClaim:
        """
        Tranche une demande en une seule transaction.

        Approuver lie le demandeur à l'entreprise (`claimed=True`), date l'approbation et rejette
        les autres demandes en attente sur la même entreprise; rejeter ne modifie que la demande.

        Raises:
            InvalidTransitionError: La demande n'est plus en attente.
            ConflictError: L'entreprise a été revendiquée entre-temps.
        """
        require_admin(admin)
        with self._uow() as uow:
            claim = uow.claims.get(claim_id, for_update=True)
            if claim is None:
                raise NotFoundError("claim_not_found")
            if claim.status != ClaimStatus.PENDING:
                raise InvalidTransitionError(f"claim_already_{claim.status.value}")
            business = uow.businesses.get(claim.business_id, for_update=True)
            if business is None:
                raise NotFoundError("business_not_found")
            if approve:
                if business.claimed or business.user_id is not None:
                    raise ConflictError("business_already_claimed")
                business = uow.businesses.update(business.id, user_id=claim.user_id, claimed=True)
                claim = uow.claims.update(
                    claim_id,
                    status=ClaimStatus.APPROVED,
                    admin_notes=notes,
                    approved_at=_now(),
                )
                claimant = uow.users.get(claim.user_id)
                if claimant is not None and claimant.role == Role.USER:
                    claimant = uow.users.set_role(claimant.id, Role.BUSINESS)
                # Les demandes concurrentes sont closes avec l'approbation
                for other in uow.claims.list_pending_for_business(business.id):
                    uow.claims.update(
                        other.id, status=ClaimStatus.REJECTED, admin_notes=SUPERSEDED_CLAIM_NOTE
                    )
            else:
                claim = uow.claims.update(claim_id, status=ClaimStatus.REJECTED, admin_notes=notes)
                claimant = uow.users.get(claim.user_id)
            if claimant is not None and claimant.email:
                uow.after_commit(
                    self.notifier.deliver, emails.claim_decision(claimant.email, business, approve)
                )
        CLAIMS_TOTAL.labels(status=claim.status.value).inc()
        APPROVALS_TOTAL.labels(entity="claim", decision=claim.status.value).inc()
        log.info("claim_decided", claim_id=claim_id, status=claim.status.value)
        return claim

    # ------------------------------------------------------------------ queries

    def list_my_businesses(self, owner_id: str) -> list[Business]:
        with self._uow() as uow:
            return uow.businesses.list_by_user(owner_id)

    def list_unclaimed(self) -> list[Business]:
        with self._uow() as uow:
            return uow.businesses.list_unclaimed()

    def get_business(self, business_id: int) -> Business:
        with self._uow() as uow:
            business = uow.businesses.get(business_id)
        if business is None:
            raise NotFoundError("business_not_found")
        return business

    def list_pending_businesses(self, admin: User | None) -> list[Business]:
        require_admin(admin)
        with self._uow() as uow:
            return uow.businesses.list_pending()

    def list_pending_claims(self, admin: User | None) -> list[ClaimDetails]:
        require_admin(admin)
        with self._uow() as uow:
            return uow.claims.hydrate(uow.claims.list_pending())

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _owned(uow, owner_id: str, business_id: int, for_update: bool = False) -> Business:
        business = uow.businesses.get(business_id, for_update=for_update)
        if business is None:
            raise NotFoundError("business_not_found")
        require_owner(owner_id, business)
        return business
