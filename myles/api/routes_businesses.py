"""
Routes des entreprises: inscription, revendication et abonnement.

Les corps de requête sont transmis tels quels aux services, qui les valident (camelCase ou
snake_case) et lèvent des erreurs métier traduites par l'enveloppe d'erreur standard.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from myles.api.deps import current_user, get_container
from myles.api.schemas import BusinessOut, ClaimIn, ClaimOut, SubscriptionOut, UpgradeIn
from myles.core.container import Container
from myles.domain.entities import User

router = APIRouter(prefix="/businesses", tags=["businesses"])
current_user_dep = Depends(current_user)
container_dep = Depends(get_container)


@router.post("", response_model=BusinessOut, status_code=201)
def register_business(
    payload: dict[str, Any] = Body(...),
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Inscrit une entreprise (en attente d'approbation) pour l'utilisateur courant."""
    business = container.businesses.register_business(user.id, payload)
    return BusinessOut.model_validate(business)


@router.get("/my", response_model=list[BusinessOut])
def my_businesses(user: User = current_user_dep, container: Container = container_dep):
    """Liste les entreprises de l'utilisateur courant."""
    return [BusinessOut.model_validate(b) for b in container.businesses.list_my_businesses(user.id)]


@router.get("/unclaimed", response_model=list[BusinessOut])
def unclaimed_businesses(container: Container = container_dep):
    """Liste publique des fiches ajoutées manuellement et non revendiquées."""
    return [BusinessOut.model_validate(b) for b in container.businesses.list_unclaimed()]


@router.get("/{business_id}", response_model=BusinessOut)
def get_business(business_id: int, container: Container = container_dep):
    return BusinessOut.model_validate(container.businesses.get_business(business_id))


@router.post("/{business_id}/claim", response_model=ClaimOut, status_code=201)
def claim_business(
    business_id: int,
    payload: ClaimIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Dépose une demande de revendication sur une fiche non revendiquée."""
    claim = container.businesses.claim_business(
        user.id, business_id, payload.claim_message, payload.verification_documents
    )
    return ClaimOut.model_validate(claim)


@router.post("/{business_id}/upgrade", response_model=SubscriptionOut)
def upgrade_subscription(
    business_id: int,
    payload: UpgradeIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """
    Change le palier d'abonnement.

    Pour un palier payant, `clientSecret` permet au client de confirmer le premier paiement.
    """
    result = container.businesses.upgrade_subscription(user.id, business_id, payload.tier)
    return SubscriptionOut(
        business=BusinessOut.model_validate(result.business),
        subscription_id=result.subscription_id,
        client_secret=result.client_secret,
    )
