"""
Routes d'administration: files d'approbation, revendications, coachs, vocabulaire et rôles.

Chaque opération revérifie le rôle administrateur côté serveur (`require_admin` dans les
services); le masquage côté interface n'est jamais une frontière d'autorisation.
"""

from fastapi import APIRouter, Depends

from myles.api.deps import current_user, get_container
from myles.api.schemas import (
    ApprovalIn,
    BookingEnabledIn,
    BusinessOut,
    ClaimDetailsOut,
    ClaimOut,
    DecideClaimIn,
    FitnessSessionOut,
    RoleIn,
    SessionDetailsOut,
    SessionTypeIn,
    SessionTypeOut,
    StatsOut,
    TrainerOut,
    UserOut,
)
from myles.core.container import Container
from myles.domain.entities import User

router = APIRouter(prefix="/admin", tags=["admin"])
current_user_dep = Depends(current_user)
container_dep = Depends(get_container)


@router.get("/stats", response_model=StatsOut)
def stats(user: User = current_user_dep, container: Container = container_dep):
    """Compteurs agrégés de la marketplace."""
    return StatsOut.model_validate(container.admin.stats(user))


@router.get("/businesses/pending", response_model=list[BusinessOut])
def pending_businesses(user: User = current_user_dep, container: Container = container_dep):
    return [
        BusinessOut.model_validate(b) for b in container.businesses.list_pending_businesses(user)
    ]


@router.put("/businesses/{business_id}/approve", response_model=BusinessOut)
def approve_business(
    business_id: int,
    payload: ApprovalIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Approuve ou retire l'approbation; l'ouverture à la réservation reste liée au palier."""
    business = container.businesses.approve_business(user, business_id, payload.approved)
    return BusinessOut.model_validate(business)


@router.get("/sessions/pending", response_model=list[SessionDetailsOut])
def pending_sessions(user: User = current_user_dep, container: Container = container_dep):
    return [SessionDetailsOut.build(d) for d in container.sessions.list_pending_sessions(user)]


@router.put("/sessions/{session_id}/approve", response_model=FitnessSessionOut)
def approve_session(
    session_id: int,
    payload: ApprovalIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    session = container.sessions.approve_session(user, session_id, payload.approved)
    return FitnessSessionOut.model_validate(session)


@router.get("/claims/pending", response_model=list[ClaimDetailsOut])
def pending_claims(user: User = current_user_dep, container: Container = container_dep):
    return [ClaimDetailsOut.build(d) for d in container.businesses.list_pending_claims(user)]


@router.put("/claims/{claim_id}/decide", response_model=ClaimOut)
def decide_claim(
    claim_id: int,
    payload: DecideClaimIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Tranche une revendication; l'approbation lie le demandeur à l'entreprise."""
    claim = container.businesses.decide_claim(
        user, claim_id, payload.approve, payload.admin_notes
    )
    return ClaimOut.model_validate(claim)


@router.get("/trainers/pending", response_model=list[TrainerOut])
def pending_trainers(user: User = current_user_dep, container: Container = container_dep):
    return [TrainerOut.model_validate(t) for t in container.trainers.list_pending_trainers(user)]


@router.put("/trainers/{trainer_id}/approve", response_model=TrainerOut)
def approve_trainer(
    trainer_id: int,
    payload: ApprovalIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    trainer = container.trainers.approve_trainer(user, trainer_id, payload.approved)
    return TrainerOut.model_validate(trainer)


@router.put("/trainers/{trainer_id}/booking-enabled", response_model=TrainerOut)
def set_trainer_booking_enabled(
    trainer_id: int,
    payload: BookingEnabledIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    trainer = container.trainers.set_trainer_booking_enabled(
        user, trainer_id, payload.booking_enabled
    )
    return TrainerOut.model_validate(trainer)


@router.post("/session-types", response_model=SessionTypeOut, status_code=201)
def create_session_type(
    payload: SessionTypeIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    session_type = container.sessions.create_session_type(
        user, payload.name, payload.description
    )
    return SessionTypeOut.model_validate(session_type)


@router.put("/users/{user_id}/role", response_model=UserOut)
def set_user_role(
    user_id: str,
    payload: RoleIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    return UserOut.model_validate(container.admin.set_user_role(user, user_id, payload.role))
