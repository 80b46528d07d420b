"""
Routes des coachs personnels et de leurs réservations.
"""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from myles.api.deps import current_user, get_container
from myles.api.schemas import StatusIn, TrainerBookingDetailsOut, TrainerBookingOut, TrainerOut
from myles.core.container import Container
from myles.domain.entities import TrainerSearchFilters, User

router = APIRouter(tags=["trainers"])
current_user_dep = Depends(current_user)
container_dep = Depends(get_container)


@router.post("/personal-trainers", response_model=TrainerOut, status_code=201)
def apply_as_trainer(
    payload: dict[str, Any] = Body(...),
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Candidature de coach (en attente d'approbation)."""
    return TrainerOut.model_validate(container.trainers.apply_as_trainer(user.id, payload))


@router.get("/personal-trainers/search", response_model=list[TrainerOut])
def search_trainers(
    search: str | None = Query(None),
    specialty: str | None = Query(None),
    location: str | None = Query(None),
    max_rate: Decimal | None = Query(None, alias="maxRate", ge=0),
    container: Container = container_dep,
):
    """Recherche publique parmi les coachs approuvés (mis en avant d'abord)."""
    filters = TrainerSearchFilters(
        search=search or None,
        specialty=specialty or None,
        location=location or None,
        max_rate=max_rate,
    )
    return [TrainerOut.model_validate(t) for t in container.trainers.search_trainers(filters)]


@router.get("/personal-trainers/my/profile", response_model=list[TrainerOut])
def my_trainer_profiles(user: User = current_user_dep, container: Container = container_dep):
    return [
        TrainerOut.model_validate(t) for t in container.trainers.list_my_trainer_profiles(user.id)
    ]


@router.get("/personal-trainers/{trainer_id}", response_model=TrainerOut)
def get_trainer(trainer_id: int, container: Container = container_dep):
    return TrainerOut.model_validate(container.trainers.get_trainer(trainer_id))


@router.post("/trainer-bookings", response_model=TrainerBookingOut, status_code=201)
def create_trainer_booking(
    payload: dict[str, Any] = Body(...),
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Réserve un coach; le montant est recalculé à partir du tarif horaire et de la durée."""
    booking = container.trainers.create_trainer_booking(user, payload)
    return TrainerBookingOut.model_validate(booking)


@router.get("/trainer-bookings/my", response_model=list[TrainerBookingDetailsOut])
def my_trainer_bookings(user: User = current_user_dep, container: Container = container_dep):
    details = container.trainers.list_my_trainer_bookings(user.id)
    return [TrainerBookingDetailsOut.build(d) for d in details]


@router.put("/trainer-bookings/{booking_id}/status", response_model=TrainerBookingOut)
def update_trainer_booking_status(
    booking_id: int,
    payload: StatusIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    booking = container.trainers.update_trainer_booking_status(user, booking_id, payload.status)
    return TrainerBookingOut.model_validate(booking)
