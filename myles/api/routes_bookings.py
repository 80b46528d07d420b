"""
Routes des réservations de séances et d'autorisation de paiement.

Flux client: `POST /create-payment-intent` (montant calculé côté serveur) → confirmation du
paiement chez le fournisseur → `POST /bookings` avec l'identifiant d'autorisation.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from myles.api.deps import current_user, get_container
from myles.api.schemas import BookingDetailsOut, BookingOut, PaymentIntentIn, PaymentIntentOut, StatusIn
from myles.core.container import Container
from myles.domain.entities import User
from myles.domain.errors import ValidationError

router = APIRouter(tags=["bookings"])
current_user_dep = Depends(current_user)
container_dep = Depends(get_container)


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    payload: PaymentIntentIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """
    Crée une autorisation de paiement pour une séance ou un coach.

    Le montant est toujours recalculé; un `amount` client différent est refusé.
    """
    if payload.session_id is not None:
        token, quote = container.bookings.authorize_payment(
            user, payload.session_id, payload.amount
        )
        return PaymentIntentOut(
            client_secret=token.client_secret,
            payment_intent_id=token.intent_id,
            amount=quote.price,
            fee=quote.fee,
            total=quote.total,
            currency=quote.currency,
        )
    if payload.trainer_id is not None:
        if payload.duration is None:
            raise ValidationError({"duration": "field required"})
        token, quote = container.trainers.authorize_payment(
            user, payload.trainer_id, payload.duration, payload.amount
        )
        return PaymentIntentOut(
            client_secret=token.client_secret,
            payment_intent_id=token.intent_id,
            amount=quote.total,
            total=quote.total,
            currency=token.currency,
        )
    raise ValidationError({"sessionId": "sessionId or trainerId is required"})


@router.post("/bookings", response_model=BookingOut, status_code=201)
def create_booking(
    payload: dict[str, Any] = Body(...),
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Crée une réservation confirmée après vérification de l'autorisation de paiement."""
    return BookingOut.model_validate(container.bookings.create_booking(user, payload))


@router.get("/bookings/my", response_model=list[BookingDetailsOut])
def my_bookings(user: User = current_user_dep, container: Container = container_dep):
    """Réservations de l'utilisateur courant, les plus récentes d'abord."""
    return [BookingDetailsOut.build(d) for d in container.bookings.list_my_bookings(user.id)]


@router.put("/bookings/{booking_id}/status", response_model=BookingOut)
def update_booking_status(
    booking_id: int,
    payload: StatusIn,
    user: User = current_user_dep,
    container: Container = container_dep,
):
    booking = container.bookings.update_booking_status(user, booking_id, payload.status)
    return BookingOut.model_validate(booking)


@router.get("/bookings/business/{business_id}", response_model=list[BookingDetailsOut])
def business_bookings(
    business_id: int, user: User = current_user_dep, container: Container = container_dep
):
    """Réservations reçues par une entreprise (propriétaire ou administrateur)."""
    details = container.bookings.list_business_bookings(user, business_id)
    return [BookingDetailsOut.build(d) for d in details]
