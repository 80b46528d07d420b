"""
Routes des séances: vocabulaire des types, création, recherche publique et séances d'une
entreprise.
"""

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from myles.api.deps import current_user, get_container
from myles.api.schemas import FitnessSessionOut, SessionDetailsOut, SessionTypeOut
from myles.core.container import Container
from myles.domain.entities import SessionSearchFilters, User
from myles.domain.errors import ValidationError

router = APIRouter(tags=["sessions"])
current_user_dep = Depends(current_user)
container_dep = Depends(get_container)


@router.get("/session-types", response_model=list[SessionTypeOut])
def session_types(container: Container = container_dep):
    """Liste les types de séances disponibles."""
    return [SessionTypeOut.model_validate(t) for t in container.sessions.list_session_types()]


@router.post("/sessions", response_model=FitnessSessionOut, status_code=201)
def create_session(
    payload: dict[str, Any] = Body(...),
    user: User = current_user_dep,
    container: Container = container_dep,
):
    """Crée une séance (en attente d'approbation) pour une entreprise approuvée du demandeur."""
    attributes = dict(payload)
    business_id = attributes.pop("businessId", attributes.pop("business_id", None))
    try:
        business_id = int(business_id)
    except (TypeError, ValueError) as exc:
        raise ValidationError({"businessId": "field required"}) from exc
    session = container.sessions.create_session(user.id, business_id, attributes)
    return FitnessSessionOut.model_validate(session)


@router.get("/sessions/search", response_model=list[SessionDetailsOut])
def search_sessions(
    postcode: str | None = Query(None),
    session_type: str | None = Query(None, alias="sessionType"),
    age_group: str | None = Query(None, alias="ageGroup"),
    difficulty: str | None = Query(None),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    container: Container = container_dep,
):
    """
    Recherche publique: seules les séances approuvées d'entreprises approuvées sont visibles.

    Filtres combinés en ET; le code postal et le type sont des correspondances partielles.
    """
    filters = SessionSearchFilters(
        postcode=postcode or None,
        session_type=session_type or None,
        age_group=age_group or None,
        difficulty=difficulty or None,
        min_price=min_price,
        max_price=max_price,
    )
    return [SessionDetailsOut.build(d) for d in container.sessions.search_sessions(filters)]


@router.get("/sessions/business/{business_id}", response_model=list[SessionDetailsOut])
def business_sessions(
    business_id: int, user: User = current_user_dep, container: Container = container_dep
):
    """Séances d'une entreprise du demandeur, y compris celles en attente."""
    details = container.sessions.list_business_sessions(user.id, business_id)
    return [SessionDetailsOut.build(d) for d in details]


@router.get("/sessions/{session_id}", response_model=SessionDetailsOut)
def get_session(session_id: int, container: Container = container_dep):
    return SessionDetailsOut.build(container.sessions.get_session_details(session_id))
