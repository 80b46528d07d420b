"""
Modèles d'entrée et règles de validation des intentions métier.

Les attributs fournis par les appelants (inscription d'entreprise, création de séance,
candidature de coach, réservations) sont validés par Pydantic; toute violation est convertie en
`ValidationError` métier énumérant les champs fautifs. Les clés sont acceptées en snake_case ou en
camelCase (format du client web).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from myles.domain.entities import (
    AGE_GROUPS,
    ALL_AGES,
    ALL_LEVELS,
    DIFFICULTY_LEVELS,
    Gender,
    ScheduleSlot,
)
from myles.domain.errors import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
MIN_SESSION_DURATION = 15
MAX_DAY_OF_WEEK = 6

M = TypeVar("M", bound=BaseModel)


class InputModel(BaseModel):
    """Base des modèles d'entrée: alias camelCase, champs inconnus ignorés."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


def _required_text(value: str | None) -> str:
    if value is None or not str(value).strip():
        raise ValueError("field required")
    return value


def _check_selection(values: list[str], allowed: tuple[str, ...], sentinel: str) -> list[str]:
    """Valide un ensemble fermé non vide où la sentinelle exclut toute autre valeur."""
    cleaned = list(dict.fromkeys(v.strip() for v in values if v and v.strip()))
    if not cleaned:
        raise ValueError("at least one value is required")
    unknown = [v for v in cleaned if v not in allowed]
    if unknown:
        raise ValueError(f"unknown values: {', '.join(unknown)}")
    if sentinel in cleaned and len(cleaned) > 1:
        raise ValueError(f"'{sentinel}' cannot be combined with other values")
    return cleaned


def normalize_selection(current: list[str], value: str, checked: bool, sentinel: str) -> list[str]:
    """
    Applique un basculement de case à cocher sur un ensemble avec sentinelle.

    Cocher la sentinelle vide les autres sélections; cocher une autre valeur retire la
    sentinelle. Décocher retire simplement la valeur.
    """
    if value == sentinel:
        return [sentinel] if checked else []
    if checked:
        kept = [v for v in current if v != sentinel and v != value]
        return [*kept, value]
    return [v for v in current if v != value]


class BusinessInput(InputModel):
    """Attributs d'inscription d'une entreprise."""

    name: str
    address: str
    postcode: str
    phone: str
    business_type: str
    specialties: list[str]
    age_ranges: list[str]
    difficulty_levels: list[str]
    amenities: list[str] = Field(default_factory=list)
    description: str | None = None
    website: str | None = None
    email: EmailStr | None = None
    facebook_url: str | None = None
    instagram_url: str | None = None
    twitter_url: str | None = None
    youtube_url: str | None = None
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)

    @field_validator("name", "address", "postcode", "phone", "business_type", mode="after")
    @classmethod
    def _required(cls, v: str | None) -> str:
        return _required_text(v)

    @field_validator("specialties", "age_ranges", "difficulty_levels", mode="after")
    @classmethod
    def _non_empty(cls, v: list[str]) -> list[str]:
        cleaned = [s for s in (x.strip() for x in v) if s]
        if not cleaned:
            raise ValueError("at least one value is required")
        return cleaned


class ScheduleSlotInput(InputModel):
    day_of_week: int = Field(ge=0, le=MAX_DAY_OF_WEEK)
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not _HHMM.match(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def _ordered(self) -> ScheduleSlotInput:
        # HH:MM zéro-paddé: l'ordre lexical est l'ordre chronologique
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    def to_slot(self) -> ScheduleSlot:
        return ScheduleSlot(self.day_of_week, self.start_time, self.end_time)


class SessionInput(InputModel):
    """Attributs de création d'une séance."""

    session_type_id: int = Field(ge=1)
    title: str
    description: str | None = None
    difficulty: list[str]
    age_groups: list[str]
    gender: Gender = Gender.MIXED
    price: Decimal = Field(ge=0, decimal_places=2)
    duration: int = Field(ge=MIN_SESSION_DURATION)
    max_participants: int = Field(ge=1)
    schedule: list[ScheduleSlotInput] = Field(min_length=1)

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _required_text(v)

    @field_validator("difficulty")
    @classmethod
    def _difficulty(cls, v: list[str]) -> list[str]:
        return _check_selection(v, DIFFICULTY_LEVELS, ALL_LEVELS)

    @field_validator("age_groups")
    @classmethod
    def _age_groups(cls, v: list[str]) -> list[str]:
        return _check_selection(v, AGE_GROUPS, ALL_AGES)


class TrainerInput(InputModel):
    """Attributs de candidature d'un coach personnel."""

    first_name: str
    last_name: str
    specialties: list[str] = Field(min_length=1)
    hourly_rate: Decimal = Field(ge=0, decimal_places=2)
    bio: str | None = None
    certifications: list[str] = Field(default_factory=list)
    experience: int | None = Field(default=None, ge=0)
    location: str | None = None
    profile_image_url: str | None = None
    phone_number: str | None = None
    email: EmailStr | None = None
    available_days: list[str] = Field(default_factory=list)
    preferred_times: list[str] = Field(default_factory=list)
    session_types: list[str] = Field(default_factory=list)
    travel_radius: int | None = Field(default=None, ge=0)

    @field_validator("first_name", "last_name")
    @classmethod
    def _names(cls, v: str) -> str:
        return _required_text(v)


class BookingInput(InputModel):
    """Demande de réservation d'une séance (après autorisation de paiement)."""

    session_id: int = Field(ge=1)
    session_date: datetime
    special_requirements: str | None = None
    payment_intent_id: str | None = None
    total_amount: Decimal | None = Field(default=None, ge=0)


class TrainerBookingInput(InputModel):
    """Demande de réservation d'un coach; le montant client n'est qu'une vérification."""

    trainer_id: int = Field(ge=1)
    session_date: datetime
    duration: int = Field(ge=MIN_SESSION_DURATION)
    session_type: str
    client_name: str
    client_email: EmailStr
    location: str | None = None
    notes: str | None = None
    client_phone: str | None = None
    payment_intent_id: str | None = None
    total_amount: Decimal | None = Field(default=None, ge=0)

    @field_validator("session_type", "client_name")
    @classmethod
    def _text(cls, v: str) -> str:
        return _required_text(v)


_REQUEST_PARTS = frozenset({"body", "query", "path", "header", "cookie"})


def fields_from_pydantic(exc: pydantic.ValidationError | Any) -> dict[str, str]:
    """Aplatit les erreurs Pydantic (ou FastAPI) en `{champ: message}`."""
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in _REQUEST_PARTS) or "__root__"
        fields.setdefault(loc, str(err.get("msg", "invalid")))
    return fields


def coerce(model: type[M], attributes: M | Mapping[str, Any]) -> M:
    """
    Retourne une instance validée du modèle d'entrée.

    Raises:
        ValidationError: Si des champs sont absents ou mal formés.
    """
    if isinstance(attributes, model):
        return attributes
    try:
        return model.model_validate(dict(attributes))
    except pydantic.ValidationError as exc:
        raise ValidationError(fields_from_pydantic(exc)) from exc
