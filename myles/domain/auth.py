"""
Module d'authentification et de gestion des jetons de session.

Le fournisseur d'identité émet un jeton JWT signé (cookie de session ou en-tête Bearer). Ce
module crée et valide ces jetons et en extrait l'`Identity` (identifiant stable, email, profil).
Le rôle n'est jamais lu dans le jeton: il appartient à la base.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError
from pydantic import BaseModel, EmailStr

from myles.domain.entities import Identity

DEFAULT_EXPIRES_MIN = 60 * 24 * 7


class TokenData(BaseModel):
    """Données contenues dans un jeton de session."""

    sub: str
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    def to_identity(self) -> Identity:
        return Identity(
            user_id=self.sub,
            email=str(self.email),
            first_name=self.first_name,
            last_name=self.last_name,
            profile_image_url=self.profile_image_url,
        )


def create_session_token(
    secret: str,
    alg: str,
    audience: str,
    payload: dict[str, Any],
    expires_min: int = DEFAULT_EXPIRES_MIN,
) -> str:
    """Crée un jeton de session signé avec audience et expiration."""
    to_encode = payload.copy()
    expire = datetime.now(UTC) + timedelta(minutes=expires_min)
    to_encode.update({"exp": expire, "aud": audience})
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str, audience: str) -> TokenData | None:
    """Décode et valide un jeton de session; None si invalide, expiré ou mal formé."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg], audience=audience)
        return TokenData(**data)
    except (InvalidTokenError, ValueError):
        return None


def identity_from_token(token: str | None, secret: str, alg: str, audience: str) -> Identity | None:
    if not token:
        return None
    data = decode_token(token, secret, alg, audience)
    return data.to_identity() if data else None
