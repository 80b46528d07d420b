"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Récupérer le conteneur attaché à l'application (`app.state.container`).
- Résoudre l'appelant à partir du jeton de session (cookie ou en-tête Bearer) et le
  synchroniser en base; le rôle est toujours celui de la base, jamais celui du jeton.
"""

from fastapi import Depends, Header, Request

from myles.core.container import Container
from myles.domain.auth import identity_from_token
from myles.domain.entities import Identity, User
from myles.domain.errors import AuthenticationError


def get_container(request: Request) -> Container:
    return request.app.state.container


def _token_from_request(request: Request, authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    cookie_name = request.app.state.container.settings.SESSION_COOKIE_NAME
    return request.cookies.get(cookie_name)


def get_identity(
    request: Request,
    authorization: str | None = Header(None),
    container: Container = Depends(get_container),
) -> Identity | None:
    """Identité portée par la requête, ou None si absente/invalide."""
    settings = container.settings
    return identity_from_token(
        _token_from_request(request, authorization),
        settings.SESSION_SECRET,
        settings.SESSION_ALG,
        settings.IDENTITY_CLIENT_ID,
    )


def optional_user(
    identity: Identity | None = Depends(get_identity),
    container: Container = Depends(get_container),
) -> User | None:
    """Utilisateur courant (upsert du profil), ou None pour un appel anonyme."""
    if identity is None:
        return None
    with container.uow() as uow:
        return uow.users.upsert(identity)


def current_user(user: User | None = Depends(optional_user)) -> User:
    """Extrait l'utilisateur courant; 401 (avec l'URL de connexion) s'il est absent."""
    if user is None:
        raise AuthenticationError("authentication_required")
    return user
