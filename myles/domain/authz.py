"""
Contrôle d'autorisation des intentions métier.

Ce module fournit le point de contrôle unique utilisé par toutes les opérations réservées
(administration, propriété d'une entreprise): les gestionnaires ne comparent jamais de chaînes
de rôle eux-mêmes.
"""

from __future__ import annotations

from myles.domain.entities import Business, Role, User
from myles.domain.errors import AuthenticationError, AuthorizationError


def require_authenticated(user: User | None) -> User:
    """Vérifie qu'un appelant authentifié est présent et le retourne."""
    if user is None:
        raise AuthenticationError("authentication_required")
    return user


def require_role(user: User | None, *roles: Role) -> User:
    """
    Vérifie que l'appelant possède l'un des rôles requis.

    Args:
        user: Appelant (None si anonyme).
        roles: Rôles acceptés.

    Raises:
        AuthenticationError: Si aucun appelant n'est fourni.
        AuthorizationError: Si le rôle de l'appelant n'est pas accepté.
    """
    caller = require_authenticated(user)
    if Role(caller.role) not in roles:
        wanted = "|".join(r.value for r in roles)
        raise AuthorizationError(f"role_required:{wanted}")
    return caller


def require_admin(user: User | None) -> User:
    return require_role(user, Role.ADMIN)


def is_admin(user: User | None) -> bool:
    return user is not None and Role(user.role) == Role.ADMIN


def require_owner(user_id: str, business: Business) -> None:
    """Vérifie que l'utilisateur est propriétaire de l'entreprise."""
    if business.user_id is None or business.user_id != user_id:
        raise AuthorizationError("not_business_owner")
