"""
Routes d'authentification pour l'API.

La connexion elle-même est déléguée au fournisseur d'identité; ce module expose seulement le
profil de l'utilisateur courant, synchronisé en base à chaque appel.
"""

from fastapi import APIRouter, Depends

from myles.api.deps import current_user
from myles.api.schemas import UserOut
from myles.domain.entities import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/user", response_model=UserOut, response_model_by_alias=True)
def get_user(user: User = Depends(current_user)):
    """Retourne l'utilisateur authentifié (rôle lu en base)."""
    return UserOut.model_validate(user)
