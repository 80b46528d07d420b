# ============================================================
# Module : myles/infra/repo/user_repo.py
# Objet  : Accès SQL aux utilisateurs (upsert à l'authentification).
# ============================================================

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from myles.domain.entities import Identity, Role, User
from myles.infra.repo.models import UserORM


def to_user(row: UserORM) -> User:
    return User(
        id=row.id,
        email=row.email or "",
        role=Role(row.role),
        first_name=row.first_name,
        last_name=row.last_name,
        profile_image_url=row.profile_image_url,
        payment_customer_id=row.stripe_customer_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class UserRepo:
    """Dépôt des utilisateurs."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, user_id: str, for_update: bool = False) -> UserORM | None:
        stmt = select(UserORM).where(UserORM.id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.execute(stmt).scalars().first()

    def get(self, user_id: str, for_update: bool = False) -> User | None:
        row = self._row(user_id, for_update=for_update)
        return to_user(row) if row else None

    def get_many(self, user_ids: set[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        rows = self._session.execute(select(UserORM).where(UserORM.id.in_(user_ids))).scalars()
        return {r.id: to_user(r) for r in rows}

    def upsert(self, identity: Identity, role: Role = Role.USER) -> User:
        """Insère l'utilisateur s'il est absent, sinon rafraîchit son profil.

        Le rôle n'est jamais écrasé par un rafraîchissement: il appartient à la base.
        """
        row = self._row(identity.user_id, for_update=True)
        if row is None:
            row = UserORM(id=identity.user_id, role=role.value)
            self._session.add(row)
        row.email = identity.email
        row.first_name = identity.first_name
        row.last_name = identity.last_name
        row.profile_image_url = identity.profile_image_url
        self._session.flush()
        return to_user(row)

    def set_role(self, user_id: str, role: Role) -> User | None:
        row = self._row(user_id, for_update=True)
        if row is None:
            return None
        row.role = role.value
        self._session.flush()
        return to_user(row)

    def set_payment_customer(self, user_id: str, customer_id: str) -> None:
        row = self._row(user_id)
        if row is not None:
            row.stripe_customer_id = customer_id
            self._session.flush()

    def count(self) -> int:
        return int(self._session.execute(select(func.count()).select_from(UserORM)).scalar_one())
