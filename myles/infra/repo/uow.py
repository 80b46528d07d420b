"""Unit of work: une transaction SQLAlchemy et les dépôts qui la partagent.

Chaque intention métier ouvre une unité de travail; les effets de bord (emails) y sont
enregistrés via `after_commit` et ne partent qu'après un commit réussi.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from sqlalchemy.orm import Session, sessionmaker

from myles.infra.ops.post_commit import register_action_after_commit
from myles.infra.repo.booking_repo import BookingRepo
from myles.infra.repo.business_repo import BusinessClaimRepo, BusinessRepo
from myles.infra.repo.db import session_scope
from myles.infra.repo.session_repo import FitnessSessionRepo, SessionTypeRepo
from myles.infra.repo.trainer_repo import TrainerBookingRepo, TrainerRepo
from myles.infra.repo.user_repo import UserRepo


class UnitOfWork:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.users = UserRepo(session)
        self.businesses = BusinessRepo(session)
        self.claims = BusinessClaimRepo(session)
        self.session_types = SessionTypeRepo(session)
        self.sessions = FitnessSessionRepo(session)
        self.bookings = BookingRepo(session)
        self.trainers = TrainerRepo(session)
        self.trainer_bookings = TrainerBookingRepo(session)

    def after_commit(self, func: Callable[..., None], *args, **kwargs) -> None:
        register_action_after_commit(self.session, func, *args, **kwargs)


UnitOfWorkFactory = Callable[[], AbstractContextManager[UnitOfWork]]


def unit_of_work_factory(session_factory: sessionmaker) -> UnitOfWorkFactory:
    """Retourne une fabrique d'unités de travail liée à la factory de sessions."""

    @contextmanager
    def _uow() -> Iterator[UnitOfWork]:
        with session_scope(session_factory) as session:
            yield UnitOfWork(session)

    return _uow
