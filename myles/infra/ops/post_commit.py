"""Post-commit helpers for side effects triggered by a unit of work.

Ce module permet de déclencher des actions (ex: envoi d'emails) uniquement après qu'une
transaction SQLAlchemy ait été effectivement commitée. En cas de rollback, les actions sont
oubliées; une action qui échoue est journalisée sans jamais remonter à l'appelant.
"""

from __future__ import annotations

import functools
from collections.abc import Callable

import structlog
from sqlalchemy import event
from sqlalchemy.orm import Session

from myles.app.metrics import POSTCOMMIT_ACTIONS_TOTAL

_ACTIONS_KEY = "_post_commit_actions"

log = structlog.get_logger(__name__)


def _ensure_action_list(session: Session) -> list[Callable[[], None]]:
    """Ensure action list container exists on session.info and return it."""
    actions = session.info.get(_ACTIONS_KEY)
    if actions is None:
        actions = []
        session.info[_ACTIONS_KEY] = actions
        _bind_session_events(session)
    return actions


def _run_action(action: Callable[[], None]) -> None:
    try:
        action()
    except Exception as exc:
        # La transaction est déjà commitée: on journalise, on ne propage pas
        POSTCOMMIT_ACTIONS_TOTAL.labels(result="failed").inc()
        log.warning(
            "post_commit_action_failed",
            action=getattr(getattr(action, "func", action), "__qualname__", repr(action)),
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return
    POSTCOMMIT_ACTIONS_TOTAL.labels(result="done").inc()


def _bind_session_events(session: Session) -> None:
    """Bind commit/rollback events once for the given session instance."""
    # Guard to avoid double binding on same instance
    if session.info.get("_post_commit_bound"):
        return
    session.info["_post_commit_bound"] = True

    @event.listens_for(session, "after_commit")
    def _after_commit(_session: Session) -> None:
        actions = list(_session.info.get(_ACTIONS_KEY, []) or [])
        _session.info[_ACTIONS_KEY] = []
        for action in actions:
            _run_action(action)

    @event.listens_for(session, "after_rollback")
    def _after_rollback(_session: Session) -> None:
        # Purge les actions planifiées si la transaction est rollback
        dropped = len(_session.info.get(_ACTIONS_KEY, []) or [])
        _session.info[_ACTIONS_KEY] = []
        if dropped:
            POSTCOMMIT_ACTIONS_TOTAL.labels(result="rolled_back").inc(dropped)


def register_action_after_commit(
    session: Session,
    func: Callable[..., None],
    *args,
    **kwargs,
) -> None:
    """Register an arbitrary callable to run after a successful commit.

    La fonction est stockée dans la session et exécutée lors de l'évènement
    `after_commit`. En cas de rollback, elle est oubliée.
    """
    bound = functools.partial(func, *args, **kwargs)
    _ensure_action_list(session).append(bound)


__all__ = [
    "register_action_after_commit",
]
