"""
Interface d'envoi d'emails.

Les services métier construisent des `EmailMessage` et les confient à un `Notifier` après
commit. L'envoi est best-effort: `deliver` journalise toute erreur et ne la propage jamais.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from myles.app.metrics import NOTIFICATIONS_TOTAL
from myles.domain.errors import NotificationError

log = structlog.get_logger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str = ""


class Notifier(ABC):
    """Contrat abstrait d'un transport d'emails."""

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        """
        Envoie un message.

        Raises:
            NotificationError: Si le transport refuse ou échoue.
        """

    def deliver(self, message: EmailMessage) -> bool:
        """Envoie sans jamais lever; retourne True si le message est parti."""
        if not message.to:
            NOTIFICATIONS_TOTAL.labels(result="skipped").inc()
            log.info("email_skipped_no_recipient", subject=message.subject)
            return False
        try:
            self.send(message)
        except NotificationError as exc:
            NOTIFICATIONS_TOTAL.labels(result="failed").inc()
            log.warning("email_failed", subject=message.subject, error=str(exc))
            return False
        NOTIFICATIONS_TOTAL.labels(result="sent").inc()
        return True


class LoggingNotifier(Notifier):
    """Transport de développement: journalise le message au lieu de l'envoyer."""

    def send(self, message: EmailMessage) -> None:
        log.info("email_logged", to=message.to, subject=message.subject)
