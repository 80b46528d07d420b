"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, base de données, passerelles de paiement et
d'emails, services métier). Le conteneur est attaché à `app.state.container` par `create_app`;
les tests en construisent un avec leurs propres passerelles.
"""

import structlog

from myles.core.settings import Settings, get_settings, marketplace_config
from myles.domain.admin_service import AdminService
from myles.domain.booking_service import BookingService
from myles.domain.business_service import BusinessService
from myles.domain.session_service import SessionService
from myles.domain.trainer_service import TrainerService
from myles.infra.notifications.base import LoggingNotifier, Notifier
from myles.infra.notifications.sendgrid_notifier import SendGridNotifier
from myles.infra.payments.base import PaymentGateway
from myles.infra.payments.stripe_gateway import StripeGateway
from myles.infra.repo.db import get_engine, get_session_factory
from myles.infra.repo.models import Base
from myles.infra.repo.uow import unit_of_work_factory

log = structlog.get_logger(__name__)


def build_notifier(settings: Settings) -> Notifier:
    """SendGrid si une clé est configurée, sinon journalisation seule (non fatal)."""
    if settings.SENDGRID_API_KEY:
        return SendGridNotifier(settings.SENDGRID_API_KEY, sender=settings.EMAIL_FROM)
    log.warning("sendgrid_disabled", reason="SENDGRID_API_KEY not set")
    return LoggingNotifier()


def build_payments(settings: Settings) -> PaymentGateway:
    if not settings.STRIPE_SECRET_KEY:
        raise RuntimeError("Missing required Stripe secret: STRIPE_SECRET_KEY")
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)


class Container:
    def __init__(
        self,
        settings: Settings | None = None,
        payments: PaymentGateway | None = None,
        notifier: Notifier | None = None,
    ):
        self.settings = settings or get_settings()
        self.config = marketplace_config(self.settings)
        self.engine = get_engine(self.settings.DATABASE_URL)
        self.session_factory = get_session_factory(self.engine)
        if self.settings.DB_AUTO_CREATE:
            Base.metadata.create_all(self.engine)
        self.uow = unit_of_work_factory(self.session_factory)

        self.payments = payments or build_payments(self.settings)
        self.notifier = notifier or build_notifier(self.settings)

        self.businesses = BusinessService(self.uow, self.config, self.payments, self.notifier)
        self.sessions = SessionService(self.uow, self.config, self.notifier)
        self.bookings = BookingService(self.uow, self.config, self.payments, self.notifier)
        self.trainers = TrainerService(self.uow, self.config, self.payments, self.notifier)
        self.admin = AdminService(self.uow)
