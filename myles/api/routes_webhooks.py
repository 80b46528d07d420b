"""
Webhook du fournisseur de paiement.

La signature est vérifiée sur le corps brut avant tout traitement; les évènements
d'abonnement réconcilient le palier des entreprises, les autres sont acquittés sans effet.
"""

import structlog
from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from myles.api.deps import get_container
from myles.core.container import Container

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
log = structlog.get_logger(__name__)


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    container: Container = Depends(get_container),
):
    """Vérifie et applique un évènement Stripe; 422 si la signature est invalide."""
    payload = await request.body()
    event = container.payments.parse_webhook(payload, stripe_signature or "")
    business = await run_in_threadpool(container.businesses.handle_payment_event, event)
    log.info(
        "webhook_processed",
        event_id=event.event_id,
        event_type=event.event_type,
        business_id=business.id if business else None,
    )
    return {"received": True}
