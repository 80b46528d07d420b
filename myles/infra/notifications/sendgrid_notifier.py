# ============================================================
# Module : myles/infra/notifications/sendgrid_notifier.py
# Objet  : Envoi d'emails via l'API REST v3 de SendGrid.
# Contexte : Appelé uniquement après commit; les échecs sont convertis en
#            NotificationError et absorbés par Notifier.deliver.
# ============================================================

from __future__ import annotations

from typing import Any

import httpx
import structlog

from myles.core.http_constants import EMAIL_CONNECT_TIMEOUT, EMAIL_IO_TIMEOUT, HTTP_BAD_REQUEST
from myles.domain.errors import NotificationError
from myles.infra.notifications.base import EmailMessage, Notifier

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridNotifier(Notifier):
    """Transport SendGrid (httpx synchrone, pool de connexions partagé)."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        client: httpx.Client | None = None,
        url: str = SENDGRID_URL,
    ) -> None:
        self.sender = sender
        self.url = url
        self._log = structlog.get_logger(__name__).bind(component="sendgrid_notifier")
        if client is None:
            headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
            timeout = httpx.Timeout(
                EMAIL_IO_TIMEOUT, connect=EMAIL_CONNECT_TIMEOUT, pool=EMAIL_CONNECT_TIMEOUT
            )
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
            client = httpx.Client(headers=headers, timeout=timeout, limits=limits)
        self._client = client

    def _payload(self, message: EmailMessage) -> dict[str, Any]:
        content = []
        if message.text:
            content.append({"type": "text/plain", "value": message.text})
        content.append({"type": "text/html", "value": message.html})
        return {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self.sender},
            "subject": message.subject,
            "content": content,
        }

    def send(self, message: EmailMessage) -> None:
        try:
            resp = self._client.post(self.url, json=self._payload(message))
        except httpx.HTTPError as exc:
            raise NotificationError(f"SendGrid transport error: {exc}") from exc
        if resp.status_code >= HTTP_BAD_REQUEST:
            self._log.warning("sendgrid_rejected", status=resp.status_code, body=resp.text[:500])
            raise NotificationError(f"SendGrid rejected message ({resp.status_code})")
        self._log.info("email_sent", subject=message.subject)

    def close(self) -> None:
        self._client.close()
