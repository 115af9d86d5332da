"""Run report delivery over a Slack/Discord-compatible webhook.

Best effort: a failed delivery is logged and reported as ``False``; it never
interrupts the run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """POSTs ``{"text": ...}`` to a webhook URL."""

    def __init__(
        self,
        webhook_url: str | None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    def send(self, title: str, message: str) -> bool:
        """Deliver *message*; return whether the webhook accepted it."""
        if not self.enabled:
            logger.info("Webhook not configured, skipping notification: %s", title)
            return False

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        payload = {"text": f"*{title}* ({timestamp})\n\n{message}"}

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to send webhook notification '%s': %s", title, exc)
            return False

        logger.info("Notification sent: %s", title)
        return True
