"""Outbound delivery of rendered messages to a chat webhook."""

import logging
from typing import Protocol, runtime_checkable

import requests

from log_notifier.errors import DeliveryFailedError

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    def send(self, endpoint: str, body: str) -> None: ...


class WebhookTransport:
    """POSTs a Discord-compatible ``{"content": ...}`` payload."""

    def __init__(self, timeout: float = 10.0, username: str | None = None,
                 session: requests.Session | None = None):
        self._timeout = timeout
        self._username = username
        self._session = session or requests.Session()

    def build_payload(self, body: str) -> dict:
        payload = {"content": body}
        if self._username:
            payload["username"] = self._username
        return payload

    def send(self, endpoint: str, body: str) -> None:
        try:
            resp = self._session.post(
                endpoint, json=self.build_payload(body), timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise DeliveryFailedError(f"Webhook request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise DeliveryFailedError(
                f"Webhook returned HTTP {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

    def close(self) -> None:
        self._session.close()


class ConsoleTransport:
    """Dry-run transport: logs the message instead of sending it."""

    def __init__(self):
        self.sent: list[str] = []

    def send(self, endpoint: str, body: str) -> None:
        self.sent.append(body)
        logger.info("[dry-run] would send to %s:\n%s", endpoint, body)

    def close(self) -> None:
        pass
