"""Notifier: render, dedup, deliver, remember."""

import logging
import time

from log_notifier.errors import DeliveryFailedError
from log_notifier.formatter import render_message
from log_notifier.gate import should_send
from log_notifier.models import LogRecord, NotificationState
from log_notifier.transport import Transport

logger = logging.getLogger(__name__)


class Notifier:
    """Sends one message per distinct rendered body.

    Consecutive identical bodies are suppressed; the state only advances
    after the transport reports success, so a failed send is retried
    naturally by the next event that renders the same body.
    """

    def __init__(self, transport: Transport, endpoint: str,
                 state: NotificationState | None = None,
                 max_attempts: int = 1, retry_backoff: float = 1.0,
                 sleep=time.sleep):
        self._transport = transport
        self._endpoint = endpoint
        self._state = state if state is not None else NotificationState()
        self._max_attempts = max(1, max_attempts)
        self._retry_backoff = retry_backoff
        self._sleep = sleep

    @property
    def state(self) -> NotificationState:
        return self._state

    def notify(self, record: LogRecord) -> bool:
        """Deliver *record*. Returns False when suppressed as a duplicate.

        Raises DeliveryFailedError once all attempts are exhausted.
        """
        body = render_message(record)
        if not should_send(body, self._state):
            logger.info("Skipping duplicate notification for %s %s",
                        record.timestamp, record.host)
            return False

        self._send_with_retry(body)
        self._state.last_sent_content = body
        logger.info("Notification delivered: %s %s %s %d",
                    record.timestamp, record.host, record.client_ip, record.status_code)
        return True

    def _send_with_retry(self, body: str) -> None:
        for attempt in range(1, self._max_attempts + 1):
            try:
                self._transport.send(self._endpoint, body)
                return
            except DeliveryFailedError as e:
                if attempt == self._max_attempts:
                    raise
                delay = self._retry_backoff * attempt
                logger.warning("Delivery attempt %d/%d failed (%s), retrying in %.1fs",
                               attempt, self._max_attempts, e, delay)
                self._sleep(delay)
