"""Tests for the Notifier: dedup, delivery and retry."""

import logging
from unittest.mock import MagicMock

import pytest

from log_notifier.errors import DeliveryFailedError
from log_notifier.formatter import render_message
from log_notifier.models import LogRecord, NotificationState
from log_notifier.notifier import Notifier

ENDPOINT = "https://chat.example/webhook"


def make_record(host="example.test"):
    return LogRecord(
        timestamp="2023-05-17 13:03:52",
        method="GET",
        host=host,
        client_ip="50.230.198.1",
        user_agent="Mozilla/5.0 Test",
        status_code=200,
    )


class TestNotify:
    def test_first_send_delivers_and_updates_state(self):
        transport = MagicMock()
        state = NotificationState()
        notifier = Notifier(transport, ENDPOINT, state)
        record = make_record()

        assert notifier.notify(record) is True
        transport.send.assert_called_once_with(ENDPOINT, render_message(record))
        assert state.last_sent_content == render_message(record)

    def test_immediate_duplicate_suppressed(self):
        transport = MagicMock()
        notifier = Notifier(transport, ENDPOINT)
        notifier.notify(make_record())
        assert notifier.notify(make_record()) is False
        assert transport.send.call_count == 1

    def test_consecutive_duplicates_only(self):
        transport = MagicMock()
        notifier = Notifier(transport, ENDPOINT)
        for host in ["a.test", "a.test", "b.test", "a.test"]:
            notifier.notify(make_record(host))

        sent = [c.args[1] for c in transport.send.call_args_list]
        assert sent == [
            render_message(make_record("a.test")),
            render_message(make_record("b.test")),
            render_message(make_record("a.test")),
        ]

    def test_failure_raises_and_keeps_state(self):
        transport = MagicMock()
        transport.send.side_effect = DeliveryFailedError("HTTP 500", status_code=500)
        state = NotificationState(last_sent_content="previous")
        notifier = Notifier(transport, ENDPOINT, state)

        with pytest.raises(DeliveryFailedError):
            notifier.notify(make_record())
        assert state.last_sent_content == "previous"

    def test_failed_body_is_sent_again_next_time(self):
        transport = MagicMock()
        transport.send.side_effect = [DeliveryFailedError("down"), None]
        notifier = Notifier(transport, ENDPOINT)

        with pytest.raises(DeliveryFailedError):
            notifier.notify(make_record())
        assert notifier.notify(make_record()) is True
        assert transport.send.call_count == 2

    def test_duplicate_logged_distinctly(self, caplog):
        notifier = Notifier(MagicMock(), ENDPOINT)
        with caplog.at_level(logging.INFO, logger="log_notifier.notifier"):
            notifier.notify(make_record())
            notifier.notify(make_record())
        messages = [r.getMessage() for r in caplog.records]
        assert sum("Notification delivered" in m for m in messages) == 1
        assert sum("Skipping duplicate notification" in m for m in messages) == 1


class TestRetry:
    def test_retries_then_succeeds(self):
        transport = MagicMock()
        transport.send.side_effect = [DeliveryFailedError("timeout"), None]
        sleep = MagicMock()
        notifier = Notifier(transport, ENDPOINT, max_attempts=3, retry_backoff=0.5, sleep=sleep)

        assert notifier.notify(make_record()) is True
        assert transport.send.call_count == 2
        sleep.assert_called_once_with(0.5)

    def test_gives_up_after_max_attempts(self):
        transport = MagicMock()
        transport.send.side_effect = DeliveryFailedError("down")
        sleep = MagicMock()
        notifier = Notifier(transport, ENDPOINT, max_attempts=3, retry_backoff=1.0, sleep=sleep)

        with pytest.raises(DeliveryFailedError):
            notifier.notify(make_record())
        assert transport.send.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]
        assert notifier.state.last_sent_content is None

    def test_single_attempt_by_default(self):
        transport = MagicMock()
        transport.send.side_effect = DeliveryFailedError("down")
        sleep = MagicMock()
        notifier = Notifier(transport, ENDPOINT, sleep=sleep)

        with pytest.raises(DeliveryFailedError):
            notifier.notify(make_record())
        assert transport.send.call_count == 1
        sleep.assert_not_called()
