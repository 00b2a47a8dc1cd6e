"""Shared pytest fixtures for the notifier test suite."""

import json

import pytest

from log_notifier.models import WatchTarget
from log_notifier.transport import ConsoleTransport


def access_line(host: str = "example.test", status: int = 200, ts: float = 1684328632) -> str:
    """One Caddy-style JSON access-log line, without trailing newline."""
    return json.dumps({
        "level": "info",
        "ts": ts,
        "logger": "http.log.access",
        "msg": "handled request",
        "request": {
            "remote_ip": "172.18.0.1",
            "proto": "HTTP/1.1",
            "method": "GET",
            "host": host,
            "uri": "/",
            "headers": {
                "Cf-Connecting-Ip": ["50.230.198.1"],
                "User-Agent": ["Mozilla/5.0 Test"],
            },
        },
        "status": status,
    })


@pytest.fixture()
def log_dir(tmp_path):
    """Directory holding an access.log with one record."""
    d = tmp_path / "logs"
    d.mkdir()
    (d / "access.log").write_text(access_line("first.test") + "\n")
    return d


@pytest.fixture()
def target(log_dir) -> WatchTarget:
    return WatchTarget(path=str(log_dir), container_id="abc123",
                       webhook_url="https://chat.example/webhook")


@pytest.fixture()
def transport() -> ConsoleTransport:
    return ConsoleTransport()
