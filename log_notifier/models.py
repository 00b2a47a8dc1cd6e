"""Data model shared by the parser, notifier and watcher."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LogRecord:
    timestamp: str       # YYYY-MM-DD HH:MM:SS, UTC
    method: str
    host: str
    client_ip: str       # first Cf-Connecting-Ip value
    user_agent: str      # first User-Agent value
    status_code: int
    raw: str = ""        # sanitized source line


@dataclass
class NotificationState:
    """Memory of the last message that was actually delivered.

    Written by the notifier after a successful send, read by the gate.
    Lives for the process lifetime and is never persisted.
    """

    last_sent_content: str | None = None


@dataclass(frozen=True)
class WatchTarget:
    path: str
    container_id: str
    webhook_url: str
    log_file: str = "access.log"
    working_dir: str = "/var/log/caddy/"
