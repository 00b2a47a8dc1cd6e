"""Render a LogRecord as a chat message body."""

from log_notifier.models import LogRecord

FENCE = "```"
SEPARATOR = "-" * 40 + " "


def render_message(record: LogRecord) -> str:
    """Fixed layout inside a code fence for monospace rendering.

    ```2023-05-17 13:03:52
    ----------------------------------------
    example.test
    50.230.198.1
    Mozilla/5.0 Test
    200```
    """
    lines = [
        record.timestamp,
        SEPARATOR,
        record.host,
        record.client_ip,
        record.user_agent,
        str(record.status_code),
    ]
    return FENCE + "\n".join(lines) + FENCE
