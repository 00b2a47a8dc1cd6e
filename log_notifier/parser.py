"""Extract the most recent access-log record from retrieved file content.

The content is the full text of the log file, one JSON object per line.
Only the last complete line is decoded:

  1. Split on newline, take the second-to-last element (the final element is
     the empty string after the trailing newline, or a partial write)
  2. Strip transport control bytes (NUL, SOH, RS)
  3. Decode the JSON object and pull out the summary fields
"""

import json
import logging
from datetime import datetime, timezone

from log_notifier.errors import MalformedRecordError, MissingFieldError, NoRecordsError
from log_notifier.models import LogRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Bytes injected by the docker exec stream framing.
CONTROL_BYTES = ("\x00", "\x01", "\x1e")

CONNECTING_IP_HEADER = "Cf-Connecting-Ip"
USER_AGENT_HEADER = "User-Agent"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def select_last_record(content: str) -> str:
    """Return the last complete line of *content*."""
    lines = content.split("\n")
    if len(lines) < 2:
        raise NoRecordsError("No complete record in retrieved content", line=content)
    return lines[-2]


def sanitize_line(line: str) -> str:
    for ch in CONTROL_BYTES:
        line = line.replace(ch, "")
    return line


def format_timestamp(ts: float) -> str:
    """Epoch seconds → 'YYYY-MM-DD HH:MM:SS' in UTC, fraction truncated."""
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str(value) -> str:
    return value if isinstance(value, str) else ""


def _header_values(headers: dict, name: str):
    if name in headers:
        return headers[name]
    lowered = name.lower()
    for key, values in headers.items():
        if key.lower() == lowered:
            return values
    return None


def _first_value(headers: dict, name: str) -> str | None:
    """First element of a multi-valued header, or None when absent/empty."""
    values = _header_values(headers, name)
    if isinstance(values, str):
        return values or None
    if isinstance(values, list) and values and isinstance(values[0], str):
        return values[0]
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_line(line: str) -> LogRecord:
    """Decode one sanitized JSON line into a LogRecord."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"JSON decode error: {e}", line=line) from e
    if not isinstance(data, dict):
        raise MalformedRecordError(
            f"Expected a JSON object, got {type(data).__name__}", line=line
        )

    request = _as_dict(data.get("request"))
    headers = _as_dict(request.get("headers"))
    missing: list[str] = []

    ts = data.get("ts")
    timestamp = ""
    if ts is None:
        missing.append("ts")
    elif not _is_number(ts):
        raise MalformedRecordError(f"Field 'ts' is not numeric: {ts!r}", line=line)
    else:
        try:
            timestamp = format_timestamp(ts)
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedRecordError(f"Field 'ts' out of range: {ts!r}", line=line) from e

    status = data.get("status")
    status_code = 0
    if status is None:
        missing.append("status")
    elif _is_number(status) and float(status).is_integer():
        status_code = int(status)
    else:
        raise MalformedRecordError(f"Field 'status' is not an integer: {status!r}", line=line)

    client_ip = _first_value(headers, CONNECTING_IP_HEADER)
    if client_ip is None:
        missing.append(CONNECTING_IP_HEADER)
    user_agent = _first_value(headers, USER_AGENT_HEADER)
    if user_agent is None:
        missing.append(USER_AGENT_HEADER)

    record = LogRecord(
        timestamp=timestamp,
        method=_as_str(request.get("method")),
        host=_as_str(request.get("host")),
        client_ip=client_ip or "",
        user_agent=user_agent or "",
        status_code=status_code,
        raw=line,
    )
    if missing:
        raise MissingFieldError(missing, line=line, record=record)
    return record


def parse_content(content: str) -> LogRecord:
    """Parse the last complete record out of the full log file content."""
    line = sanitize_line(select_last_record(content))
    logger.debug("Last record: %s", line)
    return parse_line(line)
