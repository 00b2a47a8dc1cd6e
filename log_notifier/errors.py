"""Exception hierarchy for the notifier pipeline.

Everything except ``SetupError`` and ``ConfigError`` is recoverable: the
watcher logs it, drops the event and keeps listening.
"""


class NotifierError(Exception):
    """Base class for every error raised by the notifier."""


class ConfigError(NotifierError):
    """Raised when the startup configuration is missing or invalid."""


class SetupError(NotifierError):
    """Raised when the watcher cannot subscribe to its target."""


class ContainerNotFoundError(SetupError):
    """Raised when no running container matches the configured name."""


class FetchError(NotifierError):
    """Raised when the log content cannot be retrieved from the container."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class ParseError(NotifierError):
    """Raised when the retrieved content does not yield a usable record."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class NoRecordsError(ParseError):
    pass


class MalformedRecordError(ParseError):
    pass


class MissingFieldError(ParseError):
    """Raised when required fields are absent or empty.

    ``fields`` lists every missing field; ``record`` holds the partially
    parsed record with empty placeholders in their place.
    """

    def __init__(self, fields: list[str], line: str = "", record=None):
        super().__init__(f"Missing required field(s): {', '.join(fields)}", line)
        self.fields = fields
        self.record = record


class NotifyError(NotifierError):
    pass


class DeliveryFailedError(NotifyError):
    """Raised when the transport could not deliver a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
