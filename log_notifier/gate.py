"""Duplicate suppression for outgoing notifications."""

from log_notifier.models import NotificationState


def should_send(candidate: str, state: NotificationState) -> bool:
    """True unless *candidate* equals the last delivered message.

    Pure: the state is only updated by the notifier after a successful send.
    """
    return candidate != state.last_sent_content
