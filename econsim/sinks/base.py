"""Notification sink protocol."""

from typing import Protocol

from econsim.models import Event


class NotificationSink(Protocol):
    """Outbound capability the engine calls after each committed change."""

    def publish(self, event: Event) -> None: ...

    def close(self) -> None: ...
