"""Base models shared across the engine."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Notification envelope published after a committed change."""

    event_id: str
    event_type: str  # entity.action (e.g., transaction.created)
    event_time: datetime
    source: str  # Component that produced the change
    subject: str  # Entity ID affected
    data: dict
    metadata: dict = field(default_factory=dict)
