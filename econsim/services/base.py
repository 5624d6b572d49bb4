"""Shared plumbing for engine services."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Iterator

from econsim.config import EconSimConfig
from econsim.exceptions import InvalidRoleError
from econsim.ids import new_id
from econsim.models import Account, Event, Principal, Role
from econsim.serialization import to_dict
from econsim.sinks.base import NotificationSink
from econsim.store.classroom import ClassroomStore, UnitOfWork

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def require_role(principal: Principal, role: Role, action: str) -> None:
    if principal.role != role:
        raise InvalidRoleError(f"Only {role.value}s can {action}")


def public_account(account: Account) -> dict[str, Any]:
    """Account fields safe to publish (no password hash)."""
    data = to_dict(account)
    data.pop("password_hash", None)
    return data


class Notifier:
    """Forward committed events to the optional sink.

    Events describe changes that are already durable, so a sink failure is
    logged and the remaining events are still delivered.
    """

    def __init__(self, sink: NotificationSink | None = None) -> None:
        self.sink = sink

    def publish(self, events: Iterable[Event]) -> None:
        if self.sink is None:
            return
        for event in events:
            try:
                self.sink.publish(event)
            except Exception:
                logger.exception(
                    "Sink failed to publish %s for %s", event.event_type, event.subject
                )


@dataclass
class ServiceContext:
    """Collaborators shared by every service of one engine."""

    store: ClassroomStore
    config: EconSimConfig = field(default_factory=EconSimConfig)
    notifier: Notifier = field(default_factory=Notifier)
    clock: Clock = utc_now


class BaseService:
    """Base class giving services transactions, snapshots and events."""

    source = "econsim"

    def __init__(self, context: ServiceContext) -> None:
        self.context = context

    @property
    def config(self) -> EconSimConfig:
        return self.context.config

    def now(self) -> datetime:
        return self.context.clock()

    @contextmanager
    def _transaction(self) -> Iterator[UnitOfWork]:
        """Run the block as one atomic write, then publish its events."""
        with self.context.store.transaction() as uow:
            yield uow
        self.context.notifier.publish(uow.events)

    def _snapshot(self):
        return self.context.store.snapshot()

    def _emit(self, uow: UnitOfWork, event_type: str, subject: str, data: dict) -> None:
        uow.events.append(
            Event(
                event_id=new_id("evt_"),
                event_type=event_type,
                event_time=self.now(),
                source=self.source,
                subject=subject,
                data=data,
            )
        )
