"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import pytest

from econsim.config import EconSimConfig, LedgerConfig
from econsim.engine import ClassroomEngine
from econsim.models import Account, Event, Principal
from econsim.store import ClassroomStore, KeyValueStore, MemoryStore

TEACHER_DATA = {
    "display_name": "Lærer Hansen",
    "username": "teacher",
    "password": "teacher123",
}


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class RecordingSink:
    """Sink double collecting published events."""

    def __init__(self) -> None:
        self.events: list[Event] = []
        self.closed = False

    def publish(self, event: Event) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    def types(self) -> list[str]:
        return [e.event_type for e in self.events]


class FailingBackend(KeyValueStore):
    """Memory backend whose ``put`` fails for selected keys.

    ``fail_on`` holds key suffixes (``"transactions"``, ``"applications"``);
    ``armed`` switches the failure on only after the fixtures are seeded.
    ``failures`` limits how many writes fail before the backend recovers.
    """

    def __init__(
        self,
        fail_on: set[str] | None = None,
        error: type[Exception] = OSError,
        failures: int | None = None,
    ) -> None:
        self.inner = MemoryStore()
        self.fail_on = fail_on or set()
        self.error = error
        self.failures = failures
        self.armed = False
        self.puts: list[str] = []

    def get(self, key: str) -> Any | None:
        return self.inner.get(key)

    def put(self, key: str, value: Any) -> None:
        if self.armed and any(key.endswith(name) for name in self.fail_on):
            if self.failures is not None:
                self.failures -= 1
                self.armed = self.failures > 0
            raise self.error(f"disk full writing {key}")
        self.puts.append(key)
        self.inner.put(key, value)

    def delete(self, key: str) -> None:
        self.inner.delete(key)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def config() -> EconSimConfig:
    """Default config with cheap password hashing."""
    return EconSimConfig(ledger=LedgerConfig(password_iterations=1_000))


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def backend() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_engine(
    config: EconSimConfig, clock: TickingClock, sink: RecordingSink
) -> Callable[[KeyValueStore], ClassroomEngine]:
    """Build an engine over any backend with the shared clock and sink."""

    def factory(backend: KeyValueStore) -> ClassroomEngine:
        store = ClassroomStore(backend, defaults=config.defaults)
        return ClassroomEngine(store, sink=sink, config=config, clock=clock)

    return factory


@pytest.fixture
def engine(make_engine: Callable, backend: MemoryStore) -> ClassroomEngine:
    return make_engine(backend)


@pytest.fixture
def bank(engine: ClassroomEngine) -> Account:
    """Teacher account ``100`` on an initialized classroom."""
    return engine.initialize(TEACHER_DATA)


@pytest.fixture
def teacher(bank: Account) -> Principal:
    return Principal.of(bank)


@pytest.fixture
def create_student(
    engine: ClassroomEngine, teacher: Principal
) -> Callable[..., Account]:
    """Create a student with sensible defaults."""

    def factory(username: str, display_name: str | None = None, **kwargs: Any) -> Account:
        return engine.accounts.create_account(
            teacher,
            display_name=display_name or username.capitalize(),
            username=username,
            password=kwargs.pop("password", "secret123"),
            **kwargs,
        )

    return factory


@pytest.fixture
def kari(create_student: Callable[..., Account]) -> Account:
    return create_student("kari", "Kari Nordmann")


@pytest.fixture
def ola(create_student: Callable[..., Account]) -> Account:
    return create_student("ola", "Ola Nordmann")


@pytest.fixture
def kari_p(kari: Account) -> Principal:
    return Principal.of(kari)


@pytest.fixture
def ola_p(ola: Account) -> Principal:
    return Principal.of(ola)
