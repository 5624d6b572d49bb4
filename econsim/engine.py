"""Engine facade wiring the services over one classroom store."""

import logging
from decimal import Decimal
from typing import Any

from econsim.config import EconSimConfig
from econsim.exceptions import ValidationError
from econsim.models import Account, Principal, Role
from econsim.services import (
    AccountLedger,
    ApplicationDesk,
    JobMarket,
    Notifier,
    ServiceContext,
    SettingsRegistry,
    utc_now,
)
from econsim.services.base import Clock, require_role
from econsim.sinks import ConsoleSink, JsonFileSink, KafkaSink, NotificationSink
from econsim.store import (
    ClassroomStore,
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    PostgresStore,
)

logger = logging.getLogger(__name__)


def create_backend(config: EconSimConfig) -> KeyValueStore:
    """Build the key-value backend named by ``config.store.backend``."""
    backend = config.store.backend
    if backend == "json":
        return JsonFileStore(config.store.json_dir)
    if backend == "postgres":
        return PostgresStore(config.postgres.connection_string, table=config.postgres.table)
    return MemoryStore()


def create_sink(config: EconSimConfig) -> NotificationSink | None:
    """Build the notification sink named by ``config.sink``."""
    if config.sink == "console":
        return ConsoleSink()
    if config.sink == "json":
        return JsonFileSink(config.events_dir)
    if config.sink == "kafka":
        return KafkaSink(config.kafka)
    return None


class ClassroomEngine:
    """Ledger and job-market engine for one classroom.

    Parameters
    ----------
    store : ClassroomStore
        Store shared by every service; its lock serializes all writers.
    sink : NotificationSink | None
        Receives an event for each committed change.
    config : EconSimConfig | None
        Engine configuration (defaults when omitted).
    clock : callable | None
        Returns the current aware datetime (UTC wall clock by default).
    """

    def __init__(
        self,
        store: ClassroomStore,
        sink: NotificationSink | None = None,
        config: EconSimConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.sink = sink
        self.config = config or EconSimConfig()
        self.context = ServiceContext(
            store=store,
            config=self.config,
            notifier=Notifier(sink),
            clock=clock or utc_now,
        )
        self.accounts = AccountLedger(self.context)
        self.jobs = JobMarket(self.context, self.accounts)
        self.applications = ApplicationDesk(self.context, self.jobs)
        self.settings = SettingsRegistry(self.context)

    @classmethod
    def from_config(
        cls, config: EconSimConfig | None = None, clock: Clock | None = None
    ) -> "ClassroomEngine":
        """Create an engine with the store and sink described by ``config``."""
        config = config or EconSimConfig.from_env()
        store = ClassroomStore(
            create_backend(config),
            key_prefix=config.store.key_prefix,
            defaults=config.defaults,
        )
        logger.info("Using %s store with %s sink", config.store.backend, config.sink)
        return cls(store, sink=create_sink(config), config=config, clock=clock)

    def initialize(self, teacher: dict[str, Any]) -> Account:
        """Create the bank (teacher) account on an empty classroom.

        Parameters
        ----------
        teacher : dict
            ``display_name``, ``username``, ``password`` and optionally
            ``account_number`` (configured bank number by default).

        Returns
        -------
        Account
            The new teacher account, or the existing one if the classroom
            was already initialized.
        """
        with self.store.snapshot() as view:
            existing = next(
                (a for a in view.accounts.values() if a.role == Role.TEACHER), None
            )
        if existing is not None:
            logger.debug("Classroom already initialized")
            return existing

        account = self.accounts.open_account(
            display_name=teacher["display_name"],
            username=teacher["username"],
            password=teacher["password"],
            account_number=teacher.get(
                "account_number", self.config.ledger.bank_account_number
            ),
            role=Role.TEACHER,
            balance=Decimal("0"),
        )
        self.settings.persist_defaults()
        logger.info("Initialized classroom with bank account %s", account.account_number)
        return account

    def summary(self) -> dict[str, int]:
        with self.store.snapshot() as view:
            return view.summary()

    def export_data(self) -> dict[str, Any]:
        """Return the whole classroom as one JSON-ready document.

        The document holds ``users``, ``jobs``, ``applications``,
        ``transactions`` and ``settings``, all read from one snapshot.
        Money values are JSON numbers.
        """
        with self.store.snapshot() as view:
            return view.export()

    def import_data(self, principal: Principal, document: dict[str, Any]) -> dict[str, int]:
        """Replace every collection with the content of ``document``.

        Parameters
        ----------
        principal : Principal
            Must be a teacher.
        document : dict
            A document as returned by ``export_data``; ``users`` is required.

        Returns
        -------
        dict
            Entity counts after the import.
        """
        require_role(principal, Role.TEACHER, "import data")
        if not isinstance(document, dict) or not isinstance(document.get("users"), list):
            raise ValidationError("Import document must contain a users list")

        with self.store.transaction() as uow:
            uow.replace_all(document)
            counts = uow.summary()
        logger.info("Imported classroom data: %s", counts)
        return counts

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()
        self.store.close()
