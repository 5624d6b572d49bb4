"""Classroom data store with composite atomic writes."""

import logging
from contextlib import contextmanager
from decimal import InvalidOperation
from typing import Any, Callable, Iterator

from econsim.config import ClassroomDefaults
from econsim.exceptions import NotFoundError, StoreError, ValidationError
from econsim.models import (
    Account,
    Application,
    ApplicationStatus,
    Event,
    Job,
    Settings,
    Transaction,
)
from econsim.serialization import from_dict, to_record
from econsim.store.backends import KeyValueStore
from econsim.store.locking import ReadWriteLock

logger = logging.getLogger(__name__)

# Fixed commit order; compensation runs in reverse.
COLLECTIONS = ("users", "jobs", "applications", "transactions", "settings")


def _decode_keyed(cls: type, id_field: str) -> Callable[[Any, ClassroomDefaults], dict]:
    def decode(raw: Any, defaults: ClassroomDefaults) -> dict:
        items = (from_dict(cls, item) for item in raw or [])
        return {getattr(item, id_field): item for item in items}

    return decode


def _decode_transactions(raw: Any, defaults: ClassroomDefaults) -> list[Transaction]:
    return [from_dict(Transaction, item) for item in raw or []]


def _decode_settings(raw: Any, defaults: ClassroomDefaults) -> Settings:
    return from_dict(Settings, {**defaults.to_dict(), **(raw or {})})


def _encode(value: Any) -> Any:
    if isinstance(value, dict):
        return [to_record(item) for item in value.values()]
    if isinstance(value, list):
        return [to_record(item) for item in value]
    return to_record(value)


_DECODERS: dict[str, Callable[[Any, ClassroomDefaults], Any]] = {
    "users": _decode_keyed(Account, "account_id"),
    "jobs": _decode_keyed(Job, "job_id"),
    "applications": _decode_keyed(Application, "application_id"),
    "transactions": _decode_transactions,
    "settings": _decode_settings,
}


class UnitOfWork:
    """Staged view of the classroom collections for one operation.

    Collections are loaded lazily on first access. Mutations go through
    the ``put_*``/``remove_*``/``append_*`` methods, which only touch the
    in-memory copy and mark the collection dirty. ``commit`` writes the
    dirty collections one key at a time; if any write fails, the keys
    already written are restored to the values they had when loaded and
    the error is re-raised. Discarding the unit without committing leaves
    the store untouched.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        key_prefix: str,
        defaults: ClassroomDefaults,
        read_only: bool = False,
    ) -> None:
        self._backend = backend
        self._key_prefix = key_prefix
        self._defaults = defaults
        self._read_only = read_only
        self._raw: dict[str, Any] = {}
        self._loaded: dict[str, Any] = {}
        self._dirty: set[str] = set()
        self.events: list[Event] = []
        self.committed = False

    def key(self, name: str) -> str:
        return f"{self._key_prefix}{name}"

    def _load(self, name: str) -> Any:
        if name not in self._loaded:
            raw = self._backend.get(self.key(name))
            try:
                self._loaded[name] = _DECODERS[name](raw, self._defaults)
            except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
                raise StoreError(f"Corrupt collection {self.key(name)}: {exc}") from exc
            self._raw[name] = raw
        return self._loaded[name]

    def is_stored(self, name: str) -> bool:
        """Whether the backend held a value for the collection when loaded."""
        self._load(name)
        return self._raw.get(name) is not None

    def _touch(self, name: str) -> None:
        if self._read_only:
            raise RuntimeError("Cannot stage writes in a read-only snapshot")
        self._load(name)
        self._dirty.add(name)

    # Collections
    @property
    def accounts(self) -> dict[str, Account]:
        return self._load("users")

    @property
    def jobs(self) -> dict[str, Job]:
        return self._load("jobs")

    @property
    def applications(self) -> dict[str, Application]:
        return self._load("applications")

    @property
    def transactions(self) -> list[Transaction]:
        return self._load("transactions")

    @property
    def settings(self) -> Settings:
        return self._load("settings")

    # Staged writes
    def put_account(self, account: Account) -> None:
        self._touch("users")
        self.accounts[account.account_id] = account

    def remove_account(self, account_id: str) -> None:
        self._touch("users")
        del self.accounts[account_id]

    def put_job(self, job: Job) -> None:
        self._touch("jobs")
        self.jobs[job.job_id] = job

    def remove_job(self, job_id: str) -> None:
        self._touch("jobs")
        del self.jobs[job_id]

    def put_application(self, application: Application) -> None:
        self._touch("applications")
        self.applications[application.application_id] = application

    def remove_applications(self, application_ids: list[str]) -> None:
        if not application_ids:
            return
        self._touch("applications")
        for application_id in application_ids:
            del self.applications[application_id]

    def append_transaction(self, transaction: Transaction) -> None:
        self._touch("transactions")
        self.transactions.append(transaction)

    def set_settings(self, settings: Settings) -> None:
        self._touch("settings")
        self._loaded["settings"] = settings

    # Whole-classroom documents
    def export(self) -> dict[str, Any]:
        """Encode every collection into one JSON-ready document."""
        return {name: _encode(self._load(name)) for name in COLLECTIONS}

    def replace_all(self, document: dict[str, Any]) -> None:
        """Stage ``document`` as the new content of every collection.

        All collections are decoded before any is staged; a malformed
        document raises ``ValidationError`` and leaves the unit untouched.
        Missing collections become empty and missing settings fall back to
        the defaults.
        """
        decoded = {}
        for name in COLLECTIONS:
            try:
                decoded[name] = _DECODERS[name](document.get(name), self._defaults)
            except (KeyError, TypeError, ValueError, InvalidOperation) as exc:
                raise ValidationError(f"Invalid {name} in import document: {exc}") from exc
        for name, value in decoded.items():
            self._touch(name)
            self._loaded[name] = value

    # Lookups
    def require_account(self, account_id: str) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def require_job(self, job_id: str) -> Job:
        job = self.jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Job {job_id} not found")
        return job

    def require_application(self, application_id: str) -> Application:
        application = self.applications.get(application_id)
        if application is None:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    def account_by_username(self, username: str) -> Account | None:
        return next((a for a in self.accounts.values() if a.username == username), None)

    def account_by_number(self, account_number: str) -> Account | None:
        return next(
            (a for a in self.accounts.values() if a.account_number == account_number), None
        )

    def job_applications(
        self, job_id: str, status: ApplicationStatus | None = None
    ) -> list[Application]:
        return [
            a
            for a in self.applications.values()
            if a.job_id == job_id and (status is None or a.status == status)
        ]

    def account_transactions(self, account_id: str) -> list[Transaction]:
        """Transactions involving the account, newest first."""
        indexed = [
            (tx.timestamp, i, tx)
            for i, tx in enumerate(self.transactions)
            if tx.involves(account_id)
        ]
        indexed.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [tx for _, _, tx in indexed]

    def summary(self) -> dict[str, int]:
        """Return summary counts of all entities."""
        return {
            "accounts": len(self.accounts),
            "jobs": len(self.jobs),
            "applications": len(self.applications),
            "transactions": len(self.transactions),
        }

    # Commit
    def commit(self) -> None:
        """Write every dirty collection, restoring written keys on failure."""
        if self._read_only:
            raise RuntimeError("Cannot commit a read-only snapshot")

        written: list[str] = []
        try:
            for name in COLLECTIONS:
                if name in self._dirty:
                    self._backend.put(self.key(name), _encode(self._loaded[name]))
                    written.append(name)
        except Exception:
            logger.error(
                "Commit failed after writing %s; restoring previous state",
                [self.key(n) for n in written] or "nothing",
            )
            self._restore(written)
            raise

        self._dirty.clear()
        self.committed = True

    def _restore(self, written: list[str]) -> None:
        for name in reversed(written):
            key = self.key(name)
            previous = self._raw.get(name)
            try:
                if previous is None:
                    self._backend.delete(key)
                else:
                    self._backend.put(key, previous)
            except Exception:
                logger.exception("Could not restore %s after aborted commit", key)


class ClassroomStore:
    """Typed access to the classroom collections over a key-value backend.

    All mutations run inside ``transaction()``, which holds the write side
    of a reader/writer lock for the whole read-modify-commit sequence.
    Read-only callers use ``snapshot()`` and never observe a half-written
    change.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        key_prefix: str = "econsim_",
        defaults: ClassroomDefaults | None = None,
    ) -> None:
        self.backend = backend
        self.key_prefix = key_prefix
        self.defaults = defaults or ClassroomDefaults()
        self._lock = ReadWriteLock()

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        """Yield a writable unit of work and commit it if the block succeeds."""
        with self._lock.write():
            uow = UnitOfWork(self.backend, self.key_prefix, self.defaults)
            yield uow
            uow.commit()

    @contextmanager
    def snapshot(self) -> Iterator[UnitOfWork]:
        """Yield a read-only unit of work."""
        with self._lock.read():
            yield UnitOfWork(self.backend, self.key_prefix, self.defaults, read_only=True)

    def is_empty(self) -> bool:
        with self.snapshot() as view:
            return not view.accounts

    def close(self) -> None:
        self.backend.close()
