"""Result containers returned by composite and batch operations."""

from dataclasses import dataclass, field

from econsim.models.application import Application
from econsim.models.job import Job
from econsim.models.transaction import Transaction


@dataclass
class GrantResult:
    """Outcome of a bank grant to several recipients."""

    succeeded: list[Transaction] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


@dataclass
class SalaryPayment:
    """One salary payment and the job state after it."""

    transaction: Transaction
    job: Job


@dataclass
class PayrollFailure:
    job: Job
    error: str


@dataclass
class PayrollResult:
    """Outcome of paying every occupied job."""

    successful: list[SalaryPayment] = field(default_factory=list)
    failed: list[PayrollFailure] = field(default_factory=list)


@dataclass
class JobListing:
    """Job enriched with the assignee's display name."""

    job: Job
    assigned_to_name: str | None = None


@dataclass
class PendingApplication:
    """Pending application paired with the job it targets."""

    application: Application
    job: Job


@dataclass
class Acceptance:
    """Accepted application, the job it assigned and the rejected siblings."""

    application: Application
    job: Job
    rejected: list[Application] = field(default_factory=list)
