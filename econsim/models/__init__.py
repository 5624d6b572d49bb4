"""Domain models for the classroom economy."""

from econsim.models.account import Account
from econsim.models.application import Application
from econsim.models.base import Event
from econsim.models.enums import ApplicationStatus, JobStatus, JobType, Role
from econsim.models.job import Job
from econsim.models.principal import Principal
from econsim.models.results import (
    Acceptance,
    GrantResult,
    JobListing,
    PayrollFailure,
    PayrollResult,
    PendingApplication,
    SalaryPayment,
)
from econsim.models.settings import Settings
from econsim.models.transaction import Transaction

__all__ = [
    "Acceptance",
    "Account",
    "Application",
    "ApplicationStatus",
    "Event",
    "GrantResult",
    "Job",
    "JobListing",
    "JobStatus",
    "JobType",
    "PayrollFailure",
    "PayrollResult",
    "PendingApplication",
    "Principal",
    "Role",
    "SalaryPayment",
    "Settings",
    "Transaction",
]
