"""Job posting model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from econsim.models.enums import JobStatus, JobType


@dataclass
class Job:
    """Job posted by the teacher.

    Open: ``status=active`` with no assignee. Occupied: ``status=active``
    with an assignee. A completed job keeps its last assignee.
    """

    job_id: str
    title: str
    description: str
    salary: Decimal
    job_type: JobType
    posted_by: str
    status: JobStatus
    created_at: datetime
    assigned_to: str | None = None
    assigned_at: datetime | None = None
    completed_at: datetime | None = None
    last_payment_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == JobStatus.ACTIVE and self.assigned_to is None

    @property
    def is_occupied(self) -> bool:
        return self.status == JobStatus.ACTIVE and self.assigned_to is not None
