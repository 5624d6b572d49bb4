"""Job application model."""

from dataclasses import dataclass
from datetime import datetime

from econsim.models.enums import ApplicationStatus


@dataclass
class Application:
    """A student's application for a job."""

    application_id: str
    job_id: str
    applicant_id: str
    applicant_name: str
    text: str
    status: ApplicationStatus
    created_at: datetime
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApplicationStatus.PENDING
