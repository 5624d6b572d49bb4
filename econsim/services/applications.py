"""Application desk: students apply for jobs, the teacher decides."""

import logging

from econsim.exceptions import ConflictError
from econsim.ids import new_id
from econsim.models import (
    Acceptance,
    Application,
    ApplicationStatus,
    PendingApplication,
    Principal,
    Role,
)
from econsim.serialization import to_dict
from econsim.services.base import BaseService, ServiceContext, require_role
from econsim.services.jobs import JobMarket
from econsim.validation import validate_application_text

logger = logging.getLogger(__name__)


class ApplicationDesk(BaseService):
    """Job applications and their decisions.

    A student has at most one pending application per job; applying again
    edits it. Accepting one application assigns the job and rejects every
    other pending application for it in the same commit.
    """

    source = "applications"

    def __init__(self, context: ServiceContext, market: JobMarket) -> None:
        super().__init__(context)
        self.market = market

    def apply(self, principal: Principal, job_id: str, text: str) -> Application:
        """Apply for an open job or edit the pending application for it."""
        require_role(principal, Role.STUDENT, "apply for jobs")
        text = validate_application_text(text)

        with self._transaction() as uow:
            job = uow.require_job(job_id)
            if not job.is_open:
                raise ConflictError(f"Job {job_id} is not open for applications")
            applicant = uow.require_account(principal.account_id)

            now = self.now()
            existing = next(
                (
                    a
                    for a in uow.job_applications(job_id, ApplicationStatus.PENDING)
                    if a.applicant_id == applicant.account_id
                ),
                None,
            )
            if existing is not None:
                existing.text = text
                existing.updated_at = now
                application = existing
                event_type = "application.updated"
            else:
                application = Application(
                    application_id=new_id("app_"),
                    job_id=job_id,
                    applicant_id=applicant.account_id,
                    applicant_name=applicant.display_name,
                    text=text,
                    status=ApplicationStatus.PENDING,
                    created_at=now,
                )
                event_type = "application.created"
            uow.put_application(application)
            self._emit(uow, event_type, application.application_id, to_dict(application))

        logger.info("%s applied for job %s", applicant.username, job_id)
        return application

    def accept(self, principal: Principal, application_id: str) -> Acceptance:
        """Accept a pending application.

        Assigns the job to the applicant, marks the application accepted and
        rejects the other pending applications for the job. Nothing changes
        if any step fails.
        """
        require_role(principal, Role.TEACHER, "accept applications")
        with self._transaction() as uow:
            application = uow.require_application(application_id)
            if not application.is_pending:
                raise ConflictError(f"Application {application_id} has already been processed")

            job = uow.require_job(application.job_id)
            self.market.assign_within(uow, job, application.applicant_id)

            now = self.now()
            application.status = ApplicationStatus.ACCEPTED
            application.updated_at = now
            uow.put_application(application)
            self._emit(uow, "application.accepted", application_id, to_dict(application))

            rejected = []
            for sibling in uow.job_applications(job.job_id, ApplicationStatus.PENDING):
                sibling.status = ApplicationStatus.REJECTED
                sibling.updated_at = now
                uow.put_application(sibling)
                rejected.append(sibling)
                self._emit(
                    uow, "application.rejected", sibling.application_id, to_dict(sibling)
                )

        logger.info(
            "Accepted application %s for job %s (%d rejected)",
            application_id,
            job.job_id,
            len(rejected),
        )
        return Acceptance(application=application, job=job, rejected=rejected)

    def reject(self, principal: Principal, application_id: str) -> Application:
        require_role(principal, Role.TEACHER, "reject applications")
        with self._transaction() as uow:
            application = uow.require_application(application_id)
            if not application.is_pending:
                raise ConflictError(f"Application {application_id} has already been processed")
            application.status = ApplicationStatus.REJECTED
            application.updated_at = self.now()
            uow.put_application(application)
            self._emit(uow, "application.rejected", application_id, to_dict(application))
        return application

    # Queries
    def list_for_job(self, principal: Principal, job_id: str) -> list[Application]:
        """All applications for a job, oldest first."""
        require_role(principal, Role.TEACHER, "view applications")
        with self._snapshot() as view:
            view.require_job(job_id)
            applications = view.job_applications(job_id)
        return sorted(applications, key=lambda a: a.created_at)

    def list_pending(self, principal: Principal) -> list[PendingApplication]:
        """Pending applications with their job; applications for missing jobs are left out."""
        require_role(principal, Role.TEACHER, "view applications")
        with self._snapshot() as view:
            pending = [
                PendingApplication(application=a, job=view.jobs[a.job_id])
                for a in view.applications.values()
                if a.is_pending and a.job_id in view.jobs
            ]
        return sorted(pending, key=lambda p: p.application.created_at, reverse=True)

    def list_for_applicant(self, principal: Principal) -> list[Application]:
        with self._snapshot() as view:
            mine = [
                a for a in view.applications.values() if a.applicant_id == principal.account_id
            ]
        return sorted(mine, key=lambda a: a.created_at, reverse=True)

    def has_applied(self, principal: Principal, job_id: str) -> bool:
        with self._snapshot() as view:
            return any(
                a.applicant_id == principal.account_id
                for a in view.job_applications(job_id, ApplicationStatus.PENDING)
            )
