"""Job market: postings, assignment, payroll and job lifecycle."""

import logging
from typing import Any

from econsim.exceptions import (
    ConflictError,
    EconSimError,
    InvalidRoleError,
    NotFoundError,
    ValidationError,
)
from econsim.ids import new_id
from econsim.models import (
    Account,
    Job,
    JobListing,
    JobStatus,
    JobType,
    PayrollFailure,
    PayrollResult,
    Principal,
    Role,
    SalaryPayment,
)
from econsim.serialization import to_dict
from econsim.services.base import BaseService, ServiceContext, require_role
from econsim.services.ledger import AccountLedger
from econsim.store.classroom import UnitOfWork
from econsim.validation import (
    parse_amount,
    reject_unknown_fields,
    validate_job_description,
    validate_job_title,
    validate_job_type,
)

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown user"
EDITABLE_JOB_FIELDS = {"title", "description", "salary"}


class JobMarket(BaseService):
    """Jobs posted by the teacher and their lifecycle.

    Lifecycle: open -> occupied (assignment) -> completed (project payment
    or end_job) -> open again (republish). Salaries are paid through the
    ledger in the same unit of work as the job update.
    """

    source = "jobs"

    def __init__(self, context: ServiceContext, ledger: AccountLedger) -> None:
        super().__init__(context)
        self.ledger = ledger

    def post_job(
        self,
        principal: Principal,
        *,
        title: str,
        salary: Any,
        job_type: JobType | str,
        description: str | None = "",
        assigned_to: str | None = None,
    ) -> Job:
        """Post a job, optionally assigning it to a student straight away."""
        require_role(principal, Role.TEACHER, "post jobs")
        title = validate_job_title(title)
        description = validate_job_description(description)
        salary = parse_amount(salary, "Salary", self.config.ledger.max_amount)
        job_type = validate_job_type(job_type)

        with self._transaction() as uow:
            now = self.now()
            job = Job(
                job_id=new_id("job_"),
                title=title,
                description=description,
                salary=salary,
                job_type=job_type,
                posted_by=principal.account_id,
                status=JobStatus.ACTIVE,
                created_at=now,
            )
            if assigned_to is not None:
                student = self._require_student(uow, assigned_to)
                job.assigned_to = student.account_id
                job.assigned_at = now
            uow.put_job(job)
            self._emit(uow, "job.created", job.job_id, to_dict(job))

        logger.info("Posted %s job %s (%s)", job.job_type.value, job.job_id, job.title)
        return job

    def update_job(self, principal: Principal, job_id: str, fields: dict[str, Any]) -> Job:
        """Edit title, description or salary of a job."""
        require_role(principal, Role.TEACHER, "edit jobs")
        reject_unknown_fields(fields, EDITABLE_JOB_FIELDS, "a job")

        changes: dict[str, Any] = {}
        if "title" in fields:
            changes["title"] = validate_job_title(fields["title"])
        if "description" in fields:
            changes["description"] = validate_job_description(fields["description"])
        if "salary" in fields:
            changes["salary"] = parse_amount(
                fields["salary"], "Salary", self.config.ledger.max_amount
            )

        with self._transaction() as uow:
            job = uow.require_job(job_id)
            for name, value in changes.items():
                setattr(job, name, value)
            job.updated_at = self.now()
            uow.put_job(job)
            self._emit(uow, "job.updated", job_id, to_dict(job))
        return job

    def assign_direct(self, principal: Principal, job_id: str, account_id: str) -> Job:
        """Assign an open job to a student without an application."""
        require_role(principal, Role.TEACHER, "assign jobs")
        with self._transaction() as uow:
            job = self.assign_within(uow, uow.require_job(job_id), account_id)
        logger.info("Assigned job %s to %s", job_id, account_id)
        return job

    def assign_within(self, uow: UnitOfWork, job: Job, account_id: str) -> Job:
        """Stage the assignment of ``job`` inside an existing unit of work."""
        if not job.is_open:
            raise ConflictError(f"Job {job.job_id} is not open")
        student = self._require_student(uow, account_id)
        now = self.now()
        job.assigned_to = student.account_id
        job.assigned_at = now
        job.updated_at = now
        uow.put_job(job)
        self._emit(uow, "job.assigned", job.job_id, to_dict(job))
        return job

    def _require_student(self, uow: UnitOfWork, account_id: str) -> Account:
        account = uow.require_account(account_id)
        if account.role != Role.STUDENT:
            raise InvalidRoleError("Jobs can only be assigned to students")
        return account

    # Payroll
    def pay_salary(self, principal: Principal, job_id: str) -> SalaryPayment:
        """Pay the assignee of an occupied job.

        Project jobs are completed by the payment; fixed jobs stay occupied
        and record ``last_payment_at``.

        Raises
        ------
        ConflictError
            The job is not occupied.
        NotFoundError
            The job or its assignee no longer exists.
        """
        require_role(principal, Role.TEACHER, "pay salaries")
        with self._transaction() as uow:
            job = uow.require_job(job_id)
            if not job.is_occupied:
                raise ConflictError(f"Job {job_id} has no active assignee")

            result = self.ledger.grant_within(
                uow, principal, [job.assigned_to], job.salary, job.title
            )
            if not result.succeeded:
                raise NotFoundError(f"Assignee {job.assigned_to} of job {job_id} no longer exists")

            now = self.now()
            job.last_payment_at = now
            job.updated_at = now
            if job.job_type == JobType.PROJECT:
                job.status = JobStatus.COMPLETED
                job.completed_at = now
            uow.put_job(job)
            self._emit(uow, "job.paid", job_id, to_dict(job))

        payment = SalaryPayment(transaction=result.succeeded[0], job=job)
        logger.info(
            "Paid %s to %s for job %s",
            job.salary,
            job.assigned_to,
            job_id,
            extra={"job_id": job_id, "account_id": job.assigned_to, "amount": job.salary},
        )
        return payment

    def pay_salary_all(self, principal: Principal) -> PayrollResult:
        """Pay every occupied job, one unit of work per job."""
        require_role(principal, Role.TEACHER, "pay salaries")
        with self._snapshot() as view:
            occupied = [job for job in view.jobs.values() if job.is_occupied]

        result = PayrollResult()
        for job in occupied:
            try:
                result.successful.append(self.pay_salary(principal, job.job_id))
            except EconSimError as exc:
                logger.warning("Salary for job %s failed: %s", job.job_id, exc)
                result.failed.append(PayrollFailure(job=job, error=str(exc)))

        logger.info(
            "Payroll done: %d paid, %d failed", len(result.successful), len(result.failed)
        )
        return result

    # Lifecycle
    def end_job(self, principal: Principal, job_id: str) -> Job:
        """Complete an occupied job without paying."""
        require_role(principal, Role.TEACHER, "end jobs")
        with self._transaction() as uow:
            job = uow.require_job(job_id)
            if not job.is_occupied:
                raise ConflictError(f"Job {job_id} is not occupied")
            now = self.now()
            job.status = JobStatus.COMPLETED
            job.completed_at = now
            job.updated_at = now
            uow.put_job(job)
            self._emit(uow, "job.completed", job_id, to_dict(job))
        return job

    def republish(self, principal: Principal, job_id: str) -> Job:
        """Reopen a completed job for new applications."""
        require_role(principal, Role.TEACHER, "republish jobs")
        with self._transaction() as uow:
            job = uow.require_job(job_id)
            if job.status != JobStatus.COMPLETED:
                raise ConflictError(f"Job {job_id} is not completed")
            job.status = JobStatus.ACTIVE
            job.assigned_to = None
            job.assigned_at = None
            job.completed_at = None
            job.last_payment_at = None
            job.updated_at = self.now()
            uow.put_job(job)
            self._emit(uow, "job.republished", job_id, to_dict(job))
        return job

    def delete_job(self, principal: Principal, job_id: str) -> None:
        """Delete a job together with all of its applications."""
        require_role(principal, Role.TEACHER, "delete jobs")
        with self._transaction() as uow:
            uow.require_job(job_id)
            application_ids = [a.application_id for a in uow.job_applications(job_id)]
            uow.remove_applications(application_ids)
            uow.remove_job(job_id)
            self._emit(
                uow, "job.deleted", job_id, {"removed_applications": application_ids}
            )
        logger.info("Deleted job %s and %d applications", job_id, len(application_ids))

    # Queries
    def get_job(self, job_id: str) -> Job:
        with self._snapshot() as view:
            return view.require_job(job_id)

    def list_jobs(self) -> list[JobListing]:
        """Every job with its assignee's display name, newest first."""
        with self._snapshot() as view:
            listings = []
            for job in view.jobs.values():
                name = None
                if job.assigned_to is not None:
                    assignee = view.accounts.get(job.assigned_to)
                    name = assignee.display_name if assignee else UNKNOWN_USER
                listings.append(JobListing(job=job, assigned_to_name=name))
        listings.sort(key=lambda listing: listing.job.created_at, reverse=True)
        return listings

    def list_open_jobs(self) -> list[Job]:
        with self._snapshot() as view:
            jobs = [job for job in view.jobs.values() if job.is_open]
        return sorted(jobs, key=lambda job: job.created_at, reverse=True)

    def list_jobs_for(self, account_id: str, status: JobStatus | str | None = None) -> list[Job]:
        """Jobs assigned to an account, optionally filtered by status."""
        try:
            wanted = JobStatus(status) if status is not None else None
        except ValueError as exc:
            raise ValidationError(f"Invalid job status {status!r}") from exc
        with self._snapshot() as view:
            jobs = [
                job
                for job in view.jobs.values()
                if job.assigned_to == account_id and (wanted is None or job.status == wanted)
            ]
        return sorted(jobs, key=lambda job: job.assigned_at or job.created_at, reverse=True)
