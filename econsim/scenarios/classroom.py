"""Demo classroom scenario driven through the public engine API."""

import logging
import random
from decimal import Decimal
from typing import Any

from econsim.engine import ClassroomEngine
from econsim.exceptions import InsufficientFundsError
from econsim.generators import ApplicationTextGenerator, JobGenerator, StudentGenerator
from econsim.models import Account, Job, Principal

logger = logging.getLogger(__name__)

DEFAULT_TEACHER = {
    "display_name": "Lærer",
    "username": "teacher",
    "password": "teacher123",
}


class ClassroomScenario:
    """Populate a classroom with students, jobs, applications and payments.

    This scenario walks through one school week:
    - Teacher bootstraps the classroom (bank account 100)
    - Students get accounts with the starting balance
    - Teacher posts jobs, students apply
    - Teacher accepts one applicant per job, the rest are rejected
    - Payday pays every occupied job
    - Students send each other money
    """

    def __init__(
        self,
        engine: ClassroomEngine,
        num_students: int = 10,
        num_jobs: int = 5,
        applications_per_student: tuple[int, int] = (1, 2),
        num_transfers: int = 10,
        seed: int | None = None,
        teacher: dict[str, Any] | None = None,
    ) -> None:
        """Initialize classroom scenario.

        Parameters
        ----------
        engine : ClassroomEngine
            Engine to drive; the scenario only uses its public API.
        num_students : int
            Number of student accounts to create.
        num_jobs : int
            Number of jobs to post.
        applications_per_student : tuple[int, int]
            Min and max applications each student sends.
        num_transfers : int
            Number of student-to-student transfers to attempt.
        seed : int | None
            Random seed for reproducibility.
        teacher : dict | None
            Teacher account data used when the classroom is empty.
        """
        self.engine = engine
        self.num_students = num_students
        self.num_jobs = num_jobs
        self.applications_per_student = applications_per_student
        self.num_transfers = num_transfers
        self.teacher = teacher or DEFAULT_TEACHER
        self.random = random.Random(seed)

        self._student_gen = StudentGenerator(seed=seed)
        self._job_gen = JobGenerator(seed=seed)
        self._text_gen = ApplicationTextGenerator(seed=seed)

    def run(self) -> dict[str, Any]:
        """Run the whole scenario and return a summary of what happened."""
        bank = self.engine.initialize(self.teacher)
        teacher = Principal.of(bank)
        logger.info(
            "Starting classroom scenario: %d students, %d jobs", self.num_students, self.num_jobs
        )

        students = self._create_students(teacher)
        jobs = self._post_jobs(teacher)
        applied = self._apply(students, jobs)
        accepted = self._decide(teacher, jobs)
        payroll = self.engine.jobs.pay_salary_all(teacher)
        transfers, declined = self._transfer(students)

        summary = {
            "students": len(students),
            "jobs": len(jobs),
            "applications": applied,
            "accepted": accepted,
            "salaries_paid": len(payroll.successful),
            "salaries_failed": len(payroll.failed),
            "transfers": transfers,
            "transfers_declined": declined,
            **{f"total_{k}": v for k, v in self.engine.summary().items()},
        }
        logger.info("Classroom scenario done: %s", summary)
        return summary

    def _create_students(self, teacher: Principal) -> list[Account]:
        students = []
        for profile in self._student_gen.generate_batch(self.num_students):
            students.append(
                self.engine.accounts.create_account(
                    teacher,
                    display_name=profile.display_name,
                    username=profile.username,
                    password=profile.password,
                )
            )
        return students

    def _post_jobs(self, teacher: Principal) -> list[Job]:
        return [
            self.engine.jobs.post_job(
                teacher,
                title=posting.title,
                description=posting.description,
                salary=posting.salary,
                job_type=posting.job_type,
            )
            for posting in self._job_gen.generate_batch(self.num_jobs)
        ]

    def _apply(self, students: list[Account], jobs: list[Job]) -> int:
        if not jobs:
            return 0
        count = 0
        for student in students:
            wanted = min(len(jobs), self.random.randint(*self.applications_per_student))
            for job in self.random.sample(jobs, k=wanted):
                self.engine.applications.apply(
                    Principal.of(student), job.job_id, self._text_gen.generate(job.title)
                )
                count += 1
        return count

    def _decide(self, teacher: Principal, jobs: list[Job]) -> int:
        accepted = 0
        for job in jobs:
            pending = [
                a for a in self.engine.applications.list_for_job(teacher, job.job_id) if a.is_pending
            ]
            if not pending:
                continue
            chosen = self.random.choice(pending)
            self.engine.applications.accept(teacher, chosen.application_id)
            accepted += 1
        return accepted

    def _transfer(self, students: list[Account]) -> tuple[int, int]:
        if len(students) < 2:
            return 0, 0
        done = declined = 0
        for _ in range(self.num_transfers):
            sender, recipient = self.random.sample(students, k=2)
            amount = Decimal(self.random.randrange(10, 500, 5))
            try:
                self.engine.accounts.transfer(
                    Principal.of(sender), recipient.account_number, amount, "Takk for hjelpen"
                )
                done += 1
            except InsufficientFundsError:
                declined += 1
        return done, declined
