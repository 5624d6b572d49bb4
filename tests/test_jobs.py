"""Tests for the job market."""

from decimal import Decimal

import pytest

from econsim.exceptions import (
    AmountFormatError,
    ConflictError,
    InvalidRoleError,
    NotFoundError,
    ValidationError,
)
from econsim.models import JobStatus, JobType


@pytest.fixture
def post(engine, teacher):
    """Post a job with sensible defaults."""

    def factory(**overrides):
        data = {
            "title": "Tavlevasker",
            "description": "Vasker tavla",
            "salary": 100,
            "job_type": "fixed",
        }
        data.update(overrides)
        return engine.jobs.post_job(teacher, **data)

    return factory


class TestPostJob:
    """Tests for JobMarket.post_job."""

    def test_post_open_job(self, post, teacher) -> None:
        job = post(title="  Planteansvarlig ", salary="75.50", job_type=JobType.PROJECT)

        assert job.title == "Planteansvarlig"
        assert job.salary == Decimal("75.50")
        assert job.job_type == JobType.PROJECT
        assert job.status == JobStatus.ACTIVE
        assert job.posted_by == teacher.account_id
        assert job.is_open
        assert job.job_id.startswith("job_")

    def test_post_assigned(self, post, kari) -> None:
        job = post(assigned_to=kari.account_id)

        assert job.is_occupied
        assert job.assigned_to == kari.account_id
        assert job.assigned_at == job.created_at

    def test_post_assigned_to_teacher(self, post, teacher) -> None:
        with pytest.raises(InvalidRoleError):
            post(assigned_to=teacher.account_id)

    def test_post_assigned_to_missing(self, post, engine) -> None:
        with pytest.raises(NotFoundError):
            post(assigned_to="acct_missing")

        assert engine.jobs.list_jobs() == []

    def test_description_optional(self, post) -> None:
        assert post(description=None).description == ""

    @pytest.mark.parametrize(
        "field,value,error",
        [
            ("title", "ab", ValidationError),
            ("title", "x" * 101, ValidationError),
            ("description", "x" * 501, ValidationError),
            ("salary", 0, AmountFormatError),
            ("salary", "12.345", AmountFormatError),
            ("job_type", "hourly", ValidationError),
        ],
    )
    def test_validation(self, post, field, value, error) -> None:
        with pytest.raises(error):
            post(**{field: value})

    def test_student_cannot_post(self, engine, kari_p) -> None:
        with pytest.raises(InvalidRoleError):
            engine.jobs.post_job(kari_p, title="Jobb", salary=10, job_type="fixed")


class TestUpdateJob:
    """Tests for JobMarket.update_job."""

    def test_update(self, engine, teacher, post) -> None:
        job = post()

        updated = engine.jobs.update_job(
            teacher, job.job_id, {"title": "Ny tittel", "salary": "120"}
        )

        assert updated.title == "Ny tittel"
        assert updated.salary == Decimal("120")
        assert engine.jobs.get_job(job.job_id).updated_at is not None

    @pytest.mark.parametrize("field", ["job_type", "status", "assigned_to", "colour"])
    def test_rejects_other_fields(self, engine, teacher, post, field) -> None:
        job = post()

        with pytest.raises(ValidationError, match=field):
            engine.jobs.update_job(teacher, job.job_id, {field: "project"})

    def test_revalidates(self, engine, teacher, post) -> None:
        job = post()

        with pytest.raises(AmountFormatError):
            engine.jobs.update_job(teacher, job.job_id, {"salary": -1})

    def test_missing(self, engine, teacher) -> None:
        with pytest.raises(NotFoundError):
            engine.jobs.update_job(teacher, "job_missing", {"title": "Ny tittel"})


class TestAssignDirect:
    """Tests for JobMarket.assign_direct."""

    def test_assign(self, engine, teacher, post, kari) -> None:
        job = post()

        assigned = engine.jobs.assign_direct(teacher, job.job_id, kari.account_id)

        assert assigned.assigned_to == kari.account_id
        assert engine.jobs.get_job(job.job_id).is_occupied

    def test_not_open(self, engine, teacher, post, kari, ola) -> None:
        job = post(assigned_to=kari.account_id)

        with pytest.raises(ConflictError):
            engine.jobs.assign_direct(teacher, job.job_id, ola.account_id)

    def test_target_must_be_student(self, engine, teacher, post) -> None:
        job = post()

        with pytest.raises(InvalidRoleError):
            engine.jobs.assign_direct(teacher, job.job_id, teacher.account_id)


class TestPaySalary:
    """Tests for JobMarket.pay_salary and pay_salary_all."""

    def test_fixed_job_paid_repeatedly(self, engine, teacher, bank, post, kari) -> None:
        job = post(salary=100, assigned_to=kari.account_id)

        first = engine.jobs.pay_salary(teacher, job.job_id)
        second = engine.jobs.pay_salary(teacher, job.job_id)

        assert first.transaction.amount == Decimal("100")
        assert first.transaction.message == "Tavlevasker"
        assert second.job.status == JobStatus.ACTIVE
        assert second.job.last_payment_at > first.job.last_payment_at
        assert engine.accounts.get_account(kari.account_id).balance == Decimal("1200")
        assert engine.accounts.get_account(bank.account_id).balance == bank.balance

    def test_project_job_completes(self, engine, teacher, post, kari) -> None:
        job = post(salary=200, job_type="project", assigned_to=kari.account_id)

        payment = engine.jobs.pay_salary(teacher, job.job_id)

        assert payment.job.status == JobStatus.COMPLETED
        assert payment.job.completed_at == payment.job.last_payment_at
        assert payment.job.assigned_to == kari.account_id
        with pytest.raises(ConflictError):
            engine.jobs.pay_salary(teacher, job.job_id)
        assert engine.accounts.get_account(kari.account_id).balance == Decimal("1200")

    def test_open_job_cannot_be_paid(self, engine, teacher, post) -> None:
        job = post()

        with pytest.raises(ConflictError):
            engine.jobs.pay_salary(teacher, job.job_id)

    def test_assignee_gone_changes_nothing(self, engine, teacher, post, kari) -> None:
        """Paying a deleted assignee fails without touching the job."""
        job = post(assigned_to=kari.account_id)
        engine.accounts.delete_account(teacher, kari.account_id)

        with pytest.raises(NotFoundError):
            engine.jobs.pay_salary(teacher, job.job_id)

        assert engine.jobs.get_job(job.job_id).last_payment_at is None
        assert engine.summary()["transactions"] == 0

    def test_pay_all_collects_failures(self, engine, teacher, post, kari, ola) -> None:
        paid = post(assigned_to=kari.account_id)
        orphaned = post(title="Postbud", assigned_to=ola.account_id)
        post(title="Matvert")
        engine.accounts.delete_account(teacher, ola.account_id)

        result = engine.jobs.pay_salary_all(teacher)

        assert [p.job.job_id for p in result.successful] == [paid.job_id]
        assert [f.job.job_id for f in result.failed] == [orphaned.job_id]
        assert "no longer exists" in result.failed[0].error

    def test_student_cannot_pay(self, engine, post, kari, kari_p) -> None:
        job = post(assigned_to=kari.account_id)

        with pytest.raises(InvalidRoleError):
            engine.jobs.pay_salary(kari_p, job.job_id)


class TestLifecycle:
    """Tests for ending, republishing and deleting jobs."""

    def test_end_job(self, engine, teacher, post, kari) -> None:
        job = post(assigned_to=kari.account_id)

        ended = engine.jobs.end_job(teacher, job.job_id)

        assert ended.status == JobStatus.COMPLETED
        assert ended.completed_at is not None
        assert engine.accounts.get_account(kari.account_id).balance == Decimal("1000")

    def test_end_open_job(self, engine, teacher, post) -> None:
        job = post()

        with pytest.raises(ConflictError):
            engine.jobs.end_job(teacher, job.job_id)

    def test_republish(self, engine, teacher, post, kari, ola_p) -> None:
        """A republished job is open again and takes new applications."""
        job = post(job_type="project", assigned_to=kari.account_id)
        engine.jobs.pay_salary(teacher, job.job_id)

        reopened = engine.jobs.republish(teacher, job.job_id)

        assert reopened.is_open
        assert reopened.assigned_to is None
        assert reopened.assigned_at is None
        assert reopened.completed_at is None
        assert reopened.last_payment_at is None
        application = engine.applications.apply(ola_p, job.job_id, "Jeg vil gjerne ha jobben")
        assert application.is_pending

    def test_republish_active(self, engine, teacher, post) -> None:
        job = post()

        with pytest.raises(ConflictError):
            engine.jobs.republish(teacher, job.job_id)

    def test_delete_cascades(self, engine, teacher, post, kari_p, ola_p) -> None:
        job = post()
        other = post(title="Postbud")
        engine.applications.apply(kari_p, job.job_id, "Jeg vil gjerne ha jobben")
        engine.applications.apply(ola_p, job.job_id, "Jeg vil også ha jobben")
        kept = engine.applications.apply(ola_p, other.job_id, "Jeg vil være postbud")

        engine.jobs.delete_job(teacher, job.job_id)

        with pytest.raises(NotFoundError):
            engine.jobs.get_job(job.job_id)
        assert [a.application_id for a in engine.applications.list_for_applicant(ola_p)] == [
            kept.application_id
        ]
        assert engine.summary()["applications"] == 1

    def test_delete_missing(self, engine, teacher) -> None:
        with pytest.raises(NotFoundError):
            engine.jobs.delete_job(teacher, "job_missing")


class TestJobQueries:
    """Tests for listings."""

    def test_list_jobs_with_names(self, engine, teacher, post, kari) -> None:
        open_job = post()
        taken = post(title="Postbud", assigned_to=kari.account_id)

        listings = {listing.job.job_id: listing for listing in engine.jobs.list_jobs()}

        assert listings[open_job.job_id].assigned_to_name is None
        assert listings[taken.job_id].assigned_to_name == "Kari Nordmann"

    def test_unknown_user(self, engine, teacher, post, kari) -> None:
        job = post(assigned_to=kari.account_id)
        engine.accounts.delete_account(teacher, kari.account_id)

        (listing,) = engine.jobs.list_jobs()

        assert listing.job.job_id == job.job_id
        assert listing.assigned_to_name == "Unknown user"

    def test_list_open_jobs_newest_first(self, engine, post, kari) -> None:
        older = post()
        post(title="Postbud", assigned_to=kari.account_id)
        newer = post(title="Matvert")

        assert [j.job_id for j in engine.jobs.list_open_jobs()] == [newer.job_id, older.job_id]

    def test_list_jobs_for(self, engine, teacher, post, kari) -> None:
        active = post(assigned_to=kari.account_id)
        done = post(title="Postbud", job_type="project", assigned_to=kari.account_id)
        engine.jobs.pay_salary(teacher, done.job_id)

        assert [j.job_id for j in engine.jobs.list_jobs_for(kari.account_id, "active")] == [
            active.job_id
        ]
        assert [
            j.job_id for j in engine.jobs.list_jobs_for(kari.account_id, JobStatus.COMPLETED)
        ] == [done.job_id]
        assert len(engine.jobs.list_jobs_for(kari.account_id)) == 2

    def test_list_jobs_for_bad_status(self, engine, kari) -> None:
        with pytest.raises(ValidationError):
            engine.jobs.list_jobs_for(kari.account_id, "paused")
