"""Tests for demo data generators."""

from decimal import Decimal

from econsim.generators import ApplicationTextGenerator, JobGenerator, StudentGenerator
from econsim.models import JobType
from econsim.validation import (
    validate_application_text,
    validate_job_title,
    validate_name,
    validate_password,
    validate_username,
)


class TestStudentGenerator:
    """Tests for StudentGenerator."""

    def test_generate_student(self, seed: int) -> None:
        """Generated profiles pass account validation."""
        profile = StudentGenerator(seed=seed).generate()

        assert validate_name(profile.display_name) == profile.display_name
        assert validate_username(profile.username) == profile.username
        assert validate_password(profile.password) == profile.password

    def test_usernames_unique(self, seed: int) -> None:
        profiles = list(StudentGenerator(seed=seed).generate_batch(200))

        usernames = [p.username for p in profiles]
        assert len(set(usernames)) == 200
        assert all(u == u.lower() and u.isascii() for u in usernames)

    def test_reproducibility(self, seed: int) -> None:
        """Same seed produces the same students."""
        first = list(StudentGenerator(seed=seed).generate_batch(5))
        second = list(StudentGenerator(seed=seed).generate_batch(5))

        assert first == second


class TestJobGenerator:
    """Tests for JobGenerator."""

    def test_generate_job(self, seed: int) -> None:
        posting = JobGenerator(seed=seed).generate()

        assert validate_job_title(posting.title) == posting.title
        assert Decimal("50") <= posting.salary <= Decimal("300")
        assert posting.salary % 10 == 0
        assert posting.job_type in (JobType.FIXED, JobType.PROJECT)

    def test_batch_titles_unique_until_exhausted(self, seed: int) -> None:
        gen = JobGenerator(seed=seed)

        titles = [p.title for p in gen.generate_batch(len(gen.JOBS))]

        assert len(set(titles)) == len(gen.JOBS)

    def test_job_type_distribution(self, seed: int) -> None:
        postings = list(JobGenerator(seed=seed).generate_batch(500))

        fixed = sum(1 for p in postings if p.job_type == JobType.FIXED)
        assert 0.45 < fixed / len(postings) < 0.75


class TestApplicationTextGenerator:
    """Tests for ApplicationTextGenerator."""

    def test_text_within_limits(self, seed: int) -> None:
        gen = ApplicationTextGenerator(seed=seed)

        for _ in range(50):
            text = gen.generate("Postbud")
            assert validate_application_text(text) == text

    def test_mentions_job(self, seed: int) -> None:
        text = ApplicationTextGenerator(seed=seed).generate("Tavlevasker")

        assert "tavlevasker" in text
