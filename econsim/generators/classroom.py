"""Generators for demo classroom data: students, jobs and applications."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator

from econsim.generators.base import BaseGenerator
from econsim.models import JobType
from econsim.validation import APPLICATION_TEXT_LENGTH, USERNAME_LENGTH

_TRANSLITERATION = str.maketrans({"æ": "ae", "ø": "o", "å": "a", "é": "e", "ü": "u"})
_NON_USERNAME = re.compile(r"[^a-z0-9_]")


@dataclass
class StudentProfile:
    """Input for ``AccountLedger.create_account``."""

    display_name: str
    username: str
    password: str


@dataclass
class JobPosting:
    """Input for ``JobMarket.post_job``."""

    title: str
    description: str
    salary: Decimal
    job_type: JobType


class StudentGenerator(BaseGenerator):
    """Generate students with unique, valid usernames."""

    def __init__(self, seed: int | None = None, locale: str = "no_NO") -> None:
        super().__init__(seed, locale)
        self._used: set[str] = set()

    def generate(self) -> StudentProfile:
        """Generate a single student profile.

        Returns
        -------
        StudentProfile
            Display name, unique username and password.
        """
        first = self.fake.first_name()
        last = self.fake.last_name()
        return StudentProfile(
            display_name=f"{first} {last}",
            username=self._username(first),
            password=self.fake.password(length=10, special_chars=False),
        )

    def generate_batch(self, count: int) -> Iterator[StudentProfile]:
        for _ in range(count):
            yield self.generate()

    def _username(self, first_name: str) -> str:
        min_len, max_len = USERNAME_LENGTH
        base = _NON_USERNAME.sub("", first_name.lower().translate(_TRANSLITERATION))
        base = (base or "elev")[: max_len - 3]
        while True:
            candidate = f"{base}{self.random.randint(10, 999)}"
            if len(candidate) >= min_len and candidate not in self._used:
                self._used.add(candidate)
                return candidate


class JobGenerator(BaseGenerator):
    """Generate classroom job postings."""

    JOBS = [
        ("Klassebibliotekar", "Holder orden på klassens bøker og utlån."),
        ("Tavlevasker", "Vasker tavla etter hver skoletime."),
        ("Planteansvarlig", "Vanner plantene i klasserommet hver dag."),
        ("Matvert", "Deler ut frukt og rydder etter lunsj."),
        ("Datasjef", "Sjekker at alle PC-ene er ladet og slått av."),
        ("Postbud", "Henter og leverer beskjeder til kontoret."),
        ("Ryddeansvarlig", "Sørger for at pultene er ryddet før helgen."),
        ("Redaktør for klasseavisa", "Skriver og setter sammen en utgave av klasseavisa."),
        ("Plakatdesigner", "Lager en plakat til temauka."),
        ("Quizmaster", "Lager og leder en fredagsquiz for klassen."),
    ]
    JOB_TYPES = [JobType.FIXED, JobType.PROJECT]
    JOB_TYPE_WEIGHTS = [0.6, 0.4]

    # Salary range in whole currency units
    SALARY_RANGE = (50, 300)

    def generate(self) -> JobPosting:
        title, description = self.random.choice(self.JOBS)
        salary = self.random.randrange(self.SALARY_RANGE[0], self.SALARY_RANGE[1] + 1, 10)
        job_type = self.random.choices(self.JOB_TYPES, weights=self.JOB_TYPE_WEIGHTS, k=1)[0]
        return JobPosting(
            title=title,
            description=description,
            salary=Decimal(salary),
            job_type=job_type,
        )

    def generate_batch(self, count: int) -> Iterator[JobPosting]:
        """Generate ``count`` postings, cycling through the titles without repeats first."""
        titles = self.random.sample(self.JOBS, k=len(self.JOBS))
        for i in range(count):
            posting = self.generate()
            posting.title, posting.description = titles[i % len(titles)]
            yield posting


class ApplicationTextGenerator(BaseGenerator):
    """Generate motivation texts within the accepted length range."""

    OPENINGS = [
        "Jeg vil gjerne bli {title}.",
        "Jeg søker på jobben som {title}.",
        "Hei! Jeg kunne tenke meg å være {title}.",
    ]

    def generate(self, job_title: str) -> str:
        min_len, max_len = APPLICATION_TEXT_LENGTH
        opening = self.random.choice(self.OPENINGS).format(title=job_title.lower())
        text = f"{opening} {self.fake.sentence(nb_words=10)}"
        if len(text) < min_len:
            text = text.ljust(min_len, ".")
        return text[:max_len]
