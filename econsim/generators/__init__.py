"""Faker-based generators for demo classroom data."""

from econsim.generators.base import BaseGenerator
from econsim.generators.classroom import (
    ApplicationTextGenerator,
    JobGenerator,
    JobPosting,
    StudentGenerator,
    StudentProfile,
)

__all__ = [
    "ApplicationTextGenerator",
    "BaseGenerator",
    "JobGenerator",
    "JobPosting",
    "StudentGenerator",
    "StudentProfile",
]
