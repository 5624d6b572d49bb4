"""Enumeration types for classroom economy entities."""

from enum import Enum


class Role(str, Enum):
    TEACHER = "teacher"
    STUDENT = "student"


class JobType(str, Enum):
    FIXED = "fixed"  # Paid repeatedly while occupied
    PROJECT = "project"  # Paid once, then completed


class JobStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
