"""Classroom economy ledger and job-market engine."""

from econsim.config import EconSimConfig
from econsim.engine import ClassroomEngine
from econsim.models import Principal, Role

__version__ = "0.1.0"

__all__ = ["ClassroomEngine", "EconSimConfig", "Principal", "Role", "__version__"]
