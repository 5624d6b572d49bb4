"""Scenarios for generating demo classroom economies."""

from econsim.scenarios.classroom import DEFAULT_TEACHER, ClassroomScenario

__all__ = ["ClassroomScenario", "DEFAULT_TEACHER"]
