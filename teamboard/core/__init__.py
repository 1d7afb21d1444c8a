"""Core domain logic for the teamboard backend.

This package contains zero external dependencies and represents the pure
business logic of the application: value objects, aggregates, repository
ports and use cases. Storage and transport live in the adapters package.
"""

from .assignment import Assignment
from .participant import Participant
from .task import Task
from .team import MAX_PARTICIPANTS, MIN_PARTICIPANTS, Team, TeamParticipants
from .value_objects import EnrollmentStatus, ProgressStatus

__all__ = [
    "Assignment",
    "EnrollmentStatus",
    "MAX_PARTICIPANTS",
    "MIN_PARTICIPANTS",
    "Participant",
    "ProgressStatus",
    "Task",
    "Team",
    "TeamParticipants",
]
