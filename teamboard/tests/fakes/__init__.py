"""Fake implementations of the repository ports for testing.

These in-memory implementations allow use cases to be tested without a
database:

- FakeTeamRepository: Teams keyed by id, with TeamNotFoundError semantics
- FakeTaskRepository: Tasks keyed by id, find_by_id returns None when absent
- FakeParticipantRepository: Participants with optional team membership
- FakeAssignmentRepository: Assignments with the (task, participant) pair unique
"""

from .assignment import FakeAssignmentRepository
from .participant import FakeParticipantRepository
from .task import FakeTaskRepository
from .team import FakeTeamRepository

__all__ = [
    "FakeAssignmentRepository",
    "FakeParticipantRepository",
    "FakeTaskRepository",
    "FakeTeamRepository",
]
