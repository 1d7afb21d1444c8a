"""Assignment aggregate: links a task to a participant with a progress status.

The (task_id, participant_id) pair is unique per assignment. That rule is
enforced by the storage layer's unique index, not by this object.
"""

from dataclasses import dataclass, replace
from typing import TypedDict

from .value_objects import Id, ProgressStatus, create_id, create_progress_status, parse_id


class AssignmentPayload(TypedDict):
    id: str
    task_id: str
    participant_id: str
    progress_status: str


@dataclass(frozen=True)
class Assignment:
    id: Id
    task_id: Id
    participant_id: Id
    progress_status: ProgressStatus

    @classmethod
    def create(
        cls, task_id: str, participant_id: str, progress_status: str
    ) -> "Assignment":
        return cls._build(create_id(), task_id, participant_id, progress_status)

    @classmethod
    def reconstruct(
        cls, id: str, task_id: str, participant_id: str, progress_status: str
    ) -> "Assignment":
        return cls._build(parse_id(id), task_id, participant_id, progress_status)

    @classmethod
    def _build(
        cls,
        assignment_id: Id,
        task_id: str,
        participant_id: str,
        progress_status: str,
    ) -> "Assignment":
        valid_task_id = parse_id(task_id)
        valid_participant_id = parse_id(participant_id)
        valid_status = create_progress_status(progress_status)
        return cls(
            id=assignment_id,
            task_id=valid_task_id,
            participant_id=valid_participant_id,
            progress_status=valid_status,
        )

    def change_progress(self, progress_status: str) -> "Assignment":
        return replace(self, progress_status=create_progress_status(progress_status))

    def to_payload(self) -> AssignmentPayload:
        return AssignmentPayload(
            id=str(self.id),
            task_id=str(self.task_id),
            participant_id=str(self.participant_id),
            progress_status=self.progress_status.value,
        )
