"""Assignment use cases: hand tasks to participants and track progress."""

import logging

from .assignment import Assignment, AssignmentPayload
from .errors import (
    AssignmentNotFoundError,
    NotFoundUseCaseError,
    TeamboardError,
    UseCaseError,
)
from .ports import AssignmentRepositoryPort, ParticipantRepositoryPort, TaskRepositoryPort
from .value_objects import (
    ProgressStatus,
    create_progress_status,
    parse_id,
)

logger = logging.getLogger(__name__)


class AssignTaskUseCaseError(UseCaseError):
    pass


class AssignTaskUseCaseNotFoundError(AssignTaskUseCaseError, NotFoundUseCaseError):
    pass


class UpdateAssignmentProgressUseCaseError(UseCaseError):
    pass


class UpdateAssignmentProgressUseCaseNotFoundError(
    UpdateAssignmentProgressUseCaseError, NotFoundUseCaseError
):
    pass


class FindAssignmentsUseCaseError(UseCaseError):
    pass


class AssignTaskUseCase:
    """Assign an existing task to an existing participant.

    Both ends are looked up first so a dangling assignment is never stored.
    A second assignment of the same pair is rejected here, and the
    repository's unique index backs that up.
    """

    def __init__(
        self,
        assignment_repository: AssignmentRepositoryPort,
        task_repository: TaskRepositoryPort,
        participant_repository: ParticipantRepositoryPort,
    ):
        self.assignment_repository = assignment_repository
        self.task_repository = task_repository
        self.participant_repository = participant_repository

    async def execute(
        self,
        task_id: str,
        participant_id: str,
        progress_status: str = ProgressStatus.NOT_STARTED.value,
    ) -> AssignmentPayload:
        """Create an assignment.

        Args:
            task_id: Task to assign.
            participant_id: Participant receiving the task.
            progress_status: Initial status, 未着手 by default.

        Raises:
            AssignTaskUseCaseNotFoundError: If the task or participant does
                not exist.
            AssignTaskUseCaseError: For invalid input or a storage failure.
        """
        try:
            assignment = Assignment.create(
                task_id=task_id,
                participant_id=participant_id,
                progress_status=progress_status,
            )
            task = await self.task_repository.find_by_id(assignment.task_id)
            if task is None:
                raise AssignTaskUseCaseNotFoundError("Task not found")
            participants = await self.participant_repository.find_many_by(
                id=assignment.participant_id
            )
            if not participants:
                raise AssignTaskUseCaseNotFoundError("Participant not found")
            existing = await self.assignment_repository.find_many_by(
                task_id=assignment.task_id, participant_id=assignment.participant_id
            )
            if existing:
                raise AssignTaskUseCaseError(
                    f"Task {assignment.task_id} is already assigned to "
                    f"participant {assignment.participant_id}"
                )
            saved = await self.assignment_repository.save(assignment)
        except AssignTaskUseCaseError:
            raise
        except TeamboardError as e:
            raise AssignTaskUseCaseError(str(e)) from e

        logger.info(
            f"Task {saved.task_id} assigned to {saved.participant_id}",
            extra={
                "assignment_id": str(saved.id),
                "task_id": str(saved.task_id),
                "participant_id": str(saved.participant_id),
            },
        )
        return saved.to_payload()


class UpdateAssignmentProgressUseCase:
    def __init__(self, assignment_repository: AssignmentRepositoryPort):
        self.assignment_repository = assignment_repository

    async def execute(self, assignment_id: str, progress_status: str) -> AssignmentPayload:
        """Move an assignment to a new progress status.

        Raises:
            UpdateAssignmentProgressUseCaseNotFoundError: If no assignment has
                this id.
            UpdateAssignmentProgressUseCaseError: For invalid input or a
                storage failure.
        """
        try:
            valid_id = parse_id(assignment_id)
            valid_status = create_progress_status(progress_status)
            updated = await self.assignment_repository.update(
                valid_id, progress_status=valid_status.value
            )
        except AssignmentNotFoundError as e:
            raise UpdateAssignmentProgressUseCaseNotFoundError(str(e)) from e
        except TeamboardError as e:
            raise UpdateAssignmentProgressUseCaseError(str(e)) from e

        logger.info(
            f"Assignment {updated.id} moved to {updated.progress_status.value}",
            extra={
                "assignment_id": str(updated.id),
                "progress_status": updated.progress_status.value,
            },
        )
        return updated.to_payload()


class FindAssignmentsUseCase:
    def __init__(self, assignment_repository: AssignmentRepositoryPort):
        self.assignment_repository = assignment_repository

    async def execute(
        self,
        task_id: str | None = None,
        participant_id: str | None = None,
        progress_status: str | None = None,
    ) -> list[AssignmentPayload]:
        try:
            assignments = await self.assignment_repository.find_many_by(
                task_id=parse_id(task_id) if task_id is not None else None,
                participant_id=(
                    parse_id(participant_id) if participant_id is not None else None
                ),
                progress_status=(
                    create_progress_status(progress_status).value
                    if progress_status is not None
                    else None
                ),
            )
        except TeamboardError as e:
            raise FindAssignmentsUseCaseError(str(e)) from e

        return [assignment.to_payload() for assignment in assignments]
