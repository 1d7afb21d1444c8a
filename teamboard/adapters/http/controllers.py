"""HTTP controllers: translate requests into use case calls.

Each controller owns the use cases for one resource and exposes one async
method per route. Methods receive already-parsed path parameters, query
parameters and JSON body, and return ``(status_code, payload)``. Failures are
raised, not returned: the HTTP server maps them to status codes.
"""

from collections.abc import Mapping
from typing import Any

from teamboard.core.assignment_use_cases import (
    AssignTaskUseCase,
    FindAssignmentsUseCase,
    UpdateAssignmentProgressUseCase,
)
from teamboard.core.participant_use_cases import (
    FindParticipantsUseCase,
    UpdateParticipantEnrollmentUseCase,
)
from teamboard.core.ports import (
    AssignmentRepositoryPort,
    ParticipantRepositoryPort,
    TaskRepositoryPort,
    TeamRepositoryPort,
)
from teamboard.core.task_use_cases import (
    CreateTaskUseCase,
    EditTaskTitleUseCase,
    FindManyTasksUseCase,
    FindTaskUseCase,
    SetTaskDoneUseCase,
    ToggleTaskDoneUseCase,
)
from teamboard.core.team_use_cases import (
    CreateTeamUseCase,
    DeleteTeamUseCase,
    FindManyTeamsUseCase,
    FindTeamByIdUseCase,
    UpdateTeamUseCase,
)

Response = tuple[int, Any]


class BadRequestError(Exception):
    """The request is malformed before any use case could run."""


def _require(body: Mapping[str, Any], field: str) -> Any:
    if field not in body or body[field] is None:
        raise BadRequestError(f"Missing {field}")
    return body[field]


def _require_list(body: Mapping[str, Any], field: str) -> list[Any]:
    value = _require(body, field)
    if not isinstance(value, list) or not all(isinstance(row, dict) for row in value):
        raise BadRequestError(f"{field} must be a list of objects")
    return value


class TaskController:
    """Routes under /tasks."""

    def __init__(self, task_repository: TaskRepositoryPort):
        self.create_task_use_case = CreateTaskUseCase(task_repository)
        self.find_task_use_case = FindTaskUseCase(task_repository)
        self.find_many_tasks_use_case = FindManyTasksUseCase(task_repository)
        self.edit_task_title_use_case = EditTaskTitleUseCase(task_repository)
        self.set_task_done_use_case = SetTaskDoneUseCase(task_repository)
        self.toggle_task_done_use_case = ToggleTaskDoneUseCase(task_repository)

    async def list_tasks(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        """GET /tasks. ``?filter=todo`` narrows to tasks not yet done."""
        return 200, await self.find_many_tasks_use_case.execute(filter=query.get("filter"))

    async def get_task(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        return 200, await self.find_task_use_case.execute(params["task_id"])

    async def create_task(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        title = _require(body, "title")
        return 201, await self.create_task_use_case.execute(title)

    async def edit_task_title(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        title = _require(body, "title")
        return 200, await self.edit_task_title_use_case.execute(params["task_id"], title)

    async def set_task_done(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        return 200, await self.set_task_done_use_case.execute(params["task_id"])

    async def toggle_task_done(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        return 200, await self.toggle_task_done_use_case.execute(params["task_id"])


class TeamController:
    """Routes under /teams."""

    def __init__(self, team_repository: TeamRepositoryPort):
        self.create_team_use_case = CreateTeamUseCase(team_repository)
        self.find_team_by_id_use_case = FindTeamByIdUseCase(team_repository)
        self.find_many_teams_use_case = FindManyTeamsUseCase(team_repository)
        self.update_team_use_case = UpdateTeamUseCase(team_repository)
        self.delete_team_use_case = DeleteTeamUseCase(team_repository)

    async def list_teams(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        return 200, await self.find_many_teams_use_case.execute()

    async def get_team(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        return 200, await self.find_team_by_id_use_case.execute(params["team_id"])

    async def create_team(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        name = _require(body, "name")
        participants = _require_list(body, "participants")
        return 201, await self.create_team_use_case.execute(name, participants)

    async def update_team(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        participants = (
            _require_list(body, "participants") if "participants" in body else None
        )
        payload = await self.update_team_use_case.execute(
            params["team_id"], name=body.get("name"), participants=participants
        )
        return 200, payload

    async def delete_team(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        await self.delete_team_use_case.execute(params["team_id"])
        return 204, None


class ParticipantController:
    """Routes under /participants."""

    def __init__(self, participant_repository: ParticipantRepositoryPort):
        self.find_participants_use_case = FindParticipantsUseCase(participant_repository)
        self.update_enrollment_use_case = UpdateParticipantEnrollmentUseCase(
            participant_repository
        )

    async def list_participants(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        payload = await self.find_participants_use_case.execute(
            team_id=query.get("team_id"),
            email=query.get("email"),
            enrollment_status=query.get("enrollment_status"),
        )
        return 200, payload

    async def update_enrollment(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        status = _require(body, "enrollment_status")
        payload = await self.update_enrollment_use_case.execute(
            params["participant_id"], status
        )
        return 200, payload


class AssignmentController:
    """Routes under /assignments."""

    def __init__(
        self,
        assignment_repository: AssignmentRepositoryPort,
        task_repository: TaskRepositoryPort,
        participant_repository: ParticipantRepositoryPort,
    ):
        self.assign_task_use_case = AssignTaskUseCase(
            assignment_repository, task_repository, participant_repository
        )
        self.update_progress_use_case = UpdateAssignmentProgressUseCase(
            assignment_repository
        )
        self.find_assignments_use_case = FindAssignmentsUseCase(assignment_repository)

    async def list_assignments(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        payload = await self.find_assignments_use_case.execute(
            task_id=query.get("task_id"),
            participant_id=query.get("participant_id"),
            progress_status=query.get("progress_status"),
        )
        return 200, payload

    async def assign_task(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        task_id = _require(body, "task_id")
        participant_id = _require(body, "participant_id")
        kwargs = {}
        if body.get("progress_status") is not None:
            kwargs["progress_status"] = body["progress_status"]
        payload = await self.assign_task_use_case.execute(task_id, participant_id, **kwargs)
        return 201, payload

    async def update_progress(
        self, params: Mapping[str, str], query: Mapping[str, str], body: Mapping[str, Any]
    ) -> Response:
        status = _require(body, "progress_status")
        payload = await self.update_progress_use_case.execute(
            params["assignment_id"], status
        )
        return 200, payload
