"""CLI command implementations for teamboard management.

Maps CLI commands (list-teams, create-task, assign, ...) to use cases and
handles CLI-specific formatting and error reporting. Every command returns a
dictionary with ``status`` ("success" or "error") and ``operation`` keys.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from teamboard.core.assignment_use_cases import (
    AssignTaskUseCase,
    FindAssignmentsUseCase,
    UpdateAssignmentProgressUseCase,
)
from teamboard.core.errors import UseCaseError
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

logger = logging.getLogger(__name__)


def _error(operation: str, error: Exception, **context: Any) -> dict[str, Any]:
    logger.error(f"Failed to {operation.replace('_', ' ')}: {error}")
    return {"status": "error", "operation": operation, **context, "message": str(error)}


class CLICommandHandler:
    """Handles CLI commands by delegating to the use cases.

    Use case failures are reported as ``{"status": "error", ...}`` results
    rather than raised, so one bad command never ends an interactive session.
    """

    def __init__(
        self,
        team_repository: TeamRepositoryPort,
        task_repository: TaskRepositoryPort,
        participant_repository: ParticipantRepositoryPort,
        assignment_repository: AssignmentRepositoryPort,
    ):
        """Initialize the CLI command handler.

        Args:
            team_repository: Storage for teams.
            task_repository: Storage for tasks.
            participant_repository: Storage for participants.
            assignment_repository: Storage for assignments.
        """
        self.find_many_teams = FindManyTeamsUseCase(team_repository)
        self.find_team_by_id = FindTeamByIdUseCase(team_repository)
        self.create_team_use_case = CreateTeamUseCase(team_repository)
        self.update_team_use_case = UpdateTeamUseCase(team_repository)
        self.delete_team_use_case = DeleteTeamUseCase(team_repository)
        self.find_many_tasks = FindManyTasksUseCase(task_repository)
        self.find_task = FindTaskUseCase(task_repository)
        self.create_task_use_case = CreateTaskUseCase(task_repository)
        self.edit_task_title = EditTaskTitleUseCase(task_repository)
        self.set_task_done = SetTaskDoneUseCase(task_repository)
        self.toggle_task_done = ToggleTaskDoneUseCase(task_repository)
        self.assign_task = AssignTaskUseCase(
            assignment_repository, task_repository, participant_repository
        )
        self.update_progress = UpdateAssignmentProgressUseCase(assignment_repository)
        self.find_assignments = FindAssignmentsUseCase(assignment_repository)

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    async def list_teams(self, format: str = "json") -> dict[str, Any]:
        """List every team.

        Args:
            format: Output format ('json', 'text'). Default 'json'.
        """
        try:
            teams = await self.find_many_teams.execute()
        except UseCaseError as e:
            return _error("list_teams", e)

        if format == "text":
            data: Any = "\n\n".join(self._format_team_as_text(team) for team in teams)
        elif format == "json":
            data = teams
        else:
            return {
                "status": "error",
                "operation": "list_teams",
                "message": f"Unsupported format: {format}",
            }
        return {"status": "success", "operation": "list_teams", "count": len(teams), "data": data}

    async def show_team(self, team_id: str, format: str = "json") -> dict[str, Any]:
        try:
            team = await self.find_team_by_id.execute(team_id)
        except UseCaseError as e:
            return _error("show_team", e, team_id=team_id)

        if format == "text":
            return {
                "status": "success",
                "operation": "show_team",
                "data": self._format_team_as_text(team),
            }
        elif format == "json":
            return {"status": "success", "operation": "show_team", "data": team}
        return {
            "status": "error",
            "operation": "show_team",
            "message": f"Unsupported format: {format}",
        }

    async def create_team(
        self, name: str, participants: Sequence[Mapping[str, Any]]
    ) -> dict[str, Any]:
        try:
            team = await self.create_team_use_case.execute(name, participants)
        except UseCaseError as e:
            return _error("create_team", e)

        return {
            "status": "success",
            "operation": "create_team",
            "team_id": team["id"],
            "data": team,
            "message": f"Team {team['name']} created",
        }

    async def update_team(
        self,
        team_id: str,
        name: str | None = None,
        participants: Sequence[Mapping[str, Any]] | None = None,
    ) -> dict[str, Any]:
        try:
            team = await self.update_team_use_case.execute(
                team_id, name=name, participants=participants
            )
        except UseCaseError as e:
            return _error("update_team", e, team_id=team_id)

        return {
            "status": "success",
            "operation": "update_team",
            "team_id": team_id,
            "data": team,
            "message": f"Team {team_id} updated",
        }

    async def delete_team(self, team_id: str) -> dict[str, Any]:
        try:
            await self.delete_team_use_case.execute(team_id)
        except UseCaseError as e:
            return _error("delete_team", e, team_id=team_id)

        return {
            "status": "success",
            "operation": "delete_team",
            "team_id": team_id,
            "message": f"Team {team_id} deleted",
        }

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    async def list_tasks(self, filter: str | None = None) -> dict[str, Any]:
        try:
            tasks = await self.find_many_tasks.execute(filter=filter)
        except UseCaseError as e:
            return _error("list_tasks", e)

        return {"status": "success", "operation": "list_tasks", "count": len(tasks), "data": tasks}

    async def show_task(self, task_id: str) -> dict[str, Any]:
        try:
            task = await self.find_task.execute(task_id)
        except UseCaseError as e:
            return _error("show_task", e, task_id=task_id)

        return {"status": "success", "operation": "show_task", "data": task}

    async def create_task(self, title: str) -> dict[str, Any]:
        try:
            task = await self.create_task_use_case.execute(title)
        except UseCaseError as e:
            return _error("create_task", e)

        return {
            "status": "success",
            "operation": "create_task",
            "task_id": task["id"],
            "data": task,
            "message": f"Task {task['id']} created",
        }

    async def rename_task(self, task_id: str, title: str) -> dict[str, Any]:
        try:
            task = await self.edit_task_title.execute(task_id, title)
        except UseCaseError as e:
            return _error("rename_task", e, task_id=task_id)

        return {"status": "success", "operation": "rename_task", "task_id": task_id, "data": task}

    async def complete_task(self, task_id: str) -> dict[str, Any]:
        try:
            task = await self.set_task_done.execute(task_id)
        except UseCaseError as e:
            return _error("complete_task", e, task_id=task_id)

        return {
            "status": "success",
            "operation": "complete_task",
            "task_id": task_id,
            "data": task,
            "message": f"Task {task_id} marked done",
        }

    async def toggle_task(self, task_id: str) -> dict[str, Any]:
        try:
            task = await self.toggle_task_done.execute(task_id)
        except UseCaseError as e:
            return _error("toggle_task", e, task_id=task_id)

        return {"status": "success", "operation": "toggle_task", "task_id": task_id, "data": task}

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    async def assign(
        self, task_id: str, participant_id: str, progress_status: str | None = None
    ) -> dict[str, Any]:
        kwargs = {} if progress_status is None else {"progress_status": progress_status}
        try:
            assignment = await self.assign_task.execute(task_id, participant_id, **kwargs)
        except UseCaseError as e:
            return _error("assign", e, task_id=task_id, participant_id=participant_id)

        return {
            "status": "success",
            "operation": "assign",
            "assignment_id": assignment["id"],
            "data": assignment,
            "message": f"Task {task_id} assigned to {participant_id}",
        }

    async def progress(self, assignment_id: str, progress_status: str) -> dict[str, Any]:
        try:
            assignment = await self.update_progress.execute(assignment_id, progress_status)
        except UseCaseError as e:
            return _error("progress", e, assignment_id=assignment_id)

        return {
            "status": "success",
            "operation": "progress",
            "assignment_id": assignment_id,
            "data": assignment,
        }

    async def list_assignments(
        self,
        task_id: str | None = None,
        participant_id: str | None = None,
        progress_status: str | None = None,
    ) -> dict[str, Any]:
        try:
            assignments = await self.find_assignments.execute(
                task_id=task_id,
                participant_id=participant_id,
                progress_status=progress_status,
            )
        except UseCaseError as e:
            return _error("list_assignments", e)

        return {
            "status": "success",
            "operation": "list_assignments",
            "count": len(assignments),
            "data": assignments,
        }

    def _format_team_as_text(self, team: Mapping[str, Any]) -> str:
        """Format a team payload as human-readable text."""
        lines = [f"Team: {team.get('name')} ({team.get('id')})"]
        for participant in team.get("participants", []):
            lines.append(
                f"  - {participant.get('name')} <{participant.get('email')}> "
                f"[{participant.get('enrollment_status')}] {participant.get('id')}"
            )
        return "\n".join(lines)


async def run_command(
    handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Run a CLI command.

    Maps command names to handler methods.

    Args:
        handler: CLICommandHandler to execute against.
        command: Command name, e.g. 'create-team' or 'toggle-task'.
        args: Dictionary of command arguments.

    Returns:
        Dictionary with command result.

    Raises:
        ValueError: If the command is not recognized or a required argument
            is missing.
    """

    def required(name: str) -> Any:
        if name not in args:
            raise ValueError(f"Missing required parameter: {name}")
        return args[name]

    if command == "list-teams":
        return await handler.list_teams(args.get("format", "json"))
    elif command == "show-team":
        return await handler.show_team(required("team_id"), args.get("format", "json"))
    elif command == "create-team":
        return await handler.create_team(required("name"), required("participants"))
    elif command == "update-team":
        return await handler.update_team(
            required("team_id"), args.get("name"), args.get("participants")
        )
    elif command == "delete-team":
        return await handler.delete_team(required("team_id"))
    elif command == "list-tasks":
        return await handler.list_tasks(args.get("filter"))
    elif command == "show-task":
        return await handler.show_task(required("task_id"))
    elif command == "create-task":
        return await handler.create_task(required("title"))
    elif command == "rename-task":
        return await handler.rename_task(required("task_id"), required("title"))
    elif command == "complete-task":
        return await handler.complete_task(required("task_id"))
    elif command == "toggle-task":
        return await handler.toggle_task(required("task_id"))
    elif command == "assign":
        return await handler.assign(
            required("task_id"), required("participant_id"), args.get("progress_status")
        )
    elif command == "progress":
        return await handler.progress(required("assignment_id"), required("progress_status"))
    elif command == "list-assignments":
        return await handler.list_assignments(
            args.get("task_id"), args.get("participant_id"), args.get("progress_status")
        )
    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")
