"""Task use cases.

The task repository reports a missing row as None rather than an error.
Use cases that need the task turn that None into their own NotFound error.
"""

import logging

from .errors import NotFoundUseCaseError, TeamboardError, UseCaseError
from .ports import TaskRepositoryPort
from .task import Task, TaskPayload
from .value_objects import parse_id

logger = logging.getLogger(__name__)

TODO_FILTER = "todo"


class CreateTaskUseCaseError(UseCaseError):
    pass


class FindTaskUseCaseError(UseCaseError):
    pass


class FindTaskUseCaseNotFoundError(FindTaskUseCaseError, NotFoundUseCaseError):
    pass


class FindManyTasksUseCaseError(UseCaseError):
    pass


class EditTaskTitleUseCaseError(UseCaseError):
    pass


class EditTaskTitleUseCaseNotFoundError(EditTaskTitleUseCaseError, NotFoundUseCaseError):
    pass


class SetTaskDoneUseCaseError(UseCaseError):
    pass


class SetTaskDoneUseCaseNotFoundError(SetTaskDoneUseCaseError, NotFoundUseCaseError):
    pass


class ToggleTaskDoneUseCaseError(UseCaseError):
    pass


class ToggleTaskDoneUseCaseNotFoundError(ToggleTaskDoneUseCaseError, NotFoundUseCaseError):
    pass


async def _load_task(task_repository: TaskRepositoryPort, task_id: str) -> Task | None:
    return await task_repository.find_by_id(parse_id(task_id))


class CreateTaskUseCase:
    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, title: str) -> TaskPayload:
        """Create an open task.

        Raises:
            CreateTaskUseCaseError: If the title is invalid or the save fails.
        """
        try:
            task = Task.create(title=title)
            saved = await self.task_repository.save(task)
        except TeamboardError as e:
            raise CreateTaskUseCaseError(str(e)) from e

        logger.info(f"Task {saved.id} created", extra={"task_id": str(saved.id)})
        return saved.to_payload()


class FindTaskUseCase:
    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, task_id: str) -> TaskPayload:
        """Look up one task.

        Raises:
            FindTaskUseCaseNotFoundError: If no task has this id.
            FindTaskUseCaseError: For an invalid id or a storage failure.
        """
        try:
            task = await _load_task(self.task_repository, task_id)
        except TeamboardError as e:
            raise FindTaskUseCaseError(str(e)) from e

        if task is None:
            raise FindTaskUseCaseNotFoundError("Task not found")
        return task.to_payload()


class FindManyTasksUseCase:
    """List tasks, optionally narrowed by a named filter.

    Supported filters:
        None: every task
        "todo": tasks that are not done yet
    """

    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, filter: str | None = None) -> list[TaskPayload]:
        if filter is None:
            criteria = {}
        elif filter == TODO_FILTER:
            criteria = {"is_done": False}
        else:
            raise FindManyTasksUseCaseError(f"Unknown filter: {filter}")

        try:
            tasks = await self.task_repository.find_many_by(**criteria)
        except TeamboardError as e:
            raise FindManyTasksUseCaseError(str(e)) from e

        return [task.to_payload() for task in tasks]


class EditTaskTitleUseCase:
    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, task_id: str, title: str) -> TaskPayload:
        try:
            task = await _load_task(self.task_repository, task_id)
            if task is None:
                raise EditTaskTitleUseCaseNotFoundError("Task not found")
            saved = await self.task_repository.save(task.update_title(title))
        except EditTaskTitleUseCaseNotFoundError:
            raise
        except TeamboardError as e:
            raise EditTaskTitleUseCaseError(str(e)) from e

        logger.info(
            f"Task {saved.id} renamed",
            extra={"task_id": str(saved.id), "title": str(saved.title)},
        )
        return saved.to_payload()


class SetTaskDoneUseCase:
    """Mark a task done. Marking an already finished task is a no-op save."""

    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, task_id: str) -> TaskPayload:
        try:
            task = await _load_task(self.task_repository, task_id)
            if task is None:
                raise SetTaskDoneUseCaseNotFoundError("Task not found")
            saved = await self.task_repository.save(task.mark_done())
        except SetTaskDoneUseCaseNotFoundError:
            raise
        except TeamboardError as e:
            raise SetTaskDoneUseCaseError(str(e)) from e

        logger.info(f"Task {saved.id} marked done", extra={"task_id": str(saved.id)})
        return saved.to_payload()


class ToggleTaskDoneUseCase:
    def __init__(self, task_repository: TaskRepositoryPort):
        self.task_repository = task_repository

    async def execute(self, task_id: str) -> TaskPayload:
        try:
            task = await _load_task(self.task_repository, task_id)
            if task is None:
                raise ToggleTaskDoneUseCaseNotFoundError("Task not found")
            saved = await self.task_repository.save(task.toggle_done())
        except ToggleTaskDoneUseCaseNotFoundError:
            raise
        except TeamboardError as e:
            raise ToggleTaskDoneUseCaseError(str(e)) from e

        logger.info(
            f"Task {saved.id} toggled",
            extra={"task_id": str(saved.id), "is_done": bool(saved.is_done)},
        )
        return saved.to_payload()
