"""Unit tests for the task use cases."""

import pytest

from teamboard.core.errors import NotFoundUseCaseError, TaskRepositorySaveError
from teamboard.core.task import Task
from teamboard.core.task_use_cases import (
    CreateTaskUseCase,
    CreateTaskUseCaseError,
    EditTaskTitleUseCase,
    EditTaskTitleUseCaseError,
    EditTaskTitleUseCaseNotFoundError,
    FindManyTasksUseCase,
    FindManyTasksUseCaseError,
    FindTaskUseCase,
    FindTaskUseCaseError,
    FindTaskUseCaseNotFoundError,
    SetTaskDoneUseCase,
    SetTaskDoneUseCaseNotFoundError,
    ToggleTaskDoneUseCase,
    ToggleTaskDoneUseCaseError,
    ToggleTaskDoneUseCaseNotFoundError,
)
from teamboard.core.value_objects import create_id
from teamboard.tests.fakes import FakeTaskRepository


@pytest.fixture
def task_repository() -> FakeTaskRepository:
    return FakeTaskRepository()


@pytest.fixture
def open_task(task_repository: FakeTaskRepository) -> Task:
    task = Task.create(title="Write docs")
    task_repository.tasks[task.id] = task
    return task


@pytest.fixture
def done_task(task_repository: FakeTaskRepository) -> Task:
    task = Task.create(title="Ship release", is_done=True)
    task_repository.tasks[task.id] = task
    return task


class TestCreateTaskUseCase:
    @pytest.mark.asyncio
    async def test_creates_open_task(self, task_repository):
        payload = await CreateTaskUseCase(task_repository).execute(title="Write docs")

        assert payload["title"] == "Write docs"
        assert payload["is_done"] is False
        assert task_repository.saved_tasks[0].id == payload["id"]

    @pytest.mark.asyncio
    async def test_invalid_title(self, task_repository):
        with pytest.raises(CreateTaskUseCaseError) as exc_info:
            await CreateTaskUseCase(task_repository).execute(title="")

        assert str(exc_info.value) == "CreateTaskUseCaseError: Invalid title: "
        assert task_repository.saved_tasks == []

    @pytest.mark.asyncio
    async def test_save_failure_wrapped(self, task_repository):
        task_repository.fail_with = TaskRepositorySaveError("disk full")

        with pytest.raises(CreateTaskUseCaseError) as exc_info:
            await CreateTaskUseCase(task_repository).execute(title="Write docs")

        assert str(exc_info.value) == "CreateTaskUseCaseError: disk full"


class TestFindTaskUseCases:
    @pytest.mark.asyncio
    async def test_find_existing(self, task_repository, open_task):
        payload = await FindTaskUseCase(task_repository).execute(open_task.id)

        assert payload == open_task.to_payload()

    @pytest.mark.asyncio
    async def test_missing_task(self, task_repository):
        with pytest.raises(FindTaskUseCaseNotFoundError) as exc_info:
            await FindTaskUseCase(task_repository).execute(create_id())

        assert str(exc_info.value) == "FindTaskUseCaseNotFoundError: Task not found"

    @pytest.mark.asyncio
    async def test_invalid_id(self, task_repository):
        with pytest.raises(FindTaskUseCaseError) as exc_info:
            await FindTaskUseCase(task_repository).execute("nope")

        assert not isinstance(exc_info.value, NotFoundUseCaseError)

    @pytest.mark.asyncio
    async def test_list_all(self, task_repository, open_task, done_task):
        payloads = await FindManyTasksUseCase(task_repository).execute()

        assert {p["id"] for p in payloads} == {open_task.id, done_task.id}
        assert task_repository.find_many_by_calls == [{}]

    @pytest.mark.asyncio
    async def test_todo_filter(self, task_repository, open_task, done_task):
        payloads = await FindManyTasksUseCase(task_repository).execute(filter="todo")

        assert [p["id"] for p in payloads] == [open_task.id]
        assert task_repository.find_many_by_calls == [{"is_done": False}]

    @pytest.mark.asyncio
    async def test_unknown_filter(self, task_repository):
        with pytest.raises(FindManyTasksUseCaseError) as exc_info:
            await FindManyTasksUseCase(task_repository).execute(filter="urgent")

        assert str(exc_info.value) == "FindManyTasksUseCaseError: Unknown filter: urgent"
        assert task_repository.find_many_by_calls == []


class TestTaskMutations:
    @pytest.mark.asyncio
    async def test_edit_title(self, task_repository, open_task):
        payload = await EditTaskTitleUseCase(task_repository).execute(
            open_task.id, title="Review docs"
        )

        assert payload["title"] == "Review docs"
        assert task_repository.tasks[open_task.id].title == "Review docs"

    @pytest.mark.asyncio
    async def test_edit_title_invalid(self, task_repository, open_task):
        with pytest.raises(EditTaskTitleUseCaseError) as exc_info:
            await EditTaskTitleUseCase(task_repository).execute(open_task.id, title="x" * 101)

        assert not isinstance(exc_info.value, EditTaskTitleUseCaseNotFoundError)
        assert task_repository.saved_tasks == []

    @pytest.mark.asyncio
    async def test_edit_title_missing(self, task_repository):
        with pytest.raises(EditTaskTitleUseCaseNotFoundError):
            await EditTaskTitleUseCase(task_repository).execute(create_id(), title="x")

    @pytest.mark.asyncio
    async def test_set_done(self, task_repository, open_task):
        payload = await SetTaskDoneUseCase(task_repository).execute(open_task.id)

        assert payload["is_done"] is True

    @pytest.mark.asyncio
    async def test_set_done_on_done_task_stays_done(self, task_repository, done_task):
        payload = await SetTaskDoneUseCase(task_repository).execute(done_task.id)

        assert payload["is_done"] is True

    @pytest.mark.asyncio
    async def test_set_done_missing(self, task_repository):
        with pytest.raises(SetTaskDoneUseCaseNotFoundError) as exc_info:
            await SetTaskDoneUseCase(task_repository).execute(create_id())

        assert str(exc_info.value) == "SetTaskDoneUseCaseNotFoundError: Task not found"

    @pytest.mark.asyncio
    async def test_toggle_twice_restores(self, task_repository, open_task):
        use_case = ToggleTaskDoneUseCase(task_repository)

        first = await use_case.execute(open_task.id)
        second = await use_case.execute(open_task.id)

        assert first["is_done"] is True
        assert second["is_done"] is False

    @pytest.mark.asyncio
    async def test_toggle_missing(self, task_repository):
        with pytest.raises(ToggleTaskDoneUseCaseNotFoundError):
            await ToggleTaskDoneUseCase(task_repository).execute(create_id())

    @pytest.mark.asyncio
    async def test_toggle_save_failure(self, task_repository, open_task):
        task_repository.fail_with = TaskRepositorySaveError("locked")

        with pytest.raises(ToggleTaskDoneUseCaseError) as exc_info:
            await ToggleTaskDoneUseCase(task_repository).execute(open_task.id)

        assert str(exc_info.value) == "ToggleTaskDoneUseCaseError: locked"
