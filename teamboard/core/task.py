"""Task aggregate: a titled to-do item with a completion flag."""

from dataclasses import dataclass, replace
from typing import TypedDict

from .value_objects import (
    Id,
    IsDone,
    Title,
    create_id,
    create_is_done,
    create_title,
    parse_id,
)


class TaskPayload(TypedDict):
    id: str
    title: str
    is_done: bool


@dataclass(frozen=True)
class Task:
    """A task. "Mutating" methods return a new Task and leave self unchanged."""

    id: Id
    title: Title
    is_done: IsDone

    @classmethod
    def create(cls, title: str, is_done: bool = False) -> "Task":
        """Mint a new task.

        Raises:
            InvalidTitleError: If the title is empty or longer than 100 chars.
            InvalidIsDoneError: If is_done is not a bool.
        """
        task_id = create_id()
        return cls(id=task_id, title=create_title(title), is_done=create_is_done(is_done))

    @classmethod
    def reconstruct(cls, id: str, title: str, is_done: bool) -> "Task":
        task_id = parse_id(id)
        return cls(id=task_id, title=create_title(title), is_done=create_is_done(is_done))

    def toggle_done(self) -> "Task":
        return replace(self, is_done=create_is_done(not self.is_done))

    def mark_done(self) -> "Task":
        return replace(self, is_done=create_is_done(True))

    def update_title(self, title: str) -> "Task":
        return replace(self, title=create_title(title))

    def to_payload(self) -> TaskPayload:
        return TaskPayload(id=str(self.id), title=str(self.title), is_done=bool(self.is_done))
