"""Data model for the board: tasks, board state, commands and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

DEFAULT_STAGES: tuple[str, ...] = ("Backlog", "To Do", "Ongoing", "Done")


class BoardError(Exception):
    """Base class for board errors."""

    kind = "BoardError"


class InvalidInput(BoardError):
    """A command or board payload failed a precondition."""

    kind = "InvalidInput"


class NotFound(BoardError):
    """A command referenced a task id that is not on the board."""

    kind = "NotFound"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found")
        self.task_id = task_id


class UnknownCommand(BoardError, TypeError):
    """Raised for objects that are not one of the board commands."""

    kind = "UnknownCommand"


@dataclass(frozen=True)
class Task:
    """A single unit of work sitting in one stage of the pipeline."""

    id: str
    name: str
    stage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "stage": self.stage}


@dataclass(frozen=True)
class BoardState:
    """
    Immutable snapshot of a board.

    Attributes:
        stages: Ordered stage labels, fixed at creation
        tasks: Live tasks in creation order
        next_id: Counter used to allocate the next task id
    """

    stages: tuple[str, ...]
    tasks: tuple[Task, ...] = ()
    next_id: int = 1

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    @property
    def last_stage(self) -> int:
        return len(self.stages) - 1

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert the board to a dictionary for serialization."""
        # Local import: the projection lives beside the transition function.
        from .machine import can_move_back, can_move_forward, tasks_by_stage

        return {
            "stages": list(self.stages),
            "stage_count": self.stage_count,
            "tasks": [task.to_dict() for task in self.tasks],
            "columns": [
                {
                    "stage": index,
                    "label": self.stages[index],
                    "tasks": [
                        {
                            **task.to_dict(),
                            "can_move_back": can_move_back(task),
                            "can_move_forward": can_move_forward(self, task),
                        }
                        for task in tasks
                    ],
                }
                for index, tasks in tasks_by_stage(self)
            ],
        }


class CommandType(str, Enum):
    """Wire names of the board commands."""

    CREATE_TASK = "CREATE_TASK"
    MOVE_FORWARD = "MOVE_FORWARD"
    MOVE_BACK = "MOVE_BACK"
    DELETE_TASK = "DELETE_TASK"


@dataclass(frozen=True)
class CreateTask:
    name: str
    type: CommandType = field(default=CommandType.CREATE_TASK, init=False)


@dataclass(frozen=True)
class MoveForward:
    task_id: str
    type: CommandType = field(default=CommandType.MOVE_FORWARD, init=False)


@dataclass(frozen=True)
class MoveBack:
    task_id: str
    type: CommandType = field(default=CommandType.MOVE_BACK, init=False)


@dataclass(frozen=True)
class DeleteTask:
    task_id: str
    type: CommandType = field(default=CommandType.DELETE_TASK, init=False)


Command = Union[CreateTask, MoveForward, MoveBack, DeleteTask]

_COMMAND_ALIASES: dict[str, CommandType] = {
    "CREATE_NEW_TASK": CommandType.CREATE_TASK,
    "MOVE_TASK_FORWARD": CommandType.MOVE_FORWARD,
    "MOVE_TASK_BACK": CommandType.MOVE_BACK,
}


def command_from_dict(data: Any) -> Command:
    """
    Build a command from its wire representation.

    Args:
        data: Mapping of the form ``{"type": ..., "payload": {...}}``

    Returns:
        The matching command

    Raises:
        InvalidInput: If the type is unknown or a payload field is missing
    """
    if not isinstance(data, dict):
        raise InvalidInput("Command must be an object")

    raw_type = data.get("type")
    payload = data.get("payload") or {}
    if not isinstance(payload, dict):
        raise InvalidInput("Command payload must be an object")

    if not isinstance(raw_type, str):
        raise InvalidInput(f"Command type must be a string, got {raw_type!r}")
    if raw_type in _COMMAND_ALIASES:
        command_type = _COMMAND_ALIASES[raw_type]
    else:
        try:
            command_type = CommandType(raw_type)
        except ValueError:
            raise InvalidInput(f"Unknown command type: {raw_type!r}") from None

    if command_type is CommandType.CREATE_TASK:
        name = payload.get("name")
        if not isinstance(name, str):
            raise InvalidInput("CREATE_TASK requires a string 'name'")
        return CreateTask(name)

    task_id = payload.get("task_id", payload.get("taskId"))
    if not isinstance(task_id, str):
        raise InvalidInput(f"{command_type.value} requires a string 'task_id'")
    if command_type is CommandType.MOVE_FORWARD:
        return MoveForward(task_id)
    if command_type is CommandType.MOVE_BACK:
        return MoveBack(task_id)
    return DeleteTask(task_id)


@dataclass(frozen=True)
class Result:
    """
    Outcome of a board operation.

    ``state`` is always a valid board: the new one on success, the
    unchanged input when ``error`` is set. ``create_board`` failures carry
    no state at all.
    """

    state: BoardState | None
    error: BoardError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> BoardState:
        """Return the state, raising the carried error if there is one."""
        if self.error is not None:
            raise self.error
        if self.state is None:
            raise InvalidInput("Result carries no board")
        return self.state
