"""Pure transition function for the board."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from .models import (
    BoardState,
    Command,
    CreateTask,
    DeleteTask,
    InvalidInput,
    MoveBack,
    MoveForward,
    NotFound,
    Result,
    Task,
    UnknownCommand,
)


def create_board(
    stage_labels: Sequence[str], task_names: Iterable[str] = ()
) -> Result:
    """
    Create a new board with a fixed pipeline.

    Args:
        stage_labels: Ordered stage labels, entry stage first
        task_names: Optional names of tasks to seed in the entry stage

    Returns:
        Result holding the new board, or ``InvalidInput`` when the stage
        list is empty or a seeded name is empty
    """
    if isinstance(stage_labels, str):
        return Result(None, InvalidInput("Stage labels must be a sequence of strings"))
    stages = tuple(stage_labels)
    if not stages:
        return Result(None, InvalidInput("A board needs at least one stage"))
    if not all(isinstance(label, str) for label in stages):
        return Result(None, InvalidInput("Stage labels must be strings"))

    state = BoardState(stages=stages)
    for name in task_names:
        result = apply(state, CreateTask(name))
        if not result.ok:
            return Result(None, result.error)
        state = result.state
    return Result(state)


def apply(state: BoardState, command: Command) -> Result:
    """
    Apply ``command`` to ``state`` and return the outcome.

    The input state is never modified. Moves past either end of the
    pipeline succeed and return ``state`` itself.

    Raises:
        UnknownCommand: If ``command`` is not a board command
    """
    if isinstance(command, CreateTask):
        return _create(state, command.name)
    if isinstance(command, MoveForward):
        return _move(state, command.task_id, 1)
    if isinstance(command, MoveBack):
        return _move(state, command.task_id, -1)
    if isinstance(command, DeleteTask):
        return _delete(state, command.task_id)
    raise UnknownCommand(f"Unsupported command: {command!r}")


def _create(state: BoardState, name: str) -> Result:
    if not isinstance(name, str) or not name:
        return Result(state, InvalidInput("Task name must be a non-empty string"))
    task = Task(id=f"task-{state.next_id}", name=name, stage=0)
    return Result(
        replace(state, tasks=state.tasks + (task,), next_id=state.next_id + 1)
    )


def _move(state: BoardState, task_id: str, step: int) -> Result:
    task = state.find_task(task_id)
    if task is None:
        return Result(state, NotFound(task_id))

    target = task.stage + step
    if target < 0 or target > state.last_stage:
        return Result(state)

    moved = replace(task, stage=target)
    tasks = tuple(moved if t.id == task_id else t for t in state.tasks)
    return Result(replace(state, tasks=tasks))


def _delete(state: BoardState, task_id: str) -> Result:
    if state.find_task(task_id) is None:
        return Result(state, NotFound(task_id))
    tasks = tuple(t for t in state.tasks if t.id != task_id)
    return Result(replace(state, tasks=tasks))


def tasks_by_stage(state: BoardState) -> list[tuple[int, list[Task]]]:
    """Group tasks by stage, keeping creation order within each stage."""
    columns: list[tuple[int, list[Task]]] = [
        (index, []) for index in range(state.stage_count)
    ]
    for task in state.tasks:
        columns[task.stage][1].append(task)
    return columns


def can_move_back(task: Task) -> bool:
    return task.stage > 0


def can_move_forward(state: BoardState, task: Task) -> bool:
    return task.stage < state.last_stage
