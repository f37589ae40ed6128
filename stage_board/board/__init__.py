"""Board state machine: tasks moving through a fixed pipeline of stages."""

from .machine import apply, can_move_back, can_move_forward, create_board, tasks_by_stage
from .models import (
    DEFAULT_STAGES,
    BoardError,
    BoardState,
    Command,
    CommandType,
    CreateTask,
    DeleteTask,
    InvalidInput,
    MoveBack,
    MoveForward,
    NotFound,
    Result,
    Task,
    UnknownCommand,
    command_from_dict,
)
from .store import BoardStore, get_board_store

__all__ = [
    "DEFAULT_STAGES",
    "BoardError",
    "BoardState",
    "BoardStore",
    "Command",
    "CommandType",
    "CreateTask",
    "DeleteTask",
    "InvalidInput",
    "MoveBack",
    "MoveForward",
    "NotFound",
    "Result",
    "Task",
    "UnknownCommand",
    "apply",
    "can_move_back",
    "can_move_forward",
    "command_from_dict",
    "create_board",
    "get_board_store",
    "tasks_by_stage",
]
