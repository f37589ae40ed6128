"""Thread-safe holder of the current board state."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Sequence

from loguru import logger

from .machine import apply, create_board
from .models import DEFAULT_STAGES, BoardState, Command, InvalidInput, Result

Subscriber = Callable[[BoardState], None]


class BoardStore:
    """
    Serializes commands against a single board.

    Every ``dispatch`` runs the transition under one lock, so the store can
    be shared by the server, the CLI and any worker threads.
    """

    def __init__(
        self,
        stage_labels: Sequence[str] = DEFAULT_STAGES,
        task_names: Iterable[str] = (),
    ) -> None:
        """
        Initialize the store.

        Args:
            stage_labels: Ordered stage labels for the pipeline
            task_names: Names of tasks to seed in the entry stage

        Raises:
            InvalidInput: If the board cannot be created
        """
        self._state = create_board(stage_labels, task_names).unwrap()
        # Reentrant so subscribers may read ``state`` while being notified.
        self._state_lock = threading.RLock()
        self._subscribers: list[Subscriber] = []
        self._subscriber_lock = threading.Lock()

    @property
    def state(self) -> BoardState:
        """Current board snapshot."""
        with self._state_lock:
            return self._state

    def dispatch(self, command: Command) -> Result:
        """
        Apply a command to the current board.

        Args:
            command: Command to apply

        Returns:
            Result of the transition; on error the board is unchanged
        """
        with self._state_lock:
            previous = self._state
            result = apply(previous, command)
            self._state = result.state
            # Notify under the lock so subscribers see snapshots in order.
            if self._state is not previous:
                self._notify_subscribers(self._state)

        if isinstance(result.error, InvalidInput):
            logger.warning(f"Rejected {command!r}: {result.error}")
        elif result.error is not None:
            logger.info(f"Ignored {command!r}: {result.error}")
        else:
            logger.debug(f"Applied {command!r}")
        return result

    def reset(self) -> None:
        """Remove every task, keeping the stages and the id counter."""
        with self._state_lock:
            self._state = BoardState(
                stages=self._state.stages, next_id=self._state.next_id
            )
            self._notify_subscribers(self._state)

    def subscribe(self, callback: Subscriber) -> None:
        """
        Subscribe to board updates.

        Args:
            callback: Function called with the new state after each change
        """
        with self._subscriber_lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        """
        Unsubscribe from board updates.

        Args:
            callback: Function to remove from subscribers
        """
        with self._subscriber_lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _notify_subscribers(self, state: BoardState) -> None:
        with self._subscriber_lock:
            subscribers = self._subscribers.copy()

        for callback in subscribers:
            try:
                callback(state)
            except Exception:
                logger.exception(f"Board subscriber {callback!r} failed")


_default_store: BoardStore | None = None
_default_lock = threading.Lock()


def get_board_store() -> BoardStore:
    """Get the process-wide default board store."""
    global _default_store
    if _default_store is None:
        with _default_lock:
            if _default_store is None:
                _default_store = BoardStore()
    return _default_store
