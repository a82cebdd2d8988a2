"""
PageDeck - Undo Manager

Manages undo/redo history using the command pattern: two stacks, a bounded
history and redo invalidation whenever a new command branches off.
"""

from collections import deque
from collections.abc import Callable

from pagedeck.config import DEFAULT_MAX_HISTORY_SIZE
from pagedeck.core.commands import CommandEvent, UndoableCommand
from pagedeck.core.observers import ListenerHandle, ListenerRegistry
from pagedeck.utils.logger import logger


class UndoManager:
    """Undo/redo history for the page sequence."""

    def __init__(self, max_history_size: int = DEFAULT_MAX_HISTORY_SIZE) -> None:
        """Initialize empty history.

        Args:
            max_history_size: Maximum number of undoable commands to keep
        """
        if max_history_size < 1:
            raise ValueError("max_history_size must be >= 1")
        self._max_history_size = max_history_size
        self._undo_stack: deque[UndoableCommand] = deque()
        self._redo_stack: list[UndoableCommand] = []
        self._listeners = ListenerRegistry()

    def execute(self, command: UndoableCommand) -> CommandEvent | None:
        """Execute a command and add it to the undo stack.

        Clears the redo stack since we're branching from history.

        Returns:
            The event produced by the command, or None if it was a no-op
        """
        event = command.execute()
        self._undo_stack.append(command)
        self._redo_stack.clear()

        while len(self._undo_stack) > self._max_history_size:
            dropped = self._undo_stack.popleft()
            logger.debug(f"Undo history full, dropped: {dropped.description}")

        self._listeners.notify()
        return event

    def undo(self) -> UndoableCommand | None:
        """Undo the most recent command.

        Returns:
            The command that was undone, or None if there was nothing to undo
        """
        if not self._undo_stack:
            return None
        command = self._undo_stack.pop()
        command.undo()
        self._redo_stack.append(command)
        logger.debug(f"Undo: {command.description}")
        self._listeners.notify()
        return command

    def redo(self) -> UndoableCommand | None:
        """Redo the most recently undone command.

        Returns:
            The command that was redone, or None if there was nothing to redo
        """
        if not self._redo_stack:
            return None
        command = self._redo_stack.pop()
        command.execute()
        self._undo_stack.append(command)
        logger.debug(f"Redo: {command.description}")
        self._listeners.notify()
        return command

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    @property
    def undo_description(self) -> str | None:
        """Description of the next undo action."""
        return self._undo_stack[-1].description if self._undo_stack else None

    @property
    def redo_description(self) -> str | None:
        """Description of the next redo action."""
        return self._redo_stack[-1].description if self._redo_stack else None

    @property
    def undo_count(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_count(self) -> int:
        return len(self._redo_stack)

    @property
    def max_history_size(self) -> int:
        return self._max_history_size

    def clear(self) -> None:
        """Clear all undo/redo history."""
        self._undo_stack.clear()
        self._redo_stack.clear()
        self._listeners.notify()

    def on_change(self, callback: Callable[[], None]) -> ListenerHandle:
        """Subscribe to changes in undo/redo state."""
        return self._listeners.add(callback)

    def remove_listener(self, handle: ListenerHandle) -> bool:
        return self._listeners.remove(handle)
