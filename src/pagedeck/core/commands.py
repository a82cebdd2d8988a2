"""
PageDeck - Undoable Commands

Each user-level edit of the page sequence is wrapped in a command that knows
how to execute and undo itself. Commands only go through the public
DocumentManager mutators.

execute() and undo() return a CommandEvent describing what changed, or None
when nothing did (for instance when the target index is no longer valid).
Callers map events onto their own view state, either directly or through the
optional ``on_execute`` / ``on_undo`` hooks, which receive the same event and
are never called for a no-op.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Literal

from pagedeck.core.document_manager import DocumentManager
from pagedeck.core.page_reference import PageReference
from pagedeck.utils.logger import logger


class ChangeKind(Enum):
    """What a command did to the sequence."""

    DELETED = auto()
    RESTORED = auto()
    MOVED = auto()
    ROTATED = auto()


@dataclass(frozen=True)
class CommandEvent:
    """Post-mutation event produced by a command.

    Attributes:
        kind: Type of change
        from_indices: Positions affected before the change (deleted or moved from)
        to_indices: Positions affected after the change (restored, moved to or rotated)
        rotation: New rotation for ROTATED events
    """

    kind: ChangeKind
    from_indices: tuple[int, ...] = ()
    to_indices: tuple[int, ...] = ()
    rotation: int | None = None


EventHook = Callable[[CommandEvent], None]


class UndoableCommand(ABC):
    """Base class for commands managed by the UndoManager."""

    description: str = ""

    def __init__(
        self,
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
    ) -> None:
        self._on_execute = on_execute
        self._on_undo = on_undo
        self.last_event: CommandEvent | None = None

    @abstractmethod
    def _do(self) -> CommandEvent | None:
        """Apply the change; return None if nothing happened."""

    @abstractmethod
    def _undo(self) -> CommandEvent | None:
        """Revert the change; return None if nothing happened."""

    def execute(self) -> CommandEvent | None:
        """Execute the command (or re-execute it for redo)."""
        event = self._do()
        self.last_event = event
        if event is not None and self._on_execute:
            self._on_execute(event)
        return event

    def undo(self) -> CommandEvent | None:
        event = self._undo()
        self.last_event = event
        if event is not None and self._on_undo:
            self._on_undo(event)
        return event

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.description}>"


class DeletePageCommand(UndoableCommand):
    """Delete a single page; undo puts the same reference back."""

    def __init__(
        self,
        manager: DocumentManager,
        page_index: int,
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
    ) -> None:
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._page_index = page_index
        self._deleted_page: PageReference | None = None
        self.description = f"Delete page {page_index + 1}"

    def _do(self) -> CommandEvent | None:
        self._deleted_page = self._manager.delete_page(self._page_index)
        if self._deleted_page is None:
            return None
        return CommandEvent(ChangeKind.DELETED, from_indices=(self._page_index,))

    def _undo(self) -> CommandEvent | None:
        if self._deleted_page is None:
            return None
        if not self._manager.insert_page(self._page_index, self._deleted_page):
            logger.warning(f"Cannot restore {self._deleted_page.id} at {self._page_index}")
            return None
        return CommandEvent(ChangeKind.RESTORED, to_indices=(self._page_index,))


class DeletePagesCommand(UndoableCommand):
    """Delete several pages as one undoable step."""

    def __init__(
        self,
        manager: DocumentManager,
        page_indices: Iterable[int],
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
    ) -> None:
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._page_indices = sorted(set(page_indices))
        self._deleted: list[tuple[int, PageReference]] = []
        self.description = f"Delete {len(self._page_indices)} pages"

    def _do(self) -> CommandEvent | None:
        targets = [i for i in self._page_indices if 0 <= i < self._manager.page_count]
        removed = self._manager.delete_pages(targets)
        # delete_pages returns the pages in ascending original-index order
        self._deleted = list(zip(targets, removed, strict=True))
        if not self._deleted:
            return None
        return CommandEvent(
            ChangeKind.DELETED, from_indices=tuple(index for index, _ in self._deleted)
        )

    def _undo(self) -> CommandEvent | None:
        restored = []
        # Ascending order: every earlier slot is already back in place
        for index, page in self._deleted:
            if self._manager.insert_page(index, page):
                restored.append(index)
            else:
                logger.warning(f"Cannot restore {page.id} at {index}")
        if not restored:
            return None
        return CommandEvent(ChangeKind.RESTORED, to_indices=tuple(restored))


class MovePageCommand(UndoableCommand):
    """Move one page; undo is the reverse move.

    The manager is not asked to notify by default: views are expected to
    apply the move from the event instead of re-rendering everything.
    """

    def __init__(
        self,
        manager: DocumentManager,
        from_index: int,
        to_index: int,
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
        notify: bool = False,
    ) -> None:
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._from_index = from_index
        self._to_index = to_index
        self._notify = notify
        self.description = f"Move page {from_index + 1} to position {to_index + 1}"

    def _do(self) -> CommandEvent | None:
        if not self._manager.move_page(self._from_index, self._to_index, self._notify):
            return None
        return CommandEvent(
            ChangeKind.MOVED, from_indices=(self._from_index,), to_indices=(self._to_index,)
        )

    def _undo(self) -> CommandEvent | None:
        if not self._manager.move_page(self._to_index, self._from_index, self._notify):
            return None
        return CommandEvent(
            ChangeKind.MOVED, from_indices=(self._to_index,), to_indices=(self._from_index,)
        )


class MovePagesCommand(UndoableCommand):
    """Move several pages to a target position.

    Undo moves the pages back as a block starting at the lowest original
    index. That restores their relative order and the start of the block,
    but not the exact original positions when the selection had gaps.
    """

    def __init__(
        self,
        manager: DocumentManager,
        from_indices: Iterable[int],
        to_index: int,
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
        notify: bool = False,
    ) -> None:
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._original_indices = sorted(set(from_indices))
        self._target_index = to_index
        self._new_indices: list[int] = []
        self._notify = notify
        self.description = f"Move {len(self._original_indices)} pages"

    @property
    def original_indices(self) -> list[int]:
        return list(self._original_indices)

    @property
    def new_indices(self) -> list[int]:
        return list(self._new_indices)

    def _do(self) -> CommandEvent | None:
        self._new_indices = self._manager.move_pages(
            self._original_indices, self._target_index, self._notify
        )
        if not self._new_indices:
            return None
        return CommandEvent(
            ChangeKind.MOVED,
            from_indices=tuple(self._original_indices),
            to_indices=tuple(self._new_indices),
        )

    def _undo(self) -> CommandEvent | None:
        if not self._new_indices:
            return None
        start = min(self._original_indices)
        # move_pages discounts moved pages sitting before the target
        target = start + sum(1 for i in self._new_indices if i < start)
        restored = self._manager.move_pages(sorted(self._new_indices), target, self._notify)
        if not restored:
            return None
        return CommandEvent(
            ChangeKind.MOVED,
            from_indices=tuple(self._new_indices),
            to_indices=tuple(restored),
        )


class RotatePageCommand(UndoableCommand):
    """Rotate a page left or right; undo restores the captured rotation."""

    def __init__(
        self,
        manager: DocumentManager,
        page_index: int,
        direction: Literal["left", "right"],
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
    ) -> None:
        if direction not in ("left", "right"):
            raise ValueError(f"direction must be 'left' or 'right', got {direction!r}")
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._page_index = page_index
        self._direction = direction
        self._previous_rotation = 0
        self.description = f"Rotate page {page_index + 1} {direction}"

    def _do(self) -> CommandEvent | None:
        page = self._manager.get_page(self._page_index)
        if page is None:
            return None
        self._previous_rotation = page.rotation
        if self._direction == "right":
            self._manager.rotate_page_right(self._page_index)
        else:
            self._manager.rotate_page_left(self._page_index)
        return CommandEvent(
            ChangeKind.ROTATED, to_indices=(self._page_index,), rotation=page.rotation
        )

    def _undo(self) -> CommandEvent | None:
        page = self._manager.get_page(self._page_index)
        if page is None:
            return None
        # Not a manager mutator, so listeners are told explicitly
        page.set_rotation(self._previous_rotation)
        self._manager.notify_change()
        return CommandEvent(
            ChangeKind.ROTATED, to_indices=(self._page_index,), rotation=page.rotation
        )


class RotatePagesCommand(UndoableCommand):
    """Rotate several pages in the same direction as one undoable step."""

    def __init__(
        self,
        manager: DocumentManager,
        page_indices: Iterable[int],
        direction: Literal["left", "right"],
        on_execute: EventHook | None = None,
        on_undo: EventHook | None = None,
    ) -> None:
        if direction not in ("left", "right"):
            raise ValueError(f"direction must be 'left' or 'right', got {direction!r}")
        super().__init__(on_execute, on_undo)
        self._manager = manager
        self._page_indices = sorted(set(page_indices))
        self._direction = direction
        self._previous: list[tuple[int, int]] = []
        self.description = f"Rotate {len(self._page_indices)} pages {direction}"

    def _do(self) -> CommandEvent | None:
        self._previous = []
        for index in self._page_indices:
            page = self._manager.get_page(index)
            if page is not None:
                self._previous.append((index, page.rotation))
        rotated = self._manager.rotate_pages(
            [index for index, _ in self._previous], self._direction
        )
        if not rotated:
            return None
        return CommandEvent(ChangeKind.ROTATED, to_indices=tuple(rotated))

    def _undo(self) -> CommandEvent | None:
        restored = []
        for index, rotation in self._previous:
            page = self._manager.get_page(index)
            if page is not None:
                page.set_rotation(rotation)
                restored.append(index)
        if not restored:
            return None
        self._manager.notify_change()
        return CommandEvent(ChangeKind.ROTATED, to_indices=tuple(restored))
