"""Tests for undo_manager module."""

import pytest

from pagedeck.core.commands import DeletePageCommand, RotatePageCommand
from pagedeck.core.undo_manager import UndoManager


def _snapshot(manager):
    return [(p.id, p.rotation) for p in manager.get_pages()]


class TestUndoManager:
    def test_initial_state(self):
        history = UndoManager()
        assert not history.can_undo
        assert not history.can_redo
        assert history.undo_description is None
        assert history.redo_description is None
        assert history.undo() is None
        assert history.redo() is None

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            UndoManager(max_history_size=0)

    def test_execute_then_undo(self, make_manager):
        manager, pages = make_manager(3)
        history = UndoManager()
        history.execute(DeletePageCommand(manager, 0))
        assert manager.page_count == 2
        assert history.can_undo
        assert history.undo_description == "Delete page 1"

        undone = history.undo()
        assert undone.description == "Delete page 1"
        assert list(manager.get_pages()) == pages
        assert history.can_redo
        assert history.redo_description == "Delete page 1"

    def test_execute_undo_redo_matches_execute(self, make_manager):
        manager, _ = make_manager(4)
        history = UndoManager()
        history.execute(RotatePageCommand(manager, 1, "right"))
        history.execute(DeletePageCommand(manager, 0))
        after_execute = _snapshot(manager)

        history.undo()
        history.undo()
        history.redo()
        history.redo()
        assert _snapshot(manager) == after_execute

    def test_new_command_clears_redo(self, make_manager):
        manager, _ = make_manager(3)
        history = UndoManager()
        history.execute(DeletePageCommand(manager, 0))
        history.undo()
        assert history.can_redo
        history.execute(RotatePageCommand(manager, 0, "left"))
        assert not history.can_redo
        assert history.redo_count == 0

    def test_history_is_bounded(self, make_manager):
        manager, _ = make_manager(1)
        history = UndoManager(max_history_size=3)
        for _ in range(5):
            history.execute(RotatePageCommand(manager, 0, "right"))
        assert history.undo_count == 3
        assert history.max_history_size == 3

        while history.can_undo:
            history.undo()
        # The two oldest rotations were dropped and stay applied
        assert manager.get_page(0).rotation == 180

    def test_noop_command_is_still_recorded(self, make_manager):
        manager, _ = make_manager(1)
        history = UndoManager()
        assert history.execute(DeletePageCommand(manager, 9)) is None
        assert history.undo_count == 1

    def test_listeners_notified(self, make_manager):
        manager, _ = make_manager(2)
        history = UndoManager()
        calls = []
        handle = history.on_change(lambda: calls.append(1))

        history.execute(DeletePageCommand(manager, 0))
        history.undo()
        history.redo()
        history.clear()
        assert len(calls) == 4

        assert history.remove_listener(handle)
        history.execute(DeletePageCommand(manager, 0))
        assert len(calls) == 4

    def test_clear(self, make_manager):
        manager, _ = make_manager(2)
        history = UndoManager()
        history.execute(DeletePageCommand(manager, 0))
        history.undo()
        history.clear()
        assert not history.can_undo
        assert not history.can_redo
