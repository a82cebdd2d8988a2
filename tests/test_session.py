"""Tests for the editor session (history wiring and view state)."""

import io
from unittest.mock import MagicMock

import pikepdf
import pytest

from pagedeck.core.commands import ChangeKind
from pagedeck.session import EditorSession
from pagedeck.services.pdf_merger import PdfMetadata
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.exceptions import ConfigurationError, MergeError


@pytest.fixture
def session(pdf_bytes):
    s = EditorSession()
    s.load_documents(
        [
            ("a.pdf", pdf_bytes(3, width_base=100)),
            ("b.pdf", pdf_bytes(2, width_base=200)),
        ]
    )
    yield s
    s.close()


def _widths(data):
    with pikepdf.open(io.BytesIO(data)) as pdf:
        return [int(page.mediabox[2]) for page in pdf.pages]


class TestLoading:
    def test_loads_all_pages(self, session):
        assert session.documents.page_count == 5
        assert session.current_file_name == "a.pdf"
        assert session.current_page_index == 0

    def test_load_reports_failures(self, pdf_bytes):
        session = EditorSession()
        result = session.load_documents([("bad.pdf", b"junk"), ("ok.pdf", pdf_bytes(1))])
        assert result.success
        assert result.loaded == ["ok.pdf"]
        assert [name for name, _ in result.failed] == ["bad.pdf"]
        assert session.current_file_name == "ok.pdf"
        session.close()

    def test_load_notifies_once(self, pdf_bytes):
        session = EditorSession()
        calls = []
        session.documents.on_change(lambda: calls.append(1))
        session.load_documents([("a.pdf", pdf_bytes(1)), ("b.pdf", pdf_bytes(1))])
        assert len(calls) == 1
        session.close()

    def test_load_files(self, pdf_bytes, tmp_path):
        path = tmp_path / "scan.pdf"
        path.write_bytes(pdf_bytes(2))
        session = EditorSession()
        result = session.load_files([path, tmp_path / "missing.pdf"])
        assert result.loaded == ["scan.pdf"]
        assert result.failed[0][0] == "missing.pdf"
        assert session.documents.page_count == 2
        session.close()

    def test_nothing_loaded(self):
        session = EditorSession()
        result = session.load_documents([("bad.pdf", b"junk")])
        assert not result.success
        assert session.title == "PageDeck"

    def test_loading_more_keeps_first_name_and_clears_history(self, session, pdf_bytes):
        session.delete_page(0)
        session.load_documents([("c.pdf", pdf_bytes(1))])
        assert session.current_file_name == "a.pdf"
        assert not session.history.can_undo

    def test_close_resets_state(self, session):
        session.delete_page(0)
        session.close()
        assert session.documents.is_empty
        assert not session.history.can_undo
        assert session.current_file_name is None
        assert session.current_page_index == 0


class TestHistorySize:
    def test_explicit_size(self):
        assert EditorSession(max_history_size=5).history.max_history_size == 5

    def test_size_from_config(self, tmp_path):
        config = ConfigManager(config_path=str(tmp_path / "settings.json"))
        config.set("history.max_size", 12, save_immediately=False)
        assert EditorSession(config=config).history.max_history_size == 12

    def test_invalid_config_value(self, tmp_path):
        config = ConfigManager(config_path=str(tmp_path / "settings.json"))
        config.set("history.max_size", 0, save_immediately=False)
        with pytest.raises(ConfigurationError):
            EditorSession(config=config)


class TestEditing:
    def test_delete_and_undo_scenario(self, session):
        second_of_a = session.documents.get_page(1)

        event = session.delete_page(1)
        assert event.kind is ChangeKind.DELETED
        assert session.documents.page_count == 4
        assert session.documents.is_modified

        session.undo()
        assert session.documents.page_count == 5
        assert session.documents.get_page(1) is second_of_a
        assert session.current_page_index == 1

    def test_delete_current_page_by_default(self, session):
        session.go_to_page(4)
        session.delete_page()
        assert session.documents.page_count == 4
        assert session.current_page_index == 3

    def test_delete_pages_as_one_step(self, session):
        pages = session.documents.get_pages()
        session.delete_pages([0, 2, 4])
        assert session.documents.get_pages() == (pages[1], pages[3])
        assert session.history.undo_count == 1
        session.undo()
        assert session.documents.get_pages() == pages

    def test_invalid_actions_record_nothing(self, session):
        assert session.delete_page(9) is None
        assert session.delete_pages([7, 8]) is None
        assert session.move_page(0, 0) is None
        assert session.move_page(0, 9) is None
        assert session.move_pages([], 1) is None
        assert session.rotate_page_left(5) is None
        assert session.move_page_up() is None
        assert not session.history.can_undo

    def test_move_page_follows_page(self, session):
        moved = session.documents.get_page(0)
        session.move_page(0, 3)
        assert session.documents.get_page(3) is moved
        assert session.current_page_index == 3
        session.undo()
        assert session.current_page_index == 0

    def test_move_page_down_and_up(self, session):
        first = session.documents.get_page(0)
        session.move_page_down()
        assert session.current_page_index == 1
        assert session.documents.get_page(1) is first
        session.move_page_up()
        assert session.documents.get_page(0) is first

    def test_move_pages(self, session):
        pages = session.documents.get_pages()
        event = session.move_pages([3, 4], 0)
        assert event.to_indices == (0, 1)
        assert session.documents.get_pages()[:2] == (pages[3], pages[4])
        assert session.current_page_index == 0

    def test_move_pages_to_front_and_undo(self, session):
        pages = session.documents.get_pages()
        session.move_pages([2, 3], 0)
        assert session.documents.get_pages()[:2] == (pages[2], pages[3])
        session.undo()
        assert session.documents.get_pages() == pages
        assert session.current_page_index == 2

    def test_rotate_current_page(self, session):
        session.go_to_page(2)
        event = session.rotate_page_right()
        assert event.rotation == 90
        assert session.documents.get_page(2).rotation == 90
        session.undo()
        assert session.documents.get_page(2).rotation == 0

    def test_rotate_pages_is_one_history_entry(self, session):
        event = session.rotate_pages([1, 2, 4], "right")
        assert event.kind is ChangeKind.ROTATED
        assert session.current_page_index == 1
        assert [p.rotation for p in session.documents.get_pages()] == [0, 90, 90, 0, 90]
        assert session.history.undo_count == 1

        session.undo()
        assert [p.rotation for p in session.documents.get_pages()] == [0] * 5
        assert not session.history.can_undo

    def test_rotate_pages_nothing_valid(self, session):
        assert session.rotate_pages([7], "left") is None
        assert not session.history.can_undo

    def test_redo(self, session):
        session.rotate_page_left(1)
        session.undo()
        assert session.redo() is not None
        assert session.documents.get_page(1).rotation == 270
        assert session.redo() is None

    def test_undo_with_empty_history(self, session):
        assert session.undo() is None

    def test_navigation_bounds(self, session):
        assert session.go_to_page(4)
        assert not session.navigate_page(1)
        assert session.current_page_index == 4
        assert session.navigate_page(-2)
        assert session.current_page_index == 2


class TestSaving:
    def test_title_marks_unsaved_changes(self, session, tmp_path):
        assert session.title == "*a.pdf - PageDeck"
        session.save_as(tmp_path / "out.pdf")
        assert session.title == "a.pdf - PageDeck"

    def test_save_as_writes_current_order(self, session, tmp_path):
        session.move_page(4, 0)
        session.delete_page(2)
        path = session.save_as(tmp_path / "nested" / "out.pdf")
        assert _widths(path.read_bytes()) == [201, 100, 102, 200]
        assert not session.documents.is_modified

    def test_default_metadata(self, session, tmp_path):
        config = ConfigManager(config_path=str(tmp_path / "settings.json"))
        config.set("metadata.author", "Ana", save_immediately=False)
        session._config = config
        metadata = session.default_metadata()
        assert metadata.title == "a"
        assert metadata.author == "Ana"

    def test_merge_uses_given_metadata(self, session):
        data = session.merge(PdfMetadata(title="Custom"))
        with pikepdf.open(io.BytesIO(data)) as pdf:
            assert str(pdf.docinfo["/Title"]) == "Custom"

    def test_merge_empty_session(self):
        with pytest.raises(MergeError):
            EditorSession().merge()

    def test_export_selected_pages(self, session, tmp_path):
        path = session.export_pages([4, 1, 9], tmp_path / "part.pdf")
        assert _widths(path.read_bytes()) == [101, 201]
        assert session.documents.is_modified


class TestPreview:
    def test_render_current_page(self, session):
        renderer = MagicMock()
        session.renderer = renderer
        session.go_to_page(3)
        session.render_current_page(scale=0.5)
        page = renderer.render_page.call_args[0][0]
        assert page is session.documents.get_page(3)
        assert renderer.render_page.call_args[1]["scale"] == 0.5

    def test_no_renderer(self, session):
        assert session.render_current_page() is None

    def test_close_clears_renderer_cache(self, pdf_bytes):
        renderer = MagicMock()
        session = EditorSession(renderer=renderer)
        session.load_documents([("a.pdf", pdf_bytes(1))])
        document = session.documents.get_page(0).document
        session.close()
        renderer.clear_document_cache.assert_called_once_with(document)
        assert document.is_destroyed
