"""
PageDeck - Editor Session

Ties the document manager, the undo history and the view state (current page,
current file name) together. Every editing action is built as an undoable
command whose events keep the current page pointing at the page the user is
working on; the session itself has no UI dependencies and can be driven from
the CLI, a GUI or scripts.
"""

from collections.abc import Callable, Iterable
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from pagedeck.config import APP_NAME, DEFAULT_MAX_HISTORY_SIZE
from pagedeck.core.commands import (
    CommandEvent,
    DeletePageCommand,
    DeletePagesCommand,
    MovePageCommand,
    MovePagesCommand,
    RotatePageCommand,
    RotatePagesCommand,
    UndoableCommand,
)
from pagedeck.core.document_manager import DocumentManager
from pagedeck.core.pdf_document import PdfDocument
from pagedeck.core.undo_manager import UndoManager
from pagedeck.services.page_renderer import PageRenderer
from pagedeck.services.pdf_merger import PdfMerger, PdfMetadata
from pagedeck.utils.config_manager import ConfigManager
from pagedeck.utils.exceptions import InvalidPdfError
from pagedeck.utils.logger import logger


@dataclass
class LoadResult:
    """Outcome of loading a batch of files.

    Attributes:
        loaded: Names of the files that were added
        failed: (name, reason) pairs for files that could not be loaded
    """

    loaded: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.loaded)


class EditorSession:
    """One editing session over a set of loaded documents."""

    def __init__(
        self,
        max_history_size: int | None = None,
        config: ConfigManager | None = None,
        renderer: PageRenderer | None = None,
    ) -> None:
        """Initialize an empty session.

        Args:
            max_history_size: Undo depth; read from config when not given
            config: Optional settings (history depth, default author)
            renderer: Optional page renderer used for previews
        """
        if max_history_size is None:
            if config is not None:
                max_history_size = config.get_positive_int("history.max_size")
            else:
                max_history_size = DEFAULT_MAX_HISTORY_SIZE

        self._config = config
        self.documents = DocumentManager()
        self.history = UndoManager(max_history_size)
        self.renderer = renderer
        self.current_page_index = 0
        self.current_file_name: str | None = None

        self.documents.on_change(self._clamp_current_page)

    # -- Loading ------------------------------------------------------------

    def load_files(self, paths: Iterable[str | Path]) -> LoadResult:
        """Load PDF files from disk, appending their pages.

        Files that cannot be read are reported in the result, not raised.
        """
        items: list[tuple[str, bytes | None, str]] = []
        for path in paths:
            path = Path(path)
            try:
                items.append((path.name, path.read_bytes(), ""))
            except OSError as e:
                logger.error(f"Failed to read {path}: {e}")
                items.append((path.name, None, str(e)))
        return self._load(items)

    def load_documents(self, items: Iterable[tuple[str, bytes]]) -> LoadResult:
        """Load in-memory PDFs given as (file name, bytes) pairs."""
        return self._load([(name, data, "") for name, data in items])

    def _load(self, items: list[tuple[str, bytes | None, str]]) -> LoadResult:
        result = LoadResult()
        if not items:
            return result

        # History from a previous set of documents is meaningless now
        self.history.clear()
        is_first_load = self.documents.is_empty

        for name, data, read_error in items:
            if data is None:
                result.failed.append((name, read_error))
                continue
            try:
                document = PdfDocument.from_bytes(data, name=name)
            except InvalidPdfError as e:
                logger.error(f"Failed to load PDF {name}: {e}")
                result.failed.append((name, str(e)))
                continue

            # Batch the adds; listeners are notified once below
            self.documents.add_document(document, name, notify=False)
            if is_first_load and not result.loaded:
                self.current_file_name = name
            result.loaded.append(name)

        if result.loaded:
            self.documents.notify_change()
            logger.info(
                f"Loaded {len(result.loaded)} file(s), "
                f"{self.documents.page_count} pages in total"
            )
        return result

    def close(self) -> None:
        """Clear all documents and reset to the empty state."""
        if self.renderer is not None:
            for document in self.documents.get_source_documents():
                self.renderer.clear_document_cache(document)
        self.documents.clear()
        self.history.clear()
        self.current_page_index = 0
        self.current_file_name = None

    # -- Navigation ---------------------------------------------------------

    def go_to_page(self, index: int) -> bool:
        if not 0 <= index < self.documents.page_count:
            return False
        self.current_page_index = index
        return True

    def navigate_page(self, delta: int) -> bool:
        return self.go_to_page(self.current_page_index + delta)

    def _clamp_current_page(self) -> None:
        count = self.documents.page_count
        if count == 0:
            self.current_page_index = 0
        elif self.current_page_index >= count:
            self.current_page_index = count - 1

    # -- Undoable actions ---------------------------------------------------

    def move_page_up(self) -> CommandEvent | None:
        """Move the current page one position towards the start."""
        from_index = self.current_page_index
        return self.move_page(from_index, from_index - 1)

    def move_page_down(self) -> CommandEvent | None:
        """Move the current page one position towards the end."""
        from_index = self.current_page_index
        return self.move_page(from_index, from_index + 1)

    def move_page(self, from_index: int, to_index: int) -> CommandEvent | None:
        if from_index == to_index or not (
            self._valid(from_index) and self._valid(to_index)
        ):
            return None
        command = MovePageCommand(
            self.documents,
            from_index,
            to_index,
            on_execute=self._follow_moved_pages,
            on_undo=self._follow_moved_pages,
        )
        return self._run(command)

    def move_pages(self, indices: Iterable[int], target_index: int) -> CommandEvent | None:
        valid = sorted({i for i in indices if self._valid(i)})
        if not valid:
            return None
        command = MovePagesCommand(
            self.documents,
            valid,
            target_index,
            on_execute=self._follow_moved_pages,
            on_undo=self._follow_moved_pages,
        )
        return self._run(command)

    def rotate_page_left(self, index: int | None = None) -> CommandEvent | None:
        return self._rotate(self.current_page_index if index is None else index, "left")

    def rotate_page_right(self, index: int | None = None) -> CommandEvent | None:
        return self._rotate(self.current_page_index if index is None else index, "right")

    def _rotate(self, index: int, direction: str) -> CommandEvent | None:
        if not self._valid(index):
            return None
        command = RotatePageCommand(
            self.documents,
            index,
            direction,
            on_execute=self._follow_rotated_page,
            on_undo=self._follow_rotated_page,
        )
        return self._run(command)

    def rotate_pages(
        self, indices: Iterable[int], direction: Literal["left", "right"]
    ) -> CommandEvent | None:
        """Rotate several pages as one undoable step."""
        valid = sorted({i for i in indices if self._valid(i)})
        if not valid:
            return None
        command = RotatePagesCommand(
            self.documents,
            valid,
            direction,
            on_execute=self._follow_rotated_page,
            on_undo=self._follow_rotated_page,
        )
        return self._run(command)

    def delete_page(self, index: int | None = None) -> CommandEvent | None:
        index = self.current_page_index if index is None else index
        if not self._valid(index):
            return None
        command = DeletePageCommand(
            self.documents,
            index,
            on_execute=self._after_delete,
            on_undo=self._after_restore,
        )
        return self._run(command)

    def delete_pages(self, indices: Iterable[int]) -> CommandEvent | None:
        valid = sorted({i for i in indices if self._valid(i)})
        if not valid:
            return None
        command = DeletePagesCommand(
            self.documents,
            valid,
            on_execute=self._after_delete,
            on_undo=self._after_restore,
        )
        return self._run(command)

    def undo(self) -> UndoableCommand | None:
        if not self.history.can_undo:
            return None
        return self.history.undo()

    def redo(self) -> UndoableCommand | None:
        if not self.history.can_redo:
            return None
        return self.history.redo()

    def _run(self, command: UndoableCommand) -> CommandEvent | None:
        event = self.history.execute(command)
        logger.debug(f"{command.description}: {event}")
        return event

    def _valid(self, index: int) -> bool:
        return 0 <= index < self.documents.page_count

    # -- Event hooks --------------------------------------------------------

    def _follow_moved_pages(self, event: CommandEvent) -> None:
        if event.to_indices:
            self.current_page_index = event.to_indices[0]

    def _follow_rotated_page(self, event: CommandEvent) -> None:
        self.current_page_index = event.to_indices[0]

    def _after_delete(self, event: CommandEvent) -> None:
        remaining = self.documents.page_count
        self.current_page_index = max(0, min(min(event.from_indices), remaining - 1))

    def _after_restore(self, event: CommandEvent) -> None:
        self.current_page_index = event.to_indices[0]

    # -- Saving -------------------------------------------------------------

    def default_metadata(self) -> PdfMetadata:
        """Metadata suggested for a save: title from the first file name."""
        title = Path(self.current_file_name).stem if self.current_file_name else None
        author = self._config.get("metadata.author") if self._config is not None else None
        return PdfMetadata(title=title, author=author or None)

    def merge(self, metadata: PdfMetadata | None = None) -> bytes:
        """Merge the current page sequence into PDF bytes.

        Raises:
            MergeError: If the workspace is empty or merging fails
        """
        if metadata is None:
            metadata = self.default_metadata()
        return PdfMerger.merge(self.documents, metadata)

    def save_as(self, path: str | Path, metadata: PdfMetadata | None = None) -> Path:
        """Merge and write the result, then mark the workspace as saved."""
        path = Path(path)
        data = self.merge(metadata)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        self.documents.mark_saved()
        logger.info(f"Saved {self.documents.page_count} pages to {path}")
        return path

    def export_pages(
        self,
        indices: Iterable[int],
        path: str | Path,
        metadata: PdfMetadata | None = None,
    ) -> Path:
        """Write the selected pages, in sequence order, to a new PDF."""
        selected = sorted({i for i in indices if self._valid(i)})
        pages = [self.documents.get_page(i) for i in selected]
        data = PdfMerger.export_pages(pages, metadata)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Exported {len(pages)} page(s) to {path}")
        return path

    # -- Preview ------------------------------------------------------------

    def render_current_page(
        self, scale: float = 1.0, callback: Callable | None = None
    ) -> Future | None:
        """Render the current page in the background, if a renderer is set."""
        page = self.documents.get_page(self.current_page_index)
        if page is None or self.renderer is None:
            return None
        return self.renderer.render_page(page, scale=scale, callback=callback)

    @property
    def title(self) -> str:
        """Window title: ``*report.pdf - PageDeck`` when there are unsaved changes."""
        if self.current_file_name is None:
            return APP_NAME
        marker = "*" if self.documents.is_modified else ""
        return f"{marker}{self.current_file_name} - {APP_NAME}"
