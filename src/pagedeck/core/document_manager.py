"""
PageDeck - Document Manager

Manages multiple source documents and a single flat, ordered list of page
references that can be reordered, rotated and deleted.

Index arguments are 0-based positions in the combined sequence. Mutators
never raise on bad input: an out-of-range index or an empty selection is a
no-op reported through the return value (moving the first page up,
deleting an empty selection...).
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from pagedeck.core.observers import ListenerHandle, ListenerRegistry
from pagedeck.core.page_reference import IdGenerator, PageReference, create_page_reference
from pagedeck.utils.logger import logger

if TYPE_CHECKING:
    from pagedeck.core.pdf_document import PdfDocument


@dataclass(frozen=True)
class DocumentEntry:
    """A loaded source document and its display file name."""

    doc_id: str
    document: "PdfDocument"
    file_name: str


class DocumentManager:
    """Owns the page sequence across every loaded source document."""

    def __init__(
        self,
        page_ids: IdGenerator | None = None,
        document_ids: IdGenerator | None = None,
    ) -> None:
        """Initialize an empty workspace.

        Args:
            page_ids: Generator for page reference ids (default: ``page-N``)
            document_ids: Generator for document entry ids (default: ``doc-N``)
        """
        self._page_ids = page_ids or IdGenerator("page")
        self._document_ids = document_ids or IdGenerator("doc")
        self._documents: dict[str, DocumentEntry] = {}
        self._pages: list[PageReference] = []
        self._listeners = ListenerRegistry()
        self._modified = False

    # -- Loading ------------------------------------------------------------

    def add_document(
        self, document: "PdfDocument", file_name: str, notify: bool = True
    ) -> DocumentEntry:
        """Append every page of ``document`` to the end of the sequence.

        Args:
            document: The loaded source document
            file_name: Display name of the source file
            notify: Set to False when batch loading, then call notify_change()

        Returns:
            The new document entry
        """
        entry = DocumentEntry(self._document_ids.next_id(), document, file_name)
        self._documents[entry.doc_id] = entry

        for page_number in range(1, document.num_pages + 1):
            self._pages.append(
                create_page_reference(self._page_ids, document, page_number, file_name)
            )

        logger.debug(f"Added {file_name} as {entry.doc_id} ({document.num_pages} pages)")
        self._changed(notify)
        return entry

    # -- Queries ------------------------------------------------------------

    def get_pages(self) -> tuple[PageReference, ...]:
        """All page references in current order (read-only)."""
        return tuple(self._pages)

    def get_page(self, index: int) -> PageReference | None:
        if self._valid(index):
            return self._pages[index]
        return None

    def index_of(self, page: PageReference) -> int | None:
        for i, candidate in enumerate(self._pages):
            if candidate is page:
                return i
        return None

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def is_empty(self) -> bool:
        return not self._pages

    @property
    def is_modified(self) -> bool:
        return self._modified

    def mark_saved(self) -> None:
        """Mark the workspace as saved (not modified)."""
        self._modified = False

    def get_documents(self) -> list[DocumentEntry]:
        return list(self._documents.values())

    def get_source_documents(self) -> dict["PdfDocument", str]:
        """Map each loaded source document to its file name."""
        return {entry.document: entry.file_name for entry in self._documents.values()}

    # -- Deletion -----------------------------------------------------------

    def delete_page(self, index: int) -> PageReference | None:
        """Remove and return the page at ``index``, or None if out of range."""
        if not self._valid(index):
            return None
        removed = self._pages.pop(index)
        self._changed(True)
        return removed

    def delete_pages(self, indices: Iterable[int]) -> list[PageReference]:
        """Delete several pages as a single edit.

        Removal runs from the highest index down so earlier removals never
        shift positions that are still to be processed.

        Returns:
            The removed references in ascending original-index order
        """
        removed: list[PageReference] = []
        for index in sorted({i for i in indices if self._valid(i)}, reverse=True):
            removed.append(self._pages.pop(index))

        if removed:
            self._changed(True)

        removed.reverse()
        return removed

    def insert_page(self, index: int, page: PageReference) -> bool:
        """Insert an existing page reference at ``index``.

        Used to restore deleted pages with their original identity. A
        reference that is already in the sequence is refused.
        """
        if not 0 <= index <= len(self._pages):
            return False
        if self.index_of(page) is not None:
            logger.warning(f"Refusing to insert {page.id}: already in the sequence")
            return False
        self._pages.insert(index, page)
        self._changed(True)
        return True

    # -- Reordering ---------------------------------------------------------

    def move_page(self, from_index: int, to_index: int, notify: bool = True) -> bool:
        """Move one page from ``from_index`` to ``to_index``.

        Args:
            notify: Set to False when the caller updates views itself
        """
        if not self._valid(from_index) or not self._valid(to_index):
            return False
        if from_index == to_index:
            return False

        page = self._pages.pop(from_index)
        self._pages.insert(to_index, page)
        self._changed(notify)
        return True

    def move_pages(
        self, from_indices: Iterable[int], to_index: int, notify: bool = True
    ) -> list[int]:
        """Move several (possibly scattered) pages to a target position.

        The moved pages end up contiguous, in their original relative order,
        starting at ``to_index`` minus the number of moved pages that were
        before it, clamped to the remaining length.

        Returns:
            The new indices of the moved pages, ascending
        """
        valid = sorted({i for i in from_indices if self._valid(i)})
        if not valid:
            return []

        moving = [self._pages[i] for i in valid]
        for index in reversed(valid):
            del self._pages[index]

        insert_at = to_index - sum(1 for i in valid if i < to_index)
        insert_at = max(0, min(insert_at, len(self._pages)))

        self._pages[insert_at:insert_at] = moving
        self._changed(notify)
        return list(range(insert_at, insert_at + len(moving)))

    def move_page_up(self, index: int, notify: bool = True) -> bool:
        return self.move_page(index, index - 1, notify)

    def move_page_down(self, index: int, notify: bool = True) -> bool:
        return self.move_page(index, index + 1, notify)

    # -- Rotation -----------------------------------------------------------

    def rotate_page_right(self, index: int) -> bool:
        """Rotate a page by 90 degrees clockwise."""
        page = self.get_page(index)
        if page is None:
            return False
        page.rotate_right()
        self._changed(True)
        return True

    def rotate_page_left(self, index: int) -> bool:
        """Rotate a page by 90 degrees counter-clockwise."""
        page = self.get_page(index)
        if page is None:
            return False
        page.rotate_left()
        self._changed(True)
        return True

    def rotate_pages(
        self, indices: Iterable[int], direction: Literal["left", "right"]
    ) -> list[int]:
        """Rotate several pages by 90 degrees as a single edit.

        Returns:
            The rotated indices, ascending
        """
        rotated = sorted({i for i in indices if self._valid(i)})
        for index in rotated:
            if direction == "right":
                self._pages[index].rotate_right()
            else:
                self._pages[index].rotate_left()

        if rotated:
            self._changed(True)
        return rotated

    # -- Workspace ----------------------------------------------------------

    def clear(self) -> None:
        """Destroy all documents and empty the sequence."""
        for entry in self._documents.values():
            entry.document.destroy()
        count = len(self._documents)
        self._documents.clear()
        self._pages = []
        self._modified = False
        logger.debug(f"Workspace cleared ({count} documents released)")
        self._listeners.notify()

    # -- Notification -------------------------------------------------------

    def on_change(self, callback: Callable[[], None]) -> ListenerHandle:
        """Subscribe to changes; call the returned handle to unsubscribe."""
        return self._listeners.add(callback)

    def remove_listener(self, handle: ListenerHandle) -> bool:
        return self._listeners.remove(handle)

    def notify_change(self) -> None:
        """Notify listeners explicitly, after operations run with notify=False."""
        self._listeners.notify()

    def _changed(self, notify: bool) -> None:
        self._modified = True
        if notify:
            self._listeners.notify()

    def _valid(self, index: int) -> bool:
        return 0 <= index < len(self._pages)
