"""
PageDeck - Source Document

Wrapper around one loaded source PDF. The page model only needs the page
count and the raw bytes (for merging); rendering collaborators may ask for an
on-disk copy and register their in-flight work so it can be cancelled when
the workspace is cleared.
"""

import io
import os
import tempfile
import threading
from concurrent.futures import Future
from pathlib import Path

import pikepdf

from pagedeck.utils.exceptions import InvalidPdfError
from pagedeck.utils.logger import logger


class PdfDocument:
    """A source PDF loaded into the workspace."""

    def __init__(self, data: bytes, num_pages: int, name: str = "") -> None:
        self._data = bytes(data)
        self._num_pages = num_pages
        self.name = name
        self._render_tasks: dict[int, Future] = {}
        self._lock = threading.Lock()
        self._temp_path: str | None = None
        self._destroyed = False

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "") -> "PdfDocument":
        """Load a document from PDF bytes.

        Args:
            data: Raw PDF file content
            name: Display name used in logs and errors

        Returns:
            New PdfDocument instance

        Raises:
            InvalidPdfError: If the data is not a readable, unencrypted PDF
        """
        try:
            with pikepdf.open(io.BytesIO(data)) as pdf:
                num_pages = len(pdf.pages)
        except pikepdf.PasswordError as e:
            raise InvalidPdfError(name, "document is password-protected") from e
        except pikepdf.PdfError as e:
            raise InvalidPdfError(name, str(e)) from e

        logger.debug(f"Loaded {name or 'document'}: {num_pages} pages, {len(data)} bytes")
        return cls(data, num_pages, name=name)

    @classmethod
    def from_file(cls, path: str | Path) -> "PdfDocument":
        """Load a document from a file on disk.

        Raises:
            OSError: If the file cannot be read
            InvalidPdfError: If the file is not a readable PDF
        """
        path = Path(path)
        return cls.from_bytes(path.read_bytes(), name=path.name)

    @property
    def num_pages(self) -> int:
        return self._num_pages

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def materialize(self) -> str:
        """Return the path of an on-disk copy of the document.

        The copy is created on first use and removed by destroy().
        """
        with self._lock:
            if self._destroyed:
                raise RuntimeError(f"Document {self.name!r} has been destroyed")
            if self._temp_path is None:
                fd, path = tempfile.mkstemp(prefix="pagedeck-", suffix=".pdf")
                with os.fdopen(fd, "wb") as f:
                    f.write(self._data)
                self._temp_path = path
            return self._temp_path

    def track_render(self, page_number: int, future: Future) -> None:
        """Register an in-flight render, cancelling an older one for the same page."""
        with self._lock:
            previous = self._render_tasks.get(page_number)
            self._render_tasks[page_number] = future
        if previous is not None and previous is not future:
            previous.cancel()
        future.add_done_callback(lambda f, n=page_number: self._forget_render(n, f))

    def _forget_render(self, page_number: int, future: Future) -> None:
        with self._lock:
            if self._render_tasks.get(page_number) is future:
                del self._render_tasks[page_number]

    def destroy(self) -> None:
        """Cancel pending renders and release the on-disk copy."""
        with self._lock:
            if self._destroyed:
                return
            self._destroyed = True
            tasks = list(self._render_tasks.values())
            self._render_tasks.clear()
            temp_path, self._temp_path = self._temp_path, None

        for task in tasks:
            task.cancel()

        if temp_path:
            try:
                os.unlink(temp_path)
            except OSError as e:
                logger.warning(f"Could not remove temporary copy {temp_path}: {e}")

        logger.debug(f"Destroyed {self.name or 'document'} ({len(tasks)} renders cancelled)")

    def __repr__(self) -> str:
        return f"PdfDocument(name={self.name!r}, num_pages={self._num_pages})"
