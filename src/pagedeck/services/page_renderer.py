"""
PageDeck - Page Renderer

Renders pages of source documents to Pillow images using pdftoppm
(poppler-utils) with thread-pooled background rendering and LRU caching.
Rotation is the editor rotation of the page reference, applied on top of
whatever rotation the source page already has.
"""

import io
import logging
import subprocess
import threading
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from pagedeck.config import (
    DEFAULT_RENDER_BASE_DPI,
    DEFAULT_RENDER_CACHE_SIZE,
    DEFAULT_RENDER_WORKERS,
    RENDER_TIMEOUT_SECONDS,
)
from pagedeck.utils.exceptions import RenderCancelledError, RenderError

if TYPE_CHECKING:
    from pagedeck.core.page_reference import PageReference
    from pagedeck.core.pdf_document import PdfDocument
    from pagedeck.utils.config_manager import ConfigManager

logger = logging.getLogger(__name__)

# Clockwise editor rotation -> Pillow transpose (Pillow turns counter-clockwise)
_TRANSPOSE_FOR_ROTATION = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}

RenderCallback = Callable[[Image.Image], None]


def apply_rotation(image: Image.Image, rotation: int) -> Image.Image:
    """Rotate an image clockwise by a multiple of 90 degrees."""
    transpose = _TRANSPOSE_FOR_ROTATION.get(rotation % 360)
    if transpose is None:
        return image
    return image.transpose(transpose)


class PageRenderer:
    """Renders page images with caching and background workers."""

    def __init__(
        self,
        cache_size: int = DEFAULT_RENDER_CACHE_SIZE,
        max_workers: int = DEFAULT_RENDER_WORKERS,
        base_dpi: int = DEFAULT_RENDER_BASE_DPI,
    ) -> None:
        """Initialize the renderer.

        Args:
            cache_size: Maximum number of rendered images to cache
            max_workers: Number of background render threads
            base_dpi: Resolution used at scale 1.0
        """
        self._cache: OrderedDict[tuple, Image.Image] = OrderedDict()
        self._cache_size = cache_size
        self._base_dpi = base_dpi
        self._max_workers = max_workers
        self._lock = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=max_workers)

    @classmethod
    def from_config(cls, config: "ConfigManager") -> "PageRenderer":
        """Create a renderer from the render.* settings."""
        return cls(
            cache_size=config.get_positive_int("render.cache_size"),
            max_workers=config.get_positive_int("render.workers"),
            base_dpi=config.get_positive_int("render.base_dpi"),
        )

    def _get_cache_key(
        self, document: "PdfDocument", page_number: int, rotation: int, scale: float
    ) -> tuple:
        return (document, page_number, rotation % 360, round(scale, 4))

    def _evict_cache(self) -> None:
        """Evict oldest items from cache."""
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    def render(
        self,
        document: "PdfDocument",
        page_number: int,
        rotation: int = 0,
        scale: float = 1.0,
    ) -> Image.Image:
        """Render one page synchronously.

        Args:
            document: Source document
            page_number: Page number in the source (1-indexed)
            rotation: Clockwise rotation to apply
            scale: 1.0 renders one pixel per PDF point

        Returns:
            The rendered page image

        Raises:
            RenderCancelledError: If the document has been destroyed
            RenderError: If the page does not exist or pdftoppm fails
        """
        if document.is_destroyed:
            raise RenderCancelledError(page_number)
        if not 1 <= page_number <= document.num_pages:
            raise RenderError(
                f"Page out of range (document has {document.num_pages})", page_number
            )
        if scale <= 0:
            raise RenderError(f"Invalid scale: {scale}", page_number)

        cache_key = self._get_cache_key(document, page_number, rotation, scale)
        with self._lock:
            if cache_key in self._cache:
                self._cache.move_to_end(cache_key)
                return self._cache[cache_key]

        image = self._render_pdftoppm(document, page_number, scale)
        image = apply_rotation(image, rotation)

        with self._lock:
            self._cache[cache_key] = image
            self._evict_cache()
        return image

    def _render_pdftoppm(self, document: "PdfDocument", page_number: int, scale: float):
        """Render a single page via pdftoppm and decode the PNG output."""
        try:
            pdf_path = document.materialize()
        except RuntimeError as e:
            raise RenderCancelledError(page_number) from e

        dpi = max(1, round(self._base_dpi * scale))
        try:
            result = subprocess.run(
                [
                    "pdftoppm",
                    "-png",
                    "-r",
                    str(dpi),
                    "-f",
                    str(page_number),
                    "-l",
                    str(page_number),
                    "-singlefile",
                    pdf_path,
                ],
                capture_output=True,
                timeout=RENDER_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as e:
            raise RenderError("pdftoppm is not installed (poppler-utils)", page_number) from e
        except subprocess.TimeoutExpired as e:
            raise RenderError("pdftoppm timed out", page_number) from e

        if result.returncode != 0 or not result.stdout:
            stderr = result.stderr.decode(errors="replace").strip()
            raise RenderError(f"pdftoppm failed ({result.returncode}): {stderr}", page_number)

        try:
            image = Image.open(io.BytesIO(result.stdout))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise RenderError(f"Could not decode rendered page: {e}", page_number) from e
        return image

    def render_async(
        self,
        document: "PdfDocument",
        page_number: int,
        rotation: int = 0,
        scale: float = 1.0,
        callback: RenderCallback | None = None,
    ) -> Future:
        """Render a page on the thread pool.

        A newer request for the same page of the same document supersedes an
        older one. The callback runs on the worker thread and only on success;
        cancellations are not reported to it.

        Returns:
            Future resolving to the image
        """
        future = self._pool.submit(self._render_worker, document, page_number, rotation, scale)
        document.track_render(page_number, future)

        def _done(f: Future) -> None:
            try:
                image = f.result()
            except (CancelledError, RenderCancelledError):
                logger.debug("Render of page %d cancelled", page_number)
                return
            except RenderError as e:
                logger.error("Failed to render page %d: %s", page_number, e)
                return
            if callback is not None:
                callback(image)

        future.add_done_callback(_done)
        return future

    def render_page(
        self,
        page: "PageReference",
        scale: float = 1.0,
        callback: RenderCallback | None = None,
    ) -> Future:
        """Render a page reference with its current rotation."""
        return self.render_async(
            page.document, page.source_page_number, page.rotation, scale, callback
        )

    def _render_worker(
        self, document: "PdfDocument", page_number: int, rotation: int, scale: float
    ) -> Image.Image:
        image = self.render(document, page_number, rotation, scale)
        if document.is_destroyed:
            raise RenderCancelledError(page_number)
        return image

    def clear_document_cache(self, document: "PdfDocument") -> None:
        """Drop cached images of one document."""
        with self._lock:
            for key in [k for k in self._cache if k[0] is document]:
                del self._cache[key]

    def clear_all(self) -> None:
        """Clear the cache and restart the thread pool."""
        self._pool.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            self._cache.clear()
        self._pool = ThreadPoolExecutor(max_workers=self._max_workers)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True, cancel_futures=True)
        with self._lock:
            self._cache.clear()

    @property
    def cached_count(self) -> int:
        return len(self._cache)
