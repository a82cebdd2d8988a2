"""
PageDeck - PDF Merge Service

Builds the output PDF from an ordered list of page specifications using
pikepdf. Each distinct source is opened once; pages are copied in the
requested order with the editor rotation added on top of the rotation the
source page already carries.
"""

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

import pikepdf

from pagedeck.config import APP_NAME
from pagedeck.utils.exceptions import MergeError

if TYPE_CHECKING:
    from pagedeck.core.document_manager import DocumentManager
    from pagedeck.core.page_reference import PageReference

logger = logging.getLogger(__name__)

PRODUCER = f"{APP_NAME} (pikepdf {pikepdf.__version__})"


@dataclass(frozen=True)
class PageSpec:
    """One page of the output document.

    Attributes:
        data: Raw bytes of the source PDF
        page_number: Page number in the source (1-indexed)
        rotation: Editor rotation to add (0, 90, 180, 270)
    """

    data: bytes
    page_number: int
    rotation: int = 0


@dataclass
class PdfMetadata:
    """Document information written to the output Info dictionary."""

    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None

    def items(self) -> list[tuple[str, str]]:
        """Non-empty fields as (PDF key, value) pairs."""
        fields = (
            ("/Title", self.title),
            ("/Author", self.author),
            ("/Subject", self.subject),
            ("/Keywords", self.keywords),
        )
        return [(key, value) for key, value in fields if value]


def pdf_date_string(now: datetime | None = None) -> str:
    """Format a timestamp as a PDF date: ``D:YYYYMMDDHHmmss+HH'mm'``."""
    now = now or datetime.now().astimezone()
    date_part = now.strftime("D:%Y%m%d%H%M%S")
    tz = now.strftime("%z")
    if len(tz) >= 5:
        tz = f"{tz[:3]}'{tz[3:5]}'"
    return date_part + tz


def page_specs(pages: Sequence["PageReference"]) -> list[PageSpec]:
    """Build page specifications for page references, keeping their order."""
    return [
        PageSpec(
            data=page.document.data,
            page_number=page.source_page_number,
            rotation=page.rotation,
        )
        for page in pages
    ]


def _resolve_source_rotation(src_page: pikepdf.Page) -> int:
    """Resolve the effective /Rotate of a page, including inherited values."""
    node = src_page.obj
    while node is not None:
        if "/Rotate" in node:
            return int(node["/Rotate"])
        node = node.get("/Parent")
    return 0


def _apply_metadata(pdf: pikepdf.Pdf, metadata: PdfMetadata | None) -> None:
    info = pdf.docinfo
    if metadata is not None:
        for key, value in metadata.items():
            info[key] = value
    info["/Creator"] = APP_NAME
    info["/Producer"] = PRODUCER
    date = pdf_date_string()
    info["/CreationDate"] = date
    info["/ModDate"] = date


def merge_pages(pages: Sequence[PageSpec], metadata: PdfMetadata | None = None) -> bytes:
    """Merge the given pages into a single PDF.

    Args:
        pages: Pages of the output, in order
        metadata: Optional title/author/subject/keywords

    Returns:
        The merged PDF as bytes

    Raises:
        MergeError: If there are no pages, a page does not exist in its
            source, or a source cannot be read
    """
    if not pages:
        raise MergeError("No pages to merge")

    # Keyed by the identity of the bytes object: one open per source document
    opened: dict[int, pikepdf.Pdf] = {}
    new_pdf = pikepdf.Pdf.new()

    try:
        for spec in pages:
            src_pdf = opened.get(id(spec.data))
            if src_pdf is None:
                src_pdf = pikepdf.open(io.BytesIO(spec.data))
                opened[id(spec.data)] = src_pdf

            if not 1 <= spec.page_number <= len(src_pdf.pages):
                raise MergeError(
                    f"Page {spec.page_number} not found",
                    details=f"source has {len(src_pdf.pages)} pages",
                )

            src_page = src_pdf.pages[spec.page_number - 1]
            source_rotation = _resolve_source_rotation(src_page)

            new_pdf.pages.append(src_page)
            new_page = new_pdf.pages[-1].obj

            # Inherited /Rotate does not survive the copy, so always set it
            final_rotation = (source_rotation + spec.rotation) % 360
            if final_rotation != 0:
                new_page.Rotate = final_rotation
            elif "/Rotate" in new_page:
                del new_page["/Rotate"]

        _apply_metadata(new_pdf, metadata)

        output = io.BytesIO()
        new_pdf.save(output, compress_streams=True)
        logger.info("Merged %d pages from %d sources", len(pages), len(opened))
        return output.getvalue()

    except pikepdf.PdfError as e:
        logger.error("Merge failed: %s", e)
        raise MergeError("Failed to merge PDF pages", details=str(e)) from e
    finally:
        for src in opened.values():
            src.close()
        new_pdf.close()


class PdfMerger:
    """Merges and exports pages of a workspace."""

    @staticmethod
    def merge(manager: "DocumentManager", metadata: PdfMetadata | None = None) -> bytes:
        """Merge every page of the workspace, in the current order."""
        pages = manager.get_pages()
        if not pages:
            raise MergeError("No pages to merge")
        return merge_pages(page_specs(pages), metadata)

    @staticmethod
    def export_page(page: "PageReference", metadata: PdfMetadata | None = None) -> bytes:
        """Export a single page to a new PDF."""
        return merge_pages(page_specs([page]), metadata)

    @staticmethod
    def export_pages(
        pages: Sequence["PageReference"], metadata: PdfMetadata | None = None
    ) -> bytes:
        """Export the given pages, in the given order, to a new PDF."""
        if not pages:
            raise MergeError("No pages to export")
        return merge_pages(page_specs(pages), metadata)
