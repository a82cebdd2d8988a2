"""
PageDeck - Services Package

Collaborators of the page model: merging/exporting and page rendering.
"""

from pagedeck.services.page_renderer import PageRenderer
from pagedeck.services.pdf_merger import PageSpec, PdfMerger, PdfMetadata, merge_pages

__all__ = ["PageRenderer", "PageSpec", "PdfMerger", "PdfMetadata", "merge_pages"]
