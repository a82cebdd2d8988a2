"""
PageDeck - Page Reference Model

Identity-stable descriptors for pages drawn from loaded source documents.
"""

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pagedeck.config import ROTATION_STEP, VALID_ROTATIONS

if TYPE_CHECKING:
    from pagedeck.core.pdf_document import PdfDocument


def normalize_rotation(degrees: int) -> int:
    """Map any multiple of 90 degrees onto 0, 90, 180 or 270."""
    rotation = degrees % 360
    if rotation not in VALID_ROTATIONS:
        # Round to nearest valid rotation
        rotation = round(rotation / ROTATION_STEP) * ROTATION_STEP % 360
    return rotation


class IdGenerator:
    """Produces monotonic identifiers such as ``page-1``, ``page-2``...

    Each DocumentManager owns its own generators so identifiers never leak
    between workspaces or tests.
    """

    def __init__(self, prefix: str, start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def next_id(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


@dataclass(eq=False)
class PageReference:
    """A reference to one page of a source document.

    Equality is identity: two references to the same source page are still
    different pages of the sequence.

    Attributes:
        id: Unique identifier for this page reference
        document: The source document (referenced, not owned)
        source_page_number: Page number in the source document (1-indexed)
        rotation: Rotation applied to this page (0, 90, 180, 270)
        file_name: Original file name for display purposes
    """

    id: str
    document: "PdfDocument"
    source_page_number: int
    rotation: int = 0
    file_name: str = ""

    def __post_init__(self) -> None:
        self.rotation = normalize_rotation(self.rotation)

    def rotate_right(self) -> None:
        """Rotate page 90 degrees clockwise."""
        self.rotation = (self.rotation + ROTATION_STEP) % 360

    def rotate_left(self) -> None:
        """Rotate page 90 degrees counter-clockwise."""
        self.rotation = (self.rotation - ROTATION_STEP) % 360

    def set_rotation(self, degrees: int) -> None:
        self.rotation = normalize_rotation(degrees)

    @property
    def label(self) -> str:
        """Short display label, e.g. ``report.pdf p.3``."""
        return f"{self.file_name} p.{self.source_page_number}"


def create_page_reference(
    ids: IdGenerator,
    document: "PdfDocument",
    source_page_number: int,
    file_name: str,
) -> PageReference:
    """Create a new PageReference with a unique id taken from ``ids``."""
    return PageReference(
        id=ids.next_id(),
        document=document,
        source_page_number=source_page_number,
        file_name=file_name,
    )
