"""Pytest configuration for pagedeck tests.

Provides in-memory PDFs built with pikepdf and a lightweight stand-in for
source documents, so the page model can be exercised without parsing PDFs.
"""

import io

import pikepdf
import pytest

from pagedeck.core.document_manager import DocumentManager


def build_pdf_bytes(
    num_pages: int = 3,
    width_base: int = 100,
    page_rotation: int | None = None,
    inherited_rotation: int | None = None,
) -> bytes:
    """Create a PDF whose page i (0-based) has MediaBox width ``width_base + i``.

    The widths make every page of every fixture document recognisable in a
    merged output.
    """
    pdf = pikepdf.Pdf.new()
    for i in range(num_pages):
        page = pikepdf.Page(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Page,
                MediaBox=[0, 0, width_base + i, 792],
                Contents=pdf.make_stream(f"BT /F1 12 Tf 100 700 Td (Page {i + 1}) Tj ET".encode()),
            )
        )
        pdf.pages.append(page)

    if page_rotation is not None:
        for page in pdf.pages:
            page.obj.Rotate = page_rotation
    if inherited_rotation is not None:
        pdf.Root.Pages.Rotate = inherited_rotation

    output = io.BytesIO()
    pdf.save(output)
    pdf.close()
    return output.getvalue()


class FakeDocument:
    """Stand-in for PdfDocument: only what the page model touches."""

    def __init__(self, num_pages: int, name: str = "fake.pdf", data: bytes = b"") -> None:
        self.num_pages = num_pages
        self.name = name
        self.data = data
        self.destroy_calls = 0

    @property
    def is_destroyed(self) -> bool:
        return self.destroy_calls > 0

    def destroy(self) -> None:
        self.destroy_calls += 1


@pytest.fixture
def pdf_bytes():
    """Factory fixture for in-memory test PDFs."""
    return build_pdf_bytes


@pytest.fixture
def workspace():
    """A manager holding documents A (3 pages) and B (2 pages), in that order."""
    manager = DocumentManager()
    doc_a = FakeDocument(3, "a.pdf")
    doc_b = FakeDocument(2, "b.pdf")
    manager.add_document(doc_a, "a.pdf")
    manager.add_document(doc_b, "b.pdf")
    return manager, doc_a, doc_b


@pytest.fixture
def fake_document():
    """The FakeDocument class, for tests that build managers by hand."""
    return FakeDocument


@pytest.fixture
def make_manager():
    """Factory: a manager over one fake document of ``count`` pages, and its pages."""

    def _make(count: int):
        manager = DocumentManager()
        manager.add_document(FakeDocument(count, "doc.pdf"), "doc.pdf")
        return manager, list(manager.get_pages())

    return _make
