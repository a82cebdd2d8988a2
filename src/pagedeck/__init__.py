"""
PageDeck - Python package for combining and rearranging PDF pages

This package provides an editing model for assembling pages from several
PDF files: reorder, rotate and delete pages with full undo/redo, preview
pages and save the result as a new PDF.
"""

__version__ = "1.0.0"
__author__ = "PageDeck Team"
__license__ = "GPL-3.0"


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application.

    Returns:
        The application exit code.
    """
    from pagedeck.cli import main as cli_main

    return cli_main(argv)


__all__ = ["main", "__version__"]
