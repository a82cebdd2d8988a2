"""
PageDeck - Core Package

Page sequence model, undoable commands and the undo/redo history.
"""

from pagedeck.core.commands import (
    ChangeKind,
    CommandEvent,
    DeletePageCommand,
    DeletePagesCommand,
    MovePageCommand,
    MovePagesCommand,
    RotatePageCommand,
    RotatePagesCommand,
    UndoableCommand,
)
from pagedeck.core.document_manager import DocumentEntry, DocumentManager
from pagedeck.core.observers import ListenerHandle, ListenerRegistry
from pagedeck.core.page_reference import (
    IdGenerator,
    PageReference,
    create_page_reference,
    normalize_rotation,
)
from pagedeck.core.pdf_document import PdfDocument
from pagedeck.core.undo_manager import UndoManager

__all__ = [
    "ChangeKind",
    "CommandEvent",
    "DeletePageCommand",
    "DeletePagesCommand",
    "DocumentEntry",
    "DocumentManager",
    "IdGenerator",
    "ListenerHandle",
    "ListenerRegistry",
    "MovePageCommand",
    "MovePagesCommand",
    "PageReference",
    "PdfDocument",
    "RotatePageCommand",
    "RotatePagesCommand",
    "UndoManager",
    "UndoableCommand",
    "create_page_reference",
    "normalize_rotation",
]
