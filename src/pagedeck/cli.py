#!/usr/bin/env python3
"""
PageDeck CLI - assemble pages from several PDFs from the terminal.

Usage:
    python -m pagedeck <command> [options]

Commands:
    info        List the combined page sequence of one or more PDFs
    assemble    Load PDFs, apply editing operations and save the result
    render      Render one page to an image file

Operations for 'assemble' (page numbers are 1-based positions in the
combined sequence at the time the operation runs):
    delete:3              Delete page 3
    delete:1,4-5          Delete pages 1, 4 and 5 as one step
    move:2:5              Move page 2 to position 5
    move-many:1,3:6       Move pages 1 and 3 together to position 6
    rotate-left:2         Rotate page 2 counter-clockwise
    rotate-right:2        Rotate page 2 clockwise
    rotate-right:1-3      Rotate pages 1 to 3 clockwise as one step
    undo / redo           Undo or redo the previous operation

Examples:
    pagedeck-cli info a.pdf b.pdf
    pagedeck-cli assemble a.pdf b.pdf -o out.pdf --op delete:2 --op move:1:4
    pagedeck-cli assemble scan.pdf -o fixed.pdf --op rotate-right:1-3 --title "Scan"
    pagedeck-cli render a.pdf --page 1 --scale 0.5 -o preview.png
"""

import argparse
import logging
import sys
from pathlib import Path

from pagedeck.config import APP_DESCRIPTION, APP_NAME, APP_VERSION

# ---------------------------------------------------------------------------
# Page list parser (shared)
# ---------------------------------------------------------------------------


def _parse_page_list(text: str) -> list[int]:
    """Parse a page specification string into a sorted list of page numbers.

    Supports: "3", "1-5", "1,3,7", "1-3,7,10-12"

    Args:
        text: Page specification string.

    Returns:
        Sorted list of 1-indexed page numbers.
    """
    pages: set[int] = set()
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                s, e = int(start_s.strip()), int(end_s.strip())
                pages.update(range(s, e + 1))
            else:
                pages.add(int(part))
        except ValueError:
            raise ValueError(
                f"Invalid page specification '{part}'. "
                "Use numbers and ranges like '1-5' or '1,3,7'."
            ) from None
    return sorted(p for p in pages if p >= 1)


def _parse_position(text: str) -> int:
    try:
        value = int(text.strip())
    except ValueError:
        raise ValueError(f"Invalid position '{text}'") from None
    if value < 1:
        raise ValueError(f"Invalid position '{text}': positions start at 1")
    return value


def parse_operation(text: str) -> tuple[str, list[int], int | None]:
    """Parse one --op value.

    Returns:
        (name, 0-based page indices, 0-based target index or None)

    Raises:
        ValueError: On unknown operations or malformed arguments.
    """
    name, _, rest = text.strip().partition(":")
    name = name.lower()

    if name in ("undo", "redo"):
        if rest:
            raise ValueError(f"'{name}' takes no arguments")
        return name, [], None

    if name in ("delete", "rotate-left", "rotate-right"):
        pages = _parse_page_list(rest)
        if not pages:
            raise ValueError(f"'{name}' needs at least one page")
        return name, [p - 1 for p in pages], None

    if name in ("move", "move-many"):
        source, sep, target = rest.rpartition(":")
        if not sep:
            raise ValueError(f"'{name}' needs PAGES:POSITION")
        pages = _parse_page_list(source)
        if not pages:
            raise ValueError(f"'{name}' needs at least one page")
        if name == "move" and len(pages) != 1:
            raise ValueError("'move' takes a single page, use 'move-many' for several")
        return name, [p - 1 for p in pages], _parse_position(target) - 1

    raise ValueError(f"Unknown operation '{name}'")


# ---------------------------------------------------------------------------
# Argument parser construction
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with subcommands."""
    p = argparse.ArgumentParser(
        prog="pagedeck-cli",
        description=f"{APP_NAME} - {APP_DESCRIPTION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging (DEBUG)")
    p.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")

    sub = p.add_subparsers(dest="command", help="Available commands")

    # --- info ---
    info_p = sub.add_parser("info", help="List the combined page sequence")
    info_p.add_argument("inputs", nargs="+", type=Path, help="Input PDF files")

    # --- assemble ---
    asm_p = sub.add_parser("assemble", help="Apply editing operations and save")
    asm_p.add_argument("inputs", nargs="+", type=Path, help="Input PDF files, in order")
    asm_p.add_argument("-o", "--output", type=Path, required=True, help="Output PDF file")
    asm_p.add_argument(
        "--op",
        dest="operations",
        action="append",
        default=[],
        metavar="OPERATION",
        help="Editing operation (repeatable, applied in order)",
    )
    asm_p.add_argument("--title", help="Document title")
    asm_p.add_argument("--author", help="Document author")
    asm_p.add_argument("--subject", help="Document subject")
    asm_p.add_argument("--keywords", help="Document keywords")

    # --- render ---
    render_p = sub.add_parser("render", help="Render one page to an image")
    render_p.add_argument("input", type=Path, help="Input PDF file")
    render_p.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    render_p.add_argument("--scale", type=float, default=1.0, help="Scale (default: 1.0)")
    render_p.add_argument(
        "--rotation", type=int, default=0, choices=(0, 90, 180, 270), help="Clockwise rotation"
    )
    render_p.add_argument("-o", "--output", type=Path, required=True, help="Output image file")

    return p


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _load_session(inputs: list[Path], logger):
    """Create a session and load the inputs; None if nothing could be loaded."""
    from pagedeck.session import EditorSession
    from pagedeck.utils.config_manager import get_config_manager
    from pagedeck.utils.exceptions import ConfigurationError

    try:
        session = EditorSession(config=get_config_manager())
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    result = session.load_files(inputs)
    for name, reason in result.failed:
        print(f"Error: could not load {name}: {reason}", file=sys.stderr)
    if not result.success:
        return None
    logger.debug("Loaded %s", ", ".join(result.loaded))
    return session


def _cmd_info(args, logger) -> int:
    """Handle the 'info' command."""
    session = _load_session(args.inputs, logger)
    if session is None:
        return 1

    for entry in session.documents.get_documents():
        print(f"{entry.file_name}: {entry.document.num_pages} pages")
    print(f"Total: {session.documents.page_count} pages")
    for index, page in enumerate(session.documents.get_pages(), start=1):
        rotation = f" (rotated {page.rotation}°)" if page.rotation else ""
        print(f"  {index:4d}  {page.label}{rotation}")
    session.close()
    return 0


def _apply_operation(session, name: str, indices: list[int], target: int | None) -> bool:
    """Apply one parsed operation; False if it had no effect."""
    if name == "undo":
        return session.undo() is not None
    if name == "redo":
        return session.redo() is not None
    if name == "delete":
        if len(indices) == 1:
            return session.delete_page(indices[0]) is not None
        return session.delete_pages(indices) is not None
    if name == "move":
        return session.move_page(indices[0], target) is not None
    if name == "move-many":
        return session.move_pages(indices, target) is not None
    direction = "left" if name == "rotate-left" else "right"
    if len(indices) == 1:
        rotate = session.rotate_page_left if direction == "left" else session.rotate_page_right
        return rotate(indices[0]) is not None
    # A page range is one history entry
    return session.rotate_pages(indices, direction) is not None


def _cmd_assemble(args, logger) -> int:
    """Handle the 'assemble' command."""
    from pagedeck.utils.exceptions import MergeError

    try:
        operations = [parse_operation(op) for op in args.operations]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session = _load_session(args.inputs, logger)
    if session is None:
        return 1

    for text, (name, indices, target) in zip(args.operations, operations, strict=True):
        if not _apply_operation(session, name, indices, target):
            logger.warning("Operation '%s' had no effect", text)

    metadata = session.default_metadata()
    for field_name in ("title", "author", "subject", "keywords"):
        value = getattr(args, field_name)
        if value is not None:
            setattr(metadata, field_name, value)

    try:
        path = session.save_as(args.output, metadata)
    except (MergeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        session.close()

    print(f"Saved: {path}")
    return 0


def _cmd_render(args, logger) -> int:
    """Handle the 'render' command."""
    from pagedeck.core.pdf_document import PdfDocument
    from pagedeck.services.page_renderer import PageRenderer
    from pagedeck.utils.config_manager import get_config_manager
    from pagedeck.utils.exceptions import ConfigurationError, InvalidPdfError, RenderError

    try:
        document = PdfDocument.from_file(args.input)
    except (OSError, InvalidPdfError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        renderer = PageRenderer.from_config(get_config_manager())
    except ConfigurationError as e:
        document.destroy()
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        image = renderer.render(document, args.page, rotation=args.rotation, scale=args.scale)
        args.output.parent.mkdir(parents=True, exist_ok=True)
        image.save(args.output)
    except (RenderError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        renderer.shutdown()
        document.destroy()

    logger.info("Rendered page %d of %s", args.page, args.input.name)
    print(f"Rendered: {args.output} ({image.width}x{image.height})")
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logger = logging.getLogger("pagedeck.cli")
    if args.verbose:
        logging.getLogger("PageDeck").setLevel(logging.DEBUG)

    inputs = getattr(args, "inputs", None) or [getattr(args, "input", None)]
    for path in inputs:
        if path is not None and not path.exists():
            print(f"Error: {path} not found", file=sys.stderr)
            return 1

    handlers = {
        "info": _cmd_info,
        "assemble": _cmd_assemble,
        "render": _cmd_render,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args, logger)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
