"""Numbered footnote extraction for the current and deleted sections."""
from __future__ import annotations
import logging
import re
from .line_classifier import DELETED_MARKER, is_footnote_line
from .models import ExtractionReport, SCOPE_CURRENT, SCOPE_DELETED, footnote_key

logger = logging.getLogger(__name__)

FOOTNOTE_DEFINITION = re.compile(r"^(\d+)\s+(.+)$")

# Lines that end the current-section footnote block
CURRENT_BOUNDARIES = (DELETED_MARKER, "ARRL DXCC LIST")


def _is_boundary(line: str, scope: str) -> bool:
    if scope != SCOPE_CURRENT:
        return False
    return any(marker in line for marker in CURRENT_BOUNDARIES)


def extract_footnotes(
    lines: list[str],
    start_index: int,
    scope: str,
    report: ExtractionReport | None = None,
) -> dict[str, str]:
    """
    Collect numbered footnotes starting at ``start_index``.

    A definition is ``<number> <text>``, optionally followed by continuation
    lines that do not start with a digit; those are joined with single
    spaces. The current-scope block ends at the first blank line or section
    boundary. The deleted-scope block runs to end of document, skipping
    blank lines between definitions.

    Args:
        lines: All document lines
        start_index: Index of the first line after "NOTES:", or -1 if absent
        scope: "current" or "deleted"
        report: Optional report receiving duplicate keys

    Returns:
        Mapping of ``{scope}_note_{n}`` to footnote text. Last write wins.
    """
    if scope not in (SCOPE_CURRENT, SCOPE_DELETED):
        raise ValueError(f"Unknown footnote scope: {scope!r}")

    notes: dict[str, str] = {}
    if start_index < 0:
        return notes

    logger.debug(f"Parsing {scope} footnotes from line {start_index + 1}")

    i = start_index
    while i < len(lines):
        line = lines[i].strip()
        i += 1

        if not line:
            if scope == SCOPE_CURRENT:
                break
            continue
        if _is_boundary(line, scope):
            break

        m = FOOTNOTE_DEFINITION.match(line)
        if not m:
            continue

        parts = [m.group(2)]
        while i < len(lines):
            nxt = lines[i].strip()
            if not nxt or is_footnote_line(nxt) or _is_boundary(nxt, scope):
                break
            if nxt[0].isdigit():
                break
            parts.append(nxt)
            i += 1

        key = footnote_key(scope, m.group(1))
        if key in notes:
            logger.warning(f"Duplicate footnote {key}; keeping the last definition")
            if report is not None:
                report.duplicate_footnotes.append(key)
        notes[key] = " ".join(parts)
        logger.debug(f"Found {scope} note {m.group(1)}: {notes[key][:50]}...")

    logger.info(f"Parsed {len(notes)} {scope} numbered notes")
    return notes
