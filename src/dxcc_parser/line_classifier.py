"""
Lexical line classification for the DXCC list.

Every raw line is trimmed and labelled with exactly one LineKind. Rules are
checked in priority order:
1. blank
2. table separator (underscore rule)
3. deleted-entities section header
4. NOTES: section header
5. noise (marker legends, edition line, known boilerplate)
6. footnote definition (leading bare integer), or continuation of one
   while the previous line belonged to a footnote
7. entity data candidate

Footnote lines and entity lines can both start with non-letter tokens, so
the footnote check must run before entity parsing, and noise before both.
"""
import re
from collections.abc import Iterable, Iterator
from .models import ClassifiedLine, LineKind


# =============================================================================
# MARKERS
# =============================================================================

TABLE_RULE = "___________"
DELETED_MARKER = "DELETED ENTITIES"
NOTES_HEADER = "NOTES:"
SYMBOL_MARKERS = ("*", "#", "^")

MONTHS = (
    "January|February|March|April|May|June|July|"
    "August|September|October|November|December"
)

# Full-line edition stamp, e.g. "February 2022" or "January 2013 Edition"
EDITION_LINE_PATTERN = re.compile(rf"^({MONTHS})\s+\d{{4}}(?:\s+Edition)?$", re.IGNORECASE)

FOOTNOTE_PATTERN = re.compile(r"^\d+\s")

# Column headers, credit and effective-date notices, cross-reference pointers
# and legend sentences that never carry entity data
NOISE_MARKERS: tuple[str, ...] = (
    "Prefix",
    "Entity",
    "Continent",
    "_____",
    "Deleted Entities Total",
    "Current Entities Total",
    "Credit for any",
    "Effective April",
    "ZONE",
    "ITU Zone",
    "Code",
    "ARRL DXCC LIST",
    "Zone Notes can be found",
    "Prefix Cross References",
    "QSL via country",
    "third-party traffic",
)


# =============================================================================
# CLASSIFICATION
# =============================================================================

def is_noise(line: str) -> bool:
    """True for marker legends, edition stamps and boilerplate."""
    if line.startswith(SYMBOL_MARKERS):
        return True
    if EDITION_LINE_PATTERN.match(line):
        return True
    return any(marker in line for marker in NOISE_MARKERS)


def is_footnote_line(line: str) -> bool:
    """True when the line starts with a bare integer followed by whitespace."""
    return bool(FOOTNOTE_PATTERN.match(line))


def classify_line(line: str, in_footnote: bool = False) -> LineKind:
    """
    Return the classification tag for one line.

    ``in_footnote`` is the section state: True while the previous non-blank
    line was a footnote definition or continuation. Lines that would
    otherwise be entity candidates are then footnote continuations.
    """
    stripped = line.strip()

    if not stripped:
        return LineKind.BLANK
    if TABLE_RULE in stripped:
        return LineKind.TABLE_SEPARATOR
    if DELETED_MARKER in stripped:
        return LineKind.DELETED_HEADER
    if stripped == NOTES_HEADER:
        return LineKind.NOTES_HEADER
    if is_noise(stripped):
        return LineKind.NOISE
    if is_footnote_line(stripped):
        return LineKind.FOOTNOTE_DEFINITION
    if in_footnote and not stripped[0].isdigit():
        return LineKind.FOOTNOTE_CONTINUATION
    return LineKind.ENTITY_DATA


def classify_lines(lines: Iterable[str], start: int = 0) -> Iterator[ClassifiedLine]:
    """Yield a ClassifiedLine for every line, indices counted from ``start``."""
    in_footnote = False
    for offset, line in enumerate(lines):
        kind = classify_line(line, in_footnote)
        if kind in (LineKind.FOOTNOTE_DEFINITION, LineKind.FOOTNOTE_CONTINUATION):
            in_footnote = True
        elif kind is not LineKind.NOISE:
            in_footnote = False
        yield ClassifiedLine(index=start + offset, text=line.strip(), kind=kind)
