"""
Entity row parsing.

Each entity line is tried against an ordered list of strategies; the first
one that returns a RowMatch wins:
1. strict columnar pattern
2. relaxed columnar pattern (irregular spacing in prefix/name)
3. token-count fallback (split on whitespace, read fields from the right)

Known limitation of the token fallback: entity names are assumed never to
end in tokens that look like continent codes or bare integers. Such a name
would be misread rather than rejected.
"""
from __future__ import annotations
import logging
import re
from collections.abc import Iterable
from typing import Callable
from .legends import CONTINENT_CODES
from .line_classifier import SYMBOL_MARKERS, is_footnote_line
from .models import (
    Entity,
    RowMatch,
    SCOPE_CURRENT,
    SCOPE_DELETED,
    QSL_SERVICE,
    THIRD_PARTY_TRAFFIC,
    ANTARCTICA_SPECIAL,
    footnote_key,
)

logger = logging.getLogger(__name__)


# =============================================================================
# GRAMMAR
# =============================================================================

def continent_group(codes: Iterable[str]) -> str:
    """Regex source for one or more comma-joined continent codes."""
    codes = sorted(codes, key=len, reverse=True)
    if not codes:
        raise ValueError("At least one continent code is required")
    cont = "(?:" + "|".join(re.escape(c) for c in codes) + ")"
    return rf"{cont}(?:,{cont})*"


def _strict_pattern(group: str) -> re.Pattern:
    return re.compile(
        r"^\s*([A-Z0-9/,\-*^_#()]+)"
        r"\s+([A-Za-z0-9\s&.\-'(),/]+?)"
        rf"\s+({group})"
        r"\s+(\d+)\s+(\d+)\s+(\d+)\s*$"
    )


def _relaxed_pattern(group: str) -> re.Pattern:
    return re.compile(
        r"^\s*([A-Z0-9/,\-*^_#()\s]+?)"
        r"\s+(\S.*?)"
        rf"\s+({group})"
        r"\s+(\d+)\s+(\d+)\s+(\d+)\s*$"
    )


CONTINENT_GROUP = continent_group(CONTINENT_CODES)
CONTINENT_PATTERN = re.compile(rf"^{CONTINENT_GROUP}$")
STRICT_PATTERN = _strict_pattern(CONTINENT_GROUP)
RELAXED_PATTERN = _relaxed_pattern(CONTINENT_GROUP)

MIN_FALLBACK_TOKENS = 6

# Marker symbol -> symbol note key
SYMBOL_NOTE_KEYS: dict[str, str] = {
    "*": QSL_SERVICE,
    "#": THIRD_PARTY_TRAFFIC,
    "^": ANTARCTICA_SPECIAL,
}

# Parenthesized footnote number, or a single marker symbol
_NOTE_TOKEN = re.compile(r"\((\d+)\)|([*#^])")
_PAREN_GROUP = re.compile(r"\([^)]*\)")
_MARKER_CHARS = re.compile(r"[*#^]")
_BARE_INT = re.compile(r"^\d+$")

# Text that marks a non-matching line as prose rather than broken entity data
ANOMALY_EXCLUDES = (
    "NOTES",
    "Total",
    "auspices",
    "can check",
    "October",
    "http://",
    "visit:",
)


# =============================================================================
# STRATEGIES
# =============================================================================

Strategy = Callable[[str], "RowMatch | None"]


def _from_match(m: re.Match, strategy: str) -> RowMatch:
    prefix, name, continent, itu, cq, code = (g.strip() for g in m.groups())
    return RowMatch(
        prefix=prefix,
        entity_name=name,
        continent=continent,
        zone_itu=itu,
        zone_cq=cq,
        entity_code=code,
        strategy=strategy,
    )


def _columnar(pattern: re.Pattern, name: str) -> Strategy:
    def match(line: str) -> RowMatch | None:
        m = pattern.match(line)
        return _from_match(m, name) if m else None
    match.__name__ = f"match_{name}"
    return match


def _token_fallback(continent_pattern: re.Pattern) -> Strategy:
    def match_token_fallback(line: str) -> RowMatch | None:
        """
        Read fields from whitespace tokens.

        Layout: prefix, name tokens..., continent, ITU, CQ, code. The zone
        tokens are taken verbatim and may be zone-legend letters.
        """
        parts = line.split()
        if len(parts) < MIN_FALLBACK_TOKENS:
            return None
        if not _BARE_INT.match(parts[-1]):
            return None
        if not continent_pattern.match(parts[-4]):
            return None
        return RowMatch(
            prefix=parts[0],
            entity_name=" ".join(parts[1:-4]),
            continent=parts[-4],
            zone_itu=parts[-3],
            zone_cq=parts[-2],
            entity_code=parts[-1],
            strategy="token",
        )
    return match_token_fallback


def make_strategies(continent_codes: Iterable[str] = CONTINENT_CODES) -> tuple[Strategy, ...]:
    """
    Build the ordered strategies for a continent legend.

    Returns strict columnar, relaxed columnar and token fallback matchers
    that only accept the given continent codes.
    """
    group = continent_group(continent_codes)
    return (
        _columnar(_strict_pattern(group), "strict"),
        _columnar(_relaxed_pattern(group), "relaxed"),
        _token_fallback(re.compile(rf"^{group}$")),
    )


PARSE_STRATEGIES: tuple[Strategy, ...] = (
    _columnar(STRICT_PATTERN, "strict"),
    _columnar(RELAXED_PATTERN, "relaxed"),
    _token_fallback(CONTINENT_PATTERN),
)
match_strict, match_relaxed, match_token_fallback = PARSE_STRATEGIES


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_prefix(raw_prefix: str) -> str:
    """Strip marker symbols and parenthesized groups from a prefix."""
    prefix = _MARKER_CHARS.sub("", raw_prefix.strip())
    return _PAREN_GROUP.sub("", prefix)


def extract_prefix_notes(raw_prefix: str, is_current: bool) -> list[str]:
    """
    Derive note keys from an unstripped prefix.

    Parenthesized numbers become footnote keys scoped to the section the
    line was found in; ``*``, ``#`` and ``^`` become symbol note keys. Keys
    follow the left-to-right order of the markers, without repeats.
    """
    scope = SCOPE_CURRENT if is_current else SCOPE_DELETED
    notes: list[str] = []
    for m in _NOTE_TOKEN.finditer(raw_prefix):
        if m.group(1):
            key = footnote_key(scope, m.group(1))
        else:
            key = SYMBOL_NOTE_KEYS[m.group(2)]
        if key not in notes:
            notes.append(key)
    return notes


def match_row(line: str, strategies: tuple[Strategy, ...] = PARSE_STRATEGIES) -> RowMatch | None:
    """Return the first strategy match for ``line``, or None."""
    for strategy in strategies:
        row = strategy(line)
        if row is not None:
            return row
    return None


def parse_entity_line(
    line: str,
    is_current: bool = True,
    strategies: tuple[Strategy, ...] = PARSE_STRATEGIES,
) -> Entity | None:
    """
    Parse one entity line into an Entity.

    Args:
        line: Trimmed entity-data candidate
        is_current: Whether the line precedes the deleted-entities boundary
        strategies: Ordered parsing strategies

    Returns:
        Entity, or None when no strategy matches
    """
    row = match_row(line, strategies)
    if row is None:
        return None

    code = int(row.entity_code)
    if code <= 0:
        logger.debug(f"Rejecting non-positive entity code in: {line!r}")
        return None

    return Entity(
        prefix=normalize_prefix(row.prefix),
        entity_name=row.entity_name,
        continent=row.continent,
        zone_itu=row.zone_itu,
        zone_cq=row.zone_cq,
        entity_code=code,
        notes=extract_prefix_notes(row.prefix, is_current),
        is_current=is_current,
    )


def looks_like_entity_anomaly(line: str) -> bool:
    """Noise filter for unmatched lines: True if worth reporting."""
    if len(line) <= 20:
        return False
    if any(text in line for text in ANOMALY_EXCLUDES):
        return False
    if is_footnote_line(line) or line.startswith(SYMBOL_MARKERS):
        return False
    return True
