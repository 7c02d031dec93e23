"""
Legend extraction: inline-symbol notes and zone-letter ranges.

Symbol legends are found by scanning the whole document, since legend text
may follow or interleave with the entity tables. The zone-letter legend is a
cross-reference table outside the main list and is not reliably extractable,
so a fixed table is used with an optional extraction attempt on top.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
from .line_classifier import SYMBOL_MARKERS, is_footnote_line
from .models import (
    ExtractionReport,
    QSL_SERVICE,
    THIRD_PARTY_TRAFFIC,
    ANTARCTICA_SPECIAL,
)

logger = logging.getLogger(__name__)


# =============================================================================
# STATIC LEGEND TABLES
# =============================================================================

# Based on the ARRL DXCC standard definition
CONTINENT_CODES: Mapping[str, str] = MappingProxyType({
    "AF": "Africa",
    "AN": "Antarctica",
    "AS": "Asia",
    "EU": "Europe",
    "NA": "North America",
    "OC": "Oceania",
    "SA": "South America",
})

# Zone ranges for entities whose ITU zone is printed as a letter
ZONE_NOTES: Mapping[str, str] = MappingProxyType({
    "A": "33, 42, 43, 44",
    "B": "67, 69-74",
    "C": "12, 13, 29, 30, 32, 38, 39",
    "D": "12, 13, 15",
    "E": "19, 20, 29, 30",
    "F": "20-26, 30-35, 75",
    "G": "16, 17, 18, 19, 23",
    "H": "2, 3, 4, 9, 75",
    "I": "55, 58, 59",
})


@dataclass(frozen=True)
class LegendConfig:
    """Read-only legend tables injected into the assembler."""
    continents: Mapping[str, str] = field(default_factory=lambda: CONTINENT_CODES)
    zone_notes: Mapping[str, str] = field(default_factory=lambda: ZONE_NOTES)

    def __post_init__(self):
        # Freeze whatever mapping the caller passed in
        object.__setattr__(self, "continents", MappingProxyType(dict(self.continents)))
        object.__setattr__(self, "zone_notes", MappingProxyType(dict(self.zone_notes)))

    @property
    def continent_codes(self) -> tuple[str, ...]:
        return tuple(self.continents)

    def with_zone_notes(self, overrides: Mapping[str, str]) -> LegendConfig:
        """Return a new config with ``overrides`` merged over the zone table."""
        merged = dict(self.zone_notes)
        merged.update({k.strip().upper(): v.strip() for k, v in overrides.items()})
        return LegendConfig(continents=self.continents, zone_notes=merged)


DEFAULT_LEGEND = LegendConfig()


# =============================================================================
# SYMBOL NOTES
# =============================================================================

def _is_antarctica_boundary(line: str) -> bool:
    """Lines that end an Antarctica note continuation run."""
    return (
        not line
        or line.startswith(SYMBOL_MARKERS)
        or is_footnote_line(line)
        or "Zone Notes" in line
    )


def _record(notes: dict[str, str], key: str, text: str, report: ExtractionReport | None) -> None:
    if key in notes:
        logger.warning(f"Duplicate {key} legend; keeping the last occurrence")
        if report is not None:
            report.duplicate_symbol_notes.append(key)
    notes[key] = text


def extract_symbol_notes(
    lines: list[str],
    start_index: int = 0,
    report: ExtractionReport | None = None,
) -> dict[str, str]:
    """
    Collect symbol legend sentences from the whole document.

    Args:
        lines: All document lines
        start_index: First line to scan
        report: Optional report receiving duplicate legend keys

    Returns:
        Mapping of symbol note key to legend text. Last occurrence wins.
    """
    notes: dict[str, str] = {}
    i = start_index
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if not line:
            continue

        if "QSL" in line and "Service" in line and "*" in line:
            _record(notes, QSL_SERVICE, line, report)
            logger.debug("Found QSL service note")

        if "third-party" in line and "traffic" in line and "#" in line and not line.startswith("^"):
            _record(notes, THIRD_PARTY_TRAFFIC, line, report)
            logger.debug("Found third-party traffic note")

        if line.startswith("^"):
            parts = [line[1:].strip()]
            while i < len(lines):
                nxt = lines[i].strip()
                if _is_antarctica_boundary(nxt):
                    break
                parts.append(nxt)
                i += 1
            _record(notes, ANTARCTICA_SPECIAL, " ".join(p for p in parts if p), report)
            logger.debug(f"Antarctica special note spans {len(parts)} line(s)")

    logger.info(f"Symbol notes parsed: {sorted(notes)}")
    return notes


# =============================================================================
# ZONE LEGEND
# =============================================================================

# "A   33, 42, 43, 44" or "B: 67, 69-74"
_ZONE_ROW = re.compile(r"^([A-Z])\s*[:=]?\s+(\d+(?:-\d+)?(?:\s*,\s*\d+(?:-\d+)?)*)\s*$")


def extract_zone_legend(
    lines: list[str],
    fallback: Mapping[str, str] = ZONE_NOTES,
) -> dict[str, str]:
    """
    Try to read zone-letter rows from a "Zone Notes" block.

    Only rows following a line containing "Zone Notes" are considered, until
    the first blank line after at least one row. Letters found override the
    fallback table; letters not found keep their fallback value.
    """
    zones = dict(fallback)
    found: dict[str, str] = {}
    in_block = False

    for raw in lines:
        line = raw.strip()
        if "Zone Notes" in line:
            in_block = True
            continue
        if not in_block:
            continue
        if not line:
            if found:
                break
            continue
        m = _ZONE_ROW.match(line)
        if m:
            found[m.group(1)] = re.sub(r"\s*,\s*", ", ", m.group(2))

    if found:
        logger.info(f"Extracted {len(found)} zone legend rows from document")
        zones.update(found)
    else:
        logger.debug("No zone legend rows in document, using fixed table")
    return zones
