"""
Document assembly for the ARRL DXCC list.

Drives one linear scan over the document:
1. Edition detection (header lines)
2. Data-region start (first underscore table rule)
3. Entity scan with current/deleted section state and NOTES: offsets
4. Footnote sub-scans per scope at the recorded offsets
5. Legend scan over the full document
6. Statistics, filtering and result assembly

All scan state is local to one ``assemble()`` call, so an assembler can be
reused across documents and threads.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from .config import Config
from .entity_parser import Strategy, make_strategies, parse_entity_line, looks_like_entity_anomaly
from .footnotes import extract_footnotes
from .legends import DEFAULT_LEGEND, LegendConfig, extract_symbol_notes, extract_zone_legend
from .line_classifier import MONTHS, classify_lines
from .models import (
    AssemblyOutcome,
    DocumentMetadata,
    DocumentResult,
    Entity,
    ExtractionReport,
    LineKind,
    NotesStatistics,
    Statistics,
    UnmatchedLine,
    FILTER_ALL,
    FILTER_CURRENT,
    FILTER_DELETED,
    FILTER_MODES,
    SCOPE_CURRENT,
    SCOPE_DELETED,
    UNKNOWN_EDITION,
)

logger = logging.getLogger(__name__)

EDITION_PATTERN = re.compile(rf"({MONTHS})\s+(\d{{4}})(?:\s+Edition)?", re.IGNORECASE)
EDITION_SEARCH_LINES = 10

FILTER_DESCRIPTIONS = {
    FILTER_ALL: "Current and Deleted DXCC Entities",
    FILTER_CURRENT: "Current DXCC Entities",
    FILTER_DELETED: "Deleted DXCC Entities",
}


class DXCCParseError(Exception):
    """Raised when a document cannot be converted at all."""


class MissingTableSeparatorError(DXCCParseError):
    """Raised when the underscore table rule marking the data region is absent."""


class NoEntitiesFoundError(DXCCParseError):
    """Raised when the scan completes without a single parsed entity."""


# =============================================================================
# HEADER HELPERS
# =============================================================================

def find_edition(lines: list[str], max_lines: int = EDITION_SEARCH_LINES) -> str | None:
    """Return the edition stamp (e.g. "February 2022") from the header, if any."""
    for line in lines[:max_lines]:
        m = EDITION_PATTERN.search(line.strip())
        if m:
            return m.group(0)
    return None


def find_data_start(lines: list[str]) -> int:
    """Index of the line after the first table separator, or -1."""
    for c in classify_lines(lines):
        if c.kind is LineKind.TABLE_SEPARATOR:
            return c.index + 1
    return -1


# =============================================================================
# STATISTICS AND FILTERING
# =============================================================================

def continent_statistics(entities: list[Entity]) -> dict[str, int]:
    """Count current entities per continent string, in order of first appearance."""
    counts: dict[str, int] = {}
    for entity in entities:
        if entity.is_current:
            counts[entity.continent] = counts.get(entity.continent, 0) + 1
    return counts


def filter_entities(entities: list[Entity], filter_mode: str) -> list[Entity]:
    """Keep entities selected by ``filter_mode``, preserving order."""
    if filter_mode == FILTER_CURRENT:
        return [e for e in entities if e.is_current]
    if filter_mode == FILTER_DELETED:
        return [e for e in entities if not e.is_current]
    return list(entities)


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# =============================================================================
# SCAN STATE
# =============================================================================

@dataclass
class _ScanState:
    """Mutable accumulators owned by a single assemble() call."""
    in_deleted: bool = False
    current_notes_start: int = -1
    deleted_notes_start: int = -1
    entities: list[Entity] = field(default_factory=list)
    current_count: int = 0
    deleted_count: int = 0


# =============================================================================
# ASSEMBLER
# =============================================================================

class DocumentAssembler:
    """Turn DXCC list lines into a DocumentResult."""

    def __init__(
        self,
        legend: LegendConfig = DEFAULT_LEGEND,
        config: Config | None = None,
        strategies: tuple[Strategy, ...] | None = None,
    ):
        """
        Args:
            legend: Continent and zone-letter tables
            config: Optional config supplying metadata and zone overrides
            strategies: Ordered entity-row parsing strategies; built from the
                legend's continent codes when omitted
        """
        if config is not None and config.zone_notes_overrides:
            legend = legend.with_zone_notes(config.zone_notes_overrides)
        self.legend = legend
        self.config = config
        if strategies is None:
            strategies = make_strategies(legend.continent_codes)
        self.strategies = strategies

    def assemble(
        self,
        lines: list[str],
        filter_mode: str = FILTER_ALL,
        source_file: str = "",
    ) -> AssemblyOutcome:
        """
        Extract entities, footnotes and legends from ``lines``.

        Raises:
            ValueError: Unknown filter mode
            MissingTableSeparatorError: No table rule found
            NoEntitiesFoundError: No entity line could be parsed
        """
        if filter_mode not in FILTER_MODES:
            raise ValueError(f"Invalid filter mode: {filter_mode!r}. Must be one of {', '.join(FILTER_MODES)}")

        logger.info(f"Parsing DXCC document ({len(lines)} lines, filter={filter_mode})")
        report = ExtractionReport()

        edition = find_edition(lines)
        if edition is None:
            edition = UNKNOWN_EDITION
            msg = f"Edition not found in first {EDITION_SEARCH_LINES} lines; using '{UNKNOWN_EDITION}'"
            logger.warning(msg)
            report.warnings.append(msg)
        else:
            logger.info(f"Found edition: {edition}")

        data_start = find_data_start(lines)
        if data_start < 0:
            raise MissingTableSeparatorError(
                "Entity table start not found: no underscore table rule in document"
            )
        logger.debug(f"Entity data starts at line {data_start + 1}")

        state = self._scan(lines, data_start, report)
        logger.info(
            f"Entity parsing complete: {state.current_count} current, "
            f"{state.deleted_count} deleted, {len(state.entities)} total"
        )
        if not state.entities:
            raise NoEntitiesFoundError(
                f"No entities parsed after line {data_start}; "
                f"{len(report.unmatched_lines)} candidate line(s) failed to match"
            )

        current_notes = self._footnotes(lines, state.current_notes_start, SCOPE_CURRENT, report, required=True)
        deleted_notes = self._footnotes(
            lines, state.deleted_notes_start, SCOPE_DELETED, report, required=state.in_deleted
        )
        symbol_notes = extract_symbol_notes(lines, report=report)
        zone_notes = dict(self.legend.zone_notes)
        if self.config is not None and self.config.extract_zone_legend:
            zone_notes = extract_zone_legend(lines, fallback=self.legend.zone_notes)

        self._check_references(state.entities, report, symbol_notes, current_notes, deleted_notes)

        result = self._build_result(
            state.entities,
            filter_mode=filter_mode,
            edition=edition,
            source_file=source_file,
            symbol_notes=symbol_notes,
            current_notes=current_notes,
            deleted_notes=deleted_notes,
            zone_notes=zone_notes,
        )
        if report.has_anomalies:
            logger.info(f"Extraction anomalies: {report.summary()}")
        return AssemblyOutcome(result=result, report=report)

    # -------------------------------------------------------------------------
    # Scan
    # -------------------------------------------------------------------------

    def _scan(self, lines: list[str], data_start: int, report: ExtractionReport) -> _ScanState:
        """Single forward pass over the data region."""
        state = _ScanState()
        seen_codes: set[int] = set()

        for c in classify_lines(lines[data_start:], start=data_start):
            kind = c.kind

            if kind is LineKind.NOTES_HEADER:
                if state.in_deleted:
                    state.deleted_notes_start = c.index + 1
                    logger.debug(f"Found deleted entities NOTES at line {c.index + 1}")
                    break
                state.current_notes_start = c.index + 1
                logger.debug(f"Found current entities NOTES at line {c.index + 1}")
                continue

            if kind is LineKind.DELETED_HEADER:
                if not state.in_deleted:
                    logger.info("Entering deleted entities section")
                state.in_deleted = True
                continue

            if kind not in (LineKind.ENTITY_DATA, LineKind.FOOTNOTE_CONTINUATION):
                continue

            entity = parse_entity_line(c.text, is_current=not state.in_deleted, strategies=self.strategies)
            if entity is None:
                if kind is LineKind.ENTITY_DATA and looks_like_entity_anomaly(c.text):
                    logger.info(f"Unmatched entity line {c.index + 1}: {c.text!r}")
                    report.unmatched_lines.append(UnmatchedLine(line_num=c.index + 1, text=c.text))
                continue

            if entity.entity_code in seen_codes:
                logger.warning(f"Duplicate entity code {entity.entity_code} at line {c.index + 1}")
                report.duplicate_entity_codes.append(entity.entity_code)
            seen_codes.add(entity.entity_code)

            state.entities.append(entity)
            if entity.is_current:
                state.current_count += 1
            else:
                state.deleted_count += 1
            logger.debug(
                f"Found entity #{entity.entity_code}: {entity.entity_name} "
                f"({'Current' if entity.is_current else 'Deleted'})"
            )

        return state

    def _footnotes(
        self,
        lines: list[str],
        start: int,
        scope: str,
        report: ExtractionReport,
        required: bool,
    ) -> dict[str, str]:
        if start < 0:
            if required:
                logger.warning(f"No NOTES: section found for {scope} entities")
                report.missing_note_sections.append(scope)
            return {}
        return extract_footnotes(lines, start, scope, report=report)

    @staticmethod
    def _check_references(
        entities: list[Entity],
        report: ExtractionReport,
        *note_maps: dict[str, str],
    ) -> None:
        """Record note keys referenced by entities but never defined."""
        for entity in entities:
            for key in entity.notes:
                if not any(key in notes for notes in note_maps):
                    report.unresolved_notes.append(key)
        if report.unresolved_notes:
            logger.warning(f"Unresolved note references: {sorted(set(report.unresolved_notes))}")

    # -------------------------------------------------------------------------
    # Result
    # -------------------------------------------------------------------------

    def _build_result(
        self,
        entities: list[Entity],
        *,
        filter_mode: str,
        edition: str,
        source_file: str,
        symbol_notes: dict[str, str],
        current_notes: dict[str, str],
        deleted_notes: dict[str, str],
        zone_notes: dict[str, str],
    ) -> DocumentResult:
        filtered = filter_entities(entities, filter_mode)
        if filter_mode != FILTER_ALL:
            logger.info(f"Filtered to {filter_mode} entities only: {len(filtered)} entities")

        notes = dict(symbol_notes)
        if filter_mode != FILTER_DELETED:
            notes.update(current_notes)
        if filter_mode != FILTER_CURRENT:
            notes.update(deleted_notes)

        statistics = Statistics(
            total_parsed=len(filtered),
            current_entities=sum(1 for e in filtered if e.is_current),
            deleted_entities=sum(1 for e in filtered if not e.is_current),
            continents=continent_statistics(entities),
            notes_statistics=NotesStatistics(
                current_notes_count=len(current_notes) if filter_mode != FILTER_DELETED else 0,
                deleted_notes_count=len(deleted_notes) if filter_mode != FILTER_CURRENT else 0,
                zone_notes_count=len(zone_notes),
            ),
        )

        metadata = DocumentMetadata(
            title="ARRL DXCC List",
            edition=edition,
            description=FILTER_DESCRIPTIONS[filter_mode],
            filter_type=filter_mode,
            notes=notes,
            continents=dict(self.legend.continents),
            zone_notes=zone_notes,
            generated_at=_utc_timestamp(),
            source_file=source_file,
            statistics=statistics,
        )
        if self.config is not None:
            metadata.title = self.config.title
            metadata.honor_roll_threshold = self.config.honor_roll_threshold
            metadata.version = self.config.format_version
            metadata.author = self.config.author

        return DocumentResult(metadata=metadata, entities=filtered)


def parse_document(
    source: str | list[str],
    filter_mode: str = FILTER_ALL,
    *,
    source_file: str = "",
    legend: LegendConfig = DEFAULT_LEGEND,
    config: Config | None = None,
) -> AssemblyOutcome:
    """
    Parse a DXCC list given as text or as a list of lines.

    Args:
        source: Full document text, or its lines
        filter_mode: "all", "current" or "deleted"
        source_file: Name recorded in metadata.sourceFile
        legend: Legend tables
        config: Optional config for metadata and zone overrides

    Returns:
        AssemblyOutcome with the DocumentResult and anomaly report
    """
    lines = source.splitlines() if isinstance(source, str) else list(source)
    assembler = DocumentAssembler(legend=legend, config=config)
    return assembler.assemble(lines, filter_mode=filter_mode, source_file=source_file)
