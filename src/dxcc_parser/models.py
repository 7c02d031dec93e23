"""
All dataclasses for the system. No dependencies on implementation modules.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, field

# Filter modes for the Document Result
FILTER_ALL = "all"
FILTER_CURRENT = "current"
FILTER_DELETED = "deleted"
FILTER_MODES = (FILTER_ALL, FILTER_CURRENT, FILTER_DELETED)

# Footnote scopes
SCOPE_CURRENT = "current"
SCOPE_DELETED = "deleted"

# Symbol note keys, one per inline marker
QSL_SERVICE = "qsl_service"
THIRD_PARTY_TRAFFIC = "third_party_traffic"
ANTARCTICA_SPECIAL = "antarctica_special"

UNKNOWN_EDITION = "Unknown Edition"


def footnote_key(scope: str, number: int | str) -> str:
    """Scoped footnote key, e.g. ``current_note_5``."""
    return f"{scope}_note_{int(number)}"


# =============================================================================
# ENTITY MODELS
# =============================================================================

@dataclass(frozen=True)
class RowMatch:
    """Raw fields captured by one parsing strategy, before normalization."""
    prefix: str               # Unstripped prefix, markers and (n) groups intact
    entity_name: str
    continent: str            # "EU" or "AS,EU"
    zone_itu: str             # Number or zone-legend letter, as printed
    zone_cq: str
    entity_code: str
    strategy: str = ""        # Name of the strategy that matched


@dataclass
class Entity:
    """One DXCC entity row."""
    prefix: str               # Canonical prefix, markers stripped
    entity_name: str
    continent: str
    zone_itu: str
    zone_cq: str
    entity_code: int
    notes: list[str] = field(default_factory=list)  # Ordered note keys
    is_current: bool = True

    @property
    def continents(self) -> list[str]:
        """Individual continent codes."""
        return self.continent.split(",")

    def to_dict(self) -> dict:
        """Serialize using the published field names."""
        return {
            "prefix": self.prefix,
            "entityName": self.entity_name,
            "continent": self.continent,
            "zoneITU": self.zone_itu,
            "zoneCQ": self.zone_cq,
            "entityCode": self.entity_code,
            "notes": list(self.notes),
            "isCurrent": self.is_current,
        }


# =============================================================================
# LINE CLASSIFICATION MODELS
# =============================================================================

class LineKind(enum.Enum):
    """Classification tag for one source line."""

    BLANK = "blank"
    TABLE_SEPARATOR = "table-separator"
    DELETED_HEADER = "section-header:deleted"
    NOTES_HEADER = "section-header:notes"
    NOISE = "noise"
    FOOTNOTE_DEFINITION = "footnote-definition"
    FOOTNOTE_CONTINUATION = "footnote-continuation"
    ENTITY_DATA = "entity-data"


@dataclass(frozen=True)
class ClassifiedLine:
    """A trimmed source line with its classification tag."""
    index: int                # 0-indexed position in the document
    text: str
    kind: LineKind


# =============================================================================
# RESULT MODELS
# =============================================================================

@dataclass
class UnmatchedLine:
    """An entity-data candidate that no parsing strategy accepted."""
    line_num: int             # 1-indexed
    text: str


@dataclass
class ExtractionReport:
    """Soft anomalies collected during one extraction run."""
    unmatched_lines: list[UnmatchedLine] = field(default_factory=list)
    duplicate_symbol_notes: list[str] = field(default_factory=list)
    duplicate_footnotes: list[str] = field(default_factory=list)
    duplicate_entity_codes: list[int] = field(default_factory=list)
    missing_note_sections: list[str] = field(default_factory=list)   # scopes
    unresolved_notes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_anomalies(self) -> bool:
        return any((
            self.unmatched_lines,
            self.duplicate_symbol_notes,
            self.duplicate_footnotes,
            self.duplicate_entity_codes,
            self.missing_note_sections,
            self.unresolved_notes,
            self.warnings,
        ))

    def summary(self) -> dict:
        """Aggregate counts for reporting after the run."""
        return {
            "unmatchedLines": len(self.unmatched_lines),
            "duplicateSymbolNotes": sorted(set(self.duplicate_symbol_notes)),
            "duplicateFootnotes": sorted(set(self.duplicate_footnotes)),
            "duplicateEntityCodes": sorted(set(self.duplicate_entity_codes)),
            "missingNoteSections": list(self.missing_note_sections),
            "unresolvedNotes": sorted(set(self.unresolved_notes)),
            "warnings": list(self.warnings),
        }


@dataclass
class NotesStatistics:
    current_notes_count: int = 0
    deleted_notes_count: int = 0
    zone_notes_count: int = 0


@dataclass
class Statistics:
    """Counts derived from the filtered entity list."""
    total_parsed: int
    current_entities: int
    deleted_entities: int
    continents: dict[str, int]          # Current entities only
    notes_statistics: NotesStatistics

    def to_dict(self) -> dict:
        return {
            "totalParsed": self.total_parsed,
            "currentEntities": self.current_entities,
            "deletedEntities": self.deleted_entities,
            "continents": dict(self.continents),
            "notesStatistics": {
                "currentNotesCount": self.notes_statistics.current_notes_count,
                "deletedNotesCount": self.notes_statistics.deleted_notes_count,
                "zoneNotesCount": self.notes_statistics.zone_notes_count,
            },
        }


@dataclass
class DocumentMetadata:
    """Header block of the Document Result."""
    title: str
    edition: str
    description: str
    filter_type: str
    notes: dict[str, str]
    continents: dict[str, str]
    zone_notes: dict[str, str]
    generated_at: str                   # ISO-8601, UTC
    source_file: str
    statistics: Statistics
    honor_roll_threshold: int = 331
    version: str = "1.1.0"
    author: str = "BG6LH"


@dataclass
class DocumentResult:
    """Complete, filtered output of one extraction run."""
    metadata: DocumentMetadata
    entities: list[Entity]

    @property
    def total_entities(self) -> int:
        return len(self.entities)

    def to_dict(self) -> dict:
        """JSON-ready mapping with ``metadata`` and ``entities`` keys."""
        m = self.metadata
        return {
            "metadata": {
                "title": m.title,
                "edition": m.edition,
                "totalEntities": self.total_entities,
                "honorRollThreshold": m.honor_roll_threshold,
                "description": m.description,
                "filterType": m.filter_type,
                "notes": dict(m.notes),
                "continents": dict(m.continents),
                "zoneNotes": dict(m.zone_notes),
                "generatedAt": m.generated_at,
                "sourceFile": m.source_file,
                "version": m.version,
                "author": m.author,
                "statistics": m.statistics.to_dict(),
            },
            "entities": [e.to_dict() for e in self.entities],
        }


@dataclass
class AssemblyOutcome:
    """Result of one Assembler run plus its anomaly report."""
    result: DocumentResult
    report: ExtractionReport
