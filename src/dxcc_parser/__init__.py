"""ARRL DXCC list text-to-JSON extraction."""
from .models import (
    Entity,
    DocumentResult,
    DocumentMetadata,
    Statistics,
    ExtractionReport,
    AssemblyOutcome,
)
from .assembler import (
    DocumentAssembler,
    parse_document,
    DXCCParseError,
    MissingTableSeparatorError,
    NoEntitiesFoundError,
)
from .legends import LegendConfig, DEFAULT_LEGEND

__all__ = [
    "Entity",
    "DocumentResult",
    "DocumentMetadata",
    "Statistics",
    "ExtractionReport",
    "AssemblyOutcome",
    "DocumentAssembler",
    "parse_document",
    "DXCCParseError",
    "MissingTableSeparatorError",
    "NoEntitiesFoundError",
    "LegendConfig",
    "DEFAULT_LEGEND",
]
