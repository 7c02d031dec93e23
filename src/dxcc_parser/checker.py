"""
Consumer-side checks and render-time resolution for Document Results.

The display side validates structure before rendering and reports missing
optional fields as warnings rather than errors. Zone letters and note keys
are stored raw in the parsed records and resolved here, so one parsed
result can be redisplayed under different legend tables.
"""
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping
from .legends import CONTINENT_CODES

logger = logging.getLogger(__name__)

REQUIRED_METADATA_FIELDS = ("title", "edition", "generatedAt", "totalEntities")
REQUIRED_ENTITY_FIELDS = ("prefix", "entityName", "continent", "zoneITU", "zoneCQ", "entityCode")

# "(A)" as printed in the list, or a bare letter
_ZONE_LETTER = re.compile(r"\(([A-Z])\)|^([A-Z])$")


@dataclass
class CheckResult:
    """Outcome of checking one Document Result."""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"ok": self.ok, "errors": list(self.errors), "warnings": list(self.warnings)}


def load_document(path: Path | str) -> Any:
    """Load a Document Result JSON file. Raises ValueError on invalid JSON."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def check_document(data: Any) -> CheckResult:
    """
    Validate the structure of a Document Result.

    Errors: not a mapping, missing ``metadata``, missing or non-list
    ``entities``. Warnings: missing metadata fields, and missing required
    fields on the first entity (only a sample is inspected).
    """
    result = CheckResult()

    if not isinstance(data, Mapping):
        result.errors.append("Invalid data structure")
        return result
    metadata = data.get("metadata")
    if not metadata:
        result.errors.append("Missing metadata in DXCC data")
    elif not isinstance(metadata, Mapping):
        result.errors.append("Invalid metadata object")
    entities = data.get("entities")
    if not isinstance(entities, list):
        result.errors.append("Missing or invalid entities array in DXCC data")
    if result.errors:
        return result

    missing_meta = [f for f in REQUIRED_METADATA_FIELDS if f not in metadata]
    if missing_meta:
        result.warnings.append(f"Missing metadata fields: {', '.join(missing_meta)}")

    if entities:
        sample = entities[0]
        if isinstance(sample, Mapping):
            missing = [f for f in REQUIRED_ENTITY_FIELDS if f not in sample]
            if missing:
                result.warnings.append(f"Sample entity missing fields: {', '.join(missing)}")
        else:
            result.warnings.append("Sample entity is not an object")

    for w in result.warnings:
        logger.warning(w)
    return result


def check_consistency(data: Mapping) -> list[str]:
    """
    Return invariant violations for a structurally valid Document Result.

    Checks unique positive entity codes, the continent grammar, the
    current/deleted counts against the entity list, and that filtered
    results contain only entities of the selected kind.
    """
    problems = []
    metadata = data.get("metadata")
    if not isinstance(metadata, Mapping):
        metadata = {}
    entities = [e for e in data.get("entities") or [] if isinstance(e, Mapping)]
    # Validate against the legend the result was written with
    legend = metadata.get("continents")
    known = legend if isinstance(legend, Mapping) and legend else CONTINENT_CODES

    seen: set = set()
    for e in entities:
        code = e.get("entityCode")
        if not isinstance(code, int) or isinstance(code, bool) or code <= 0:
            problems.append(f"Invalid entityCode {code!r} for {e.get('entityName', '?')}")
        elif code in seen:
            problems.append(f"Duplicate entityCode {code}")
        seen.add(code)

        continent = e.get("continent")
        parts = continent.split(",") if isinstance(continent, str) and continent else []
        if not parts or any(p not in known for p in parts):
            problems.append(f"Invalid continent {continent!r} for entity {code}")

    stats = metadata.get("statistics")
    if not isinstance(stats, Mapping):
        stats = {}
    current = stats.get("currentEntities")
    deleted = stats.get("deletedEntities")
    if isinstance(current, int) and isinstance(deleted, int) and current + deleted != len(entities):
        problems.append(
            f"Statistics mismatch: {current} current + {deleted} deleted != {len(entities)} entities"
        )

    filter_type = metadata.get("filterType")
    if filter_type == "current" and any(e.get("isCurrent") is False for e in entities):
        problems.append("Deleted entities present in a current-only result")
    if filter_type == "deleted" and any(e.get("isCurrent") is True for e in entities):
        problems.append("Current entities present in a deleted-only result")

    return problems


def resolve_zone(value: Any, zone_notes: Mapping[str, str]) -> str:
    """
    Replace zone-legend letters with their numeric ranges.

    ``"(A)"`` or ``"A"`` becomes ``"33, 42, 43, 44"``; numbers and unknown
    letters are returned unchanged.
    """
    if value is None or value == "":
        return ""
    text = str(value)

    def _sub(m: re.Match) -> str:
        letter = m.group(1) or m.group(2)
        return zone_notes.get(letter, m.group(0))

    return _ZONE_LETTER.sub(_sub, text)


def resolve_notes(entity: Mapping, metadata: Mapping) -> list[str]:
    """Note texts for an entity's note keys; unknown keys are returned verbatim."""
    notes = metadata.get("notes") or {}
    return [notes.get(key, key) for key in entity.get("notes") or []]


def render_entity(entity: Mapping, metadata: Mapping) -> dict:
    """Display-ready copy of an entity with zones and notes resolved."""
    zone_notes = metadata.get("zoneNotes") or {}
    continents = metadata.get("continents") or {}
    continent = entity.get("continent") or ""
    return {
        "prefix": entity.get("prefix", ""),
        "entityName": entity.get("entityName", ""),
        "continent": continent,
        "continentNames": [continents.get(c, c) for c in continent.split(",") if c],
        "zoneITU": resolve_zone(entity.get("zoneITU"), zone_notes),
        "zoneCQ": resolve_zone(entity.get("zoneCQ"), zone_notes),
        "entityCode": entity.get("entityCode"),
        "status": "Current" if entity.get("isCurrent", True) else "Deleted",
        "notes": resolve_notes(entity, metadata),
    }
