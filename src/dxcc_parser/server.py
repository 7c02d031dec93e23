"""MCP server with DXCC list tools."""
import logging
import time
from pathlib import Path
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from rapidfuzz import fuzz, process
from .assembler import DXCCParseError
from .checker import check_consistency, check_document, load_document, render_entity
from .config import Config
from .document_io import SourceDocumentError, parse_file
from .models import AssemblyOutcome, FILTER_ALL, FILTER_MODES

logger = logging.getLogger(__name__)

mcp = FastMCP("dxcc-parser")

# Lazy initialization
_config = None
# (resolved path, filter mode) -> (mtime, outcome)
_cache: dict[tuple[str, str], tuple[float, AssemblyOutcome]] = {}
# Oldest entries are evicted beyond this size
MAX_CACHED_OUTCOMES = 16


def _get_config() -> Config:
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def _load_outcome(path: str, filter_mode: str = FILTER_ALL) -> AssemblyOutcome:
    """Parse ``path``, reusing the cached outcome while the file is unchanged."""
    if filter_mode not in FILTER_MODES:
        raise ToolError(f"Invalid filter_mode: {filter_mode}. Must be one of {', '.join(FILTER_MODES)}")

    resolved = Path(path).expanduser()
    key = (str(resolved.resolve()), filter_mode)
    mtime = resolved.stat().st_mtime if resolved.exists() else None

    cached = _cache.pop(key, None)
    if cached is not None and cached[0] == mtime:
        _cache[key] = cached
        return cached[1]

    try:
        outcome = parse_file(resolved, filter_mode, config=_get_config())
    except SourceDocumentError as e:
        hint = f" Did you mean: {', '.join(str(s) for s in e.suggestions)}?" if e.suggestions else ""
        raise ToolError(f"{e}{hint}") from e
    except DXCCParseError as e:
        raise ToolError(str(e)) from e

    _cache[key] = (mtime, outcome)
    while len(_cache) > MAX_CACHED_OUTCOMES:
        _cache.pop(next(iter(_cache)))
    return outcome


def _match_entities(outcome: AssemblyOutcome, query: str, limit: int, score_cutoff: float) -> list[dict]:
    """Exact prefix/code matches first, then fuzzy matches on entity name."""
    result = outcome.result
    metadata = result.to_dict()["metadata"]
    q = query.strip()
    q_upper = q.upper()

    exact = [
        e for e in result.entities
        if q_upper in e.prefix.split(",") or q_upper == e.prefix or q == str(e.entity_code)
    ]
    matches = [{**render_entity(e.to_dict(), metadata), "score": 100.0} for e in exact]

    if len(matches) < limit:
        names = [e.entity_name for e in result.entities]
        ranked = process.extract(q, names, scorer=fuzz.WRatio, limit=limit, score_cutoff=score_cutoff)
        seen = {e.entity_code for e in exact}
        for _name, score, idx in ranked:
            entity = result.entities[idx]
            if entity.entity_code in seen:
                continue
            seen.add(entity.entity_code)
            matches.append({**render_entity(entity.to_dict(), metadata), "score": round(score, 1)})

    return matches[:limit]


@mcp.tool()
def parse_dxcc_list(path: str, filter_mode: str = "all") -> dict:
    """
    Parse an ARRL DXCC Current/Deleted Entities text list.

    Args:
        path: Path to the DXCC list (.txt)
        filter_mode: "all", "current" or "deleted"

    Returns:
        Document Result with metadata and entities, plus an anomalies summary
        (unmatched lines, missing NOTES sections, unresolved note references)
    """
    start = time.perf_counter()
    outcome = _load_outcome(path, filter_mode)
    data = outcome.result.to_dict()
    data["anomalies"] = outcome.report.summary()
    logger.debug(f"parse_dxcc_list: {time.perf_counter() - start:.3f}s")
    return data


@mcp.tool()
def find_entity(path: str, query: str, limit: int = 5) -> list[dict]:
    """
    Look up DXCC entities by prefix, entity code or name.

    Exact prefix or code matches come first, followed by fuzzy name matches.
    Zone letters and note references are resolved to their text.

    Args:
        path: Path to the DXCC list (.txt)
        query: Prefix (e.g. "3A"), entity code (e.g. "260") or name
        limit: Maximum number of results (1-50)

    Returns:
        List of entities with resolved zones, notes and a match score
    """
    if not query.strip():
        raise ToolError("query must not be empty")
    outcome = _load_outcome(path, FILTER_ALL)
    return _match_entities(outcome, query, max(1, min(limit, 50)), _get_config().fuzzy_score_cutoff)


@mcp.tool()
def check_dxcc_json(path: str) -> dict:
    """
    Check a generated DXCC JSON file.

    Structural problems (missing metadata or entities array) are errors;
    missing optional fields are warnings. For structurally valid files the
    entity codes, continents and statistics are also checked for consistency.

    Args:
        path: Path to the JSON file

    Returns:
        Dict with ok, errors, warnings and inconsistencies
    """
    try:
        data = load_document(path)
    except (OSError, ValueError) as e:
        raise ToolError(str(e)) from e

    result = check_document(data)
    response = result.to_dict()
    response["inconsistencies"] = check_consistency(data) if result.ok else []
    return response


def main():
    mcp.run()


if __name__ == "__main__":
    main()
