"""Reading DXCC source documents and persisting Document Results."""
from __future__ import annotations
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from rapidfuzz import fuzz, process
from .assembler import DXCCParseError, parse_document
from .config import Config
from .models import AssemblyOutcome, DocumentResult, FILTER_ALL, FILTER_CURRENT, FILTER_DELETED

logger = logging.getLogger(__name__)

# Words that identify likely DXCC list files when suggesting alternatives
SUGGESTION_KEYWORDS = ("current", "deleted", "dxcc")

OUTPUT_FILENAMES = {
    FILTER_CURRENT: "dxcc_current_{year}.json",
    FILTER_DELETED: "dxcc_deleted_{year}.json",
}
DEFAULT_OUTPUT_FILENAME = "dxcc_current_deleted_{year}.json"


class SourceDocumentError(DXCCParseError):
    """Raised when the source document cannot be found, read or decoded."""

    def __init__(self, message: str, suggestions: list[Path] | None = None):
        super().__init__(message)
        self.suggestions = suggestions or []


def suggest_similar_files(path: Path, limit: int = 5) -> list[Path]:
    """
    Find ``.txt`` files next to ``path`` that look like DXCC lists.

    Candidates must mention one of SUGGESTION_KEYWORDS in their name and are
    ranked by fuzzy similarity to the requested file name.
    """
    directory = path.parent
    try:
        candidates = [
            p.name for p in directory.iterdir()
            if p.is_file()
            and p.suffix.lower() == ".txt"
            and any(k in p.name.lower() for k in SUGGESTION_KEYWORDS)
        ]
    except OSError as e:
        logger.debug(f"Unable to list {directory}: {e}")
        return []

    if not candidates:
        return []

    ranked = process.extract(path.name, candidates, scorer=fuzz.WRatio, limit=limit)
    return [directory / name for name, _score, _idx in ranked]


def read_document(path: Path | str, suggestion_limit: int = 5) -> list[str]:
    """
    Read a DXCC list as UTF-8 text and return its lines.

    Raises:
        SourceDocumentError: File missing (with suggestions), unreadable or
            not valid UTF-8
    """
    path = Path(path)
    if not path.exists():
        suggestions = suggest_similar_files(path, limit=suggestion_limit)
        raise SourceDocumentError(f"Input file not found: {path}", suggestions=suggestions)
    if not path.is_file():
        raise SourceDocumentError(f"Input path is not a file: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SourceDocumentError(f"Input file is not valid UTF-8: {path} ({e})") from e
    except OSError as e:
        raise SourceDocumentError(f"Failed to read file: {path} ({e})") from e

    lines = text.splitlines()
    logger.info(f"File read complete, total {len(lines)} lines")
    return lines


def edition_year(edition: str) -> str:
    """Four-digit year from an edition string, or "unknown"."""
    m = re.search(r"(\d{4})", edition or "")
    return m.group(1) if m else "unknown"


def generate_output_filename(filter_mode: str, edition: str, output_dir: Path | str = ".") -> Path:
    """
    Build the default output path for a run.

    ``dxcc_current_2022.json``, ``dxcc_deleted_2022.json`` or
    ``dxcc_current_deleted_2022.json`` inside ``output_dir``.
    """
    year = edition_year(edition)
    if year == "unknown" or not 1900 <= int(year) <= datetime.now().year + 10:
        logger.warning(f"Year extracted from edition info may be incorrect: {year}")

    template = OUTPUT_FILENAMES.get(filter_mode, DEFAULT_OUTPUT_FILENAME)
    output_path = Path(output_dir) / template.format(year=year)
    if output_path.exists():
        logger.warning(f"Output file already exists and will be overwritten: {output_path}")
    return output_path


def write_result(result: DocumentResult, path: Path | str) -> Path:
    """Write the Document Result as indented UTF-8 JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.info(f"Wrote {result.total_entities} entities to {path}")
    return path


def parse_file(
    path: Path | str,
    filter_mode: str = FILTER_ALL,
    config: Config | None = None,
) -> AssemblyOutcome:
    """Read and parse a DXCC list file in one step."""
    path = Path(path)
    limit = config.max_file_suggestions if config is not None else 5
    lines = read_document(path, suggestion_limit=limit)
    return parse_document(lines, filter_mode, source_file=path.name, config=config)
