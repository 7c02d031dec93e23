"""Configuration management."""
from dataclasses import dataclass, field
from pathlib import Path
import json
import os

from .models import FILTER_ALL, FILTER_MODES


@dataclass
class Config:
    """Application configuration."""
    output_dir: Path
    default_filter: str
    # Document Result metadata
    title: str
    honor_roll_threshold: int
    format_version: str
    author: str
    # Zone legend: letter -> range overrides merged over the fixed table
    zone_notes_overrides: dict[str, str] = field(default_factory=dict)
    # Try to read zone rows from the document before falling back
    extract_zone_legend: bool = False
    # Fuzzy matching (entity lookup, missing-file suggestions)
    fuzzy_score_cutoff: float = 70.0
    max_file_suggestions: int = 5

    @classmethod
    def load(cls, path: Path | str | None = None) -> "Config":
        """Load config from file and/or environment."""
        if path is not None:
            config_path = Path(path).expanduser()
        else:
            config_path = Path("~/.config/dxcc-parser/config.json").expanduser()

        data = {}
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)

        return cls(
            output_dir=Path(
                data.get("output_dir") or os.environ.get("DXCC_OUTPUT_DIR") or "."
            ).expanduser(),
            default_filter=data.get("default_filter") or os.environ.get("DXCC_FILTER") or FILTER_ALL,
            title=data.get("title", "ARRL DXCC List"),
            honor_roll_threshold=data.get("honor_roll_threshold", 331),
            format_version=data.get("format_version", "1.1.0"),
            author=data.get("author", "BG6LH"),
            zone_notes_overrides=data.get("zone_notes_overrides") or {},
            extract_zone_legend=data.get("extract_zone_legend", False),
            fuzzy_score_cutoff=data.get("fuzzy_score_cutoff", 70.0),
            max_file_suggestions=data.get("max_file_suggestions", 5),
        )

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if valid."""
        errors = []
        if self.default_filter not in FILTER_MODES:
            errors.append(
                f"Invalid default_filter: {self.default_filter}. "
                f"Must be one of {', '.join(FILTER_MODES)}"
            )
        if self.output_dir.exists() and not self.output_dir.is_dir():
            errors.append(f"output_dir is not a directory: {self.output_dir}")
        if not isinstance(self.honor_roll_threshold, int) or self.honor_roll_threshold < 0:
            errors.append(f"honor_roll_threshold must be a non-negative integer, got {self.honor_roll_threshold!r}")
        for letter, ranges in self.zone_notes_overrides.items():
            if len(letter) != 1 or not letter.isalpha():
                errors.append(f"Zone legend key must be a single letter, got {letter!r}")
            if not isinstance(ranges, str) or not ranges.strip():
                errors.append(f"Zone legend value for {letter!r} must be a non-empty string")
        if not 0 <= self.fuzzy_score_cutoff <= 100:
            errors.append(f"fuzzy_score_cutoff must be within 0-100, got {self.fuzzy_score_cutoff}")
        return errors
