"""
Shared pytest fixtures for dxcc-parser tests.

All fixtures that need to be shared across test modules should be defined here.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from dxcc_parser.assembler import parse_document
from dxcc_parser.config import Config


# =============================================================================
# Path fixtures
# =============================================================================

@pytest.fixture
def sample_path() -> Path:
    """Path to the sample DXCC list shipped with the tests."""
    path = Path(__file__).parent / "fixtures" / "sample_dxcc.txt"
    assert path.exists(), f"Sample DXCC list not found: {path}"
    return path


@pytest.fixture
def sample_text(sample_path: Path) -> str:
    return sample_path.read_text(encoding="utf-8")


@pytest.fixture
def sample_lines(sample_text: str) -> list[str]:
    return sample_text.splitlines()


@pytest.fixture
def sample_copy(tmp_path: Path, sample_text: str) -> Path:
    """Writable copy of the sample list, named like the ARRL download."""
    path = tmp_path / "2022_Current_Deleted.txt"
    path.write_text(sample_text, encoding="utf-8")
    return path


# =============================================================================
# Parse fixtures
# =============================================================================

@pytest.fixture
def outcome_all(sample_lines: list[str]):
    return parse_document(sample_lines, "all", source_file="sample_dxcc.txt")


@pytest.fixture
def outcome_current(sample_lines: list[str]):
    return parse_document(sample_lines, "current")


@pytest.fixture
def outcome_deleted(sample_lines: list[str]):
    return parse_document(sample_lines, "deleted")


@pytest.fixture
def by_code(outcome_all) -> dict:
    """Entities of the unfiltered run keyed by entity code."""
    return {e.entity_code: e for e in outcome_all.result.entities}


# =============================================================================
# Config fixtures
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove DXCC_* environment variables so Config defaults apply."""
    for key in list(os.environ):
        if key.startswith("DXCC_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def default_config(tmp_path: Path, clean_env) -> Config:
    """Config loaded from a non-existent file, output going to tmp_path."""
    config = Config.load(tmp_path / "missing.json")
    config.output_dir = tmp_path
    return config
