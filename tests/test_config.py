"""Tests for configuration loading and validation."""
import json
from pathlib import Path
from dxcc_parser.config import Config


class TestConfigLoad:
    """Config file, environment and defaults."""

    def test_defaults_when_file_missing(self, tmp_path, clean_env):
        config = Config.load(tmp_path / "missing.json")
        assert config.output_dir == Path(".")
        assert config.default_filter == "all"
        assert config.title == "ARRL DXCC List"
        assert config.honor_roll_threshold == 331
        assert config.format_version == "1.1.0"
        assert config.author == "BG6LH"
        assert config.zone_notes_overrides == {}
        assert config.extract_zone_legend is False
        assert config.fuzzy_score_cutoff == 70.0
        assert config.max_file_suggestions == 5

    def test_file_values(self, tmp_path, clean_env):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "output_dir": str(tmp_path / "out"),
            "default_filter": "current",
            "honor_roll_threshold": 330,
            "zone_notes_overrides": {"J": "10"},
            "extract_zone_legend": True,
        }))
        config = Config.load(path)
        assert config.output_dir == tmp_path / "out"
        assert config.default_filter == "current"
        assert config.honor_roll_threshold == 330
        assert config.zone_notes_overrides == {"J": "10"}
        assert config.extract_zone_legend is True

    def test_environment_fallback(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("DXCC_OUTPUT_DIR", str(tmp_path))
        monkeypatch.setenv("DXCC_FILTER", "deleted")
        config = Config.load(tmp_path / "missing.json")
        assert config.output_dir == tmp_path
        assert config.default_filter == "deleted"

    def test_file_beats_environment(self, tmp_path, clean_env, monkeypatch):
        monkeypatch.setenv("DXCC_FILTER", "deleted")
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"default_filter": "current"}))
        assert Config.load(path).default_filter == "current"


class TestConfigValidate:

    def test_default_config_valid(self, default_config):
        assert default_config.validate() == []

    def test_bad_filter(self, default_config):
        default_config.default_filter = "active"
        errors = default_config.validate()
        assert len(errors) == 1
        assert "default_filter" in errors[0]

    def test_output_dir_is_file(self, default_config, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        default_config.output_dir = path
        assert any("not a directory" in e for e in default_config.validate())

    def test_negative_threshold(self, default_config):
        default_config.honor_roll_threshold = -1
        assert any("honor_roll_threshold" in e for e in default_config.validate())

    def test_bad_zone_overrides(self, default_config):
        default_config.zone_notes_overrides = {"AB": "1", "C": "  "}
        errors = default_config.validate()
        assert len(errors) == 2

    def test_cutoff_range(self, default_config):
        default_config.fuzzy_score_cutoff = 150
        assert any("fuzzy_score_cutoff" in e for e in default_config.validate())
