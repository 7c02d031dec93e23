"""Tests for the MCP server helpers and tool registration."""
import os
import pytest
from fastmcp.exceptions import ToolError
from dxcc_parser import server


@pytest.fixture(autouse=True)
def server_state(monkeypatch, default_config):
    """Fresh cache and a config that ignores the user's config file."""
    monkeypatch.setattr(server, "_config", default_config)
    monkeypatch.setattr(server, "_cache", {})


class TestLoadOutcome:
    """Parsing with the per-file cache."""

    def test_parses_file(self, sample_copy):
        outcome = server._load_outcome(str(sample_copy))
        assert outcome.result.total_entities == 16

    def test_cached_while_unchanged(self, sample_copy):
        first = server._load_outcome(str(sample_copy), "current")
        assert server._load_outcome(str(sample_copy), "current") is first
        assert server._load_outcome(str(sample_copy), "deleted") is not first

    def test_reparsed_after_modification(self, sample_copy):
        first = server._load_outcome(str(sample_copy))
        stat = sample_copy.stat()
        os.utime(sample_copy, (stat.st_atime, stat.st_mtime + 10))
        assert server._load_outcome(str(sample_copy)) is not first

    def test_stale_entry_dropped_when_reparse_fails(self, sample_copy):
        server._load_outcome(str(sample_copy))
        assert len(server._cache) == 1
        sample_copy.write_text("February 2022\n", encoding="utf-8")
        stat = sample_copy.stat()
        os.utime(sample_copy, (stat.st_atime, stat.st_mtime + 10))
        with pytest.raises(ToolError):
            server._load_outcome(str(sample_copy))
        assert server._cache == {}

    def test_cache_size_capped(self, sample_copy, monkeypatch):
        monkeypatch.setattr(server, "MAX_CACHED_OUTCOMES", 2)
        for mode in ("all", "current", "deleted"):
            server._load_outcome(str(sample_copy), mode)
        assert [mode for _path, mode in server._cache] == ["current", "deleted"]

    def test_cache_hit_refreshes_recency(self, sample_copy, monkeypatch):
        monkeypatch.setattr(server, "MAX_CACHED_OUTCOMES", 2)
        server._load_outcome(str(sample_copy), "all")
        server._load_outcome(str(sample_copy), "current")
        server._load_outcome(str(sample_copy), "all")
        server._load_outcome(str(sample_copy), "deleted")
        assert [mode for _path, mode in server._cache] == ["all", "deleted"]

    def test_invalid_filter_mode(self, sample_copy):
        with pytest.raises(ToolError, match="Invalid filter_mode"):
            server._load_outcome(str(sample_copy), "active")

    def test_missing_file_suggests(self, sample_copy):
        with pytest.raises(ToolError, match="Did you mean"):
            server._load_outcome(str(sample_copy.with_name("2022_Current_Deleted_x.txt")))

    def test_parse_error_becomes_tool_error(self, tmp_path):
        path = tmp_path / "dxcc.txt"
        path.write_text("February 2022\n", encoding="utf-8")
        with pytest.raises(ToolError, match="table"):
            server._load_outcome(str(path))


class TestMatchEntities:
    """Exact prefix/code lookups before fuzzy name matches."""

    @pytest.fixture
    def outcome(self, sample_copy):
        return server._load_outcome(str(sample_copy))

    def test_exact_prefix(self, outcome):
        matches = server._match_entities(outcome, "3a", limit=5, score_cutoff=70)
        assert matches[0]["entityCode"] == 260
        assert matches[0]["score"] == 100.0

    def test_prefix_list_member(self, outcome):
        matches = server._match_entities(outcome, "LU", limit=5, score_cutoff=70)
        assert matches[0]["entityName"] == "South Georgia Island"

    def test_entity_code(self, outcome):
        matches = server._match_entities(outcome, "260", limit=5, score_cutoff=70)
        assert matches[0]["entityName"] == "Monaco"

    def test_fuzzy_name(self, outcome):
        matches = server._match_entities(outcome, "Monako", limit=3, score_cutoff=70)
        assert matches[0]["entityCode"] == 260
        assert matches[0]["score"] < 100

    def test_deleted_entity_rendered(self, outcome):
        matches = server._match_entities(outcome, "Palestine", limit=1, score_cutoff=70)
        assert matches[0]["status"] == "Deleted"

    def test_zones_resolved(self, outcome):
        matches = server._match_entities(outcome, "UA9", limit=1, score_cutoff=70)
        assert matches[0]["zoneITU"] == "33, 42, 43, 44"

    def test_limit_respected(self, outcome):
        assert len(server._match_entities(outcome, "Island", limit=2, score_cutoff=0)) == 2

    def test_no_match(self, outcome):
        assert server._match_entities(outcome, "qqqqqqqq", limit=5, score_cutoff=70) == []


class TestToolRegistration:
    """FastMCP may wrap functions, so check the tool descriptions."""

    @staticmethod
    def _description(tool) -> str:
        return tool.description if hasattr(tool, "description") else tool.__doc__

    def test_parse_dxcc_list_description(self):
        desc = self._description(server.parse_dxcc_list)
        assert "filter_mode" in desc
        assert "anomalies" in desc

    def test_find_entity_description(self):
        desc = self._description(server.find_entity).lower()
        assert "prefix" in desc
        assert "fuzzy" in desc

    def test_check_dxcc_json_description(self):
        desc = self._description(server.check_dxcc_json).lower()
        assert "errors" in desc
        assert "warnings" in desc
