"""Tests for Document Result checks and render-time resolution."""
import json
import pytest
from dxcc_parser.checker import (
    check_consistency,
    check_document,
    load_document,
    render_entity,
    resolve_notes,
    resolve_zone,
)


@pytest.fixture
def result_dict(outcome_all) -> dict:
    return outcome_all.result.to_dict()


class TestCheckDocument:
    """Structural errors versus missing-field warnings."""

    def test_generated_result_is_clean(self, result_dict):
        result = check_document(result_dict)
        assert result.ok
        assert result.warnings == []

    @pytest.mark.parametrize("data", [None, [], "text"])
    def test_not_a_mapping(self, data):
        assert check_document(data).errors == ["Invalid data structure"]

    def test_missing_metadata(self):
        result = check_document({"entities": []})
        assert result.errors == ["Missing metadata in DXCC data"]

    def test_entities_not_a_list(self):
        result = check_document({"metadata": {"title": "x"}, "entities": {}})
        assert result.errors == ["Missing or invalid entities array in DXCC data"]

    def test_missing_metadata_fields_warn(self, result_dict):
        del result_dict["metadata"]["generatedAt"]
        result = check_document(result_dict)
        assert result.ok
        assert result.warnings == ["Missing metadata fields: generatedAt"]

    def test_only_first_entity_sampled(self, result_dict):
        del result_dict["entities"][1]["zoneCQ"]
        assert check_document(result_dict).warnings == []
        del result_dict["entities"][0]["zoneCQ"]
        assert check_document(result_dict).warnings == ["Sample entity missing fields: zoneCQ"]

    @pytest.mark.parametrize("metadata", [5, [1], "title", True])
    def test_metadata_not_an_object(self, metadata):
        result = check_document({"metadata": metadata, "entities": []})
        assert result.errors == ["Invalid metadata object"]

    def test_to_dict(self):
        assert check_document({}).to_dict()["ok"] is False


class TestCheckConsistency:

    def test_generated_result_consistent(self, result_dict):
        assert check_consistency(result_dict) == []

    def test_duplicate_and_invalid_codes(self, result_dict):
        result_dict["entities"][1]["entityCode"] = result_dict["entities"][0]["entityCode"]
        result_dict["entities"][2]["entityCode"] = 0
        problems = check_consistency(result_dict)
        assert any(p.startswith("Duplicate entityCode") for p in problems)
        assert any(p.startswith("Invalid entityCode 0") for p in problems)

    @pytest.mark.parametrize("continent", ["EU,XX", "", None, 5, ["EU"]])
    def test_bad_continent(self, result_dict, continent):
        result_dict["entities"][0]["continent"] = continent
        assert any("Invalid continent" in p for p in check_consistency(result_dict))

    def test_continents_checked_against_result_legend(self, result_dict):
        result_dict["metadata"]["continents"] = {"EU": "Europe"}
        problems = check_consistency(result_dict)
        assert any("Invalid continent 'AS'" in p for p in problems)
        assert not any("'EU'" in p for p in problems)

    @pytest.mark.parametrize("malformed", [
        {"metadata": 5, "entities": []},
        {"metadata": [1], "entities": []},
        {"metadata": {"statistics": []}, "entities": []},
        {"metadata": {"statistics": "none", "continents": []}, "entities": None},
        {"metadata": {}, "entities": [{"entityCode": 1, "continent": 5}]},
    ])
    def test_malformed_shapes_reported_not_raised(self, malformed):
        assert isinstance(check_consistency(malformed), list)

    def test_statistics_mismatch(self, result_dict):
        result_dict["entities"].pop()
        assert any(p.startswith("Statistics mismatch") for p in check_consistency(result_dict))

    def test_filter_exclusivity(self, outcome_current):
        data = outcome_current.result.to_dict()
        data["entities"][0]["isCurrent"] = False
        assert "Deleted entities present in a current-only result" in check_consistency(data)


class TestResolution:
    """Zone letters and note keys resolved for display."""

    ZONES = {"A": "33, 42, 43, 44", "C": "12, 13"}

    @pytest.mark.parametrize("value,expected", [
        ("(A)", "33, 42, 43, 44"),
        ("A", "33, 42, 43, 44"),
        ("27", "27"),
        ("(Z)", "(Z)"),
        (None, ""),
        ("", ""),
        (14, "14"),
    ])
    def test_resolve_zone(self, value, expected):
        assert resolve_zone(value, self.ZONES) == expected

    def test_resolve_notes(self):
        metadata = {"notes": {"qsl_service": "QSL text"}}
        entity = {"notes": ["qsl_service", "current_note_9"]}
        assert resolve_notes(entity, metadata) == ["QSL text", "current_note_9"]

    def test_render_entity(self, result_dict):
        russia = next(e for e in result_dict["entities"] if e["entityCode"] == 15)
        rendered = render_entity(russia, result_dict["metadata"])
        assert rendered["zoneITU"] == "33, 42, 43, 44"
        assert rendered["zoneCQ"] == "17"
        assert rendered["continentNames"] == ["Asia"]
        assert rendered["status"] == "Current"

    def test_render_deleted_entity_notes(self, result_dict):
        reef = next(e for e in result_dict["entities"] if e["entityCode"] == 23)
        rendered = render_entity(reef, result_dict["metadata"])
        assert rendered["status"] == "Deleted"
        assert rendered["notes"] == ["Deleted November 1998."]


class TestLoadDocument:

    def test_round_trip(self, tmp_path, result_dict):
        path = tmp_path / "out.json"
        path.write_text(json.dumps(result_dict), encoding="utf-8")
        assert load_document(path)["metadata"]["edition"] == "February 2022 Edition"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_document(path)
