"""Tests for JSON extraction from model responses."""

from eval_agent.utils.json_extraction import extract_json_array, extract_json_object


class TestExtractJsonArray:
    def test_raw_and_fenced(self) -> None:
        assert extract_json_array('[{"a": 1}]') == [{"a": 1}]
        assert extract_json_array('```json\n[{"a": 1}]\n```') == [{"a": 1}]

    def test_surrounding_prose(self) -> None:
        text = 'Here are the claims:\n[{"claim": "x"}]\nLet me know.'
        assert extract_json_array(text) == [{"claim": "x"}]

    def test_wrapped_object(self) -> None:
        assert extract_json_array('{"count": 1, "claims": [{"claim": "x"}]}') == [{"claim": "x"}]
        assert extract_json_array('{"claim": "x"}') == [{"claim": "x"}]

    def test_nothing_parseable(self) -> None:
        assert extract_json_array("") is None
        assert extract_json_array("no claims found") is None
        assert extract_json_array("[not json") is None


class TestExtractJsonObject:
    def test_object_with_prose(self) -> None:
        text = 'Verdict:\n```json\n{"verdict": "supported", "confidence": 0.9}\n```'
        assert extract_json_object(text) == {"verdict": "supported", "confidence": 0.9}

    def test_non_object(self) -> None:
        assert extract_json_object("[1, 2]") is None
        assert extract_json_object("{broken") is None
        assert extract_json_object(None) is None
