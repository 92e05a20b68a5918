from datetime import datetime

import pytest

from thinkcode.parsing import calculate_confidence, parse_execution_result
from thinkcode.providers import TokenUsage


def test_plain_text_falls_back_to_raw_result():
    parsed = parse_execution_result("  not json at all \n", "Design API")

    assert parsed["result"] == "not json at all"
    assert parsed["stepName"] == "Design API"
    assert parsed["parseError"] is True
    assert datetime.fromisoformat(parsed["timestamp"]).tzinfo is not None
    assert "outputs" not in parsed


def test_object_with_outputs_is_returned_unchanged():
    assert parse_execution_result('{"outputs":{"x":1}}', "step") == {"outputs": {"x": 1}}


def test_missing_outputs_are_synthesized_from_raw_text():
    parsed = parse_execution_result('{"foo":"bar"}', "step")
    assert parsed == {"foo": "bar", "outputs": {"result": '{"foo":"bar"}'}}


def test_json_embedded_in_prose_is_extracted():
    text = 'Here you go:\n```json\n{"outputs": {"y": 10}, "confidence": 0.9}\n```\nThanks!'
    parsed = parse_execution_result(text, "step")
    assert parsed["outputs"] == {"y": 10}
    assert parsed["confidence"] == 0.9


def test_greedy_span_with_stray_braces_falls_back():
    text = '{"outputs": {"y": 1}} and then {some prose}'
    parsed = parse_execution_result(text, "step")
    assert parsed["parseError"] is True
    assert parsed["result"] == text


def test_unbalanced_json_falls_back():
    parsed = parse_execution_result('{"outputs": {"y": 1}', "step")
    assert parsed["parseError"] is True


@pytest.mark.parametrize(
    "completion_tokens, description, expected",
    [
        (None, None, 0.8),
        (600, None, 0.9),
        (50, None, 0.7),
        (300, None, 0.8),
        (600, "d" * 101, 0.95),
        (50, "d" * 101, 0.75),
        (300, "d" * 100, 0.8),
    ],
)
def test_confidence_thresholds(completion_tokens, description, expected):
    usage = (
        TokenUsage(completion_tokens=completion_tokens)
        if completion_tokens is not None
        else None
    )
    assert calculate_confidence(usage, description) == pytest.approx(expected)


@pytest.mark.parametrize("tokens", [0, 1, 99, 100, 500, 501, 10_000])
@pytest.mark.parametrize("description_length", [0, 100, 101, 5000])
def test_confidence_is_clamped(tokens, description_length):
    confidence = calculate_confidence(
        TokenUsage(completion_tokens=tokens), "x" * description_length
    )
    assert 0.1 <= confidence <= 1.0


def test_empty_outputs_are_kept():
    assert parse_execution_result('{"outputs":{}}', "step") == {"outputs": {}}


def test_null_outputs_are_synthesized():
    parsed = parse_execution_result('{"outputs": null}', "step")
    assert parsed["outputs"] == {"result": '{"outputs": null}'}
