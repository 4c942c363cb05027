import json

import pytest

from deepseekcode.commands.models import (
    AnalysisResult,
    ExplanationResult,
    GenerationResult,
    Issue,
    Raw,
    RefactorResult,
    Structured,
)
from deepseekcode.llm.interpreter import extract_json_object, interpret

ANALYSIS = {
    "issues": [
        {
            "line": 3,
            "type": "bug",
            "severity": "error",
            "message": "Division by zero",
            "suggestion": "Guard the denominator",
        },
        {"line": 0, "type": "style", "severity": "info", "message": "Missing docstring"},
    ],
    "suggestions": ["Add tests", "Use type hints"],
    "summary": "Mostly fine.",
    "quality_score": 72,
}


def test_analysis_reply_decodes_every_field() -> None:
    result = interpret(json.dumps(ANALYSIS), "analyze")

    assert result == Structured(
        AnalysisResult(
            issues=[
                Issue(
                    line=3,
                    type="bug",
                    severity="error",
                    message="Division by zero",
                    suggestion="Guard the denominator",
                ),
                Issue(line=0, type="style", severity="info", message="Missing docstring"),
            ],
            suggestions=["Add tests", "Use type hints"],
            summary="Mostly fine.",
            quality_score=72,
        )
    )


def test_explanation_reply_decodes_every_field() -> None:
    payload = {
        "summary": "Sorts numbers.",
        "details": ["Loops twice", "Swaps neighbours"],
        "complexity": "O(n^2)",
        "key_points": ["Stable"],
    }

    result = interpret(json.dumps(payload), "explain")

    assert result == Structured(
        ExplanationResult(
            summary="Sorts numbers.",
            details=["Loops twice", "Swaps neighbours"],
            complexity="O(n^2)",
            key_points=["Stable"],
        )
    )


def test_refactor_reply_decodes_and_ignores_original() -> None:
    payload = {
        "original": "x=1",
        "refactored": "x = 1\n",
        "improvements": ["Spacing"],
        "explanation": "PEP 8.",
    }

    result = interpret(json.dumps(payload), "refactor")

    assert result == Structured(
        RefactorResult(improvements=["Spacing"], explanation="PEP 8.", refactored_code="x = 1\n")
    )


def test_json_inside_markdown_fence_is_found() -> None:
    raw = "Here is the analysis:\n```json\n" + json.dumps(ANALYSIS) + "\n```\nHope it helps."

    result = interpret(raw, "analyze")

    assert isinstance(result, Structured)
    assert isinstance(result.value, AnalysisResult)
    assert result.value.quality_score == 72


def test_json_surrounded_by_prose_is_found() -> None:
    raw = "Sure! " + json.dumps({"a": {"b": 1}}) + " Done."

    assert extract_json_object(raw) == {"a": {"b": 1}}


@pytest.mark.parametrize(
    "raw",
    [
        "This code looks fine to me.",
        "",
        '{"issues": [], "suggestions": [], "summary": "ok"',
        "[1, 2, 3]",
        json.dumps({**ANALYSIS, "quality_score": 101}),
        json.dumps({**ANALYSIS, "quality_score": True}),
        json.dumps({**ANALYSIS, "issues": [{**ANALYSIS["issues"][0], "severity": "fatal"}]}),
        json.dumps({**ANALYSIS, "issues": [{**ANALYSIS["issues"][0], "line": -1}]}),
        json.dumps({**ANALYSIS, "suggestions": "one big string"}),
    ],
)
def test_malformed_analysis_falls_back_to_raw_text(raw: str) -> None:
    result = interpret(raw, "analyze")

    assert result == Raw(raw)


def test_fallback_preserves_text_byte_for_byte() -> None:
    raw = "  leading spaces\n\ttabs, unicode é ✓ and trailing newline\n"

    result = interpret(raw, "explain")

    assert isinstance(result, Raw)
    assert result.text == raw


def test_refactor_without_code_falls_back() -> None:
    raw = json.dumps({"improvements": ["x"], "explanation": "y"})

    assert interpret(raw, "refactor") == Raw(raw)


def test_generation_is_always_plain_code() -> None:
    raw = "def sort_list(items):\n    return sorted(items)\n"

    result = interpret(raw, "generate", language="python")

    assert result == Structured(GenerationResult(code=raw, language="python"))


def test_whole_number_floats_count_as_integers() -> None:
    payload = {
        **ANALYSIS,
        "quality_score": 85.0,
        "issues": [{**ANALYSIS["issues"][0], "line": 12.0}],
    }

    result = interpret(json.dumps(payload), "analyze")

    assert isinstance(result, Structured)
    assert isinstance(result.value, AnalysisResult)
    assert result.value.quality_score == 85
    assert isinstance(result.value.quality_score, int)
    assert result.value.issues[0].line == 12


def test_fractional_score_falls_back() -> None:
    raw = json.dumps({**ANALYSIS, "quality_score": 85.5})

    assert interpret(raw, "analyze") == Raw(raw)


def test_later_block_is_used_when_earlier_object_has_wrong_shape() -> None:
    raw = (
        "The format looks like:\n```json\n"
        + json.dumps({"example": True})
        + "\n```\nAnd the result:\n```json\n"
        + json.dumps(ANALYSIS)
        + "\n```\n"
    )

    result = interpret(raw, "analyze")

    assert isinstance(result, Structured)
    assert isinstance(result.value, AnalysisResult)
    assert result.value.quality_score == 72
    assert extract_json_object(raw) == {"example": True}
