"""Decode-or-fallback handling for semi-structured model replies.

The service is asked for JSON but does not always comply. A reply that does not
decode into the expected shape is returned as ``Raw`` so the caller can print it
verbatim; nothing in here raises on bad input.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator
from typing import cast

from deepseekcode.commands.models import (
    AnalysisResult,
    ExplanationResult,
    GenerationResult,
    Issue,
    Raw,
    RefactorResult,
    Severity,
    Structured,
    TaskKind,
)

VALID_SEVERITIES: set[Severity] = {"error", "warning", "info"}

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL | re.IGNORECASE)

LOGGER = logging.getLogger(__name__)

Interpretation = Structured[object] | Raw


def interpret(raw: str, kind: TaskKind, *, language: str = "") -> Interpretation:
    if kind == "generate":
        return Structured(GenerationResult(code=raw, language=language))

    decoder = DECODERS[kind]
    json_found = False
    for payload in iter_json_objects(raw):
        json_found = True
        decoded = decoder(payload)
        if decoded is not None:
            return Structured(decoded)

    LOGGER.info(
        "reply_decode_fallback",
        extra={"task": kind, "reply_chars": len(raw), "json_found": json_found},
    )
    return Raw(raw)


def extract_json_object(raw: str) -> dict[str, object] | None:
    """Return the first JSON object in the reply, or None."""
    return next(iter_json_objects(raw), None)


def iter_json_objects(raw: str) -> Iterator[dict[str, object]]:
    """Yield JSON objects from the whole text, each fenced block, then the outer braces."""
    candidates = [raw.strip()]
    candidates.extend(match.group(1).strip() for match in _FENCED_JSON.finditer(raw))
    start = raw.find("{")
    end = raw.rfind("}")
    if start != -1 and end > start:
        candidates.append(raw[start : end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            yield {str(key): value for key, value in parsed.items()}


def decode_analysis(payload: dict[str, object]) -> AnalysisResult | None:
    raw_issues = payload.get("issues")
    suggestions = _string_list(payload.get("suggestions"))
    summary = payload.get("summary")
    score = _as_int(payload.get("quality_score"))
    if not isinstance(raw_issues, list) or suggestions is None or not isinstance(summary, str):
        return None
    if score is None or not 0 <= score <= 100:
        return None

    issues: list[Issue] = []
    for item in raw_issues:
        issue = decode_issue(item)
        if issue is None:
            return None
        issues.append(issue)

    return AnalysisResult(
        issues=issues,
        suggestions=suggestions,
        summary=summary,
        quality_score=score,
    )


def decode_issue(item: object) -> Issue | None:
    if not isinstance(item, dict):
        return None
    line = _as_int(item.get("line"))
    issue_type = item.get("type")
    severity = item.get("severity")
    message = item.get("message")
    suggestion = item.get("suggestion")

    if line is None or line < 0:
        return None
    if not isinstance(issue_type, str) or not isinstance(message, str):
        return None
    if severity not in VALID_SEVERITIES:
        return None
    if suggestion is not None and not isinstance(suggestion, str):
        return None

    return Issue(
        line=line,
        type=issue_type,
        severity=cast(Severity, severity),
        message=message,
        suggestion=suggestion,
    )


def decode_explanation(payload: dict[str, object]) -> ExplanationResult | None:
    summary = payload.get("summary")
    details = _string_list(payload.get("details"))
    complexity = payload.get("complexity")
    key_points = _string_list(payload.get("key_points"))
    if not isinstance(summary, str) or not isinstance(complexity, str):
        return None
    if details is None or key_points is None:
        return None
    return ExplanationResult(
        summary=summary,
        details=details,
        complexity=complexity,
        key_points=key_points,
    )


def decode_refactor(payload: dict[str, object]) -> RefactorResult | None:
    improvements = _string_list(payload.get("improvements"))
    explanation = payload.get("explanation")
    refactored = payload.get("refactored")
    if improvements is None or not isinstance(explanation, str):
        return None
    if not isinstance(refactored, str):
        return None
    return RefactorResult(
        improvements=improvements,
        explanation=explanation,
        refactored_code=refactored,
    )


DECODERS: dict[str, Callable[[dict[str, object]], object | None]] = {
    "analyze": decode_analysis,
    "explain": decode_explanation,
    "refactor": decode_refactor,
}


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    if not all(isinstance(item, str) for item in value):
        return None
    return list(value)


def _as_int(value: object) -> int | None:
    """JSON numbers may arrive as 12.0; whole floats count as integers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None
