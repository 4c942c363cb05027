"""Plain-text renderers for structured replies."""

from __future__ import annotations

from .models import AnalysisResult, ExplanationResult, GenerationResult, Issue, RefactorResult

SEVERITY_LABELS = {"error": "[error]", "warning": "[warning]", "info": "[info]"}


def render_analysis(result: AnalysisResult) -> str:
    lines = ["=== Code Analysis Results ===", f"Quality Score: {result.quality_score}/100"]

    if result.issues:
        lines.append("")
        lines.append("Issues Found:")
        for idx, issue in enumerate(result.issues, start=1):
            lines.extend(_render_issue(issue, idx))
    else:
        lines.append("No issues found!")

    if result.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(_numbered(result.suggestions))

    lines.append("")
    lines.append("Summary:")
    lines.append(result.summary)
    return "\n".join(lines)


def _render_issue(issue: Issue, idx: int) -> list[str]:
    lines = [
        "",
        f"{SEVERITY_LABELS[issue.severity]} Issue #{idx} (Line {issue.line})",
        f"   Type: {issue.type}",
        f"   Message: {issue.message}",
    ]
    if issue.suggestion:
        lines.append(f"   Suggestion: {issue.suggestion}")
    return lines


def render_explanation(result: ExplanationResult) -> str:
    lines = [
        "=== Code Explanation ===",
        "Summary:",
        result.summary,
        "",
        "Details:",
        *_numbered(result.details),
        "",
        f"Complexity: {result.complexity}",
        "",
        "Key Points:",
        *_numbered(result.key_points),
    ]
    return "\n".join(lines)


def render_refactor(result: RefactorResult, language: str) -> str:
    lines = [
        "=== Code Refactoring Results ===",
        "Improvements Made:",
        *_numbered(result.improvements),
        "",
        "Explanation:",
        result.explanation,
        "",
        "Refactored Code:",
        f"```{language}",
        result.refactored_code.rstrip("\n"),
        "```",
    ]
    return "\n".join(lines)


def render_generation(result: GenerationResult) -> str:
    return "\n".join(["=== Generated Code ===", result.code.rstrip()])


def _numbered(items: list[str]) -> list[str]:
    return [f"{idx}. {item}" for idx, item in enumerate(items, start=1)]
