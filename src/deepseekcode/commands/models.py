"""Typed command requests and structured reply shapes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

TaskKind = Literal["analyze", "generate", "explain", "refactor"]
Severity = Literal["error", "warning", "info"]

T = TypeVar("T")


@dataclass(slots=True)
class CommandRequest:
    """One parsed command, built per loop iteration and consumed immediately."""

    verb: TaskKind
    argument: str
    output_path: str | None = None
    language: str | None = None
    goals: str | None = None
    context: str | None = None


@dataclass(slots=True)
class Issue:
    line: int
    type: str
    severity: Severity
    message: str
    suggestion: str | None = None


@dataclass(slots=True)
class AnalysisResult:
    issues: list[Issue]
    suggestions: list[str]
    summary: str
    quality_score: int


@dataclass(slots=True)
class ExplanationResult:
    summary: str
    details: list[str]
    complexity: str
    key_points: list[str]


@dataclass(slots=True)
class RefactorResult:
    improvements: list[str]
    explanation: str
    refactored_code: str


@dataclass(slots=True)
class GenerationResult:
    code: str
    language: str = ""


@dataclass(slots=True, frozen=True)
class Structured(Generic[T]):
    """A reply that decoded into its expected shape."""

    value: T


@dataclass(slots=True, frozen=True)
class Raw:
    """A reply that did not decode; ``text`` is shown to the user unchanged."""

    text: str


@dataclass(slots=True)
class CommandOutcome:
    """What an operation produced, returned for callers and tests."""

    kind: TaskKind
    language: str
    reply: Structured[object] | Raw
    written_to: str | None = None
