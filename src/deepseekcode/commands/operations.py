"""The four code operations: read input, call the service, interpret, render."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, cast

from deepseekcode.console import Console
from deepseekcode.errors import ValidationError
from deepseekcode.files import language_for_path, read_source, write_output
from deepseekcode.llm.interpreter import interpret

from .models import (
    AnalysisResult,
    CommandOutcome,
    ExplanationResult,
    GenerationResult,
    Raw,
    RefactorResult,
    Structured,
)
from .render import render_analysis, render_explanation, render_generation, render_refactor

DEFAULT_LANGUAGE = "javascript"

LOGGER = logging.getLogger(__name__)


class CodeClient(Protocol):
    def analyze_code(self, code: str, language: str) -> str: ...

    def generate_code(
        self, description: str, language: str, context: str | None = None
    ) -> str: ...

    def explain_code(self, code: str, language: str) -> str: ...

    def refactor_code(self, code: str, language: str, goals: str | None = None) -> str: ...


def analyze(path: str, client: CodeClient, console: Console) -> CommandOutcome:
    console.info(f"Analyzing file: {path}")
    code = read_source(path)
    language = language_for_path(path)

    reply = interpret(client.analyze_code(code, language), "analyze")
    if isinstance(reply, Raw):
        console.line(reply.text)
    else:
        result = cast(AnalysisResult, reply.value)
        console.line(render_analysis(result))
    return CommandOutcome(kind="analyze", language=language, reply=reply)


def explain(path: str, client: CodeClient, console: Console) -> CommandOutcome:
    console.info(f"Explaining code from: {path}")
    code = read_source(path)
    language = language_for_path(path)

    reply = interpret(client.explain_code(code, language), "explain")
    if isinstance(reply, Raw):
        console.line(reply.text)
    else:
        result = cast(ExplanationResult, reply.value)
        console.line(render_explanation(result))
    return CommandOutcome(kind="explain", language=language, reply=reply)


def generate(
    description: str,
    client: CodeClient,
    console: Console,
    *,
    language: str | None = None,
    output_path: str | None = None,
    context: str | None = None,
) -> CommandOutcome:
    if not description.strip():
        raise ValidationError("A description is required to generate code")
    language = (language or "").strip() or DEFAULT_LANGUAGE

    console.info(f"Generating {language} code...")
    raw = client.generate_code(description, language, context or None)
    reply = interpret(raw, "generate", language=language)
    result = cast(
        GenerationResult,
        reply.value if isinstance(reply, Structured) else GenerationResult(code=raw),
    )
    console.line(render_generation(result))

    outcome = CommandOutcome(kind="generate", language=language, reply=reply)
    if output_path:
        outcome.written_to = str(write_output(output_path, result.code))
        console.success(f"Code saved to: {output_path}")
    return outcome


def refactor(
    path: str,
    client: CodeClient,
    console: Console,
    *,
    output_path: str | None = None,
    goals: str | None = None,
) -> CommandOutcome:
    console.info(f"Refactoring code from: {path}")
    code = read_source(path)
    language = language_for_path(path)

    reply = interpret(client.refactor_code(code, language, goals or None), "refactor")
    outcome = CommandOutcome(kind="refactor", language=language, reply=reply)
    if isinstance(reply, Raw):
        console.line(reply.text)
        if output_path:
            console.warning(
                f"Reply was not structured; nothing was written to {output_path}"
            )
        return outcome

    result = cast(RefactorResult, reply.value)
    console.line(render_refactor(result, language))
    if output_path:
        outcome.written_to = str(write_output(output_path, result.refactored_code))
        console.success(f"Refactored code saved to: {output_path}")
    LOGGER.debug(
        "refactor_completed",
        extra={"path": str(Path(path)), "written_to": outcome.written_to},
    )
    return outcome
