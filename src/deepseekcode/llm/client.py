"""Thin chat-completions client with one fixed template per task kind."""

from __future__ import annotations

import json
import logging
from urllib import request
from urllib.error import HTTPError, URLError

from deepseekcode.config import DEFAULT_TIMEOUT, Credentials
from deepseekcode.errors import AuthenticationError, RateLimitError, TransportError

VALIDATION_MODEL = "deepseek-chat"
VALIDATION_TIMEOUT = 5.0

SYSTEM_PROMPTS = {
    "analyze": (
        "You are a code review expert. You find bugs, performance problems,"
        " security vulnerabilities and best-practice violations, and you answer"
        " with strict JSON only."
    ),
    "generate": (
        "You are a senior software engineer. You write clean, well-commented,"
        " production-ready code."
    ),
    "explain": (
        "You are a patient programming teacher. You explain code precisely and"
        " answer with strict JSON only."
    ),
    "refactor": (
        "You are a refactoring expert. You improve quality, readability and"
        " performance without changing behavior, and you answer with strict JSON only."
    ),
}

ANALYSIS_SHAPE = """{
  "issues": [{"line": number, "type": string, "severity": "error|warning|info", "message": string, "suggestion": string}],
  "suggestions": [string],
  "summary": string,
  "quality_score": number (0-100)
}"""

EXPLANATION_SHAPE = """{
  "summary": string,
  "details": [string],
  "complexity": string,
  "key_points": [string]
}"""

REFACTOR_SHAPE = """{
  "refactored": string,
  "improvements": [string],
  "explanation": string
}"""

LOGGER = logging.getLogger(__name__)


class DeepSeekClient:
    """Single-turn HTTP client; no history is kept between calls."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        temperature: float,
        max_tokens: int,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str | None = None,
    ) -> DeepSeekClient:
        return cls(
            api_key=credentials.api_key,
            model=credentials.model,
            base_url=base_url or credentials.base_url,
            temperature=credentials.temperature,
            max_tokens=credentials.max_tokens,
            timeout=timeout,
        )

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def analyze_code(self, code: str, language: str) -> str:
        prompt = (
            f"Analyze the following {language} code for:\n"
            "1. Potential bugs and issues\n"
            "2. Performance problems\n"
            "3. Security vulnerabilities\n"
            "4. Code quality improvements\n"
            "5. Best practices violations\n\n"
            "Provide a detailed analysis with severity levels.\n\n"
            f"Code:\n{_fence(code, language)}\n\n"
            f"Format your response as JSON with the following structure:\n{ANALYSIS_SHAPE}"
        )
        return self._complete("analyze", prompt)

    def generate_code(self, description: str, language: str, context: str | None = None) -> str:
        prompt = f"Generate {language} code that: {description}"
        if context:
            prompt += f"\n\nContext:\n{context}"
        prompt += "\n\nProvide clean, well-commented, production-ready code."
        return self._complete("generate", prompt)

    def explain_code(self, code: str, language: str) -> str:
        prompt = (
            f"Explain the following {language} code in detail:\n\n"
            f"{_fence(code, language)}\n\n"
            "Provide:\n"
            "1. A clear summary of what the code does\n"
            "2. Detailed explanation of key parts\n"
            "3. Time and space complexity if applicable\n"
            "4. Key points to understand\n\n"
            f"Format as JSON:\n{EXPLANATION_SHAPE}"
        )
        return self._complete("explain", prompt)

    def refactor_code(self, code: str, language: str, goals: str | None = None) -> str:
        prompt = (
            f"Refactor the following {language} code for better quality, readability,"
            f" and performance:\n\n{_fence(code, language)}"
        )
        if goals:
            prompt += f"\n\nRefactoring goals: {goals}"
        prompt += (
            "\n\nProvide the refactored code with explanations.\n\n"
            f"Format as JSON:\n{REFACTOR_SHAPE}"
        )
        return self._complete("refactor", prompt)

    def validate_key(self) -> bool:
        """Send a tiny probe request; False only when the key itself is rejected."""
        payload = {
            "model": VALIDATION_MODEL,
            "messages": [{"role": "user", "content": "test"}],
            "max_tokens": 10,
        }
        try:
            self._post(payload)
        except AuthenticationError:
            return False
        return True

    def _complete(self, task: str, prompt: str) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPTS[task]},
            {"role": "user", "content": prompt},
        ]
        LOGGER.debug("llm_task_started", extra={"task": task, "prompt_chars": len(prompt)})
        return self.chat(messages)

    def chat(self, messages: list[dict[str, str]]) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        raw = self._post(payload)
        return self._extract_content(raw)

    def _post(self, payload: dict[str, object]) -> dict[str, object]:
        body = json.dumps(payload).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

        LOGGER.debug(
            "llm_request_prepared",
            extra={
                "api_url": self.api_url,
                "model": payload.get("model"),
                "payload_bytes": len(body),
            },
        )

        req = request.Request(self.api_url, data=body, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                raw_response = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body_excerpt = self._read_error_body_excerpt(exc)
            LOGGER.error(
                "llm_request_http_error",
                extra={
                    "api_url": self.api_url,
                    "model": payload.get("model"),
                    "http_status": exc.code,
                    "reason": exc.reason,
                    "response_excerpt": body_excerpt,
                },
            )
            if exc.code == 401:
                raise AuthenticationError(
                    "Invalid API key. Please check your credentials or use /login."
                ) from exc
            if exc.code == 429:
                raise RateLimitError("Rate limit exceeded. Please try again later.") from exc
            details = f"API request failed with HTTP {exc.code}: {exc.reason}"
            if body_excerpt:
                details = f"{details}. Response body: {body_excerpt}"
            raise TransportError(details) from exc
        except URLError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": self.api_url, "reason": str(exc.reason)},
            )
            raise TransportError(f"API request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            LOGGER.error(
                "llm_request_timeout",
                extra={"api_url": self.api_url, "timeout_seconds": self.timeout},
            )
            raise TransportError(f"API request timed out after {self.timeout:.1f}s") from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error(
                "llm_response_parse_error",
                extra={"api_url": self.api_url, "error": str(exc)},
            )
            raise TransportError(f"API response parsing error: {exc}") from exc

        if not isinstance(raw_response, dict):
            raise TransportError("API response parsing error: expected top-level object")
        return raw_response

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if isinstance(choices, list) and choices:
            first = choices[0]
            message = first.get("message") if isinstance(first, dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                return content
        raise TransportError("API response did not contain a message")

    @staticmethod
    def _read_error_body_excerpt(exc: HTTPError, *, max_chars: int = 500) -> str | None:
        if exc.fp is None:
            return None
        try:
            raw = exc.read()
        except OSError:
            return None

        if not raw:
            return None

        excerpt = raw.decode("utf-8", errors="replace").replace("\n", " ").strip()
        if len(excerpt) > max_chars:
            return f"{excerpt[:max_chars]}..."
        return excerpt


def validate_api_key(
    api_key: str,
    *,
    base_url: str,
    timeout: float = VALIDATION_TIMEOUT,
) -> bool:
    probe = DeepSeekClient(
        api_key=api_key,
        model=VALIDATION_MODEL,
        base_url=base_url,
        temperature=0.0,
        max_tokens=10,
        timeout=timeout,
    )
    return probe.validate_key()


def _fence(code: str, language: str) -> str:
    return f"```{language}\n{code}\n```"
