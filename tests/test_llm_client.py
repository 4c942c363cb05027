import io
import json
from urllib.error import HTTPError, URLError

import pytest

from deepseekcode.config import Credentials
from deepseekcode.errors import AuthenticationError, RateLimitError, TransportError
from deepseekcode.llm.client import DeepSeekClient, validate_api_key


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self.body = body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def read(self):
        return self.body


def _completion(content: str) -> bytes:
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": content}}]}).encode()


def _client() -> DeepSeekClient:
    return DeepSeekClient.from_credentials(
        Credentials(api_key="sk-test", model="deepseek-coder", temperature=0.3, max_tokens=256),
        timeout=9.0,
    )


def _http_error(code: int, msg: str, body: bytes | None = None) -> HTTPError:
    return HTTPError(
        url="https://api.deepseek.com/v1/chat/completions",
        code=code,
        msg=msg,
        hdrs=None,
        fp=io.BytesIO(body) if body is not None else None,
    )


def test_chat_posts_single_turn_request_and_returns_content(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        captured["payload"] = json.loads(req.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse(_completion("hello"))

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    reply = _client().analyze_code("print(1)", "python")

    assert reply == "hello"
    assert captured["url"] == "https://api.deepseek.com/v1/chat/completions"
    assert captured["timeout"] == 9.0
    headers = captured["headers"]
    assert isinstance(headers, dict)
    assert headers["Authorization"] == "Bearer sk-test"
    payload = captured["payload"]
    assert isinstance(payload, dict)
    assert payload["model"] == "deepseek-coder"
    assert payload["temperature"] == 0.3
    assert payload["max_tokens"] == 256
    assert [message["role"] for message in payload["messages"]] == ["system", "user"]
    user_prompt = payload["messages"][1]["content"]
    assert "```python\nprint(1)\n```" in user_prompt
    assert '"quality_score"' in user_prompt


def test_generate_prompt_includes_optional_context(monkeypatch) -> None:
    prompts: list[str] = []

    def fake_urlopen(req, timeout):
        prompts.append(json.loads(req.data.decode("utf-8"))["messages"][1]["content"])
        return FakeResponse(_completion("code"))

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)
    client = _client()

    client.generate_code("sort a list", "python")
    client.generate_code("sort a list", "python", context="use heapq")

    assert prompts[0].startswith("Generate python code that: sort a list")
    assert "Context:" not in prompts[0]
    assert "Context:\nuse heapq" in prompts[1]


def test_refactor_prompt_includes_goals_only_when_given(monkeypatch) -> None:
    prompts: list[str] = []

    def fake_urlopen(req, timeout):
        prompts.append(json.loads(req.data.decode("utf-8"))["messages"][1]["content"])
        return FakeResponse(_completion("{}"))

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)
    client = _client()

    client.refactor_code("x = 1", "python")
    client.refactor_code("x = 1", "python", goals="readability")

    assert "Refactoring goals" not in prompts[0]
    assert "Refactoring goals: readability" in prompts[1]
    assert '"refactored"' in prompts[1]


def test_http_401_raises_authentication_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise _http_error(401, "Unauthorized")

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(AuthenticationError, match="Invalid API key"):
        _client().explain_code("x = 1", "python")


def test_http_429_raises_rate_limit_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise _http_error(429, "Too Many Requests")

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(RateLimitError):
        _client().explain_code("x = 1", "python")


def test_other_http_error_includes_status_and_body_excerpt(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise _http_error(503, "Service Unavailable", b'{"error":{"message":"overloaded"}}')

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(TransportError) as excinfo:
        _client().explain_code("x = 1", "python")

    assert "HTTP 503" in str(excinfo.value)
    assert "overloaded" in str(excinfo.value)


def test_network_failure_raises_transport_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise URLError("connection refused")

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(TransportError, match="connection refused"):
        _client().analyze_code("x = 1", "python")


def test_timeout_raises_transport_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise TimeoutError

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(TransportError, match="timed out"):
        _client().analyze_code("x = 1", "python")


def test_malformed_envelope_raises_transport_error(monkeypatch) -> None:
    monkeypatch.setattr(
        "deepseekcode.llm.client.request.urlopen",
        lambda *_a, **_k: FakeResponse(b"not-json"),
    )
    with pytest.raises(TransportError, match="parsing error"):
        _client().analyze_code("x = 1", "python")

    monkeypatch.setattr(
        "deepseekcode.llm.client.request.urlopen",
        lambda *_a, **_k: FakeResponse(b'{"choices": []}'),
    )
    with pytest.raises(TransportError, match="did not contain a message"):
        _client().analyze_code("x = 1", "python")


def test_base_url_override_wins_over_stored_value() -> None:
    client = DeepSeekClient.from_credentials(
        Credentials(api_key="sk-test"),
        base_url="https://proxy.example.invalid/v1/",
    )

    assert client.api_url == "https://proxy.example.invalid/v1/chat/completions"


def test_validate_api_key_returns_false_for_rejected_key(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise _http_error(401, "Unauthorized")

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    assert validate_api_key("sk-bad", base_url="https://api.deepseek.com/v1") is False


def test_validate_api_key_sends_small_probe(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout):
        captured["payload"] = json.loads(req.data.decode("utf-8"))
        captured["timeout"] = timeout
        return FakeResponse(_completion("ok"))

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    assert validate_api_key("sk-good", base_url="https://api.deepseek.com/v1") is True
    assert captured["timeout"] == 5.0
    payload = captured["payload"]
    assert isinstance(payload, dict)
    assert payload["model"] == "deepseek-chat"
    assert payload["max_tokens"] == 10


def test_validate_api_key_propagates_non_auth_failures(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise _http_error(429, "Too Many Requests")

    monkeypatch.setattr("deepseekcode.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(RateLimitError):
        validate_api_key("sk-test", base_url="https://api.deepseek.com/v1")
