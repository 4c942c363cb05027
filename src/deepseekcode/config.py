"""Environment-backed settings and the persisted credential record."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Literal, cast, get_args

from .errors import FilesystemError, ValidationError

ModelName = Literal["deepseek-r1", "deepseek-coder", "deepseek-chat"]

VALID_MODELS: tuple[ModelName, ...] = get_args(ModelName)
DEFAULT_MODEL: ModelName = "deepseek-r1"
DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 60.0
CONFIG_FILE_NAME = "config.json"
RECORD_FIELDS = ("api_key", "base_url", "model", "max_tokens", "temperature")

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class AppConfig:
    """Runtime settings loaded from environment variables."""

    config_dir: Path
    base_url: str | None
    timeout: float
    log_level: str

    @classmethod
    def from_env(cls) -> AppConfig:
        home_override = _to_optional_string(os.getenv("DEEPSEEK_CODE_HOME"))
        config_dir = (
            Path(home_override).expanduser()
            if home_override
            else Path.home() / ".deepseek-code"
        )
        return cls(
            config_dir=config_dir,
            base_url=_to_optional_string(os.getenv("DEEPSEEK_BASE_URL")),
            timeout=_to_positive_float(os.getenv("DEEPSEEK_TIMEOUT"), default=DEFAULT_TIMEOUT),
            log_level=(
                _to_optional_string(os.getenv("DEEPSEEK_LOG_LEVEL")) or "WARNING"
            ).upper(),
        )

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME


@dataclass(slots=True)
class Credentials:
    """API key plus model selection and generation parameters.

    Every field is validated on construction and by each setter, so an
    out-of-range value is rejected before it can be saved.
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: ModelName = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _check_api_key(self.api_key)
        _check_model(self.model)
        _check_max_tokens(self.max_tokens)
        _check_temperature(self.temperature)
        if not isinstance(self.base_url, str) or not self.base_url.strip():
            raise ValidationError("Base URL must be a non-empty string")

    def set_api_key(self, api_key: str) -> None:
        _check_api_key(api_key)
        self.api_key = api_key

    def set_model(self, model: str) -> None:
        self.model = _check_model(model)

    def set_temperature(self, temperature: float) -> None:
        _check_temperature(temperature)
        self.temperature = float(temperature)

    def set_max_tokens(self, max_tokens: int) -> None:
        _check_max_tokens(max_tokens)
        self.max_tokens = max_tokens

    def masked_key(self) -> str:
        if len(self.api_key) <= 14:
            return f"{self.api_key[:3]}..."
        return f"{self.api_key[:10]}...{self.api_key[-4:]}"

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class CredentialStore:
    """Reads and writes the single per-user credential record."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @classmethod
    def from_config(cls, config: AppConfig) -> CredentialStore:
        return cls(config.config_file)

    def load(self) -> Credentials | None:
        if not self.path.is_file():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                parsed = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning(
                "credentials_unreadable",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return None
        if not isinstance(parsed, dict):
            LOGGER.warning("credentials_not_an_object", extra={"path": str(self.path)})
            return None

        record = {key: parsed[key] for key in RECORD_FIELDS if key in parsed}
        record.setdefault("api_key", "")
        try:
            return Credentials(**record)  # type: ignore[arg-type]
        except ValidationError as exc:
            LOGGER.warning(
                "credentials_invalid",
                extra={"path": str(self.path), "error": str(exc)},
            )
            return None

    def save(self, credentials: Credentials) -> None:
        credentials.validate()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as fh:
                json.dump(credentials.to_dict(), fh, indent=2)
                fh.write("\n")
        except OSError as exc:
            raise FilesystemError(f"Failed to save config to {self.path}: {exc}") from exc
        LOGGER.debug(
            "credentials_saved",
            extra={"path": str(self.path), "model": credentials.model},
        )


def _check_api_key(value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("API key cannot be empty")


def _check_model(value: object) -> ModelName:
    if value not in VALID_MODELS:
        allowed = ", ".join(VALID_MODELS)
        raise ValidationError(f"Unknown model {value!r}; expected one of: {allowed}")
    return cast(ModelName, value)


def _check_temperature(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("Temperature must be a number")
    if not 0 <= value <= 1:
        raise ValidationError("Temperature must be between 0 and 1")


def _check_max_tokens(value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Max tokens must be an integer")
    if value < 1:
        raise ValidationError("Max tokens must be at least 1")


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _to_positive_float(value: object, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default
