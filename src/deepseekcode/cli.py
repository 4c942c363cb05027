"""Command-line interface for deepseekcode."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import cast

from .commands.models import CommandRequest, TaskKind
from .commands.operations import DEFAULT_LANGUAGE
from .commands.router import ClientFactory, CommandRouter
from .config import (
    DEFAULT_MODEL,
    VALID_MODELS,
    AppConfig,
    CredentialStore,
    Credentials,
)
from .console import Console
from .errors import DeepSeekCodeError, FilesystemError
from .llm.client import DeepSeekClient, validate_api_key
from .session.repl import InteractiveSession, KeyValidator
from .trust import TrustGate

__version__ = "1.0.0"

INTERACTIVE_COMMANDS = {None, "interactive", "i"}

LOGGER = logging.getLogger(__name__)


class CLIArgs(argparse.Namespace):
    command: str | None
    api_key: str
    model: str
    temperature: float | None
    max_tokens: int | None
    file: str
    description: str
    language: str
    output: str | None
    context: str | None
    goals: str | None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deepseek",
        description="DeepSeek Code CLI - AI-powered code analysis and generation",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    config_parser = subparsers.add_parser("config", help="Configure API key and model")
    config_parser.add_argument("api_key", help="DeepSeek API key")
    config_parser.add_argument(
        "-m",
        "--model",
        default=DEFAULT_MODEL,
        help=f"Model to use ({', '.join(VALID_MODELS)})",
    )
    config_parser.add_argument("--temperature", type=float, help="Sampling temperature, 0 to 1")
    config_parser.add_argument(
        "--max-tokens", dest="max_tokens", type=int, help="Maximum reply tokens, at least 1"
    )

    analyze_parser = subparsers.add_parser("analyze", help="Analyze code in a file")
    analyze_parser.add_argument("file")

    generate_parser = subparsers.add_parser(
        "generate", help="Generate code based on description"
    )
    generate_parser.add_argument("description")
    generate_parser.add_argument(
        "-l",
        "--language",
        default=DEFAULT_LANGUAGE,
        help="Programming language (javascript, python, etc.)",
    )
    generate_parser.add_argument("-o", "--output", help="Output file path")
    generate_parser.add_argument("-c", "--context", help="Additional context")

    explain_parser = subparsers.add_parser("explain", help="Explain code in a file")
    explain_parser.add_argument("file")

    refactor_parser = subparsers.add_parser("refactor", help="Refactor code in a file")
    refactor_parser.add_argument("file")
    refactor_parser.add_argument("-o", "--output", help="Output file path")
    refactor_parser.add_argument("-g", "--goals", help="Refactoring goals")

    subparsers.add_parser("interactive", aliases=["i"], help="Start interactive shell mode")
    return parser


def configure_logging(level_name: str) -> None:
    """Send diagnostics to stderr so they never mix with rendered results."""
    level = logging.getLevelName(level_name.upper())
    logging.basicConfig(
        level=level if isinstance(level, int) else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_client_factory(config: AppConfig) -> ClientFactory:
    def factory(credentials: Credentials) -> DeepSeekClient:
        return DeepSeekClient.from_credentials(
            credentials,
            timeout=config.timeout,
            base_url=config.base_url,
        )

    return factory


def build_key_validator(config: AppConfig) -> KeyValidator:
    """Probe a key against the env override, else the endpoint the session has stored."""

    def validator(api_key: str, stored_base_url: str) -> bool:
        return validate_api_key(api_key, base_url=config.base_url or stored_base_url)

    return validator


def main() -> int:
    parser = build_parser()
    args = cast(CLIArgs, parser.parse_args())
    config = AppConfig.from_env()
    configure_logging(config.log_level)
    store = CredentialStore.from_config(config)
    console = Console()

    if args.command == "config":
        return _run_config(args, store, console)

    working_directory = Path.cwd()
    router = CommandRouter(client_factory=build_client_factory(config), console=console)

    if args.command in INTERACTIVE_COMMANDS:
        session = InteractiveSession(
            working_directory=working_directory,
            store=store,
            router=router,
            key_validator=build_key_validator(config),
            console=console,
        )
        try:
            return session.run()
        except FilesystemError as exc:
            console.error(f"Fatal error: {exc}")
            return 1

    try:
        TrustGate(console=console).check_trust(working_directory)
    except FilesystemError as exc:
        console.error(f"Fatal error: {exc}")
        return 1

    credentials = store.load()
    if credentials is None:
        console.error("No configuration found. Please run: deepseek config <api_key>")
        return 1

    verb = cast(TaskKind, args.command)
    try:
        router.execute(_build_request(verb, args), credentials)
    except DeepSeekCodeError as exc:
        console.error(f"Failed to {verb}: {exc}")
        return 1
    return 0


def _build_request(verb: TaskKind, args: CLIArgs) -> CommandRequest:
    if verb == "generate":
        return CommandRequest(
            verb=verb,
            argument=args.description,
            language=args.language,
            output_path=args.output,
            context=args.context,
        )
    if verb == "refactor":
        return CommandRequest(
            verb=verb,
            argument=args.file,
            output_path=args.output,
            goals=args.goals,
        )
    return CommandRequest(verb=verb, argument=args.file)


def _run_config(args: CLIArgs, store: CredentialStore, console: Console) -> int:
    try:
        credentials = Credentials(api_key=args.api_key)
        credentials.set_model(args.model)
        if args.temperature is not None:
            credentials.set_temperature(args.temperature)
        if args.max_tokens is not None:
            credentials.set_max_tokens(args.max_tokens)
        store.save(credentials)
    except DeepSeekCodeError as exc:
        console.error(f"Configuration failed: {exc}")
        return 1

    LOGGER.debug("config_command_saved", extra={"path": str(store.path)})
    console.success("Configuration saved successfully!")
    console.info(f"API Key: {credentials.api_key[:5]}...")
    console.info(f"Model: {credentials.model}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
