"""Interactive read-eval-print loop with slash-command dispatch."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from deepseekcode.commands.models import CommandRequest
from deepseekcode.commands.operations import DEFAULT_LANGUAGE
from deepseekcode.commands.router import CommandRouter
from deepseekcode.config import DEFAULT_BASE_URL, CredentialStore, Credentials
from deepseekcode.console import Console
from deepseekcode.errors import AuthenticationError, DeepSeekCodeError, ValidationError
from deepseekcode.trust import TrustGate

from .state import Session

ReadLine = Callable[[str], str]
KeyValidator = Callable[[str, str], bool]

PROMPT = "\n> "
NO_CREDENTIALS_MESSAGE = "No API key configured. Use /login first."

HELP_LINES = [
    ("/login", "Set or update your DeepSeek API key"),
    ("/analyze <file>", "Analyze code for bugs and issues"),
    ("/generate <description>", "Generate code from description"),
    ("/explain <file>", "Get detailed explanation of code"),
    ("/refactor <file>", "Refactor code for better quality"),
    ("/help", "Show this help message"),
    ("?", "Show keyboard shortcuts"),
    ("/exit, /quit", "Exit the application"),
]

SHORTCUT_LINES = [
    ("Ctrl+C", "Exit application"),
    ("Ctrl+D", "Close input and exit"),
    ("Enter", "Accept a default or skip an optional question"),
]

LOGGER = logging.getLogger(__name__)


def parse_command_line(line: str) -> tuple[str, str]:
    """Split input into a lower-cased verb and the remaining tokens as one argument."""
    tokens = line.split()
    if not tokens:
        return "", ""
    return tokens[0].lower(), _strip_quotes(" ".join(tokens[1:]))


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


class InteractiveSession:
    """Trust gate, credential load, then one command per input line until exit.

    A failing command prints one error line and the loop carries on; only the
    trust gate and closing the session end the process.
    """

    def __init__(
        self,
        *,
        working_directory: str | Path,
        store: CredentialStore,
        router: CommandRouter,
        key_validator: KeyValidator,
        trust_gate: TrustGate | None = None,
        read_line: ReadLine | None = None,
        console: Console | None = None,
    ) -> None:
        self.session = Session(working_directory=Path(working_directory))
        self.store = store
        self.router = router
        self.key_validator = key_validator
        self.read_line = read_line or input
        self.console = console or Console()
        self.trust_gate = trust_gate or TrustGate(read_line=read_line, console=self.console)
        self._handlers: dict[str, Callable[[str], None]] = {
            "/login": self._handle_login,
            "/analyze": self._handle_analyze,
            "/generate": self._handle_generate,
            "/explain": self._handle_explain,
            "/refactor": self._handle_refactor,
            "/help": self._handle_help,
            "?": self._handle_shortcuts,
            "/exit": self._handle_exit,
            "/quit": self._handle_exit,
        }

    def run(self) -> int:
        self.session.state = "gate_check"
        try:
            self.trust_gate.check_trust(self.session.working_directory)
        except SystemExit:
            self.session.trust_state = "denied"
            self.session.state = "terminated"
            raise
        self.session.trust_state = "trusted"

        self.session.state = "config_load"
        self.session.credentials = self.store.load()
        self._show_welcome()
        if self.session.credentials is None:
            self.console.warning("No API key configured. Use /login to set your API key.")

        self.session.running = True
        while self.session.running:
            self.session.state = "idle"
            try:
                line = self.read_line(PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._terminate()
                break
            self.handle_line(line)
        return 0

    def handle_line(self, line: str) -> None:
        stripped = line.strip()
        if not stripped:
            return

        self.session.state = "dispatching"
        try:
            self.dispatch(stripped)
        except (EOFError, KeyboardInterrupt):
            self._terminate()
        except DeepSeekCodeError as exc:
            LOGGER.info(
                "command_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
            self.console.error(str(exc))
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("command_crashed")
            self.console.error(f"Unexpected error: {exc}")
        finally:
            if self.session.running:
                self.session.state = "idle"

    def dispatch(self, line: str) -> None:
        verb, argument = parse_command_line(line)
        handler = self._handlers.get(verb)
        if handler is None:
            self.console.error(f"Unknown command: {verb}. Type /help for available commands.")
            return
        handler(argument)

    def _ask(self, prompt: str) -> str:
        self.session.state = "awaiting_input"
        answer = self.read_line(prompt).strip()
        self.session.state = "dispatching"
        return answer

    def _require_credentials(self) -> Credentials:
        if self.session.credentials is None:
            raise AuthenticationError(NO_CREDENTIALS_MESSAGE)
        return self.session.credentials

    @staticmethod
    def _require_argument(argument: str, usage: str) -> str:
        if not argument.strip():
            raise ValidationError(usage)
        return argument

    def _handle_login(self, _argument: str) -> None:
        api_key = self._ask("Enter your DeepSeek API key: ")
        if not api_key:
            self.console.error("API key cannot be empty")
            return

        current = self.session.credentials
        base_url = current.base_url if current else DEFAULT_BASE_URL
        self.console.line("Validating API key...")
        if not self.key_validator(api_key, base_url):
            self.console.error("API key invalid, please type another api key")
            return

        if current is None:
            credentials = Credentials(api_key=api_key)
        else:
            credentials = replace(current)
            credentials.set_api_key(api_key)
        self.store.save(credentials)
        self.session.credentials = credentials
        LOGGER.info("login_succeeded", extra={"model": credentials.model})
        self.console.success("API key is valid and has been saved!")
        self.console.line(f"API Key: {credentials.masked_key()}")

    def _handle_analyze(self, argument: str) -> None:
        path = self._require_argument(argument, "Usage: /analyze <file>")
        credentials = self._require_credentials()
        self.router.execute(CommandRequest(verb="analyze", argument=path), credentials)

    def _handle_explain(self, argument: str) -> None:
        path = self._require_argument(argument, "Usage: /explain <file>")
        credentials = self._require_credentials()
        self.router.execute(CommandRequest(verb="explain", argument=path), credentials)

    def _handle_generate(self, argument: str) -> None:
        description = self._require_argument(argument, "Usage: /generate <description>")
        credentials = self._require_credentials()
        language = self._ask(f"Programming language (default: {DEFAULT_LANGUAGE}): ")
        output_path = self._ask("Output file path (optional): ")
        self.router.execute(
            CommandRequest(
                verb="generate",
                argument=description,
                language=language or DEFAULT_LANGUAGE,
                output_path=output_path or None,
            ),
            credentials,
        )

    def _handle_refactor(self, argument: str) -> None:
        path = self._require_argument(argument, "Usage: /refactor <file>")
        credentials = self._require_credentials()
        output_path = self._ask("Output file path (optional): ")
        goals = self._ask("Refactoring goals (optional): ")
        self.router.execute(
            CommandRequest(
                verb="refactor",
                argument=path,
                output_path=output_path or None,
                goals=goals or None,
            ),
            credentials,
        )

    def _handle_help(self, _argument: str) -> None:
        self.console.header("Available Commands")
        for command, description in HELP_LINES:
            self.console.line(f"  {command:<28} {description}")

    def _handle_shortcuts(self, _argument: str) -> None:
        self.console.header("Keyboard Shortcuts")
        for keys, description in SHORTCUT_LINES:
            self.console.line(f"  {keys:<16} {description}")

    def _handle_exit(self, _argument: str) -> None:
        self._terminate()

    def _terminate(self) -> None:
        self.session.running = False
        self.session.state = "terminated"
        self.console.line("\nGoodbye!")

    def _show_welcome(self) -> None:
        user = os.getenv("USER") or os.getenv("USERNAME") or "User"
        self.console.header("DeepSeek Code")
        self.console.line(f"Welcome back {user}!")
        self.console.line(f"Working directory: {self.session.working_directory}")
        self.console.line("Type /help for commands, /login to set your API key, /exit to quit.")
