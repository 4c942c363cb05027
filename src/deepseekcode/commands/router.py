"""Maps a command verb to its operation after validating arguments."""

from __future__ import annotations

import logging
from collections.abc import Callable

from deepseekcode.config import Credentials
from deepseekcode.console import Console
from deepseekcode.errors import ValidationError

from . import operations
from .models import CommandOutcome, CommandRequest
from .operations import CodeClient

ClientFactory = Callable[[Credentials], CodeClient]

USAGE = {
    "analyze": "Usage: analyze <file>",
    "generate": "Usage: generate <description>",
    "explain": "Usage: explain <file>",
    "refactor": "Usage: refactor <file>",
}

LOGGER = logging.getLogger(__name__)


class CommandRouter:
    """Runs one ``CommandRequest`` with the session's credentials.

    The router never holds credentials itself; the caller passes the value it
    owns on every call so a ``/login`` takes effect on the next command.
    """

    def __init__(self, *, client_factory: ClientFactory, console: Console) -> None:
        self.client_factory = client_factory
        self.console = console

    def execute(self, request: CommandRequest, credentials: Credentials) -> CommandOutcome:
        if request.verb not in USAGE:
            raise ValidationError(f"Unknown operation: {request.verb}")
        argument = request.argument.strip()
        if not argument:
            raise ValidationError(USAGE[request.verb])

        LOGGER.debug(
            "command_dispatched",
            extra={
                "verb": request.verb,
                "has_output_path": bool(request.output_path),
                "model": credentials.model,
            },
        )
        client = self.client_factory(credentials)

        if request.verb == "analyze":
            return operations.analyze(argument, client, self.console)
        if request.verb == "explain":
            return operations.explain(argument, client, self.console)
        if request.verb == "generate":
            return operations.generate(
                argument,
                client,
                self.console,
                language=request.language,
                output_path=request.output_path,
                context=request.context,
            )
        return operations.refactor(
            argument,
            client,
            self.console,
            output_path=request.output_path,
            goals=request.goals,
        )
