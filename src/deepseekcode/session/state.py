"""State carried by one interactive session."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from deepseekcode.config import Credentials

TrustState = Literal["unverified", "denied", "trusted"]
EngineState = Literal[
    "gate_check",
    "config_load",
    "idle",
    "dispatching",
    "awaiting_input",
    "terminated",
]


@dataclass(slots=True)
class Session:
    """Lives from the trust check until exit; owns the only ``Credentials`` value."""

    working_directory: Path
    trust_state: TrustState = "unverified"
    credentials: Credentials | None = None
    running: bool = False
    state: EngineState = "gate_check"
