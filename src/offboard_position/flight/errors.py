from __future__ import annotations

from enum import Enum

from offboard_position.flight.state import Result


class FailureKind(str, Enum):
    CONNECTION_FAILURE = "connection_failure"
    COMMAND_FAILURE = "command_failure"
    MODE_FAILURE = "mode_failure"
    USAGE_ERROR = "usage_error"
    GROUNDED_TIMEOUT = "grounded_timeout"


class MissionAbort(Exception):
    """Unrecoverable failure; the run must end without touching the vehicle again."""

    def __init__(self, kind: FailureKind, operation: str, result: Result | None = None, detail: str = ""):
        self.kind = kind
        self.operation = operation
        self.result = result
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        reason = str(self.result) if self.result is not None else self.detail
        return f"{self.operation} failed: {reason}" if reason else f"{self.operation} failed"
