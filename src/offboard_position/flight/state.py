from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MissionPhase(str, Enum):
    INIT = "INIT"
    ARMED = "ARMED"
    OFFBOARD_ACTIVE = "OFFBOARD_ACTIVE"
    WAYPOINTS = "WAYPOINTS"
    DESCENT = "DESCENT"
    LANDING = "LANDING"
    WAIT_GROUNDED = "WAIT_GROUNDED"
    DISARM = "DISARM"
    DONE = "DONE"
    ABORT = "ABORT"


class ResultCode(str, Enum):
    SUCCESS = "SUCCESS"
    NO_SYSTEM = "NO_SYSTEM"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    BUSY = "BUSY"
    COMMAND_DENIED = "COMMAND_DENIED"
    COMMAND_DENIED_LANDED_STATE_UNKNOWN = "COMMAND_DENIED_LANDED_STATE_UNKNOWN"
    COMMAND_DENIED_NOT_LANDED = "COMMAND_DENIED_NOT_LANDED"
    TIMEOUT = "TIMEOUT"
    NO_SETPOINT_SET = "NO_SETPOINT_SET"
    UNSUPPORTED = "UNSUPPORTED"
    FAILED = "FAILED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_name(cls, name: str) -> "ResultCode":
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


_DESCRIPTIONS = {
    ResultCode.SUCCESS: "Success",
    ResultCode.NO_SYSTEM: "No system connected",
    ResultCode.CONNECTION_ERROR: "Connection error",
    ResultCode.BUSY: "Vehicle busy",
    ResultCode.COMMAND_DENIED: "Command denied",
    ResultCode.COMMAND_DENIED_LANDED_STATE_UNKNOWN: "Command denied, landed state unknown",
    ResultCode.COMMAND_DENIED_NOT_LANDED: "Command denied, vehicle not landed",
    ResultCode.TIMEOUT: "Timeout",
    ResultCode.NO_SETPOINT_SET: "No setpoint set",
    ResultCode.UNSUPPORTED: "Unsupported",
    ResultCode.FAILED: "Failed",
    ResultCode.UNKNOWN: "Unknown error",
}


@dataclass(frozen=True, slots=True)
class Result:
    code: ResultCode
    detail: str = ""

    @classmethod
    def success(cls) -> "Result":
        return cls(ResultCode.SUCCESS)

    @property
    def ok(self) -> bool:
        return self.code is ResultCode.SUCCESS

    def __str__(self) -> str:
        text = _DESCRIPTIONS[self.code]
        if self.detail and self.detail != text:
            return f"{text} ({self.detail})"
        return text


@dataclass(frozen=True, slots=True)
class Setpoint:
    """Local NED position target; metres, yaw in degrees."""

    north: float = 0.0
    east: float = 0.0
    down: float = 0.0
    yaw: float = 0.0

    def __str__(self) -> str:
        return f"{self.north:g}, {self.east:g}, {self.down:g}, yaw {self.yaw:g}"


@dataclass(frozen=True, slots=True)
class WaypointStep:
    target: Setpoint
    hold_s: float

    def __post_init__(self) -> None:
        if self.hold_s < 0:
            raise ValueError(f"hold_s must be >= 0, got {self.hold_s}")


@dataclass(frozen=True, slots=True)
class HealthFlags:
    gyrometer_calibration_ok: bool = False
    accelerometer_calibration_ok: bool = False
    magnetometer_calibration_ok: bool = False
    local_position_ok: bool = False

    @property
    def local_flight_ok(self) -> bool:
        return (
            self.gyrometer_calibration_ok
            and self.accelerometer_calibration_ok
            and self.magnetometer_calibration_ok
            and self.local_position_ok
        )
