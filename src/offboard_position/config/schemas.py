from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from offboard_position.flight.script import MissionScript
from offboard_position.flight.state import Setpoint


@dataclass(slots=True)
class ConnectionConfig:
    heartbeat_poll_s: float
    heartbeat_timeout_s: float | None
    settle_s: float


@dataclass(slots=True)
class PreflightConfig:
    wait_health_ok: bool
    poll_s: float
    timeout_s: float | None
    gyro_settle_s: float
    first_sample_timeout_s: float


@dataclass(slots=True)
class MissionConfig:
    script: MissionScript


@dataclass(slots=True)
class DescentConfig:
    height_m: float | None
    steps: int
    offset_m: float
    step_delay_s: float
    touchdown: Setpoint


@dataclass(slots=True)
class LandingConfig:
    poll_s: float
    grounded_timeout_s: float | None
    stop_offboard_before_land: bool
    post_disarm_watch_s: float


@dataclass(slots=True)
class LogsConfig:
    dir: Path
    level: int


@dataclass(slots=True)
class SequencerConfig:
    connection: ConnectionConfig
    preflight: PreflightConfig
    mission: MissionConfig
    descent: DescentConfig
    landing: LandingConfig
    logs: LogsConfig
