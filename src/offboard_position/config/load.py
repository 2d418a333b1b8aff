from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from offboard_position.config.schemas import (
    ConnectionConfig,
    DescentConfig,
    LandingConfig,
    LogsConfig,
    MissionConfig,
    PreflightConfig,
    SequencerConfig,
)
from offboard_position.flight.script import MissionScript, build_descent_ramp
from offboard_position.flight.state import Setpoint, WaypointStep


REPO_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_PATH = REPO_ROOT / "config" / "default.yaml"

DEFAULT_WAYPOINTS = [
    {"north_m": 0.0, "east_m": 0.0, "down_m": 0.0, "yaw_deg": 0.0, "hold_s": 1.0},
    {"north_m": 0.0, "east_m": 0.0, "down_m": -0.75, "yaw_deg": 0.0, "hold_s": 4.0},
    {"north_m": 0.2, "east_m": 0.0, "down_m": -0.75, "yaw_deg": 0.0, "hold_s": 2.0},
    {"north_m": 0.0, "east_m": 0.0, "down_m": -0.75, "yaw_deg": 0.0, "hold_s": 2.0},
]


class _Missing:
    pass


MISSING = _Missing()


def _lookup(section: dict[str, Any], keys: list[str], default: Any = MISSING) -> Any:
    for key in keys:
        if key in section:
            return section[key]
    if default is not MISSING:
        return default
    raise KeyError(f"Missing required key. Tried: {keys}")


def _as_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        text = v.strip().lower()
        if text in {"1", "true", "yes", "y", "on"}:
            return True
        if text in {"0", "false", "no", "n", "off"}:
            return False
    if isinstance(v, (int, float)):
        return bool(v)
    return default


def _opt_float(v: Any) -> float | None:
    return None if v is None else float(v)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    return value if isinstance(value, dict) else {}


def _load_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root in {path}")
    return data


def _setpoint(raw: dict[str, Any]) -> Setpoint:
    return Setpoint(
        north=float(_lookup(raw, ["north_m", "north"], default=0.0)),
        east=float(_lookup(raw, ["east_m", "east"], default=0.0)),
        down=float(_lookup(raw, ["down_m", "down"], default=0.0)),
        yaw=float(_lookup(raw, ["yaw_deg", "yaw"], default=0.0)),
    )


def parse_waypoints(raw_steps: Any) -> MissionScript:
    if not isinstance(raw_steps, list):
        raise ValueError("mission.waypoints must be a list")
    steps = []
    for idx, raw in enumerate(raw_steps):
        if not isinstance(raw, dict):
            raise ValueError(f"mission.waypoints[{idx}] must be a mapping")
        steps.append(WaypointStep(target=_setpoint(raw), hold_s=float(_lookup(raw, ["hold_s"]))))
    return MissionScript.from_steps(steps)


def _log_level(v: Any) -> int:
    if isinstance(v, int):
        return v
    level = logging.getLevelName(str(v).upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {v}")
    return level


def load_config(path: Path | None = None) -> SequencerConfig:
    cfg_path = path or DEFAULT_CONFIG_PATH
    if path is not None or cfg_path.exists():
        data = _load_yaml(cfg_path)
        base_dir = cfg_path.resolve().parent.parent
    else:
        # installed without a config file: defaults, logs under the working directory
        data = {}
        base_dir = Path.cwd()

    connection = _section(data, "connection")
    preflight = _section(data, "preflight")
    mission = _section(data, "mission")
    descent = _section(data, "descent")
    landing = _section(data, "landing")
    logs = _section(data, "logs")

    touchdown = descent.get("touchdown")
    cfg = SequencerConfig(
        connection=ConnectionConfig(
            heartbeat_poll_s=float(_lookup(connection, ["heartbeat_poll_s"], default=1.0)),
            heartbeat_timeout_s=_opt_float(_lookup(connection, ["heartbeat_timeout_s"], default=None)),
            settle_s=float(_lookup(connection, ["settle_s"], default=1.0)),
        ),
        preflight=PreflightConfig(
            wait_health_ok=_as_bool(_lookup(preflight, ["wait_health_ok"], default=False), default=False),
            poll_s=float(_lookup(preflight, ["poll_s"], default=1.0)),
            timeout_s=_opt_float(_lookup(preflight, ["timeout_s"], default=None)),
            gyro_settle_s=float(_lookup(preflight, ["gyro_settle_s"], default=1.0)),
            first_sample_timeout_s=float(_lookup(preflight, ["first_sample_timeout_s"], default=5.0)),
        ),
        mission=MissionConfig(
            script=parse_waypoints(_lookup(mission, ["waypoints"], default=DEFAULT_WAYPOINTS)),
        ),
        descent=DescentConfig(
            height_m=_opt_float(_lookup(descent, ["height_m"], default=0.75)),
            steps=int(_lookup(descent, ["steps"], default=5)),
            offset_m=float(_lookup(descent, ["offset_m"], default=0.15)),
            step_delay_s=float(_lookup(descent, ["step_delay_s"], default=0.4)),
            touchdown=_setpoint(touchdown) if isinstance(touchdown, dict) else Setpoint(),
        ),
        landing=LandingConfig(
            poll_s=float(_lookup(landing, ["poll_s"], default=1.0)),
            grounded_timeout_s=_opt_float(_lookup(landing, ["grounded_timeout_s"], default=None)),
            stop_offboard_before_land=_as_bool(
                _lookup(landing, ["stop_offboard_before_land"], default=False), default=False
            ),
            post_disarm_watch_s=float(_lookup(landing, ["post_disarm_watch_s"], default=3.0)),
        ),
        logs=LogsConfig(
            dir=(base_dir / str(_lookup(logs, ["dir"], default="logs"))).resolve(),
            level=_log_level(_lookup(logs, ["level"], default="INFO")),
        ),
    )

    # rejects bad descent settings before anything connects
    build_descent_ramp(cfg.descent, cfg.mission.script)
    return cfg
