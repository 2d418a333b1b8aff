from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Sequence

import numpy as np

from offboard_position.flight.state import Setpoint, WaypointStep

if TYPE_CHECKING:
    from offboard_position.config.schemas import DescentConfig


@dataclass(frozen=True, slots=True)
class MissionScript:
    """Ordered waypoint list; insertion order is execution order."""

    steps: tuple[WaypointStep, ...]

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("MissionScript needs at least one waypoint")

    @classmethod
    def from_steps(cls, steps: Sequence[WaypointStep]) -> "MissionScript":
        return cls(tuple(steps))

    def __iter__(self) -> Iterator[WaypointStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def last_target(self) -> Setpoint:
        return self.steps[-1].target


@dataclass(frozen=True, slots=True)
class DescentRamp:
    """
    Linear glide from -height toward the ground, shifted up by offset.

    Step i commands down = -height + height / steps * i + offset for i in
    [0, steps). The full-height end state is excluded; the touchdown setpoint
    is sent separately after the ramp.
    """

    height_m: float
    steps: int
    offset_m: float
    step_delay_s: float
    north: float = 0.0
    east: float = 0.0
    yaw: float = 0.0
    _downs: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.steps <= 0:
            raise ValueError(f"steps must be > 0, got {self.steps}")
        if self.height_m < 0:
            raise ValueError(f"height_m must be >= 0, got {self.height_m}")
        if self.step_delay_s < 0:
            raise ValueError(f"step_delay_s must be >= 0, got {self.step_delay_s}")

        height = np.float32(self.height_m)
        increment = height / np.float32(self.steps)
        index = np.arange(self.steps, dtype=np.float32)
        downs = -height + increment * index + np.float32(self.offset_m)
        object.__setattr__(self, "_downs", downs.astype(np.float32))

    def __len__(self) -> int:
        return self.steps

    def __iter__(self) -> Iterator[Setpoint]:
        for down in self._downs:
            yield Setpoint(north=self.north, east=self.east, down=float(down), yaw=self.yaw)

    def downs(self) -> list[float]:
        return [float(d) for d in self._downs]


def build_descent_ramp(cfg: "DescentConfig", script: MissionScript) -> DescentRamp:
    last = script.last_target
    height = cfg.height_m if cfg.height_m is not None else abs(last.down)
    return DescentRamp(
        height_m=height,
        steps=cfg.steps,
        offset_m=cfg.offset_m,
        step_delay_s=cfg.step_delay_s,
        north=last.north,
        east=last.east,
        yaw=last.yaw,
    )
