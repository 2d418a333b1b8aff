from __future__ import annotations

import asyncio

from mavsdk import System

from offboard_position.flight.state import HealthFlags


class TelemetryCache:
    """Latest in-air and health samples, refreshed by background subscriptions."""

    def __init__(self, drone: System, logger):
        self._drone = drone
        self._logger = logger
        self._tasks: list[asyncio.Task] = []
        # unknown counts as airborne so a landing wait never ends early
        self._in_air: bool | None = None
        self._health = HealthFlags()
        self._health_seen = asyncio.Event()

    async def start(self) -> None:
        if self._tasks and not all(t.done() for t in self._tasks):
            return
        self._tasks = [
            asyncio.create_task(self._run_in_air(), name="telemetry-in-air"),
            asyncio.create_task(self._run_health(), name="telemetry-health"),
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run_in_air(self) -> None:
        try:
            async for in_air in self._drone.telemetry.in_air():
                self._in_air = bool(in_air)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.error("[TELEM] In-air stream stopped: %s", exc)

    async def _run_health(self) -> None:
        try:
            async for health in self._drone.telemetry.health():
                self._health = HealthFlags(
                    gyrometer_calibration_ok=bool(health.is_gyrometer_calibration_ok),
                    accelerometer_calibration_ok=bool(health.is_accelerometer_calibration_ok),
                    magnetometer_calibration_ok=bool(health.is_magnetometer_calibration_ok),
                    local_position_ok=bool(health.is_local_position_ok),
                )
                self._health_seen.set()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.error("[TELEM] Health stream stopped: %s", exc)

    async def wait_first_health(self, timeout_s: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._health_seen.wait(), timeout=timeout_s)
        except asyncio.TimeoutError:
            return False
        return True

    def health(self) -> HealthFlags:
        return self._health

    def in_air(self) -> bool:
        return self._in_air is not False
