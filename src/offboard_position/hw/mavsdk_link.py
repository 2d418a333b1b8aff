from __future__ import annotations

import asyncio

from mavsdk import System
from mavsdk.action import ActionError
from mavsdk.offboard import OffboardError, PositionNedYaw

from offboard_position.flight.state import Result, ResultCode, Setpoint


def _result_from_error(exc: Exception) -> Result:
    sdk_result = getattr(exc, "_result", None)
    if sdk_result is None:
        return Result(ResultCode.UNKNOWN, str(exc))
    code = ResultCode.from_name(getattr(sdk_result.result, "name", str(sdk_result.result)))
    return Result(code, str(getattr(sdk_result, "result_str", "")))


class MavsdkLink:
    def __init__(self, drone: System, logger):
        self._drone = drone
        self._logger = logger

    async def connect(self, connection_string: str) -> None:
        self._logger.info("[MAVSDK] Connecting to %s", connection_string)
        await self._drone.connect(system_address=connection_string)

    async def wait_heartbeat(self, poll_s: float, timeout_s: float | None = None) -> None:
        async def _watch() -> bool:
            async for state in self._drone.core.connection_state():
                if state.is_connected:
                    return True
            return False

        loop = asyncio.get_running_loop()
        deadline = None if timeout_s is None else loop.time() + timeout_s
        watcher = asyncio.ensure_future(_watch())
        try:
            while True:
                done, _ = await asyncio.wait({watcher}, timeout=poll_s)
                if done:
                    if not watcher.result():
                        raise ConnectionError("Connection state stream ended before heartbeat")
                    break
                if deadline is not None and loop.time() >= deadline:
                    raise TimeoutError(f"No heartbeat after {timeout_s:.1f}s")
                self._logger.info("[MAVSDK] Waiting for system to connect via heartbeat")
        finally:
            if not watcher.done():
                watcher.cancel()
        self._logger.info("[MAVSDK] Connected")


class MavsdkCommandGateway:
    def __init__(self, drone: System, logger):
        self._drone = drone
        self._logger = logger

    async def _call(self, name: str, fn) -> Result:
        try:
            await fn()
        except ActionError as exc:
            result = _result_from_error(exc)
            self._logger.debug("[ACTION] %s -> %s", name, result)
            return result
        return Result.success()

    async def arm(self) -> Result:
        return await self._call("arm", self._drone.action.arm)

    async def land(self) -> Result:
        return await self._call("land", self._drone.action.land)

    async def disarm(self) -> Result:
        return await self._call("disarm", self._drone.action.disarm)


class MavsdkOffboardGateway:
    def __init__(self, drone: System, logger):
        self._drone = drone
        self._logger = logger

    async def send_setpoint(self, setpoint: Setpoint) -> None:
        try:
            await self._drone.offboard.set_position_ned(
                PositionNedYaw(setpoint.north, setpoint.east, setpoint.down, setpoint.yaw)
            )
        except OffboardError as exc:
            self._logger.error("[OFFBOARD] Setpoint %s rejected: %s", setpoint, _result_from_error(exc))

    async def start(self) -> Result:
        try:
            await self._drone.offboard.start()
        except OffboardError as exc:
            return _result_from_error(exc)
        return Result.success()

    async def stop(self) -> Result:
        try:
            await self._drone.offboard.stop()
        except OffboardError as exc:
            return _result_from_error(exc)
        return Result.success()
