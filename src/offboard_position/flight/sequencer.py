from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

from offboard_position.config.schemas import DescentConfig, LandingConfig
from offboard_position.flight.errors import FailureKind, MissionAbort
from offboard_position.flight.gateways import CommandGateway, OffboardGateway, TelemetryGateway
from offboard_position.flight.script import MissionScript, build_descent_ramp
from offboard_position.flight.state import MissionPhase, Result, Setpoint


Sleep = Callable[[float], Awaitable[None]]


class MissionSequencer:
    """
    Drives one scripted offboard flight:
    prime -> arm -> offboard start -> waypoints -> descent ramp -> land
    -> wait grounded -> disarm.

    Every gateway result except disarm's is checked at the call site and a
    failure raises MissionAbort; nothing later in the sequence runs after that.
    """

    def __init__(
        self,
        script: MissionScript,
        descent: DescentConfig,
        landing: LandingConfig,
        logger,
        commands: CommandGateway,
        offboard: OffboardGateway,
        telemetry: TelemetryGateway,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.script = script
        self.ramp = build_descent_ramp(descent, script)
        self.touchdown = descent.touchdown
        self.landing_cfg = landing
        self.logger = logger
        self._commands = commands
        self._offboard = offboard
        self._telemetry = telemetry
        self._sleep = sleep
        self._clock = clock
        self.phase = MissionPhase.INIT
        self.grounded_polls = 0

    def log(self, msg: str, *args) -> None:
        self.logger.info("[%s] " + msg, self.phase.value, *args)

    def _enter(self, phase: MissionPhase) -> None:
        self.phase = phase

    def _require(self, result: Result, operation: str, kind: FailureKind) -> None:
        if not result.ok:
            self._enter(MissionPhase.ABORT)
            raise MissionAbort(kind, operation, result)

    async def _send(self, setpoint: Setpoint) -> None:
        await self._offboard.send_setpoint(setpoint)

    async def prime(self) -> None:
        self._enter(MissionPhase.INIT)
        # offboard start is rejected until at least one setpoint is streaming
        await self._send(Setpoint())
        self.log("Priming setpoint sent")

    async def arm(self) -> None:
        self._enter(MissionPhase.ARMED)
        self.log("Arming")
        self._require(await self._commands.arm(), "Arming", FailureKind.COMMAND_FAILURE)
        self.log("Armed")

    async def start_offboard(self) -> None:
        self._enter(MissionPhase.OFFBOARD_ACTIVE)
        self._require(await self._offboard.start(), "Offboard start", FailureKind.MODE_FAILURE)
        self.log("Offboard started")

    async def fly_waypoints(self) -> None:
        self._enter(MissionPhase.WAYPOINTS)
        for idx, step in enumerate(self.script):
            self.log("Going to %s (step %d/%d, hold %.2fs)", step.target, idx + 1, len(self.script), step.hold_s)
            await self._send(step.target)
            await self._sleep(step.hold_s)

    async def descend(self) -> None:
        self._enter(MissionPhase.DESCENT)
        self.log(
            "Interpolating descent height=%.2fm steps=%d offset=%.2fm",
            self.ramp.height_m,
            self.ramp.steps,
            self.ramp.offset_m,
        )
        for setpoint in self.ramp:
            await self._send(setpoint)
            self.log("down=%.3f", setpoint.down)
            await self._sleep(self.ramp.step_delay_s)

        self.log("Going to %s", self.touchdown)
        await self._send(self.touchdown)

    async def land(self) -> None:
        self._enter(MissionPhase.LANDING)
        if self.landing_cfg.stop_offboard_before_land:
            self._require(await self._offboard.stop(), "Offboard stop", FailureKind.MODE_FAILURE)
            self.log("Offboard stopped")
        self._require(await self._commands.land(), "Landing", FailureKind.COMMAND_FAILURE)
        self.log("Land command accepted")

    async def wait_grounded(self) -> None:
        self._enter(MissionPhase.WAIT_GROUNDED)
        timeout_s = self.landing_cfg.grounded_timeout_s
        started = self._clock()
        self.grounded_polls = 0

        while True:
            self.grounded_polls += 1
            if not self._telemetry.in_air():
                break
            if timeout_s is not None and self._clock() - started >= timeout_s:
                self._enter(MissionPhase.ABORT)
                raise MissionAbort(
                    FailureKind.GROUNDED_TIMEOUT,
                    "Waiting for touchdown",
                    detail=f"still in air after {timeout_s:.1f}s",
                )
            self.log("Vehicle is landing...")
            await self._sleep(self.landing_cfg.poll_s)

        self.log("Landed!")

    async def disarm(self) -> None:
        self._enter(MissionPhase.DISARM)
        result = await self._commands.disarm()
        if result.ok:
            self.log("Disarmed")
        else:
            # auto-disarm may already have fired
            self.logger.warning("[%s] Disarm failed: %s; relying on auto-disarm", self.phase.value, result)

    async def run(self) -> None:
        await self.prime()
        await self.arm()
        await self.start_offboard()
        await self.fly_waypoints()
        await self.descend()
        await self.land()
        await self.wait_grounded()
        await self.disarm()
        self._enter(MissionPhase.DONE)
        self.log("Mission complete")
