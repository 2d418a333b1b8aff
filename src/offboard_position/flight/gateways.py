from __future__ import annotations

from typing import Protocol

from offboard_position.flight.state import HealthFlags, Result, Setpoint


class CommandGateway(Protocol):
    async def arm(self) -> Result: ...

    async def land(self) -> Result: ...

    async def disarm(self) -> Result: ...


class OffboardGateway(Protocol):
    async def send_setpoint(self, setpoint: Setpoint) -> None: ...

    async def start(self) -> Result: ...

    async def stop(self) -> Result: ...


class TelemetryGateway(Protocol):
    def health(self) -> HealthFlags: ...

    def in_air(self) -> bool: ...
