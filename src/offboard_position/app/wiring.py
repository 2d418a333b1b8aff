from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class Vehicle:
    link: Any
    commands: Any
    offboard: Any
    telemetry: Any


def build_vehicle(logger) -> Vehicle:
    from mavsdk import System

    from offboard_position.hw.mavsdk_link import MavsdkCommandGateway, MavsdkLink, MavsdkOffboardGateway
    from offboard_position.hw.telemetry import TelemetryCache

    drone = System()
    return Vehicle(
        link=MavsdkLink(drone=drone, logger=logger),
        commands=MavsdkCommandGateway(drone=drone, logger=logger),
        offboard=MavsdkOffboardGateway(drone=drone, logger=logger),
        telemetry=TelemetryCache(drone=drone, logger=logger),
    )
