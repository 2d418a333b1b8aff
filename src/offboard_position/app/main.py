from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Callable, Sequence

import yaml

from offboard_position.app.wiring import Vehicle, build_vehicle
from offboard_position.config.load import load_config
from offboard_position.config.schemas import PreflightConfig, SequencerConfig
from offboard_position.flight.errors import FailureKind, MissionAbort
from offboard_position.flight.sequencer import MissionSequencer, Sleep
from offboard_position.hw.endpoint import USAGE, parse_endpoint
from offboard_position.logging.logger import get_logger


async def preflight(telemetry, cfg: PreflightConfig, logger, sleep: Sleep = asyncio.sleep) -> None:
    if not await telemetry.wait_first_health(cfg.first_sample_timeout_s):
        logger.warning("[PREFLIGHT] No health sample after %.1fs", cfg.first_sample_timeout_s)
    health = telemetry.health()
    if health.gyrometer_calibration_ok:
        logger.info("[PREFLIGHT] Gyro is calibrated")
        await sleep(cfg.gyro_settle_s)

    if not cfg.wait_health_ok:
        return

    waited = 0.0
    while not telemetry.health().local_flight_ok:
        if cfg.timeout_s is not None and waited >= cfg.timeout_s:
            raise MissionAbort(
                FailureKind.CONNECTION_FAILURE,
                "Preflight health check",
                detail=f"{telemetry.health()} after {cfg.timeout_s:.1f}s",
            )
        logger.info("[PREFLIGHT] Waiting for system to be ready")
        await sleep(cfg.poll_s)
        waited += cfg.poll_s
    logger.info("[PREFLIGHT] System is ready")


async def run_mission(
    url: str,
    cfg: SequencerConfig,
    logger,
    vehicle_factory: Callable[..., Vehicle] | None = None,
    sleep: Sleep = asyncio.sleep,
) -> None:
    try:
        endpoint = parse_endpoint(url)
    except ValueError as exc:
        raise MissionAbort(FailureKind.CONNECTION_FAILURE, "Connection", detail=str(exc)) from exc

    vehicle = (vehicle_factory or build_vehicle)(logger)
    try:
        await vehicle.link.connect(endpoint.url)
        await vehicle.link.wait_heartbeat(
            cfg.connection.heartbeat_poll_s, timeout_s=cfg.connection.heartbeat_timeout_s
        )
    except Exception as exc:
        raise MissionAbort(FailureKind.CONNECTION_FAILURE, "Connection", detail=str(exc)) from exc

    await vehicle.telemetry.start()
    try:
        await sleep(cfg.connection.settle_s)
        await preflight(vehicle.telemetry, cfg.preflight, logger, sleep=sleep)

        sequencer = MissionSequencer(
            script=cfg.mission.script,
            descent=cfg.descent,
            landing=cfg.landing,
            logger=logger,
            commands=vehicle.commands,
            offboard=vehicle.offboard,
            telemetry=vehicle.telemetry,
            sleep=sleep,
        )
        await sequencer.run()

        # auto-disarm may still be pending; keep the telemetry link up a little longer
        await sleep(cfg.landing.post_disarm_watch_s)
        logger.info("Finished...")
    finally:
        await vehicle.telemetry.stop()


def main(argv: Sequence[str] | None = None, config_path: Path | None = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    prog = Path(argv[0]).name if argv else "offboard-position"
    if len(argv) != 2:
        print(USAGE.format(prog=prog))
        return 1

    try:
        cfg = load_config(config_path)
    except (OSError, KeyError, TypeError, ValueError, yaml.YAMLError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    logger = get_logger("offboard", cfg.logs.dir, cfg.logs.level)
    try:
        asyncio.run(run_mission(argv[1], cfg, logger))
    except MissionAbort as exc:
        logger.error("%s", exc.message)
        return 1
    except KeyboardInterrupt:
        logger.warning("Keyboard interrupt")
        return 130
    return 0


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
