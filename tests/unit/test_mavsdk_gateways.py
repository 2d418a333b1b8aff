import asyncio
import sys
import unittest
from pathlib import Path
from types import SimpleNamespace

SRC = Path(__file__).resolve().parents[2] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from mavsdk.action import ActionError, ActionResult  # noqa: E402
from mavsdk.offboard import OffboardError, OffboardResult  # noqa: E402

from offboard_position.flight.state import ResultCode, Setpoint  # noqa: E402
from offboard_position.hw.mavsdk_link import (  # noqa: E402
    MavsdkCommandGateway,
    MavsdkLink,
    MavsdkOffboardGateway,
)
from offboard_position.hw.telemetry import TelemetryCache  # noqa: E402


class _Log:
    def __init__(self):
        self.errors = []

    def info(self, *args, **kwargs):
        return None

    def debug(self, *args, **kwargs):
        return None

    def error(self, *args, **kwargs):
        self.errors.append(args)


def _ok():
    async def fn(*args):
        return None

    return fn


def _raise(exc):
    async def fn(*args):
        raise exc

    return fn


def _action_error(code, text):
    return ActionError(ActionResult(code, text), "arm()")


def _offboard_error(code, text):
    return OffboardError(OffboardResult(code, text), "start()")


class TestCommandGateway(unittest.IsolatedAsyncioTestCase):
    async def test_success(self):
        drone = SimpleNamespace(action=SimpleNamespace(arm=_ok(), land=_ok(), disarm=_ok()))
        gw = MavsdkCommandGateway(drone, _Log())
        self.assertTrue((await gw.arm()).ok)
        self.assertTrue((await gw.land()).ok)
        self.assertTrue((await gw.disarm()).ok)

    async def test_action_error_becomes_result(self):
        err = _action_error(ActionResult.Result.COMMAND_DENIED, "Command Denied")
        drone = SimpleNamespace(action=SimpleNamespace(arm=_raise(err), land=_ok(), disarm=_ok()))
        result = await MavsdkCommandGateway(drone, _Log()).arm()
        self.assertFalse(result.ok)
        self.assertEqual(result.code, ResultCode.COMMAND_DENIED)
        self.assertIn("Command denied", str(result))

    async def test_unmapped_code_is_unknown(self):
        err = _action_error(ActionResult.Result.PARAMETER_ERROR, "Parameter Error")
        drone = SimpleNamespace(action=SimpleNamespace(arm=_ok(), land=_raise(err), disarm=_ok()))
        result = await MavsdkCommandGateway(drone, _Log()).land()
        self.assertEqual(result.code, ResultCode.UNKNOWN)
        self.assertEqual(result.detail, "Parameter Error")


class TestOffboardGateway(unittest.IsolatedAsyncioTestCase):
    async def test_setpoint_is_forwarded_as_position_ned_yaw(self):
        sent = []

        async def set_position_ned(pos):
            sent.append(pos)

        drone = SimpleNamespace(offboard=SimpleNamespace(set_position_ned=set_position_ned))
        await MavsdkOffboardGateway(drone, _Log()).send_setpoint(Setpoint(0.2, 0.1, -0.75, 90.0))
        self.assertEqual(len(sent), 1)
        self.assertAlmostEqual(sent[0].north_m, 0.2)
        self.assertAlmostEqual(sent[0].east_m, 0.1)
        self.assertAlmostEqual(sent[0].down_m, -0.75)
        self.assertAlmostEqual(sent[0].yaw_deg, 90.0)

    async def test_rejected_setpoint_is_logged_not_raised(self):
        err = _offboard_error(OffboardResult.Result.NO_SYSTEM, "No system")
        log = _Log()
        drone = SimpleNamespace(offboard=SimpleNamespace(set_position_ned=_raise(err)))
        await MavsdkOffboardGateway(drone, log).send_setpoint(Setpoint())
        self.assertEqual(len(log.errors), 1)

    async def test_start_without_setpoint(self):
        err = _offboard_error(OffboardResult.Result.NO_SETPOINT_SET, "No Setpoint Set")
        drone = SimpleNamespace(offboard=SimpleNamespace(start=_raise(err), stop=_ok()))
        gw = MavsdkOffboardGateway(drone, _Log())
        result = await gw.start()
        self.assertEqual(result.code, ResultCode.NO_SETPOINT_SET)
        self.assertTrue((await gw.stop()).ok)


class TestMavsdkLink(unittest.IsolatedAsyncioTestCase):
    async def test_heartbeat_wait_returns_once_connected(self):
        async def connection_state():
            yield SimpleNamespace(is_connected=False)
            await asyncio.sleep(0.03)
            yield SimpleNamespace(is_connected=True)

        drone = SimpleNamespace(core=SimpleNamespace(connection_state=connection_state))
        await MavsdkLink(drone, _Log()).wait_heartbeat(0.01)

    async def test_heartbeat_timeout(self):
        async def connection_state():
            await asyncio.Event().wait()
            yield SimpleNamespace(is_connected=True)

        drone = SimpleNamespace(core=SimpleNamespace(connection_state=connection_state))
        with self.assertRaises(TimeoutError):
            await MavsdkLink(drone, _Log()).wait_heartbeat(0.01, timeout_s=0.05)

    async def test_heartbeat_stream_ending_is_an_error(self):
        async def connection_state():
            yield SimpleNamespace(is_connected=False)

        drone = SimpleNamespace(core=SimpleNamespace(connection_state=connection_state))
        with self.assertRaises(ConnectionError):
            await MavsdkLink(drone, _Log()).wait_heartbeat(0.01)


class TestTelemetryCache(unittest.IsolatedAsyncioTestCase):
    async def test_cache_tracks_latest_samples(self):
        landed = asyncio.Event()

        async def in_air():
            yield True
            await landed.wait()
            yield False

        async def health():
            yield SimpleNamespace(
                is_gyrometer_calibration_ok=True,
                is_accelerometer_calibration_ok=True,
                is_magnetometer_calibration_ok=True,
                is_local_position_ok=True,
            )

        drone = SimpleNamespace(telemetry=SimpleNamespace(in_air=in_air, health=health))
        cache = TelemetryCache(drone, _Log())
        self.assertTrue(cache.in_air())

        await cache.start()
        self.assertTrue(await cache.wait_first_health(timeout_s=1.0))
        self.assertTrue(cache.health().gyrometer_calibration_ok)
        self.assertTrue(cache.health().local_flight_ok)
        self.assertTrue(cache.in_air())

        landed.set()
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertFalse(cache.in_air())
        await cache.stop()

    async def test_stream_error_is_logged(self):
        async def broken():
            raise RuntimeError("link lost")
            yield  # pragma: no cover

        log = _Log()
        drone = SimpleNamespace(telemetry=SimpleNamespace(in_air=broken, health=broken))
        cache = TelemetryCache(drone, log)
        await cache.start()
        for _ in range(5):
            await asyncio.sleep(0)
        await cache.stop()
        self.assertEqual(len(log.errors), 2)


if __name__ == "__main__":
    unittest.main()
