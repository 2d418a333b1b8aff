from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit


SCHEMES = ("tcp", "udp", "serial")

USAGE = (
    "Usage : {prog} <connection_url>\n"
    "Connection URL format should be :\n"
    " For TCP : tcp://[server_host][:server_port]\n"
    " For UDP : udp://[bind_host][:bind_port]\n"
    " For Serial : serial:///path/to/serial/dev[:baudrate]\n"
    "For example, to connect to the simulator use URL: udp://:14540"
)


@dataclass(frozen=True, slots=True)
class Endpoint:
    url: str
    scheme: str
    host: str = ""
    port: int | None = None
    device: str = ""
    baudrate: int | None = None


def parse_endpoint(url: str) -> Endpoint:
    """Validate a connection URL before handing it to mavsdk."""
    scheme, sep, rest = url.partition("://")
    if not sep or scheme not in SCHEMES:
        raise ValueError(f"Unsupported connection URL: {url!r}")

    if scheme == "serial":
        device, _, baud_text = rest.partition(":")
        if not device.startswith("/") or len(device) < 2:
            raise ValueError(f"Serial URL needs an absolute device path: {url!r}")
        baudrate = None
        if baud_text:
            if not baud_text.isdigit():
                raise ValueError(f"Invalid baudrate in {url!r}")
            baudrate = int(baud_text)
        return Endpoint(url=url, scheme=scheme, device=device, baudrate=baudrate)

    parts = urlsplit(url)
    try:
        port = parts.port
    except ValueError as exc:
        raise ValueError(f"Invalid port in {url!r}") from exc
    if parts.path not in ("", "/"):
        raise ValueError(f"Unexpected path in {url!r}")
    return Endpoint(url=url, scheme=scheme, host=parts.hostname or "", port=port)
