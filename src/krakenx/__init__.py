"""
krakenx - NZXT Kraken X liquid cooler driver

Reads liquid temperature, fan/pump RPM and firmware version from an
NZXT Kraken X52/X62 (VID 1E71:170E) and sets fan/pump duty over USB HID.

Usage:
    # As a library
    from krakenx import Kraken
    with Kraken.open() as kraken:
        print(kraken.read())
        kraken.set_fan_speed(40)

    # Command line
    krakenx info          # All telemetry
    krakenx fan 40        # Set fan duty
    krakenx pump          # Show pump RPM
"""

from krakenx.__version__ import __version__
from krakenx.errors import (
    DeviceNotFound,
    FanSpeedOutOfRange,
    InsufficientData,
    KrakenError,
    ProtocolError,
    PumpSpeedOutOfRange,
    ShortWrite,
    SpeedOutOfRange,
    TransportError,
)
from krakenx.hid_device import HidTransport, KrakenHandle
from krakenx.kraken import Kraken
from krakenx.protocol import (
    SpeedCommand,
    SpeedTarget,
    TelemetryReport,
    decode_report,
    encode_speed_command,
)

__all__ = [
    "__version__",
    # Driver
    "Kraken",
    "KrakenHandle",
    "HidTransport",
    # Protocol
    "TelemetryReport",
    "SpeedTarget",
    "SpeedCommand",
    "decode_report",
    "encode_speed_command",
    # Errors
    "KrakenError",
    "ProtocolError",
    "InsufficientData",
    "SpeedOutOfRange",
    "FanSpeedOutOfRange",
    "PumpSpeedOutOfRange",
    "ShortWrite",
    "TransportError",
    "DeviceNotFound",
]
