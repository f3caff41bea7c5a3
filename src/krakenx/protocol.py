"""
Kraken X wire protocol: status report decoding and speed command encoding.

Pure functions only.  Nothing in this module touches a transport, so it
can be exercised without hardware and is safe to call from any thread.

Status report (device → host, 64 bytes, first 15 used)::

    [0]       reserved
    [1]       liquid temperature, whole °C
    [2]       reserved
    [3:5]     fan RPM    (big-endian u16)
    [5:7]     pump RPM   (big-endian u16)
    [7:11]    reserved
    [11]      firmware major
    [12:14]   firmware minor (big-endian u16)
    [14]      firmware patch

Speed command (host → device, 5 bytes)::

    [0x02, 0x4D, 0x00, 0x00, percent]

The command carries no fan/pump discriminator.  Fan and pump commands are
byte-identical and only differ by the range they are validated against.
"""

import struct
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Type

from .constants import (
    COMMAND_SIZE,
    FAN_SPEED_MAX,
    FAN_SPEED_MIN,
    MIN_REPORT_LENGTH,
    OFFSET_FAN_RPM,
    OFFSET_FW_MAJOR,
    OFFSET_FW_MINOR,
    OFFSET_FW_PATCH,
    OFFSET_LIQUID_TEMP,
    OFFSET_PUMP_RPM,
    PUMP_SPEED_MAX,
    PUMP_SPEED_MIN,
    SPEED_COMMAND_HEADER,
)
from .errors import (
    FanSpeedOutOfRange,
    InsufficientData,
    PumpSpeedOutOfRange,
    ShortWrite,
    SpeedOutOfRange,
)

_U16_BE = struct.Struct('>H')


# =========================================================================
# Data classes
# =========================================================================

@dataclass(frozen=True)
class TelemetryReport:
    """Decoded snapshot of one status report."""
    liquid_temp_celsius: int
    fan_rpm: int
    pump_rpm: int
    firmware_version: Tuple[int, int, int]  # (major, minor, patch)

    @property
    def firmware_string(self) -> str:
        return "%d.%d.%d" % self.firmware_version

    def as_dict(self) -> dict:
        return {
            'liquid_temp': self.liquid_temp_celsius,
            'fan_rpm': self.fan_rpm,
            'pump_rpm': self.pump_rpm,
            'firmware': self.firmware_string,
        }


class SpeedTarget(Enum):
    """Which actuator a speed command is meant for."""
    FAN = 'fan'
    PUMP = 'pump'

    @property
    def speed_range(self) -> Tuple[int, int]:
        return _SPEED_RANGES[self][:2]

    @property
    def error(self) -> Type[SpeedOutOfRange]:
        return _SPEED_RANGES[self][2]


_SPEED_RANGES = {
    SpeedTarget.FAN: (FAN_SPEED_MIN, FAN_SPEED_MAX, FanSpeedOutOfRange),
    SpeedTarget.PUMP: (PUMP_SPEED_MIN, PUMP_SPEED_MAX, PumpSpeedOutOfRange),
}


@dataclass(frozen=True)
class SpeedCommand:
    """Outbound duty-cycle request for one target."""
    target: SpeedTarget
    percent: int

    def encode(self) -> bytes:
        return encode_speed_command(self.target, self.percent)


# =========================================================================
# Decode
# =========================================================================

def decode_report(buffer: bytes, length: Optional[int] = None) -> TelemetryReport:
    """Decode a status report into a :class:`TelemetryReport`.

    Args:
        buffer: Raw report bytes (normally the 64-byte input report).
        length: Number of valid bytes in *buffer*, as reported by the
                transport.  Defaults to ``len(buffer)``.

    Raises:
        InsufficientData: If fewer than 15 valid bytes are available.
    """
    if length is None:
        length = len(buffer)
    # A length larger than the buffer cannot be trusted either
    length = min(length, len(buffer))
    if length < MIN_REPORT_LENGTH:
        raise InsufficientData(length)

    data = bytes(buffer[:MIN_REPORT_LENGTH])
    return TelemetryReport(
        liquid_temp_celsius=data[OFFSET_LIQUID_TEMP],
        fan_rpm=_U16_BE.unpack_from(data, OFFSET_FAN_RPM)[0],
        pump_rpm=_U16_BE.unpack_from(data, OFFSET_PUMP_RPM)[0],
        firmware_version=(
            data[OFFSET_FW_MAJOR],
            _U16_BE.unpack_from(data, OFFSET_FW_MINOR)[0],
            data[OFFSET_FW_PATCH],
        ),
    )


# =========================================================================
# Encode / validate
# =========================================================================

def validate_speed(target: SpeedTarget, percent) -> int:
    """Check *percent* against the target's inclusive range.

    Returns the percentage unchanged.  Anything that is not a plain int
    (floats, bools, strings) is rejected with the same range error.
    """
    low, high = target.speed_range
    if isinstance(percent, bool) or not isinstance(percent, int):
        raise target.error(percent)
    if not low <= percent <= high:
        raise target.error(percent)
    return percent


def encode_speed_command(target: SpeedTarget, percent) -> bytes:
    """Build the 5-byte speed command.

    Raises:
        FanSpeedOutOfRange: Fan percent outside 25-100.
        PumpSpeedOutOfRange: Pump percent outside 60-100.
    """
    percent = validate_speed(target, percent)
    return SPEED_COMMAND_HEADER + bytes([percent])


def check_write(written: int, expected: int = COMMAND_SIZE) -> None:
    """Raise :class:`ShortWrite` unless the transport wrote *expected* bytes."""
    if written != expected:
        raise ShortWrite(written, expected)
