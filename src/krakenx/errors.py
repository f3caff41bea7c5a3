"""Exception hierarchy for krakenx.

Protocol errors are raised by the codec and by the driver when a transfer
completes but does not carry enough bytes.  Transport errors wrap whatever
the USB library raised; the original exception is kept as ``__cause__``.
"""

from typing import Optional

from .constants import (
    COMMAND_SIZE,
    FAN_SPEED_MAX,
    FAN_SPEED_MIN,
    MIN_REPORT_LENGTH,
    PUMP_SPEED_MAX,
    PUMP_SPEED_MIN,
)


class KrakenError(Exception):
    """Base class for every error raised by krakenx."""


# =========================================================================
# Protocol errors
# =========================================================================

class ProtocolError(KrakenError):
    """The device exchange completed but violated the report/command layout."""


class InsufficientData(ProtocolError):
    """A read returned fewer bytes than a status report needs."""

    def __init__(self, received: int, required: int = MIN_REPORT_LENGTH):
        self.received = received
        self.required = required
        super().__init__("Did not receive enough data from the device")


class SpeedOutOfRange(ProtocolError):
    """A duty percentage outside the target's valid range."""

    label = "Speed"

    def __init__(self, percent, minimum: int, maximum: int):
        self.percent = percent
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"{self.label} speed must be between {minimum}% and {maximum}%"
        )


class FanSpeedOutOfRange(SpeedOutOfRange):
    label = "Fan"

    def __init__(self, percent):
        super().__init__(percent, FAN_SPEED_MIN, FAN_SPEED_MAX)


class PumpSpeedOutOfRange(SpeedOutOfRange):
    label = "Pump"

    def __init__(self, percent):
        super().__init__(percent, PUMP_SPEED_MIN, PUMP_SPEED_MAX)


class ShortWrite(ProtocolError):
    """The transport accepted the write but reported a partial transfer."""

    def __init__(self, written: int, expected: int = COMMAND_SIZE):
        self.written = written
        self.expected = expected
        super().__init__("Could not write all of the message to the device")


# =========================================================================
# Transport errors
# =========================================================================

class TransportError(KrakenError):
    """USB/HID I/O failure: unplugged device, permission denied, etc."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.__cause__ is not None:
            return f"{msg}: {self.__cause__}"
        return msg


class DeviceNotFound(TransportError):
    """No device matching the vendor/product pair is attached."""

    def __init__(self, vid: int, pid: int):
        self.vid = vid
        self.pid = pid
        super().__init__(f"Kraken device not found: VID={vid:#06x} PID={pid:#06x}")
