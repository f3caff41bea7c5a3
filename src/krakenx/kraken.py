"""
Kraken X driver: one device handle plus the protocol codec.

Usage:
    from krakenx import Kraken

    with Kraken.open() as kraken:
        status = kraken.read()
        print(status.liquid_temp_celsius, status.fan_rpm)
        kraken.set_fan_speed(40)
        kraken.set_pump_speed(80)
"""

import logging
import threading
from typing import Optional

from .constants import DEFAULT_BACKEND, DEFAULT_READ_TIMEOUT_MS, REPORT_SIZE
from .hid_device import HidTransport, KrakenHandle
from .protocol import (
    SpeedTarget,
    TelemetryReport,
    check_write,
    decode_report,
    encode_speed_command,
)

log = logging.getLogger(__name__)


class Kraken:
    """High-level access to one Kraken X.

    Every call is a single request/response with no retries.  Calls on one
    instance are serialized by an internal lock.
    """

    def __init__(self, handle: KrakenHandle,
                 timeout_ms: int = DEFAULT_READ_TIMEOUT_MS):
        self.handle = handle
        self.timeout_ms = timeout_ms
        self._lock = threading.Lock()

    @classmethod
    def open(cls, transport: Optional[HidTransport] = None, *,
             backend: str = DEFAULT_BACKEND,
             timeout_ms: int = DEFAULT_READ_TIMEOUT_MS) -> 'Kraken':
        return cls(KrakenHandle.open(transport, backend=backend), timeout_ms)

    def read(self) -> TelemetryReport:
        """Read and decode one status report.

        Raises:
            InsufficientData: Fewer than 15 bytes came back.
            TransportError: The read itself failed.
        """
        with self._lock:
            data = self.handle.receive(self.timeout_ms, REPORT_SIZE)
        report = decode_report(data, len(data))
        log.debug("Status: %s", report)
        return report

    def set_speed(self, target: SpeedTarget, percent: int) -> None:
        """Validate, encode and send a duty command for *target*.

        Range errors are raised before the device is touched.
        """
        command = encode_speed_command(target, percent)
        with self._lock:
            written = self.handle.transmit(command)
        check_write(written, len(command))
        log.info("Set %s speed to %d%%", target.value, percent)

    def set_fan_speed(self, percent: int) -> None:
        self.set_speed(SpeedTarget.FAN, percent)

    def set_pump_speed(self, percent: int) -> None:
        self.set_speed(SpeedTarget.PUMP, percent)

    def close(self) -> None:
        with self._lock:
            self.handle.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
