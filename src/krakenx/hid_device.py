#!/usr/bin/env python3
"""
USB transport layer and device handle for the NZXT Kraken X.

The ``HidTransport`` ABC abstracts the raw report I/O so that:
  • Tests can inject a mock transport (no real hardware needed).
  • ``HidApiTransport`` provides real I/O via HIDAPI (default).
  • ``PyUsbTransport`` talks to the interrupt endpoints via pyusb.

``KrakenHandle`` owns exactly one opened transport and exposes two
primitives, ``receive()`` and ``transmit()``.  It never interprets the
bytes it moves; see ``protocol.py`` for that.

Linux dependencies:
  • hidapi: ``pip install hid``   (needs libhidapi: ``apt install libhidapi-hidraw0``)
  • pyusb:  ``pip install pyusb`` (needs libusb1: ``apt install libusb-1.0-0``)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import usb.core
import usb.util

from .constants import (
    DEFAULT_BACKEND,
    DEFAULT_READ_TIMEOUT_MS,
    EP_IN,
    EP_OUT,
    KRAKEN_X_PID,
    NZXT_VID,
    REPORT_SIZE,
    USB_CONFIGURATION,
    USB_INTERFACE,
)
from .errors import DeviceNotFound, TransportError

# hid needs the libhidapi shared library at import time
try:
    import hid as hidapi
    HIDAPI_AVAILABLE = True
except ImportError:
    HIDAPI_AVAILABLE = False

log = logging.getLogger(__name__)


# =========================================================================
# Abstract transport
# =========================================================================

class HidTransport(ABC):
    """Abstract report transport, mockable for testing."""

    @abstractmethod
    def open(self) -> None:
        """Open the device."""

    @abstractmethod
    def close(self) -> None:
        """Release the device."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Send one output report.  Returns bytes transferred."""

    @abstractmethod
    def read(self, length: int, timeout: int = DEFAULT_READ_TIMEOUT_MS) -> bytes:
        """Read one input report.  Returns b'' on timeout."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently open."""


# =========================================================================
# Real transport: HIDAPI
# =========================================================================

class HidApiTransport(HidTransport):
    """Transport using HIDAPI (``hid`` package, hidraw backend on Linux).

    The Kraken uses numbered reports, so the first byte of every
    outgoing buffer is already the report ID and is written as-is.
    """

    def __init__(self, vid: int = NZXT_VID, pid: int = KRAKEN_X_PID,
                 serial: Optional[str] = None):
        if not HIDAPI_AVAILABLE:
            raise ImportError(
                "hid is not installed or libhidapi is missing. "
                "Install with: pip install hid\n"
                "Also need libhidapi: apt install libhidapi-hidraw0 (Debian/Ubuntu) "
                "or dnf install hidapi (Fedora)"
            )
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._device = None
        self._is_open = False

    def open(self) -> None:
        """Open HID device by VID/PID."""
        if not hidapi.enumerate(self._vid, self._pid):
            raise DeviceNotFound(self._vid, self._pid)
        kwargs: dict[str, Any] = {'vid': self._vid, 'pid': self._pid}
        if self._serial:
            kwargs['serial'] = self._serial
        self._device = hidapi.Device(**kwargs)
        self._device.nonblocking = False
        self._is_open = True
        log.debug("Opened %04x:%04x via hidapi", self._vid, self._pid)

    def close(self) -> None:
        """Close HID device."""
        if self._device is not None:
            try:
                self._device.close()
            except Exception as e:
                log.debug("hidapi close: %s", e)
            self._device = None
        self._is_open = False

    def write(self, data: bytes) -> int:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        return self._device.write(bytes(data))

    def read(self, length: int, timeout: int = DEFAULT_READ_TIMEOUT_MS) -> bytes:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        data = self._device.read(length, timeout)
        return bytes(data) if data else b''

    @property
    def is_open(self) -> bool:
        return self._is_open


# =========================================================================
# Real transport: PyUSB  (libusb backend)
# =========================================================================

class PyUsbTransport(HidTransport):
    """Transport using pyusb interrupt transfers.

    Detaches the kernel HID driver from interface 0, claims it, and
    auto-detects the IN/OUT endpoints.  The kernel driver is not
    re-attached on close; replug the device to restore hidraw access.
    """

    def __init__(self, vid: int = NZXT_VID, pid: int = KRAKEN_X_PID,
                 serial: Optional[str] = None):
        self._vid = vid
        self._pid = pid
        self._serial = serial
        self._device = None
        self._is_open = False
        self._ep_out: Optional[int] = None
        self._ep_in: Optional[int] = None

    def open(self) -> None:
        kwargs: dict[str, Any] = {'idVendor': self._vid, 'idProduct': self._pid}
        if self._serial:
            kwargs['serial_number'] = self._serial

        self._device = usb.core.find(**kwargs)
        if self._device is None:
            raise DeviceNotFound(self._vid, self._pid)

        try:
            if self._device.is_kernel_driver_active(USB_INTERFACE):
                self._device.detach_kernel_driver(USB_INTERFACE)
                log.debug("Detached kernel driver from interface %d", USB_INTERFACE)
        except (usb.core.USBError, NotImplementedError) as e:
            log.debug("Kernel driver detach: %s", e)

        try:
            self._device.set_configuration(USB_CONFIGURATION)
            usb.util.claim_interface(self._device, USB_INTERFACE)
        except Exception:
            self.close()
            raise
        self._is_open = True
        self._detect_endpoints()
        log.debug("Opened %04x:%04x via pyusb", self._vid, self._pid)

    def close(self) -> None:
        if self._device is not None:
            try:
                usb.util.release_interface(self._device, USB_INTERFACE)
            except usb.core.USBError as e:
                log.debug("Release interface: %s", e)
            usb.util.dispose_resources(self._device)
            self._device = None
        self._is_open = False

    def _detect_endpoints(self) -> None:
        """Pick the first interrupt IN/OUT endpoints of interface 0."""
        try:
            cfg = self._device.get_active_configuration()
            intf = cfg[(USB_INTERFACE, 0)]
            for ep in intf:
                direction = usb.util.endpoint_direction(ep.bEndpointAddress)
                if direction == usb.util.ENDPOINT_OUT and self._ep_out is None:
                    self._ep_out = ep.bEndpointAddress
                elif direction == usb.util.ENDPOINT_IN and self._ep_in is None:
                    self._ep_in = ep.bEndpointAddress
            log.debug(
                "Auto-detected endpoints: OUT=0x%02x IN=0x%02x",
                self._ep_out or 0, self._ep_in or 0,
            )
        except (usb.core.USBError, KeyError) as e:
            log.debug("Endpoint auto-detection failed: %s", e)

    def write(self, data: bytes) -> int:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        ep = self._ep_out if self._ep_out is not None else EP_OUT
        return self._device.write(ep, bytes(data))

    def read(self, length: int, timeout: int = DEFAULT_READ_TIMEOUT_MS) -> bytes:
        if not self._is_open or self._device is None:
            raise RuntimeError("Transport not open")
        ep = self._ep_in if self._ep_in is not None else EP_IN
        try:
            data = self._device.read(ep, length, timeout=timeout)
        except usb.core.USBTimeoutError:
            return b''
        return bytes(data)

    @property
    def is_open(self) -> bool:
        return self._is_open


def make_transport(backend: str = DEFAULT_BACKEND, vid: int = NZXT_VID,
                   pid: int = KRAKEN_X_PID,
                   serial: Optional[str] = None) -> HidTransport:
    """Create an unopened transport for *backend* ('hidapi' or 'pyusb')."""
    if backend == 'hidapi':
        return HidApiTransport(vid, pid, serial)
    if backend == 'pyusb':
        return PyUsbTransport(vid, pid, serial)
    raise ValueError(f"Unknown transport backend: {backend}")


# =========================================================================
# Device handle
# =========================================================================

class KrakenHandle:
    """One opened channel to a Kraken X.

    Not safe for concurrent use; serialize access externally (the
    ``Kraken`` driver holds a lock per handle).  Use as a context manager
    or call ``close()`` to release the device.
    """

    def __init__(self, transport: HidTransport):
        self.transport = transport

    @classmethod
    def open(cls, transport: Optional[HidTransport] = None, *,
             backend: str = DEFAULT_BACKEND, vid: int = NZXT_VID,
             pid: int = KRAKEN_X_PID,
             serial: Optional[str] = None) -> 'KrakenHandle':
        """Locate the device and open it.

        Every call opens a fresh handle; nothing is cached.

        Raises:
            DeviceNotFound: No device with *vid*/*pid* is attached.
            TransportError: The device exists but could not be opened
                            (e.g. insufficient privilege).
        """
        if transport is None:
            try:
                transport = make_transport(backend, vid, pid, serial)
            except ImportError as e:
                raise TransportError(f"{backend} backend unavailable", e) from e
        try:
            transport.open()
        except Exception as e:
            # Release whatever a partial open acquired
            try:
                transport.close()
            except Exception as close_err:
                log.debug("Close after failed open: %s", close_err)
            if isinstance(e, TransportError):
                raise
            raise TransportError(
                f"Could not open device {vid:04x}:{pid:04x}", e) from e
        return cls(transport)

    @property
    def is_open(self) -> bool:
        return self.transport.is_open

    def receive(self, timeout_ms: int = DEFAULT_READ_TIMEOUT_MS,
                length: int = REPORT_SIZE) -> bytes:
        """Block up to *timeout_ms* for one input report.

        A short or empty result is returned as-is; the caller checks length.
        """
        self._check_open()
        try:
            data = self.transport.read(length, timeout_ms)
        except Exception as e:
            raise TransportError("Read from device failed", e) from e
        log.debug("RX %d bytes: %s", len(data), data.hex())
        return data

    def transmit(self, buffer: bytes) -> int:
        """Send *buffer* and return the number of bytes the transport wrote."""
        self._check_open()
        log.debug("TX %s", bytes(buffer).hex())
        try:
            return self.transport.write(buffer)
        except Exception as e:
            raise TransportError("Write to device failed", e) from e

    def close(self) -> None:
        try:
            self.transport.close()
        except Exception as e:
            raise TransportError("Could not release device", e) from e

    def _check_open(self) -> None:
        if not self.transport.is_open:
            raise TransportError("Device handle is closed")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
