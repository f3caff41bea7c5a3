#!/usr/bin/env python3
"""
Kraken X device detector.

Lists attached NZXT Kraken X coolers without opening them:
- NZXT Kraken X52/X62: VID=0x1E71, PID=0x170E
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import usb.core
import usb.util

from .constants import DEFAULT_BACKEND, KRAKEN_X_PID, NZXT_VID
from .errors import TransportError
from .hid_device import HIDAPI_AVAILABLE

if HIDAPI_AVAILABLE:
    import hid as hidapi

log = logging.getLogger(__name__)


@dataclass
class DetectedDevice:
    """An attached Kraken found by enumeration."""
    vid: int
    pid: int
    product_name: str
    serial: str = ""
    path: str = ""       # hidraw path or "bus-address"
    backend: str = DEFAULT_BACKEND


def _find_with_hidapi(vid: int, pid: int) -> List[DetectedDevice]:
    devices = []
    for info in hidapi.enumerate(vid, pid):
        path = info.get('path') or b''
        if isinstance(path, bytes):
            path = path.decode(errors='replace')
        devices.append(DetectedDevice(
            vid=vid,
            pid=pid,
            product_name=info.get('product_string') or "Kraken X",
            serial=info.get('serial_number') or "",
            path=path,
            backend='hidapi',
        ))
    return devices


def _usb_string(dev, index: int) -> Optional[str]:
    if not index:
        return None
    try:
        return usb.util.get_string(dev, index)
    except (usb.core.USBError, ValueError) as e:
        # Usually a permission problem; the device is still usable via hidraw
        log.debug("Could not read USB string %d: %s", index, e)
        return None


def _find_with_pyusb(vid: int, pid: int) -> List[DetectedDevice]:
    devices = []
    for dev in usb.core.find(find_all=True, idVendor=vid, idProduct=pid):
        devices.append(DetectedDevice(
            vid=vid,
            pid=pid,
            product_name=_usb_string(dev, dev.iProduct) or "Kraken X",
            serial=_usb_string(dev, dev.iSerialNumber) or "",
            path=f"{dev.bus}-{dev.address}",
            backend='pyusb',
        ))
    return devices


def find_kraken_devices(backend: str = DEFAULT_BACKEND,
                        vid: int = NZXT_VID,
                        pid: int = KRAKEN_X_PID) -> List[DetectedDevice]:
    """Enumerate attached Kraken X devices.

    Uses hidapi when requested and available, otherwise pyusb.
    """
    if backend == 'hidapi' and HIDAPI_AVAILABLE:
        devices = _find_with_hidapi(vid, pid)
    else:
        if backend == 'hidapi':
            log.debug("hidapi unavailable, enumerating with pyusb")
        try:
            devices = _find_with_pyusb(vid, pid)
        except usb.core.NoBackendError as e:
            raise TransportError("No libusb backend available", e) from e

    log.info("Detected %d Kraken device(s)", len(devices))
    return devices
