"""Shared constants for the NZXT Kraken X protocol.

Device identity, report sizes, the command header and the valid duty
ranges.  Everything here is immutable module-level configuration.
"""

# USB identity (NZXT Kraken X52/X62 generation)
NZXT_VID = 0x1E71
KRAKEN_X_PID = 0x170E

# =========================================================================
# Inbound status report
# =========================================================================

REPORT_SIZE = 64        # full HID input report
MIN_REPORT_LENGTH = 0x0F  # bytes needed to reach firmware patch (offset 0x0e)

# Field offsets into the status report.  16-bit fields are big-endian.
OFFSET_LIQUID_TEMP = 0x01
OFFSET_FAN_RPM = 0x03       # 0x03-0x04
OFFSET_PUMP_RPM = 0x05      # 0x05-0x06
OFFSET_FW_MAJOR = 0x0B
OFFSET_FW_MINOR = 0x0C      # 0x0c-0x0d
OFFSET_FW_PATCH = 0x0E

# =========================================================================
# Outbound speed command
# =========================================================================

# Shared by fan and pump; the device has no target byte.
SPEED_COMMAND_HEADER = bytes([0x02, 0x4D, 0x00, 0x00])
COMMAND_SIZE = len(SPEED_COMMAND_HEADER) + 1  # header + percent

# Valid duty ranges (inclusive)
FAN_SPEED_MIN = 25
FAN_SPEED_MAX = 100
PUMP_SPEED_MIN = 60
PUMP_SPEED_MAX = 100

# =========================================================================
# I/O
# =========================================================================

DEFAULT_READ_TIMEOUT_MS = 1000
DEFAULT_BACKEND = "hidapi"
BACKENDS = ("hidapi", "pyusb")

# pyusb backend (libusb): interface 0, configuration 1
USB_CONFIGURATION = 1
USB_INTERFACE = 0
EP_IN = 0x81
EP_OUT = 0x01
