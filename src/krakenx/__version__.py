"""krakenx version information."""

__version__ = "0.3.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Version history:
# 0.1.0 - Initial release: read telemetry, set fan/pump duty via hidapi
# 0.2.0 - Single Kraken class (dropped the duplicated draft drivers), typed
#         exceptions instead of a catch-all comms error, ShortWrite on
#         partial command writes
# 0.3.0 - pyusb backend, `krakenx detect`, config file + env overrides,
#         handle close()/context manager, -v/-vv debug logging
