#!/usr/bin/env python3
"""
krakenx - Command Line Interface

Entry point for the krakenx package.
"""

import argparse
import logging
import sys

from .__version__ import __version__
from .constants import BACKENDS


def _setup_logging(verbose=0):
    """Configure logging based on -v count."""
    if verbose >= 2:
        logging.basicConfig(level=logging.DEBUG, format='[%(levelname)s] %(name)s: %(message)s')
        logging.getLogger('usb').setLevel(logging.WARNING)
    elif verbose == 1:
        logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING)


def _positive_int(value):
    """argparse type: integer greater than zero."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="krakenx",
        description="NZXT Kraken X liquid cooler control",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    krakenx info          Show temperature, fan/pump RPM and firmware
    krakenx temp          Show liquid temperature
    krakenx fan           Show fan RPM
    krakenx fan 40        Set fan duty to 40% (25-100)
    krakenx pump 80       Set pump duty to 80% (60-100)
    krakenx detect        List attached Kraken X devices
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)"
    )
    parser.add_argument(
        "--backend", "-b",
        choices=BACKENDS,
        help="USB transport backend (default: config file, then hidapi)"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=_positive_int,
        metavar="MS",
        help="Status read timeout in milliseconds (default: 1000)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show all telemetry")
    subparsers.add_parser("temp", help="Show liquid temperature")

    fan_parser = subparsers.add_parser("fan", help="Show fan RPM or set fan duty")
    fan_parser.add_argument("percent", type=int, nargs="?", help="Fan duty (25-100)")

    pump_parser = subparsers.add_parser("pump", help="Show pump RPM or set pump duty")
    pump_parser.add_argument("percent", type=int, nargs="?", help="Pump duty (60-100)")

    subparsers.add_parser("detect", help="List attached Kraken X devices")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    from .conf import get_backend, get_read_timeout
    backend = args.backend or get_backend()
    timeout = args.timeout or get_read_timeout()

    if args.command == "info":
        return show_info(backend, timeout)
    elif args.command == "temp":
        return show_temp(backend, timeout)
    elif args.command == "fan":
        return fan(args.percent, backend, timeout)
    elif args.command == "pump":
        return pump(args.percent, backend, timeout)
    elif args.command == "detect":
        return detect(backend)

    return 0


def _open(backend, timeout):
    from .kraken import Kraken
    return Kraken.open(backend=backend, timeout_ms=timeout)


def _read_status(backend, timeout):
    with _open(backend, timeout) as kraken:
        return kraken.read()


def format_report(report):
    """Format a TelemetryReport as aligned lines."""
    return "\n".join([
        f"Liquid temperature  {report.liquid_temp_celsius} °C",
        f"Fan speed           {report.fan_rpm} rpm",
        f"Pump speed          {report.pump_rpm} rpm",
        f"Firmware version    {report.firmware_string}",
    ])


def show_info(backend, timeout):
    """Print every telemetry field."""
    from .errors import KrakenError
    try:
        print(format_report(_read_status(backend, timeout)))
        return 0
    except KrakenError as e:
        print(f"Error: {e}")
        return 1


def show_temp(backend, timeout):
    """Print liquid temperature."""
    from .errors import KrakenError
    try:
        report = _read_status(backend, timeout)
        print(f"{report.liquid_temp_celsius} °C")
        return 0
    except KrakenError as e:
        print(f"Error: {e}")
        return 1


def _speed(target, percent, backend, timeout):
    from .errors import KrakenError
    from .protocol import SpeedTarget, validate_speed
    try:
        if percent is None:
            report = _read_status(backend, timeout)
            rpm = report.fan_rpm if target is SpeedTarget.FAN else report.pump_rpm
            print(f"{rpm} rpm")
            return 0

        # Reject bad input before opening the device
        validate_speed(target, percent)
        with _open(backend, timeout) as kraken:
            kraken.set_speed(target, percent)
        print(f"{target.value.capitalize()} speed set to {percent}%")
        return 0
    except KrakenError as e:
        print(f"Error: {e}")
        return 1


def fan(percent=None, backend="hidapi", timeout=1000):
    """Read fan RPM, or set fan duty when *percent* is given."""
    from .protocol import SpeedTarget
    return _speed(SpeedTarget.FAN, percent, backend, timeout)


def pump(percent=None, backend="hidapi", timeout=1000):
    """Read pump RPM, or set pump duty when *percent* is given."""
    from .protocol import SpeedTarget
    return _speed(SpeedTarget.PUMP, percent, backend, timeout)


def detect(backend="hidapi"):
    """List attached Kraken X devices."""
    from .device_detector import find_kraken_devices
    from .errors import KrakenError
    try:
        devices = find_kraken_devices(backend)
    except KrakenError as e:
        print(f"Error: {e}")
        return 1

    if not devices:
        print("No Kraken X device detected.")
        return 1

    for i, dev in enumerate(devices, 1):
        serial = f" serial={dev.serial}" if dev.serial else ""
        print(f"[{i}] {dev.product_name} [{dev.vid:04x}:{dev.pid:04x}] "
              f"{dev.path} ({dev.backend}){serial}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
