"""
Tests for cli -- krakenx command-line interface argument parsing and dispatch.

Tests cover:
- main() with no args (prints help, returns 0)
- --version flag
- Subcommand dispatch (info, temp, fan, pump, detect) and global options
- fan/pump read vs. set, range errors rejected before the device is opened
- Error reporting and non-zero exit codes
"""

import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

from krakenx.cli import detect, fan, format_report, main, pump, show_info, show_temp
from krakenx.device_detector import DetectedDevice
from krakenx.errors import DeviceNotFound, InsufficientData, ShortWrite
from krakenx.protocol import SpeedTarget, TelemetryReport

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

REPORT = TelemetryReport(
    liquid_temp_celsius=33, fan_rpm=1100, pump_rpm=2650, firmware_version=(6, 0, 2))


def _mock_open(report=REPORT):
    """Patch target for cli._open: returns a context manager yielding a Kraken."""
    kraken = MagicMock()
    kraken.read.return_value = report
    ctx = MagicMock()
    ctx.__enter__.return_value = kraken
    return ctx, kraken


def _run(func, *args, **kwargs):
    buf = io.StringIO()
    with redirect_stdout(buf):
        rc = func(*args, **kwargs)
    return rc, buf.getvalue()


class TestMainEntryPoint(unittest.TestCase):
    """Test main() CLI dispatch."""

    def test_no_args_prints_help(self):
        rc, out = _run(main, [])
        self.assertEqual(rc, 0)
        self.assertIn("krakenx", out)

    def test_version(self):
        buf = io.StringIO()
        with redirect_stdout(buf), self.assertRaises(SystemExit) as cm:
            main(["--version"])
        self.assertEqual(cm.exception.code, 0)
        self.assertIn("krakenx", buf.getvalue())

    @patch("krakenx.cli.show_info", return_value=0)
    def test_info_dispatch(self, mock_info):
        self.assertEqual(main(["--backend", "pyusb", "--timeout", "250", "info"]), 0)
        mock_info.assert_called_once_with("pyusb", 250)

    @patch("krakenx.cli.show_temp", return_value=0)
    def test_temp_dispatch(self, mock_temp):
        main(["-b", "hidapi", "-t", "900", "temp"])
        mock_temp.assert_called_once_with("hidapi", 900)

    @patch("krakenx.cli.fan", return_value=0)
    def test_fan_set_dispatch(self, mock_fan):
        main(["-b", "hidapi", "-t", "1000", "fan", "40"])
        mock_fan.assert_called_once_with(40, "hidapi", 1000)

    @patch("krakenx.cli.fan", return_value=0)
    def test_fan_read_dispatch(self, mock_fan):
        main(["-b", "hidapi", "-t", "1000", "fan"])
        mock_fan.assert_called_once_with(None, "hidapi", 1000)

    @patch("krakenx.cli.pump", return_value=0)
    def test_pump_dispatch(self, mock_pump):
        main(["-b", "hidapi", "-t", "1000", "pump", "75"])
        mock_pump.assert_called_once_with(75, "hidapi", 1000)

    @patch("krakenx.cli.detect", return_value=0)
    def test_detect_dispatch(self, mock_detect):
        main(["-b", "pyusb", "detect"])
        mock_detect.assert_called_once_with("pyusb")

    @patch("krakenx.cli.show_info", return_value=0)
    @patch("krakenx.conf.get_read_timeout", return_value=1500)
    @patch("krakenx.conf.get_backend", return_value="pyusb")
    def test_defaults_from_config(self, mock_backend, mock_timeout, mock_info):
        main(["info"])
        mock_info.assert_called_once_with("pyusb", 1500)

    def test_bad_backend_rejected(self):
        with redirect_stdout(io.StringIO()), patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                main(["--backend", "serial", "info"])
        self.assertEqual(cm.exception.code, 2)

    @patch("krakenx.cli.show_info", return_value=0)
    def test_non_positive_timeout_rejected(self, mock_info):
        for value in ("0", "-5", "soon"):
            with self.subTest(value=value):
                stderr = io.StringIO()
                with patch("sys.stderr", stderr):
                    with self.assertRaises(SystemExit) as cm:
                        main(["--timeout", value, "info"])
                self.assertEqual(cm.exception.code, 2)
                self.assertIn("--timeout", stderr.getvalue())
        mock_info.assert_not_called()

    def test_non_integer_percent_rejected(self):
        with patch("sys.stderr", io.StringIO()):
            with self.assertRaises(SystemExit):
                main(["fan", "fast"])


class TestShowInfo(unittest.TestCase):

    @patch("krakenx.cli._open")
    def test_prints_all_fields(self, mock_open):
        mock_open.return_value, _ = _mock_open()
        rc, out = _run(show_info, "hidapi", 1000)
        self.assertEqual(rc, 0)
        self.assertIn("33 °C", out)
        self.assertIn("1100 rpm", out)
        self.assertIn("2650 rpm", out)
        self.assertIn("6.0.2", out)

    @patch("krakenx.cli._open", side_effect=DeviceNotFound(0x1E71, 0x170E))
    def test_device_missing(self, mock_open):
        rc, out = _run(show_info, "hidapi", 1000)
        self.assertEqual(rc, 1)
        self.assertIn("not found", out)

    @patch("krakenx.cli._open")
    def test_short_read(self, mock_open):
        ctx, kraken = _mock_open()
        kraken.read.side_effect = InsufficientData(3)
        mock_open.return_value = ctx
        rc, out = _run(show_info, "hidapi", 1000)
        self.assertEqual(rc, 1)
        self.assertIn("Did not receive enough data from the device", out)

    def test_format_report(self):
        lines = format_report(REPORT).splitlines()
        self.assertEqual(len(lines), 4)
        self.assertTrue(lines[0].startswith("Liquid temperature"))


class TestShowTemp(unittest.TestCase):

    @patch("krakenx.cli._open")
    def test_prints_temp(self, mock_open):
        mock_open.return_value, _ = _mock_open()
        rc, out = _run(show_temp, "hidapi", 1000)
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "33 °C")


class TestFanPump(unittest.TestCase):

    @patch("krakenx.cli._open")
    def test_fan_read(self, mock_open):
        mock_open.return_value, kraken = _mock_open()
        rc, out = _run(fan)
        self.assertEqual(rc, 0)
        self.assertEqual(out.strip(), "1100 rpm")
        kraken.set_speed.assert_not_called()

    @patch("krakenx.cli._open")
    def test_pump_read(self, mock_open):
        mock_open.return_value, _ = _mock_open()
        rc, out = _run(pump)
        self.assertEqual(out.strip(), "2650 rpm")

    @patch("krakenx.cli._open")
    def test_fan_set(self, mock_open):
        mock_open.return_value, kraken = _mock_open()
        rc, out = _run(fan, 40)
        self.assertEqual(rc, 0)
        kraken.set_speed.assert_called_once_with(SpeedTarget.FAN, 40)
        self.assertIn("Fan speed set to 40%", out)

    @patch("krakenx.cli._open")
    def test_pump_set(self, mock_open):
        mock_open.return_value, kraken = _mock_open()
        rc, out = _run(pump, 90)
        self.assertEqual(rc, 0)
        kraken.set_speed.assert_called_once_with(SpeedTarget.PUMP, 90)

    @patch("krakenx.cli._open")
    def test_fan_out_of_range_does_not_open_device(self, mock_open):
        rc, out = _run(fan, 10)
        self.assertEqual(rc, 1)
        self.assertIn("Fan speed must be between 25% and 100%", out)
        mock_open.assert_not_called()

    @patch("krakenx.cli._open")
    def test_pump_out_of_range_does_not_open_device(self, mock_open):
        rc, out = _run(pump, 30)
        self.assertEqual(rc, 1)
        self.assertIn("Pump speed must be between 60% and 100%", out)
        mock_open.assert_not_called()

    @patch("krakenx.cli._open")
    def test_short_write_reported(self, mock_open):
        ctx, kraken = _mock_open()
        kraken.set_speed.side_effect = ShortWrite(4)
        mock_open.return_value = ctx
        rc, out = _run(fan, 50)
        self.assertEqual(rc, 1)
        self.assertIn("Could not write all of the message", out)


class TestDetect(unittest.TestCase):

    @patch("krakenx.device_detector.find_kraken_devices")
    def test_lists_devices(self, mock_find):
        mock_find.return_value = [DetectedDevice(
            vid=0x1E71, pid=0x170E, product_name="Kraken X62",
            serial="ABC123", path="/dev/hidraw3", backend="hidapi")]
        rc, out = _run(detect, "hidapi")
        self.assertEqual(rc, 0)
        self.assertIn("[1] Kraken X62 [1e71:170e] /dev/hidraw3 (hidapi) serial=ABC123", out)

    @patch("krakenx.device_detector.find_kraken_devices", return_value=[])
    def test_none_found(self, mock_find):
        rc, out = _run(detect)
        self.assertEqual(rc, 1)
        self.assertIn("No Kraken X device detected", out)


if __name__ == "__main__":
    unittest.main()
