"""Tests for the DeviceHandle class."""

import unittest
from unittest.mock import MagicMock, patch

import hid
import pytest

from hid_device_poller.device_locator import DeviceDescriptor
from hid_device_poller.exceptions import OpenFailedError, ReadTimedOutError, WriteFailedError
from hid_device_poller.hid_device import DeviceHandle

MOCK_DESCRIPTOR = DeviceDescriptor(
    vendor_id=0x37A8,
    product_id=0x0003,
    usage_page=65280,
    usage=1,
    path=b"/dev/mock_hid_path",
    product_string="Mock UHK",
)


class TestDeviceHandleOpen(unittest.TestCase):
    """Tests opening a device path."""

    @patch("hid_device_poller.hid_device.hid.Device")
    def test_open_success(self, mock_hid_device_class: MagicMock) -> None:
        handle = DeviceHandle.open(MOCK_DESCRIPTOR)

        mock_hid_device_class.assert_called_once_with(path=b"/dev/mock_hid_path")
        assert handle.hid_device is mock_hid_device_class.return_value
        assert handle.is_open

    @patch("hid_device_poller.hid_device.hid.Device")
    def test_open_failure_raises_open_failed(self, mock_hid_device_class: MagicMock) -> None:
        """Device unplugged between enumeration and open."""
        mock_hid_device_class.side_effect = hid.HIDException("unable to open device")

        with pytest.raises(OpenFailedError) as exc_info:
            DeviceHandle.open(MOCK_DESCRIPTOR)
        assert exc_info.value.path == b"/dev/mock_hid_path"
        assert "/dev/mock_hid_path" in str(exc_info.value)


class TestDeviceHandleIO(unittest.TestCase):
    """Tests write, read and close on an open handle."""

    def setUp(self) -> None:
        self.logger_patcher = patch(
            f"{DeviceHandle.__module__}.logger",
            new_callable=MagicMock,
        )
        self.mock_logger = self.logger_patcher.start()
        self.addCleanup(self.logger_patcher.stop)

        self.mock_hid_device = MagicMock(spec=hid.Device)
        self.handle = DeviceHandle(self.mock_hid_device, MOCK_DESCRIPTOR)

    def test_write_success(self) -> None:
        self.mock_hid_device.write.return_value = 2

        self.handle.write(b"\x00\x09")

        self.mock_hid_device.write.assert_called_once_with(b"\x00\x09")
        self.mock_logger.debug.assert_any_call("Bytes written: %s", 2)

    def test_write_zero_bytes_raises(self) -> None:
        self.mock_hid_device.write.return_value = 0

        with pytest.raises(WriteFailedError):
            self.handle.write(b"\x00\x09")

    def test_write_hid_exception_raises(self) -> None:
        self.mock_hid_device.write.side_effect = hid.HIDException("Write error")

        with pytest.raises(WriteFailedError, match="Write error"):
            self.handle.write(b"\x00\x09")

    def test_read_success(self) -> None:
        self.mock_hid_device.read.return_value = b"\x00\x01\x02"

        response = self.handle.read_with_timeout(1000)

        assert response == b"\x00\x01\x02"
        self.mock_hid_device.read.assert_called_once_with(64, timeout=1000)

    def test_read_nothing_raises_timeout(self) -> None:
        """hidapi returns an empty buffer when the timeout elapses."""
        self.mock_hid_device.read.return_value = b""

        with pytest.raises(ReadTimedOutError) as exc_info:
            self.handle.read_with_timeout(1000)
        assert exc_info.value.timeout_ms == 1000

    def test_read_hid_exception_raises_timeout(self) -> None:
        self.mock_hid_device.read.side_effect = hid.HIDException("Read error")

        with pytest.raises(ReadTimedOutError):
            self.handle.read_with_timeout(1000)

    def test_close_is_idempotent(self) -> None:
        self.handle.close()
        self.handle.close()

        self.mock_hid_device.close.assert_called_once()
        assert not self.handle.is_open

    def test_close_swallows_hid_exception(self) -> None:
        self.mock_hid_device.close.side_effect = hid.HIDException("Close error")

        self.handle.close()

        assert self.handle.hid_device is None
        self.mock_logger.exception.assert_called_once()

    def test_write_after_close_raises(self) -> None:
        self.handle.close()

        with pytest.raises(WriteFailedError):
            self.handle.write(b"\x00\x09")
        with pytest.raises(ReadTimedOutError):
            self.handle.read_with_timeout(10)
