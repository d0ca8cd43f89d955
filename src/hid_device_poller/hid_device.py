"""Handles raw HID read and write operations on one open device."""

import logging

import hid

from . import app_config
from .device_locator import DeviceDescriptor
from .exceptions import OpenFailedError, ReadTimedOutError, WriteFailedError

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


class DeviceHandle:
    """Owns one open hid.Device.

    Not safe for concurrent use: callers must serialize write/read pairs.
    """

    def __init__(self, hid_device: hid.Device, descriptor: DeviceDescriptor) -> None:
        self.hid_device: hid.Device | None = hid_device
        self.device_path_str: str = descriptor.path_str
        self.device_product_str: str = descriptor.product_string or "Unknown Product"

    @classmethod
    def open(cls, descriptor: DeviceDescriptor) -> "DeviceHandle":
        """Opens the device path described by `descriptor`.

        Raises:
            OpenFailedError: If hidapi cannot open the path. This happens when the
                device is unplugged between enumeration and open.
        """
        logger.info(
            "Attempting to open path: %s (PID: 0x%04x, UsagePage: 0x%04x, Usage: 0x%04x)",
            descriptor.path_str,
            descriptor.product_id,
            descriptor.usage_page,
            descriptor.usage,
        )
        try:
            hid_device = hid.Device(path=descriptor.path)
        except (hid.HIDException, OSError, ValueError) as e:
            logger.warning("Failed to open HID device path %s: %s", descriptor.path_str, e)
            raise OpenFailedError(path=descriptor.path) from e

        logger.info(
            "Successfully opened HID device: %s (Path: %s)",
            descriptor.product_string or "Unknown Product",
            descriptor.path_str,
        )
        return cls(hid_device, descriptor)

    @property
    def is_open(self) -> bool:
        return self.hid_device is not None

    def write(self, frame: bytes) -> None:
        """Writes one report. The first byte of `frame` is the report id."""
        if self.hid_device is None:
            raise WriteFailedError("Cannot write to a closed HID device.")

        logger.debug(
            "Writing HID report: %s to device %s (%s)",
            frame.hex(),
            self.device_product_str,
            self.device_path_str,
        )
        try:
            bytes_written = self.hid_device.write(frame)
        except hid.HIDException as e:
            logger.warning(
                "HID write error on device %s (%s): %s",
                self.device_product_str,
                self.device_path_str,
                e,
            )
            raise WriteFailedError(f"HID write error: {e}") from e

        logger.debug("Bytes written: %s", bytes_written)
        if bytes_written <= 0:
            raise WriteFailedError(f"HID write returned {bytes_written}")

    def read_with_timeout(
        self,
        timeout_ms: int = app_config.READ_TIMEOUT_MS,
        report_length: int = app_config.HID_REPORT_LENGTH,
    ) -> bytes:
        """Blocks until a report arrives or `timeout_ms` elapses.

        Raises:
            ReadTimedOutError: If nothing was received in time.
        """
        if self.hid_device is None:
            raise ReadTimedOutError("Cannot read from a closed HID device.")

        try:
            response_data = self.hid_device.read(report_length, timeout=timeout_ms)
        except hid.HIDException as e:
            # hidapi reports a vanished device as a read error; treat it like no answer
            logger.warning(
                "HID read error on device %s (%s): %s",
                self.device_product_str,
                self.device_path_str,
                e,
            )
            raise ReadTimedOutError(f"HID read error: {e}") from e

        if not response_data:
            raise ReadTimedOutError(timeout_ms=timeout_ms)

        logger.debug(
            "HID read successful from %s (%s): %s",
            self.device_product_str,
            self.device_path_str,
            bytes(response_data).hex(),
        )
        return bytes(response_data)

    def close(self) -> None:
        """Closes the device. Safe to call more than once."""
        if self.hid_device is None:
            logger.debug("Close called, but no HID device was open.")
            return

        logger.info("Closing HID device: %s", self.device_path_str)
        try:
            self.hid_device.close()
        except hid.HIDException:
            logger.exception("HIDException while closing HID device %s", self.device_path_str)
        finally:
            self.hid_device = None
