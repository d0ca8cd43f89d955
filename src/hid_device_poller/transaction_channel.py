"""Performs write-then-read transactions against the device, reopening it after failures."""

import logging
import threading
import time
from collections.abc import Callable, Sequence

from . import app_config
from .device_locator import DeviceDescriptor, DeviceLocator
from .exceptions import ChannelClosedError, CommunicationError
from .hid_device import DeviceHandle

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


class TransactionChannel:
    """Single-flight request/response channel to the device.

    The channel lazily opens a DeviceHandle through the locator. Any failure
    while transacting closes and drops the handle, so the next call starts
    again from discovery.
    """

    def __init__(
        self,
        locator: DeviceLocator | None = None,
        handle_factory: Callable[[DeviceDescriptor], DeviceHandle] = DeviceHandle.open,
        *,
        read_timeout_ms: int = app_config.READ_TIMEOUT_MS,
        write_read_delay_ms: int = app_config.WRITE_READ_DELAY_MS,
    ) -> None:
        self.locator = locator if locator is not None else DeviceLocator()
        self._handle_factory = handle_factory
        self._handle: DeviceHandle | None = None
        self.read_timeout_ms = read_timeout_ms
        self.write_read_delay_ms = write_read_delay_ms
        # Held for the whole transaction; the handle cannot interleave two exchanges.
        self._lock = threading.Lock()
        self._closed = False

    @property
    def has_open_handle(self) -> bool:
        return self._handle is not None

    def _get_handle(self) -> DeviceHandle:
        if self._handle is None:
            logger.debug("No open device handle. Discovering device.")
            descriptor = self.locator.find()
            self._handle = self._handle_factory(descriptor)
        return self._handle

    def _invalidate(self) -> None:
        if self._handle is not None:
            logger.debug("Invalidating device handle after a failed transaction.")
            handle, self._handle = self._handle, None
            handle.close()

    def transact(self, request_frame: Sequence[int] | bytes) -> bytes:
        """Sends `request_frame` and returns the device's response.

        Raises:
            DeviceNotFoundError: No matching device is attached.
            OpenFailedError: The device could not be opened.
            WriteFailedError: The request could not be written.
            ReadTimedOutError: No response within the read timeout.
            CommunicationError: The response status byte was not 0.
            ChannelClosedError: close() was called; the device is not reopened.
        """
        frame = bytes(request_frame)
        with self._lock:
            if self._closed:
                raise ChannelClosedError
            try:
                handle = self._get_handle()
                handle.write(frame)
                # Let other threads run before blocking on the read.
                time.sleep(self.write_read_delay_ms / 1000)
                response = handle.read_with_timeout(self.read_timeout_ms)
                if response[0] != app_config.HID_RESPONSE_STATUS_OK:
                    raise CommunicationError(response[0])
            except Exception:
                self._invalidate()
                raise
            return response

    @property
    def is_closed(self) -> bool:
        return self._closed

    def wait_idle(self) -> None:
        """Returns once no transaction is in flight."""
        with self._lock:
            pass

    def close(self) -> None:
        """Closes the current handle, if any, and refuses further transactions."""
        with self._lock:
            self._closed = True
            if self._handle is None:
                logger.debug("TransactionChannel close: no handle open.")
                return
            handle, self._handle = self._handle, None
            handle.close()
