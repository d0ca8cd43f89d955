"""Custom exceptions for the UHK device poller."""


class DevicePollerError(Exception):
    """Base exception for device poller errors."""
    def __init__(self, message: str | None = None, *args: object) -> None:
        if message is not None:
            super().__init__(message, *args)
        else:
            # Subclasses provide default_message when no message is passed
            super().__init__(self.default_message if hasattr(self, "default_message") else "An unspecified error occurred.", *args)


class DeviceNotFoundError(DevicePollerError):
    """No attached HID device matched the configured identifiers."""
    default_message = "Device not found."


class OpenFailedError(DevicePollerError):
    """The OS refused to open the device path (e.g. it was unplugged after enumeration)."""
    default_message = "Failed to open HID device."

    def __init__(self, message: str | None = None, path: bytes | None = None) -> None:
        if message is None and path is not None:
            message = f"Failed to open HID device at {path.decode('utf-8', errors='replace')}"
        super().__init__(message)
        self.path = path


class WriteFailedError(DevicePollerError):
    """Writing a report to the device failed."""
    default_message = "Failed to write HID report."


class ReadTimedOutError(DevicePollerError):
    """No response arrived within the read timeout."""
    default_message = "Timed out waiting for HID response."

    def __init__(self, message: str | None = None, timeout_ms: int | None = None) -> None:
        if message is None and timeout_ms is not None:
            message = f"No HID response received within {timeout_ms}ms"
        super().__init__(message)
        self.timeout_ms = timeout_ms


class CommunicationError(DevicePollerError):
    """The device answered with a non-zero status byte."""

    def __init__(self, code: int) -> None:
        super().__init__(f"Communications error with UHK. Response code: {code}")
        self.code = code


class ChannelClosedError(DevicePollerError):
    """The transaction channel was closed for good and accepts no more requests."""
    default_message = "Transaction channel is closed."
