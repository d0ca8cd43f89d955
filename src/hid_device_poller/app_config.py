import os

# Application Details
APP_NAME = "UHK Device Poller"

# Device USB Identifiers
UHK_VENDOR_ID = 0x37A8
UHK_PRODUCT_ID = 0x0003

# The device is composite and exposes the command interface on two paths:
# the legacy vendor usage (128/129) and the modern one (0xFF00/0x01).
# Either (usage_page, usage) pair is accepted.
UHK_LEGACY_USAGE = (128, 129)
UHK_MODERN_USAGE = (65280, 1)
ALLOWED_USAGES = (
    UHK_LEGACY_USAGE,
    UHK_MODERN_USAGE,
)

# HID Report Details
# ------------------------------------------------------------------------------------
# Outbound frames are: report id byte + command id byte + payload.
# Inbound frames are: status byte + payload. Status 0x00 means success.
HID_REPORT_ID = 0x00
HID_REPORT_LENGTH = 64
HID_RESPONSE_STATUS_OK = 0x00

# --- Commands ---
HID_CMD_GET_DEVICE_STATE_ID = 0x09
HID_CMD_GET_DEVICE_STATE = [HID_REPORT_ID, HID_CMD_GET_DEVICE_STATE_ID]

# Timing (milliseconds)
POLL_INTERVAL_MS = 100  # Loop cadence, both idle and polling
READ_TIMEOUT_MS = 1000  # Max wait for a response after a write
WRITE_READ_DELAY_MS = 1  # Yield between write and read so other threads can run
QUIESCE_BACKOFF_MS = 100  # Re-check interval while waiting for a poll to finish
SHUTDOWN_JOIN_TIMEOUT_MS = 5000  # Upper bound for joining the polling thread

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
