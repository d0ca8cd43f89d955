"""Main entry point for the UHK device poller."""

import signal
import sys

import verboselogs

from hid_device_poller.app import DevicePollerApp


def main() -> None:
    """Runs the main application."""
    # Graceful exit on Ctrl+C
    signal.signal(signal.SIGINT, signal.SIG_DFL)

    # Install verboselogs custom levels. This must be done before DevicePollerApp is instantiated.
    verboselogs.install()
    application = DevicePollerApp()
    sys.exit(application.run())


if __name__ == "__main__":
    main()
