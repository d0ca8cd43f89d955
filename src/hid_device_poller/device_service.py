import logging
from collections.abc import Sequence

from . import app_config
from .device_locator import DeviceLocator
from .notification_sink import NotificationSink
from .polling_engine import PollingEngine, PollingState
from .transaction_channel import TransactionChannel

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


class DeviceService:
    """Provides an interface to the device: background polling plus on-demand commands."""

    def __init__(
        self,
        sink: NotificationSink,
        locator: DeviceLocator | None = None,
        channel: TransactionChannel | None = None,
        **engine_options,
    ) -> None:
        """Initializes the DeviceService and starts the (idle) polling loop.

        Args:
            sink: Receives one event per successful poll.
            locator: Device matcher; defaults to the configured UHK identifiers.
            channel: Transaction channel; built from `locator` when omitted.
            **engine_options: Passed through to PollingEngine (intervals, autostart).
        """
        self.locator = locator if locator is not None else DeviceLocator()
        self.channel = channel if channel is not None else TransactionChannel(self.locator)
        self.polling_engine = PollingEngine(self.channel, sink, **engine_options)
        logger.info("DeviceService initialized.")

    @property
    def polling_state(self) -> PollingState:
        return self.polling_engine.state

    def start_polling(self) -> None:
        self.polling_engine.enable()

    def stop_polling(self) -> None:
        """Stops polling; returns once no transaction is in flight.

        Waits for the poll loop to quiesce, then for any foreground
        send_command() that was already running.
        """
        self.polling_engine.disable()
        self.channel.wait_idle()

    def send_command(self, frame: Sequence[int] | bytes) -> bytes:
        """Sends one command outside the polling loop and returns the response.

        The channel serializes this with the poller, so it is safe to call while
        polling is enabled. Errors propagate to the caller; after close() this
        raises ChannelClosedError instead of reopening the device.
        """
        return self.channel.transact(frame)

    def close(self) -> None:
        """Shuts the polling loop down and closes the device. Safe to call twice."""
        self.polling_engine.shutdown()
        logger.debug("DeviceService closed.")
