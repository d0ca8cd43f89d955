"""Background loop that periodically queries the device and reports its state."""

import enum
import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from . import app_config
from .exceptions import DevicePollerError
from .notification_sink import NotificationSink
from .transaction_channel import TransactionChannel

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


class EnginePhase(enum.Enum):
    IDLE = "idle"  # Polling not allowed, loop ticks without I/O
    ENABLED = "enabled"  # Polling allowed, between iterations
    POLLING = "polling"  # A transaction is in flight
    DRAINING = "draining"  # Shutting down, waiting for the in-flight poll
    STOPPED = "stopped"


@dataclass(frozen=True)
class PollingState:
    """Snapshot of the engine flags, taken under the engine lock."""

    allowed: bool
    active: bool
    shutting_down: bool


class PollingEngine:
    """Runs the polling loop on a daemon thread for the lifetime of the session.

    The loop starts on construction but performs no transaction until
    `enable()` is called. `disable()` and `shutdown()` return only once no
    poll transaction is in flight.
    """

    KEY_STATE = "state"
    KEY_RESPONSE_HEX = "response_hex"
    KEY_SEQUENCE = "sequence"

    def __init__(
        self,
        channel: TransactionChannel,
        sink: NotificationSink,
        *,
        poll_interval_ms: int = app_config.POLL_INTERVAL_MS,
        quiesce_backoff_ms: int = app_config.QUIESCE_BACKOFF_MS,
        query_frame: Sequence[int] = tuple(app_config.HID_CMD_GET_DEVICE_STATE),
        autostart: bool = True,
    ) -> None:
        self.channel = channel
        self.sink = sink
        self.poll_interval_s = poll_interval_ms / 1000
        self.quiesce_backoff_s = quiesce_backoff_ms / 1000
        self.query_frame = bytes(query_frame)

        self._cond = threading.Condition()
        self._allowed = False
        self._active = False
        self._shutting_down = False
        self._stopped = False
        self._shutdown_done = False
        self._sequence = 0

        self._thread: threading.Thread | None = None
        if autostart:
            self.start()

    @property
    def state(self) -> PollingState:
        with self._cond:
            return PollingState(
                allowed=self._allowed,
                active=self._active,
                shutting_down=self._shutting_down,
            )

    @property
    def phase(self) -> EnginePhase:
        with self._cond:
            if self._stopped:
                return EnginePhase.STOPPED
            if self._shutting_down:
                return EnginePhase.DRAINING
            if self._active:
                return EnginePhase.POLLING
            return EnginePhase.ENABLED if self._allowed else EnginePhase.IDLE

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Starts the loop thread. Does nothing if it is already running."""
        with self._cond:
            if self._stopped or self._shutting_down:
                logger.warning("PollingEngine start ignored: engine has been shut down.")
                return
            if self.is_running:
                return
            self._thread = threading.Thread(
                target=self._run,
                name="hid-device-poller",
                daemon=True,
            )
            self._thread.start()
        logger.info("PollingEngine loop started with interval %sms.", int(self.poll_interval_s * 1000))

    def enable(self) -> None:
        """Allows the loop to poll the device. Idempotent."""
        with self._cond:
            if self._allowed:
                logger.debug("enable: polling already allowed.")
                return
            if self._shutting_down:
                logger.warning("enable ignored: engine is shutting down.")
                return
            self._allowed = True
            self._cond.notify_all()
        logger.info("Start polling.")

    def disable(self) -> None:
        """Forbids polling and waits until no poll transaction is in flight."""
        with self._cond:
            self._allowed = False
            self._cond.notify_all()
            while self._active:
                if self._is_loop_thread():
                    # Called from within the poll (e.g. a sink callback); the
                    # iteration finishes as soon as this returns.
                    break
                self._cond.wait(self.quiesce_backoff_s)
        logger.info("Polling stopped.")

    def shutdown(self) -> None:
        """Stops polling for good and terminates the loop thread. Idempotent.

        A concurrent second call waits until the first one has finished.
        """
        with self._cond:
            if self._shutting_down:
                logger.debug("shutdown: engine already stopped or stopping.")
                while not self._shutdown_done and not self._is_loop_thread():
                    self._cond.wait(self.quiesce_backoff_s)
                return
            self._shutting_down = True

        logger.info("PollingEngine shutting down.")
        self.disable()

        thread = self._thread
        if thread is not None and thread.is_alive() and not self._is_loop_thread():
            thread.join(timeout=app_config.SHUTDOWN_JOIN_TIMEOUT_MS / 1000)
            if thread.is_alive():
                logger.error("Polling thread did not terminate within %sms.", app_config.SHUTDOWN_JOIN_TIMEOUT_MS)

        # Leaving the handle open would leak it until process exit.
        self.channel.close()

        with self._cond:
            self._stopped = True
            self._shutdown_done = True
            self._cond.notify_all()
        logger.info("PollingEngine stopped.")

    def _is_loop_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def _run(self) -> None:
        logger.debug("Polling loop running.")
        try:
            while True:
                with self._cond:
                    if self._shutting_down:
                        break
                    # Checked and claimed under one lock so disable() cannot miss this iteration.
                    poll_now = self._active = self._allowed

                if poll_now:
                    try:
                        self._poll_once()
                    finally:
                        with self._cond:
                            self._active = False
                            self._cond.notify_all()

                with self._cond:
                    if self._shutting_down:
                        break
                    self._cond.wait(self.poll_interval_s)
        except Exception:
            logger.exception("Polling loop terminated by an unexpected error.")
            with self._cond:
                self._allowed = False
                self._stopped = True
                self._cond.notify_all()
        logger.debug("Polling loop exiting.")

    def _poll_once(self) -> None:
        try:
            response = self.channel.transact(self.query_frame)
        except DevicePollerError as e:
            logger.warning("Error while polling the device: %s", e)
            return
        except Exception:
            logger.exception("Unexpected error while polling the device.")
            return

        self._sequence += 1
        event: dict[str, Any] = {
            self.KEY_STATE: {"data": "information"},
            self.KEY_RESPONSE_HEX: response.hex(),
            self.KEY_SEQUENCE: self._sequence,
        }
        self._deliver(event)

    def _deliver(self, event: dict[str, Any]) -> None:
        try:
            if not self.sink.is_available():
                logger.debug("Notification sink unavailable. Skipping delivery of event %s.", event[self.KEY_SEQUENCE])
                return
            self.sink.deliver(event)
        except RuntimeError as e:
            # Qt raises RuntimeError when the underlying C++ object was deleted.
            logger.debug("Notification sink went away during delivery: %s", e)
        except Exception:
            logger.exception("Notification sink failed to deliver event %s.", event[self.KEY_SEQUENCE])
