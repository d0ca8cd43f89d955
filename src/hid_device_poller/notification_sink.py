"""Destinations for device state-change events."""

import abc
import logging
from collections.abc import Callable
from typing import Any

import shiboken6
from PySide6.QtCore import QObject, Signal

from . import app_config

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


class NotificationSink(abc.ABC):
    """Abstract receiver of state-change events produced by the polling engine."""

    @abc.abstractmethod
    def deliver(self, event: dict[str, Any]) -> None:
        """Delivers one state-change event."""

    def is_available(self) -> bool:
        """Returns False once the consumer behind the sink is gone."""
        return True


class QtNotificationSink(QObject):
    """Forwards events to Qt consumers through the `state_changed` signal.

    Emitting from the polling thread is fine: Qt queues the call to receivers
    living in other threads. Registered as a virtual NotificationSink subclass
    since QObject's metaclass does not mix with ABCMeta.
    """

    state_changed = Signal(dict)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)

    def is_available(self) -> bool:
        # The C++ side is destroyed when the parent (e.g. a window) goes away.
        return shiboken6.isValid(self)

    def deliver(self, event: dict[str, Any]) -> None:
        logger.debug("Emitting state_changed: %s", event)
        self.state_changed.emit(event)


NotificationSink.register(QtNotificationSink)


class CallbackNotificationSink(NotificationSink):
    """Calls a plain function for each event. Handy for scripts and tests."""

    def __init__(self, callback: Callable[[dict[str, Any]], None]) -> None:
        self._callback = callback
        self._closed = False

    def close(self) -> None:
        self._closed = True

    def is_available(self) -> bool:
        return not self._closed

    def deliver(self, event: dict[str, Any]) -> None:
        self._callback(event)
