"""Headless application shell wiring the device service into a Qt event loop."""

import logging
import sys
from typing import Any

from PySide6.QtCore import QCoreApplication, QObject, QTimer, Signal, Slot

from . import app_config
from . import device_service as dev_svc
from .notification_sink import QtNotificationSink

# Initialize logging
log_level = getattr(logging, app_config.LOG_LEVEL, logging.INFO)

logging.basicConfig(
    level=log_level,
    format=app_config.LOG_FORMAT,
    handlers=[logging.StreamHandler(sys.stdout)],  # Output to console
)
logger = logging.getLogger(app_config.APP_NAME)


class PollerBridge(QObject):
    """Carries the start signal to the service and counts state-change events."""

    start_polling_requested = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.state_changed_counter = 0

    @Slot(dict)
    def on_state_changed(self, event: dict[str, Any]) -> None:
        logger.info("State changed: %s", self.state_changed_counter)
        logger.debug("State change event: %s", event)
        self.state_changed_counter += 1


class DevicePollerApp:
    """Owns the Qt application, the notification sink and the device service."""

    qt_app: QCoreApplication

    def __init__(self) -> None:
        logger.info(
            "Application starting with log level %s",
            logging.getLevelName(logger.getEffectiveLevel()),
        )
        _q_instance = QCoreApplication.instance()
        self.qt_app = _q_instance if _q_instance is not None else QCoreApplication([])
        self.qt_app.setApplicationName(app_config.APP_NAME)

        self.sink = QtNotificationSink()
        self.bridge = PollerBridge()
        # Polling loop runs from here on, but stays idle until the start signal.
        self.device_service = dev_svc.DeviceService(sink=self.sink)

        self.sink.state_changed.connect(self.bridge.on_state_changed)
        self.bridge.start_polling_requested.connect(self.start_polling)
        self.qt_app.aboutToQuit.connect(self.close_device_service)

        # Ask for polling once the event loop is up.
        QTimer.singleShot(0, self.bridge.start_polling_requested.emit)

    def start_polling(self) -> None:
        logger.info("Start polling requested.")
        self.device_service.start_polling()

    def close_device_service(self) -> None:
        """Closes the device service; failures are logged, never raised."""
        logger.info("Application quitting.")
        try:
            self.device_service.close()
        except Exception:
            logger.exception("Error while closing DeviceService during application shutdown.")

    def run(self) -> int:
        """Starts the Qt application event loop."""
        return self.qt_app.exec()
