"""Discovers the target device among the attached HID interfaces."""

import logging
from dataclasses import dataclass
from typing import Any

import hid

from . import app_config
from .exceptions import DeviceNotFoundError

logger = logging.getLogger(f"{app_config.APP_NAME}.{__name__}")


@dataclass(frozen=True)
class DeviceDescriptor:
    """Identifies one enumerated HID interface. Only used to pick and open a device."""

    vendor_id: int
    product_id: int
    usage_page: int
    usage: int
    path: bytes
    product_string: str | None = None
    interface_number: int = -1

    @classmethod
    def from_hid_info(cls, dev_info: dict[str, Any]) -> "DeviceDescriptor":
        """Builds a descriptor from one entry of hid.enumerate()."""
        return cls(
            vendor_id=dev_info.get("vendor_id", 0),
            product_id=dev_info.get("product_id", 0),
            usage_page=dev_info.get("usage_page", 0),
            usage=dev_info.get("usage", 0),
            path=dev_info.get("path", b""),
            product_string=dev_info.get("product_string"),
            interface_number=dev_info.get("interface_number", -1),
        )

    @property
    def path_str(self) -> str:
        return self.path.decode("utf-8", errors="replace")


class DeviceLocator:
    """Selects the device matching the configured vendor/product ids and usage allow-list."""

    def __init__(
        self,
        vendor_id: int = app_config.UHK_VENDOR_ID,
        product_id: int = app_config.UHK_PRODUCT_ID,
        allowed_usages: tuple[tuple[int, int], ...] = app_config.ALLOWED_USAGES,
    ) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        self.allowed_usages = tuple(allowed_usages)

    def matches(self, dev_info: dict[str, Any]) -> bool:
        return (
            dev_info.get("vendor_id") == self.vendor_id
            and dev_info.get("product_id") == self.product_id
            and (dev_info.get("usage_page"), dev_info.get("usage")) in self.allowed_usages
        )

    def find_all(self) -> list[DeviceDescriptor]:
        """Returns every attached interface that matches, in enumeration order."""
        try:
            # hidapi filters on vid/pid; usage pairs are checked below.
            devices_enum = hid.enumerate(self.vendor_id, self.product_id)
        except hid.HIDException as e:
            logger.exception("Error enumerating HID devices: %s", e)
            return []

        matching = []
        for dev_info in devices_enum:
            if self.matches(dev_info):
                logger.debug(
                    "  Matching device: VID=0x%04x, PID=0x%04x, UsagePage=0x%04x, Usage=0x%04x, Path=%s",
                    dev_info["vendor_id"],
                    dev_info["product_id"],
                    dev_info.get("usage_page", 0),
                    dev_info.get("usage", 0),
                    dev_info.get("path", b"N/A").decode("utf-8", errors="replace"),
                )
                matching.append(DeviceDescriptor.from_hid_info(dev_info))
        logger.debug(
            "Found %d matching interfaces out of %d enumerated HID devices.",
            len(matching),
            len(devices_enum),
        )
        return matching

    def find(self) -> DeviceDescriptor:
        """Returns the first matching interface.

        Raises:
            DeviceNotFoundError: If no attached device matches.
        """
        matching = self.find_all()
        if not matching:
            raise DeviceNotFoundError
        if len(matching) > 1:
            logger.info(
                "%d matching interfaces attached, using the first one (%s).",
                len(matching),
                matching[0].path_str,
            )
        return matching[0]
