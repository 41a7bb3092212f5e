"""Device, WiFi, MQTT and web app settings and their persistence."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from .util import copy_bounded

CONFIG_KEY_WIFI = "wifi"
CONFIG_KEY_OLD_WIFI = "wifi_old"
CONFIG_KEY_MQTT = "mqtt"
CONFIG_KEY_OLD_MQTT = "mqtt_old"
CONFIG_KEY_WEBAPP_ROOT = "webapp_root"

DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_HOST = "192.168.0.113"
DEFAULT_MQTT_BROKER = "test"
DEFAULT_MQTT_USER = "homeassistant"
DEFAULT_MQTT_PASS = "password"
DEFAULT_WEBAPP_ROOT = "https://example.com/webapp/"
DEFAULT_DEVICE_NAME = "testDev"
DEFAULT_SHORT_DEVICE_NAME = "td01"


class Platform(Enum):
    """Target platform; decides the prefixes of generated device names."""

    WINDOWS = ("WinTest", "WT")
    XR809 = ("OpenXR809", "oxr")
    BK7231N = ("OpenBK7231N", "obk")
    BK7231T = ("OpenBK7231T", "obk")

    def __init__(self, full_prefix: str, short_prefix: str) -> None:
        self.full_prefix = full_prefix
        self.short_prefix = short_prefix


class _BoundedText:
    """Text attribute truncated to fit a buffer of ``max_len`` slots."""

    def __init__(self, max_len: int) -> None:
        self.max_len = max_len
        self._attr = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self._attr = "_" + name

    def __get__(self, obj: Any, objtype: Optional[type] = None) -> Any:
        if obj is None:
            return self
        return getattr(obj, self._attr)

    def __set__(self, obj: Any, value: str) -> None:
        text, _ = copy_bounded(str(value), self.max_len)
        setattr(obj, self._attr, text)


class DeviceConfig:
    """Settings of one device; string settings are bounded in length."""

    mqtt_host = _BoundedText(64)
    mqtt_broker_name = _BoundedText(64)
    mqtt_user_name = _BoundedText(64)
    mqtt_pass = _BoundedText(128)
    wifi_ssid = _BoundedText(64)
    wifi_pass = _BoundedText(64)
    webapp_root = _BoundedText(64)

    def __init__(
        self,
        mqtt_port: int = DEFAULT_MQTT_PORT,
        mqtt_host: str = DEFAULT_MQTT_HOST,
        mqtt_broker_name: str = DEFAULT_MQTT_BROKER,
        mqtt_user_name: str = DEFAULT_MQTT_USER,
        mqtt_pass: str = DEFAULT_MQTT_PASS,
        wifi_ssid: str = "",
        wifi_pass: str = "",
        webapp_root: str = DEFAULT_WEBAPP_ROOT,
        device_name: str = DEFAULT_DEVICE_NAME,
        short_device_name: str = DEFAULT_SHORT_DEVICE_NAME,
    ) -> None:
        self.mqtt_port = mqtt_port
        self.mqtt_host = mqtt_host
        self.mqtt_broker_name = mqtt_broker_name
        self.mqtt_user_name = mqtt_user_name
        self.mqtt_pass = mqtt_pass
        self.wifi_ssid = wifi_ssid
        self.wifi_pass = wifi_pass
        self.webapp_root = webapp_root
        self.device_name = device_name
        self.short_device_name = short_device_name

    def __repr__(self) -> str:
        return (
            f"DeviceConfig(device_name={self.device_name!r}, "
            f"mqtt_host={self.mqtt_host!r}, mqtt_port={self.mqtt_port!r}, "
            f"wifi_ssid={self.wifi_ssid!r})"
        )

    def create_unique_names(self, mac: bytes, platform: Platform) -> tuple[str, str]:
        """Derive the long and short device names from the last four MAC bytes."""
        mac = bytes(mac)
        if len(mac) < 6:
            raise ValueError("a MAC address needs 6 bytes")
        suffix = "".join(f"{b:02X}" for b in mac[2:6])
        self.device_name = f"{platform.full_prefix}_{suffix}"
        self.short_device_name = f"{platform.short_prefix}{suffix}"
        return self.device_name, self.short_device_name

    def set_open_access_point(self) -> None:
        """Forget the WiFi credentials."""
        self.wifi_ssid = ""
        self.wifi_pass = ""

    # -- WiFi -------------------------------------------------------------

    def save_wifi(self, store: Any) -> bool:
        """Store the WiFi credentials."""
        return bool(
            store.put(CONFIG_KEY_WIFI, {"ssid": self.wifi_ssid, "pass": self.wifi_pass})
        )

    def _apply_wifi(self, item: dict) -> None:
        self.wifi_ssid = item.get("ssid", "")
        self.wifi_pass = item.get("pass", "")

    def load_wifi(self, store: Any) -> bool:
        """Load WiFi credentials, migrating an old-format item first.

        Returns whether any credentials were found.
        """
        found = False
        old = store.get(CONFIG_KEY_OLD_WIFI)
        if old:
            self._apply_wifi(old)
            store.delete(CONFIG_KEY_OLD_WIFI)
            self.save_wifi(store)
            found = True
        item = store.get(CONFIG_KEY_WIFI)
        if item:
            self._apply_wifi(item)
            found = True
        return found

    # -- MQTT -------------------------------------------------------------

    def save_mqtt(self, store: Any) -> bool:
        """Store the MQTT settings; returns whether the store accepted them."""
        return bool(
            store.put(
                CONFIG_KEY_MQTT,
                {
                    "user_name": self.mqtt_user_name,
                    "pass": self.mqtt_pass,
                    "host_name": self.mqtt_host,
                    "broker_name": self.mqtt_broker_name,
                    "port": self.mqtt_port,
                },
            )
        )

    def _apply_mqtt(self, item: dict) -> None:
        self.mqtt_user_name = item.get("user_name", "")
        self.mqtt_pass = item.get("pass", "")
        self.mqtt_host = item.get("host_name", "")
        self.mqtt_broker_name = item.get("broker_name", "")
        self.mqtt_port = int(item.get("port", 0))

    def load_mqtt(self, store: Any) -> bool:
        """Load MQTT settings, migrating an old-format item first.

        Returns whether any settings were found.
        """
        found = False
        old = store.get(CONFIG_KEY_OLD_MQTT)
        if old:
            self._apply_mqtt(old)
            store.delete(CONFIG_KEY_OLD_MQTT)
            self.save_mqtt(store)
            found = True
        item = store.get(CONFIG_KEY_MQTT)
        if item:
            self._apply_mqtt(item)
            found = True
        return found

    # -- web app ----------------------------------------------------------

    def load_webapp_root(self, store: Any) -> str:
        """Load the web app root URL if stored; returns the current one."""
        item = store.get(CONFIG_KEY_WEBAPP_ROOT)
        if item:
            self.webapp_root = item.get("url", "")
        return self.webapp_root

    def set_webapp_root(self, store: Any, url: str) -> bool:
        """Set and store the web app root URL."""
        self.webapp_root = url
        return bool(store.put(CONFIG_KEY_WEBAPP_ROOT, {"url": self.webapp_root}))

    # -- start-up ---------------------------------------------------------

    def init_and_load(
        self, store: Any, mac: bytes, platform: Platform, pins: Optional[Any] = None
    ) -> None:
        """Name the device and load every stored setting, pins included."""
        self.create_unique_names(mac, platform)
        self.load_webapp_root(store)
        self.load_wifi(store)
        self.load_mqtt(store)
        if pins is not None:
            pins.load(store)