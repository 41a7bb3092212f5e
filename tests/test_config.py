import pytest

from obkcore.config import (
    CONFIG_KEY_MQTT,
    CONFIG_KEY_OLD_MQTT,
    CONFIG_KEY_OLD_WIFI,
    CONFIG_KEY_WIFI,
    DEFAULT_WEBAPP_ROOT,
    DeviceConfig,
    Platform,
)
from obkcore.pins import IORole, PinController
from obkcore.storage import ConfigStore

MAC = bytes([0x02, 0x00, 0x5E, 0x10, 0x20, 0x30])


def test_defaults_from_source():
    cfg = DeviceConfig()
    assert cfg.mqtt_port == 1883
    assert cfg.mqtt_host == "192.168.0.113"
    assert cfg.mqtt_user_name == "homeassistant"
    assert cfg.device_name == "testDev"
    assert cfg.wifi_ssid == ""


def test_unique_names_bk7231t():
    cfg = DeviceConfig()
    full, short = cfg.create_unique_names(MAC, Platform.BK7231T)
    assert full == "OpenBK7231T_5E102030"
    assert short == "obk5E102030"
    assert cfg.device_name == full
    assert cfg.short_device_name == short


def test_unique_names_prefix_per_platform():
    cfg = DeviceConfig()
    full, short = cfg.create_unique_names(MAC, Platform.WINDOWS)
    assert full.startswith("WinTest_")
    assert short.startswith("WT")
    assert full.endswith(short[2:])


def test_unique_names_need_six_bytes():
    with pytest.raises(ValueError):
        DeviceConfig().create_unique_names(b"\x01\x02", Platform.XR809)


def test_long_text_is_truncated():
    cfg = DeviceConfig()
    cfg.mqtt_host = "a" * 100
    assert len(cfg.mqtt_host) < 64
    assert ("a" * 100).startswith(cfg.mqtt_host)


def test_mqtt_pass_has_larger_limit():
    cfg = DeviceConfig()
    value = "b" * 100
    cfg.mqtt_pass = value
    assert cfg.mqtt_pass == value


def test_open_access_point_clears_wifi():
    cfg = DeviceConfig(wifi_ssid="home")
    cfg.wifi_pass = "password"
    cfg.set_open_access_point()
    assert (cfg.wifi_ssid, cfg.wifi_pass) == ("", "")


def test_wifi_round_trip():
    store = ConfigStore()
    cfg = DeviceConfig(wifi_ssid="home")
    cfg.wifi_pass = "password"
    assert cfg.save_wifi(store) is True
    other = DeviceConfig()
    assert other.load_wifi(store) is True
    assert other.wifi_ssid == "home"
    assert other.wifi_pass == "password"


def test_wifi_missing_keeps_values():
    cfg = DeviceConfig(wifi_ssid="keep")
    assert cfg.load_wifi(ConfigStore()) is False
    assert cfg.wifi_ssid == "keep"


def test_old_wifi_item_is_migrated():
    store = ConfigStore()
    store.put(CONFIG_KEY_OLD_WIFI, {"ssid": "legacy", "pass": "secret"})
    cfg = DeviceConfig()
    cfg.load_wifi(store)
    assert cfg.wifi_ssid == "legacy"
    assert CONFIG_KEY_OLD_WIFI not in store
    assert store.get(CONFIG_KEY_WIFI)["ssid"] == "legacy"


def test_mqtt_round_trip():
    store = ConfigStore()
    cfg = DeviceConfig(mqtt_port=8883, mqtt_host="broker.example.com")
    cfg.mqtt_pass = "secret"
    assert cfg.save_mqtt(store) is True
    other = DeviceConfig()
    assert other.load_mqtt(store) is True
    assert other.mqtt_port == 8883
    assert other.mqtt_host == "broker.example.com"
    assert other.mqtt_pass == "secret"
    assert other.mqtt_broker_name == cfg.mqtt_broker_name


def test_old_mqtt_item_is_migrated():
    store = ConfigStore()
    store.put(
        CONFIG_KEY_OLD_MQTT,
        {"user_name": "u", "pass": "secret", "host_name": "h", "broker_name": "b", "port": 1884},
    )
    cfg = DeviceConfig()
    cfg.load_mqtt(store)
    assert cfg.mqtt_port == 1884
    assert CONFIG_KEY_OLD_MQTT not in store
    assert store.get(CONFIG_KEY_MQTT)["host_name"] == "h"


def test_webapp_root_default_and_round_trip():
    store = ConfigStore()
    cfg = DeviceConfig()
    assert cfg.load_webapp_root(store) == DEFAULT_WEBAPP_ROOT
    assert cfg.set_webapp_root(store, "http://localhost/app/") is True
    other = DeviceConfig()
    assert other.load_webapp_root(store) == "http://localhost/app/"


def test_init_and_load_restores_everything(tmp_path):
    store = ConfigStore()
    src = DeviceConfig(wifi_ssid="home", mqtt_port=1999)
    src.save_wifi(store)
    src.save_mqtt(store)
    pins = PinController()
    pins.set_role(7, IORole.RELAY)
    pins.set_channel(7, 1)
    pins.save(store)
    path = tmp_path / "cfg.json"
    store.save_file(path)

    loaded_store = ConfigStore()
    loaded_store.load_file(path)
    cfg = DeviceConfig()
    new_pins = PinController()
    cfg.init_and_load(loaded_store, MAC, Platform.BK7231N, new_pins)
    assert cfg.wifi_ssid == "home"
    assert cfg.mqtt_port == 1999
    assert cfg.device_name.startswith("OpenBK7231N_")
    assert new_pins.role(7) == IORole.RELAY
    assert new_pins.channel(7) == 1