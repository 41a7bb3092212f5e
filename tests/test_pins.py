import pytest

from obkcore.buttons import ButtonEvent
from obkcore.commands import CommandRegistry
from obkcore.pins import (
    ChannelType,
    Gpio,
    IORole,
    PinController,
    parse_channel_type,
    pwm_index_for_pin,
)
from obkcore.storage import ConfigStore


@pytest.fixture
def ctl():
    return PinController(Gpio())


def test_pwm_index_for_pin():
    assert [pwm_index_for_pin(p) for p in (6, 7, 8, 9, 24, 26)] == [0, 1, 2, 3, 4, 5]
    assert pwm_index_for_pin(10) == -1


def test_parse_channel_type():
    assert parse_channel_type("Temperature") == ChannelType.TEMPERATURE
    assert parse_channel_type("humidity_div10") == ChannelType.HUMIDITY_DIV10
    assert parse_channel_type("default") == ChannelType.DEFAULT
    assert parse_channel_type("nonsense") == ChannelType.ERROR


def test_relay_follows_channel(ctl):
    changes = []
    ctl.on_channel_change = lambda ch, v: changes.append((ch, v))
    ctl.set_channel(7, 1)
    ctl.set_role(7, IORole.RELAY)
    assert ctl.gpio.outputs[7] == 0
    assert ctl.channel_set(1, 100) is True
    assert ctl.gpio.outputs[7] == 1
    assert changes == [(1, 1)]
    assert ctl.channel_set(1, 100) is False
    assert changes == [(1, 1)]


def test_inverted_relay(ctl):
    ctl.set_channel(26, 1)
    ctl.set_role(26, IORole.RELAY_N)
    ctl.channel_set(1, 100)
    assert ctl.gpio.outputs[26] == 0
    ctl.channel_set(1, 0)
    assert ctl.gpio.outputs[26] == 1


def test_pwm_duty_and_stop(ctl):
    ctl.set_channel(8, 2)
    ctl.set_role(8, IORole.PWM)
    assert ctl.gpio.pwm[2] == 0
    ctl.channel_set(2, 50)
    assert ctl.gpio.pwm[2] == 500
    ctl.set_role(8, IORole.NONE)
    assert 2 not in ctl.gpio.pwm


def test_toggle_and_check(ctl):
    assert ctl.channel_toggle(3) == 100
    assert ctl.channel_check(3) is True
    assert ctl.channel_toggle(3) == 0
    assert ctl.channel_check(3) is False


@pytest.mark.parametrize("ch", [-1, 27, 100])
def test_channel_out_of_range(ctl, ch):
    with pytest.raises(IndexError):
        ctl.channel_get(ch)
    with pytest.raises(IndexError):
        ctl.channel_set(ch, 1)
    with pytest.raises(IndexError):
        ctl.channel_toggle(ch)


def test_set_all_and_toggle_all(ctl):
    ctl.set_channel(6, 1)
    ctl.set_role(6, IORole.RELAY)
    ctl.set_channel(7, 2)
    ctl.set_role(7, IORole.LED)
    ctl.set_channel(10, 3)
    ctl.set_role(10, IORole.BUTTON)
    ctl.set_all(100)
    assert (ctl.channel_get(1), ctl.channel_get(2), ctl.channel_get(3)) == (100, 100, 0)
    ctl.toggle_all()
    assert ctl.channel_get(1) == 0 and ctl.channel_get(2) == 0
    ctl.toggle_all()
    assert ctl.channel_get(1) == 255


def test_set_state_only_keeps_existing(ctl):
    ctl.set_channel(6, 1)
    ctl.set_role(6, IORole.RELAY)
    ctl.set_channel(7, 2)
    ctl.set_role(7, IORole.RELAY)
    ctl.channel_set(1, 100)
    ctl.set_state_only(50)
    assert ctl.channel_get(2) == 0
    ctl.set_state_only(0)
    assert ctl.channel_get(1) == 0
    ctl.set_state_only(50)
    assert ctl.channel_get(1) == 50 and ctl.channel_get(2) == 50


def test_is_in_use_and_output_role(ctl):
    ctl.set_channel(9, 4)
    ctl.set_role(9, IORole.BUTTON)
    assert ctl.is_in_use(4) is False
    assert ctl.role_for_output_channel(4) == IORole.NONE
    ctl.set_channel(24, 4)
    ctl.set_role(24, IORole.PWM)
    assert ctl.is_in_use(4) is True
    assert ctl.role_for_output_channel(4) == IORole.PWM


def test_wifi_led(ctl):
    assert ctl.set_wifi_led(1) is None
    ctl.set_role(22, IORole.LED_WIFI_N)
    assert ctl.set_wifi_led(1) == 22
    assert ctl.gpio.outputs[22] == 0
    ctl.set_wifi_led(0)
    assert ctl.gpio.outputs[22] == 1


def test_read_input_inversion(ctl):
    ctl.gpio.set_input(5, 1)
    ctl.set_role(5, IORole.DIGITAL_INPUT)
    assert ctl.read_input(5) == 1
    ctl.set_role(5, IORole.DIGITAL_INPUT_N)
    assert ctl.read_input(5) == 0


def test_ticks_copies_digital_input(ctl):
    ctl.set_channel(5, 3)
    ctl.set_role(5, IORole.DIGITAL_INPUT)
    ctl.gpio.set_input(5, 1)
    ctl.ticks()
    assert ctl.channel_get(3) == 1
    ctl.gpio.set_input(5, 0)
    ctl.ticks()
    assert ctl.channel_get(3) == 0


def _press_release(ctl, pin, ticks_each=5):
    ctl.gpio.set_input(pin, 0)
    events = []
    for _ in range(ticks_each):
        events.extend(ctl.ticks().get(pin, []))
    ctl.gpio.set_input(pin, 1)
    for _ in range(ticks_each):
        events.extend(ctl.ticks().get(pin, []))
    return events


def test_button_single_click_toggles_channel(ctl):
    ctl.gpio.set_input(14, 1)
    ctl.set_channel(14, 1)
    ctl.set_role(14, IORole.BUTTON)
    events = _press_release(ctl, 14)
    for _ in range(100):
        events.extend(ctl.ticks().get(14, []))
    assert ButtonEvent.SINGLE_CLICK in events
    assert ctl.channel_get(1) == 100


def test_button_double_click_toggles_channel2(ctl):
    clicks = []
    ctl.on_double_click = clicks.append
    ctl.gpio.set_input(14, 1)
    ctl.set_channel(14, 1)
    ctl.set_channel2(14, 2)
    ctl.set_role(14, IORole.BUTTON)
    events = _press_release(ctl, 14) + _press_release(ctl, 14)
    for _ in range(100):
        events.extend(ctl.ticks().get(14, []))
    assert ButtonEvent.DOUBLE_CLICK in events
    assert ButtonEvent.SINGLE_CLICK not in events
    assert ctl.channel_get(2) == 100
    assert ctl.channel_get(1) == 0
    assert clicks == [14]


def test_read_all_inputs():
    gpio = Gpio(default_level=0)
    ctl = PinController(gpio)
    gpio.set_input(0, 1)
    gpio.set_input(3, 1)
    assert ctl.read_all_inputs() == 0b1001


def test_save_load_round_trip(ctl):
    store = ConfigStore()
    store.put("pins_old", {"x": 1})
    ctl.set_channel(7, 1)
    ctl.set_role(7, IORole.RELAY)
    ctl.set_channel(26, 1)
    ctl.set_role(26, IORole.BUTTON)
    ctl.set_channel2(26, 2)
    ctl.save(store)
    assert "pins_old" not in store

    other = PinController(Gpio())
    assert other.load(store) is True
    assert other.roles == ctl.roles
    assert other.channels == ctl.channels
    assert other.channels2 == ctl.channels2
    assert 26 in other.buttons


def test_load_without_config(ctl):
    assert ctl.load(ConfigStore()) is False
    assert all(r == IORole.NONE for r in ctl.roles)


def test_clear(ctl):
    ctl.set_channel(7, 1)
    ctl.set_role(7, IORole.BUTTON)
    ctl.clear()
    assert ctl.role(7) == IORole.NONE
    assert ctl.channel(7) == 0
    assert ctl.buttons == {}


def test_invalid_pin_and_role(ctl):
    with pytest.raises(IndexError):
        ctl.set_role(32, IORole.RELAY)
    with pytest.raises(ValueError):
        ctl.set_role(3, 99)


def test_commands(ctl):
    registry = CommandRegistry()
    ctl.register_commands(registry)
    assert registry.execute("setChannelType 3 temperature") == 0
    assert ctl.channel_type(3) == ChannelType.TEMPERATURE
    with pytest.raises(ValueError):
        registry.execute("setChannelType 3 bogus")
    with pytest.raises(ValueError):
        registry.execute("setChannelType 3")
    assert registry.execute("showgpi") == 1