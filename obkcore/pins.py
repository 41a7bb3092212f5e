"""Pin roles, channel values and the logic that ties them to GPIO outputs."""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Callable, Optional

from .buttons import Button, ButtonEvent
from .logbuffer import LogFeature, LogLevel
from .tokenizer import tokenize

PIN_COUNT = 32
GPIO_MAX = 27
CHANNEL_MAX = 32
PWM_FREQUENCY = 1000

CONFIG_KEY_PINS = "pins"
CONFIG_KEY_OLD_PINS = "pins_old"

_PWM_PINS = {6: 0, 7: 1, 8: 2, 9: 3, 24: 4, 26: 5}


class IORole(IntEnum):
    NONE = 0
    RELAY = 1
    RELAY_N = 2
    BUTTON = 3
    BUTTON_N = 4
    LED = 5
    LED_N = 6
    PWM = 7
    LED_WIFI = 8
    LED_WIFI_N = 9
    BUTTON_TOGGLE_ALL = 10
    BUTTON_TOGGLE_ALL_N = 11
    # copies the value on the pin (0 or 1) to the channel
    DIGITAL_INPUT = 12
    DIGITAL_INPUT_N = 13


class ChannelType(IntEnum):
    DEFAULT = 0
    ERROR = 1
    TEMPERATURE = 2
    HUMIDITY = 3
    HUMIDITY_DIV10 = 4
    TEMPERATURE_DIV10 = 5
    TOGGLE = 6


_BUTTON_ROLES = frozenset(
    {IORole.BUTTON, IORole.BUTTON_N, IORole.BUTTON_TOGGLE_ALL, IORole.BUTTON_TOGGLE_ALL_N}
)
_TOGGLE_ALL_ROLES = frozenset({IORole.BUTTON_TOGGLE_ALL, IORole.BUTTON_TOGGLE_ALL_N})
_DIGITAL_INPUT_ROLES = frozenset({IORole.DIGITAL_INPUT, IORole.DIGITAL_INPUT_N})
_INVERTED_INPUT_ROLES = frozenset(
    {IORole.BUTTON_N, IORole.BUTTON_TOGGLE_ALL_N, IORole.DIGITAL_INPUT_N}
)
_DIGITAL_OUTPUT_ROLES = frozenset({IORole.LED, IORole.LED_N, IORole.RELAY, IORole.RELAY_N})
_OUTPUT_ROLES = _DIGITAL_OUTPUT_ROLES | {IORole.PWM}
_WIFI_LED_ROLES = frozenset({IORole.LED_WIFI, IORole.LED_WIFI_N})

_CHANNEL_TYPE_NAMES = {
    "temperature": ChannelType.TEMPERATURE,
    "humidity": ChannelType.HUMIDITY,
    "humidity_div10": ChannelType.HUMIDITY_DIV10,
    "temperature_div10": ChannelType.TEMPERATURE_DIV10,
    "toggle": ChannelType.TOGGLE,
    "default": ChannelType.DEFAULT,
}


def pwm_index_for_pin(pin: int) -> int:
    """PWM unit driving ``pin``, or -1 if the pin cannot do PWM."""
    return _PWM_PINS.get(pin, -1)


def parse_channel_type(s: str) -> ChannelType:
    """Channel type named by ``s`` (case-insensitive), or ChannelType.ERROR."""
    return _CHANNEL_TYPE_NAMES.get(s.lower(), ChannelType.ERROR)


class Gpio:
    """Simulated GPIO bank: digital outputs, inputs and PWM units.

    Inputs that were never set read ``default_level`` (pulled up by default).
    A PWM duty of None means the unit is stopped.
    """

    def __init__(self, default_level: int = 1) -> None:
        self.default_level = default_level & 1
        self.outputs: dict[int, int] = {}
        self.inputs: dict[int, int] = {}
        self.pwm: dict[int, int] = {}

    def write(self, pin: int, value: int) -> None:
        """Drive output ``pin`` to ``value`` (0 or 1)."""
        self.outputs[pin] = int(value) & 1

    def read(self, pin: int) -> int:
        """Current level of input ``pin``."""
        return self.inputs.get(pin, self.default_level)

    def set_input(self, pin: int, value: int) -> None:
        """Set the level seen on input ``pin``."""
        self.inputs[pin] = int(value) & 1

    def set_pwm(self, pwm_index: int, duty: Optional[int]) -> None:
        """Set PWM unit duty in 0..1000, or stop it with None."""
        if duty is None:
            self.pwm.pop(pwm_index, None)
        else:
            self.pwm[pwm_index] = duty


class PinController:
    """Pin configuration and channel state of one device."""

    def __init__(
        self,
        gpio: Optional[Gpio] = None,
        on_channel_change: Optional[Callable[[int, int], Any]] = None,
        on_double_click: Optional[Callable[[int], Any]] = None,
        logger: Any = None,
    ) -> None:
        self.gpio = gpio if gpio is not None else Gpio()
        self.on_channel_change = on_channel_change
        self.on_double_click = on_double_click
        self.logger = logger
        self.roles: list[IORole] = [IORole.NONE] * PIN_COUNT
        self.channels: list[int] = [0] * PIN_COUNT
        self.channels2: list[int] = [0] * PIN_COUNT
        self._values: list[int] = [0] * GPIO_MAX
        self._types: list[ChannelType] = [ChannelType.DEFAULT] * GPIO_MAX
        self.buttons: dict[int, Button] = {}

    # -- helpers -----------------------------------------------------------

    def _log(self, level: LogLevel, message: str) -> None:
        if self.logger is not None:
            self.logger.add(level, LogFeature.GENERAL, message)

    @staticmethod
    def _check_pin(index: int) -> None:
        if not 0 <= index < PIN_COUNT:
            raise IndexError(f"pin index {index} is out of range <0,{PIN_COUNT})")

    def _check_channel(self, ch: int, what: str) -> None:
        if not 0 <= ch < GPIO_MAX:
            self._log(LogLevel.ERROR, f"{what}: Channel index {ch} is out of range <0,{GPIO_MAX})")
            raise IndexError(f"channel index {ch} is out of range <0,{GPIO_MAX})")

    def _value_or_zero(self, ch: int) -> int:
        return self._values[ch] if 0 <= ch < GPIO_MAX else 0

    def _notify(self, ch: int, value: int) -> None:
        if self.on_channel_change is not None:
            self.on_channel_change(ch, value)

    # -- pin configuration ------------------------------------------------

    def clear(self) -> None:
        """Reset all roles and channel assignments to zero."""
        self.roles = [IORole.NONE] * PIN_COUNT
        self.channels = [0] * PIN_COUNT
        self.channels2 = [0] * PIN_COUNT
        self.buttons.clear()

    def set_role(self, index: int, role: int) -> None:
        """Give pin ``index`` a new role, releasing the previous one."""
        self._check_pin(index)
        role = IORole(role)
        old = self.roles[index]
        if old in _BUTTON_ROLES:
            self.buttons.pop(index, None)
        elif old == IORole.PWM:
            pwm = pwm_index_for_pin(index)
            if pwm != -1:
                self.gpio.set_pwm(pwm, None)

        self.roles[index] = role

        if role in _BUTTON_ROLES:
            if index < GPIO_MAX:
                self.buttons[index] = Button(
                    lambda i=index: self.read_input(i),
                    active_level=0,
                    callbacks={
                        ButtonEvent.SINGLE_CLICK: lambda _b, i=index: self._on_short_click(i),
                        ButtonEvent.DOUBLE_CLICK: lambda _b, i=index: self._on_double_click(i),
                    },
                )
        elif role in _DIGITAL_OUTPUT_ROLES:
            self.gpio.write(index, 0)
        elif role == IORole.PWM:
            pwm = pwm_index_for_pin(index)
            if pwm != -1:
                value = self._value_or_zero(self.channels[index])
                self.gpio.set_pwm(pwm, value * 10)

    def set_channel(self, index: int, ch: int) -> None:
        """Link pin ``index`` to channel ``ch``."""
        self._check_pin(index)
        self.channels[index] = ch & 0xFF

    def set_channel2(self, index: int, ch: int) -> None:
        """Link pin ``index`` to second channel ``ch`` (button double click)."""
        self._check_pin(index)
        self.channels2[index] = ch & 0xFF

    def role(self, index: int) -> IORole:
        return self.roles[index]

    def channel(self, index: int) -> int:
        return self.channels[index]

    def channel2(self, index: int) -> int:
        return self.channels2[index]

    # -- button actions ---------------------------------------------------

    def _on_short_click(self, index: int) -> None:
        self._log(LogLevel.INFO, f"{index} key_short_press")
        if self.roles[index] in _TOGGLE_ALL_ROLES:
            self.toggle_all()
            return
        try:
            self.channel_toggle(self.channels[index])
        except IndexError:
            pass

    def _on_double_click(self, index: int) -> None:
        self._log(LogLevel.INFO, f"{index} key_double_press")
        if self.roles[index] in _TOGGLE_ALL_ROLES:
            self.toggle_all()
            return
        try:
            self.channel_toggle(self.channels2[index])
        except IndexError:
            pass
        if self.on_double_click is not None:
            self.on_double_click(index)

    # -- channels ---------------------------------------------------------

    def _on_changed(self, ch: int) -> None:
        value = self._values[ch]
        on = 1 if value > 0 else 0
        for i in range(GPIO_MAX):
            if self.channels[i] != ch:
                continue
            role = self.roles[i]
            if role in (IORole.RELAY, IORole.LED):
                self.gpio.write(i, on)
                self._notify(ch, on)
            elif role in (IORole.RELAY_N, IORole.LED_N):
                self.gpio.write(i, 1 - on)
                self._notify(ch, on)
            elif role == IORole.DIGITAL_INPUT:
                self._notify(ch, value)
            elif role == IORole.PWM:
                self._notify(ch, value)
                pwm = pwm_index_for_pin(i)
                if pwm != -1:
                    self.gpio.set_pwm(pwm, value * 10)

    def channel_get(self, ch: int) -> int:
        """Value of channel ``ch``."""
        self._check_channel(ch, "CHANNEL_Get")
        return self._values[ch]

    def channel_set(self, ch: int, value: int, force: bool = False) -> bool:
        """Set channel ``ch``; returns False if unchanged and not forced."""
        self._check_channel(ch, "CHANNEL_Set")
        if not force and self._values[ch] == value:
            self._log(LogLevel.INFO, f"No change in channel {ch} - ignoring")
            return False
        self._log(LogLevel.INFO, f"CHANNEL_Set channel {ch} has changed to {value}")
        self._values[ch] = value
        self._on_changed(ch)
        return True

    def channel_toggle(self, ch: int) -> int:
        """Switch channel ``ch`` between 0 and 100; returns the new value."""
        self._check_channel(ch, "CHANNEL_Toggle")
        self._values[ch] = 100 if self._values[ch] == 0 else 0
        self._on_changed(ch)
        return self._values[ch]

    def channel_check(self, ch: int) -> bool:
        """True if channel ``ch`` is on."""
        self._check_channel(ch, "CHANNEL_Check")
        return self._values[ch] > 0

    def is_in_use(self, ch: int) -> bool:
        """True if some output pin is linked to channel ``ch``."""
        return any(
            self.channels[i] == ch and self.roles[i] in _OUTPUT_ROLES for i in range(GPIO_MAX)
        )

    def set_all(self, value: int) -> None:
        """Force every output channel to ``value``."""
        for i in range(GPIO_MAX):
            if self.roles[i] in _OUTPUT_ROLES:
                try:
                    self.channel_set(self.channels[i], value, True)
                except IndexError:
                    pass

    def set_state_only(self, value: int) -> None:
        """Switch all outputs off, or on unless some channel is already on."""
        if value == 0:
            self.set_all(0)
            return
        if any(self.is_in_use(i) and self._values[i] > 0 for i in range(GPIO_MAX)):
            return
        self.set_all(value)

    def toggle_all(self) -> None:
        """Switch all outputs off if any is on, else all to 255."""
        any_enabled = any(
            self.is_in_use(i) and self._value_or_zero(i) > 0 for i in range(CHANNEL_MAX)
        )
        self.set_all(0 if any_enabled else 255)

    def role_for_output_channel(self, ch: int) -> IORole:
        """Role of the first output pin linked to ``ch``, or IORole.NONE."""
        for i in range(PIN_COUNT):
            if self.channels[i] == ch and self.roles[i] in _OUTPUT_ROLES:
                return self.roles[i]
        return IORole.NONE

    def set_channel_type(self, ch: int, channel_type: int) -> None:
        self._types[ch] = ChannelType(channel_type)

    def channel_type(self, ch: int) -> ChannelType:
        return self._types[ch]

    # -- inputs -----------------------------------------------------------

    def set_wifi_led(self, value: int) -> Optional[int]:
        """Drive the first WiFi LED pin; returns its index, or None if none."""
        for i in range(PIN_COUNT):
            if self.roles[i] in _WIFI_LED_ROLES:
                if self.roles[i] == IORole.LED_WIFI_N:
                    value = 0 if value else 1
                self.gpio.write(i, value & 1)
                return i
        return None

    def read_input(self, index: int) -> int:
        """Level of pin ``index`` with the role's inversion applied."""
        level = self.gpio.read(index) & 1
        if self.roles[index] in _INVERTED_INPUT_ROLES:
            return 1 - level
        return level

    def ticks(self) -> dict[int, list[ButtonEvent]]:
        """Advance buttons and copy digital inputs to their channels.

        Returns the button events fired, keyed by pin index.
        """
        fired: dict[int, list[ButtonEvent]] = {}
        for i in range(GPIO_MAX):
            role = self.roles[i]
            if role in _BUTTON_ROLES:
                button = self.buttons.get(i)
                if button is not None:
                    events = button.tick()
                    if events:
                        fired[i] = events
            elif role in _DIGITAL_INPUT_ROLES:
                try:
                    self.channel_set(self.channels[i], self.read_input(i), False)
                except IndexError:
                    pass
        return fired

    def read_all_inputs(self) -> int:
        """Raw levels of pins 0..31 as a bit mask."""
        value = 0
        for i in range(PIN_COUNT):
            value |= (1 if self.gpio.read(i) else 0) << i
        return value

    # -- persistence ------------------------------------------------------

    def save(self, store: Any) -> None:
        """Store the pin configuration, dropping any old-format item."""
        store.put(
            CONFIG_KEY_PINS,
            {
                "roles": [int(r) for r in self.roles],
                "channels": list(self.channels),
                "channels2": list(self.channels2),
            },
        )
        store.delete(CONFIG_KEY_OLD_PINS)

    def load(self, store: Any) -> bool:
        """Load the pin configuration if stored, then set up every pin role.

        Returns whether a stored configuration was found.
        """
        self._log(LogLevel.INFO, "PIN_LoadFromFlash called - going to load pins.")
        item = store.get(CONFIG_KEY_PINS)
        loaded = bool(item)
        if loaded:
            for name in ("roles", "channels", "channels2"):
                if len(item.get(name, ())) != PIN_COUNT:
                    raise ValueError(f"stored pin {name} must hold {PIN_COUNT} entries")
            self.roles = [IORole(r) for r in item["roles"]]
            self.channels = [int(c) & 0xFF for c in item["channels"]]
            self.channels2 = [int(c) & 0xFF for c in item["channels2"]]
        for i in range(GPIO_MAX):
            self.set_role(i, self.roles[i])
        self._log(LogLevel.INFO, "PIN_LoadFromFlash pins have been set up.")
        return loaded

    # -- commands ---------------------------------------------------------

    def _cmd_showgpi(self, context: Any, cmd: str, args: str) -> int:
        self._log(LogLevel.INFO, f"GPIs are 0x{self.read_all_inputs():x}")
        return 1

    def _cmd_set_channel_type(self, context: Any, cmd: str, args: str) -> int:
        tokens = tokenize(args)
        if len(tokens) < 2:
            self._log(LogLevel.INFO, "This command requires 2 arguments")
            raise ValueError("setChannelType requires 2 arguments")
        channel = tokens.arg_int(0)
        type_name = tokens.arg(1)
        code = parse_channel_type(type_name)
        if code == ChannelType.ERROR:
            self._log(
                LogLevel.INFO,
                f"Channel {channel} type not set because {type_name} is not a known type",
            )
            raise ValueError(f"{type_name} is not a known channel type")
        self.set_channel_type(channel, code)
        self._log(LogLevel.INFO, f"Channel {channel} type changed to {type_name}")
        return 0

    def register_commands(self, registry: Any) -> None:
        """Register showgpi and setChannelType."""
        registry.register("showgpi", None, self._cmd_showgpi, "log stat of all GPIs", None)
        registry.register(
            "setChannelType", None, self._cmd_set_channel_type, "set channel type", None
        )