"""Built-in pin layouts of known devices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .pins import IORole, PinController


@dataclass(frozen=True)
class _Layout:
    """Pins of a device as (pin, role, channel) entries.

    ``channel_first`` tells whether the channel is linked before the role
    is set, which decides the duty a PWM pin starts with.
    """

    pins: tuple[tuple[int, IORole, int], ...] = ()
    channel_first: bool = False


_R = IORole.RELAY
_RN = IORole.RELAY_N
_B = IORole.BUTTON
_L = IORole.LED
_LN = IORole.LED_N
_P = IORole.PWM

_DEVICES: dict[str, _Layout] = {
    "Empty": _Layout(),
    "TuyaWL_SW01_16A": _Layout(((7, _R, 1), (26, _B, 1))),
    "TuyaSmartLife4CH10A": _Layout(
        (
            (7, _B, 1), (8, _B, 2), (9, _B, 3), (1, _B, 4),
            (14, _R, 1), (6, _R, 2), (24, _R, 3), (26, _R, 4),
        )
    ),
    # red, green, blue, cold white, warm white
    "BK7231N_TuyaLightBulb_RGBCW_5PWMs": _Layout(
        ((26, _P, 1), (8, _P, 2), (7, _P, 3), (9, _P, 4), (6, _P, 5))
    ),
    "IntelligentLife_NF101A": _Layout(((24, _R, 1), (6, _B, 1))),
    # the button sits on the debug UART receive pin
    "TuyaLEDDimmerSingleChannel": _Layout(((8, _R, 1), (1, _B, 1))),
    "CalexLEDDimmerFiveChannel": _Layout(
        ((7, _P, 1), (8, _P, 2), (6, _P, 3), (24, _P, 4), (26, _P, 5)),
        channel_first=True,
    ),
    # four sockets and one USB relay, a button, WiFi and power LEDs
    "CalexPowerStrip_900018_1v1_0UK": _Layout(
        (
            (6, _R, 5), (7, _R, 2), (8, _R, 3), (9, _R, 1), (26, _R, 4),
            (14, _B, 1),
            (10, _L, 1), (24, _L, 2),
        ),
        channel_first=True,
    ),
    # cold white, warm white
    "ArlecCCTDownlight": _Layout(((6, _P, 1), (24, _P, 2)), channel_first=True),
    "NedisWIFIPO120FWT_16A": _Layout(((6, _L, 1), (10, _B, 1), (26, _RN, 1))),
    "NedisWIFIP130FWT_10A": _Layout(((6, _L, 1), (10, _B, 1), (26, _R, 1))),
    "EmaxHome_EDU8774": _Layout(((10, _B, 1), (24, _LN, 1), (26, _R, 1))),
    "TuyaSmartPFW02G": _Layout(((24, _RN, 1), (26, _B, 1), (7, _L, 1))),
    "BK7231N_CB2S_QiachipSmartSwitch": _Layout(((7, _B, 1), (8, _R, 1))),
    "BK7231T_WB2S_QiachipSmartSwitch": _Layout(((7, _B, 1), (6, _RN, 1), (10, _L, 1))),
    "BK7231T_Raw_PrimeWiFiSmartOutletsOutdoor_CCWFIO232PK": _Layout(
        ((6, _R, 1), (7, _R, 2), (10, _L, 1), (26, _L, 2), (24, _B, 1))
    ),
    # RGB PWMs, then music, color and on/off buttons
    "AvatarASL04": _Layout(
        ((24, _P, 1), (8, _P, 2), (6, _P, 3), (7, _B, 1), (9, _B, 2), (14, _B, 3)),
        channel_first=True,
    ),
    "TuyaSmartWIFISwith_4Gang_CB3S": _Layout(
        (
            (24, _B, 1), (20, _B, 2), (7, _B, 3), (14, _B, 4),
            (6, _R, 1), (8, _R, 2), (9, _R, 3), (26, _R, 4),
            (22, IORole.LED_WIFI, 1),
        )
    ),
}

_BY_LOWER = {name.lower(): name for name in _DEVICES}


def device_names() -> list[str]:
    """Names of all built-in device layouts, in a fixed order."""
    return list(_DEVICES)


def apply_device(controller: PinController, name: str, store: Optional[Any] = None) -> None:
    """Clear ``controller`` and give it the pin layout of device ``name``.

    The name is matched ignoring case. The new layout is saved to ``store``
    when one is given. Raises KeyError for an unknown device.
    """
    key = _BY_LOWER.get(name.lower())
    if key is None:
        raise KeyError(f"unknown device {name!r}")
    layout = _DEVICES[key]
    controller.clear()
    for pin, role, channel in layout.pins:
        if layout.channel_first:
            controller.set_channel(pin, channel)
            controller.set_role(pin, role)
        else:
            controller.set_role(pin, role)
            controller.set_channel(pin, channel)
    if store is not None:
        controller.save(store)