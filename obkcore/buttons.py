"""Debounced push button state machine driven by periodic ticks."""

from __future__ import annotations

from enum import IntEnum
from typing import Callable, Mapping, Optional

TICKS_INTERVAL_MS = 5
DEBOUNCE_TICKS = 3
SHORT_TICKS = 300 // TICKS_INTERVAL_MS
LONG_TICKS = 1000 // TICKS_INTERVAL_MS


class ButtonEvent(IntEnum):
    PRESS_DOWN = 0
    PRESS_UP = 1
    PRESS_REPEAT = 2
    SINGLE_CLICK = 3
    DOUBLE_CLICK = 4
    LONG_PRESS_START = 5
    LONG_PRESS_HOLD = 6
    NONE_PRESS = 8


class _State(IntEnum):
    IDLE = 0
    PRESSED = 1
    RELEASED = 2
    REPRESSED = 3
    LONG_HOLD = 5


ButtonCallback = Callable[["Button"], object]


class Button:
    """A button read through ``read_level``; ``tick`` is called every 5 ms.

    ``active_level`` is the level that means pressed. Callbacks are looked
    up by event and called with the button.
    """

    def __init__(
        self,
        read_level: Callable[[], int],
        active_level: int = 0,
        callbacks: Optional[Mapping[ButtonEvent, ButtonCallback]] = None,
    ) -> None:
        self.read_level = read_level
        self.active_level = active_level & 1
        self.callbacks: dict[ButtonEvent, ButtonCallback] = dict(callbacks or {})
        self.event = ButtonEvent.NONE_PRESS
        self.ticks = 0
        self.repeat = 0
        self.state = _State.IDLE
        self.debounce_count = 0
        self.level = read_level() & 1

    def _emit(self, event: ButtonEvent, fired: list[ButtonEvent]) -> None:
        fired.append(event)
        callback = self.callbacks.get(event)
        if callback is not None:
            callback(self)

    def tick(self) -> list[ButtonEvent]:
        """Advance one tick; returns the events fired, in order."""
        fired: list[ButtonEvent] = []
        level = self.read_level() & 1

        if self.state != _State.IDLE:
            self.ticks = (self.ticks + 1) & 0xFFFF

        if level != self.level:
            self.debounce_count += 1
            if self.debounce_count >= DEBOUNCE_TICKS:
                self.level = level
                self.debounce_count = 0
        else:
            self.debounce_count = 0

        pressed = self.level == self.active_level

        if self.state == _State.IDLE:
            if pressed:
                self.event = ButtonEvent.PRESS_DOWN
                self._emit(ButtonEvent.PRESS_DOWN, fired)
                self.ticks = 0
                self.repeat = 1
                self.state = _State.PRESSED
            else:
                self.event = ButtonEvent.NONE_PRESS
        elif self.state == _State.PRESSED:
            if not pressed:
                self.event = ButtonEvent.PRESS_UP
                self._emit(ButtonEvent.PRESS_UP, fired)
                self.ticks = 0
                self.state = _State.RELEASED
            elif self.ticks > LONG_TICKS:
                self.event = ButtonEvent.LONG_PRESS_START
                self._emit(ButtonEvent.LONG_PRESS_START, fired)
                self.state = _State.LONG_HOLD
        elif self.state == _State.RELEASED:
            if pressed:
                self.event = ButtonEvent.PRESS_DOWN
                self._emit(ButtonEvent.PRESS_DOWN, fired)
                self.repeat = (self.repeat + 1) & 0xF
                if self.repeat == 2:
                    self._emit(ButtonEvent.DOUBLE_CLICK, fired)
                self._emit(ButtonEvent.PRESS_REPEAT, fired)
                self.ticks = 0
                self.state = _State.REPRESSED
            elif self.ticks > SHORT_TICKS:
                if self.repeat == 1:
                    self.event = ButtonEvent.SINGLE_CLICK
                    self._emit(ButtonEvent.SINGLE_CLICK, fired)
                elif self.repeat == 2:
                    self.event = ButtonEvent.DOUBLE_CLICK
                self.state = _State.IDLE
        elif self.state == _State.REPRESSED:
            if not pressed:
                self.event = ButtonEvent.PRESS_UP
                self._emit(ButtonEvent.PRESS_UP, fired)
                if self.ticks < SHORT_TICKS:
                    self.ticks = 0
                    self.state = _State.RELEASED
                else:
                    self.state = _State.IDLE
        elif self.state == _State.LONG_HOLD:
            if pressed:
                self.event = ButtonEvent.LONG_PRESS_HOLD
                self._emit(ButtonEvent.LONG_PRESS_HOLD, fired)
            else:
                self.event = ButtonEvent.PRESS_UP
                self._emit(ButtonEvent.PRESS_UP, fired)
                self.state = _State.IDLE
        return fired