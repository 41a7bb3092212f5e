from obkcore.buttons import (
    DEBOUNCE_TICKS,
    LONG_TICKS,
    SHORT_TICKS,
    Button,
    ButtonEvent,
)


class Line:
    def __init__(self, level=1):
        self.level = level

    def __call__(self):
        return self.level


def run(button, count):
    events = []
    for _ in range(count):
        events.extend(button.tick())
    return events


def make():
    line = Line(1)
    return line, Button(line, active_level=0)


def test_long_press_starts_after_long_ticks():
    line, button = make()
    line.level = 0
    early = run(button, LONG_TICKS)
    assert ButtonEvent.LONG_PRESS_START not in early
    later = run(button, DEBOUNCE_TICKS + 10)
    assert ButtonEvent.LONG_PRESS_START in later


def test_idle_button_fires_nothing():
    line, button = make()
    assert run(button, 500) == []
    assert button.event == ButtonEvent.NONE_PRESS


def test_press_needs_debounce():
    line, button = make()
    line.level = 0
    assert run(button, DEBOUNCE_TICKS - 1) == []
    assert button.tick() == [ButtonEvent.PRESS_DOWN]


def test_short_glitch_is_ignored():
    line, button = make()
    line.level = 0
    run(button, DEBOUNCE_TICKS - 1)
    line.level = 1
    assert run(button, 200) == []


def test_single_click():
    line, button = make()
    line.level = 0
    events = run(button, 10)
    line.level = 1
    events += run(button, SHORT_TICKS + 20)
    assert events == [
        ButtonEvent.PRESS_DOWN,
        ButtonEvent.PRESS_UP,
        ButtonEvent.SINGLE_CLICK,
    ]


def test_single_click_waits_for_short_timeout():
    line, button = make()
    line.level = 0
    run(button, 10)
    line.level = 1
    events = run(button, DEBOUNCE_TICKS + SHORT_TICKS - 5)
    assert ButtonEvent.SINGLE_CLICK not in events
    assert ButtonEvent.SINGLE_CLICK in run(button, 20)


def test_active_high_button():
    line = Line(0)
    button = Button(line, active_level=1)
    line.level = 1
    events = run(button, 10)
    line.level = 0
    events += run(button, SHORT_TICKS + 20)
    assert events == [
        ButtonEvent.PRESS_DOWN,
        ButtonEvent.PRESS_UP,
        ButtonEvent.SINGLE_CLICK,
    ]


def test_button_pressed_at_start_fires_down_immediately():
    line = Line(0)
    button = Button(line, active_level=0)
    assert button.tick() == [ButtonEvent.PRESS_DOWN]