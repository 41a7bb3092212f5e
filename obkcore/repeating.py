"""Console commands that run again and again at a fixed interval in seconds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .commands import CommandError
from .logbuffer import LogFeature, LogLevel
from .tokenizer import tokenize


@dataclass
class RepeatingEvent:
    """A command run every ``interval`` seconds.

    ``remaining`` counts down to the next run; a new event runs on the
    very next second.
    """

    command: str
    interval: int
    remaining: int = 1


class RepeatingEvents:
    """Repeating events that run their commands through a command registry."""

    def __init__(self, registry: Any, logger: Optional[Any] = None) -> None:
        self.registry = registry
        self.logger = logger
        self.events: list[RepeatingEvent] = []

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.add(LogLevel.INFO, LogFeature.CMD, message)

    def add(self, command: str, interval: int) -> RepeatingEvent:
        """Add an event; the newest event comes first."""
        event = RepeatingEvent(command, interval)
        self.events.insert(0, event)
        return event

    def on_every_second(self) -> int:
        """Count every event down one second and run those that are due.

        Returns how many events ran. A command that fails is logged and
        does not stop the other events.
        """
        ran = 0
        events = list(self.events)
        for event in events:
            event.remaining -= 1
            if event.remaining > 0:
                continue
            ran += 1
            event.remaining = event.interval
            try:
                self.registry.execute(event.command)
            except (CommandError, ValueError) as exc:
                self._log(f"repeating event [{event.command}] failed: {exc}")
        self._log(f"RepeatingEvents_OnEverySecond checked {len(events)} events, ran {ran}")
        return ran

    def command(self, context: Any, cmd: str, args: str) -> int:
        """Handle ``addRepeatingEvent <interval> <command...>``.

        Raises ValueError when fewer than two arguments are given.
        """
        self._log(f"addRepeatingEvent: will tokenize {args}")
        tokens = tokenize(args)
        if len(tokens) < 2:
            self._log("addRepeatingEvent: requires 2 arguments")
            raise ValueError("addRepeatingEvent requires 2 arguments")
        interval = tokens.arg_int(0)
        to_repeat = tokens.arg_from(1)
        self._log(f"addRepeatingEvent: interval {interval}, command [{to_repeat}]")
        self.add(to_repeat, interval)
        return 1

    def register(self) -> None:
        """Register the addRepeatingEvent command."""
        self.registry.register(
            "addRepeatingEvent", "", self.command, "add a command run every n seconds", None
        )