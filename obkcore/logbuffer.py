"""Leveled, feature-filtered logging into a shared ring buffer with several readers."""

from __future__ import annotations

import re
import sys
import threading
import time
from enum import IntEnum
from typing import Any, Callable, Optional

LOG_SIZE = 4096
CONSUMERS = ("serial", "tcp", "http")


class LogLevel(IntEnum):
    NONE = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    EXTRADEBUG = 5
    ALL = 6


class LogFeature(IntEnum):
    HTTP = 0
    MQTT = 1
    CFG = 2
    HTTP_CLIENT = 3
    OTA = 4
    PINS = 5
    MAIN = 6
    GENERAL = 7
    API = 8
    LFS = 9
    CMD = 10
    NTP = 11
    TUYAMCU = 12
    I2C = 13
    BL0942 = 14


LOG_FEATURE_MAX = 15

LEVEL_NAMES = (
    "NONE:",
    "Error:",
    "Warn:",
    "Info:",
    "Debug:",
    "ExtraDebug:",
    "All:",
)

FEATURE_NAMES = (
    "HTTP:",
    "MQTT:",
    "CFG:",
    "HTTP_CLIENT:",
    "OTA:",
    "PINS:",
    "MAIN:",
    "GEN:",
    "API:",
    "LFS:",
    "CMD:",
    "NTP:",
    "TuyaMCU:",
    "I2C:",
    "BL0942:",
)

DEFAULT_LEVEL = 4
# Features 0..24 enabled, except LFS.
DEFAULT_FEATURES = ((1 << 25) - 1) & ~(1 << LogFeature.LFS)

_ONE_INT = re.compile(r"\s*([+-]?\d+)")
_TWO_INTS = re.compile(r"\s*([+-]?\d+)(?:\s*([+-]?\d+))?")


class LogMemory:
    """Ring buffer written once and read independently by several consumers.

    When the writer catches up with a consumer's read position, that
    consumer loses its oldest character.
    """

    def __init__(self, size: int = LOG_SIZE, consumers: tuple[str, ...] = CONSUMERS) -> None:
        if size < 2:
            raise ValueError("log memory size must be at least 2")
        self.size = size
        self._buf = [""] * size
        self._head = 0
        self._tails = {name: 0 for name in consumers}
        self._lock = threading.Lock()

    def write(self, data: str) -> None:
        """Append ``data``, dropping the oldest unread text where needed."""
        with self._lock:
            for ch in data:
                self._buf[self._head] = ch
                self._head = (self._head + 1) % self.size
                for name, tail in self._tails.items():
                    if tail == self._head:
                        self._tails[name] = (tail + 1) % self.size

    def read(self, consumer: str, buffsize: int) -> str:
        """Take up to ``buffsize - 1`` unread characters for ``consumer``."""
        if consumer not in self._tails:
            raise ValueError(f"unknown log consumer {consumer!r}")
        with self._lock:
            tail = self._tails[consumer]
            out = []
            remaining = buffsize
            while remaining > 1 and tail != self._head:
                out.append(self._buf[tail])
                tail = (tail + 1) % self.size
                remaining -= 1
            self._tails[consumer] = tail
        return "".join(out)


class Logger:
    """Filters messages by level and feature and stores or prints them."""

    def __init__(
        self,
        memory: Optional[LogMemory] = None,
        output: Optional[Callable[[str], Any]] = None,
        level: int = DEFAULT_LEVEL,
        features: int = DEFAULT_FEATURES,
        direct: bool = False,
    ) -> None:
        self.memory = memory if memory is not None else LogMemory()
        self.output = output if output is not None else sys.stdout.write
        self.level = level
        self.features = features
        self.direct = direct
        self.delay = 0

    def add(self, level: int, feature: int, message: str) -> Optional[str]:
        """Log ``message``; returns the stored line, or None if filtered out."""
        if not (1 << feature) & self.features:
            return None
        if level > self.level:
            return None
        prefix = LEVEL_NAMES[level] if 0 <= level < len(LEVEL_NAMES) else ""
        if 0 <= feature < len(FEATURE_NAMES):
            prefix += FEATURE_NAMES[feature]
        line = f"{prefix}{message}\r\n"
        if self.direct:
            self.output(line)
        else:
            self.memory.write(line)
        if self.delay > 0:
            time.sleep(self.delay / 1000.0)
        return line

    def read(self, consumer: str, buffsize: int) -> str:
        """Take unread log text for ``consumer``."""
        return self.memory.read(consumer, buffsize)

    def command(self, context: Any, cmd: Optional[str], args: Optional[str]) -> int:
        """Handle loglevel, logfeature, logtype and logdelay.

        Returns 1 when a level or feature was set, 0 otherwise; raises
        ValueError for missing, malformed or out-of-range arguments.
        """
        if cmd is None or args is None:
            raise ValueError("log command requires a name and arguments")
        name = cmd.lower()
        if name == "loglevel":
            match = _ONE_INT.match(args)
            if not match:
                self.add(LogLevel.ERROR, LogFeature.CMD, f"loglevel {args} invalid?")
                raise ValueError(f"loglevel {args} invalid")
            level = int(match.group(1))
            if not 0 <= level <= 9:
                self.add(LogLevel.ERROR, LogFeature.CMD, f"loglevel {level} out of range")
                raise ValueError(f"loglevel {level} out of range")
            self.level = level
            self.add(LogLevel.DEBUG, LogFeature.CMD, f"loglevel set {level}")
            return 1
        if name == "logfeature":
            match = _TWO_INTS.match(args)
            if not match:
                self.add(LogLevel.ERROR, LogFeature.CMD, f"logfeature {args} invalid?")
                raise ValueError(f"logfeature {args} invalid")
            feat = int(match.group(1))
            val = int(match.group(2)) if match.group(2) is not None else 1
            if not 0 <= feat < LOG_FEATURE_MAX:
                self.add(LogLevel.ERROR, LogFeature.CMD, f"logfeature {feat} out of range")
                raise ValueError(f"logfeature {feat} out of range")
            self.features &= ~(1 << feat)
            if val:
                self.features |= 1 << feat
            self.add(LogLevel.DEBUG, LogFeature.CMD, f"logfeature set 0x{self.features:08X}")
            return 1
        if name == "logtype":
            self.direct = args == "direct"
            return 0
        if name == "logdelay":
            match = _ONE_INT.match(args)
            self.delay = int(match.group(1)) if match else 0
            return 0
        return 0

    def register_commands(self, registry: Any) -> None:
        """Register the log commands in a command registry."""
        registry.register("loglevel", "", self.command, "set log level <0..6>", None)
        registry.register(
            "logfeature", "", self.command, "set log feature filter, <0..10> <0|1>", None
        )
        registry.register(
            "logtype",
            "",
            self.command,
            "logtype direct|all - direct logs only to serial immediately",
            None,
        )
        registry.register(
            "logdelay", "", self.command, "logdelay 0..n - impose ms delay after every log", None
        )