"""Registry of named console commands and their execution."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import chain, takewhile
from typing import Any, Callable, Iterator, Optional

from .tokenizer import is_whitespace

HASH_SIZE = 128
MAX_NAME_LEN = 32

Handler = Callable[[Any, str, str], Any]


class CommandError(Exception):
    """Base class for command registry errors."""


class CommandNotFoundError(CommandError):
    """No command matches the given name."""


class DuplicateCommandError(CommandError):
    """A command with this name is already registered."""


@dataclass
class Command:
    """A registered command."""

    name: str
    args_format: Optional[str]
    handler: Optional[Handler]
    description: str = ""
    context: Any = None


def _ascii_lower(s: str) -> str:
    return "".join(chr(ord(c) + 32) if "A" <= c <= "Z" else c for c in s)


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def hash_name(name: str) -> int:
    """Case-insensitive bucket index of a command name."""
    h = 0
    for i, b in enumerate(name.encode("utf-8")):
        if 0x41 <= b <= 0x5A:
            b += 32
        h = _to_int32(h + b * (i + 119))
    h = h ^ (h >> 10) ^ (h >> 20)
    return h & (HASH_SIZE - 1)


def split_command(s: str, max_len: int, strip_digits: bool) -> str:
    """Leading word of ``s``, at most ``max_len - 1`` characters.

    Stops at whitespace and, with ``strip_digits``, at the first digit.
    """
    def keep(ch: str) -> bool:
        return not is_whitespace(ch) and not (strip_digits and "0" <= ch <= "9")

    return "".join(takewhile(keep, s[: max(max_len - 1, 0)]))


class CommandRegistry:
    """Commands kept in hash buckets, looked up case-insensitively."""

    def __init__(self) -> None:
        self._buckets: list[list[Command]] = [[] for _ in range(HASH_SIZE)]

    def register(
        self,
        name: str,
        args: Optional[str],
        handler: Optional[Handler],
        description: str = "",
        context: Any = None,
    ) -> Command:
        """Add a command; raises DuplicateCommandError if the name is taken."""
        if self.find(name) is not None:
            raise DuplicateCommandError(f"command with name {name} already exists")
        command = Command(name, args, handler, description, context)
        self._buckets[hash_name(name)].insert(0, command)
        return command

    def find(self, name: str) -> Optional[Command]:
        """The command with this name, ignoring ASCII case, or None."""
        wanted = _ascii_lower(name)
        return next(
            (c for c in self._buckets[hash_name(name)] if _ascii_lower(c.name) == wanted),
            None,
        )

    def execute_args(self, cmd: str, args: str) -> Any:
        """Run ``cmd`` with ``args``.

        If no command has the full name, the name up to its first digit is
        tried, so ``power1`` reaches ``power``. The handler receives the
        original name. A command without a handler returns 0.
        """
        command = self.find(cmd)
        if command is None:
            command = self.find(split_command(cmd, MAX_NAME_LEN, True))
            if command is None:
                raise CommandNotFoundError(f"cmd {cmd} NOT found (args {args})")
        if command.handler is None:
            return 0
        return command.handler(command.context, cmd, args)

    def execute(self, line: str) -> Any:
        """Split a raw line into name and arguments and run it."""
        pos = 0
        while pos < len(line) and is_whitespace(line[pos]):
            pos += 1
        line = line[pos:]
        name = split_command(line, MAX_NAME_LEN, False)
        rest = line[len(name):]
        pos = 0
        while pos < len(rest) and is_whitespace(rest[pos]):
            pos += 1
        return self.execute_args(name, rest[pos:])

    def __iter__(self) -> Iterator[Command]:
        return chain.from_iterable(self._buckets)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None