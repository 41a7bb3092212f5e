"""Keyed configuration items kept in memory and persisted to a JSON file."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Iterator, Optional, Union

PathLike = Union[str, "os.PathLike[str]"]

_BYTES_TAG = "__bytes__"


def _encode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: bytes(value).hex()}
    if isinstance(value, dict):
        return {str(k): _encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(v) for v in value]
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict):
        if set(value) == {_BYTES_TAG}:
            return bytes.fromhex(value[_BYTES_TAG])
        return {k: _decode(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_decode(v) for v in value]
    return value


class ConfigStore:
    """A store of configuration items addressed by key.

    Items are copied on the way in and out, so later changes to a value
    handed in or out do not touch what is stored.
    """

    def __init__(self) -> None:
        self._items: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        """The item stored under ``key``, or None if there is none."""
        if key not in self._items:
            return None
        return copy.deepcopy(self._items[key])

    def put(self, key: str, value: Any) -> bool:
        """Store ``value`` under ``key``, replacing any earlier item."""
        self._items[key] = copy.deepcopy(value)
        return True

    def delete(self, key: str) -> bool:
        """Remove the item under ``key``; returns whether one was there."""
        return self._items.pop(key, None) is not None

    def save_file(self, path: PathLike) -> None:
        """Write all items to ``path`` as JSON."""
        data = json.dumps(_encode(self._items), indent=2, sort_keys=True)
        Path(path).write_text(data, encoding="utf-8")

    def load_file(self, path: PathLike) -> None:
        """Replace all items with those read from ``path``.

        Raises FileNotFoundError if the file is missing and ValueError if
        it does not hold a JSON object.
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"{path} does not hold a configuration object")
        self._items = _decode(raw)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))