"""Writing a firmware image to flash, one sector at a time."""

from __future__ import annotations

from typing import Any, Optional

SECTOR_SIZE = 0x1000
FLASH_SIZE = 0x200000
MIN_START_ADDRESS = 0xFF000
START_ADDRESS_BK7231T = 0x132000
START_ADDRESS_BK7231N = 0x12A000
DEFAULT_START_ADDRESS = START_ADDRESS_BK7231T


class OtaError(Exception):
    """An update could not be started or a flash access was out of range."""


class Flash:
    """Simulated NOR flash: erasing sets bytes to 0xFF, writing clears bits."""

    def __init__(self, size: int = FLASH_SIZE) -> None:
        self.size = size
        self._mem = bytearray(b"\xff" * size)

    def _check(self, addr: int, size: int) -> None:
        if addr < 0 or size < 0 or addr + size > self.size:
            raise OtaError(f"flash access 0x{addr:x}+0x{size:x} is out of range")

    def erase_sector(self, addr: int) -> None:
        """Erase the sector holding ``addr``."""
        start = addr - addr % SECTOR_SIZE
        self._check(start, SECTOR_SIZE)
        self._mem[start:start + SECTOR_SIZE] = b"\xff" * SECTOR_SIZE

    def write(self, addr: int, data: bytes) -> None:
        """Program ``data`` at ``addr``; bits can only go from 1 to 0."""
        data = bytes(data)
        self._check(addr, len(data))
        current = self._mem[addr:addr + len(data)]
        self._mem[addr:addr + len(data)] = bytes(a & b for a, b in zip(current, data))

    def read(self, addr: int, size: int) -> bytes:
        """``size`` bytes from ``addr``."""
        self._check(addr, size)
        return bytes(self._mem[addr:addr + size])


class OtaWriter:
    """Collects update data and stores every full sector to flash."""

    def __init__(self, flash: Flash, logger: Optional[Any] = None) -> None:
        self.flash = flash
        self.logger = logger
        self.address = MIN_START_ADDRESS
        self._sector: Optional[bytearray] = None

    def _log(self, message: str) -> None:
        if self.logger is not None:
            from .logbuffer import LogFeature, LogLevel

            self.logger.add(LogLevel.INFO, LogFeature.OTA, message)

    @property
    def active(self) -> bool:
        """True between start and close."""
        return self._sector is not None

    def start(self, addr: int = DEFAULT_START_ADDRESS) -> None:
        """Begin an update at ``addr``.

        Raises OtaError if an update is already running or ``addr`` is not
        above 0xff000.
        """
        if addr <= MIN_START_ADDRESS:
            self._log(f"aborting OTA, startaddr 0x{addr:x} < 0x{MIN_START_ADDRESS:x}")
            raise OtaError(f"start address 0x{addr:x} must be above 0x{MIN_START_ADDRESS:x}")
        if self._sector is not None:
            self._log("aborting OTA, sector already non-null")
            raise OtaError("an update is already in progress")
        self._sector = bytearray()
        self.address = addr
        self._log(f"init OTA, startaddr 0x{addr:x}")

    def _store_sector(self, addr: int, data: bytes) -> None:
        if addr % 0x4000 == 0:
            self._log(f"{addr:x}")
        self.flash.erase_sector(addr)
        self.flash.write(addr, data)

    def add(self, data: bytes) -> None:
        """Add update data; ignored when no update is running."""
        if self._sector is None:
            return
        view = memoryview(bytes(data))
        while view:
            take = min(SECTOR_SIZE - len(self._sector), len(view))
            self._sector += view[:take]
            view = view[take:]
            if len(self._sector) == SECTOR_SIZE:
                self._store_sector(self.address, bytes(self._sector))
                self.address += SECTOR_SIZE
                self._sector.clear()

    def close(self) -> int:
        """Store a last partial sector padded with 0xFF; returns the final address."""
        if self._sector:
            self._log(f"close OTA, additional 0x{SECTOR_SIZE - len(self._sector):x} FF added")
            padded = bytes(self._sector).ljust(SECTOR_SIZE, b"\xff")
            self._store_sector(self.address, padded)
            self.address += 1024
        self._log(f"close OTA, addr 0x{self.address:x}")
        self._sector = None
        return self.address