"""Minimal SNTP client that keeps a running clock in Unix seconds."""

from __future__ import annotations

import socket
import struct
from typing import Any, Callable, Optional

from .logbuffer import LogFeature, LogLevel
from .tokenizer import tokenize

PACKET_SIZE = 48
NTP_PORT = 123
DEFAULT_SERVER = "217.147.223.78"
# Seconds from 1900-01-01 (NTP epoch) to 1970-01-01 (Unix epoch).
NTP_OFFSET = 2208988800
INITIAL_DELAY = 5
RETRY_DELAY = 10

_MASK32 = 0xFFFFFFFF


def build_request() -> bytes:
    """The 48-byte client request packet."""
    packet = bytearray(PACKET_SIZE)
    packet[0] = 0xE3  # leap indicator, version, mode
    packet[1] = 0  # stratum
    packet[2] = 6  # polling interval
    packet[3] = 0xEC  # peer clock precision
    packet[12:16] = bytes((49, 0x4E, 49, 52))
    return bytes(packet)


def parse_response(data: bytes, offset_seconds: int = 0) -> int:
    """Unix time from the transmit timestamp of a reply, plus ``offset_seconds``.

    A reply shorter than a full packet is padded with zeros.
    """
    packet = bytes(data[:PACKET_SIZE]).ljust(PACKET_SIZE, b"\x00")
    (secs_since_1900,) = struct.unpack_from(">I", packet, 40)
    return (secs_since_1900 - NTP_OFFSET + offset_seconds) & _MASK32


def _udp_socket() -> Any:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)


class NtpClient:
    """Polls a time server and counts the time forward every second.

    ``socket_factory`` makes UDP sockets and ``is_connected`` tells whether
    the network is up; both can be replaced.
    """

    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        port: int = NTP_PORT,
        socket_factory: Callable[[], Any] = _udp_socket,
        is_connected: Callable[[], bool] = lambda: True,
        logger: Optional[Any] = None,
        timeout: float = 5.0,
    ) -> None:
        self.address = (server, port)
        self.socket_factory = socket_factory
        self.is_connected = is_connected
        self.logger = logger
        self.timeout = timeout
        self.sock: Optional[Any] = None
        self.delay = INITIAL_DELAY
        self.time = 0
        self.offset_seconds = 0

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.add(LogLevel.INFO, LogFeature.NTP, message)

    def set_timezone_command(self, context: Any, cmd: str, args: str) -> int:
        """Handle ``ntp_timeZoneOfs <hours>``; raises ValueError without an argument."""
        tokens = tokenize(args)
        if len(tokens) < 1:
            self._log("Command requires one argument")
            raise ValueError("ntp_timeZoneOfs requires one argument")
        self.offset_seconds = tokens.arg_int(0) * 60 * 60
        self._log("NTP offset set, wait for next ntp packet to apply changes")
        return 1

    def register(self, registry: Any) -> None:
        """Register the ntp_timeZoneOfs command."""
        registry.register(
            "ntp_timeZoneOfs",
            "",
            self.set_timezone_command,
            "Sets the time zone offset in hours",
            None,
        )

    def shutdown(self) -> None:
        """Close the socket; the next attempt may come after the retry delay."""
        if self.sock is not None:
            self.sock.close()
        self.sock = None
        self.delay = RETRY_DELAY

    def send_request(self, blocking: bool) -> bool:
        """Open a socket and send a request; returns whether it was sent."""
        try:
            self.sock = self.socket_factory()
        except OSError:
            self.sock = None
            self._log("NTP_SendRequest: failed to create socket")
            return False
        try:
            self.sock.sendto(build_request(), self.address)
        except OSError:
            self._log("NTP_SendRequest: Unable to send message")
            self.shutdown()
            return False
        if blocking:
            self.sock.settimeout(self.timeout)
        else:
            self.sock.setblocking(False)
        self.delay = RETRY_DELAY
        return True

    def check_for_receive(self) -> Optional[int]:
        """Take a waiting reply and set the clock from it.

        Returns the new time, or None if no reply could be read.
        """
        if self.sock is None:
            return None
        try:
            data = self.sock.recv(PACKET_SIZE)
        except OSError:
            self._log("NTP_CheckForReceive: Error while receiving server's msg")
            return None
        self.time = parse_response(data, self.offset_seconds)
        self._log(f"Unix time = {self.time}")
        self.shutdown()
        return self.time

    def request_blocking(self) -> Optional[int]:
        """Send a request and wait for the reply."""
        self.shutdown()
        if not self.send_request(True):
            return None
        return self.check_for_receive()

    def on_every_second(self) -> None:
        """Count the clock on and drive requests, replies and timeouts."""
        self.time = (self.time + 1) & _MASK32
        if not self.is_connected():
            return
        if self.sock is None:
            # no socket: this is the delay before the next attempt
            if self.delay > 0:
                self.delay -= 1
                return
            self.send_request(False)
        else:
            self.check_for_receive()
            # socket open: this is the timeout for the reply
            if self.delay > 0:
                self.delay -= 1
                if self.delay <= 0:
                    self.shutdown()