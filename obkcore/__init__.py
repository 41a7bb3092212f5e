"""Smart-plug and light-controller logic: pins, channels, buttons, commands, logging, settings, NTP and OTA writing."""

__version__ = "0.1.0"

__all__ = [
    "buttons",
    "commands",
    "config",
    "devices",
    "logbuffer",
    "ntp",
    "ota",
    "pins",
    "repeating",
    "storage",
    "tokenizer",
    "util",
]