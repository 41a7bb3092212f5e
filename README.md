# obkcore

The device-side logic of a small Wi-Fi smart plug or light controller, in plain Python with
no third-party dependencies. It models what such a device does with its pins, channels,
buttons, console commands, log and settings. Hardware is simulated by small classes that can
be replaced: `Gpio` for pins and PWM units, `Flash` for firmware storage, and `ConfigStore`
for the configuration area.

## Modules

- `obkcore.util`: `copy_bounded()` and `append_bounded()` fit text into a fixed-size buffer
  and return the text with the space left (0 means truncated). `url_decode()` decodes `%XX`
  and `+`. There is also `crc8()`, the littlefs CRC-32 `lfs_crc()`, and the 32-bit helpers
  `align_down()`, `align_up()`, `npw2()`, `ctz()`, `popcount()` and `seq_compare()`.
- `obkcore.tokenizer`: `tokenize()` splits on whitespace and commas and returns `Tokens`,
  with `arg()`, `arg_from()` (the rest of the text from an argument on) and `arg_int()`.
  `arg_int()` goes through `parse_int()`, which accepts `0x` hex.
- `obkcore.commands`: `CommandRegistry` keeps `Command` entries and looks names up without
  regard to ASCII case. `register()` raises `DuplicateCommandError` for a name that is taken.
  `execute("POWER1 on")` splits the line into name and arguments. If no command has the full
  name, it tries the name up to its first digit (`POWER`). An unknown name raises
  `CommandNotFoundError`.
- `obkcore.logbuffer`: `Logger` filters messages by `LogLevel` and `LogFeature`. It prefixes
  them, for example `Info:CMD:`, and writes them into a `LogMemory` ring buffer, or straight
  to an output function in direct mode. The `serial`, `tcp` and `http` readers each keep
  their own read position. `Logger.command()` handles `loglevel`, `logfeature`, `logtype` and
  `logdelay`, and `register_commands()` adds them to a registry.
- `obkcore.storage`: `ConfigStore`, a keyed store of copied items. `save_file()` and
  `load_file()` write and read it as JSON.
- `obkcore.buttons`: `Button`, a debounced state machine that is ticked every 5 ms.
  `tick()` returns the `ButtonEvent`s it fired: press down and up, repeat, single click,
  double click, long press start and hold.
- `obkcore.pins`: `PinController` gives pins an `IORole` and links them to channels. Channel
  values drive relays, LEDs (plain or inverted) and PWM duty. Buttons toggle their channel on
  a single click and their second channel on a double click. Digital inputs are copied to
  their channels by `ticks()`. `save()` and `load()` use a `ConfigStore`.
  `register_commands()` adds `showgpi` and `setChannelType`.
- `obkcore.devices`: built-in pin layouts of known devices. `device_names()` lists them and
  `apply_device()` applies one and can save it.
- `obkcore.config`: `DeviceConfig` holds the Wi-Fi, MQTT and web-app settings, which are
  length-bounded. It makes device names from a MAC address for a `Platform`, and can save and
  load the settings, moving old-format items over to the current keys.
- `obkcore.repeating`: `RepeatingEvents` runs a command through a registry every N seconds.
  It handles the `addRepeatingEvent <seconds> <command...>` command.
- `obkcore.ntp`: `build_request()` and `parse_response()` for SNTP packets. `NtpClient`
  polls a server over UDP, keeps a running clock in Unix seconds, and handles the
  `ntp_timeZoneOfs <hours>` command.
- `obkcore.ota`: `OtaWriter` collects firmware data and writes it sector by sector into a
  `Flash`. It pads the last sector with `0xFF` on `close()`. `start()` raises `OtaError` for
  an address not above `0xff000`, or while an update is already running.

## Example

```python
from obkcore.commands import CommandRegistry
from obkcore.config import DeviceConfig, Platform
from obkcore.devices import apply_device, device_names
from obkcore.logbuffer import Logger, LogFeature, LogLevel
from obkcore.pins import PinController
from obkcore.storage import ConfigStore

registry = CommandRegistry()
store = ConfigStore()
pins = PinController()
pins.register_commands(registry)

print(device_names())
apply_device(pins, "TuyaWL_SW01_16A", store)   # relay on pin 7, button on pin 26

pins.channel_toggle(1)
print(pins.channel_get(1))         # 100
print(pins.gpio.outputs[7])        # 1

registry.execute("setChannelType 3 temperature")

config = DeviceConfig()
print(config.create_unique_names(bytes.fromhex("020000AABBCC"), Platform.BK7231N))
# ('OpenBK7231N_00AABBCC', 'obk00AABBCC')

logger = Logger()
logger.add(LogLevel.INFO, LogFeature.CMD, "hello")
print(logger.read("http", 128))    # 'Info:CMD:hello\r\n'
```

## What it does not do

There is no command-line program, web server, MQTT client or HTTP download. Commands run
only when your code calls `CommandRegistry.execute()`, and `OtaWriter` only receives data that
is handed to it. Pins, PWM units and flash are in-memory simulations, and no real hardware is
touched. Periodic work is not scheduled either: your code calls `PinController.ticks()`,
`RepeatingEvents.on_every_second()` and `NtpClient.on_every_second()`. Of littlefs, only the
CRC and bit helpers are provided, not the filesystem.

## Tests

```
pip install -e .[test]
pytest
```