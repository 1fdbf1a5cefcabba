"""Parse and validate MELSEC device tokens ('D100', 'M8304', 'ZR10') into DeviceRef."""

import re

from .errors import InvalidDeviceError
from .types import DeviceRef

# Leading non-digit run is the device class, the rest must be a decimal index
_DEVICE_PATTERN = re.compile(r"^(\D+)(.*)$")


def parse_device(raw: str) -> DeviceRef:
    """
    Split a device token into its class and decimal index.

    - Surrounding whitespace is ignored and the class is upper-cased ('d100' -> D100).
    - The index is always written in decimal; hex-addressed classes (X, Y, B, W, ...)
      reinterpret it later when the address field is encoded.

    Raises InvalidDeviceError for tokens without a class or without a valid index.
    """
    s = raw.strip()
    if not s:
        raise InvalidDeviceError(raw, "Device cannot be empty")

    m = _DEVICE_PATTERN.match(s)
    if not m:
        raise InvalidDeviceError(raw, f"Invalid device type {raw!r}")

    device_class = m.group(1).strip().upper()
    digits = m.group(2)
    if not device_class:
        raise InvalidDeviceError(raw, f"Invalid device type {raw!r}")
    if not digits:
        raise InvalidDeviceError(raw, f"Invalid device index {raw!r}")
    if not digits.isdigit() or not digits.isascii():
        raise InvalidDeviceError(raw, f"Failed to parse device index {digits!r}")

    return DeviceRef(device_class, int(digits, 10))
