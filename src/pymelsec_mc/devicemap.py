"""DeviceCodeMap: device class -> (device code, numeric base) per PLC series and wire encoding."""

import logging
import sys
from types import MappingProxyType
from typing import Any, Mapping

from .errors import InvalidDeviceError, UnknownDeviceClassError, UnsupportedSeriesError
from .normalize import parse_device
from .types import CommType, DeviceCode, DeviceRef, Endian, PLCSeries

logger = logging.getLogger(__name__)

# class -> (binary code, base); available on every series
_COMMON_CODES: Mapping[str, tuple[int, int]] = MappingProxyType(
    {
        "SM": (0x91, 10),
        "SD": (0xA9, 10),
        "X": (0x9C, 16),
        "Y": (0x9D, 16),
        "M": (0x90, 10),
        "L": (0x92, 10),
        "F": (0x93, 10),
        "V": (0x94, 10),
        "B": (0xA0, 16),
        "D": (0xA8, 10),
        "W": (0xB4, 16),
        "TS": (0xC1, 10),
        "TC": (0xC0, 10),
        "TN": (0xC2, 10),
        "STS": (0xC7, 10),
        "STC": (0xC6, 10),
        "STN": (0xC8, 10),
        "CS": (0xC4, 10),
        "CC": (0xC3, 10),
        "CN": (0xC5, 10),
        "SB": (0xA1, 16),
        "SW": (0xB5, 16),
        "DX": (0xA2, 16),
        "DY": (0xA3, 16),
        "R": (0xAF, 10),
        "ZR": (0xB0, 16),
    }
)

# Devices that exist only on iQ-R CPUs
_IQR_CODES: Mapping[str, tuple[int, int]] = MappingProxyType(
    {
        "LTS": (0x51, 10),
        "LTC": (0x50, 10),
        "LTN": (0x52, 10),
        "LSTS": (0x59, 10),
        "LSTC": (0x58, 10),
        "LSTN": (0x5A, 10),
        "LCS": (0x55, 10),
        "LCC": (0x54, 10),
        "LCN": (0x56, 10),
        "LZ": (0x62, 10),
        "RD": (0x2C, 10),
    }
)

# Retentive timer names as written in Q/L manuals
_ALIASES: Mapping[str, str] = MappingProxyType({"SS": "STS", "SC": "STC", "SN": "STN"})

# ASCII names that differ from the class name on series other than iQ-R
_LEGACY_ASCII_NAMES: Mapping[str, str] = MappingProxyType({"STS": "SS", "STC": "SC", "STN": "SN"})

_BYTE_ORDER: Mapping[Endian, str] = MappingProxyType({Endian.LITTLE: "little", Endian.BIG: "big"})


def _parse_series(series: PLCSeries | str) -> PLCSeries:
    if isinstance(series, PLCSeries):
        return series
    try:
        return PLCSeries(series)
    except ValueError:
        raise UnsupportedSeriesError(str(series)) from None


class DeviceCodeMap:
    """
    Static device code tables for one PLC series.

    Binary encoding resolves to a one-byte device code; ASCII encoding resolves to the
    class name padded with '*' (2 characters, 4 on iQ-R). Both carry the base (10 or 16)
    that the decimal device index is reinterpreted in.
    """

    def __init__(self, series: PLCSeries | str = PLCSeries.Q) -> None:
        self._series = _parse_series(series)

    @property
    def series(self) -> PLCSeries:
        return self._series

    @property
    def is_iqr(self) -> bool:
        return self._series is PLCSeries.IQR

    def _lookup(self, device_class: str) -> tuple[str, int, int]:
        name = _ALIASES.get(device_class, device_class)
        if name in _COMMON_CODES:
            code, base = _COMMON_CODES[name]
            return name, code, base
        if name in _IQR_CODES and self.is_iqr:
            code, base = _IQR_CODES[name]
            return name, code, base
        raise UnknownDeviceClassError(device_class, self._series.value)

    def resolve(self, device_class: str, comm_type: CommType = CommType.BINARY) -> DeviceCode:
        """Return the DeviceCode for a class; raise UnknownDeviceClassError if unmapped."""
        name, code, base = self._lookup(device_class)
        if comm_type is CommType.BINARY:
            return DeviceCode(code, base)
        if self.is_iqr:
            return DeviceCode(name.ljust(4, "*"), base)
        return DeviceCode(_LEGACY_ASCII_NAMES.get(name, name).ljust(2, "*"), base)

    def device_number(self, ref: DeviceRef, comm_type: CommType = CommType.BINARY) -> int:
        """Reinterpret the decimal index text in the class base ('X10' -> 16)."""
        base = self.resolve(ref.device_class, comm_type).base
        try:
            return int(str(ref.index), base)
        except ValueError:
            raise InvalidDeviceError(str(ref), f"Device index {ref.index} is not valid in base {base}") from None

    def encode(self, ref: DeviceRef, comm_type: CommType = CommType.BINARY, endian: Endian = Endian.LITTLE) -> bytes:
        """
        Build the device address field of a request.

        Binary iQ-R: 4-byte device number + 2-byte device code.
        Binary other series: low 3 bytes of the device number + 1-byte device code.
        ASCII: padded class name + 6 lower-case hex digits.
        """
        device_code = self.resolve(ref.device_class, comm_type)
        number = self.device_number(ref, comm_type)
        limit, size = (0xFFFFFFFF, 4) if comm_type is CommType.BINARY and self.is_iqr else (0xFFFFFF, 3)
        if number > limit:
            raise InvalidDeviceError(str(ref), f"Device number {number} does not fit in {size} bytes")
        if comm_type is CommType.BINARY:
            order = _BYTE_ORDER.get(endian, sys.byteorder)
            raw = number.to_bytes(4, order)
            if self.is_iqr:
                # iQ-R: the 2 bytes after the number carry the device code, not a zero-filled upper half
                return raw + int(device_code.code).to_bytes(2, order)
            low = raw[:3] if order == "little" else raw[1:]
            return low + bytes([int(device_code.code)])
        return str(device_code.code).encode("ascii") + f"{number:06x}".encode("ascii")

    def explain(self, device: str, comm_type: CommType = CommType.BINARY, endian: Endian = Endian.LITTLE) -> dict[str, Any]:
        """Return parsed device, code, base, device number and encoded field (for debugging)."""
        ref = parse_device(device)
        device_code = self.resolve(ref.device_class, comm_type)
        field = self.encode(ref, comm_type, endian)
        return {
            "device": str(ref),
            "device_class": ref.device_class,
            "index": ref.index,
            "series": self._series.value,
            "comm_type": comm_type.value,
            "code": f"0x{device_code.code:02X}" if isinstance(device_code.code, int) else device_code.code,
            "base": device_code.base,
            "device_number": self.device_number(ref, comm_type),
            "field": field.hex() if comm_type is CommType.BINARY else field.decode("ascii"),
        }

    def __len__(self) -> int:
        return len(_COMMON_CODES) + (len(_IQR_CODES) if self.is_iqr else 0)

    def __contains__(self, device_class: object) -> bool:
        if not isinstance(device_class, str):
            return False
        try:
            self._lookup(device_class)
        except UnknownDeviceClassError:
            return False
        return True


def get_device_map(series: PLCSeries | str = PLCSeries.Q) -> DeviceCodeMap:
    """Return the DeviceCodeMap for the given series (default Q)."""
    logger.debug("Device map for series %s", series)
    return DeviceCodeMap(series)
