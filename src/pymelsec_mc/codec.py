"""ValueCodec: fixed-width value packing with session endianness, signedness and binary/ASCII wire encoding."""

import binascii
import struct

from .errors import CodecError, DecodeError, UnsupportedEndiannessError, UnsupportedSizeError
from .types import CommType, DataType, Endian

# (width, signed) -> struct code for integer word types
_INT_CODES: dict[tuple[int, bool], str] = {
    (2, True): "h",
    (2, False): "H",
    (4, True): "i",
    (4, False): "I",
    (8, True): "q",
    (8, False): "Q",
}


def _struct_code(data_type: DataType, signed: bool) -> tuple[str, int]:
    """Return (struct code, byte size) for one value of data_type."""
    width = data_type.width
    if width not in (2, 4, 8):
        raise UnsupportedSizeError(f"Unsupported data type size: {width}")
    if data_type is DataType.BIT:
        # one-byte fields (network, pc, module station, random access counts)
        return "B", 1
    if data_type.is_float:
        return data_type.value, width
    return _INT_CODES[(width, signed)], width


def _truncate(value: int, size: int, signed: bool) -> int:
    bits = 8 * size
    v = value & ((1 << bits) - 1)
    if signed and v >= 1 << (bits - 1):
        v -= 1 << bits
    return v


class ValueCodec:
    """
    Encode and decode every frame field and device value.

    Binary mode packs with struct in the session byte order. ASCII mode renders the
    same packed bytes as upper-case hexadecimal text, two characters per byte.
    """

    def __init__(self, endian: Endian = Endian.LITTLE, comm_type: CommType = CommType.BINARY) -> None:
        self.endian = endian
        self.comm_type = comm_type

    @property
    def word_size(self) -> int:
        return self.comm_type.word_size

    @property
    def is_ascii(self) -> bool:
        return self.comm_type is CommType.ASCII

    def _prefix(self) -> str:
        if not isinstance(self.endian, Endian):
            raise UnsupportedEndiannessError(f"Unsupported endianness: {self.endian!r}")
        return self.endian.value

    def byte_length(self, data_type: DataType, signed: bool = False) -> int:
        """Wire length of one encoded value of data_type."""
        _code, size = _struct_code(data_type, signed)
        return size * 2 if self.is_ascii else size

    def encode(self, value: int | float, data_type: DataType, signed: bool = False) -> bytes:
        """Pack value at the data type's width; integers are truncated to that width."""
        code, size = _struct_code(data_type, signed)
        prefix = self._prefix()
        if data_type.is_float:
            packed_value: int | float = float(value)
        else:
            packed_value = _truncate(int(value), size, signed and code != "B")
        try:
            raw = struct.pack(prefix + code, packed_value)
        except (struct.error, OverflowError) as e:
            raise CodecError(f"Cannot pack {value!r} as {data_type.name}: {e}") from e
        if self.is_ascii:
            return binascii.hexlify(raw).upper()
        return raw

    def decode(self, data: bytes, data_type: DataType, signed: bool = False) -> int | float:
        """Unpack one value; ASCII input is hex text and is converted to bytes first."""
        code, size = _struct_code(data_type, signed)
        prefix = self._prefix()
        raw = bytes(data)
        if self.is_ascii:
            try:
                raw = binascii.unhexlify(raw)
            except (binascii.Error, ValueError) as e:
                raise DecodeError(f"Malformed hex text {data!r}: {e}") from e
        if len(raw) < size:
            raise DecodeError(f"Truncated buffer: need {size} bytes for {data_type.name}, got {len(raw)}")
        return struct.unpack_from(prefix + code, raw)[0]

    @staticmethod
    def text(data: bytes) -> str:
        """Return the payload verbatim as UTF-8 text."""
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Payload is not valid UTF-8: {bytes(data)!r}") from e
