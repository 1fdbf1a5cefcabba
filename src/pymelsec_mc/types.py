"""Core data model: PLC series, wire encoding, endianness, data types, device references and tags."""

from dataclasses import dataclass
from enum import Enum


class PLCSeries(str, Enum):
    """Supported MELSEC controller families."""

    Q = "Q"
    L = "L"
    QNA = "QnA"
    IQL = "iQ-L"
    IQR = "iQ-R"


class CommType(str, Enum):
    """Communication data code: raw binary or hexadecimal ASCII text."""

    BINARY = "binary"
    ASCII = "ascii"

    @property
    def word_size(self) -> int:
        """Wire size of one 16-bit word: 2 bytes in binary, 4 hex characters in ASCII."""
        return 2 if self is CommType.BINARY else 4


class Endian(str, Enum):
    """Byte order applied to every multi-byte field; values are struct prefixes."""

    LITTLE = "<"
    BIG = ">"
    NATIVE = "="


class DataType(str, Enum):
    """Device value types; the value is the struct format character."""

    BIT = "b"
    SWORD = "h"
    UWORD = "H"
    SDWORD = "i"
    UDWORD = "I"
    FLOAT = "f"
    DOUBLE = "d"
    SLWORD = "q"
    ULWORD = "Q"

    @property
    def width(self) -> int:
        """
        Size in bytes on the PLC side. BIT occupies a full word slot.

        The codec still packs BIT as one byte: it is the type of the one-byte header
        and count fields, and bit device values are packed as nibbles, not words.
        """
        return _WIDTHS[self]

    @property
    def words(self) -> int:
        return self.width // 2

    @property
    def is_signed(self) -> bool:
        return self in (DataType.SWORD, DataType.SDWORD, DataType.SLWORD, DataType.FLOAT, DataType.DOUBLE)

    @property
    def is_float(self) -> bool:
        return self in (DataType.FLOAT, DataType.DOUBLE)

    @classmethod
    def from_str(cls, s: str) -> "DataType":
        """Accept a member name (case-insensitive, e.g. 'sword') or a struct character ('h')."""
        s = s.strip()
        for member in cls:
            if member.value == s:
                return member
        try:
            return cls[s.upper()]
        except KeyError:
            raise ValueError(f"Invalid data type: {s!r}") from None


_WIDTHS: dict[DataType, int] = {
    DataType.BIT: 2,
    DataType.SWORD: 2,
    DataType.UWORD: 2,
    DataType.SDWORD: 4,
    DataType.UDWORD: 4,
    DataType.FLOAT: 4,
    DataType.DOUBLE: 8,
    DataType.SLWORD: 8,
    DataType.ULWORD: 8,
}


@dataclass(frozen=True)
class DeviceRef:
    """Parsed device reference: class prefix ('D', 'X', 'ZR') and decimal index."""

    device_class: str
    index: int

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"index must be >= 0, got {self.index}")

    def offset(self, n: int) -> "DeviceRef":
        return DeviceRef(self.device_class, self.index + n)

    def __str__(self) -> str:
        return f"{self.device_class}{self.index}"


@dataclass(frozen=True)
class DeviceCode:
    """Resolved device code: int code (binary) or padded class text (ASCII), plus numeric base."""

    code: int | str
    base: int


@dataclass
class Tag:
    """A device with its value in text form, as returned by reads and consumed by writes."""

    device: str
    value: str | None = None
    data_type: DataType = DataType.SWORD
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.value is not None and not self.error

    def __str__(self) -> str:
        return f"{self.device}, {self.value!r}, {self.data_type.name}, {self.error!r}"


@dataclass(frozen=True)
class QueryTag:
    """Read request descriptor: device and data type, no value."""

    device: str
    data_type: DataType = DataType.SWORD
