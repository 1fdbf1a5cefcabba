"""pymelsec-mc: MELSEC MC protocol (3E/4E frame) client for reading and writing PLC devices."""

__version__ = "0.1.0"

from .client import MCClient
from .codec import ValueCodec
from .devicemap import DeviceCodeMap, get_device_map
from .errors import (
    CodecError,
    DecodeError,
    FrameBuildError,
    InvalidDeviceError,
    MCProtocolError,
    PyMelsecError,
    TransportError,
    UnknownDeviceClassError,
    UnsupportedEndiannessError,
    UnsupportedSeriesError,
    UnsupportedSizeError,
)
from .frame import Frame3E, Frame4E, Routing
from .normalize import parse_device
from .status import MCError
from .transport import TcpTransport
from .types import CommType, DataType, DeviceCode, DeviceRef, Endian, PLCSeries, QueryTag, Tag

__all__ = [
    "__version__",
    "MCClient",
    "ValueCodec",
    "DeviceCodeMap",
    "get_device_map",
    "CodecError",
    "DecodeError",
    "FrameBuildError",
    "InvalidDeviceError",
    "MCProtocolError",
    "PyMelsecError",
    "TransportError",
    "UnknownDeviceClassError",
    "UnsupportedEndiannessError",
    "UnsupportedSeriesError",
    "UnsupportedSizeError",
    "Frame3E",
    "Frame4E",
    "Routing",
    "parse_device",
    "MCError",
    "TcpTransport",
    "CommType",
    "DataType",
    "DeviceCode",
    "DeviceRef",
    "Endian",
    "PLCSeries",
    "QueryTag",
    "Tag",
]
