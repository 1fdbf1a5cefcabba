"""Clear exceptions for pymelsec-mc: device parsing, codec, protocol status and transport errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .status import MCError


class PyMelsecError(Exception):
    """Base exception for pymelsec-mc."""

    pass


class InvalidDeviceError(PyMelsecError):
    """Raised when a device token is malformed (e.g. 'bad', '12', 'D1x')."""

    def __init__(self, device: str, message: str | None = None) -> None:
        self.device = device
        self._msg = message or f"Invalid device: {device!r}"
        super().__init__(self._msg)


class UnknownDeviceClassError(PyMelsecError):
    """Raised when a device class has no device code for the selected PLC series."""

    def __init__(self, device_class: str, series: str, message: str | None = None) -> None:
        self.device_class = device_class
        self.series = series
        self._msg = message or f"Unknown device class {device_class!r} for PLC series {series!r}"
        super().__init__(self._msg)


class UnsupportedSeriesError(PyMelsecError):
    """Raised at construction when the PLC series is not one of Q, L, QnA, iQ-L, iQ-R."""

    def __init__(self, series: str) -> None:
        self.series = series
        super().__init__(f"Invalid PLC series {series!r}. Please use 'Q', 'L', 'QnA', 'iQ-L' or 'iQ-R'")


class CodecError(PyMelsecError):
    """Raised when a value cannot be encoded to or decoded from the wire."""

    pass


class UnsupportedSizeError(CodecError):
    """Raised when a data type width is not 2, 4 or 8 bytes."""

    pass


class UnsupportedEndiannessError(CodecError):
    """Raised when the session endianness is not a known Endian member."""

    pass


class DecodeError(CodecError):
    """Raised on malformed hex text, truncated buffers or undecodable UTF-8."""

    pass


class FrameBuildError(PyMelsecError):
    """Raised when a request frame cannot be assembled."""

    pass


class MCProtocolError(PyMelsecError):
    """Raised when the PLC answers with a non-zero end code."""

    def __init__(self, error: MCError) -> None:
        self.error = error
        self.status = error.code
        super().__init__(error.description)


class TransportError(PyMelsecError):
    """Raised when connect/send/recv fail or time out (wraps socket errors)."""

    def __init__(
        self,
        message: str,
        *,
        host: str | None = None,
        port: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(message)
