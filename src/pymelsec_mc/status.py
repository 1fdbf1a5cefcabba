"""MELSEC end codes: map the 16-bit response status to a descriptive MCError."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

# Keys are "0x%04x" formatted end codes (lower case).
_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "0x0050": (
            "0x0050: When \"Communication Data Code\" is set to ASCII Code, ASCII code data "
            "that cannot be converted to binary were received."
        ),
        "0x0051": "0x0051-0x0054: The number of read or write points is outside the allowable range.",
        "0x0052": "0x0051-0x0054: The number of read or write points is outside the allowable range.",
        "0x0053": "0x0051-0x0054: The number of read or write points is outside the allowable range.",
        "0x0054": "0x0051-0x0054: The number of read or write points is outside the allowable range.",
        "0x0055": (
            "0x0055: Although online change is disabled, the connected device requested the "
            "RUN-state CPU module for data writing."
        ),
        "0xc056": "0xC056: The read or write request exceeds the maximum address.",
        "0xc058": (
            "0xC058: The request data length after ASCII-to-binary conversion does not match "
            "the data size of the character area (a part of text data)."
        ),
        "0xc059": (
            "0xC059: The command and/or subcommand are specified incorrectly. "
            "The CPU module does not support the command and/or subcommand."
        ),
        "0xc05b": "0xC05B: The CPU module cannot read data from or write data to the specified device.",
        "0xc05c": (
            "0xC05C: The request data is incorrect. "
            "(e.g. reading or writing data in units of bits from or to a word device)"
        ),
        "0xc05d": "0xC05D: No monitor registration.",
        "0xc05f": "0xC05F: The request cannot be executed to the CPU module.",
        "0xc060": "0xC060: The request data is incorrect. (ex. incorrect specification of data for bit devices)",
        "0xc061": (
            "0xC061: The request data length does not match the number of data in the "
            "character area (a part of text data)."
        ),
        "0xc06f": (
            "0xC06F: The CPU module received a request message in ASCII format when "
            "\"Communication Data Code\" is set to Binary Code, or received it in binary format "
            "when the setting is set to ASCII Code. (This error code is only registered to the "
            "error history, and no abnormal response is returned.)"
        ),
        "0xc070": "0xC070: The device memory extension cannot be specified for the target station.",
        "0xc0b5": "0xC0B5: The CPU module cannot handle the data specified.",
        "0xc200": "0xC200: The remote password is incorrect.",
        "0xc201": (
            "0xC201: The port used for communication is locked with the remote password. Or, "
            "because of the remote password lock status with \"Communication Data Code\" set to "
            "ASCII Code, the subcommand and later part cannot be converted to a binary code."
        ),
        "0xc204": (
            "0xC204: The connected device is different from the one that requested for unlock "
            "processing of the remote password."
        ),
    }
)


@dataclass(frozen=True)
class MCError:
    """A non-zero end code returned by the PLC, with its diagnostic text."""

    code: int

    @property
    def formatted(self) -> str:
        return f"0x{self.code:04x}"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS.get(self.formatted, f"{self.formatted}: Unknown error code.")

    @property
    def is_known(self) -> bool:
        return self.formatted in _DESCRIPTIONS

    @classmethod
    def from_status(cls, code: int) -> "MCError | None":
        """Return None for end code 0 (success), otherwise the MCError for the code."""
        code &= 0xFFFF
        if code == 0:
            return None
        return cls(code)

    def __str__(self) -> str:
        return self.description


def describe_status(code: int) -> str:
    """Human-readable text for any end code, including 0."""
    error = MCError.from_status(code)
    if error is None:
        return "0x0000: Normal completion."
    return error.description
