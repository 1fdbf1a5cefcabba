"""3E/4E frame assembly and response status/data location."""

import logging
from dataclasses import dataclass, field
from typing import Union

from .codec import ValueCodec
from .consts import (
    DEFAULT_DEST_MODULEIO,
    DEFAULT_DEST_MODULESTA,
    DEFAULT_NETWORK,
    DEFAULT_PC,
    DEFAULT_TIMER,
    SUBHEADER_3E,
    SUBHEADER_4E,
)
from .errors import CodecError, DecodeError, FrameBuildError, MCProtocolError
from .status import MCError
from .types import CommType, DataType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame3E:
    """3E frame: subheader only."""

    subheader: int = SUBHEADER_3E


@dataclass
class Frame4E:
    """4E frame: subheader, serial number (0..65535) and a reserved zero word."""

    subheader: int = SUBHEADER_4E
    serial: int = 0
    reserved: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.set_serial(self.serial)

    def set_serial(self, serial: int) -> None:
        if not 0 <= serial <= 0xFFFF:
            raise ValueError(f"subheader serial must be 0 <= serial <= 65535, got {serial}")
        self.serial = serial


FrameVariant = Union[Frame3E, Frame4E]

# (frame kind, comm type) -> (status offset, data offset)
_RESPONSE_OFFSETS: dict[tuple[str, CommType], tuple[int, int]] = {
    ("3E", CommType.BINARY): (9, 11),
    ("3E", CommType.ASCII): (18, 22),
    ("4E", CommType.BINARY): (13, 15),
    ("4E", CommType.ASCII): (26, 30),
}


def frame_kind(frame: FrameVariant) -> str:
    if isinstance(frame, Frame4E):
        return "4E"
    if isinstance(frame, Frame3E):
        return "3E"
    raise TypeError(f"Unknown frame variant: {frame!r}")


def make_frame(kind: str) -> FrameVariant:
    """Build a frame variant from '3E' or '4E' (case-insensitive)."""
    k = kind.strip().upper()
    if k == "3E":
        return Frame3E()
    if k == "4E":
        return Frame4E()
    raise ValueError(f"Failed to set frame type {kind!r}. Please use '3E' or '4E'")


def response_offsets(frame: FrameVariant, comm_type: CommType) -> tuple[int, int]:
    """Return (status offset, data offset) of a reply for this frame and encoding."""
    return _RESPONSE_OFFSETS[(frame_kind(frame), comm_type)]


def status_offset(frame: FrameVariant, comm_type: CommType) -> int:
    return response_offsets(frame, comm_type)[0]


def data_offset(frame: FrameVariant, comm_type: CommType) -> int:
    return response_offsets(frame, comm_type)[1]


@dataclass
class Routing:
    """Access route fields carried by every request."""

    network: int = DEFAULT_NETWORK
    pc: int = DEFAULT_PC
    dest_moduleio: int = DEFAULT_DEST_MODULEIO
    dest_modulesta: int = DEFAULT_DEST_MODULESTA
    timer: int = DEFAULT_TIMER


def _subheader(frame: FrameVariant, codec: ValueCodec) -> bytes:
    # The subheader is always written most significant byte first.
    if codec.is_ascii:
        return f"{frame.subheader:04X}".encode("ascii")
    return frame.subheader.to_bytes(2, "big")


def build_command(codec: ValueCodec, command: int, subcommand: int) -> bytes:
    """Command and subcommand as two SWORD fields."""
    try:
        return codec.encode(command, DataType.SWORD) + codec.encode(subcommand, DataType.SWORD)
    except CodecError as e:
        raise FrameBuildError(f"Cannot encode command 0x{command:04x}/0x{subcommand:04x}: {e}") from e


def build_frame(frame: FrameVariant, codec: ValueCodec, routing: Routing, payload: bytes) -> bytes:
    """
    Assemble a complete request.

    Layout: subheader [serial, reserved for 4E], network, pc, module I/O, module station,
    body length, timer, payload. Body length counts the timer word plus the payload in
    wire units, so it is recomputed for every request.
    """
    try:
        data = bytearray(_subheader(frame, codec))
        if isinstance(frame, Frame4E):
            data += codec.encode(frame.serial, DataType.SWORD)
            data += codec.encode(frame.reserved, DataType.SWORD)
        data += codec.encode(routing.network, DataType.BIT)
        data += codec.encode(routing.pc, DataType.BIT)
        data += codec.encode(routing.dest_moduleio, DataType.SWORD)
        data += codec.encode(routing.dest_modulesta, DataType.BIT)
        data += codec.encode(codec.word_size + len(payload), DataType.SWORD)
        data += codec.encode(routing.timer, DataType.SWORD)
    except (CodecError, OverflowError) as e:
        raise FrameBuildError(f"Cannot build {frame_kind(frame)} header: {e}") from e
    data += payload
    return bytes(data)


def check_status(frame: FrameVariant, codec: ValueCodec, response: bytes) -> None:
    """Raise MCProtocolError when the reply end code is not 0."""
    offset = status_offset(frame, codec.comm_type)
    chunk = response[offset : offset + codec.word_size]
    if len(chunk) < codec.word_size:
        raise DecodeError(f"Response too short for status field: {len(response)} bytes")
    status = int(codec.decode(chunk, DataType.SWORD))
    error = MCError.from_status(status)
    if error is not None:
        logger.debug("PLC returned end code %s", error.formatted)
        raise MCProtocolError(error)
