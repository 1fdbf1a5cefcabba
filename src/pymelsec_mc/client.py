"""MCClient: MELSEC MC protocol (3E/4E) client with batch and random device access."""

import logging
from typing import Any, Iterable, Sequence

from .codec import ValueCodec
from .consts import SOCK_BUFSIZE, Commands, Subcommands
from .devicemap import DeviceCodeMap
from .errors import CodecError, DecodeError
from .frame import FrameVariant, Frame4E, Routing, build_command, build_frame, check_status, data_offset, make_frame
from .normalize import parse_device
from .transport import TcpTransport
from .types import CommType, DataType, DeviceRef, Endian, PLCSeries, QueryTag, Tag

logger = logging.getLogger(__name__)

_UNSIGNED_WORDS = frozenset({DataType.UWORD, DataType.UDWORD})

# Random access counts are one-byte fields
_MAX_RANDOM_POINTS = 0xFF


def _as_data_type(data_type: DataType | str) -> DataType:
    if isinstance(data_type, DataType):
        return data_type
    return DataType.from_str(data_type)


def _as_comm_type(comm_type: CommType | str) -> CommType:
    if isinstance(comm_type, CommType):
        return comm_type
    try:
        return CommType(comm_type.lower())
    except ValueError:
        raise ValueError(f"Failed to set communication type {comm_type!r}. Please use 'binary' or 'ascii'") from None


def _as_endian(endian: Endian | str) -> Endian:
    if isinstance(endian, Endian):
        return endian
    try:
        return Endian(endian)
    except ValueError:
        pass
    try:
        return Endian[endian.upper()]
    except KeyError:
        raise ValueError(f"Invalid endianness {endian!r}. Please use 'little', 'big' or 'native'") from None


def _parse_int(text: str, device: str) -> int:
    try:
        return int(text, 10)
    except ValueError:
        raise CodecError(f"Invalid value {text!r} for device {device}") from None


class MCClient:
    """
    MC protocol client for MELSEC Q/L/QnA/iQ-L/iQ-R CPUs over TCP.

    Each operation sends one request and blocks for one reply. Do not share one client
    between threads issuing requests concurrently; use one client per caller instead.
    """

    def __init__(
        self,
        host: str,
        port: int = 5007,
        plc_series: PLCSeries | str = PLCSeries.Q,
        comm_type: CommType | str = CommType.BINARY,
        frame: FrameVariant | str = "3E",
        endian: Endian | str = Endian.LITTLE,
        timeout: float = 2.0,
        read_timeout: float | None = None,
        write_timeout: float | None = None,
        transport: TcpTransport | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._device_map = DeviceCodeMap(plc_series)
        self._comm_type = _as_comm_type(comm_type)
        self._endian = _as_endian(endian)
        self._frame = make_frame(frame) if isinstance(frame, str) else frame
        self._codec = ValueCodec(self._endian, self._comm_type)
        self._read_timeout = read_timeout if read_timeout is not None else timeout
        self._write_timeout = write_timeout if write_timeout is not None else timeout
        self._sockbufsize = SOCK_BUFSIZE
        self._transport = transport if transport is not None else TcpTransport()
        self.routing = Routing()

    # ------------------------------------------------------------------
    # Session configuration
    # ------------------------------------------------------------------

    @property
    def plc_series(self) -> PLCSeries:
        return self._device_map.series

    @property
    def comm_type(self) -> CommType:
        return self._comm_type

    @property
    def endian(self) -> Endian:
        return self._endian

    @property
    def frame(self) -> FrameVariant:
        return self._frame

    @property
    def word_size(self) -> int:
        return self._codec.word_size

    def set_comm_type(self, comm_type: CommType | str) -> None:
        """Switch between 'binary' and 'ascii' communication data code."""
        self._comm_type = _as_comm_type(comm_type)
        self._codec = ValueCodec(self._endian, self._comm_type)

    def set_subheader_serial(self, serial: int) -> None:
        """Set the 4E serial number (0..65535). 3E frames carry no serial."""
        if isinstance(self._frame, Frame4E):
            self._frame.set_serial(serial)
        else:
            logger.warning("3E frames carry no serial number; ignoring subheader serial %d", serial)

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _get_transport(self) -> TcpTransport:
        if not self._transport.is_connected:
            self._transport.connect(self._host, self._port, self._read_timeout, self._write_timeout)
        return self._transport

    def connect(self) -> None:
        """Establish TCP connection to the PLC."""
        self._get_transport()

    def close(self) -> None:
        """Close the TCP connection."""
        self._transport.close()

    def __enter__(self) -> "MCClient":
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    def _batch_subcommand(self, data_type: DataType) -> int:
        if data_type is DataType.BIT:
            return Subcommands.THREE if self._device_map.is_iqr else Subcommands.ONE
        return Subcommands.TWO if self._device_map.is_iqr else Subcommands.ZERO

    def _random_subcommand(self) -> int:
        return Subcommands.TWO if self._device_map.is_iqr else Subcommands.ZERO

    def _device_field(self, ref: DeviceRef) -> bytes:
        return self._device_map.encode(ref, self._comm_type, self._endian)

    def _request(self, payload: bytes) -> bytes:
        """Frame the payload, send it, wait for the reply and check the end code."""
        send_data = build_frame(self._frame, self._codec, self.routing, payload)
        transport = self._get_transport()
        transport.send(send_data)
        recv_data = transport.recv(self._sockbufsize)
        check_status(self._frame, self._codec, recv_data)
        return recv_data

    def _chunk(self, recv_data: bytes, start: int, size: int) -> bytes:
        chunk = recv_data[start : start + size]
        if len(chunk) < size:
            raise DecodeError(f"Response too short: need {start + size} bytes, got {len(recv_data)}")
        return chunk

    def explain(self, device: str) -> dict[str, Any]:
        """Return device class, code, base and the encoded address field (for debugging)."""
        return self._device_map.explain(device, self._comm_type, self._endian)

    # ------------------------------------------------------------------
    # Batch access
    # ------------------------------------------------------------------

    def batch_read(
        self,
        device: str,
        count: int,
        data_type: DataType | str = DataType.SWORD,
        decode: bool = True,
    ) -> list[Tag]:
        """
        Read `count` consecutive values starting at `device`.

        decode=False returns the reply bytes of each element verbatim as text instead
        of a number (bit devices in binary mode return the raw response byte).
        """
        data_type = _as_data_type(data_type)
        ref = parse_device(device)

        request_data = build_command(self._codec, Commands.BATCH_READ, self._batch_subcommand(data_type))
        request_data += self._device_field(ref)
        request_data += self._codec.encode(count * data_type.width // 2, DataType.SWORD)

        logger.debug("batch_read %s x%d (%s)", ref, count, data_type.name)
        recv_data = self._request(request_data)
        start = data_offset(self._frame, self._comm_type)

        result: list[Tag] = []
        if data_type is DataType.BIT:
            if self._comm_type is CommType.BINARY:
                # two points per byte: even index in bit 4, odd index in bit 0
                for index in range(count):
                    value = self._chunk(recv_data, start + index // 2, 1)[0]
                    if decode:
                        bit = value >> 4 if index % 2 == 0 else value
                        text = str(bit & 1)
                    else:
                        text = str(value)
                    result.append(Tag(str(ref.offset(index)), text, data_type))
            else:
                for index in range(count):
                    text = self._codec.text(self._chunk(recv_data, start + index, 1))
                    result.append(Tag(str(ref.offset(index)), text, data_type))
            return result

        size = self._codec.byte_length(data_type)
        for index in range(count):
            chunk = self._chunk(recv_data, start + index * size, size)
            if decode:
                text = str(self._codec.decode(chunk, data_type, data_type.is_signed))
            else:
                text = self._codec.text(chunk)
            result.append(Tag(str(ref.offset(index)), text, data_type))
        return result

    def batch_write(
        self,
        device: str,
        values: Sequence[int | float],
        data_type: DataType | str = DataType.SWORD,
    ) -> None:
        """Write `values` to consecutive devices starting at `device`."""
        data_type = _as_data_type(data_type)
        request_data = self._batch_write_payload(device, values, data_type)
        logger.debug("batch_write %s x%d (%s)", device, len(values), data_type.name)
        self._request(request_data)

    def _batch_write_payload(self, device: str, values: Sequence[int | float], data_type: DataType) -> bytes:
        ref = parse_device(device)

        request_data = build_command(self._codec, Commands.BATCH_WRITE, self._batch_subcommand(data_type))
        request_data += self._device_field(ref)
        request_data += self._codec.encode(len(values) * data_type.width // 2, DataType.SWORD)

        if data_type is DataType.BIT:
            if self._comm_type is CommType.BINARY:
                bit_data = bytearray((len(values) + 1) // 2)
                for index, value in enumerate(values):
                    bit_data[index // 2] |= (1 if value else 0) << (4 if index % 2 == 0 else 0)
                request_data += bytes(bit_data)
            else:
                for value in values:
                    request_data += str(int(value)).encode("ascii")
        else:
            for value in values:
                request_data += self._codec.encode(value, data_type, data_type.is_signed)
        return request_data

    # ------------------------------------------------------------------
    # Random access
    # ------------------------------------------------------------------

    def _random_header(self, command: int, words: int) -> bytes:
        if words > _MAX_RANDOM_POINTS:
            raise ValueError(f"Too many points for one random access request: {words} > {_MAX_RANDOM_POINTS}")
        request_data = build_command(self._codec, command, self._random_subcommand())
        request_data += self._codec.encode(words, DataType.BIT)
        request_data += self._codec.encode(0, DataType.BIT)
        return request_data

    def read(self, tags: Iterable[QueryTag]) -> list[Tag]:
        """
        Random read of possibly non-contiguous devices.

        Multi-word values are requested as consecutive single-word addresses
        (e.g. an SDWORD at D100 reads D100 and D101).
        """
        queries = list(tags)
        words = sum(q.data_type.words for q in queries)
        if words < 1:
            return []

        request_data = self._random_header(Commands.RANDOM_READ, words)
        for query in queries:
            ref = parse_device(query.device)
            for word in range(query.data_type.words):
                request_data += self._device_field(ref.offset(word))

        logger.debug("random read: %d tags, %d words", len(queries), words)
        recv_data = self._request(request_data)

        output: list[Tag] = []
        index = data_offset(self._frame, self._comm_type)
        unit = self._codec.word_size // 2
        for query in queries:
            size = query.data_type.width * unit
            chunk = self._chunk(recv_data, index, size)
            value = self._codec.decode(chunk, query.data_type, query.data_type.is_signed)
            output.append(Tag(query.device, str(value), query.data_type))
            index += size
        return output

    def _parse_value(self, tag: Tag) -> int | float:
        if tag.value is None:
            raise CodecError(f"No value to write for device {tag.device}")
        text = tag.value.strip()
        if tag.data_type.is_float:
            try:
                return float(text)
            except ValueError:
                raise CodecError(f"Invalid value {text!r} for device {tag.device}") from None
        value = _parse_int(text, tag.device)
        if tag.data_type in _UNSIGNED_WORDS and value < 0:
            # unsigned devices re-sign the literal and parse it again
            value = _parse_int(f"-{text}", tag.device)
        return value

    def write(self, tags: Iterable[Tag]) -> None:
        """
        Random write of possibly non-contiguous devices.

        Bit tags are written with one batch write each; their value is a whitespace
        separated list of 0/1 starting at the tag's device. Every request is built
        before the first one is sent, so invalid input raises with nothing written.
        """
        requests: list[bytes] = []
        word_tags: list[Tag] = []
        for tag in tags:
            if tag.data_type is DataType.BIT:
                if tag.value is None:
                    continue
                bits = [_parse_int(part, tag.device) for part in tag.value.split()]
                requests.append(self._batch_write_payload(tag.device, bits, DataType.BIT))
                continue
            word_tags.append(tag)

        words = sum(t.data_type.words for t in word_tags)
        if word_tags:
            request_data = self._random_header(Commands.RANDOM_WRITE, words)
            word_size = self._codec.word_size
            for tag in word_tags:
                ref = parse_device(tag.device)
                raw = self._codec.encode(self._parse_value(tag), tag.data_type, tag.data_type.is_signed)
                for word in range(tag.data_type.words):
                    request_data += self._device_field(ref.offset(word))
                    request_data += raw[word * word_size : (word + 1) * word_size]
            requests.append(request_data)

        logger.debug("write: %d random words, %d requests", words, len(requests))
        for request_data in requests:
            self._request(request_data)
