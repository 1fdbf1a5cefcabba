"""Tests for MCClient request assembly and reply decoding (transport mocked)."""

import logging
from unittest.mock import MagicMock

import pytest

from pymelsec_mc import MCClient
from pymelsec_mc.errors import CodecError, DecodeError, InvalidDeviceError, MCProtocolError, UnsupportedSeriesError
from pymelsec_mc.frame import Frame4E
from pymelsec_mc.transport import TcpTransport
from pymelsec_mc.types import CommType, DataType, Endian, PLCSeries, QueryTag, Tag

# 3E binary reply header up to (not including) the end code
REPLY_3E = "d000 00 ff ff03 00 0000"
OK_3E = bytes.fromhex(REPLY_3E + "0000")
# 3E ASCII reply header up to (not including) the end code
REPLY_3E_ASCII = b"D00000FF03FF000000"


@pytest.fixture
def transport() -> MagicMock:
    mock = MagicMock(spec=TcpTransport)
    mock.is_connected = True
    mock.recv.return_value = OK_3E
    return mock


def make_client(transport: MagicMock, **kwargs) -> MCClient:
    return MCClient("192.168.1.10", transport=transport, **kwargs)


def sent(transport: MagicMock, call: int = -1) -> bytes:
    return transport.send.call_args_list[call][0][0]


# ---------------------------------------------------------------------------
# Construction and session
# ---------------------------------------------------------------------------


def test_defaults(transport: MagicMock) -> None:
    client = make_client(transport)
    assert client.plc_series is PLCSeries.Q
    assert client.comm_type is CommType.BINARY
    assert client.word_size == 2


def test_invalid_series_raises(transport: MagicMock) -> None:
    with pytest.raises(UnsupportedSeriesError):
        make_client(transport, plc_series="FX3")


def test_invalid_comm_type_raises(transport: MagicMock) -> None:
    with pytest.raises(ValueError, match="binary"):
        make_client(transport, comm_type="hex")


def test_set_comm_type(transport: MagicMock) -> None:
    client = make_client(transport)
    client.set_comm_type("ascii")
    assert client.comm_type is CommType.ASCII
    assert client.word_size == 4


def test_set_subheader_serial_on_3e_warns(transport: MagicMock, caplog: pytest.LogCaptureFixture) -> None:
    client = make_client(transport)
    with caplog.at_level(logging.WARNING, logger="pymelsec_mc.client"):
        client.set_subheader_serial(5)
    assert "ignoring subheader serial" in caplog.text


def test_lazy_connect(transport: MagicMock) -> None:
    transport.is_connected = False
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "0000")
    client = make_client(transport, timeout=1.5)
    client.batch_read("D0", 1)
    transport.connect.assert_called_once_with("192.168.1.10", 5007, 1.5, 1.5)


def test_context_manager(transport: MagicMock) -> None:
    transport.is_connected = False
    with make_client(transport) as client:
        assert isinstance(client, MCClient)
    transport.connect.assert_called_once()
    transport.close.assert_called_once()


# ---------------------------------------------------------------------------
# Batch read
# ---------------------------------------------------------------------------


def test_batch_read_words_iqr(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "0100 feff 2c01 ff7f")
    client = make_client(transport, plc_series="iQ-R")

    tags = client.batch_read("D100", 4, DataType.SWORD)

    assert sent(transport) == bytes.fromhex(
        "5000 00 ff ff03 00 0e00 0400" "0104 0200 64000000 a800 0400"
    )
    assert [t.device for t in tags] == ["D100", "D101", "D102", "D103"]
    assert [t.value for t in tags] == ["1", "-2", "300", "32767"]
    assert all(t.data_type is DataType.SWORD for t in tags)


def test_batch_read_unsigned_and_dword(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "feff" "70110100")
    client = make_client(transport)
    assert client.batch_read("D0", 1, "uword")[0].value == "65534"
    assert sent(transport).endswith(bytes.fromhex("0000" "000000a8" "0100"))

    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "70110100")
    tags = client.batch_read("D0", 1, DataType.SDWORD)
    assert tags[0].value == "70000"
    # a double word counts as two words
    assert sent(transport).endswith(bytes.fromhex("0200"))


def test_batch_read_bits_binary(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "1001")
    client = make_client(transport)

    tags = client.batch_read("M0", 4, DataType.BIT)

    assert sent(transport).endswith(bytes.fromhex("0104 0100 000000 90 0400"))
    assert [t.value for t in tags] == ["1", "0", "0", "1"]
    assert [t.device for t in tags] == ["M0", "M1", "M2", "M3"]


def test_batch_read_bits_binary_raw(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "1001")
    client = make_client(transport)
    tags = client.batch_read("M0", 3, DataType.BIT, decode=False)
    assert [t.value for t in tags] == ["16", "16", "1"]


def test_batch_read_bits_iqr_subcommand(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "10")
    client = make_client(transport, plc_series="iQ-R")
    client.batch_read("X10", 1, DataType.BIT)
    assert sent(transport).endswith(bytes.fromhex("0104 0300 10000000 9c00 0100"))


def test_batch_read_words_ascii(transport: MagicMock) -> None:
    transport.recv.return_value = REPLY_3E_ASCII + b"0000" + b"34120100"
    client = make_client(transport, comm_type="ascii")

    tags = client.batch_read("D100", 2)

    assert sent(transport) == b"500000FFFF0300" b"1800" b"0400" b"0104" b"0000" b"D*000064" b"0200"
    assert [t.value for t in tags] == ["4660", "1"]


def test_batch_read_words_ascii_raw(transport: MagicMock) -> None:
    transport.recv.return_value = REPLY_3E_ASCII + b"0000" + b"34120100"
    client = make_client(transport, comm_type="ascii")
    tags = client.batch_read("D100", 2, decode=False)
    assert [t.value for t in tags] == ["3412", "0100"]


def test_batch_read_bits_ascii(transport: MagicMock) -> None:
    transport.recv.return_value = REPLY_3E_ASCII + b"0000" + b"1011"
    client = make_client(transport, comm_type="ascii")
    tags = client.batch_read("M0", 4, DataType.BIT)
    assert [t.value for t in tags] == ["1", "0", "1", "1"]


def test_batch_read_short_reply_raises(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "0100")
    client = make_client(transport)
    with pytest.raises(DecodeError):
        client.batch_read("D100", 2)


def test_batch_read_error_status(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "56c0")
    client = make_client(transport)
    with pytest.raises(MCProtocolError) as exc_info:
        client.batch_read("D100", 1)
    assert exc_info.value.status == 0xC056
    assert exc_info.value.error.is_known


def test_batch_read_4e(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex("d400 0700 0000 00 ff ff03 00 0400 0000 0100")
    client = make_client(transport, frame="4E")
    client.set_subheader_serial(7)
    assert isinstance(client.frame, Frame4E)

    tags = client.batch_read("D0", 1)

    assert sent(transport).startswith(bytes.fromhex("5400 0700 0000 00 ff ff03 00"))
    assert tags[0].value == "1"


# ---------------------------------------------------------------------------
# Batch write
# ---------------------------------------------------------------------------


def test_batch_write_words(transport: MagicMock) -> None:
    client = make_client(transport)
    client.batch_write("D100", [1, -1])
    assert sent(transport) == bytes.fromhex(
        "5000 00 ff ff03 00 1000 0400" "0114 0000 640000a8 0200 0100 ffff"
    )


def test_batch_write_bits_binary(transport: MagicMock) -> None:
    client = make_client(transport)
    client.batch_write("M10", [1, 0, 1], DataType.BIT)
    assert sent(transport) == bytes.fromhex(
        "5000 00 ff ff03 00 0e00 0400" "0114 0100 0a0000 90 0300 1010"
    )


def test_batch_write_bits_ascii(transport: MagicMock) -> None:
    transport.recv.return_value = REPLY_3E_ASCII + b"0000"
    client = make_client(transport, comm_type="ascii")
    client.batch_write("M10", [1, 0, 1], DataType.BIT)
    assert sent(transport).endswith(b"0114" b"0100" b"M*00000a" b"0300" b"101")


def test_batch_write_error_status(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "55" "00")
    client = make_client(transport)
    with pytest.raises(MCProtocolError) as exc_info:
        client.batch_write("D100", [1])
    assert exc_info.value.status == 0x0055


# ---------------------------------------------------------------------------
# Random read / write
# ---------------------------------------------------------------------------


def test_random_read_expands_multiword_tags(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(
        REPLY_3E + "0000" "fbff" "70110100" "0100000000000000"
    )
    client = make_client(transport)

    tags = client.read(
        [
            QueryTag("D100", DataType.SWORD),
            QueryTag("D200", DataType.SDWORD),
            QueryTag("D300", DataType.ULWORD),
        ]
    )

    assert sent(transport) == bytes.fromhex(
        "5000 00 ff ff03 00 2400 0400"
        "0304 0000 07 00"
        "640000a8"
        "c80000a8 c90000a8"
        "2c0100a8 2d0100a8 2e0100a8 2f0100a8"
    )
    assert [(t.device, t.value) for t in tags] == [("D100", "-5"), ("D200", "70000"), ("D300", "1")]


def test_random_read_float(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "0000c03f")
    client = make_client(transport)
    tags = client.read([QueryTag("D10", DataType.FLOAT)])
    assert tags[0].value == "1.5"


def test_random_read_iqr_subcommand(transport: MagicMock) -> None:
    transport.recv.return_value = bytes.fromhex(REPLY_3E + "0000" "0100")
    client = make_client(transport, plc_series="iQ-R")
    client.read([QueryTag("D0")])
    assert sent(transport).endswith(bytes.fromhex("0304 0200 01 00 00000000 a800"))


def test_random_read_empty_sends_nothing(transport: MagicMock) -> None:
    client = make_client(transport)
    assert client.read([]) == []
    transport.send.assert_not_called()


def test_random_read_too_many_points(transport: MagicMock) -> None:
    client = make_client(transport)
    with pytest.raises(ValueError, match="Too many points"):
        client.read([QueryTag(f"D{i}") for i in range(256)])
    transport.send.assert_not_called()


def test_random_write_words(transport: MagicMock) -> None:
    client = make_client(transport)
    client.write([Tag("D100", "-5", DataType.SWORD), Tag("D200", "70000", DataType.UDWORD)])
    assert sent(transport) == bytes.fromhex(
        "5000 00 ff ff03 00 1a00 0400"
        "0214 0000 03 00"
        "640000a8 fbff"
        "c80000a8 7011"
        "c90000a8 0100"
    )


def test_random_write_float(transport: MagicMock) -> None:
    client = make_client(transport)
    client.write([Tag("D0", "1.5", DataType.FLOAT)])
    assert sent(transport).endswith(bytes.fromhex("000000a8 0000" "010000a8 c03f"))


@pytest.mark.parametrize(
    ("comm_type", "endian", "tag", "payload"),
    [
        (
            CommType.BINARY,
            Endian.LITTLE,
            Tag("D300", "1", DataType.ULWORD),
            bytes.fromhex(
                "0214 0000 04 00"
                "2c0100a8 0100"
                "2d0100a8 0000"
                "2e0100a8 0000"
                "2f0100a8 0000"
            ),
        ),
        (
            CommType.BINARY,
            Endian.BIG,
            Tag("D200", "70000", DataType.SDWORD),
            bytes.fromhex("1402 0000 02 00" "0000c8a8 0001" "0000c9a8 1170"),
        ),
        (
            CommType.ASCII,
            Endian.LITTLE,
            Tag("D10", "-2", DataType.SLWORD),
            b"0214" b"0000" b"04" b"00"
            b"D*00000a" b"FEFF"
            b"D*00000b" b"FFFF"
            b"D*00000c" b"FFFF"
            b"D*00000d" b"FFFF",
        ),
    ],
)
def test_random_write_splits_wide_values_into_words(
    transport: MagicMock, comm_type: CommType, endian: Endian, tag: Tag, payload: bytes
) -> None:
    if comm_type is CommType.ASCII:
        transport.recv.return_value = REPLY_3E_ASCII + b"0000"
    client = make_client(transport, comm_type=comm_type, endian=endian)
    client.write([tag])
    assert sent(transport).endswith(payload)


def test_random_read_ascii(transport: MagicMock) -> None:
    transport.recv.return_value = REPLY_3E_ASCII + b"0000" + b"FBFF" + b"70110100"
    client = make_client(transport, comm_type="ascii")

    tags = client.read([QueryTag("D100", DataType.SWORD), QueryTag("D200", DataType.SDWORD)])

    assert sent(transport).endswith(b"0304" b"0000" b"03" b"00" b"D*000064" b"D*0000c8" b"D*0000c9")
    assert [t.value for t in tags] == ["-5", "70000"]


def test_write_bit_tag_uses_batch_write(transport: MagicMock) -> None:
    client = make_client(transport)
    client.write([Tag("M10", "1 0 1", DataType.BIT)])
    assert transport.send.call_count == 1
    assert sent(transport).endswith(bytes.fromhex("0114 0100 0a0000 90 0300 1010"))


def test_write_mixed_bits_and_words(transport: MagicMock) -> None:
    client = make_client(transport)
    client.write([Tag("M0", "1", DataType.BIT), Tag("D0", "7", DataType.SWORD)])
    assert transport.send.call_count == 2
    # only the word tag is counted in the random write
    assert sent(transport, 1).endswith(bytes.fromhex("0214 0000 01 00 000000a8 0700"))


def test_write_unsigned_negative_is_rejected(transport: MagicMock) -> None:
    client = make_client(transport)
    with pytest.raises(CodecError):
        client.write([Tag("D100", "-5", DataType.UWORD)])
    transport.send.assert_not_called()


def test_write_invalid_value(transport: MagicMock) -> None:
    client = make_client(transport)
    with pytest.raises(CodecError):
        client.write([Tag("D100", "abc", DataType.SWORD)])
    with pytest.raises(CodecError):
        client.write([Tag("D100", None, DataType.SWORD)])


def test_write_validates_every_tag_before_sending(transport: MagicMock) -> None:
    client = make_client(transport)
    with pytest.raises(CodecError):
        client.write([Tag("M0", "1", DataType.BIT), Tag("D0", "abc", DataType.SWORD)])
    with pytest.raises(CodecError):
        client.write([Tag("M0", "1 0", DataType.BIT), Tag("D0", "-5", DataType.UWORD)])
    with pytest.raises(InvalidDeviceError):
        client.write([Tag("M0", "1", DataType.BIT), Tag("D16777216", "1", DataType.SWORD)])
    transport.send.assert_not_called()


def test_write_empty_sends_nothing(transport: MagicMock) -> None:
    client = make_client(transport)
    client.write([])
    transport.send.assert_not_called()


def test_explain(transport: MagicMock) -> None:
    client = make_client(transport, plc_series="iQ-R")
    info = client.explain("D100")
    assert info["field"] == "64000000a800"
    assert info["series"] == "iQ-R"
