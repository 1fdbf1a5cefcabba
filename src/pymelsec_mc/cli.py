#!/usr/bin/env python3
"""Command line tool for MELSEC MC protocol device access, built with Typer."""

import json
import logging
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .client import MCClient
from .devicemap import get_device_map
from .errors import (
    CodecError,
    InvalidDeviceError,
    MCProtocolError,
    TransportError,
    UnknownDeviceClassError,
    UnsupportedSeriesError,
)
from .status import describe_status
from .types import CommType, DataType, Endian, QueryTag, Tag

app = typer.Typer(
    name="pymelsec",
    help="Read and write MELSEC PLC devices over the MC protocol (3E/4E frames).",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="PLC hostname or IP address", envvar="PYMELSEC_HOST"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", help="MC protocol TCP port", envvar="PYMELSEC_PORT"),
]
SeriesOption = Annotated[
    str,
    typer.Option("--series", "-s", help="PLC series: Q, L, QnA, iQ-L, iQ-R", envvar="PYMELSEC_SERIES"),
]
CommTypeOption = Annotated[
    str,
    typer.Option("--comm-type", help="Communication data code: binary or ascii", envvar="PYMELSEC_COMM_TYPE"),
]
FrameOption = Annotated[
    str,
    typer.Option("--frame", help="Frame type: 3E or 4E", envvar="PYMELSEC_FRAME"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Socket read/write timeout in seconds", envvar="PYMELSEC_TIMEOUT"),
]
TypeOption = Annotated[
    str,
    typer.Option("--type", "-T", help="Data type: bit, sword, uword, sdword, udword, float, double, slword, ulword"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_client(
    host: Optional[str],
    port: int,
    series: str,
    comm_type: str,
    frame: str,
    timeout: float,
) -> MCClient:
    """Create and return an MCClient instance."""
    if not host:
        typer.echo("Error: --host is required for this command", err=True)
        raise typer.Exit(2)
    return MCClient(
        host=host,
        port=port,
        plc_series=series,
        comm_type=comm_type,
        frame=frame,
        timeout=timeout,
    )


def parse_bit(value: str) -> int:
    """Parse a bit value (true/false, 1/0, on/off, yes/no)."""
    v = value.lower().strip()
    if v in ("true", "1", "on", "yes"):
        return 1
    if v in ("false", "0", "off", "no"):
        return 0
    raise ValueError(f"Invalid bit value: {value!r}")


def parse_value(value: str, data_type: DataType) -> int | float:
    """Parse a value for data_type: bits, floats, or integers (decimal or 0x hex) with range check."""
    if data_type is DataType.BIT:
        return parse_bit(value)
    v = value.strip()
    if data_type.is_float:
        return float(v)
    num = int(v, 16) if v.lower().startswith("0x") else int(v)

    bits = data_type.width * 8
    if data_type.is_signed:
        lo, hi = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        lo, hi = 0, (1 << bits) - 1
    if not lo <= num <= hi:
        raise ValueError(f"{data_type.name} value out of range {lo}..{hi}: {num}")
    return num


def parse_query(token: str, default_type: DataType) -> QueryTag:
    """Parse 'D100' or 'D100:sdword' into a QueryTag."""
    device, _, type_name = token.partition(":")
    data_type = DataType.from_str(type_name) if type_name else default_type
    return QueryTag(device.strip(), data_type)


def parse_status_code(value: str) -> int:
    """Parse a status code given as hex (0xC059, C059) or decimal."""
    v = value.strip()
    if v.lower().startswith("0x"):
        return int(v, 16)
    try:
        return int(v, 10)
    except ValueError:
        return int(v, 16)


def tag_to_dict(tag: Tag) -> dict[str, Any]:
    return {"device": tag.device, "value": tag.value, "type": tag.data_type.name}


def _fail(message: str, code: int, verbose: bool = False) -> typer.Exit:
    typer.echo(message, err=True)
    if verbose and code == 4:
        import traceback

        traceback.print_exc()
    return typer.Exit(code)


def handle_error(e: Exception, verbose: bool) -> typer.Exit:
    """Map package exceptions to stderr messages and exit codes."""
    if isinstance(e, (InvalidDeviceError, UnknownDeviceClassError, UnsupportedSeriesError)):
        return _fail(f"Error: Invalid device: {e}", 2)
    if isinstance(e, (CodecError, ValueError)):
        return _fail(f"Error: Invalid value: {e}", 2)
    if isinstance(e, MCProtocolError):
        return _fail(f"Error: PLC error: {e}", 3)
    if isinstance(e, TransportError):
        return _fail(f"Error: Connection error: {e}", 3)
    return _fail(f"Error: Unexpected error: {e}", 4, verbose)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def ping(
    host: HostOption = None,
    port: PortOption = 5007,
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    frame: FrameOption = "3E",
    timeout: TimeoutOption = 2.0,
    verbose: VerboseOption = False,
    device: Annotated[str, typer.Option("--device", help="Device to read for the check")] = "SD0",
) -> None:
    """
    Test connectivity to the PLC by batch-reading one word.

    By default reads special register SD0. Use --device to test another device.
    """
    setup_logging(verbose)

    try:
        client = create_client(host, port, series, comm_type, frame, timeout)
        with client:
            tags = client.batch_read(device, 1, DataType.SWORD)
            typer.echo(f"OK: Connected to {host}:{port}, read {tags[0].device} = {tags[0].value}")
    except typer.Exit:
        raise
    except Exception as e:
        raise handle_error(e, verbose)


@app.command()
def info(
    host: HostOption = None,
    port: PortOption = 5007,
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    frame: FrameOption = "3E",
    timeout: TimeoutOption = 2.0,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show package version, session settings, and optionally test connectivity.

    Without --host: shows local settings only.
    With --host: also tests connectivity.
    """
    setup_logging(verbose)

    info_data: dict[str, Any] = {
        "version": __version__,
        "series": series,
        "comm_type": comm_type,
        "frame": frame.upper(),
    }

    if host:
        try:
            client = create_client(host, port, series, comm_type, frame, timeout)
            with client:
                client.batch_read("SD0", 1, DataType.SWORD)
            info_data["connectivity"] = {"status": "connected", "host": host, "port": port}
        except (TransportError, MCProtocolError):
            info_data["connectivity"] = {"status": "failed", "host": host, "port": port}
        except Exception as e:
            info_data["connectivity"] = {"status": "error", "error": str(e)}

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pymelsec-mc version: {info_data['version']}")
        typer.echo(f"Series: {info_data['series']}")
        typer.echo(f"Comm type: {info_data['comm_type']}")
        typer.echo(f"Frame: {info_data['frame']}")
        if "connectivity" in info_data:
            status = info_data["connectivity"]["status"]
            if status == "connected":
                typer.echo(f"Connectivity: OK ({host}:{port})")
            elif status == "failed":
                typer.echo(f"Connectivity: FAILED ({host}:{port})")
            else:
                typer.echo(f"Connectivity: ERROR - {info_data['connectivity'].get('error', 'unknown')}")


@app.command()
def read(
    device: Annotated[str, typer.Argument(help="First device to read (e.g., D100, M8304, X1F)")],
    count: Annotated[int, typer.Option("--count", "-n", help="Number of consecutive values")] = 1,
    data_type: TypeOption = "sword",
    raw: Annotated[bool, typer.Option("--raw", help="Return reply bytes as text instead of decoding")] = False,
    host: HostOption = None,
    port: PortOption = 5007,
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    frame: FrameOption = "3E",
    timeout: TimeoutOption = 2.0,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Batch-read consecutive devices starting at DEVICE.

    Prints one 'device = value' line per point, or a JSON list with --json.
    """
    setup_logging(verbose)

    if count < 1:
        typer.echo(f"Error: Count must be positive, got {count}", err=True)
        raise typer.Exit(2)

    try:
        dtype = DataType.from_str(data_type)
        client = create_client(host, port, series, comm_type, frame, timeout)
        with client:
            tags = client.batch_read(device, count, dtype, decode=not raw)

        if json_output:
            typer.echo(json.dumps([tag_to_dict(t) for t in tags], indent=2))
        else:
            for tag in tags:
                typer.echo(f"{tag.device} = {tag.value}")
    except typer.Exit:
        raise
    except Exception as e:
        raise handle_error(e, verbose)


@app.command()
def write(
    device: Annotated[str, typer.Argument(help="First device to write (e.g., D100, Y10)")],
    values: Annotated[list[str], typer.Argument(help="Values to write to consecutive devices")],
    data_type: TypeOption = "sword",
    host: HostOption = None,
    port: PortOption = 5007,
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    frame: FrameOption = "3E",
    timeout: TimeoutOption = 2.0,
    verbose: VerboseOption = False,
) -> None:
    """
    Batch-write VALUES to consecutive devices starting at DEVICE.

    Bits accept true/false, 1/0, on/off, yes/no. Integers accept decimal or 0x hex
    and are range-checked against the data type. Use -- before negative values.
    """
    setup_logging(verbose)

    try:
        dtype = DataType.from_str(data_type)
        parsed = [parse_value(v, dtype) for v in values]
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)

    try:
        client = create_client(host, port, series, comm_type, frame, timeout)
        with client:
            client.batch_write(device, parsed, dtype)
        typer.echo(f"OK: Wrote {device} = {' '.join(values)}")
    except typer.Exit:
        raise
    except Exception as e:
        raise handle_error(e, verbose)


@app.command(name="read-many")
def read_many(
    devices: Annotated[list[str], typer.Argument(help="Devices to read, optionally with a type (D100 D200:sdword)")],
    data_type: TypeOption = "sword",
    host: HostOption = None,
    port: PortOption = 5007,
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    frame: FrameOption = "3E",
    timeout: TimeoutOption = 2.0,
    verbose: VerboseOption = False,
) -> None:
    """
    Random-read several, possibly non-contiguous, devices in one request.

    Multi-word types (sdword, float, ...) occupy consecutive word addresses.
    Prints a JSON object of device -> value.
    """
    setup_logging(verbose)

    try:
        default_type = DataType.from_str(data_type)
        queries = [parse_query(d, default_type) for d in devices]
        client = create_client(host, port, series, comm_type, frame, timeout)
        with client:
            tags = client.read(queries)
        typer.echo(json.dumps({t.device: t.value for t in tags}, indent=2))
    except typer.Exit:
        raise
    except Exception as e:
        raise handle_error(e, verbose)


@app.command()
def explain(
    device: Annotated[str, typer.Argument(help="Device to explain (e.g., D100, X1F)")],
    series: SeriesOption = "Q",
    comm_type: CommTypeOption = "binary",
    endian: Annotated[str, typer.Option("--endian", help="little, big or native")] = "little",
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show device class, device code, numeric base and the encoded address field.

    Does not require a connection; uses the built-in device code tables only.
    """
    setup_logging(verbose)

    try:
        info_data = get_device_map(series).explain(device, CommType(comm_type.lower()), Endian[endian.upper()])
    except KeyError:
        typer.echo(f"Error: Invalid endianness: {endian!r}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        raise handle_error(e, verbose)

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"Device:          {info_data['device']}")
        typer.echo(f"Device class:    {info_data['device_class']}")
        typer.echo(f"Device code:     {info_data['code']}")
        typer.echo(f"Base:            {info_data['base']}")
        typer.echo(f"Device number:   {info_data['device_number']}")
        typer.echo(f"Encoded field:   {info_data['field']}")


@app.command()
def error(
    code: Annotated[str, typer.Argument(help="End code returned by the PLC (e.g., 0xC059)")],
    json_output: JsonOption = False,
) -> None:
    """Describe an MC protocol end code."""
    try:
        status = parse_status_code(code)
    except ValueError:
        typer.echo(f"Error: Invalid status code: {code!r}", err=True)
        raise typer.Exit(2)
    if not 0 <= status <= 0xFFFF:
        typer.echo(f"Error: Status code out of range 0x0000-0xFFFF: {code!r}", err=True)
        raise typer.Exit(2)

    description = describe_status(status)
    if json_output:
        typer.echo(json.dumps({"code": f"0x{status:04X}", "description": description}, indent=2))
    else:
        typer.echo(description)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pymelsec-mc {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pymelsec - MELSEC MC protocol client."""
    pass


if __name__ == "__main__":
    app()
