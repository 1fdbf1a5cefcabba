#!/usr/bin/env python3
"""Example: random read and write of scattered devices on an iQ-R CPU over a 4E frame."""

import sys

from pymelsec_mc import DataType, MCClient, QueryTag, Tag
from pymelsec_mc.errors import InvalidDeviceError, MCProtocolError, PyMelsecError, TransportError


def main() -> None:
    host = "192.168.1.10"  # change to your PLC IP
    port = 5007
    queries = [
        QueryTag("D100", DataType.SWORD),
        QueryTag("D200", DataType.SDWORD),
        QueryTag("D300", DataType.FLOAT),
        QueryTag("M10", DataType.BIT),
    ]
    write_enabled = False  # set True if your PLC allows remote writes in RUN

    try:
        with MCClient(host=host, port=port, plc_series="iQ-R", frame="4E") as plc:
            plc.set_subheader_serial(1)

            for tag in plc.read(queries):
                print(f"{tag.device} ({tag.data_type.name}) = {tag.value}")

            if write_enabled:
                # Bit tags go through a batch write, word tags through one random write
                plc.write(
                    [
                        Tag("D100", "-5", DataType.SWORD),
                        Tag("D200", "70000", DataType.UDWORD),
                        Tag("M10", "1 0 1", DataType.BIT),
                    ]
                )
    except InvalidDeviceError as e:
        print(f"Invalid device: {e}", file=sys.stderr)
        sys.exit(1)
    except MCProtocolError as e:
        print(f"PLC error {e.error.formatted}: {e}", file=sys.stderr)
        sys.exit(1)
    except TransportError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)
    except PyMelsecError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
