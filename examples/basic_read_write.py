#!/usr/bin/env python3
"""Example: batch-read and batch-write data registers and relays on a Q-series CPU."""

import sys

from pymelsec_mc import DataType, MCClient
from pymelsec_mc.errors import InvalidDeviceError, MCProtocolError, TransportError, UnknownDeviceClassError


def main() -> None:
    host = "192.168.1.10"  # change to your PLC IP
    port = 5007

    try:
        with MCClient(host=host, port=port, plc_series="Q", comm_type="binary") as plc:
            # Four signed words starting at D100
            for tag in plc.batch_read("D100", 4, DataType.SWORD):
                print(f"{tag.device} = {tag.value}")

            # Eight relays starting at M0
            bits = plc.batch_read("M0", 8, DataType.BIT)
            print("M0..M7:", " ".join(t.value or "?" for t in bits))

            # One 32-bit value spanning D200 and D201
            print(f"D200 (SDWORD) = {plc.batch_read('D200', 1, DataType.SDWORD)[0].value}")

            # Write examples; uncomment if your PLC allows remote writes in RUN
            # plc.batch_write("D300", [1, 2, 3], DataType.SWORD)
            # plc.batch_write("M100", [1, 0, 1], DataType.BIT)

            # Inspect how a device is addressed on the wire
            print(f"explain(X1F): {plc.explain('X1F')}")
    except (InvalidDeviceError, UnknownDeviceClassError) as e:
        print(f"Invalid device: {e}", file=sys.stderr)
        sys.exit(1)
    except MCProtocolError as e:
        print(f"PLC error: {e}", file=sys.stderr)
        sys.exit(1)
    except TransportError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
