"""MC protocol command and subcommand opcodes, subheaders and session defaults."""


class Commands:
    BATCH_READ = 0x0401
    BATCH_WRITE = 0x1401
    RANDOM_READ = 0x0403
    RANDOM_WRITE = 0x1402
    # Monitor and remote control requests are not shaped by this package.
    MONITOR_REG = 0x0801
    MONITOR = 0x0802
    REMOTE_RUN = 0x1001
    REMOTE_STOP = 0x1002
    REMOTE_PAUSE = 0x1003
    REMOTE_LATCH_CLEAR = 0x1005
    REMOTE_RESET = 0x1006
    REMOTE_UNLOCK = 0x1630
    REMOTE_LOCK = 0x1631
    ERROR_LED_OFF = 0x1617
    READ_CPU_MODEL = 0x0101
    LOOPBACK_TEST = 0x0619


class Subcommands:
    ZERO = 0x0000
    ONE = 0x0001
    TWO = 0x0002
    THREE = 0x0003
    FIVE = 0x0005
    A = 0x000A
    F = 0x000F


SUBHEADER_3E = 0x5000
SUBHEADER_4E = 0x5400

DEFAULT_NETWORK = 0
DEFAULT_PC = 0xFF
DEFAULT_DEST_MODULEIO = 0x3FF
DEFAULT_DEST_MODULESTA = 0x0
DEFAULT_TIMER = 4  # units of 250 ms

SOCK_BUFSIZE = 4096
