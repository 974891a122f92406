"""Exit code constants for the s3vn CLI."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Process exit codes.

    0 means every candidate file was uploaded and verified. The remaining
    codes name the class of the first failure that stopped the commit.
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    NETWORK_ERROR = 2
    WALK_FAILURE = 3
    INTEGRITY_FAILURE = 4
    USER_CANCELLED = 5
    IO_ERROR = 6
