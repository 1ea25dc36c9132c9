"""Exception types for lxi-control.

Every failure the instrument engine can report maps to one class below. Each
class carries the process exit code the command-line front end returns for it,
so callers can tell a silent instrument apart from a broken network.

Exception hierarchy:
    LxiError (base)
    +-- LxiPreconditionError: Invalid caller input (exit 1)
    +-- LxiTimeoutError: No response within the deadline (exit 2)
    +-- LxiIoError: Send/receive failure other than a timeout (exit 3)
    +-- LxiConnectError: Socket creation or TCP connect failure (exit 4)
    +-- LxiProtocolError: Malformed header, truncated transfer, bad reply (exit 5)
"""


class LxiError(Exception):
    """Base exception for all lxi-control errors.

    Catch this to handle any engine failure with a single except clause.

    Attributes:
        exit_code: Process exit code associated with this kind of failure.
    """

    exit_code: int = 1


class LxiPreconditionError(LxiError, ValueError):
    """Raised when a caller supplies a value the engine cannot act on.

    Examples are a zero source amplitude, an odd sample byte length or a
    waveform slot outside 1-4. Raised before any bytes reach the wire.
    """

    exit_code = 1


class LxiTimeoutError(LxiError):
    """Raised when the instrument does not answer within the deadline.

    The instrument stays silent when it receives a command it does not
    understand, so this usually points at a malformed command rather than a
    network fault.
    """

    exit_code = 2


class LxiIoError(LxiError):
    """Raised when a send or receive fails at the socket level."""

    exit_code = 3


class LxiConnectError(LxiError):
    """Raised when the TCP connection to an instrument cannot be established."""

    exit_code = 4


class LxiProtocolError(LxiError):
    """Raised when instrument data does not match the expected format.

    This covers malformed or undersized block headers, transfers that end
    before the declared length, and unparseable metadata replies.
    """

    exit_code = 5
