"""Exception hierarchy shared by the socket wrapper and the probe."""

from __future__ import annotations

import errno
import socket


class SocketError(socket.error):
    """I/O failure reported by the operating system (carries ``errno``)."""

    @classmethod
    def from_os_error(cls, exc: OSError) -> "SocketError":
        if isinstance(exc, socket.gaierror):
            return ResolveError(exc.errno, exc.strerror)
        if isinstance(exc, socket.timeout):
            return cls(errno.ETIMEDOUT, "Operation timed out")
        code = exc.errno if exc.errno is not None else errno.EIO
        return cls(code, exc.strerror or str(exc))


class ResolveError(SocketError):
    """Host or service name could not be resolved."""


class SocketClosedError(SocketError):
    def __init__(self, operation: str = "I/O"):
        super().__init__(errno.EBADF, f"{operation} on closed socket")
        self.operation = operation


class ProtocolError(ValueError):
    """Line is not a well-formed HTTP status line."""


class InvalidStatusLine(Exception):
    """Raised by the probe when the first response line has the wrong prefix."""

    def __init__(self, line: str, expected: str):
        super().__init__("Invalid status line!")
        self.line = line
        self.expected = expected
