"""
Buffered byte stream over one connected OS socket.
Provides read / read_line / write / write_line / flush / close with a single
receive buffer so that line reads never lose bytes that arrived early.
"""

from __future__ import annotations

import logging
import socket
import threading

from errors import SocketClosedError, SocketError

log = logging.getLogger(__name__)

READ_SIZE = 1024  # default read / receive size (bytes)


class Stream:
    """Duplex byte stream; must be open before I/O and is closed exactly once."""

    # ------------------------------------------------------------------
    # Construction / state
    # ------------------------------------------------------------------

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._lock = threading.Lock()

        # --- Receive state ---
        self._recv_buf = bytearray()
        self._eof = False

        # --- Flags ---
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def fileno(self) -> int:
        self._check_open("fileno")
        return self._sock.fileno()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read(self, size: int = READ_SIZE) -> bytes:
        self._check_open("read")
        if size < 0:
            raise ValueError(f"negative read size: {size}")
        if size == 0:
            return b""
        with self._lock:
            if self._recv_buf:
                take = min(size, len(self._recv_buf))
                out = bytes(self._recv_buf[:take])
                del self._recv_buf[:take]
                return out
        return self._recv(size)

    def read_line(self) -> str:
        """Read up to the next ``\\n``; the newline is dropped, ``\\r`` is kept.

        At end of stream whatever was accumulated is returned, so an empty
        string means the peer closed without sending anything.
        """
        self._check_open("read_line")
        while True:
            with self._lock:
                idx = self._recv_buf.find(b"\n")
                if idx >= 0:
                    raw = bytes(self._recv_buf[:idx])
                    del self._recv_buf[:idx + 1]
                    break
                if self._eof:
                    raw = bytes(self._recv_buf)
                    self._recv_buf.clear()
                    break
            chunk = self._recv(READ_SIZE)
            with self._lock:
                if chunk:
                    self._recv_buf.extend(chunk)
                else:
                    self._eof = True
        line = raw.decode("utf-8", errors="replace")
        log.debug("RX line %r", line)
        return line

    readLine = read_line

    def write(self, data: bytes | str) -> int:
        self._check_open("write")
        if isinstance(data, str):
            data = data.encode("utf-8")
        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        log.debug("TX %d bytes", len(data))
        return len(data)

    def write_line(self, data: bytes | str) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        return self.write(data + b"\n")

    writeLine = write_line

    def flush(self):
        # sockets do not buffer on the write side
        self._check_open("flush")

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._recv_buf.clear()
        try:
            self._sock.close()
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        log.debug("closed %r", self)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_open(self, operation: str):
        if self._closed:
            raise SocketClosedError(operation)

    def _recv(self, size: int) -> bytes:
        try:
            data = self._sock.recv(size)
        except OSError as exc:
            if self._closed:
                raise SocketClosedError("receive") from exc
            raise SocketError.from_os_error(exc) from exc
        if not data:
            self._eof = True
        return data
