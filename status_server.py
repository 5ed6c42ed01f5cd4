"""Local HTTP responder so status-line probes can run without a live host."""

from __future__ import annotations

import errno
import logging
import threading
from typing import List, Optional

from errors import SocketError
from http_message import CRLF, DEFAULT_VERSION, StatusLine
from tcp_socket import SO_REUSEADDR, SOL_SOCKET, TCPSocket

log = logging.getLogger(__name__)

POLL_INTERVAL = 0.1  # seconds between checks of the stop flag
MAX_REQUEST = 65536  # bytes read before giving up on a header terminator


class StatusServer:
    """Answers every connection with one fixed HTTP response, then closes it."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, version: str = DEFAULT_VERSION,
                 code: int = 200, reason: str = "OK", body: bytes = b"",
                 raw_response: Optional[bytes] = None):
        self.host = host
        self.port = port
        self.status = StatusLine(version, code, reason)
        self.body = body
        self.raw_response = raw_response

        self.requests: List[str] = []      # request lines, in arrival order
        self.received: List[bytes] = []    # raw request bytes per connection
        self._requests_lock = threading.Lock()

        self._sock: Optional[TCPSocket] = None
        self._thread: Optional[threading.Thread] = None
        self._running = threading.Event()

    # ------------------------------------------------------------------  lifecycle
    def start(self) -> "StatusServer":
        if self._running.is_set():
            raise RuntimeError("status server already running")
        sock = TCPSocket()
        try:
            sock.setsockopt(SOL_SOCKET, SO_REUSEADDR, 1)
            sock.bind(self.host, self.port)
            sock.listen()
            sock.settimeout(POLL_INTERVAL)
        except BaseException:
            sock.close()
            raise
        self._sock = sock
        self.port = sock.local_port
        self._running.set()
        self._thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._thread.start()
        log.info("status server listening on %s:%d", self.host, self.port)
        return self

    def stop(self):
        if not self._running.is_set():
            return
        self._running.clear()
        if self._thread is not None:
            self._thread.join()
        if self._sock is not None:
            self._sock.close()
        log.info("status server on port %d stopped", self.port)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def response_bytes(self) -> bytes:
        if self.raw_response is not None:
            return self.raw_response
        headers = f"Content-Length: {len(self.body)}".encode("ascii") + CRLF
        return self.status.to_bytes() + headers + CRLF + self.body

    # ------------------------------------------------------------------  accept / handle
    def _accept_loop(self):
        while self._running.is_set():
            try:
                conn = self._sock.accept()
            except SocketError as exc:
                if exc.errno == errno.ETIMEDOUT:
                    continue
                if self._running.is_set():
                    log.error("accept failed: %s", exc)
                break
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: TCPSocket):
        tag = "client"
        with conn:
            try:
                tag = f"{conn.remote_address}:{conn.remote_port}"
                log.debug("new client %s", tag)
                raw = self._read_request(conn)
                line = raw.split(b"\r\n", 1)[0].split(b"\n", 1)[0]
                with self._requests_lock:
                    self.received.append(raw)
                    self.requests.append(line.decode("latin-1"))
                conn.write(self.response_bytes())
            except SocketError as exc:
                # client may hang up after reading only the status line
                log.debug("client %s: %s", tag, exc)

    @staticmethod
    def _read_request(conn: TCPSocket) -> bytes:
        buf = bytearray()
        while b"\r\n\r\n" not in buf and b"\n\n" not in buf and len(buf) < MAX_REQUEST:
            chunk = conn.receive()
            if not chunk:
                break
            buf.extend(chunk)
        return bytes(buf)
