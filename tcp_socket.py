"""
Socket-like API (listener + connector) over the OS socket layer.
Services may be given by name ("http") or number; OS errors surface as
errors.SocketError / errors.ResolveError.
"""

from __future__ import annotations

import logging
import socket
from typing import Optional, Tuple, Union

from errors import SocketError
from stream import READ_SIZE, Stream

log = logging.getLogger(__name__)

Service = Union[str, int, None]

LISTEN_BACKLOG = 1024

# ---------------------------------------------------------------------------  constants
AF_INET = socket.AF_INET
AF_INET6 = socket.AF_INET6
AF_UNSPEC = socket.AF_UNSPEC
SOCK_STREAM = socket.SOCK_STREAM
SOCK_DGRAM = socket.SOCK_DGRAM
SHUT_RD = socket.SHUT_RD
SHUT_WR = socket.SHUT_WR
SHUT_RDWR = socket.SHUT_RDWR
SOL_SOCKET = socket.SOL_SOCKET
SO_REUSEADDR = socket.SO_REUSEADDR
SO_KEEPALIVE = socket.SO_KEEPALIVE
IPPROTO_TCP = socket.IPPROTO_TCP
TCP_NODELAY = socket.TCP_NODELAY


class TCPSocket(Stream):
    """Provides bind()/listen()/accept() and connect() on top of Stream I/O."""

    # ------------------------------------------------------------------  core setup
    def __init__(self, domain: int = AF_INET, type: int = SOCK_STREAM, protocol: int = 0,
                 _sock: Optional[socket.socket] = None):
        if _sock is None:
            try:
                _sock = socket.socket(domain, type, protocol)
            except OSError as exc:
                raise SocketError.from_os_error(exc) from exc
        super().__init__(_sock)
        self.domain = domain
        self.type = type
        self.protocol = protocol

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"fd={self._sock.fileno()}"
        return f"<TCPSocket {state} domain={self.domain} type={self.type}>"

    def settimeout(self, seconds: Optional[float]):
        self._check_open("settimeout")
        self._sock.settimeout(seconds)

    def setsockopt(self, level: int, option: int, value: int):
        self._check_open("setsockopt")
        try:
            self._sock.setsockopt(level, option, value)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc

    # ------------------------------------------------------------------  server side
    def bind(self, host: str = "0.0.0.0", service: Service = None):
        self._check_open("bind")
        addr = self._resolve(host, service)
        try:
            self._sock.bind(addr)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        log.debug("bound to %s:%s", self.local_address, self.local_port)

    def listen(self, backlog: int = LISTEN_BACKLOG):
        self._check_open("listen")
        try:
            self._sock.listen(backlog)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc

    def accept(self) -> "TCPSocket":
        self._check_open("accept")
        try:
            newsock, _ = self._sock.accept()
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        # accepted sockets start blocking regardless of the listener's timeout
        newsock.settimeout(None)
        return TCPSocket(self.domain, self.type, self.protocol, _sock=newsock)

    # ------------------------------------------------------------------  client side
    def connect(self, host: str, service: Service, timeout: Optional[float] = None):
        self._check_open("connect")
        addr = self._resolve(host, service)
        if timeout is not None:
            self._sock.settimeout(timeout)
        try:
            self._sock.connect(addr)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        log.debug("connected to %s:%s", self.remote_address, self.remote_port)

    def send(self, data: bytes) -> int:
        self._check_open("send")
        try:
            return self._sock.send(data)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc

    def receive(self, size: int = READ_SIZE) -> bytes:
        return self.read(size)

    recv = receive

    def shutdown(self, how: int = SHUT_RDWR):
        self._check_open("shutdown")
        try:
            self._sock.shutdown(how)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc

    # ------------------------------------------------------------------  addresses
    @property
    def local_address(self) -> str:
        return self._name_info(self._sock.getsockname)[0]

    @property
    def local_port(self) -> int:
        return self._name_info(self._sock.getsockname)[1]

    @property
    def remote_address(self) -> str:
        return self._name_info(self._sock.getpeername)[0]

    @property
    def remote_port(self) -> int:
        return self._name_info(self._sock.getpeername)[1]

    @property
    def is_connected(self) -> bool:
        if self.closed:
            return False
        try:
            self._sock.getpeername()
        except OSError:
            return False
        return True

    # ------------------------------------------------------------------  helpers
    def _resolve(self, host: str, service: Service) -> tuple:
        if isinstance(service, int):
            service = str(service)
        try:
            infos = socket.getaddrinfo(host, service, self.domain, self.type, self.protocol)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        return infos[0][4]

    def _name_info(self, getter) -> Tuple[str, int]:
        self._check_open("getsockname")
        try:
            host, port = socket.getnameinfo(getter(), socket.NI_NUMERICHOST | socket.NI_NUMERICSERV)
        except OSError as exc:
            raise SocketError.from_os_error(exc) from exc
        return host, int(port)
