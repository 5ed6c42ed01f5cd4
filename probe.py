"""
HTTP status-line probe.

Connects to <host>:<service>, sends one request, reads the first response line
and fails unless it starts with the expected version token.

Usage:
  python probe.py [-t timeout] [-p prefix] [-P path] [-v] [host [service]]

Exit status: 0 ok, 1 invalid status line, 2 network error, 64 usage error.
"""

from __future__ import annotations

import getopt
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

from config import DEFAULT_PATH, DEFAULT_PREFIX, ProbeSettings, parse_timeout
from errors import InvalidStatusLine, ProtocolError, SocketError
from http_message import Request, StatusLine, is_status_line
from tcp_socket import Service, TCPSocket

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_NETWORK = 2
EXIT_USAGE = 64

USAGE = "python probe.py [-t timeout] [-p prefix] [-P path] [-v] [host [service]]"


@dataclass
class ProbeResult:
    host: str
    service: str
    line: str
    status: Optional[StatusLine]


def check_status_line(host: str, service: Service = "http", path: str = DEFAULT_PATH,
                      expect_prefix: str = DEFAULT_PREFIX, timeout: Optional[float] = None,
                      request: Optional[Request] = None) -> ProbeResult:
    """Probe one server; raises InvalidStatusLine on a bad first line.

    Socket and resolver errors propagate unchanged. The socket is closed on
    every path.
    """
    if request is None:
        request = Request("GET", path)
    payload = request.to_bytes()
    sock = TCPSocket()
    try:
        sock.connect(host, service, timeout=timeout)
        sock.write(payload)
        line = sock.read_line()
    finally:
        sock.close()

    log.debug("status line from %s:%s: %r", host, service, line)
    if not is_status_line(line, expect_prefix):
        raise InvalidStatusLine(line, expect_prefix)

    try:
        status = StatusLine.from_line(line)
    except ProtocolError as exc:
        log.warning("%s:%s sent an unparseable status line: %s", host, service, exc)
        status = None
    return ProbeResult(host, str(service), line, status)


# ---------------------------------------------------------------------------  entry-point
def _parse_args(argv: List[str]) -> tuple[ProbeSettings, bool]:
    settings = ProbeSettings.from_env()
    verbose = False
    opts, args = getopt.getopt(argv, "ht:p:P:v", ["help", "timeout=", "prefix=", "path=", "verbose"])
    for opt, value in opts:
        if opt in ("-h", "--help"):
            raise getopt.GetoptError("help requested")
        if opt in ("-t", "--timeout"):
            try:
                settings.timeout = parse_timeout(value)
            except ValueError as exc:
                raise getopt.GetoptError(str(exc), opt)
        elif opt in ("-p", "--prefix"):
            settings.prefix = value
        elif opt in ("-P", "--path"):
            settings.path = value
        elif opt in ("-v", "--verbose"):
            verbose = True
    if len(args) > 2:
        raise getopt.GetoptError("too many arguments")
    if args:
        settings.host = args[0]
    if len(args) == 2:
        settings.service = args[1]
    return settings, verbose


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        settings, verbose = _parse_args(argv)
    except (getopt.GetoptError, ValueError) as err:
        print(f"{err}\nUsage:\n  {USAGE}", file=sys.stderr)
        return EXIT_USAGE

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(message)s",
                        datefmt="%H:%M:%S")

    try:
        result = check_status_line(settings.host, settings.service, settings.path,
                                   settings.prefix, settings.timeout)
    except InvalidStatusLine as exc:
        log.error("%s (got %r, expected prefix %r)", exc, exc.line, exc.expected)
        return EXIT_INVALID
    except SocketError as exc:
        log.error("%s:%s: %s", settings.host, settings.service, exc)
        return EXIT_NETWORK
    except ProtocolError as exc:
        log.error("cannot build request for %s: %s", settings.path, exc)
        return EXIT_USAGE

    log.info("%s:%s -> %s", result.host, result.service, result.line.rstrip("\r"))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
