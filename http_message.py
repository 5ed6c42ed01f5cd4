from __future__ import annotations

from typing import Iterable, Tuple
from urllib.parse import quote

from errors import ProtocolError

# === Constants ===

CRLF = b"\r\n"
DEFAULT_VERSION = "HTTP/1.0"
_VERSION_PREFIX = "HTTP/"
_PATH_SAFE = "/:@!$&'()*+,;=?#%[]~"  # reserved and already-escaped characters pass through


def is_status_line(line: str, prefix: str = DEFAULT_VERSION) -> bool:
    """Return True if *line* begins with *prefix* (literal, position 0)."""
    return line.startswith(prefix)


class Request:

    __slots__ = (
        "method",
        "path",
        "version",
        "headers",
    )

    def __init__(self, method: str = "GET", path: str = "/", version: str = DEFAULT_VERSION,
                 headers: Iterable[Tuple[str, str]] = ()):
        self.method = method
        self.path = path
        self.version = version
        self.headers = list(headers)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        target = quote(self.path, safe=_PATH_SAFE)
        try:
            lines = [f"{self.method} {target} {self.version}".encode("ascii")]
            for name, value in self.headers:
                lines.append(f"{name}: {value}".encode("latin-1"))
        except UnicodeEncodeError as exc:
            raise ProtocolError(f"Request not encodable: {exc}") from exc
        return CRLF.join(lines) + CRLF + CRLF

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Request {self.method} {self.path} {self.version} headers={len(self.headers)}>"


class StatusLine:

    __slots__ = (
        "version",
        "code",
        "reason",
    )

    def __init__(self, version: str = DEFAULT_VERSION, code: int = 200, reason: str = "OK"):
        self.version = version
        self.code = code
        self.reason = reason

    # ------------------------------------------------------------------
    # (De)serialisation helpers
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        text = f"{self.version} {self.code:03d}"
        if self.reason:
            text += f" {self.reason}"
        return text.encode("latin-1") + CRLF

    @classmethod
    def from_line(cls, line: str) -> "StatusLine":
        if line.endswith("\r\n"):
            line = line[:-2]
        elif line.endswith("\r") or line.endswith("\n"):
            line = line[:-1]
        parts = line.split(" ", 2)
        if len(parts) < 2:
            raise ProtocolError(f"Malformed status line: {line!r}")
        version, code = parts[0], parts[1]
        if not version.startswith(_VERSION_PREFIX):
            raise ProtocolError(f"Bad HTTP version: {version!r}")
        if len(code) != 3 or not (code.isascii() and code.isdigit()):
            raise ProtocolError(f"Bad status code: {code!r}")
        reason = parts[2] if len(parts) > 2 else ""
        return cls(version, int(code), reason)

    @classmethod
    def from_bytes(cls, data: bytes) -> "StatusLine":
        return cls.from_line(data.decode("latin-1"))

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, StatusLine):
            return NotImplemented
        return (self.version, self.code, self.reason) == (other.version, other.code, other.reason)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<StatusLine {self.version} {self.code} {self.reason!r}>"
