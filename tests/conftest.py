import pytest

from status_server import StatusServer
from tcp_socket import TCPSocket


@pytest.fixture
def http10_server():
    with StatusServer(version="HTTP/1.0", body=b"hello") as server:
        yield server


@pytest.fixture
def http11_server():
    with StatusServer(version="HTTP/1.1") as server:
        yield server


@pytest.fixture
def free_port():
    """A port that nothing is listening on."""
    with TCPSocket() as sock:
        sock.bind("127.0.0.1", 0)
        return sock.local_port


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("HOST", "SERVICE", "PATH", "PREFIX", "TIMEOUT"):
        monkeypatch.delenv("STATUSPROBE_" + name, raising=False)
