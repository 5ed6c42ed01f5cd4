import pytest

import probe
from errors import InvalidStatusLine, ProtocolError, ResolveError, SocketError
from http_message import Request, StatusLine
from probe import check_status_line, main
from status_server import StatusServer
from tcp_socket import TCPSocket


@pytest.fixture
def opened(monkeypatch):
    """Record every socket the probe opens."""
    sockets = []

    class RecordingSocket(TCPSocket):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            sockets.append(self)

    monkeypatch.setattr(probe, "TCPSocket", RecordingSocket)
    return sockets


def test_http10_server_passes(http10_server, opened):
    result = check_status_line("127.0.0.1", http10_server.port, timeout=2)
    assert result.line == "HTTP/1.0 200 OK\r"
    assert result.status == StatusLine("HTTP/1.0", 200, "OK")
    assert result.service == str(http10_server.port)
    assert http10_server.received == [b"GET / HTTP/1.0\r\n\r\n"]
    assert [s.closed for s in opened] == [True]


def test_http11_server_fails_default_prefix(http11_server, opened):
    with pytest.raises(InvalidStatusLine) as info:
        check_status_line("127.0.0.1", http11_server.port, timeout=2)
    assert str(info.value) == "Invalid status line!"
    assert info.value.line == "HTTP/1.1 200 OK\r"
    assert info.value.expected == "HTTP/1.0"
    assert [s.closed for s in opened] == [True]


def test_http11_server_passes_with_matching_prefix(http11_server):
    result = check_status_line("127.0.0.1", http11_server.port,
                               expect_prefix="HTTP/1.1", timeout=2)
    assert result.status.version == "HTTP/1.1"


def test_empty_reply_is_invalid():
    with StatusServer(raw_response=b"") as server:
        with pytest.raises(InvalidStatusLine) as info:
            check_status_line("127.0.0.1", server.port, timeout=2)
    assert info.value.line == ""


def test_prefix_match_with_unparseable_rest():
    with StatusServer(raw_response=b"HTTP/1.0 garbage\r\n") as server:
        result = check_status_line("127.0.0.1", server.port, timeout=2)
    assert result.line == "HTTP/1.0 garbage\r"
    assert result.status is None


def test_custom_request_and_path(http10_server):
    check_status_line("127.0.0.1", http10_server.port, path="/health", timeout=2)
    req = Request("HEAD", "/", "HTTP/1.0", [("Host", "localhost")])
    check_status_line("127.0.0.1", http10_server.port, request=req, timeout=2)
    assert http10_server.requests == ["GET /health HTTP/1.0", "HEAD / HTTP/1.0"]
    assert http10_server.received[1] == b"HEAD / HTTP/1.0\r\nHost: localhost\r\n\r\n"


def test_connection_refused_propagates_and_closes(free_port, opened):
    with pytest.raises(SocketError):
        check_status_line("127.0.0.1", free_port, timeout=2)
    assert [s.closed for s in opened] == [True]


def test_resolve_error_propagates(opened):
    with pytest.raises(ResolveError):
        check_status_line("127.0.0.1", "no-such-service-statusprobe")
    assert [s.closed for s in opened] == [True]


# ---------------------------------------------------------------------------  CLI
def test_main_ok(http10_server):
    assert main(["-t", "2", "127.0.0.1", str(http10_server.port)]) == probe.EXIT_OK


def test_main_invalid_status_line(http11_server):
    assert main(["127.0.0.1", str(http11_server.port)]) == probe.EXIT_INVALID


def test_main_prefix_flag(http11_server):
    args = ["--prefix", "HTTP/1.1", "-v", "127.0.0.1", str(http11_server.port)]
    assert main(args) == probe.EXIT_OK


def test_main_network_error(free_port):
    assert main(["-t", "2", "127.0.0.1", str(free_port)]) == probe.EXIT_NETWORK


def test_main_reads_environment(http10_server, monkeypatch):
    monkeypatch.setenv("STATUSPROBE_HOST", "127.0.0.1")
    monkeypatch.setenv("STATUSPROBE_SERVICE", str(http10_server.port))
    monkeypatch.setenv("STATUSPROBE_PATH", "/env")
    assert main([]) == probe.EXIT_OK
    assert http10_server.requests == ["GET /env HTTP/1.0"]


@pytest.mark.parametrize("args", [
    ["-x"],
    ["-h"],
    ["-t", "soon", "localhost"],
    ["a", "b", "c"],
])
def test_main_usage_errors(args, capsys):
    assert main(args) == probe.EXIT_USAGE
    assert "Usage:" in capsys.readouterr().err


def test_unknown_host_raises_resolve_error(opened):
    with pytest.raises(ResolveError):
        check_status_line("nohost.invalid", 80, timeout=2)
    assert [s.closed for s in opened] == [True]


def test_unencodable_request_opens_no_socket(opened):
    with pytest.raises(ProtocolError):
        check_status_line("127.0.0.1", 80, request=Request("GÉT"))
    assert opened == []


def test_main_non_ascii_path(http10_server):
    args = ["-t", "2", "-P", "/café", "127.0.0.1", str(http10_server.port)]
    assert main(args) == probe.EXIT_OK
    assert http10_server.requests == ["GET /caf%C3%A9 HTTP/1.0"]
