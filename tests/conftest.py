"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator, Iterable, List, Optional, Tuple, Union

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from quickapi import Request, ServerConfig, create_server
from quickapi.core import Connection


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request with a query string."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a form body."""
    body = b"name=Ada&lang=en%20GB"
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def connection_pair() -> Generator[Tuple[Connection, socket.socket], None, None]:
    """A Connection wrapping one end of a socket pair, plus the other end."""
    server_side, client_side = socket.socketpair()
    conn = Connection(socket=server_side, address=("local", 0))

    yield conn, client_side

    conn.close()
    client_side.close()


def read_until_closed(sock: socket.socket, timeout: float = 5.0) -> bytes:
    """Read everything the peer sends until it closes the connection."""
    sock.settimeout(timeout)
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> Tuple[str, dict, bytes]:
    """Split a raw response into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


def exchange(
    port: int,
    data: Union[bytes, Iterable[bytes]],
    delay: float = 0.0,
) -> bytes:
    """
    Send a raw request to the test server and return the raw response.

    ``data`` may be a list of chunks, sent ``delay`` seconds apart. The
    write side is shut down afterwards, and the function returns once the
    server has closed the connection.
    """
    chunks = [data] if isinstance(data, bytes) else list(data)

    with socket.create_connection(("127.0.0.1", port), timeout=5.0) as sock:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        for chunk in chunks:
            sock.sendall(chunk)
            if delay:
                time.sleep(delay)
        sock.shutdown(socket.SHUT_WR)
        return read_until_closed(sock)


class RecordingCallback:
    """
    Callback that remembers every Request it receives.

    Set ``handler`` to decide what to answer; by default nothing is sent.
    """

    def __init__(self):
        self.requests: List[Request] = []
        self.handler = None
        self._lock = threading.Lock()

    def __call__(self, request: Request):
        with self._lock:
            self.requests.append(request)
        if self.handler is not None:
            self.handler(request)

    @property
    def last(self) -> Optional[Request]:
        return self.requests[-1] if self.requests else None


@pytest.fixture
def recorder() -> RecordingCallback:
    return RecordingCallback()


@pytest.fixture
def server_port(free_port: int, recorder: RecordingCallback) -> int:
    """Start an endpoint on localhost that reports to ``recorder``."""
    create_server(free_port, recorder, ServerConfig(host="127.0.0.1"))
    return free_port
