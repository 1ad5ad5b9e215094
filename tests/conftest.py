"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from staticserver import StaticServer, ServerConfig


INDEX_HTML = b"<html><body>home</body></html>"
DATA_JSON = b'{"answer": 42}'
NOTES = b"plain notes"


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """
    A populated serving root:

        index.html
        data.json
        notes
        assets/a.txt
        assets/b.txt
    """
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "data.json").write_bytes(DATA_JSON)
    (root / "notes").write_bytes(NOTES)

    assets = root / "assets"
    assets.mkdir()
    (assets / "a.txt").write_bytes(b"A")
    (assets / "b.txt").write_bytes(b"B")
    return root


@pytest.fixture
def config(site_root: Path) -> ServerConfig:
    """Test configuration: free port, short timeout, quiet logs."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        root=site_root,
        read_timeout=2.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: StaticServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=15.0)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, return everything the server writes until close."""
        return send_raw(self.port, raw, timeout=timeout)


def send_raw(port: int, raw: bytes, timeout: float = 5.0) -> bytes:
    """Connect, send `raw`, and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(raw)
        chunks = []
        while True:
            try:
                chunk = s.recv(4096)
            except ConnectionResetError:
                break
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(data: bytes):
    """
    Split a raw response into (status_line, headers, body).

    Header names are kept as sent; order is preserved.
    """
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = []
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers.append((name, value))
    return lines[0], headers, body


@pytest.fixture
def make_server(config: ServerConfig):
    """Factory: start a server with config overrides, stopped at teardown."""
    started = []

    def factory(**overrides) -> TestServer:
        srv = TestServer(StaticServer(config.override(**overrides)))
        srv.start()
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()


@pytest.fixture
def test_server(make_server) -> Generator[TestServer, None, None]:
    """A running server over site_root with default settings."""
    yield make_server()


@pytest.fixture
def parse_response():
    """split_response() as a fixture."""
    return split_response


@pytest.fixture
def raw_send():
    """send_raw() as a fixture."""
    return send_raw
