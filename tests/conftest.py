"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statichttp import StaticHTTPServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP/1.0 GET request with headers."""
    return (
        b"GET /index.html HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST request, which the server refuses."""
    return (
        b"POST /a.txt HTTP/1.0\n"
        b"Content-Length: 0\n"
        b"\n"
    )


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    A small document root:

        www/
        ├── index.html          "hi"
        ├── a.txt               "alpha"
        ├── README              no extension
        ├── page.HTML           upper-case extension
        ├── sub/
        │   ├── index.txt       probed before index.html
        │   └── index.html
        ├── html_only/
        │   └── index.html
        └── empty/

    plus tmp_path/secret.txt, outside the root.
    """
    root = tmp_path / "www"
    root.mkdir()

    (root / "index.html").write_bytes(b"hi")
    (root / "a.txt").write_bytes(b"alpha")
    (root / "README").write_bytes(b"read me")
    (root / "page.HTML").write_bytes(b"<p>shout</p>")

    (root / "sub").mkdir()
    (root / "sub" / "index.txt").write_bytes(b"sub text")
    (root / "sub" / "index.html").write_bytes(b"<p>sub</p>")

    (root / "html_only").mkdir()
    (root / "html_only" / "index.html").write_bytes(b"<p>only</p>")

    (root / "empty").mkdir()

    (tmp_path / "secret.txt").write_bytes(b"top secret")

    return root


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every HTTP_* variable ServerConfig.from_env() reads."""
    for name in ("HTTP_HOST", "HTTP_PORT", "HTTP_ROOT", "HTTP_LOG_FILE",
                 "HTTP_WORKERS", "HTTP_TIMEOUT", "HTTP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(doc_root: Path, tmp_path: Path) -> ServerConfig:
    """Test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        document_root=str(doc_root),
        log_file=str(tmp_path / "server.log"),
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


def send_raw(port: int, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes, half-close, and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        s.sendall(data)
        s.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


def wait_for_records(log_path: Path, count: int, timeout: float = 5.0) -> str:
    """
    Wait until the request log holds `count` records.

    The record is written after the response is sent, so a client can
    finish reading before it lands.
    """
    deadline = time.time() + timeout
    text = ""
    while time.time() < deadline:
        text = log_path.read_text()
        if text.count("\n\n") >= count:
            return text
        time.sleep(0.02)
    return text


class RunningServer:
    """Server running in a background thread."""

    def __init__(self, server: StaticHTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.server_address[1]

    @property
    def log_path(self) -> Path:
        return Path(self.server.config.log_file)

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(5.0):
            raise RuntimeError("Server failed to start")

    def request(self, data: bytes) -> bytes:
        return send_raw(self.port, data)

    def log_text(self, count: int) -> str:
        """Request log contents once it holds `count` records."""
        return wait_for_records(self.log_path, count)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """Start a server on a free port, stop it afterwards."""
    srv = RunningServer(StaticHTTPServer(config))
    srv.start()

    yield srv

    srv.stop()


@pytest.fixture
def pooled_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """Same as running_server, with a 2-worker pool."""
    config.max_workers = 2
    srv = RunningServer(StaticHTTPServer(config))
    srv.start()

    yield srv

    srv.stop()


@pytest.fixture
def make_server():
    """Factory for servers the test starts and stops itself."""
    started = []

    def factory(config: ServerConfig) -> RunningServer:
        srv = RunningServer(StaticHTTPServer(config))
        srv.start()
        started.append(srv)
        return srv

    yield factory

    for srv in started:
        srv.stop()
