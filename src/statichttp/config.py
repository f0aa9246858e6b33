"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the static file server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m statichttp --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m statichttp                        │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Defaults reproduce the classic behaviour: 127.0.0.1:8080, serve the
working directory, log requests to ./server.log, one thread per
connection, no timeouts.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .handlers.static import DEFAULT_INDEX_FILES
from .http.response import DEFAULT_SERVER_TAG


@dataclass
class ServerConfig:
    """
    Configuration for the static file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout, max_line_size

    DOCUMENT ROOT
    - document_root, index_files, confine_to_root

    REQUEST LOG
    - log_file

    CONCURRENCY
    - max_workers, queue_size

    IDENTITY AND DIAGNOSTICS
    - server_name, log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """The port number to listen on. 0 lets the OS pick a free one."""

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses more."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = blocking reads that can wait forever on a silent client.
    A read that times out is treated as end of stream.
    """

    max_line_size: int = 64 * 1024
    """
    Longest request or header line accepted, in bytes.
    Longer lines are treated like a malformed request: no response.
    """

    # ─────────────────────────────────────────────────────────────────────
    # DOCUMENT ROOT
    # ─────────────────────────────────────────────────────────────────────

    document_root: Optional[str] = None
    """Directory to serve. None = the working directory at startup."""

    index_files: Tuple[str, ...] = DEFAULT_INDEX_FILES
    """File names probed, in order, when a directory is requested."""

    confine_to_root: bool = True
    """
    Refuse (403) request paths that resolve outside the document root.
    False = plain join, ".." segments are followed.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LOG
    # ─────────────────────────────────────────────────────────────────────

    log_file: str = "server.log"
    """Request log file. Created (truncated) at startup."""

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    max_workers: Optional[int] = None
    """
    None = one new thread per connection, unbounded.
    N = a pool of N worker threads; excess connections wait in a queue.
    """

    queue_size: int = 64
    """Connections allowed to wait for a pool worker (pool mode only)."""

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY AND DIAGNOSTICS
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = DEFAULT_SERVER_TAG
    """Server tag written as the second line of every response."""

    log_level: str = "INFO"
    """Diagnostic logging level (DEBUG, INFO, WARNING, ERROR)."""

    @property
    def root(self) -> str:
        """The effective document root."""
        return self.document_root or os.getcwd()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST       Server host (default: 127.0.0.1)
        HTTP_PORT       Server port (default: 8080)
        HTTP_ROOT       Document root (default: working directory)
        HTTP_LOG_FILE   Request log file (default: server.log)
        HTTP_WORKERS    Pool size (default: unset, thread per connection)
        HTTP_TIMEOUT    Socket timeout in seconds (default: unset, none)
        HTTP_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        workers = os.getenv("HTTP_WORKERS")
        timeout = os.getenv("HTTP_TIMEOUT")

        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            document_root=os.getenv("HTTP_ROOT"),
            log_file=os.getenv("HTTP_LOG_FILE", "server.log"),
            max_workers=int(workers) if workers else None,
            timeout=float(timeout) if timeout else None,
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than at the first request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_line_size < 256:
            raise ValueError("max_line_size must be >= 256")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if not self.index_files:
            raise ValueError("index_files must not be empty")

        if not os.path.isdir(self.root):
            raise ValueError(f"Document root is not a directory: {self.root}")
