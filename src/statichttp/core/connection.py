"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the line-oriented reading this
server needs, plus sending and a clean close.

=============================================================================
TCP IS A BYTE STREAM, NOT A LINE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. A client that sends

    send(b"GET / HTTP/1.0\\n\\n")

may be received as

    recv() → b"GET / HT"
    recv() → b"TP/1.0\\n\\n"

so reading "one line" means buffering until a LF shows up:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   _buffer: b""                                                       │
    │      recv() → b"GET / HT"          no LF yet, keep reading           │
    │   _buffer: b"GET / HT"                                               │
    │      recv() → b"TP/1.0\\nHost: x\\n"                                  │
    │   _buffer: b"GET / HTTP/1.0\\nHost: x\\n"                             │
    │                      ▲                                               │
    │                      └── first LF: line = b"GET / HTTP/1.0"         │
    │   _buffer: b"Host: x\\n"           kept for the next read_line()     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

One connection carries exactly one request:

    NEW ──► READING_REQUEST_LINE ──► SKIPPING_HEADERS ──► PARSED
                  │                        │                 │
                  │ (EOF, nothing read)    │ (bad line)      ▼
                  │                        │        VALIDATED │ REJECTED
                  │                        │            │         │
                  │                        │            ▼         │
                  │                        │   RESOLVED │ NOT_FOUND
                  │                        │       │        │     │
                  │                        │       ▼        ▼     ▼
                  │                        │          RESPONDED
                  │                        │              │
                  │                        │              ▼
                  │                        │            LOGGED
                  ▼                        ▼              │
                CLOSED ◄──────────────────────────────────┘

The state lives on the Connection so each worker tracks its own.

=============================================================================
NO TIMEOUTS BY DEFAULT
=============================================================================

With timeout=None every read blocks until the client sends something or
goes away. A silent client therefore holds its worker thread forever.
Setting a timeout makes a stalled read count as end of stream.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)


# Upper bounds on what close() reads and throws away, in bytes and seconds
_DRAIN_LIMIT = 64 * 1024
_DRAIN_TIMEOUT = 0.5


class LineTooLong(ValueError):
    """Raised when a line exceeds max_line_size before a LF arrives."""


class ConnectionState(Enum):
    """Where a connection is in the request pipeline."""
    NEW = "new"
    READING_REQUEST_LINE = "reading_request_line"
    SKIPPING_HEADERS = "skipping_headers"
    PARSED = "parsed"
    VALIDATED = "validated"
    REJECTED = "rejected"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    RESPONDED = "responded"
    LOGGED = "logged"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used in log lines.
        state: Current pipeline state.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_line_size: int = 64 * 1024

    _buffer: bytes = field(default=b"", repr=False)
    _eof: bool = field(default=False, repr=False)

    def __post_init__(self):
        # None leaves the socket fully blocking
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[bytes]:
        """
        Read one LF-terminated line.

        Returns:
            The line without its LF (a trailing CR is kept), the unterminated
            tail if the stream ended mid-line, or None if the stream ended
            with nothing buffered.

        Raises:
            LineTooLong: If no LF shows up within max_line_size bytes.
        """
        while b"\n" not in self._buffer:
            if len(self._buffer) > self.max_line_size:
                raise LineTooLong(f"Line exceeds {self.max_line_size} bytes")

            chunk = self._recv()
            if not chunk:
                if not self._buffer:
                    return None
                line, self._buffer = self._buffer, b""
                return line

            self._buffer += chunk

        line, _, self._buffer = self._buffer.partition(b"\n")
        if len(line) > self.max_line_size:
            raise LineTooLong(f"Line exceeds {self.max_line_size} bytes")
        return line

    def skip_headers(self) -> int:
        """
        Read and discard lines up to and including the first blank line.

        Stops early at end of stream.

        Returns:
            Number of header lines discarded.
        """
        skipped = 0
        while True:
            line = self.read_line()
            if line is None or line.rstrip(b"\r") == b"":
                return skipped
            skipped += 1

    def _recv(self) -> bytes:
        """
        Receive a chunk, mapping every way a stream can end to b"".
        """
        if self._eof:
            return b""
        try:
            data = self.socket.recv(self.buffer_size)
        except socket.timeout:
            logger.debug(f"[{self.id}] Read timed out, treating as end of stream")
            data = b""
        except (ConnectionResetError, BrokenPipeError):
            data = b""

        if not data:
            self._eof = True
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes with sendall().

        Returns:
            True if everything was sent, False if the client went away.
        """
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN so the client sees end of response
        2. drain whatever the client still sends, for at most _DRAIN_TIMEOUT
           seconds in total and at most _DRAIN_LIMIT bytes
        3. close() releases the descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        deadline = time.monotonic() + _DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < _DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass

        self._release()

    def abort(self):
        """
        Close without reading anything more from the client.

        Used on the accept thread, which must never wait on a client.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

        self._release()

    def _release(self):
        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
