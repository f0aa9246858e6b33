"""
=============================================================================
REQUEST LOG
=============================================================================

Every request that gets a response also gets one record in the request
log file (server.log by default). Many worker threads write to the same
file, so every append happens under a lock.

=============================================================================
RECORD FORMAT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ GET /index.html HTTP/1.0              ← method, path, protocol      │
    │ 2026-10-19 09:12:44.120391 UTC        ← capture time, always UTC    │
    │ 200                                   ← status sent                 │
    │                                       ← blank line ends the record  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
MANY WRITERS, ONE FILE
=============================================================================

    Worker 1 ──┐
    Worker 2 ──┼──► lock ──► write(record) + flush() ──► server.log
    Worker 3 ──┘

    - One record is one write() call, made while holding the lock.
    - Records from different connections may land in any order.
    - Bytes of two records never interleave.

A failed write raises LogWriteError. The response has already gone out by
then, so the connection handler reports the failure and moves on; nothing
is retried.

The request log is separate from diagnostic logging. Each record is also
echoed as a one-line summary on the "statichttp.access" logger.

=============================================================================
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Union

from .http.request import HTTPRequest
from .http.response import HTTPResponse
from .http.status_codes import HTTPStatus


logger = logging.getLogger("statichttp.access")


class LogWriteError(Exception):
    """Raised when a record could not be appended to the request log."""


def format_timestamp(dt: datetime) -> str:
    """
    Format a UTC datetime for the request log.

    Example: 2026-10-19 09:12:44.120391 UTC
    """
    return f"{dt.astimezone(timezone.utc):%Y-%m-%d %H:%M:%S.%f} UTC"


@dataclass(frozen=True)
class LogRecord:
    """
    One request log entry.

    Attributes:
        method: Method token from the request line.
        path: Path token from the request line.
        protocol: Protocol token from the request line.
        status: Status that was sent.
        timestamp: Capture time (UTC). Defaults to now.
    """

    method: str
    path: str
    protocol: str
    status: HTTPStatus
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exchange(cls, request: HTTPRequest, response: HTTPResponse) -> "LogRecord":
        """Build a record for a request and the response it got."""
        return cls(
            method=request.method,
            path=request.path,
            protocol=request.protocol,
            status=response.status,
        )

    def to_text(self) -> str:
        """Multi-line record, terminated by a blank line."""
        return (
            f"{self.method} {self.path} {self.protocol}\n"
            f"{format_timestamp(self.timestamp)}\n"
            f"{int(self.status)}\n"
            f"\n"
        )


class RequestLogger:
    """
    Thread-safe, append-only request log.

    Usage:
        with RequestLogger.open("server.log") as request_log:
            request_log.log(LogRecord("GET", "/", "HTTP/1.0", HTTPStatus.OK))

    The sink is any binary file-like object with write() and flush(). The
    logger owns it and closes it on close().
    """

    def __init__(self, sink: BinaryIO):
        self._sink = sink
        self._lock = threading.Lock()
        self.records_written = 0

    @classmethod
    def open(cls, path: Union[str, Path]) -> "RequestLogger":
        """
        Create (or truncate) the log file and wrap it.

        Raises:
            OSError: If the file cannot be created. Fatal at startup.
        """
        return cls(open(path, "wb"))

    def log(self, record: LogRecord):
        """
        Append one record.

        Raises:
            LogWriteError: If the write or flush fails.
        """
        data = record.to_text().encode("utf-8")

        with self._lock:
            try:
                self._sink.write(data)
                self._sink.flush()
            except (OSError, ValueError) as e:
                # ValueError: write to a closed file
                raise LogWriteError(f"Failed to write request log record: {e}") from e
            self.records_written += 1

        logger.info(f'"{record.method} {record.path} {record.protocol}" {int(record.status)}')

    def close(self):
        with self._lock:
            self._sink.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
