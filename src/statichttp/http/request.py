"""
=============================================================================
REQUEST LINE PARSER AND VALIDATOR
=============================================================================

Turns the first line of a connection into a structured HTTPRequest, and
decides whether that request is one this server is willing to serve.

=============================================================================
THE ONLY LINE WE CARE ABOUT
=============================================================================

A client sends:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /docs/index.html HTTP/1.0\n       ◄── request line (parsed)    │
    │  ─┬─ ───────┬──────── ───┬────                                      │
    │   │         │            │                                          │
    │ method     path       protocol                                      │
    │                                                                      │
    │  User-Agent: curl/8.0\n                ◄── header lines (skipped)   │
    │  Accept: */*\n                                                       │
    │  \n                                    ◄── blank line = end         │
    └─────────────────────────────────────────────────────────────────────┘

Only the request line is interpreted. Header lines are read and thrown
away by the connection handler so the client sees a response only after it
has finished sending.

=============================================================================
TWO STAGES: STRUCTURE, THEN POLICY
=============================================================================

    raw line ──parse──► HTTPRequest ──validate──► VALID | BAD_REQUEST
                │
                └── MalformedRequestLine (not exactly 3 tokens)

Parsing is purely structural: split on whitespace, demand exactly three
tokens. A line that fails here gets NO response at all; the connection is
just closed.

Validation is policy. Three checks, all of which must pass:

    method     must be exactly "GET"                (case-sensitive)
    path       must be rooted, i.e. start with "/"
    protocol   "HTTP", or "HTTP/<version>" with version >= 0.9

Any failed check means 400 Bad Request. The caller never needs to know
which one failed.

=============================================================================
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Union


logger = logging.getLogger(__name__)


MIN_PROTOCOL_VERSION = 0.9


class MalformedRequestLine(Exception):
    """
    Raised when the request line does not split into exactly three tokens.

    Unlike a policy failure this never becomes an HTTP response: the
    connection is closed without writing anything.
    """

    def __init__(self, line: str):
        super().__init__(f"Malformed request line: {line!r}")
        self.line = line


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request line.

    Frozen: built once per connection and never changed afterwards.

    Attributes:
        method: Method token, e.g. "GET".
        path: Request path, expected (but not guaranteed) to start with "/".
        protocol: Protocol token, e.g. "HTTP/1.0" or just "HTTP".
    """

    method: str
    path: str
    protocol: str

    @property
    def request_line(self) -> str:
        """The request re-assembled as a single space-separated line."""
        return f"{self.method} {self.path} {self.protocol}"


class RequestParser:
    """
    Structural parser for request lines.

    Usage:
        parser = RequestParser()
        request = parser.parse(b"GET /index.html HTTP/1.0\\n")
    """

    TOKEN_COUNT = 3

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def parse(self, line: Union[str, bytes]) -> HTTPRequest:
        """
        Split a request line into method, path and protocol.

        Any run of whitespace separates tokens, so trailing "\\r\\n" and
        doubled spaces are harmless.

        Args:
            line: The raw request line, as bytes off the wire or as text.

        Returns:
            The parsed request.

        Raises:
            MalformedRequestLine: If the line does not hold exactly three
                                  whitespace-separated tokens.
        """
        if isinstance(line, bytes):
            line = line.decode(self.encoding, errors="replace")

        tokens = line.split()
        if len(tokens) != self.TOKEN_COUNT:
            raise MalformedRequestLine(line)

        method, path, protocol = tokens
        return HTTPRequest(method=method, path=path, protocol=protocol)


def parse_request(line: Union[str, bytes]) -> HTTPRequest:
    """Convenience wrapper around RequestParser().parse()."""
    return RequestParser().parse(line)


# =============================================================================
# VALIDATION
# =============================================================================


class ValidationOutcome(Enum):
    """Result of checking a request against server policy."""

    VALID = "valid"
    BAD_REQUEST = "bad_request"


def is_valid_method(method: str) -> bool:
    """Only GET is served. "get" and "Get" are not GET."""
    return method == "GET"


def is_rooted_path(path: str) -> bool:
    """The request URI must be an absolute path such as "/" or "/a/b.txt"."""
    return path.startswith("/")


def is_valid_protocol(protocol: str) -> bool:
    """
    Accept "HTTP" on its own, or "HTTP/<version>" with version >= 0.9.

    The version is read as a real number, so "HTTP/1", "HTTP/1.0" and
    "HTTP/2.0" are all fine while "HTTP/0.8", "HTTP/abc", "HTTP/1.0/x"
    and "FTP/1.0" are not.
    """
    if protocol == "HTTP":
        return True

    parts = protocol.split("/")
    if len(parts) != 2:
        return False

    name, version = parts
    if name != "HTTP":
        return False

    number = _parse_version(version)
    return number is not None and number >= MIN_PROTOCOL_VERSION


def _parse_version(version: str):
    # float() also takes digit separators ("1_0"); a version number never
    # has them
    if "_" in version:
        return None
    try:
        number = float(version)
    except ValueError:
        return None
    if math.isnan(number):
        return None
    return number


def validate(request: HTTPRequest) -> ValidationOutcome:
    """
    Check a parsed request against the server's policy.

    All three checks are evaluated; a single failure is enough for
    BAD_REQUEST.

    Args:
        request: A structurally valid request.

    Returns:
        ValidationOutcome.VALID or ValidationOutcome.BAD_REQUEST.
    """
    checks = (
        is_valid_method(request.method),
        is_rooted_path(request.path),
        is_valid_protocol(request.protocol),
    )

    if all(checks):
        return ValidationOutcome.VALID

    logger.debug(f"Rejected request line: {request.request_line!r}")
    return ValidationOutcome.BAD_REQUEST
