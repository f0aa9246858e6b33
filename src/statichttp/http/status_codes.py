"""
=============================================================================
HTTP STATUS CODES (the four this server speaks)
=============================================================================

This server only ever answers with one of four status codes. Rather than
carrying the whole RFC 7231 table around, the set is CLOSED: anything that
is not listed here cannot be turned into a response.

    ┌────────────────────────────────────────────────────────────────────┐
    │                        STATUS CODES IN USE                         │
    ├────────┬───────────────────────────────────────────────────────────┤
    │  200   │ OK           - File found and read, body is the file      │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Bad Request  - Wrong method, bad protocol token,          │
    │        │                unrooted path, or an unexpected I/O error  │
    │  403   │ Forbidden    - File exists but may not be read            │
    │  404   │ Not Found    - Nothing servable at that path              │
    └────────┴───────────────────────────────────────────────────────────┘

Every status has a reason phrase (used in the status line) and, for the
error statuses, a fixed HTML snippet used as the response body:

    HTTP/1.0 404 Not Found
             ─── ─────────
              │      │
              │      └── phrase
              └───────── status code

    body:  <h1>404 Not Found</h1>

=============================================================================
WHY AN IntEnum?
=============================================================================

IntEnum members compare equal to plain ints (HTTPStatus.OK == 200), so they
format naturally into status lines and log records. At the same time
HTTPStatus(418) raises ValueError: an unknown status is a programming error
that blows up where it is created, not a string that slips through to the
wire.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Closed set of HTTP status codes produced by the server.

    Both lookups below (phrase, error_body) are total over the members,
    so there is no "unknown status" branch anywhere downstream.
    """

    OK = 200
    BAD_REQUEST = 400
    FORBIDDEN = 403
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line, e.g. "Not Found"."""
        return _STATUS_PHRASES[self]

    @property
    def is_success(self) -> bool:
        return self is HTTPStatus.OK

    @property
    def is_error(self) -> bool:
        return not self.is_success

    @property
    def error_body(self) -> bytes:
        """
        Fixed HTML body sent with an error status.

        Raises:
            ValueError: for HTTPStatus.OK, whose body is always file content.
        """
        if self.is_success:
            raise ValueError("200 OK has no fixed error body")
        return f"<h1>{int(self)} {self.phrase}</h1>".encode("ascii")


# =============================================================================
# REASON PHRASES
# =============================================================================
#
# HTTP/1.0 200 OK
#          ─── ──
#           │   │
#           │   └── Reason phrase (from this dict)
#           └────── Status code
#
# =============================================================================

_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
}
