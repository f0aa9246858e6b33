"""
=============================================================================
RESPONSE BUILDING AND SERIALIZATION
=============================================================================

Builds HTTPResponse values and turns them into the bytes written back to
the client.

=============================================================================
THE WIRE FORMAT
=============================================================================

This is NOT an RFC-style header block. Each piece of metadata is a bare
line, in a fixed order, and nothing else is ever added:

    SUCCESS (200)                         ERROR (400 / 403 / 404)
    ─────────────                         ───────────────────────

    HTTP/1.0 200 OK\\n                     HTTP/1.0 404 Not Found\\n
    statichttp/0.1\\n     ← server tag     statichttp/0.1\\n
    text/html\\n          ← content type   \\n
    2\\n                  ← byte count     <h1>404 Not Found</h1>
    \\n
    hi                   ← file bytes

    ┌─────────────────────────────────────────────────────────────────────┐
    │  The status decides everything else:                                 │
    │                                                                      │
    │    200      content_type set, content_length == len(body),          │
    │             body is the file                                         │
    │                                                                      │
    │    non-200  content_type None, content_length 0,                    │
    │             body is the fixed markup for that status                │
    └─────────────────────────────────────────────────────────────────────┘

ResponseBuilder.build() enforces this, so an HTTPResponse with a 404 status
and a file body cannot be produced through the builder.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Union

from .mime_types import get_mime_type
from .status_codes import HTTPStatus


PROTOCOL_VERSION = "HTTP/1.0"
DEFAULT_SERVER_TAG = "statichttp/0.1"


@dataclass(frozen=True)
class HTTPResponse:
    """
    A response, ready to serialize.

    Attributes:
        status: One of the four supported statuses.
        server_tag: Static identifier echoed in every response.
        content_type: Subtype ("html" / "plain"), only for 200.
        content_length: Body length in bytes, only for 200 (else 0).
        body: File bytes for 200, fixed error markup otherwise.
    """

    status: HTTPStatus
    server_tag: str = DEFAULT_SERVER_TAG
    content_type: Optional[str] = None
    content_length: int = 0
    body: bytes = b""

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.0 403 Forbidden"."""
        return f"{PROTOCOL_VERSION} {int(self.status)} {self.status.phrase}"

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Lines are joined with a bare LF; a blank line separates the
        metadata lines from the body.
        """
        lines = [self.status_line, self.server_tag]

        if self.status.is_success:
            lines.append(get_mime_type(self.content_type))
            lines.append(str(self.content_length))

        head = "\n".join(lines) + "\n\n"
        return head.encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Usage:
        response = (ResponseBuilder("statichttp/0.1")
            .status(HTTPStatus.OK)
            .content_type("html")
            .body(b"<p>hi</p>")
            .build())

        response = ResponseBuilder().error(HTTPStatus.NOT_FOUND)

    All configuration methods return self; build() returns the response.
    """

    def __init__(self, server_tag: str = DEFAULT_SERVER_TAG):
        self._server_tag = server_tag
        self._status = HTTPStatus.OK
        self._content_type: Optional[str] = None
        self._body = b""

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        """
        Set the status.

        Raises:
            ValueError: If status is not one of 200, 400, 403, 404.
        """
        self._status = HTTPStatus(status)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the content subtype ("html" or "plain")."""
        self._content_type = content_type
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body. Strings are encoded as UTF-8."""
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body
        return self

    def build(self) -> HTTPResponse:
        """
        Build the response, applying the status invariant.

        For an error status whatever content type and body were set are
        discarded in favour of the fixed error markup.

        Raises:
            ValueError: For a 200 response with no content type.
        """
        if self._status.is_error:
            return HTTPResponse(
                status=self._status,
                server_tag=self._server_tag,
                body=self._status.error_body,
            )

        if self._content_type is None:
            raise ValueError("A 200 response needs a content type")

        return HTTPResponse(
            status=self._status,
            server_tag=self._server_tag,
            content_type=self._content_type,
            content_length=len(self._body),
            body=self._body,
        )

    # =========================================================================
    # SHORTCUTS
    # =========================================================================

    def ok(self, body: bytes, content_type: str) -> HTTPResponse:
        """Build a 200 response carrying a file."""
        return self.status(HTTPStatus.OK).content_type(content_type).body(body).build()

    def error(self, status: Union[HTTPStatus, int]) -> HTTPResponse:
        """Build an error response (400, 403 or 404)."""
        return self.status(status).build()


def serialize(response: HTTPResponse) -> bytes:
    """Serialize a response to wire bytes. Same as response.to_bytes()."""
    return response.to_bytes()
