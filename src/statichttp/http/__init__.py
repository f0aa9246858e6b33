"""
=============================================================================
HTTP/1.0 SUBSET
=============================================================================

Everything that knows about the protocol itself, with no sockets and no
filesystem involved:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  request.py       request line  ──►  HTTPRequest  ──►  validate()   │
    │  response.py      HTTPResponse  ──►  bytes                          │
    │  status_codes.py  the closed set {200, 400, 403, 404}               │
    │  mime_types.py    file extension  ──►  "html" | "plain"             │
    └─────────────────────────────────────────────────────────────────────┘

    CLIENT                                         SERVER
       │   GET /index.html HTTP/1.0                   │
       │  ─────────────────────────────────────────►  │
       │                                              │
       │                          HTTP/1.0 200 OK     │
       │                          statichttp/0.1      │
       │                          text/html           │
       │                          2                   │
       │                                              │
       │                          hi                  │
       │  ◄─────────────────────────────────────────  │

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    MalformedRequestLine,
    ValidationOutcome,
    parse_request,
    validate,
    is_valid_method,
    is_valid_protocol,
    is_rooted_path,
)
from .response import HTTPResponse, ResponseBuilder, serialize
from .status_codes import HTTPStatus
from .mime_types import get_content_type, get_mime_type

__all__ = [
    # Request parsing and validation
    "HTTPRequest",
    "RequestParser",
    "MalformedRequestLine",
    "ValidationOutcome",
    "parse_request",
    "validate",
    "is_valid_method",
    "is_valid_protocol",
    "is_rooted_path",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "serialize",

    # Status codes
    "HTTPStatus",

    # Content types
    "get_content_type",
    "get_mime_type",
]
