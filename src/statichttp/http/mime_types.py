"""
=============================================================================
CONTENT TYPE DETECTION
=============================================================================

Maps a file's extension to the subtype written on the content-type line of
a 200 response.

This server only knows two kinds of content:

    ┌────────────────────────────────────────────────────────────────────┐
    │   extension          subtype      wire line                        │
    │   ─────────────────  ───────────  ──────────────                   │
    │   .html              html         text/html                        │
    │   anything else      plain        text/plain                       │
    │   (no extension)     plain        text/plain                       │
    └────────────────────────────────────────────────────────────────────┘

There is no sniffing of file contents. "index.HTML" and "page.htm" are
plain text as far as this table is concerned; the match is on the exact
extension.

=============================================================================
"""

from pathlib import Path
from typing import Union


# Extension (without the dot) → subtype of "text/"
CONTENT_SUBTYPES = {
    "html": "html",
}

DEFAULT_SUBTYPE = "plain"


def get_content_type(path: Union[str, Path]) -> str:
    """
    Get the content subtype for a file based on its extension.

    Examples:
        >>> get_content_type("index.html")
        'html'

        >>> get_content_type("notes.txt")
        'plain'

        >>> get_content_type("README")
        'plain'
    """
    if isinstance(path, str):
        path = Path(path)

    extension = path.suffix[1:]  # ".html" → "html", "" → ""
    return CONTENT_SUBTYPES.get(extension, DEFAULT_SUBTYPE)


def get_mime_type(content_type: str) -> str:
    """Full MIME type for a subtype: "html" → "text/html"."""
    return f"text/{content_type}"
