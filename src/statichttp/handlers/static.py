"""
=============================================================================
STATIC FILE RESOLUTION AND LOADING
=============================================================================

Maps a validated request path onto the document root and reads the file
that lives there.

=============================================================================
FLOW
=============================================================================

    Request: GET /docs/

    ┌─────────────────────────────────────────────────────────────────────┐
    │  PathResolver.resolve("/docs/")                                      │
    │                                                                      │
    │    1. Strip leading "/"           "/docs/"  →  "docs/"              │
    │    2. Join to the document root   /srv/www/docs                     │
    │    3. Directory? probe, in order:                                    │
    │          /srv/www/docs/index.txt      (missing)                     │
    │          /srv/www/docs/index.html     (exists!  ← substituted)      │
    │          /srv/www/docs/index.shtml    (not probed)                  │
    │    4. Regular file?  yes → ResolvedTarget                           │
    │                      no  → FileLoadError(404)                        │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  ContentLoader.load(/srv/www/docs/index.html)                        │
    │                                                                      │
    │    read all bytes  →  LoadedContent(body, "html")                   │
    │                                                                      │
    │    FileNotFoundError  →  404                                        │
    │    PermissionError    →  403                                        │
    │    any other OSError  →  400                                        │
    └─────────────────────────────────────────────────────────────────────┘

The first step never does an absolute join. Path("/srv/www") / "/etc/passwd"
would throw the root away, which is why the leading separators go first.

=============================================================================
PATH TRAVERSAL
=============================================================================

Stripping the leading "/" does not stop "GET /../../etc/passwd". With
confine_to_root (the default) the joined path is resolved and must still
be inside the document root; if it is not, the answer is 403 Forbidden.
Turning confine_to_root off gives a plain join where ".." segments are
honoured.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

from ..http.mime_types import get_content_type
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


DEFAULT_INDEX_FILES = ("index.txt", "index.html", "index.shtml")


class FileLoadError(Exception):
    """
    Raised when a request path cannot be turned into file content.

    Carries the HTTP status the client should see:

        404 Not Found    - nothing there, or not a regular file
        403 Forbidden    - the file may not be read (or lies outside the root)
        400 Bad Request  - any other filesystem failure
    """

    def __init__(self, message: str, status: HTTPStatus):
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class ResolvedTarget:
    """
    A filesystem location chosen for a valid request.

    Attributes:
        path: Absolute path of the regular file to serve.
        used_index: True if a directory request was mapped to an index file.
    """

    path: Path
    used_index: bool = False


@dataclass(frozen=True)
class LoadedContent:
    """File bytes plus the content subtype derived from the extension."""

    body: bytes
    content_type: str


class PathResolver:
    """
    Maps request paths to files under a document root.

    Usage:
        resolver = PathResolver("/srv/www")
        target = resolver.resolve("/docs/")
        target.path        # PosixPath('/srv/www/docs/index.html')
        target.used_index  # True
    """

    def __init__(
        self,
        root: Union[str, Path],
        index_files: Sequence[str] = DEFAULT_INDEX_FILES,
        confine_to_root: bool = True,
    ):
        """
        Args:
            root: Document root. Made absolute, but symlinks are left alone.
            index_files: Names probed, in order, inside a requested directory.
            confine_to_root: Refuse paths that resolve outside the root.
        """
        self.root = Path(root).absolute()
        self.index_files = tuple(index_files)
        self.confine_to_root = confine_to_root

    def resolve(self, request_path: str) -> ResolvedTarget:
        """
        Resolve a rooted request path to a regular file.

        Raises:
            FileLoadError: 404 when nothing servable is there (including a
                           file named with a trailing "/" and a path the OS
                           cannot represent, such as one with a NUL byte),
                           403 when the path escapes the root, 400 on any
                           other filesystem error.
        """
        relative = request_path.lstrip("/")
        path = self.root / relative

        try:
            if self.confine_to_root:
                self._check_confined(path, request_path)

            is_dir = path.is_dir()

            # Path() drops a trailing separator; "a.txt/" must not name a.txt
            if request_path.endswith("/") and not is_dir:
                raise FileLoadError(f"Not a directory: {request_path}", HTTPStatus.NOT_FOUND)

            used_index = False
            if is_dir:
                for name in self.index_files:
                    candidate = path / name
                    if candidate.exists():
                        path = candidate
                        used_index = True
                        break

            if not path.is_file():
                raise FileLoadError(f"Not a regular file: {request_path}", HTTPStatus.NOT_FOUND)
        except PermissionError as e:
            raise FileLoadError(str(e), HTTPStatus.FORBIDDEN)
        except ValueError as e:
            # e.g. an embedded NUL byte: no such file can exist
            raise FileLoadError(f"Unusable path {request_path!r}: {e}", HTTPStatus.NOT_FOUND)
        except OSError as e:
            raise FileLoadError(f"Cannot stat {request_path!r}: {e}", HTTPStatus.BAD_REQUEST)

        return ResolvedTarget(path=path, used_index=used_index)

    def _check_confined(self, path: Path, request_path: str):
        resolved = path.resolve()
        try:
            resolved.relative_to(self.root.resolve())
        except ValueError:
            logger.warning(f"Path traversal attempt: {request_path}")
            raise FileLoadError(f"Outside document root: {request_path}", HTTPStatus.FORBIDDEN)


class ContentLoader:
    """Reads whole files and classifies them by extension."""

    def load(self, path: Union[str, Path]) -> LoadedContent:
        """
        Read a file fully.

        Errors are terminal for the request; nothing is retried.

        Raises:
            FileLoadError: With 404, 403 or 400 depending on the OS error.
        """
        path = Path(path)

        try:
            body = path.read_bytes()
        except (FileNotFoundError, NotADirectoryError) as e:
            raise FileLoadError(str(e), HTTPStatus.NOT_FOUND)
        except PermissionError as e:
            raise FileLoadError(str(e), HTTPStatus.FORBIDDEN)
        except OSError as e:
            logger.error(f"Error reading file {path}: {e}")
            raise FileLoadError(str(e), HTTPStatus.BAD_REQUEST)

        return LoadedContent(body=body, content_type=get_content_type(path))
