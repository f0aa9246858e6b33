"""
=============================================================================
STATICHTTP - A Minimal HTTP/1.0 Static File Server
=============================================================================

Serves files from a document root over a small subset of HTTP/1.0, using
raw sockets and one thread per connection.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHAT THIS SERVER DOES                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. ACCEPTS TCP CONNECTIONS                                         │
    │      - One worker thread per connection (or an opt-in pool)         │
    │      - Accept failures are logged, the listener keeps going         │
    │                                                                      │
    │   2. READS ONE REQUEST LINE                                          │
    │      - "GET /path HTTP/1.0", headers are skipped                    │
    │      - Only GET, only rooted paths, only HTTP >= 0.9                │
    │                                                                      │
    │   3. SERVES A FILE                                                   │
    │      - Directories fall back to index.txt, index.html, index.shtml  │
    │      - text/html for .html, text/plain for everything else          │
    │      - 400, 403 or 404 with a fixed HTML body otherwise             │
    │                                                                      │
    │   4. LOGS EVERY REQUEST                                              │
    │      - One multi-line record per request in server.log              │
    │      - Safe with many worker threads writing at once                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    statichttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m statichttp)
    ├── server.py            # StaticHTTPServer, ConnectionHandler
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # RequestLogger, LogRecord
    ├── core/                # Networking plumbing
    │   ├── socket_server.py # Listener and accept loop
    │   ├── connection.py    # Line-buffered connection wrapper
    │   ├── dispatch.py      # Thread-per-connection / pooled dispatch
    │   └── thread_pool.py   # Bounded thread pool
    ├── http/                # Protocol
    │   ├── request.py       # Request line parsing and validation
    │   ├── response.py      # Response building and serialization
    │   ├── status_codes.py  # 200, 400, 403, 404
    │   └── mime_types.py    # Extension → html / plain
    └── handlers/
        └── static.py        # Path resolution and file loading

=============================================================================
QUICK START
=============================================================================

    from statichttp import StaticHTTPServer, ServerConfig

    server = StaticHTTPServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

    $ printf 'GET / HTTP/1.0\\n\\n' | nc 127.0.0.1 8080
    HTTP/1.0 200 OK
    statichttp/0.1
    text/html
    ...

=============================================================================
"""

__version__ = "0.1.0"

from .server import StaticHTTPServer, ConnectionHandler
from .config import ServerConfig

__all__ = ["StaticHTTPServer", "ConnectionHandler", "ServerConfig", "__version__"]
