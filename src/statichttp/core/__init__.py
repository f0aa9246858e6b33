"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing, with no knowledge of HTTP:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  • Binds IP:PORT, runs the accept() loop in one thread              │
    │  • Wraps each client socket in a Connection                          │
    │  • Logs accept failures and keeps going                              │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ hands off every connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          DISPATCHER                                  │
    │  • ThreadPerConnection: new thread each time, unbounded (default)   │
    │  • PooledDispatcher: bounded ThreadPool (opt-in)                    │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ worker thread runs the handler
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  • Buffered line reading (TCP is a stream, not lines!)              │
    │  • Pipeline state tracking                                           │
    │  • sendall() and a clean close                                       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState, LineTooLong
from .dispatch import Dispatcher, ThreadPerConnection, PooledDispatcher, create_dispatcher
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "LineTooLong",
    "Dispatcher",
    "ThreadPerConnection",
    "PooledDispatcher",
    "create_dispatcher",
    "SocketServer",
    "ThreadPool",
]
