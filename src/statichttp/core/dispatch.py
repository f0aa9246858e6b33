"""
=============================================================================
CONNECTION DISPATCH POLICIES
=============================================================================

The accept loop never handles a connection itself. It hands each one to a
dispatcher and goes straight back to accept().

    ┌──────────────┐   conn   ┌──────────────────────┐
    │  accept loop │ ───────► │  dispatcher          │
    └──────────────┘          │                      │
                              │  ThreadPerConnection │──► new Thread(handler, conn)
                              │        (default)     │
                              │                      │
                              │  PooledDispatcher    │──► ThreadPool.submit(handler, conn)
                              │        (opt-in)      │      full? abort, log warning
                              └──────────────────────┘

=============================================================================
THE DEFAULT IS UNBOUNDED
=============================================================================

ThreadPerConnection puts no limit on concurrent connections: no admission
control, no backpressure. Combined with blocking reads that have no
timeout, a flood of slow or silent clients can exhaust threads and memory.
That is the baseline behaviour, kept on purpose. PooledDispatcher caps
concurrency, at the cost of closing connections (without a response) when
its queue is full.

=============================================================================
"""

import logging
import threading
from typing import Callable

from .connection import Connection
from .thread_pool import ThreadPool


logger = logging.getLogger(__name__)


ConnectionCallback = Callable[[Connection], None]


class Dispatcher:
    """Base class: run a handler for a connection somewhere else."""

    def start(self):
        pass

    def dispatch(self, handler: ConnectionCallback, conn: Connection):
        raise NotImplementedError

    def shutdown(self):
        pass


class ThreadPerConnection(Dispatcher):
    """
    Spawn a fresh daemon thread for every connection.

    No bound on the number of live threads.
    """

    def dispatch(self, handler: ConnectionCallback, conn: Connection):
        thread = threading.Thread(
            target=handler,
            args=(conn,),
            name=f"Conn-{conn.id}",
            daemon=True,
        )
        thread.start()


class PooledDispatcher(Dispatcher):
    """
    Run connections on a bounded ThreadPool.

    When the pool's queue is full the connection is aborted straight away,
    without reading from it; the client sees the stream end with no bytes
    written.
    """

    def __init__(self, workers: int, queue_size: int):
        self.pool = ThreadPool(workers=workers, queue_size=queue_size)

    def start(self):
        self.pool.start()

    def dispatch(self, handler: ConnectionCallback, conn: Connection):
        if not self.pool.submit(handler, conn):
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection from {conn.client_ip}")
            conn.abort()

    def shutdown(self):
        self.pool.shutdown(wait=True, timeout=30.0)


def create_dispatcher(max_workers=None, queue_size: int = 64) -> Dispatcher:
    """ThreadPerConnection when max_workers is None, else PooledDispatcher."""
    if max_workers is None:
        return ThreadPerConnection()
    return PooledDispatcher(workers=max_workers, queue_size=queue_size)
