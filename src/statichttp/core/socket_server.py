"""
=============================================================================
LISTENER / ACCEPT LOOP
=============================================================================

Owns the listening socket. Accepts connections and hands each one to a
callback, which passes it on to a dispatcher. It never reads from a
client itself.

    bind()  ──►  listen(backlog)  ──►  ┌──────────── accept loop ───────────┐
      │                                │  accept()  (wakes every second)    │
      │ OSError: fatal,                │     │                              │
      │ raised to the caller           │     ▼                              │
      ▼                                │  Connection(client socket)         │
    exit 1                             │     │                              │
                                       │     ▼                              │
                                       │  on_connection(conn)  ── returns ──┤
                                       └────────────────────────────────────┘
                                                 │ shutdown()
                                                 ▼
                                         close listening socket

=============================================================================
ACCEPT FAILURES DON'T STOP THE SERVER
=============================================================================

An accept() can fail for reasons that have nothing to do with the server
being broken: the client reset the connection while it sat in the
backlog, or the process briefly ran out of file descriptors. Such a
failure is logged and the loop goes on. Only shutdown() ends the loop.

=============================================================================
SIGNALS
=============================================================================

SIGINT (Ctrl+C) and SIGTERM call shutdown() when the server runs in the
main thread. Python only lets the main thread install signal handlers, so
a server started from a background thread (as the tests do) skips this.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


# How often accept() wakes up to check whether shutdown() was called
ACCEPT_POLL_INTERVAL = 1.0

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SocketServer:
    """
    TCP listener.

    Usage:
        listener = SocketServer(config)
        listener.bind()                             # optional, fails fast
        listener.start(lambda conn: dispatcher.dispatch(handler, conn))
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._sock: Optional[socket.socket] = None
        self._running = False
        self._ready = threading.Event()
        self._previous_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port); the real port when config.port is 0."""
        if self._sock is None:
            return (self.config.host, self.config.port)
        host, port = self._sock.getsockname()[:2]
        return (host, port)

    def bind(self):
        """
        Create the listening socket, bind and listen.

        start() calls this if it has not been called already. Calling it
        first makes the real address known before the accept loop blocks.

        Raises:
            OSError: If the address cannot be bound.
        """
        if self._sock is not None:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        # Restart right away instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Cannot listen on {self.config.host}:{self.config.port}: {e}")
            raise

        self._sock = sock

    def start(self, on_connection: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Args:
            on_connection: Called on the accept thread with every new
                           Connection. Must hand off and return.
        """
        self.bind()
        self._running = True
        self._install_signal_handlers()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        self._ready.set()

        try:
            while self._running:
                conn = self._accept()
                if conn is not None:
                    self._hand_off(conn, on_connection)
        finally:
            self._close()

    def _accept(self) -> Optional[Connection]:
        try:
            client, address = self._sock.accept()
        except socket.timeout:
            return None
        except OSError as e:
            if self._running:
                logger.error(f"accept() failed: {e}")
            return None

        logger.debug(f"Accepted {address[0]}:{address[1]}")
        return Connection(
            socket=client,
            address=address,
            buffer_size=self.config.buffer_size,
            timeout=self.config.timeout,
            max_line_size=self.config.max_line_size,
        )

    def _hand_off(self, conn: Connection, on_connection: Callable[[Connection], None]):
        try:
            on_connection(conn)
        except Exception as e:
            # e.g. RuntimeError from Thread.start() when out of threads
            logger.error(f"[{conn.id}] Could not dispatch connection: {e}")
            conn.abort()

    def shutdown(self):
        """Stop the accept loop. Safe to call more than once, from any thread."""
        if self._running:
            logger.info("Stopping listener")
        self._running = False

    def _install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, leaving signal handlers alone")
            return

        def on_signal(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down")
            self.shutdown()

        for sig in STOP_SIGNALS:
            self._previous_handlers[sig] = signal.signal(sig, on_signal)

    def _close(self):
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()

        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None

        self._ready.clear()
        logger.info("Listener closed")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. False on timeout."""
        return self._ready.wait(timeout)
