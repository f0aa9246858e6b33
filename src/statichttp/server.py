"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Wires the pieces together: listener, dispatcher, per-connection pipeline
and the request log.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌──────────┐  accept   ┌────────────┐  thread   ┌───────────────────┐
    │ listener │ ───────►  │ dispatcher │ ───────►  │ ConnectionHandler │
    └──────────┘           └────────────┘           └─────────┬─────────┘
                                                              │
        read request line ◄───────────────────────────────────┘
        skip header lines until a blank line
        parse             ── MalformedRequestLine ──► close, nothing sent
        validate          ── BAD_REQUEST ───────────► 400
        resolve           ── FileLoadError ─────────► 403 / 404 / 400
        load              ── FileLoadError ─────────► 403 / 404 / 400
        200 with file bytes
              │
              ▼
        send response  ──►  append log record  ──►  close

Every request that parses gets exactly one response and exactly one log
record. The exception is a request or header line longer than
max_line_size: the connection is closed with no response and no log
record, even when the request line before it was valid. Nothing raised
while handling one connection escapes the handler.

=============================================================================
SHARED STATE
=============================================================================

The only thing workers share is the RequestLogger. The server creates it
at startup and passes it into the ConnectionHandler; it is not a global.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .access_log import LogRecord, LogWriteError, RequestLogger
from .config import ServerConfig
from .core import Connection, ConnectionState, LineTooLong, SocketServer, create_dispatcher
from .handlers import ContentLoader, FileLoadError, PathResolver
from .http import (
    HTTPRequest, HTTPResponse, HTTPStatus,
    MalformedRequestLine, RequestParser, ResponseBuilder,
    ValidationOutcome, validate,
)


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Runs the request pipeline for one connection at a time.

    One instance is shared by all worker threads. It keeps no
    per-connection state of its own; progress is recorded on the
    Connection (conn.state).
    """

    def __init__(
        self,
        resolver: PathResolver,
        request_log: RequestLogger,
        server_tag: str,
        loader: Optional[ContentLoader] = None,
        parser: Optional[RequestParser] = None,
    ):
        self.resolver = resolver
        self.loader = loader or ContentLoader()
        self.parser = parser or RequestParser()
        self.request_log = request_log
        self.server_tag = server_tag

    def __call__(self, conn: Connection):
        """Handle a connection from first byte to close. Never raises."""
        with conn:
            try:
                self._process(conn)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection error: {e}")

    def _process(self, conn: Connection):
        # ─────────────────────────────────────────────────────────────────
        # READ REQUEST LINE, SKIP HEADERS
        # ─────────────────────────────────────────────────────────────────
        conn.state = ConnectionState.READING_REQUEST_LINE
        try:
            line = conn.read_line()
            if line is None:
                logger.debug(f"[{conn.id}] Closed before sending a request line")
                return

            conn.state = ConnectionState.SKIPPING_HEADERS
            conn.skip_headers()
        except LineTooLong as e:
            logger.debug(f"[{conn.id}] {e}")
            return

        # ─────────────────────────────────────────────────────────────────
        # PARSE
        # ─────────────────────────────────────────────────────────────────
        try:
            request = self.parser.parse(line)
        except MalformedRequestLine as e:
            logger.debug(f"[{conn.id}] {e}")
            return
        conn.state = ConnectionState.PARSED

        # ─────────────────────────────────────────────────────────────────
        # RESPOND
        # ─────────────────────────────────────────────────────────────────
        response = self.respond(request, conn)
        if conn.send_response(response.to_bytes()):
            logger.debug(f"[{conn.id}] {request.request_line!r} -> {int(response.status)}")
        conn.state = ConnectionState.RESPONDED

        # ─────────────────────────────────────────────────────────────────
        # LOG
        # ─────────────────────────────────────────────────────────────────
        try:
            self.request_log.log(LogRecord.from_exchange(request, response))
        except LogWriteError as e:
            logger.error(f"[{conn.id}] {e}")
        else:
            conn.state = ConnectionState.LOGGED

    def respond(self, request: HTTPRequest, conn: Optional[Connection] = None) -> HTTPResponse:
        """
        Decide the response for a parsed request.

        Filesystem access only happens for a request that validated.

        Args:
            request: The parsed request.
            conn: If given, its state is advanced along the way.
        """
        builder = ResponseBuilder(self.server_tag)

        if validate(request) is ValidationOutcome.BAD_REQUEST:
            _advance(conn, ConnectionState.REJECTED)
            return builder.error(HTTPStatus.BAD_REQUEST)
        _advance(conn, ConnectionState.VALIDATED)

        try:
            target = self.resolver.resolve(request.path)
        except FileLoadError as e:
            _advance(conn, ConnectionState.NOT_FOUND)
            logger.debug(f"Resolve failed for {request.path!r}: {e}")
            return builder.error(e.status)
        _advance(conn, ConnectionState.RESOLVED)

        try:
            content = self.loader.load(target.path)
        except FileLoadError as e:
            logger.debug(f"Load failed for {target.path}: {e}")
            return builder.error(e.status)

        return builder.ok(content.body, content.content_type)


def _advance(conn: Optional[Connection], state: ConnectionState):
    if conn is not None:
        conn.state = state


class StaticHTTPServer:
    """
    Static file server.

    =========================================================================
    USAGE
    =========================================================================

        server = StaticHTTPServer(ServerConfig(port=8080, document_root="."))
        server.run()        # blocks until Ctrl+C or server.shutdown()

    From another thread (tests, embedding):

        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5.0)
        host, port = server.server_address
        ...
        server.shutdown()

    =========================================================================
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Defaults are used if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on invalid config

        # Document root is fixed now, even if the working directory changes
        self.document_root = self.config.root

        self._socket_server = SocketServer(self.config)
        self._dispatcher = create_dispatcher(self.config.max_workers, self.config.queue_size)
        self._resolver = PathResolver(
            self.document_root,
            index_files=self.config.index_files,
            confine_to_root=self.config.confine_to_root,
        )

        self._request_log: Optional[RequestLogger] = None
        self._handler: Optional[ConnectionHandler] = None

    @property
    def server_address(self) -> Tuple[str, int]:
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self):
        """
        Start the server (blocking).

        Raises:
            OSError: If the request log cannot be created or the address
                     cannot be bound. Both are fatal.
        """
        self._setup_logging()

        self._request_log = RequestLogger.open(self.config.log_file)
        self._handler = ConnectionHandler(
            resolver=self._resolver,
            request_log=self._request_log,
            server_tag=self.config.server_name,
        )

        try:
            self._socket_server.bind()
            self._dispatcher.start()

            logger.info(f"Serving {self.document_root} on "
                        f"{self.server_address[0]}:{self.server_address[1]}")

            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand off and return."""
        self._dispatcher.dispatch(self._handler, conn)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("statichttp").setLevel(level)

    def shutdown(self):
        """Stop accepting connections. run() returns shortly after."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._socket_server.shutdown()
        self._dispatcher.shutdown()

        # Thread-per-connection workers may still be writing; the lock in
        # RequestLogger turns their late writes into LogWriteError
        if self._request_log is not None:
            self._request_log.close()

        logger.info("Server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server accepts connections. False on timeout."""
        return self._socket_server.wait_until_ready(timeout)
