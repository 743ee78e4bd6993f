"""
=============================================================================
QUICKAPI SERVER
=============================================================================

The endpoint: one listening port, one callback, one request per
connection.

=============================================================================
REQUEST FLOW
=============================================================================

    1. ACCEPT (accept thread)
       └── SocketServer accepts, wraps the socket in a Connection

    2. SPAWN
       └── A new daemon thread is started for the connection
           (no pool, no queue, no limit)

    3. SCAN HEADERS (connection thread)
       └── Byte by byte until CR LF CR LF, or end of stream

    4. PARSE
       └── Headers → dict; Content-Length → read exactly that many bytes

    5. BUILD REQUEST
       └── Fewer than two tokens on the request line?
           → log, skip the callback, close

    6. CALLBACK
       └── callback(request) on the same thread; it may call one of
           request.send_text / send_image / send_file / send_options

    7. CLOSE
       └── Always, even if the callback raised or sent nothing

=============================================================================
KNOWN LIMITS
=============================================================================

- A client that never finishes its headers, or declares a Content-Length
  it never sends, holds its thread until it disconnects. There is no
  timeout and no cap on the number of such threads.
- The callback runs concurrently on many threads and must be safe to do
  so.

=============================================================================
"""

import logging
import threading
from dataclasses import replace
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState
from .http import MalformedRequestError, Request, parse_headers


logger = logging.getLogger(__name__)


RequestCallback = Callable[[Request], None]


class Server:
    """
    An embeddable HTTP endpoint.

    =========================================================================
    USAGE
    =========================================================================

        def handle(request):
            if request.method == "OPTIONS":
                request.send_options()
            else:
                name = request.get_parameters_from_url().get("name")
                request.send_text(json.dumps({"hello": name}))

        server = create_server(8080, handle)  # Returns immediately

    =========================================================================
    """

    def __init__(
        self,
        port: int,
        callback: RequestCallback,
        config: Optional[ServerConfig] = None,
    ):
        """
        Bind the port and start accepting connections.

        Args:
            port: TCP port to listen on (all interfaces by default).
            callback: Called once per parsed request.
            config: Bind address, backlog and buffer settings.

        Raises:
            ValueError: If the configuration is invalid.
            OSError: If the port cannot be bound.
        """
        self.config = replace(config or ServerConfig(), port=port)
        self.config.validate()  # Fail-fast on invalid config

        self._callback = callback

        self._socket_server = SocketServer(self.config)
        self._socket_server.start(self._handle_connection)

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) the server is listening on."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def _handle_connection(self, conn: Connection):
        """
        Start a thread for a new connection (runs on the accept thread).
        """
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"quickapi-conn-{conn.id}",
            daemon=True,
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.error(f"[{conn.id}] Could not start handler thread: {e}")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Read one request, run the callback, close (runs on its own thread).

        Args:
            conn: The client connection.
        """
        with conn:  # Context manager ensures connection is closed
            try:
                header_raw = conn.read_header_block()
                headers = parse_headers(header_raw)
                body_raw = conn.read_body(headers)
            except OSError as e:
                logger.debug(f"[{conn.id}] Read failed: {e}")
                return

            try:
                request = Request.from_raw(header_raw, body_raw, conn, headers)
            except MalformedRequestError as e:
                logger.warning(f"[{conn.id}] {e} from {conn.client_ip}")
                return

            logger.debug(f"[{conn.id}] {request.method} {request.url}")

            conn.state = ConnectionState.PROCESSING
            try:
                self._callback(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Callback error: {e}")


def create_server(
    port: int,
    callback: RequestCallback,
    config: Optional[ServerConfig] = None,
) -> Server:
    """
    Create a listening endpoint that hands every request to ``callback``.

    Binding happens before this returns; the accept loop then runs in the
    background for the lifetime of the process.

    Example:
        server = create_server(8080, lambda request: request.send_text("{}"))
    """
    return Server(port, callback, config)
