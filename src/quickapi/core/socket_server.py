"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket and the accept loop.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create a TCP socket
    2. bind()      Reserve IP:PORT          ◄── failures raised to caller
    3. listen()    Start queueing connections
    4. accept()    Wait for a client         ◄── runs forever on a
                   └─ returns a NEW socket       background thread
                      for that client

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── One per SocketServer,
                    │   0.0.0.0:<port>      │     never shared
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    Connection 1            Connection 2            Connection 3
    (own thread)            (own thread)            (own thread)

=============================================================================
NO SHUTDOWN PATH
=============================================================================

The accept loop runs on a daemon thread for the lifetime of the process.
There is no stop(), no signal handling and no connection limit: an
embedded endpoint lives as long as the program that embeds it. An accept()
that fails is logged and retried; it never ends the loop.

=============================================================================
"""

import socket
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        def handle_connection(conn: Connection):
            ...  # must not block the accept loop for long

        server = SocketServer(config)
        server.start(handle_connection)  # Returns once listening
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Host, port and backlog to listen with.

        The socket is created in start(), not here.
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """True once the accept loop thread has been started."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def address(self) -> Tuple[str, int]:
        """The (host, port) actually bound, or the configured one before start()."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()[:2]

    def _create_socket(self) -> socket.socket:
        """Create a TCP socket with SO_REUSEADDR set."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allows an immediate restart on the same port (TIME_WAIT)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        return sock

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and start the accept loop in the background.

        Returns as soon as the socket is listening.

        Args:
            connection_handler: Called on the accept thread for every new
                                connection. It should hand the connection
                                off quickly.

        Raises:
            OSError: If the address cannot be bound (port in use,
                     insufficient privilege).
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        self._socket = sock

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")

        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(sock, connection_handler),
            name=f"quickapi-accept-{port}",
            daemon=True,
        )
        self._thread.start()

    def _accept_loop(
        self,
        sock: socket.socket,
        connection_handler: Callable[[Connection], None],
    ):
        """
        Accept connections forever.

        ┌─────────────────────────────────────────────────────────────────┐
        │   while True:                                                    │
        │       accept()            BLOCKS until a client connects         │
        │       Connection(...)     wrap the client socket                 │
        │       handler(conn)       Server spawns a thread for it          │
        └─────────────────────────────────────────────────────────────────┘

        Args:
            sock: The listening socket owned by this SocketServer.
            connection_handler: Callback for each new connection.
        """
        while True:
            try:
                client_socket, client_address = sock.accept()
            except OSError as e:
                logger.debug(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
            )
            connection_handler(conn)
