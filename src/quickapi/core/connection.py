"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket for exactly one
request/response exchange.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        "GET /api?x=1 HTTP/1.1\r\nHost: a\r\n\r\n"

    Server might receive:
        First recv():  "GET /ap"
        Second recv(): "i?x=1 HTTP/1.1\r\nHo"
        Third recv():  "st: a\r\n\r"
        Fourth recv(): "\n"

The header scanner reads the request ONE BYTE AT A TIME, so it never
cares where the chunk boundaries fall. To keep that from costing one
syscall per byte, the socket is read through a buffered file object
(socket.makefile("rb")): the buffer does the recv() calls, the scanner
pulls bytes out of the buffer.

The same buffered stream is then used for the body, so bytes the buffer
already pulled past the header terminator are not lost.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
     │         │            │                          ▲
     └─────────┴────────────┴──────────────────────────┘
          (malformed request, callback error, or no response sent)

There is no keep-alive: after the callback returns, the connection is
closed whatever happened.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Optional

from ..http.parser import read_body, scan_header_block


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and close()."""
    NEW = "new"                # Just accepted
    READING = "reading"        # Scanning headers / reading body
    PROCESSING = "processing"  # Callback is running
    WRITING = "writing"        # A response is being sent
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    One accepted client socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. BUFFERED READING                                                 │
    │     └── read_header_block(): scan up to CR LF CR LF                  │
    │     └── read_body(): exactly Content-Length bytes                    │
    │                                                                      │
    │  2. WRITING                                                          │
    │     └── send_response(): sendall(), failures logged not raised       │
    │                                                                      │
    │  3. CLOSING                                                          │
    │     └── FIN, drain, release the file descriptor                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short random identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Read buffer size of the byte stream.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    buffer_size: int = 8192

    _stream: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        # No timeout: a silent client blocks its own thread only.
        self.socket.setblocking(True)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def stream(self) -> BinaryIO:
        """Buffered binary reader over the socket, created on first use."""
        if self._stream is None:
            self._stream = self.socket.makefile("rb", buffering=self.buffer_size)
        return self._stream

    # =========================================================================
    # READING
    # =========================================================================

    def read_header_block(self) -> str:
        """
        Read the request line and headers.

        Returns:
            Header text up to and including CR LF CR LF, or whatever
            arrived before the client stopped sending.
        """
        self.state = ConnectionState.READING
        header_raw = scan_header_block(self.stream)
        logger.debug(f"[{self.id}] Read {len(header_raw)} header bytes")
        return header_raw

    def read_body(self, headers: Dict[str, str]) -> bytes:
        """Read the body declared by ``headers`` (empty if none)."""
        self.state = ConnectionState.READING
        return read_body(self.stream, headers)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Uses sendall() so partial sends are retried until everything is
        written.

        Returns:
            True if the send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. Release the buffered reader (it holds a reference to the
           socket, which would otherwise keep the descriptor open).
        2. shutdown(SHUT_WR): send FIN so the client sees end of response.
        3. Drain whatever the client still sends (extra body bytes).
        4. close(): release the file descriptor.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        if self._stream is not None:
            try:
                self._stream.close()
            except OSError:
                pass
            self._stream = None

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Includes socket.timeout

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure the connection is closed, without suppressing exceptions."""
        self.close()
        return False
