"""
=============================================================================
CORE: SOCKETS AND CONNECTIONS
=============================================================================

    SocketServer   listening socket + accept loop (background thread)
        │
        ▼
    Connection     one accepted socket: buffered reads, sendall, close

Concurrency is one thread per connection, spawned by quickapi.server.
=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Listening socket and accept loop
    "Connection",       # Wrapper for one client socket
    "ConnectionState",  # Enum for connection lifecycle states
]
