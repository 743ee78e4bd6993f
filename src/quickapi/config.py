"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the QuickAPI endpoint.

The endpoint itself has very few knobs: the port is passed explicitly to
create_server(), and everything else (bind address, listen backlog, read
buffer size, log level) lives here with sensible defaults.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m quickapi --port 3000                            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m quickapi                         │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the QuickAPI endpoint.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    LOGGING
    - log_level

    There is deliberately no timeout and no worker limit here: every
    accepted connection gets its own thread and may block as long as the
    client keeps it open.

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces (default)
    - "127.0.0.1" - Localhost only (tests, development)
    """

    port: int = 8080
    """
    The port number to listen on. Only used by the CLI; create_server()
    always receives the port explicitly.
    """

    backlog: int = 128
    """
    Maximum number of queued connections waiting for accept().
    """

    buffer_size: int = 8192
    """
    Read buffer size of each connection's byte stream.
    The header scanner reads one byte at a time, so this buffer is what
    keeps that from turning into one recv() syscall per byte.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level used by the CLI (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    The library itself never installs logging handlers.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST       Bind address (default: 0.0.0.0)
        HTTP_PORT       Listening port (default: 8080)
        HTTP_BACKLOG    Listen backlog (default: 128)
        HTTP_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            backlog=int(os.getenv("HTTP_BACKLOG", "128")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called before the listening socket is created, so a bad value
        fails at startup instead of at the first connection.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
