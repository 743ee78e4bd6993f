"""
=============================================================================
QUICKAPI - A Minimal Embeddable HTTP Endpoint
=============================================================================

Bind a port, hand every request to one function, answer from that
function. No routing table, no keep-alive, no TLS.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    quickapi/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m quickapi)
    ├── server.py            # Server / create_server
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   └── connection.py    # One accepted client socket
    └── http/
        ├── parser.py        # Header scanning and parsing
        ├── request.py       # Request object and its accessors
        └── response.py      # The four response kinds

=============================================================================
QUICK START
=============================================================================

    import json
    from quickapi import create_server

    def handle(request):
        if request.method == "OPTIONS":
            request.send_options()
        elif request.method == "POST":
            form = request.get_parameters_from_body()
            request.send_text(json.dumps({"received": form}))
        else:
            request.send_text(json.dumps(request.get_parameters_from_url()))

    server = create_server(8080, handle)   # Returns immediately

=============================================================================
"""

__version__ = "1.0.0"

from .server import Server, create_server
from .config import ServerConfig
from .http import MalformedRequestError, Request

__all__ = [
    "Server",
    "create_server",
    "ServerConfig",
    "Request",
    "MalformedRequestError",
    "__version__",
]
