"""
=============================================================================
HTTP RESPONSE SERIALIZATION
=============================================================================

Every response QuickAPI writes has the same shape:

    HTTP/1.1 200 OK\r\n                 ← Status line (always 200)
    Content-Type: image/png\r\n         ← Small fixed header set
    Content-Length: 5120\r\n
    \r\n                                ← Empty line (separator)
    <body bytes>                        ← Body

There are four payload kinds, one builder each:

    ┌──────────────┬──────────────────────────────────┬─────────────────────┐
    │ Builder      │ Content-Type                     │ Extra headers       │
    ├──────────────┼──────────────────────────────────┼─────────────────────┤
    │ text_response│ application/json; charset=utf-8  │                     │
    │ image_resp.. │ image/png                        │                     │
    │ file_resp..  │ application/octet-stream         │ CORS origin,        │
    │              │                                  │ Content-Disposition │
    │ preflight_.. │ (none)                           │ Allow + CORS set    │
    └──────────────┴──────────────────────────────────┴─────────────────────┘

There is no way to produce any other status code. The user callback
decides what to send; when it decides to send nothing, the connection is
simply closed.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict


STATUS_LINE = "HTTP/1.1 200 OK"

ALLOWED_METHODS = "GET, POST, PUT, DELETE"

PREFLIGHT_MAX_AGE = 86400  # One day


@dataclass
class HTTPResponse:
    """
    A response ready to be written to the client.

    Headers are written in insertion order. Unlike a general purpose
    server, nothing is added automatically: no Date, no Server, and no
    Content-Length unless the builder put one in.
    """

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def to_bytes(self) -> bytes:
        """
        Serialize the response for socket.sendall().

        Returns:
            Status line, headers, blank line and body as one bytes object.
        """
        lines = [STATUS_LINE]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Empty line between headers and body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


def text_response(text: str) -> HTTPResponse:
    """
    Build a JSON/text response.

    Content-Length is the UTF-8 byte length of ``text``, not its number
    of characters.
    """
    body = text.encode("utf-8")
    return HTTPResponse(
        headers={
            "Content-Type": "application/json; charset=utf-8",
            "Content-Length": str(len(body)),
        },
        body=body,
    )


def image_response(image: bytes) -> HTTPResponse:
    """Build a PNG image response from raw image bytes."""
    return HTTPResponse(
        headers={
            "Content-Type": "image/png",
            "Content-Length": str(len(image)),
        },
        body=bytes(image),
    )


def file_response(file_name: str, data: bytes) -> HTTPResponse:
    """
    Build a file download response.

    The browser is asked to save the body as ``file_name``. The file name
    is written into the header verbatim.
    """
    return HTTPResponse(
        headers={
            "Content-Type": "application/octet-stream",
            "Access-Control-Allow-Origin": "*",
            "Content-Disposition": f'attachment; filename="{file_name}"',
            "Content-Length": str(len(data)),
        },
        body=bytes(data),
    )


def preflight_response() -> HTTPResponse:
    """
    Build the CORS preflight reply.

    =========================================================================
    CORS PREFLIGHT
    =========================================================================

        Browser                                   QuickAPI
           │                                          │
           │  OPTIONS /api/data                       │
           │  Origin: https://app.example             │
           │  Access-Control-Request-Method: PUT      │
           │ ───────────────────────────────────────► │
           │                                          │
           │  200 OK                                  │
           │  Allow: GET, POST, PUT, DELETE           │
           │  Access-Control-Allow-Origin: *          │
           │  Access-Control-Allow-Methods: ...       │
           │  Access-Control-Allow-Headers: *         │
           │  Access-Control-Max-Age: 86400           │
           │ ◄─────────────────────────────────────── │

    The reply has no body and no Content-Type. It fits the common
    "allow everything" API case; finer-grained policies are up to the
    callback.

    =========================================================================
    """
    return HTTPResponse(
        headers={
            "Allow": ALLOWED_METHODS,
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": "*",
            "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE),
        },
    )
