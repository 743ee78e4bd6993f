"""
=============================================================================
THE REQUEST OBJECT
=============================================================================

A Request is what the user callback receives: the parsed request line,
the headers, the raw body, and the connection the response goes back on.

    Raw bytes                   Request                    Callback
    from socket   ──parse──►   object      ──invoke──►    function
       │                          │                          │
    b"POST /up?x=1 ..."      Request(                   def handle(req):
                               method="POST",               req.send_text(...)
                               url="/up?x=1",
                               headers={...},
                               body_raw=b"...")

The Request is also the response writer: send_text(), send_image(),
send_file() and send_options() serialize a response and write it to the
owning connection. The callback should call at most one of them.

=============================================================================
QUERY STRING VS FORM BODY
=============================================================================

Both parameter accessors produce {key: value-or-None}, percent-decode
both sides with urllib.parse.unquote ("+" stays a "+"), and let later
occurrences of a key overwrite earlier ones. They differ in one place:

    URL pattern:   [?&]key[=value]    each pair must follow "?" or "&"
    Body pattern:  key[=value]        no leading separator required

So "?a=1" as a body yields the key "?a", and "a=1" as a target (no "?")
yields nothing. The difference is observable and kept as-is.

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional
from urllib.parse import unquote

from .parser import (
    MalformedRequestError,
    parse_headers,
    parse_request_line,
)
from .response import (
    HTTPResponse,
    file_response,
    image_response,
    preflight_response,
    text_response,
)

if TYPE_CHECKING:
    from ..core.connection import Connection


URL_PARAMETER_PATTERN = re.compile(r"[?&]([^&=]+)(?:=([^&]*))?")
BODY_PARAMETER_PATTERN = re.compile(r"([^&=]+)(?:=([^&]*))?")


def _match_parameters(pattern: re.Pattern, text: str) -> Dict[str, Optional[str]]:
    """Collect key/value pairs matched by ``pattern``, decoding both sides."""
    parameters: Dict[str, Optional[str]] = {}
    for match in pattern.finditer(text):
        key, value = match.groups()
        parameters[unquote(key)] = unquote(value) if value is not None else None
    return parameters


@dataclass
class Request:
    """
    One parsed HTTP request, bound to the connection it arrived on.

    Attributes:
        header_raw: Header block as text, terminator included.
        body_raw:   Body bytes (empty without a valid Content-Length).
        method:     First token of the request line.
        url:        Second token of the request line (the target).
        version:    Third token, or None if the client omitted it.
        headers:    Header name → value, names as sent by the client.
        connection: Where responses are written.
    """

    header_raw: str
    body_raw: bytes
    method: str
    url: str
    version: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    connection: Optional["Connection"] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.method or not self.url:
            raise MalformedRequestError(
                "Request needs a method and a target",
                header_raw=self.header_raw,
            )

    @classmethod
    def from_raw(
        cls,
        header_raw: str,
        body_raw: bytes = b"",
        connection: Optional["Connection"] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "Request":
        """
        Build a Request from a scanned header block and body.

        Args:
            header_raw: Header text as returned by scan_header_block().
            body_raw: Body bytes.
            connection: Connection to write responses to.
            headers: Already parsed headers. Parsed from ``header_raw``
                     when not given.

        Raises:
            MalformedRequestError: If the request line has fewer than
                                   two tokens.
        """
        method, url, version = parse_request_line(header_raw)
        if headers is None:
            headers = parse_headers(header_raw)

        return cls(
            header_raw=header_raw,
            body_raw=body_raw,
            method=method,
            url=url,
            version=version,
            headers=headers,
            connection=connection,
        )

    # =========================================================================
    # DATA ACCESSORS
    # =========================================================================

    def get_parameters_from_url(self) -> Dict[str, Optional[str]]:
        """
        Parse query parameters out of the target.

        Example:
            "/x?a=1&b=2&c"  →  {"a": "1", "b": "2", "c": None}
        """
        return _match_parameters(URL_PARAMETER_PATTERN, self.url)

    def get_parameters_from_body(self) -> Dict[str, Optional[str]]:
        """
        Parse a form-encoded body.

        Example:
            b"a=1&b=hello%20world"  →  {"a": "1", "b": "hello world"}
        """
        return _match_parameters(BODY_PARAMETER_PATTERN, self.get_text_from_body())

    def get_text_from_body(self) -> str:
        """Return the body decoded as UTF-8 (invalid bytes become U+FFFD)."""
        return self.body_raw.decode("utf-8", errors="replace")

    # =========================================================================
    # RESPONSE WRITERS
    # =========================================================================

    def send_text(self, text: str) -> bool:
        """Send ``text`` (usually JSON) as an application/json response."""
        return self._send(text_response(text))

    def send_image(self, image: bytes) -> bool:
        """Send raw PNG bytes."""
        return self._send(image_response(image))

    def send_file(self, file_name: str, data: bytes) -> bool:
        """Send ``data`` as a download named ``file_name``."""
        return self._send(file_response(file_name, data))

    def send_options(self) -> bool:
        """Answer a CORS preflight request."""
        return self._send(preflight_response())

    def _send(self, response: HTTPResponse) -> bool:
        if self.connection is None:
            raise RuntimeError("Request is not bound to a connection")
        return self.connection.send_response(response.to_bytes())
