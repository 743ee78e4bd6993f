"""
HTTP protocol components: header scanning, request parsing, response
serialization.
"""

from .parser import (
    HeaderScanner,
    MalformedRequestError,
    parse_content_length,
    parse_headers,
    parse_request_line,
    read_body,
    scan_header_block,
    split_header_lines,
)
from .request import Request
from .response import (
    HTTPResponse,
    file_response,
    image_response,
    preflight_response,
    text_response,
)

__all__ = [
    # Parsing
    "HeaderScanner",
    "MalformedRequestError",
    "parse_content_length",
    "parse_headers",
    "parse_request_line",
    "read_body",
    "scan_header_block",
    "split_header_lines",
    # Request
    "Request",
    # Response
    "HTTPResponse",
    "file_response",
    "image_response",
    "preflight_response",
    "text_response",
]
