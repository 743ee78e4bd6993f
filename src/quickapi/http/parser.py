"""
=============================================================================
HTTP HEADER SCANNING AND PARSING
=============================================================================

This module turns the raw bytes of one connection into the pieces a
Request is built from:

    socket bytes ──► HeaderScanner ──► header text ──► request line
                                            │               (method, url,
                                            │                version)
                                            ▼
                                      parse_headers ──► {name: value}
                                            │
                                            ▼
                                 parse_content_length ──► read_body

=============================================================================
FINDING THE END OF THE HEADERS
=============================================================================

TCP is a byte stream: the terminating CR LF CR LF may arrive in one
recv(), or spread over four. The scanner therefore never searches a
chunk for the whole terminator; it keeps a small match counter that
survives between reads:

    bytes seen:   G E T ... \r  \n  \r  \n
    matched:      0 0 0 ...  1   2   3   4  ◄── complete

A mismatch falls back to 1 if the byte is CR (it may start a new
terminator), otherwise to 0. Since "\r\n\r\n" has no other prefix that is
also a suffix, that is the whole automaton.

Everything up to AND including the terminator belongs to the header
block. Nothing after it is consumed, so the body can be read from the
same stream afterwards.

=============================================================================
LENIENCY
=============================================================================

This is not a conformant HTTP/1.1 parser:

1. Lines are split on LF only; the trailing CR is removed by stripping.
2. Header lines without a colon are skipped, not reported.
3. Header names keep their case. A repeated header overwrites.
4. Only Content-Length (exact spelling) determines the body size.
   Missing, negative or non-numeric values mean "no body".

=============================================================================
"""

import logging
import re
from typing import BinaryIO, Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)


TERMINATOR = b"\r\n\r\n"

# Header bytes are decoded one byte per character.
HEADER_ENCODING = "iso-8859-1"

# Optional sign and ASCII digits only. int() alone would also take "1_0"
# and non-ASCII digits.
CONTENT_LENGTH_PATTERN = re.compile(r"\s*\+?[0-9]+\s*")


class MalformedRequestError(ValueError):
    """
    Raised when the request line has fewer than two tokens.

    Carries the raw header text that could not be turned into a Request,
    so the connection handler can log what the client actually sent.
    """

    def __init__(self, message: str, header_raw: str = ""):
        super().__init__(message)
        self.header_raw = header_raw


class HeaderScanner:
    """
    Incremental detector for the end of an HTTP header block.

    Usage with a stream (one byte per read, as the connection handler does):

        scanner = HeaderScanner()
        header_bytes = scanner.scan(stream)

    Usage with arbitrary chunks:

        scanner = HeaderScanner()
        for chunk in chunks:
            used = scanner.feed(chunk)
            if scanner.complete:
                leftover = chunk[used:]
                break
    """

    def __init__(self):
        self._buffer = bytearray()
        self._matched = 0

    @property
    def complete(self) -> bool:
        """True once CR LF CR LF has been consumed."""
        return self._matched == len(TERMINATOR)

    @property
    def header_bytes(self) -> bytes:
        """Bytes collected so far, terminator included."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> int:
        """
        Consume bytes until the terminator is found.

        Args:
            data: Next chunk of the byte stream.

        Returns:
            Number of bytes of ``data`` that belong to the header block.
            Anything after that index was not consumed.
        """
        consumed = 0
        for byte in data:
            if self.complete:
                break
            self._buffer.append(byte)
            consumed += 1
            if byte == TERMINATOR[self._matched]:
                self._matched += 1
            elif byte == TERMINATOR[0]:
                self._matched = 1
            else:
                self._matched = 0
        return consumed

    def scan(self, stream: BinaryIO) -> bytes:
        """
        Read from ``stream`` one byte at a time until the header block ends.

        End of stream stops the scan without error; whatever was collected
        is returned as-is.

        Args:
            stream: Binary file-like object (e.g. socket.makefile("rb")).

        Returns:
            The collected header bytes.
        """
        while not self.complete:
            byte = stream.read(1)
            if not byte:
                logger.debug(f"Stream ended after {len(self._buffer)} header bytes")
                break
            self.feed(byte)
        return self.header_bytes


def scan_header_block(stream: BinaryIO) -> str:
    """Scan one header block from ``stream`` and return it as text."""
    return HeaderScanner().scan(stream).decode(HEADER_ENCODING)


def split_header_lines(header_raw: str) -> List[str]:
    """Split the header text on LF, dropping empty entries."""
    return [line for line in header_raw.split("\n") if line]


def parse_request_line(header_raw: str) -> Tuple[str, str, Optional[str]]:
    """
    Extract method, target and version from the first line.

    =====================================================================
    REQUEST LINE FORMAT
    =====================================================================

        GET /search?q=1 HTTP/1.1
        ─┬─ ─────┬───── ────┬───
         │       │          │
       Method  Target    Version (optional here)

    =====================================================================

    Args:
        header_raw: Full header text; only the first line is looked at.

    Returns:
        Tuple of (method, url, version). version is None when the line
        has only two tokens.

    Raises:
        MalformedRequestError: If the line has fewer than two tokens.
    """
    request_line = header_raw.split("\n", 1)[0]
    tokens = request_line.split()
    if len(tokens) < 2:
        raise MalformedRequestError(
            f"Malformed request line: {request_line.strip()!r}",
            header_raw=header_raw,
        )

    version = tokens[2] if len(tokens) > 2 else None
    return tokens[0], tokens[1], version


def parse_headers(header_raw: str) -> Dict[str, str]:
    """
    Parse the "Name: Value" lines that follow the request line.

    Splits each line on its first colon and strips both sides. Lines
    with no colon are skipped. Later duplicates overwrite earlier ones.

    Args:
        header_raw: Full header text, request line included.

    Returns:
        Dictionary of header name → value (names keep their case).
    """
    headers: Dict[str, str] = {}

    for line in split_header_lines(header_raw)[1:]:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        headers[name.strip()] = value.strip()

    return headers


def parse_content_length(headers: Dict[str, str]) -> Optional[int]:
    """
    Get the declared body size.

    Returns:
        The Content-Length as an integer >= 0, or None when the header is
        missing or not a valid non-negative integer.
    """
    value = headers.get("Content-Length")
    if value is None or not CONTENT_LENGTH_PATTERN.fullmatch(value):
        return None

    return int(value)


def read_body(stream: BinaryIO, headers: Dict[str, str]) -> bytes:
    """
    Read exactly Content-Length bytes from ``stream``.

    With a missing or invalid Content-Length nothing is read, even if the
    client keeps sending. A client that declares more bytes than it sends
    blocks this call until it closes the connection, in which case the
    shorter body is returned.
    """
    length = parse_content_length(headers)
    if not length:
        return b""

    body = stream.read(length)
    if len(body) < length:
        logger.debug(f"Body truncated: expected {length} bytes, got {len(body)}")
    return body
