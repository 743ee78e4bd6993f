"""
Unit tests for header scanning and parsing.
"""

import io

import pytest

from quickapi.http.parser import (
    HeaderScanner,
    MalformedRequestError,
    parse_content_length,
    parse_headers,
    parse_request_line,
    read_body,
    scan_header_block,
    split_header_lines,
)


HEADER = (
    b"POST /upload?x=1 HTTP/1.1\r\n"
    b"Host: example.com\r\n"
    b"Content-Length: 5\r\n"
    b"\r\n"
)


class TestHeaderScanner:
    """Tests for HeaderScanner."""

    def test_scan_stops_after_terminator(self):
        """Test that the body is left in the stream."""
        stream = io.BytesIO(HEADER + b"hello")

        header = HeaderScanner().scan(stream)

        assert header == HEADER
        assert stream.read() == b"hello"

    def test_terminator_is_part_of_header(self):
        """Test that CR LF CR LF is kept in the collected bytes."""
        assert HeaderScanner().scan(io.BytesIO(HEADER)).endswith(b"\r\n\r\n")

    @pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7, 16])
    def test_feed_is_independent_of_chunking(self, size: int):
        """Test that chunk boundaries never hide or fake the terminator."""
        data = HEADER + b"hello"
        whole = HeaderScanner()
        whole.feed(data)

        split = HeaderScanner()
        consumed = 0
        for start in range(0, len(data), size):
            chunk = data[start:start + size]
            consumed += split.feed(chunk)
            if split.complete:
                break

        assert split.complete
        assert split.header_bytes == whole.header_bytes == HEADER
        assert consumed == len(HEADER)

    def test_feed_reports_consumed_bytes(self):
        """Test that feed() stops at the terminator."""
        scanner = HeaderScanner()

        used = scanner.feed(b"GET / HTTP/1.1\r\n\r\nBODY")

        assert used == len(b"GET / HTTP/1.1\r\n\r\n")
        assert scanner.feed(b"more") == 0

    def test_near_misses_are_not_terminators(self):
        """Test sequences that only look like the end of the headers."""
        scanner = HeaderScanner()
        scanner.feed(b"GET / HTTP/1.1\r\nA: 1\r\r\nB: 2\n\r\n\rC: 3\r\n")
        assert not scanner.complete

        scanner.feed(b"\r\n")
        assert scanner.complete

    def test_cr_restarts_match(self):
        """Test that CR after a partial match starts a new match."""
        scanner = HeaderScanner()
        scanner.feed(b"GET / HTTP/1.1\r\n\r\r\n\r\n")
        assert scanner.complete
        assert scanner.header_bytes == b"GET / HTTP/1.1\r\n\r\r\n\r\n"

    def test_end_of_stream_returns_partial_header(self):
        """Test that a truncated header is returned without error."""
        header = HeaderScanner().scan(io.BytesIO(b"GET /x HTTP/1.1\r\nHost: a"))
        assert header == b"GET /x HTTP/1.1\r\nHost: a"

    def test_empty_stream(self):
        assert HeaderScanner().scan(io.BytesIO(b"")) == b""

    def test_scan_header_block_decodes_every_byte(self):
        """Test that non-ASCII bytes map to one character each."""
        raw = b"GET /caf\xe9 HTTP/1.1\r\n\r\n"
        text = scan_header_block(io.BytesIO(raw))

        assert len(text) == len(raw)
        assert text.encode("iso-8859-1") == raw


class TestRequestLine:
    """Tests for parse_request_line()."""

    def test_three_tokens(self):
        assert parse_request_line("GET /a?b=c HTTP/1.1\r\nHost: x\r\n\r\n") == (
            "GET", "/a?b=c", "HTTP/1.1",
        )

    def test_two_tokens(self):
        """Test that the version is optional."""
        assert parse_request_line("GET /\r\n\r\n") == ("GET", "/", None)

    @pytest.mark.parametrize("raw", [
        "BADLINE\r\n\r\n",
        "\r\n\r\n",
        "",
        "   \r\nHost: x\r\n\r\n",
    ])
    def test_fewer_than_two_tokens(self, raw: str):
        """Test that a request line without a target is rejected."""
        with pytest.raises(MalformedRequestError) as exc_info:
            parse_request_line(raw)

        assert exc_info.value.header_raw == raw


class TestHeaders:
    """Tests for parse_headers()."""

    def test_values_are_trimmed(self):
        raw = "GET / HTTP/1.1\r\nHost:   example.com  \r\nX-Empty:\r\n\r\n"
        headers = parse_headers(raw)

        assert headers == {"Host": "example.com", "X-Empty": ""}

    def test_split_on_first_colon(self):
        headers = parse_headers("GET / HTTP/1.1\r\nHost: localhost:8080\r\n\r\n")
        assert headers["Host"] == "localhost:8080"

    def test_line_without_colon_is_skipped(self):
        raw = "GET / HTTP/1.1\r\nGarbage line\r\nAccept: */*\r\n\r\n"
        assert parse_headers(raw) == {"Accept": "*/*"}

    def test_names_keep_their_case(self):
        headers = parse_headers("GET / HTTP/1.1\r\ncontent-type: a\r\nContent-Type: b\r\n\r\n")
        assert headers == {"content-type": "a", "Content-Type": "b"}

    def test_last_duplicate_wins(self):
        headers = parse_headers("GET / HTTP/1.1\r\nX-Id: 1\r\nX-Id: 2\r\n\r\n")
        assert headers == {"X-Id": "2"}

    def test_request_line_is_not_a_header(self):
        """Test that a colon in the target does not create a header."""
        assert parse_headers("GET http://host:80/ HTTP/1.1\r\n\r\n") == {}

    def test_split_header_lines_drops_empty_entries(self):
        assert split_header_lines("GET / HTTP/1.1\r\nA: 1\r\n\r\n") == [
            "GET / HTTP/1.1\r", "A: 1\r", "\r",
        ]
        assert split_header_lines("a\n\nb\n") == ["a", "b"]


class TestBody:
    """Tests for Content-Length handling."""

    @pytest.mark.parametrize("value, expected", [
        ("0", 0),
        ("5", 5),
        (" 12 ", 12),
        ("-1", None),
        ("abc", None),
        ("", None),
        ("1.5", None),
        ("1_0", None),
        ("+7", 7),
        ("\u0661\u0662", None),
    ])
    def test_parse_content_length(self, value, expected):
        assert parse_content_length({"Content-Length": value}) == expected

    def test_missing_content_length(self):
        assert parse_content_length({}) is None

    def test_content_length_name_is_exact(self):
        assert parse_content_length({"content-length": "5"}) is None

    def test_reads_exactly_declared_length(self):
        stream = io.BytesIO(b"hello world")

        body = read_body(stream, {"Content-Length": "5"})

        assert body == b"hello"
        assert stream.read() == b" world"

    @pytest.mark.parametrize("headers", [
        {},
        {"Content-Length": "oops"},
        {"Content-Length": "-3"},
        {"Content-Length": "1_0"},
        {"Content-Length": "0"},
    ])
    def test_no_valid_length_reads_nothing(self, headers):
        stream = io.BytesIO(b"unexpected bytes")

        assert read_body(stream, headers) == b""
        assert stream.read() == b"unexpected bytes"

    def test_short_body_at_end_of_stream(self):
        assert read_body(io.BytesIO(b"abc"), {"Content-Length": "10"}) == b"abc"
