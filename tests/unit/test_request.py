"""
Unit tests for request line parsing and validation.
"""

import pytest

from statichttp.http.request import (
    HTTPRequest,
    RequestParser,
    MalformedRequestLine,
    ValidationOutcome,
    parse_request,
    validate,
    is_valid_method,
    is_rooted_path,
    is_valid_protocol,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_request(self):
        """Test parsing a basic request line."""
        request = RequestParser().parse(b"GET /index.html HTTP/1.0")

        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.protocol == "HTTP/1.0"

    def test_parse_text_line(self):
        """Test that str input is accepted too."""
        request = parse_request("GET / HTTP")
        assert request == HTTPRequest("GET", "/", "HTTP")

    def test_trailing_cr_is_ignored(self):
        """Test that a CRLF client's trailing CR does not stick to the protocol."""
        request = parse_request(b"GET /a.txt HTTP/1.0\r")
        assert request.protocol == "HTTP/1.0"

    def test_runs_of_whitespace_separate_tokens(self):
        """Test that doubled spaces and tabs split like single spaces."""
        request = parse_request(b"GET   /a.txt\tHTTP/1.0")
        assert request == HTTPRequest("GET", "/a.txt", "HTTP/1.0")

    def test_parse_keeps_invalid_tokens(self):
        """Test that parsing is structural only; policy is checked later."""
        request = parse_request(b"DELETE relative FTP/1.0")

        assert request.method == "DELETE"
        assert request.path == "relative"
        assert request.protocol == "FTP/1.0"

    @pytest.mark.parametrize("line", [
        b"",
        b"   ",
        b"GET",
        b"GET /",
        b"GET / HTTP/1.0 extra",
    ])
    def test_wrong_token_count_is_malformed(self, line):
        """Test that anything but exactly three tokens is rejected."""
        with pytest.raises(MalformedRequestLine):
            parse_request(line)

    def test_malformed_keeps_line(self):
        """Test that the offending line is kept on the exception."""
        with pytest.raises(MalformedRequestLine) as exc_info:
            parse_request("GET /")
        assert exc_info.value.line == "GET /"

    def test_invalid_utf8_does_not_raise(self):
        """Test that undecodable bytes are replaced, not fatal."""
        request = parse_request(b"GET /caf\xe9 HTTP/1.0")
        assert request.path.startswith("/caf")

    def test_request_line(self):
        """Test re-assembling the request line."""
        request = HTTPRequest("GET", "/a.txt", "HTTP/1.0")
        assert request.request_line == "GET /a.txt HTTP/1.0"


class TestValidation:
    """Tests for request policy checks."""

    def test_valid_request(self):
        request = HTTPRequest("GET", "/index.html", "HTTP/1.0")
        assert validate(request) is ValidationOutcome.VALID

    @pytest.mark.parametrize("method, expected", [
        ("GET", True),
        ("get", False),
        ("Get", False),
        ("POST", False),
        ("HEAD", False),
    ])
    def test_method(self, method, expected):
        """Test that only an exact "GET" is accepted."""
        assert is_valid_method(method) is expected

    @pytest.mark.parametrize("path, expected", [
        ("/", True),
        ("/a/b.txt", True),
        ("//double", True),
        ("index.html", False),
        ("*", False),
        ("http://example.com/", False),
    ])
    def test_rooted_path(self, path, expected):
        """Test that the path must begin with a slash."""
        assert is_rooted_path(path) is expected

    @pytest.mark.parametrize("protocol", [
        "HTTP",
        "HTTP/0.9",
        "HTTP/1",
        "HTTP/1.0",
        "HTTP/1.1",
        "HTTP/2.0",
        "HTTP/10",
    ])
    def test_accepted_protocols(self, protocol):
        assert is_valid_protocol(protocol)

    @pytest.mark.parametrize("protocol", [
        "HTTP/0.8",
        "HTTP/0",
        "HTTP/",
        "HTTP/abc",
        "HTTP/1.0/x",
        "HTTP/1_0",
        "HTTP/nan",
        "http/1.0",
        "FTP/1.0",
        "HTTPS/1.0",
        "",
    ])
    def test_rejected_protocols(self, protocol):
        assert not is_valid_protocol(protocol)

    @pytest.mark.parametrize("line", [
        "POST /a.txt HTTP/1.0",
        "GET a.txt HTTP/1.0",
        "GET /a.txt HTTP/0.8",
        "get a.txt ftp",
    ])
    def test_any_failed_check_is_bad_request(self, line):
        """Test that a single failing check is enough for BAD_REQUEST."""
        assert validate(parse_request(line)) is ValidationOutcome.BAD_REQUEST
