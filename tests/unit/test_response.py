"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timezone, timedelta

import pytest

from staticserver.http.response import (
    HTTPResponse,
    ResponseBuilder,
    HTTPStatus,
    ok,
    ok_head,
    not_found,
    not_permitted,
    method_not_allowed,
    format_http_date,
)


FIXED_NOW = datetime(2026, 10, 17, 9, 30, 0, tzinfo=timezone.utc)


class TestHTTPStatus:
    """Tests for status codes and reason phrases."""

    @pytest.mark.parametrize("status,line", [
        (HTTPStatus.OK, "HTTP/1.1 200 OK"),
        (HTTPStatus.NOT_PERMITTED, "HTTP/1.1 403 Not Permitted"),
        (HTTPStatus.NOT_FOUND, "HTTP/1.1 404 Not Found"),
        (HTTPStatus.METHOD_NOT_ALLOWED, "HTTP/1.1 405 Method Not Allowed"),
    ])
    def test_status_line(self, status, line):
        assert HTTPResponse(status=status).status_line == line

    def test_categories(self):
        assert HTTPStatus.OK.is_success
        assert not HTTPStatus.OK.is_client_error
        assert HTTPStatus.NOT_FOUND.is_client_error


class TestHTTPResponse:
    """Tests for HTTPResponse serialization."""

    def test_header_order(self):
        """Date, Connection, Server, outcome headers, Content-Length."""
        response = ok(b"hello", "text/plain")
        headers = response.header_block("Test/1.0", now=FIXED_NOW)

        assert list(headers) == ["Date", "Connection", "Server", "Content-Type", "Content-Length"]
        assert headers["Date"] == "Sat, 17 Oct 2026 09:30:00 GMT"
        assert headers["Connection"] == "close"
        assert headers["Server"] == "Test/1.0"
        assert headers["Content-Length"] == "5"

    def test_to_bytes(self):
        data = ok(b"hello", "text/html").to_bytes("Test/1.0")

        head, body = data.split(b"\r\n\r\n", 1)
        lines = head.split(b"\r\n")
        assert lines[0] == b"HTTP/1.1 200 OK"
        assert lines[1].startswith(b"Date: ")
        assert lines[2:] == [
            b"Connection: close",
            b"Server: Test/1.0",
            b"Content-Type: text/html",
            b"Content-Length: 5",
        ]
        assert body == b"hello"

    def test_default_server_name(self):
        assert b"Server: StaticServer/0.1\r\n" in not_permitted().to_bytes()

    def test_without_body_keeps_length(self):
        response = ok(b"0123456789", "text/plain")
        head = response.without_body()

        assert head.body == b""
        assert head.length == 10
        assert head.header_block(now=FIXED_NOW) == response.header_block(now=FIXED_NOW)
        # Original untouched
        assert response.body == b"0123456789"

    def test_explicit_content_length(self):
        response = ok_head(1234, "application/json")
        assert response.body == b""
        assert response.length == 1234
        assert response.to_bytes().endswith(b"Content-Length: 1234\r\n\r\n")


class TestOutcomeConstructors:
    """Tests for the per-outcome response helpers."""

    def test_not_permitted(self):
        response = not_permitted()
        assert response.status == HTTPStatus.NOT_PERMITTED
        assert response.body == b""
        assert response.headers == {}
        assert response.length == 0

    def test_not_found(self):
        response = not_found("/missing.txt")
        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b"Resource '/missing.txt' not found"
        assert "Content-Type" not in response.headers

    def test_method_not_allowed(self):
        response = method_not_allowed()
        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers == {"Allow": "GET, HEAD"}
        assert response.length == 0

    def test_ok_sets_content_type(self):
        response = ok(b"{}", "application/json")
        assert response.headers == {"Content-Type": "application/json"}


class TestResponseBuilder:
    """Tests for the fluent builder."""

    def test_build(self):
        response = (ResponseBuilder()
            .status(HTTPStatus.NOT_FOUND)
            .header("X-Test", "1")
            .body("text")
            .build())

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.headers == {"X-Test": "1"}
        assert response.body == b"text"


class TestFormatHttpDate:
    """Tests for RFC 1123 dates."""

    def test_utc(self):
        assert format_http_date(FIXED_NOW) == "Sat, 17 Oct 2026 09:30:00 GMT"

    def test_aware_converted_to_gmt(self):
        cest = timezone(timedelta(hours=2))
        dt = datetime(2026, 10, 17, 11, 30, 0, tzinfo=cest)
        assert format_http_date(dt) == "Sat, 17 Oct 2026 09:30:00 GMT"

    def test_zero_padding(self):
        dt = datetime(2026, 1, 5, 3, 4, 5, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Mon, 05 Jan 2026 03:04:05 GMT"
