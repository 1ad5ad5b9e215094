"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the complete HTTP/1.1 messages this server sends: one per
connection, always followed by a close.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                   ← status line                │
    │   Date: Sat, 17 Oct 2026 09:30:00 GMT\r\n                            │
    │   Connection: close\r\n                 ← always close               │
    │   Server: StaticServer/0.1\r\n                                       │
    │   Content-Type: text/html\r\n           ← outcome-specific headers   │
    │   Content-Length: 1234\r\n              ← always last                │
    │   \r\n                                  ← end of headers             │
    │   <!DOCTYPE html>...                    ← body (GET only)            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE RESPONSES WE SEND
=============================================================================

    ┌──────────────────────────┬────────────────────────┬─────────────────┐
    │  Status line             │  Extra headers         │  Body           │
    ├──────────────────────────┼────────────────────────┼─────────────────┤
    │  200 OK                  │  Content-Type          │  file / listing │
    │  403 Not Permitted       │  (none)                │  (empty)        │
    │  404 Not Found           │  (none)                │  Resource '<t>' │
    │                          │                        │  not found      │
    │  405 Method Not Allowed  │  Allow: GET, HEAD      │  (empty)        │
    └──────────────────────────┴────────────────────────┴─────────────────┘

=============================================================================
HEAD AND CONTENT-LENGTH
=============================================================================

A HEAD response carries exactly the headers the GET response would,
including Content-Length, but no body bytes. For files we do not even read
the content for HEAD: the length comes from the file's metadata and is
stored in `content_length`, while `body` stays empty.

    GET  /data.json  →  Content-Length: 27   + 27 body bytes
    HEAD /data.json  →  Content-Length: 27   + nothing

=============================================================================
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Union

from .status_codes import HTTPStatus
from .request import ALLOWED_METHODS


DEFAULT_SERVER_NAME = "StaticServer/0.1"


@dataclass
class HTTPResponse:
    """
    A response ready to be serialized onto the socket.

    Attributes:
        status: Status code (enum).
        headers: Outcome-specific headers (Content-Type, Allow, ...), in
                 insertion order. Date, Connection, Server and
                 Content-Length are added by to_bytes().
        body: Body bytes. Empty for HEAD responses.
        content_length: Explicit Content-Length. None means len(body).
                        Set when the body is intentionally absent (HEAD).
        version: Protocol version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    content_length: Optional[int] = None
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """The first line, e.g. "HTTP/1.1 403 Not Permitted"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def length(self) -> int:
        """The value sent in Content-Length."""
        if self.content_length is not None:
            return self.content_length
        return len(self.body)

    def without_body(self) -> "HTTPResponse":
        """
        Return the HEAD form of this response.

        Headers (including Content-Length) are unchanged; the body is
        dropped.
        """
        return replace(self, headers=dict(self.headers), body=b"", content_length=self.length)

    def header_block(
        self,
        server_name: str = DEFAULT_SERVER_NAME,
        now: Optional[datetime] = None,
    ) -> Dict[str, str]:
        """
        Compute the full, ordered header mapping.

        Order: Date, Connection, Server, outcome headers, Content-Length.

        Args:
            server_name: Value of the Server header.
            now: Timestamp for the Date header. Defaults to the current
                 time, read once so every header agrees.
        """
        headers = {
            "Date": format_http_date(now or datetime.now(timezone.utc)),
            "Connection": "close",
            "Server": server_name,
        }
        headers.update(self.headers)
        headers["Content-Length"] = str(self.length)
        return headers

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize to bytes for socket.sendall().

            HTTP/1.1 404 Not Found\r\n
            Date: ...\r\n
            Connection: close\r\n
            Server: StaticServer/0.1\r\n
            Content-Length: 34\r\n
            \r\n
            Resource '/missing.txt' not found

        Args:
            server_name: Value of the Server header.

        Returns:
            The complete HTTP message.
        """
        lines = [self.status_line]
        for name, value in self.header_block(server_name).items():
            lines.append(f"{name}: {value}")
        lines.append("")

        # Empty line separates headers from body
        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/css")
            .body(css_bytes)
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._content_length: Optional[int] = None

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add an outcome-specific header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the body. Strings are encoded as UTF-8."""
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def content_length(self, length: int) -> "ResponseBuilder":
        """
        Declare Content-Length without supplying the body.

        Used for HEAD on files, where the size comes from metadata.
        """
        self._content_length = length
        return self

    def build(self) -> HTTPResponse:
        """Create the HTTPResponse."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            content_length=self._content_length,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 1123 HTTP-date.

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sat, 17 Oct 2026 09:30:00 GMT

    Args:
        dt: Datetime to format. Aware datetimes are converted to UTC;
            naive ones are assumed to already be UTC.

    Returns:
        Formatted date string.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# OUTCOME CONSTRUCTORS
# =============================================================================
#
# One function per row of the response table in the module docstring.
# The dispatcher only ever builds responses through these.
#
# =============================================================================

def ok(body: bytes, content_type: str) -> HTTPResponse:
    """
    200 OK with a full body (file contents or a rendered listing).

    Args:
        body: Bytes to send.
        content_type: Classified MIME type.
    """
    return ResponseBuilder().status(HTTPStatus.OK).content_type(content_type).body(body).build()


def ok_head(length: int, content_type: str) -> HTTPResponse:
    """
    200 OK for HEAD on a file: headers only.

    Args:
        length: Size of the file in bytes, from metadata.
        content_type: Classified MIME type.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .content_type(content_type)
        .content_length(length)
        .build())


def not_permitted() -> HTTPResponse:
    """403 Not Permitted with an empty body. Sent for path escape attempts."""
    return ResponseBuilder().status(HTTPStatus.NOT_PERMITTED).build()


def not_found(target: str) -> HTTPResponse:
    """
    404 Not Found.

    The body names the request target as the client sent it. Filesystem
    paths never appear here.

    Args:
        target: The raw request target.
    """
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).body(f"Resource '{target}' not found").build()


def method_not_allowed() -> HTTPResponse:
    """405 Method Not Allowed with `Allow: GET, HEAD` and an empty body."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ALLOWED_METHODS)
        .build())
