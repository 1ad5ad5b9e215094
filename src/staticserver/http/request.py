"""
=============================================================================
HTTP REQUEST LINE PARSER
=============================================================================

Turns the first line of an HTTP/1.1 request into a Request object.

=============================================================================
WHAT WE PARSE (AND WHAT WE DON'T)
=============================================================================

Only the request line matters to a static file server that closes the
connection after one response:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │    GET /assets/app.js HTTP/1.1\r\n     ← parsed                      │
    │    ─┬─ ───────┬────── ───┬────                                      │
    │     │         │          │                                           │
    │   Method    Target    Version                                        │
    │                                                                      │
    │    Host: localhost:8000\r\n            ← never read                  │
    │    User-Agent: curl/8.0\r\n            ← never read                  │
    │    \r\n                                                              │
    │    (body)                              ← never consumed              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The line is split on runs of whitespace. Tokens past the third are
ignored, the way a lenient server tolerates trailing junk.

=============================================================================
VALIDATION ORDER
=============================================================================

    tokens < 3 ?              ──yes──►  MalformedRequest      (no response)
         │ no
         ▼
    version != "HTTP/1.1" ?   ──yes──►  UnsupportedProtocol   (no response)
         │ no
         ▼
    method not GET / HEAD ?   ──yes──►  MethodNotAllowed      (405 written)
         │ no
         ▼
    Request(method, target, version)

The version is checked before the method, so "POST / HTTP/1.0" is an
unsupported protocol, not a disallowed method.

=============================================================================
"""

from dataclasses import dataclass
from enum import Enum


class RequestError(Exception):
    """
    Base class for request-line failures.

    Every RequestError is fatal for its connection: the dispatcher stops
    after raising it and the connection is closed.
    """


class MalformedRequest(RequestError):
    """The line is incomplete, too long, or has fewer than three tokens."""


class UnsupportedProtocol(RequestError):
    """The version token is anything other than exactly "HTTP/1.1"."""

    def __init__(self, protocol: str):
        super().__init__(f"Unsupported protocol {protocol}")
        self.protocol = protocol


class MethodNotAllowed(RequestError):
    """
    The method is not GET or HEAD.

    Unlike the other request errors, a 405 response is written to the peer
    before this propagates.
    """

    def __init__(self, method: str, target: str = ""):
        super().__init__(f"Method {method} not allowed")
        self.method = method
        self.target = target


class Method(Enum):
    """Methods the server answers."""

    GET = "GET"
    HEAD = "HEAD"


# Value for the Allow header on 405 responses
ALLOWED_METHODS = ", ".join(m.value for m in Method)

SUPPORTED_PROTOCOL = "HTTP/1.1"


@dataclass(frozen=True)
class Request:
    """
    A parsed request line.

    Built once per connection and never modified.

    Attributes:
        method: GET or HEAD.
        target: The raw request-target exactly as sent ("/a%20b.txt?x=1").
        protocol_version: Always "HTTP/1.1" for a successfully parsed line.
    """

    method: Method
    target: str
    protocol_version: str = SUPPORTED_PROTOCOL

    @property
    def is_head(self) -> bool:
        """True when the response must be sent without a body."""
        return self.method is Method.HEAD

    @property
    def request_line(self) -> str:
        """The request line in canonical form, for logs."""
        return f"{self.method.value} {self.target} {self.protocol_version}"


def parse_request_line(line: str) -> Request:
    """
    Parse an HTTP request line.

    Args:
        line: The decoded line, with or without its line terminator.

    Returns:
        The parsed Request.

    Raises:
        MalformedRequest: Fewer than three whitespace-separated tokens.
        UnsupportedProtocol: Version token is not "HTTP/1.1".
        MethodNotAllowed: Method is not GET or HEAD.

    Examples:
        >>> parse_request_line("GET /index.html HTTP/1.1\\r\\n").target
        '/index.html'
    """
    items = line.split()
    if len(items) < 3:
        raise MalformedRequest("Not enough items in HTTP request line")

    method, target, protocol = items[0], items[1], items[2]

    if protocol != SUPPORTED_PROTOCOL:
        raise UnsupportedProtocol(protocol)

    try:
        parsed_method = Method(method)
    except ValueError:
        raise MethodNotAllowed(method, target) from None

    return Request(method=parsed_method, target=target, protocol_version=protocol)
