"""
HTTP protocol components: request-line parsing, responses, status codes
and content-type classification.
"""

from .status_codes import HTTPStatus
from .request import (
    Method,
    Request,
    RequestError,
    MalformedRequest,
    UnsupportedProtocol,
    MethodNotAllowed,
    parse_request_line,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    ok,
    ok_head,
    not_permitted,
    not_found,
    method_not_allowed,
)
from .mime_types import get_content_type

__all__ = [
    "HTTPStatus",
    "Method",
    "Request",
    "RequestError",
    "MalformedRequest",
    "UnsupportedProtocol",
    "MethodNotAllowed",
    "parse_request_line",
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "ok",
    "ok_head",
    "not_permitted",
    "not_found",
    "method_not_allowed",
    "get_content_type",
]
