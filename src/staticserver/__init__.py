"""
staticserver: a minimal HTTP/1.1 static file server.

Serves files and directory listings from one directory, answers GET and
HEAD, one request per connection, and refuses any path that climbs out
of the serving root.

    from staticserver import StaticServer, ServerConfig

    StaticServer(ServerConfig(root="./public")).run()
"""

__version__ = "0.1.0"

from .config import ServerConfig
from .server import StaticServer
from .handlers import StaticFileHandler, PathResolver
from .http import HTTPStatus, HTTPResponse, Request, parse_request_line

__all__ = [
    "__version__",
    "ServerConfig",
    "StaticServer",
    "StaticFileHandler",
    "PathResolver",
    "HTTPStatus",
    "HTTPResponse",
    "Request",
    "parse_request_line",
]
