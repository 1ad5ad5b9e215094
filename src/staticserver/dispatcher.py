"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Drives one connection through exactly one request:

    read request line ──► parse ──► handle ──► write one response

    ┌───────────────────────────────┬────────────────────────────────────┐
    │  Failure                      │  What the peer sees                │
    ├───────────────────────────────┼────────────────────────────────────┤
    │  ConnectionClosed / timeout   │  nothing                           │
    │  MalformedRequest             │  nothing                           │
    │  UnsupportedProtocol          │  nothing                           │
    │  MethodNotAllowed             │  405, Allow: GET, HEAD             │
    │  OSError while writing        │  whatever got through              │
    └───────────────────────────────┴────────────────────────────────────┘

Every failure is raised to the caller after any response is written; the
caller logs it and closes the connection. Header lines and request bodies
are never read.

=============================================================================
"""

import time
import logging
from typing import Optional

from .access_log import AccessLogEntry, AccessLogger
from .core.connection import Connection
from .handlers.static import StaticFileHandler
from .http.request import Request, MethodNotAllowed, parse_request_line
from .http.response import HTTPResponse, DEFAULT_SERVER_NAME, method_not_allowed


logger = logging.getLogger(__name__)


class RequestDispatcher:
    """
    Reads, routes and answers the single request on a connection.

    Usage:
        dispatcher = RequestDispatcher(StaticFileHandler("./public"))
        with conn:
            dispatcher.dispatch(conn)
    """

    def __init__(
        self,
        handler: StaticFileHandler,
        server_name: str = DEFAULT_SERVER_NAME,
        access_log: Optional[AccessLogger] = None,
    ):
        self.handler = handler
        self.server_name = server_name
        self.access_log = access_log or AccessLogger()

    def dispatch(self, conn: Connection) -> Request:
        """
        Serve one request from `conn`.

        Returns:
            The request that was answered.

        Raises:
            ConnectionClosed: Peer left before sending a request line.
            TimeoutError: Peer stayed silent past the read timeout.
            MalformedRequest: Unusable request line.
            UnsupportedProtocol: Version other than HTTP/1.1.
            MethodNotAllowed: After the 405 response has been written.
            OSError: Writing the response failed.
        """
        line = conn.read_request_line()
        started = time.perf_counter()

        try:
            request = parse_request_line(line)
        except MethodNotAllowed as e:
            self._write(conn, method_not_allowed(), e.method, e.target, started)
            raise

        logger.debug(f"[{conn.id}] {request.request_line}")

        response = self.handler.handle(request)
        if request.is_head:
            response = response.without_body()

        self._write(conn, response, request.method.value, request.target, started)
        return request

    def _write(
        self,
        conn: Connection,
        response: HTTPResponse,
        method: str,
        target: str,
        started: float,
    ) -> None:
        conn.send_response(response.to_bytes(self.server_name))

        self.access_log.log(AccessLogEntry(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            method=method,
            target=target,
            status_code=int(response.status),
            content_length=response.length,
            duration_ms=(time.perf_counter() - started) * 1000,
        ))
