"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps an accepted client socket with exactly what a one-request,
connection-close server needs: read one line, write one message, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

The request line may arrive in any number of pieces:

    Client sends:   "GET /index.html HTTP/1.1\r\nHost: x\r\n\r\n"

    recv() → "GET /ind"
    recv() → "ex.html HTTP/1.1\r\nHo"      ← line complete here
    (rest is never read)

So we buffer until we see a line terminator (LF, with or without a
preceding CR) and stop. Header lines and bodies are never parsed;
close() reads and discards them after the response is out.

=============================================================================
HOW A READ CAN END
=============================================================================

    ┌──────────────────────────────┬──────────────────────────────────────┐
    │  What happened               │  Result                              │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │  Terminator received         │  the line (terminator included)      │
    │  Peer closed, nothing sent   │  ConnectionClosed      (silent)      │
    │  Peer closed mid-line        │  MalformedRequest      (logged)      │
    │  Line exceeds the limit      │  MalformedRequest      (logged)      │
    │  No data for read_timeout    │  TimeoutError          (silent)      │
    │  Reset by peer               │  ConnectionClosed      (silent)      │
    └──────────────────────────────┴──────────────────────────────────────┘

=============================================================================
"""

import socket
import time
import logging
from dataclasses import dataclass, field
import uuid

from ..http.request import MalformedRequest


logger = logging.getLogger(__name__)

# Bounds for discarding unread input at close
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionClosed(Exception):
    """The peer went away before a complete request line arrived."""


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for log lines.
        read_timeout: Idle timeout for reading the request line, seconds.
        max_line_length: Longest accepted request line, in bytes.
        buffer_size: recv() chunk size.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    read_timeout: float = 5.0
    max_line_length: int = 8192
    buffer_size: int = 4096
    closed: bool = False

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.read_timeout)

    @property
    def client_ip(self) -> str:
        """Client IP address, or "-" for unnamed (socketpair) peers."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return "-"

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request_line(self) -> str:
        """
        Read the first line sent by the client.

        Returns:
            The decoded line including its terminator. Invalid UTF-8 bytes
            are replaced, not rejected.

        Raises:
            ConnectionClosed: Peer closed (or reset) before sending anything.
            MalformedRequest: Line incomplete at EOF, or longer than
                              max_line_length.
            TimeoutError: Nothing arrived within read_timeout.
        """
        while b"\n" not in self._buffer:
            if len(self._buffer) > self.max_line_length:
                raise MalformedRequest(
                    f"Request line exceeds {self.max_line_length} bytes"
                )

            chunk = self._recv()
            if not chunk:
                if self._buffer:
                    raise MalformedRequest("Incomplete request line")
                raise ConnectionClosed("Peer closed before sending a request")
            self._buffer += chunk

        end = self._buffer.index(b"\n") + 1
        if end > self.max_line_length:
            raise MalformedRequest(f"Request line exceeds {self.max_line_length} bytes")

        line, self._buffer = self._buffer[:end], self._buffer[end:]
        return line.decode("utf-8", errors="replace")

    def _recv(self) -> bytes:
        """recv() one chunk; a reset reads as end of stream."""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, ConnectionAbortedError):
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> None:
        """
        Send a complete response.

        sendall() either writes everything or raises. Failures are not
        retried; they propagate and end this connection.

        Raises:
            OSError: The write failed (peer gone, broken pipe, ...).
        """
        self.socket.sendall(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        shutdown(SHUT_WR) first so the client sees a clean end of stream
        after the response, then drain what the client sent that we never
        read (header lines, bodies) and release the descriptor. Closing
        with unread input makes the kernel send RST, which can destroy a
        response the client has not read yet. Safe to call twice.
        """
        if self.closed:
            return
        self.closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected
        else:
            self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self):
        """Discard unread input until EOF, DRAIN_LIMIT bytes, or DRAIN_TIMEOUT seconds in total."""
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(self.buffer_size)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Timeout or reset: nothing more to save

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
