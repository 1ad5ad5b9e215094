"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Listens, accepts, and hands each client socket off. It never reads a byte
of a request itself.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create the listening socket
    2. bind()      Associate it with host:port (port 0 = pick a free one)
    3. listen()    Let the OS queue pending connections (backlog)
    4. accept()    Take one pending connection, get a NEW socket for it
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘     Never sends/receives data
                                │
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Client 1  │         │ Client 2  │         │ Client 3  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
SHUTDOWN
=============================================================================

accept() polls with a one second timeout so a shutdown() from another
thread (or a signal handler) is noticed promptly.

SIGINT / SIGTERM handlers are installed only when start() runs on the
main thread; Python refuses signal.signal() anywhere else, and a server
started from a test thread must not touch process-wide handlers.

=============================================================================
ACCEPT ERRORS
=============================================================================

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │  accept() failure                │  Accept loop                     │
    ├──────────────────────────────────┼──────────────────────────────────┤
    │  ECONNABORTED and friends        │  log, continue                   │
    │  EMFILE / ENFILE / ENOBUFS       │  log, back off briefly, continue │
    │  EBADF / ENOTSOCK / EINVAL       │  log, stop (socket is unusable)  │
    │  anything after shutdown()       │  stop                            │
    └──────────────────────────────────┴──────────────────────────────────┘

A failure while handing off an accepted connection closes that
connection and nothing else.

=============================================================================
"""

import errno
import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ACCEPT_POLL_INTERVAL = 1.0

# Pause after running out of descriptors or buffers before accepting again
ACCEPT_BACKOFF = 0.1

_RESOURCE_ERRNOS = {errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.ENOMEM}

# The listening socket itself is unusable
_FATAL_ERRNOS = {errno.EBADF, errno.ENOTSOCK, errno.EINVAL}


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │    start()                                                           │
    │        ├──► _create_socket()   socket + SO_REUSEADDR + TCP_NODELAY   │
    │        ├──► bind() / listen()                                        │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks until shutdown()               │
    │                 └──► Connection(...) ──► connection_handler(conn)    │
    │                                                                      │
    │    shutdown()   flag + event, safe from any thread                   │
    │    _cleanup()   restore signals, close listening socket              │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False

        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The (host, port) actually bound.

        Before binding this is the configured address; afterwards it
        reflects the OS-assigned port when the configured port was 0.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    @property
    def port(self) -> int:
        return self.address[1]

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allow immediate restart on the same port (TIME_WAIT)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are written in one sendall(); don't let Nagle hold them
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Called on the accept thread with each new
                                Connection. Must return quickly.

        Raises:
            OSError: The address could not be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._shutdown_event.clear()

        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Poll interval elapsed; re-check _running
                continue
            except OSError as e:
                if not self._running:
                    break
                if e.errno in _FATAL_ERRNOS:
                    logger.error(f"Listening socket unusable: {e}")
                    break

                # Aborted handshakes, descriptor exhaustion: keep accepting
                logger.warning(f"Accept failed: {e}")
                if e.errno in _RESOURCE_ERRNOS:
                    self._shutdown_event.wait(ACCEPT_BACKOFF)
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                read_timeout=self.config.read_timeout,
                max_line_length=self.config.max_request_line,
            )
            try:
                connection_handler(conn)
            except Exception as e:
                logger.exception(f"[{conn.id}] Connection handoff failed: {e}")
                conn.close()

    def shutdown(self):
        """Stop the accept loop. Idempotent, callable from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

