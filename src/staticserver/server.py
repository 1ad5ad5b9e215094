"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the layers together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer        accept loop, one thread                        │
    │        │                                                             │
    │        ▼  Connection                                                 │
    │   WorkerGroup         one thread per connection                      │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestDispatcher   read line, parse, write one response           │
    │        │                                                             │
    │        ▼  Request                                                    │
    │   StaticFileHandler   resolve, render, build the response            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every connection carries exactly one request and is closed afterwards
(Connection: close). Whatever goes wrong on one connection is logged in
its worker and goes no further.

=============================================================================
USAGE
=============================================================================

    from staticserver import StaticServer, ServerConfig

    server = StaticServer(ServerConfig(root="./public", port=8000))
    server.run()  # Blocks until Ctrl+C / SIGTERM

=============================================================================
"""

import logging
from typing import Optional

from .access_log import AccessLogger, configure_logging
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionClosed, WorkerGroup
from .dispatcher import RequestDispatcher
from .handlers import StaticFileHandler
from .http.request import RequestError, MethodNotAllowed


logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 10.0


class StaticServer:
    """
    Serves a directory over HTTP/1.1.

    Attributes:
        config: Configuration, read-only once run() is called.
        handler: The static file handler (exposed for tests).
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.handler = StaticFileHandler(
            self.config.root_path,
            index_filename=self.config.index_filename,
            enable_directory_listing=self.config.enable_directory_listing,
        )
        self._dispatcher = RequestDispatcher(
            self.handler,
            server_name=self.config.server_name,
            access_log=AccessLogger(self.config.log_format),
        )
        self._socket_server = SocketServer(self.config)
        self._workers = WorkerGroup(self.config.max_workers)

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    @property
    def address(self):
        """(host, port) actually bound; valid once the server is ready."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def run(self, setup_logging: bool = True) -> None:
        """
        Start serving. Blocks until shutdown() or SIGINT/SIGTERM.

        Args:
            setup_logging: Configure process logging from the config first.
        """
        if setup_logging:
            configure_logging(self.config.log_level)

        logger.info(
            f"Serving {self.config.root_path} "
            f"(index={self.config.index_filename or '-'}, "
            f"listing={'on' if self.config.enable_directory_listing else 'off'})"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self) -> None:
        """Ask the accept loop to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._workers.shutdown(wait=True, timeout=SHUTDOWN_TIMEOUT)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to a worker (runs on the accept thread)."""
        if self._workers.spawn(self._process_connection, args=(conn,)):
            return

        if self._workers.closed:
            logger.info(f"[{conn.id}] Shutting down, dropping connection")
        elif self._workers.is_full:
            logger.warning(f"[{conn.id}] At max_workers, dropping connection")
        else:
            logger.warning(f"[{conn.id}] No worker thread available, dropping connection")
        conn.close()

    def _process_connection(self, conn: Connection):
        """Serve one connection (runs in a worker thread)."""
        with conn:
            try:
                self._dispatcher.dispatch(conn)
            except (TimeoutError, ConnectionClosed) as e:
                logger.debug(f"[{conn.id}] Dropped without response: {str(e) or type(e).__name__}")
            except MethodNotAllowed as e:
                logger.warning(f"[{conn.id}] {e}")
            except RequestError as e:
                logger.warning(f"[{conn.id}] Bad request line: {e}")
            except OSError as e:
                logger.warning(f"[{conn.id}] I/O error: {e}")
