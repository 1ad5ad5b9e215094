"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass. Nothing in it changes after the server
starts, so worker threads read it freely without locking.

=============================================================================
WHERE VALUES COME FROM
=============================================================================

    ┌──────────────┐     ┌──────────────────┐     ┌───────────────┐
    │  CLI flags   │ ──► │  Environment     │ ──► │  Defaults     │
    │  (highest)   │     │  STATICSERVER_*  │     │  (lowest)     │
    └──────────────┘     └──────────────────┘     └───────────────┘

    STATICSERVER_HOST         host                (127.0.0.1)
    STATICSERVER_PORT         port                (8000)
    STATICSERVER_ROOT         root                (.)
    STATICSERVER_INDEX        index_filename      (index.html, "" = off)
    STATICSERVER_LISTING      directory listings  (1)
    STATICSERVER_TIMEOUT      read_timeout        (5)
    STATICSERVER_MAX_WORKERS  max_workers         (unbounded)
    STATICSERVER_LOG_LEVEL    log_level           (INFO)
    STATICSERVER_LOG_FORMAT   log_format          (text)

    # From shell:
    STATICSERVER_PORT=3000 STATICSERVER_ROOT=./public python -m staticserver

=============================================================================
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional, Union


ENV_PREFIX = "STATICSERVER_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def parse_bool(value: str) -> bool:
    """
    Parse a boolean environment value.

    Raises:
        ValueError: Not a recognised boolean spelling.
    """
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


@dataclass
class ServerConfig:
    """
    Static server configuration.

    Usage:
        config = ServerConfig(root="./public", port=3000)
        config.validate()
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    port: int = 8000
    backlog: int = 128

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    root: Union[str, Path] = "."
    index_filename: str = "index.html"
    enable_directory_listing: bool = True

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    read_timeout: float = 5.0
    """Seconds a client may stay silent before its connection is dropped."""

    max_request_line: int = 8192
    """Longest accepted request line in bytes."""

    max_workers: Optional[int] = None
    """Concurrent connections. None = one thread per connection, unbounded."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING / IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    server_name: str = "StaticServer/0.1"

    @property
    def root_path(self) -> Path:
        """The serving root as an absolute path."""
        return Path(self.root).resolve()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build a configuration from STATICSERVER_* environment variables.

        Unset variables keep their defaults.

        Args:
            environ: Mapping to read instead of os.environ (for tests).

        Raises:
            ValueError: A variable is set but cannot be converted.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        kwargs = {}
        if get("HOST") is not None:
            kwargs["host"] = get("HOST")
        if get("PORT") is not None:
            kwargs["port"] = int(get("PORT"))
        if get("ROOT") is not None:
            kwargs["root"] = get("ROOT")
        if get("INDEX") is not None:
            kwargs["index_filename"] = get("INDEX")
        if get("LISTING") is not None:
            kwargs["enable_directory_listing"] = parse_bool(get("LISTING"))
        if get("TIMEOUT") is not None:
            kwargs["read_timeout"] = float(get("TIMEOUT"))
        if get("MAX_WORKERS"):
            kwargs["max_workers"] = int(get("MAX_WORKERS"))
        if get("LOG_LEVEL") is not None:
            kwargs["log_level"] = get("LOG_LEVEL").upper()
        if get("LOG_FORMAT") is not None:
            kwargs["log_format"] = get("LOG_FORMAT").lower()

        return cls(**kwargs)

    def override(self, **changes) -> "ServerConfig":
        """
        Return a copy with the non-None values in `changes` applied.

        Used by the CLI: flags that were not given arrive as None and
        leave the environment/default value alone.
        """
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> None:
        """
        Check every value, failing fast at startup.

        Raises:
            ValueError: Describes the first invalid setting.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if not Path(self.root).is_dir():
            raise ValueError(f"Root is not a directory: {self.root}")

        if self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.max_request_line < 64:
            raise ValueError("max_request_line must be >= 64")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}")

        index = self.index_filename
        if index in (".", "..") or "/" in index or "\\" in index:
            raise ValueError(f"index_filename must be a plain file name: {index!r}")
