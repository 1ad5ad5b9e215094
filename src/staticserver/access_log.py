"""
=============================================================================
LOGGING SETUP AND ACCESS LOG
=============================================================================

Two kinds of log output:

    staticserver.*          diagnostics (module loggers, getLogger(__name__))
    staticserver.access     one line per response written

The access logger is namespaced so it can be routed separately:

    logging.getLogger("staticserver.access").addHandler(file_handler)

=============================================================================
ACCESS LOG FORMATS
=============================================================================

text (Apache-like, readable with the usual log tools):

    127.0.0.1 - - [17/Oct/2026:10:15:32 +0000] "GET /index.html" 200 1024 0.41ms

json (one object per line, for log aggregators):

    {"connection_id": "3f2a9c1b", "method": "GET", "target": "/index.html", ...}

=============================================================================
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone


logger = logging.getLogger("staticserver.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the process.

    Args:
        level: Level name (DEBUG, INFO, ...). Unknown names fall back to
               INFO.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(level=numeric, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger("staticserver").setLevel(numeric)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z")


@dataclass
class AccessLogEntry:
    """
    Structured record of one written response.

    Attributes:
        connection_id: Short connection identifier, matches diagnostics.
        client_ip: Peer address.
        method: Request method as sent ("GET", "HEAD", "POST").
        target: Raw request target.
        status_code: Status written.
        content_length: Content-Length header value.
        duration_ms: Time from request line to response written.
        timestamp: When the response was written.
    """

    connection_id: str
    client_ip: str
    method: str
    target: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str = field(default_factory=_timestamp)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Writes AccessLogEntry records to the staticserver.access logger.

    Usage:
        access = AccessLogger("json")
        access.log(entry)
    """

    def __init__(self, log_format: str = "text"):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown access log format: {log_format}")
        self.log_format = log_format

    def format(self, entry: AccessLogEntry) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(self, entry: AccessLogEntry) -> None:
        logger.info(self.format(entry))
