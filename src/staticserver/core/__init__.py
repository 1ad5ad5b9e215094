"""
Core networking components: socket server, connections, worker threads
and filesystem access.
"""

from .connection import Connection, ConnectionClosed
from .filesystem import DirEntry, Filesystem, LocalFilesystem
from .socket_server import SocketServer
from .workers import Worker, WorkerGroup

__all__ = [
    "Connection",
    "ConnectionClosed",
    "DirEntry",
    "Filesystem",
    "LocalFilesystem",
    "SocketServer",
    "Worker",
    "WorkerGroup",
]
