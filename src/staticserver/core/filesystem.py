"""
=============================================================================
FILESYSTEM ACCESS
=============================================================================

The server never touches `os` or `pathlib` I/O directly. Every read goes
through a Filesystem object, which keeps the request pipeline testable
against fakes (permission failures, unreadable entries) without having to
chmod real files.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   WHAT THE PIPELINE NEEDS                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   is_dir(path)        Is this an existing directory?                 │
    │   is_file(path)       Is this an existing regular file?              │
    │   open(path)          Open for binary reading                        │
    │   read(handle)        Read to end                                    │
    │   size(handle)        Length from metadata (no read)                 │
    │   scandir(path)       Immediate entries of a directory               │
    │                                                                      │
    │   Nothing here writes. Ever.                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirEntry:
    """
    One entry of a directory listing.

    Attributes:
        name: Entry name (no directory part).
        is_dir: True for sub-directories (symlinks are followed).
    """

    name: str
    is_dir: bool = False


class Filesystem(ABC):
    """
    Read-only filesystem interface used by the resolver and the renderer.

    Implementations must be safe to share between connection threads; they
    hold no per-request state.
    """

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """True if `path` exists and is a directory."""

    @abstractmethod
    def is_file(self, path: Path) -> bool:
        """True if `path` exists and is a regular file."""

    @abstractmethod
    def open(self, path: Path) -> BinaryIO:
        """
        Open a file for binary reading.

        Raises:
            OSError: Any failure to open (missing, permission, ...).
        """

    @abstractmethod
    def scandir(self, path: Path) -> Iterator[DirEntry]:
        """
        Yield the immediate entries of a directory, best effort.

        Entries that cannot be inspected are skipped. Order is whatever the
        platform returns.

        Raises:
            OSError: The directory itself cannot be opened.
        """

    def read(self, handle: BinaryIO) -> bytes:
        """Read an open file to the end."""
        return handle.read()

    def size(self, handle: BinaryIO) -> int:
        """Length of an open file, from its metadata."""
        return os.fstat(handle.fileno()).st_size


class LocalFilesystem(Filesystem):
    """The real disk, via pathlib and os.scandir."""

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def open(self, path: Path) -> BinaryIO:
        return open(path, "rb")

    def scandir(self, path: Path) -> Iterator[DirEntry]:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    is_dir = entry.is_dir()
                except OSError as e:
                    # Dangling or unreadable entry: leave it out
                    logger.debug(f"Skipping entry {entry.name!r}: {e}")
                    continue
                yield DirEntry(name=entry.name, is_dir=is_dir)
