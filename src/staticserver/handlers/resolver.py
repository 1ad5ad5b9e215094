"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a request target onto the filesystem, inside the serving root, or
rejects it.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../etc/passwd HTTP/1.1                                     │
    │                                                                      │
    │  Naive join:   /srv/site + ../../etc/passwd  →  /etc/passwd  (!!)   │
    │                                                                      │
    │  Our answer:   403 Not Permitted                                    │
    └─────────────────────────────────────────────────────────────────────┘

We never build a path string and then check it. Instead the target is
walked component by component with an explicit accumulator that starts
at the root:

    target: /docs/./guide/../img/logo.png

    component   action            accumulator
    ─────────   ───────────────   ───────────────────────
    (empty)     ignore            []
    docs        push              [docs]
    .           ignore            [docs]
    guide       push              [docs, guide]
    ..          pop               [docs]
    img         push              [docs, img]
    logo.png    push              [docs, img, logo.png]

    result: root / docs / img / logo.png

A ".." when the accumulator is already empty would climb above the root.
That is an escape attempt and resolution stops with IllegalPath right
there; it is NOT clamped to the root.

Scanning the raw string for ".." is not used anywhere: it is both too
strict (a file may legitimately be called "a..b") and bypassable
(encodings, separator games). Component bookkeeping is exact.

=============================================================================
DECODING ORDER
=============================================================================

    1. Drop "?query" and "#fragment".
    2. Percent-decode the WHOLE remaining string.
    3. Split on "/" and "\\".
    4. Walk the components.

Decoding before splitting matters: "%2e%2e%2f" must become "../" and go
through the same bookkeeping as a literal "../". Decoding after splitting
would smuggle "../.." inside a single "normal" component.

=============================================================================
OUTCOMES
=============================================================================

    ┌──────────────────┬────────────────────────────────────────────────┐
    │  FileTarget      │  Regular file, already opened for reading      │
    │  DirectoryTarget │  Existing directory                            │
    │  NotFound        │  Nothing there, not a regular file, or open    │
    │                  │  failed for ANY reason (permissions included)  │
    │  IllegalPath     │  Target tried to climb above the root          │
    └──────────────────┴────────────────────────────────────────────────┘

Permission errors are reported as NotFound on purpose: a 403 for "exists
but unreadable" would tell a client which paths exist.

=============================================================================
"""

import re
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Tuple, Union
from urllib.parse import unquote

from ..core.filesystem import Filesystem


logger = logging.getLogger(__name__)

# Both separators split components, so a backslash can never act as a
# separator behind our back on platforms that honour it.
_SEPARATORS = re.compile(r"[/\\]")


# =============================================================================
# RESOLUTION OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class FileTarget:
    """
    A regular file inside the root, opened for reading.

    The handle must be closed when the request is done; use the object as
    a context manager:

        with target:
            data = fs.read(target.handle)
    """

    handle: BinaryIO
    path: Path

    def close(self) -> None:
        self.handle.close()

    def __enter__(self) -> "FileTarget":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


@dataclass(frozen=True)
class DirectoryTarget:
    """
    A directory inside the root.

    Attributes:
        path: Filesystem path (root joined with segments).
        segments: Components below the root; () for the root itself.
    """

    path: Path
    segments: Tuple[str, ...] = ()

    @property
    def url_path(self) -> str:
        """Root-relative path with a trailing slash: "/", "/assets/"."""
        if not self.segments:
            return "/"
        return "/" + "/".join(self.segments) + "/"


@dataclass(frozen=True)
class NotFound:
    """Nothing servable at the target."""

    target: str


@dataclass(frozen=True)
class IllegalPath:
    """The target tried to escape the serving root."""

    target: str


Resolution = Union[FileTarget, DirectoryTarget, NotFound, IllegalPath]


# =============================================================================
# RESOLVER
# =============================================================================

class PathEscapeError(ValueError):
    """A target climbs above the serving root."""


def split_target(target: str) -> list[str]:
    """
    Decode a request target and split it into raw components.

    Examples:
        >>> split_target("/a/b%20c.txt?x=1")
        ['', 'a', 'b c.txt']
        >>> split_target("/%2e%2e/etc")
        ['', '..', 'etc']
    """
    path = target.split("?", 1)[0].split("#", 1)[0]
    return _SEPARATORS.split(unquote(path))


def normalize_segments(target: str) -> Tuple[str, ...]:
    """
    Walk the components of `target` with an explicit accumulator.

    Returns:
        The segments below the root.

    Raises:
        PathEscapeError: A ".." would climb above the root.
    """
    segments: list[str] = []
    for component in split_target(target):
        if component in ("", "."):
            continue
        if component == "..":
            if not segments:
                raise PathEscapeError(target)
            segments.pop()
        else:
            segments.append(component)
    return tuple(segments)


class PathResolver:
    """
    Resolves request targets against a serving root.

    Usage:
        resolver = PathResolver(Path("/srv/site"), LocalFilesystem())
        outcome = resolver.resolve("/docs/guide.html")
        if isinstance(outcome, FileTarget):
            with outcome:
                ...
    """

    def __init__(self, root: Path, filesystem: Filesystem):
        """
        Args:
            root: Serving root. Made absolute once, here; nothing below
                  is ever re-normalized by the host path library.
            filesystem: Read-only filesystem access.
        """
        self.root = Path(root).resolve()
        self.filesystem = filesystem

    def resolve(self, target: str) -> Resolution:
        """
        Resolve a request target.

        Args:
            target: Raw request target from the request line.

        Returns:
            FileTarget, DirectoryTarget, NotFound or IllegalPath.
        """
        try:
            segments = normalize_segments(target)
        except PathEscapeError:
            logger.warning(f"Path escape attempt: {target!r}")
            return IllegalPath(target)

        path = self.root.joinpath(*segments)

        if self.filesystem.is_dir(path):
            return DirectoryTarget(path=path, segments=segments)

        return self.open_file(path, target)

    def open_file(self, path: Path, target: str) -> Union[FileTarget, NotFound]:
        """
        Open `path` if it is a regular file.

        Any failure is NotFound. Non-regular files (FIFOs, devices) are
        refused before opening, since opening a FIFO for reading blocks.
        """
        if not self.filesystem.is_file(path):
            return NotFound(target)
        try:
            handle = self.filesystem.open(path)
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte in the decoded target
            logger.debug(f"Cannot open {path}: {e}")
            return NotFound(target)
        return FileTarget(handle=handle, path=path)
