"""
=============================================================================
DIRECTORY RENDERER
=============================================================================

Decides what a request for a directory returns.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  GET /assets/  (a directory)                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   index_filename set and /assets/index.html is a file?              │
    │        │                                                             │
    │        ├── yes ──► FileTarget   (served exactly like a file)        │
    │        │                                                             │
    │        ▼ no                                                          │
    │   listing enabled?                                                   │
    │        │                                                             │
    │        ├── no ───► NotFound     (plain 404 to the client)           │
    │        │                                                             │
    │        ▼ yes                                                         │
    │   Listing  (HTML page, text/html)                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LISTING ORDER
=============================================================================

Entries appear in the order the filesystem enumerates them. That order is
platform dependent and NOT sorted; two servers on different filesystems
may list the same directory differently.

=============================================================================
"""

import html
import logging
from dataclasses import dataclass
from typing import Union
from urllib.parse import quote

from ..core.filesystem import DirEntry, Filesystem
from ..http.mime_types import LISTING_MIME_TYPE
from .resolver import DirectoryTarget, FileTarget, NotFound, PathResolver


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Listing:
    """
    A rendered directory index page.

    Attributes:
        body: HTML, UTF-8 encoded.
        content_type: Always text/html.
    """

    body: bytes
    content_type: str = LISTING_MIME_TYPE


class DirectoryRenderer:
    """
    Serves an index file or renders a listing for a directory.

    Usage:
        renderer = DirectoryRenderer(resolver, "index.html", True)
        outcome = renderer.render(directory, "/assets/")
    """

    def __init__(
        self,
        resolver: PathResolver,
        index_filename: str = "index.html",
        enable_directory_listing: bool = True,
    ):
        """
        Args:
            resolver: Resolver whose filesystem and file-opening rules are
                      reused for the index file.
            index_filename: File served in place of a listing. "" disables
                            index lookup.
            enable_directory_listing: Render listings when no index file
                                      is served.
        """
        self.resolver = resolver
        self.index_filename = index_filename
        self.enable_directory_listing = enable_directory_listing

    @property
    def filesystem(self) -> Filesystem:
        return self.resolver.filesystem

    def render(
        self, directory: DirectoryTarget, target: str
    ) -> Union[FileTarget, Listing, NotFound]:
        """
        Produce the outcome for a directory request.

        Args:
            directory: The resolved directory.
            target: The raw request target (used for NotFound).

        Returns:
            FileTarget for the index file, a Listing, or NotFound when
            listings are disabled.
        """
        if self.index_filename:
            index = self.resolver.open_file(directory.path / self.index_filename, target)
            if isinstance(index, FileTarget):
                return index

        if not self.enable_directory_listing:
            return NotFound(target)

        return Listing(body=self.render_listing(directory).encode("utf-8", errors="replace"))

    def render_listing(self, directory: DirectoryTarget) -> str:
        """
        Build the HTML index page for a directory.

        The title and heading show the root-relative path ("/assets/"),
        never the filesystem path.
        """
        title = html.escape(directory.url_path)
        items = "".join(
            self._render_entry(directory, entry) for entry in self._entries(directory)
        )
        return (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head>\n"
            '<meta charset="utf-8">\n'
            f"<title>{title}</title>\n"
            "</head>\n"
            "<body>\n"
            f"<h1>{title}</h1>\n"
            "<ul>\n"
            f"{items}"
            "</ul>\n"
            "</body>\n"
            "</html>\n"
        )

    def _entries(self, directory: DirectoryTarget):
        """Enumerate entries, treating an unreadable directory as empty."""
        try:
            yield from self.filesystem.scandir(directory.path)
        except OSError as e:
            logger.warning(f"Cannot list {directory.url_path}: {e}")

    def _render_entry(self, directory: DirectoryTarget, entry: DirEntry) -> str:
        name = entry.name.lstrip("/\\")
        if not name:
            return ""
        if entry.is_dir:
            name += "/"

        href = quote(directory.url_path + name, errors="replace")
        return f'<li><a href="{href}">{html.escape(name)}</a></li>\n'
