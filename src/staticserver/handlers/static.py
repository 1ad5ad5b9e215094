"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Routes a parsed request to exactly one response.

=============================================================================
FLOW
=============================================================================

    Request(GET, "/docs/")
          │
          ▼
    PathResolver.resolve()
          │
          ├── IllegalPath ────────────────────────────► 403 Not Permitted
          ├── NotFound ───────────────────────────────► 404 Not Found
          ├── FileTarget ─────────────────────────────► 200 file
          └── DirectoryTarget
                  │
                  ▼
          DirectoryRenderer.render()
                  │
                  ├── FileTarget (index file) ────────► 200 file
                  ├── Listing ────────────────────────► 200 text/html
                  └── NotFound (listing disabled) ────► 404 Not Found

=============================================================================
GET VS HEAD
=============================================================================

For a file, GET reads the content and HEAD only asks the filesystem for
its size. Both produce the same headers; the dispatcher strips the body
when writing a HEAD response.

Every opened file is closed before handle() returns, on every path.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..core.filesystem import Filesystem, LocalFilesystem
from ..http.request import Request
from ..http.response import HTTPResponse, ok, ok_head, not_found, not_permitted
from ..http.mime_types import get_content_type
from .resolver import (
    PathResolver, Resolution,
    FileTarget, DirectoryTarget, NotFound, IllegalPath,
)
from .listing import DirectoryRenderer, Listing


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Serves files and directory listings below a root directory.

    Usage:
        handler = StaticFileHandler("/srv/site")
        response = handler.handle(parse_request_line("GET / HTTP/1.1"))
    """

    def __init__(
        self,
        root: Union[str, Path],
        index_filename: str = "index.html",
        enable_directory_listing: bool = True,
        filesystem: Optional[Filesystem] = None,
    ):
        """
        Args:
            root: Serving root. All served paths are below it.
            index_filename: File served for directory requests. "" disables
                            index lookup.
            enable_directory_listing: Render listings for directories
                                      without an index file.
            filesystem: Filesystem access. Defaults to the local disk.
        """
        self.resolver = PathResolver(Path(root), filesystem or LocalFilesystem())
        self.renderer = DirectoryRenderer(
            self.resolver,
            index_filename=index_filename,
            enable_directory_listing=enable_directory_listing,
        )

    @property
    def root(self) -> Path:
        return self.resolver.root

    @property
    def filesystem(self) -> Filesystem:
        return self.resolver.filesystem

    def handle(self, request: Request) -> HTTPResponse:
        """
        Build the response for a request.

        The returned response always carries the GET body (or, for files
        requested with HEAD, an explicit Content-Length and no body).

        Args:
            request: Parsed GET or HEAD request.

        Returns:
            The complete response.
        """
        outcome: Union[Resolution, Listing] = self.resolver.resolve(request.target)

        if isinstance(outcome, DirectoryTarget):
            outcome = self.renderer.render(outcome, request.target)
            if isinstance(outcome, NotFound):
                logger.info(f"Directory listing disabled: {request.target}")

        return self._respond(request, outcome)

    def _respond(
        self,
        request: Request,
        outcome: Union[FileTarget, Listing, NotFound, IllegalPath],
    ) -> HTTPResponse:
        if isinstance(outcome, FileTarget):
            with outcome:
                return self._serve_file(request, outcome)

        if isinstance(outcome, Listing):
            return ok(outcome.body, outcome.content_type)

        if isinstance(outcome, NotFound):
            return not_found(outcome.target)

        if isinstance(outcome, IllegalPath):
            return not_permitted()

        raise TypeError(f"Unhandled resolution outcome: {outcome!r}")

    def _serve_file(self, request: Request, target: FileTarget) -> HTTPResponse:
        """
        200 response for an open file.

        HEAD: size from metadata only. GET: read to the end.
        """
        content_type = get_content_type(target.path)

        if request.is_head:
            return ok_head(self.filesystem.size(target.handle), content_type)

        return ok(self.filesystem.read(target.handle), content_type)
